"""Per-file reference detection for a single symbol name.

Five passes run over the same lowered tree, highest precedence first:

1. import bindings             -> import
2. foo(...)                    -> direct-call
3. obj.foo(...)                -> method-call
4. obj.foo (not called)        -> callback
5. any other `foo` identifier  -> callback

Name-based only: a local variable that happens to share the symbol's name is
reported like a real reference.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Iterator, List, Set, Tuple

from refscan.analyzer.source_loader import SourceUnit
from refscan.analyzer.syntax import Call, Identifier, Import, MemberAccess, SyntaxNode, walk


class ReferenceType(str, Enum):
    IMPORT = 'import'
    DIRECT_CALL = 'direct-call'
    METHOD_CALL = 'method-call'
    CALLBACK = 'callback'


# Lower rank wins when two roles land on the same line
TYPE_PRECEDENCE = {
    ReferenceType.IMPORT: 0,
    ReferenceType.DIRECT_CALL: 1,
    ReferenceType.METHOD_CALL: 1,
    ReferenceType.CALLBACK: 2,
}


@dataclass(frozen=True)
class RawHit:
    """A detected occurrence before categorisation and context rendering."""
    file: str
    line: int
    type: ReferenceType


class ReferenceScanner:
    """Find every syntactic use of one symbol in a parsed file."""

    def __init__(self, symbol_name: str):
        """Initialize scanner.

        Args:
            symbol_name: Identifier to look for (exact, case-sensitive)
        """
        self.symbol_name = symbol_name

    def scan(self, unit: SourceUnit) -> List[RawHit]:
        """Run all passes over one file and return de-duplicated hits in discovery order."""
        file_path = str(unit.path)
        tree = unit.tree

        hits: List[RawHit] = []
        seen: Set[Tuple[int, ReferenceType]] = set()
        seen_lines: Set[int] = set()

        def accept(line: int, ref_type: ReferenceType, yield_to_line: bool):
            # Callback passes give way to anything already found on the line
            if yield_to_line and line in seen_lines:
                return
            if (line, ref_type) in seen:
                return
            seen.add((line, ref_type))
            seen_lines.add(line)
            hits.append(RawHit(file=file_path, line=line, type=ref_type))

        callees = self._callee_ids(tree)

        for line in self._import_lines(tree):
            accept(line, ReferenceType.IMPORT, yield_to_line=False)
        for line in self._direct_call_lines(tree):
            accept(line, ReferenceType.DIRECT_CALL, yield_to_line=False)
        for line in self._method_call_lines(tree):
            accept(line, ReferenceType.METHOD_CALL, yield_to_line=False)
        for line in self._member_access_lines(tree, callees):
            accept(line, ReferenceType.CALLBACK, yield_to_line=True)
        for line in self._identifier_lines(tree, callees):
            accept(line, ReferenceType.CALLBACK, yield_to_line=True)

        return hits

    def _import_lines(self, tree: SyntaxNode) -> Iterator[int]:
        for node in walk(tree):
            if isinstance(node, Import):
                for binding in node.bindings:
                    if binding.name == self.symbol_name:
                        yield binding.line

    def _direct_call_lines(self, tree: SyntaxNode) -> Iterator[int]:
        for node in walk(tree):
            if isinstance(node, Call) and isinstance(node.callee, Identifier):
                if node.callee.name == self.symbol_name:
                    yield node.line

    def _method_call_lines(self, tree: SyntaxNode) -> Iterator[int]:
        for node in walk(tree):
            if isinstance(node, Call) and isinstance(node.callee, MemberAccess):
                if node.callee.member == self.symbol_name:
                    yield node.line

    def _member_access_lines(self, tree: SyntaxNode, callees: Set[int]) -> Iterator[int]:
        """obj.symbol used as a value, e.g. passed as a callback."""
        for node in walk(tree):
            if isinstance(node, MemberAccess) and id(node) not in callees:
                if node.member == self.symbol_name:
                    yield node.line

    def _identifier_lines(self, tree: SyntaxNode, callees: Set[int]) -> Iterator[int]:
        """Remaining bare identifiers.

        Declared names and import tokens never reach this pass because the
        lowered tree keeps them out of Identifier nodes. Call arguments such
        as other(foo) are deliberately reported as callbacks.
        """
        for node in walk(tree):
            if isinstance(node, Identifier) and id(node) not in callees:
                if node.name == self.symbol_name:
                    yield node.line

    @staticmethod
    def _callee_ids(tree: SyntaxNode) -> Set[int]:
        """Identity of every node that is the callee of a call."""
        return {id(node.callee) for node in walk(tree) if isinstance(node, Call)}
