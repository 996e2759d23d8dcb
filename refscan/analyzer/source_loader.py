"""Source set discovery and parsing.

Turns a project root plus include/exclude patterns into an ordered list of
files, and each file into a SourceUnit (path, text, lowered syntax tree).
"""
import os
from dataclasses import dataclass
from pathlib import Path
from typing import List

import pathspec

from refscan.config import ScanConfig, validate_project_root
from refscan.errors import ParseError
from refscan.analyzer.parser import LanguageParser
from refscan.analyzer.syntax import Group, lower


@dataclass(frozen=True)
class SourceUnit:
    """One parsed file."""
    path: Path
    text: str
    tree: Group


class SourceLoader:
    """Resolve and parse the files a scan covers."""

    def __init__(self, config: ScanConfig):
        """Initialize loader.

        Args:
            config: Scan configuration (root and patterns are read from it)

        Raises:
            ConfigurationError: If the project root is missing or unreadable
        """
        self.config = config
        self.project_root = validate_project_root(config.project_root)
        self.include_spec = pathspec.GitIgnoreSpec.from_lines(config.include_patterns)
        self.exclude_spec = pathspec.GitIgnoreSpec.from_lines(config.exclude_patterns)

    def discover(self) -> List[Path]:
        """Walk the project root and return matching files in sorted order.

        Excluded directories are pruned, so nothing below node_modules/ or a
        build directory is ever visited, let alone parsed.
        """
        files: List[Path] = []
        for dirpath, dirnames, filenames in os.walk(self.project_root):
            current = Path(dirpath)
            kept_dirs = []
            for dirname in sorted(dirnames):
                rel = self.relative_path(current / dirname)
                if self.exclude_spec.match_file(rel + "/"):
                    continue
                kept_dirs.append(dirname)
            dirnames[:] = kept_dirs

            for filename in sorted(filenames):
                file_path = current / filename
                if self.is_included(file_path):
                    files.append(file_path)

        return sorted(files, key=str)

    def is_included(self, file_path: Path) -> bool:
        """True if the file matches an include pattern and no exclude pattern."""
        rel = self.relative_path(file_path)
        if self.exclude_spec.match_file(rel):
            return False
        return self.include_spec.match_file(rel)

    def relative_path(self, file_path: Path) -> str:
        """Root-relative POSIX path used for pattern matching and classification."""
        return Path(file_path).relative_to(self.project_root).as_posix()

    def load(self, file_path: Path) -> SourceUnit:
        """Read, decode, parse and lower one file.

        Raises:
            ParseError: If the file cannot be read, decoded or parsed
        """
        parser = LanguageParser.from_file_extension(file_path)
        if parser is None:
            raise ParseError(file_path, f"no grammar for '{Path(file_path).suffix}' files")

        try:
            with open(file_path, 'rb') as f:
                source_code = f.read()
        except OSError as e:
            raise ParseError(file_path, f"cannot read file ({e.strerror or e})") from e

        try:
            text = source_code.decode('utf-8')
        except UnicodeDecodeError as e:
            raise ParseError(file_path, f"not valid UTF-8 (byte {e.start})") from e

        tree = parser.parse_source(source_code)
        if self.config.strict_parse and tree.root_node.has_error:
            line = _first_error_line(tree.root_node)
            raise ParseError(file_path, f"syntax error near line {line}")

        return SourceUnit(path=Path(file_path), text=text, tree=lower(tree))


def _first_error_line(root) -> int:
    """1-based line of the first ERROR or MISSING node."""
    stack = [root]
    while stack:
        node = stack.pop()
        if node.type == 'ERROR' or node.is_missing:
            return node.start_point[0] + 1
        if node.has_error:
            stack.extend(reversed(node.children))
    return root.start_point[0] + 1
