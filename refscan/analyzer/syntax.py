"""Closed syntax tree lowered from tree-sitter CSTs.

The reference passes only care about a handful of node kinds, so the
concrete tree-sitter tree is lowered once into the variants below. Every
other construct becomes a Group that just carries its children. Passes
dispatch on the variant with isinstance checks and children_of() raises on
anything it does not know, so a new variant cannot be silently skipped.
"""
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Set, Tuple, Union

from tree_sitter import Node as TSNode, Tree


@dataclass(frozen=True)
class Binding:
    """A local name introduced by an import."""
    name: str
    line: int


@dataclass(frozen=True)
class Import:
    """ESM import, TS import-require or CommonJS require binding."""
    bindings: Tuple[Binding, ...]
    source: str
    line: int


@dataclass(frozen=True)
class Call:
    callee: 'SyntaxNode'
    arguments: Tuple['SyntaxNode', ...]
    line: int


@dataclass(frozen=True)
class MemberAccess:
    """obj.member; member is the property token text."""
    object: 'SyntaxNode'
    member: str
    line: int


@dataclass(frozen=True)
class Identifier:
    name: str
    line: int


@dataclass(frozen=True)
class Declaration:
    """Function, method, class, type or variable declaration.

    The declared name token is kept as `name` and is not part of children.
    """
    kind: str
    name: Optional[str]
    line: int
    children: Tuple['SyntaxNode', ...]


@dataclass(frozen=True)
class Group:
    """Any other construct, reduced to its interesting descendants."""
    kind: str
    line: int
    children: Tuple['SyntaxNode', ...]


SyntaxNode = Union[Import, Call, MemberAccess, Identifier, Declaration, Group]


# tree-sitter node types that are plain identifier uses; type_identifier covers
# annotations, return types, implements clauses and generic arguments
IDENTIFIER_TYPES = {'identifier', 'shorthand_property_identifier', 'type_identifier'}

# Declarations whose `name` field is a declaration site, not a use
DECLARATION_TYPES = {
    'function_declaration', 'generator_function_declaration',
    'function_expression', 'function', 'generator_function',
    'function_signature',
    'class_declaration', 'abstract_class_declaration', 'class',
    'interface_declaration', 'type_alias_declaration', 'enum_declaration',
    'type_parameter', 'internal_module', 'module',
    'method_definition', 'method_signature', 'abstract_method_signature',
    'variable_declarator',
}

NAME_TOKEN_TYPES = {'identifier', 'property_identifier', 'private_property_identifier', 'type_identifier'}

# Parameter nodes and the field holding the declared parameter name
PARAMETER_NAME_FIELDS = {
    'required_parameter': 'pattern',
    'optional_parameter': 'pattern',
    'arrow_function': 'parameter',
    'catch_clause': 'parameter',
}

# Nodes whose patterns (defaults, rest) declare parameter names
PARAMETER_CONTAINERS = {'formal_parameters', 'required_parameter', 'optional_parameter'}


def children_of(node: SyntaxNode) -> Tuple[SyntaxNode, ...]:
    """Direct children of a lowered node, in source order."""
    if isinstance(node, Import):
        # bindings are covered by the import pass only
        return ()
    if isinstance(node, Call):
        return (node.callee,) + node.arguments
    if isinstance(node, MemberAccess):
        return (node.object,)
    if isinstance(node, Identifier):
        return ()
    if isinstance(node, (Declaration, Group)):
        return node.children
    raise TypeError(f"Unhandled syntax node: {type(node).__name__}")


def walk(root: SyntaxNode) -> Iterator[SyntaxNode]:
    """Pre-order traversal in document order (explicit stack, no recursion)."""
    stack: List[SyntaxNode] = [root]
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(children_of(node)))


def lower(tree: Tree) -> Group:
    """Lower a tree-sitter tree into the closed variant tree.

    Post-order over named children with an explicit stack so deeply nested
    expressions (long call chains) do not hit the recursion limit.
    """
    root = tree.root_node
    lowered: Dict[int, Optional[SyntaxNode]] = {}
    stack: List[Tuple[TSNode, bool]] = [(root, False)]

    while stack:
        ts_node, expanded = stack.pop()
        if not expanded:
            stack.append((ts_node, True))
            for child in ts_node.named_children:
                stack.append((child, False))
            continue
        lowered[ts_node.id] = _build(ts_node, lowered)

    program = lowered.get(root.id)
    if isinstance(program, Group):
        return program
    children = (program,) if program is not None else ()
    return Group(kind=root.type, line=_line(root), children=children)


def _build(node: TSNode, lowered: Dict[int, Optional[SyntaxNode]]) -> Optional[SyntaxNode]:
    node_type = node.type

    if node_type == 'import_statement':
        return Import(bindings=_import_bindings(node), source=_import_source(node), line=_line(node))

    if node_type == 'variable_declarator':
        required = _require_import(node)
        if required is not None:
            return required

    if node_type in IDENTIFIER_TYPES:
        return Identifier(name=_text(node), line=_line(node))

    if node_type == 'call_expression':
        function_node = node.child_by_field_name('function')
        args_node = node.child_by_field_name('arguments')
        callee = lowered.get(function_node.id) if function_node is not None else None
        if callee is None:
            # super(), import(), literals and other callees with nothing to report
            kind = function_node.type if function_node is not None else 'callee'
            callee = Group(kind=kind, line=_line(node), children=())
        arguments = _lowered_children(args_node, lowered) if args_node is not None else ()
        return Call(callee=callee, arguments=arguments, line=_line(node))

    if node_type == 'member_expression':
        object_node = node.child_by_field_name('object')
        property_node = node.child_by_field_name('property')
        if object_node is not None and property_node is not None:
            obj = lowered.get(object_node.id)
            if obj is None:
                obj = Group(kind=object_node.type, line=_line(object_node), children=())
            return MemberAccess(object=obj, member=_text(property_node), line=_line(node))

    if node_type in DECLARATION_TYPES:
        name_node = node.child_by_field_name('name')
        if name_node is not None and name_node.type in NAME_TOKEN_TYPES:
            children = _lowered_children(node, lowered, skip={name_node.id})
            return Declaration(kind=node_type, name=_text(name_node), line=_line(node), children=children)

    children = _lowered_children(node, lowered, skip=_parameter_name_ids(node))
    if not children:
        return None
    return Group(kind=node_type, line=_line(node), children=children)


def _parameter_name_ids(node: TSNode) -> Set[int]:
    """Ids of the direct children that declare a parameter name."""
    node_type = node.type
    if node_type == 'formal_parameters':
        # JavaScript puts bare parameter names directly under formal_parameters
        return {child.id for child in node.named_children if child.type == 'identifier'}

    if node_type in PARAMETER_NAME_FIELDS:
        name_node = node.child_by_field_name(PARAMETER_NAME_FIELDS[node_type])
    elif node_type in ('assignment_pattern', 'rest_pattern'):
        parent = node.parent
        if parent is None or parent.type not in PARAMETER_CONTAINERS:
            return set()
        # foo = 1 keeps the name in `left`, ...foo in its only child
        name_node = node.child_by_field_name('left') if node_type == 'assignment_pattern' else None
        if name_node is None and node.named_child_count:
            name_node = node.named_children[0]
    else:
        return set()

    if name_node is not None and name_node.type == 'identifier':
        return {name_node.id}
    return set()


def _lowered_children(node: TSNode, lowered: Dict[int, Optional[SyntaxNode]],
                      skip: Optional[Set[int]] = None) -> Tuple[SyntaxNode, ...]:
    skip = skip or set()
    return tuple(
        lowered[child.id] for child in node.named_children
        if child.id not in skip and lowered.get(child.id) is not None
    )


def _import_bindings(node: TSNode) -> Tuple[Binding, ...]:
    """Local names bound by an import statement.

    import x from 'm'            -> x   (default)
    import * as ns from 'm'      -> ns  (namespace)
    import { a, b as c } from 'm' -> a, c (local names)
    import x = require('m')      -> x   (TypeScript import-require)
    """
    bindings: List[Binding] = []
    for child in node.named_children:
        if child.type == 'import_clause':
            for part in child.named_children:
                if part.type == 'identifier':
                    bindings.append(_binding(part))
                elif part.type == 'namespace_import':
                    for ns_child in part.named_children:
                        if ns_child.type == 'identifier':
                            bindings.append(_binding(ns_child))
                elif part.type == 'named_imports':
                    for specifier in part.named_children:
                        if specifier.type != 'import_specifier':
                            continue
                        local_node = specifier.child_by_field_name('alias') or specifier.child_by_field_name('name')
                        if local_node is not None:
                            bindings.append(_binding(local_node))
        elif child.type == 'import_require_clause':
            for part in child.named_children:
                if part.type == 'identifier':
                    bindings.append(_binding(part))
                    break
    return tuple(bindings)


def _import_source(node: TSNode) -> str:
    source_node = node.child_by_field_name('source')
    if source_node is None:
        for child in node.named_children:
            if child.type == 'import_require_clause':
                source_node = child.child_by_field_name('source')
    return _strip_quotes(_text(source_node)) if source_node is not None else ''


def _require_import(declarator: TSNode) -> Optional[Import]:
    """const x = require('m') / const { a, b: c } = require('m')."""
    name_node = declarator.child_by_field_name('name')
    value_node = declarator.child_by_field_name('value')
    if name_node is None or value_node is None or value_node.type != 'call_expression':
        return None

    function_node = value_node.child_by_field_name('function')
    args_node = value_node.child_by_field_name('arguments')
    if function_node is None or _text(function_node) != 'require':
        return None
    if args_node is None or args_node.named_child_count == 0:
        return None
    first_arg = args_node.named_children[0]
    if first_arg.type != 'string':
        return None

    bindings: List[Binding] = []
    if name_node.type == 'identifier':
        bindings.append(_binding(name_node))
    elif name_node.type == 'object_pattern':
        for prop in name_node.named_children:
            if prop.type == 'shorthand_property_identifier_pattern':
                bindings.append(_binding(prop))
            elif prop.type == 'pair_pattern':
                value = prop.child_by_field_name('value')
                if value is not None and value.type == 'identifier':
                    bindings.append(_binding(value))

    if not bindings:
        return None
    return Import(bindings=tuple(bindings), source=_strip_quotes(_text(first_arg)), line=_line(declarator))


def _binding(node: TSNode) -> Binding:
    return Binding(name=_text(node), line=_line(node))


def _text(node: TSNode) -> str:
    return node.text.decode('utf-8')


def _line(node: TSNode) -> int:
    return node.start_point[0] + 1


def _strip_quotes(text: str) -> str:
    return text.strip('"\'`')
