"""Parse JavaScript/TypeScript with tree-sitter and locate enclosing functions."""

import logging
from collections.abc import Iterator
from dataclasses import dataclass
from functools import cache

import tree_sitter_javascript
import tree_sitter_typescript
from tree_sitter import Language, Node, Parser, Tree

from js_block_runner.analyzer.scope import parse_param_list
from js_block_runner.models import FunctionIdentity

logger = logging.getLogger(__name__)

DIALECTS = ("javascript", "typescript", "tsx")

FUNCTION_TYPES = frozenset(
    {
        "function_declaration",
        "function_expression",
        "function",
        "generator_function_declaration",
        "generator_function",
        "arrow_function",
        "method_definition",
    }
)

# Nodes whose children never bind a name in the enclosing scope
NON_BINDING_TYPES = frozenset(
    {
        "type_annotation",
        "type_identifier",
        "property_identifier",
        "predefined_type",
    }
)


@dataclass
class EnclosingFunction:
    """A function located around a caret offset."""

    node: Node
    text: str
    identity: FunctionIdentity


@cache
def get_parser(dialect: str = "typescript") -> Parser:
    """Get a cached parser for a dialect.

    Args:
        dialect: "javascript", "typescript" or "tsx"

    Returns:
        A tree-sitter Parser
    """
    if dialect == "javascript":
        language = Language(tree_sitter_javascript.language())
    elif dialect == "typescript":
        language = Language(tree_sitter_typescript.language_typescript())
    elif dialect == "tsx":
        language = Language(tree_sitter_typescript.language_tsx())
    else:
        raise ValueError(f"Unknown dialect: {dialect}")
    logger.debug(f"Loaded tree-sitter grammar for {dialect}")
    return Parser(language)


def dialect_for_path(path: str) -> str:
    """Choose a dialect from a file name."""
    if path.endswith(".tsx"):
        return "tsx"
    if path.endswith((".js", ".cjs", ".mjs", ".jsx")):
        return "javascript"
    return "typescript"


def parse(source: str, dialect: str = "typescript") -> Tree:
    """Parse source text into a tree-sitter tree."""
    tree = get_parser(dialect).parse(source.encode("utf8"))
    if tree.root_node.has_error:
        logger.warning("Syntax tree contains errors; detection may be incomplete")
    return tree


def node_text(node: Node) -> str:
    return node.text.decode("utf8") if node.text is not None else ""


def iter_nodes(node: Node, node_type: str | None = None) -> Iterator[Node]:
    """Yield a node and all of its descendants, optionally filtered by type."""
    stack = [node]
    while stack:
        current = stack.pop()
        if node_type is None or current.type == node_type:
            yield current
        stack.extend(reversed(current.children))


def qualified_name(node: Node) -> str | None:
    """Return the dotted path of an identifier or member-access chain.

    ``a``, ``a.b.c`` and ``this.x.y`` yield their text; computed accesses,
    calls in the middle of the chain and other expressions yield None.
    """
    if node.type in ("identifier", "this"):
        return node_text(node)
    if node.type == "member_expression":
        obj = node.child_by_field_name("object")
        prop = node.child_by_field_name("property")
        if obj is None or prop is None or prop.type != "property_identifier":
            return None
        base = qualified_name(obj)
        if base is None:
            return None
        return f"{base}.{node_text(prop)}"
    if node.type == "non_null_expression" and node.named_children:
        return qualified_name(node.named_children[0])
    return None


def binding_identifiers(node: Node) -> set[str]:
    """Collect the names bound by a declaration target or parameter."""
    names: set[str] = set()
    if node.type in ("identifier", "shorthand_property_identifier_pattern"):
        names.add(node_text(node))
        return names
    if node.type in NON_BINDING_TYPES:
        return names
    if node.type in ("assignment_pattern", "object_assignment_pattern"):
        left = node.child_by_field_name("left")
        return binding_identifiers(left) if left is not None else names
    if node.type == "pair_pattern":
        value = node.child_by_field_name("value")
        return binding_identifiers(value) if value is not None else names
    if node.type in ("required_parameter", "optional_parameter"):
        pattern = node.child_by_field_name("pattern")
        return binding_identifiers(pattern) if pattern is not None else names
    for child in node.named_children:
        names |= binding_identifiers(child)
    return names


def declared_names(scope: Node) -> set[str]:
    """Names declared anywhere inside a scope node, including its own name."""
    names: set[str] = set()
    for node in iter_nodes(scope):
        if node.type == "variable_declarator":
            target = node.child_by_field_name("name")
            if target is not None:
                names |= binding_identifiers(target)
        elif node.type in FUNCTION_TYPES or node.type in ("class_declaration", "class"):
            name = node.child_by_field_name("name")
            if name is not None and node.type != "method_definition":
                names.add(node_text(name))
            params = node.child_by_field_name("parameters")
            if params is not None:
                names |= binding_identifiers(params)
            param = node.child_by_field_name("parameter")
            if param is not None:
                names |= binding_identifiers(param)
        elif node.type == "catch_clause":
            param = node.child_by_field_name("parameter")
            if param is not None:
                names |= binding_identifiers(param)
        elif node.type in ("import_specifier", "namespace_import", "import_clause"):
            for child in node.named_children:
                if child.type == "identifier":
                    names.add(node_text(child))
    names.discard("this")
    return names


def _function_name(node: Node) -> str | None:
    name = node.child_by_field_name("name")
    if name is not None:
        return node_text(name)
    parent = node.parent
    if parent is not None and parent.type == "variable_declarator":
        target = parent.child_by_field_name("name")
        if target is not None and target.type == "identifier":
            return node_text(target)
    if parent is not None and parent.type == "pair":
        key = parent.child_by_field_name("key")
        if key is not None and key.type == "property_identifier":
            return node_text(key)
    return None


def _declaration_of(node: Node) -> Node:
    """Widen an arrow or function expression to its declaring statement.

    A function held by an object property widens to the ``name: value`` pair,
    which the normalizer rewrites into a const declaration.
    """
    parent = node.parent
    if (
        parent is not None
        and parent.type == "pair"
        and node.child_by_field_name("name") is None
        and _function_name(node) is not None
    ):
        return parent
    if parent is not None and parent.type == "variable_declarator":
        statement = parent.parent
        if statement is not None and statement.type in (
            "lexical_declaration",
            "variable_declaration",
        ):
            return statement
    return node


def _identity_of(node: Node) -> FunctionIdentity:
    params_node = node.child_by_field_name("parameters")
    if params_node is not None:
        params = parse_param_list(node_text(params_node)[1:-1])
    else:
        param = node.child_by_field_name("parameter")
        params = [node_text(param)] if param is not None else []
    return FunctionIdentity(name=_function_name(node), parameters=tuple(params))


def enclosing_function(
    source: str,
    offset: int,
    dialect: str = "typescript",
) -> EnclosingFunction | None:
    """Locate the function around a caret offset.

    The outermost named function wins; without any named function the
    outermost function is used.

    Args:
        source: The whole document
        offset: Caret position as a character offset
        dialect: Grammar to parse with

    Returns:
        EnclosingFunction, or None when the caret is not inside a function
    """
    tree = parse(source, dialect)
    byte_offset = len(source[:offset].encode("utf8"))
    node = tree.root_node.descendant_for_byte_range(byte_offset, byte_offset)

    outermost = None
    outermost_named = None
    while node is not None:
        if node.type in FUNCTION_TYPES:
            outermost = node
            if _function_name(node) is not None:
                outermost_named = node
        node = node.parent

    target = outermost_named or outermost
    if target is None:
        logger.info(f"No function encloses offset {offset}")
        return None

    identity = _identity_of(target)
    scope = _declaration_of(target)
    logger.info(f"Enclosing function at offset {offset}: {identity.name or '<anonymous>'}")
    return EnclosingFunction(node=scope, text=node_text(scope), identity=identity)
