"""Call detection strategies: one interface, a text backend and a tree backend."""

import logging
import re

from tree_sitter import Node

from js_block_runner.analyzer.vocabulary import (
    IDENT,
    KEYWORDS,
    MOCKABLE_GLOBALS,
    root_of,
)
from js_block_runner.lexer import find_matching, mask
from js_block_runner import syntax

logger = logging.getLogger(__name__)

# identifier(.identifier)* immediately followed by "(" (optional chaining allowed)
CALL_PATTERN = re.compile(rf"({IDENT}(?:\s*\??\.\s*{IDENT})*)\s*\(")

ALL_LOWERCASE = re.compile(r"^[a-z]+$")


def normalize_key(raw: str) -> str:
    """Collapse whitespace and optional chaining out of a dotted path."""
    return re.sub(r"\s+", "", raw).replace("?.", ".")


class CallStrategy:
    """Given a scope, return the qualified names it calls that are not local."""

    name = "base"

    def detect(self, text: str, local_names: set[str]) -> set[str]:
        raise NotImplementedError


class TextCallStrategy(CallStrategy):
    """Regex scan over literal-masked text, used when no syntax tree exists."""

    name = "text"

    def detect(self, text: str, local_names: set[str]) -> set[str]:
        masked = mask(text)
        result: set[str] = set()

        for match in CALL_PATTERN.finditer(masked):
            key = normalize_key(match.group(1))

            # Member call on an arbitrary expression: foo().bar( / "x".split(
            before = masked[: match.start()].rstrip()
            if before.endswith("."):
                continue
            # Method shorthand definitions are declarations, not calls
            if self._is_definition(masked, match.end() - 1):
                continue

            if key in KEYWORDS or root_of(key) in local_names:
                continue
            if before.endswith("function") or re.search(r"\bfunction\s*\*$", before):
                continue

            if key in MOCKABLE_GLOBALS:
                result.add(key)
                continue
            if "." in key:
                result.add(key)
                continue
            # Entirely lowercase bare names are usually built-ins (print, map)
            if not ALL_LOWERCASE.match(key):
                result.add(key)

        logger.debug(f"Text strategy found {len(result)} call keys")
        return result

    def _is_definition(self, masked: str, open_index: int) -> bool:
        close_index = find_matching(masked, open_index)
        if close_index == -1:
            return False
        rest = masked[close_index + 1 :].lstrip()
        if rest.startswith(":"):
            # Return type annotation: name(a): T {
            rest = re.sub(r"^:[^{};=]*", "", rest)
        return rest.startswith("{")


class TreeCallStrategy(CallStrategy):
    """Walk the call expressions of a tree-sitter scope node.

    A callee whose leading name resolves to a declaration inside the scope
    is skipped; everything else is external.
    """

    name = "tree"

    def __init__(self, scope: Node):
        self.scope = scope

    def detect(self, text: str, local_names: set[str]) -> set[str]:
        declared = syntax.declared_names(self.scope) | local_names
        result: set[str] = set()

        for call in syntax.iter_nodes(self.scope, "call_expression"):
            callee = call.child_by_field_name("function")
            key = syntax.qualified_name(callee) if callee is not None else None
            if key is None:
                continue
            if key in KEYWORDS or root_of(key) in declared:
                continue
            result.add(key)

        logger.debug(f"Tree strategy found {len(result)} call keys")
        return result


def select_strategy(scope: Node | None) -> CallStrategy:
    """Pick the tree strategy when a syntax tree is available."""
    if scope is not None:
        return TreeCallStrategy(scope)
    return TextCallStrategy()
