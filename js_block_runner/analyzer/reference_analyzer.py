"""Combine call strategies and detectors into one list of external references."""

import logging
from collections.abc import Iterable

from tree_sitter import Node

from js_block_runner.analyzer.detectors import (
    detect_constants,
    detect_free_variables,
    detect_self_references,
)
from js_block_runner.analyzer.scope import extract_local_definitions
from js_block_runner.analyzer.strategies import select_strategy
from js_block_runner.analyzer.vocabulary import is_allowlisted, root_of
from js_block_runner.models import ExternalReference, ReferenceKind

logger = logging.getLogger(__name__)

# When several detectors report the same key, the earlier kind wins
KIND_PRIORITY = [
    ReferenceKind.SELF,
    ReferenceKind.CALL,
    ReferenceKind.CONSTANT,
    ReferenceKind.FREE_VARIABLE,
]


def analyze(
    fragment_text: str,
    known_locals: Iterable[str] = (),
    scope: Node | None = None,
) -> list[ExternalReference]:
    """Detect the external references of a code fragment.

    Args:
        fragment_text: The code under analysis
        known_locals: Names known to be bound (e.g. function parameters)
        scope: tree-sitter node of the enclosing scope, if one was parsed

    Returns:
        References sorted by key, one per key
    """
    local_names = frozenset(known_locals) | extract_local_definitions(fragment_text)
    strategy = select_strategy(scope)
    logger.info(f"Analyzing fragment with {strategy.name} strategy")

    found: dict[ReferenceKind, set[str]] = {
        ReferenceKind.CALL: strategy.detect(fragment_text, set(local_names)),
        ReferenceKind.SELF: detect_self_references(fragment_text),
        ReferenceKind.CONSTANT: detect_constants(fragment_text),
        ReferenceKind.FREE_VARIABLE: detect_free_variables(fragment_text, set(local_names)),
    }

    # this.x(...) found by the call strategy is reported as a self reference
    call_keys = found[ReferenceKind.CALL] | found[ReferenceKind.SELF]
    call_roots = {root_of(key) for key in call_keys}

    references: dict[str, ReferenceKind] = {}
    for kind in KIND_PRIORITY:
        for key in found[kind]:
            if key in references:
                continue
            if is_allowlisted(key) or root_of(key) in local_names:
                continue
            if kind in (ReferenceKind.CONSTANT, ReferenceKind.FREE_VARIABLE) and key in call_roots:
                continue
            references[key] = kind

    result = [ExternalReference(key=key, kind=references[key]) for key in sorted(references)]
    logger.info(f"Found {len(result)} external references")
    return result


def reference_keys(
    fragment_text: str,
    known_locals: Iterable[str] = (),
    scope: Node | None = None,
) -> list[str]:
    """Return just the sorted, distinct reference keys."""
    return [ref.key for ref in analyze(fragment_text, known_locals, scope)]
