"""Detectors for non-call external references: this-paths, constants, free variables."""

import logging
import re

from js_block_runner.analyzer.vocabulary import (
    BUILTIN_CLASSES,
    GLOBAL_CONSTANTS,
    IDENT,
    KEYWORDS,
    LITERAL_WORDS,
    LOWERCASE_BUILTINS,
    TYPE_WORDS,
)
from js_block_runner.lexer import mask

logger = logging.getLogger(__name__)

# this.a.b optionally followed by "(" (group 2 marks a call)
SELF_PATTERN = re.compile(
    rf"(?<![\w$.])this\s*\.\s*({IDENT}(?:\s*\??\.\s*{IDENT})*)(\s*\()?"
)

UPPER_SNAKE_PATTERN = re.compile(r"(?<![\w$])([A-Z][A-Z0-9_]{2,})(?![\w$])")
PASCAL_PATTERN = re.compile(r"(?<![\w$])([A-Z][a-zA-Z0-9]+)(?![\w$])")
IDENTIFIER_PATTERN = re.compile(rf"(?<![\w$])({IDENT})(?![\w$])")

# Words after which a capitalized name is a type, not a value
TYPE_POSITION_WORDS = ("as", "satisfies", "implements", "interface", "type", "enum")

# Characters inspected before a capitalized name for a type context
TYPE_CONTEXT_WINDOW = 10


def _segments(key: str) -> list[str]:
    return key.split(".")


def _is_segment_prefix(prefix: str, key: str) -> bool:
    prefix_parts = _segments(prefix)
    return _segments(key)[: len(prefix_parts)] == prefix_parts


def detect_self_references(text: str) -> set[str]:
    """Find ``this``-qualified paths.

    ``this.a.b(`` yields the call key ``this.a.b``. A path in non-call
    position is kept only when no call key equals it or extends it.

    Args:
        text: Fragment source

    Returns:
        Set of keys starting with "this."
    """
    masked = mask(text)
    call_keys: set[str] = set()
    access_keys: set[str] = set()

    for match in SELF_PATTERN.finditer(masked):
        path = re.sub(r"\s+", "", match.group(1)).replace("?.", ".")
        key = f"this.{path}"
        if match.group(2):
            call_keys.add(key)
        else:
            access_keys.add(key)

    result = set(call_keys)
    for key in access_keys:
        if not any(_is_segment_prefix(key, call_key) for call_key in call_keys):
            result.add(key)

    logger.debug(f"Self references: {sorted(result)}")
    return result


def _preceding_word(masked: str, index: int) -> str:
    match = re.search(r"([\w$]+)\s*$", masked[:index])
    return match.group(1) if match else ""


def _is_member_access(masked: str, index: int) -> bool:
    before = masked[:index].rstrip()
    return before.endswith(".") and not before.endswith("...")


def detect_constants(text: str) -> set[str]:
    """Find names that look like imported constants, enums or classes.

    UPPER_SNAKE names are reported unless they are global constants.
    Capitalized names are reported unless they follow ``new``, a member
    access or ``function``, are called, sit in a type position or name a
    built-in class.
    """
    masked = mask(text)
    result: set[str] = set()

    for match in UPPER_SNAKE_PATTERN.finditer(masked):
        name = match.group(1)
        if name in GLOBAL_CONSTANTS or _is_member_access(masked, match.start()):
            continue
        result.add(name)

    for match in PASCAL_PATTERN.finditer(masked):
        name = match.group(1)
        start = match.start()
        if name in BUILTIN_CLASSES:
            continue
        if _is_member_access(masked, start):
            continue
        if _preceding_word(masked, start) in ("new", "function", *TYPE_POSITION_WORDS):
            continue
        if masked[match.end() :].lstrip().startswith("("):
            continue
        window = masked[max(0, start - TYPE_CONTEXT_WINDOW) : start]
        if ":" in window or "<" in window:
            continue
        result.add(name)

    logger.debug(f"Constants: {sorted(result)}")
    return result


def _is_object_key(masked: str, start: int, end: int) -> bool:
    after = masked[end:]
    if not after.startswith(":") or after.startswith("::"):
        return False
    if not masked[:start].strip():
        return True
    before = masked[max(0, start - 20) : start]
    return ("{" in before or "," in before) and "?" not in before and "<" not in before


def detect_free_variables(text: str, local_names: set[str]) -> set[str]:
    """Find bare lowercase identifiers read but never bound in the fragment.

    Short names (under three characters), keywords, built-ins, TypeScript
    type words, property accesses, call targets and object-literal keys are
    skipped.

    Args:
        text: Fragment source
        local_names: Names bound inside the fragment

    Returns:
        Set of free variable names
    """
    masked = mask(text)
    skip = local_names | KEYWORDS | LITERAL_WORDS | LOWERCASE_BUILTINS | TYPE_WORDS
    result: set[str] = set()

    for match in IDENTIFIER_PATTERN.finditer(masked):
        name = match.group(1)
        if name in skip or len(name) < 3 or not name[0].islower():
            continue
        if _is_member_access(masked, match.start()):
            continue
        if masked[match.end() :].lstrip().startswith("("):
            continue
        if _is_object_key(masked, match.start(), match.end()):
            continue
        result.add(name)

    logger.debug(f"Free variables: {sorted(result)}")
    return result
