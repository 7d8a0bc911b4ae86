"""Turn user-entered argument text into JavaScript argument expressions."""

import json
import logging
import re

from js_block_runner.analyzer.scope import followed_by
from js_block_runner.analyzer.vocabulary import IDENT
from js_block_runner.lexer import mask

logger = logging.getLogger(__name__)

LITERAL_WORDS = frozenset({"undefined", "null", "true", "false", "NaN", "Infinity"})

NUMBER_PATTERN = re.compile(
    r"^-?(?:0[xX][\da-fA-F_]+|0[bB][01_]+|0[oO][0-7_]+|\d[\d_]*n"
    r"|(?:\d[\d_]*(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?)$"
)

# a / a.b / a?.b / a.b(c) / a(b).c[d]
CHAIN_PATTERN = re.compile(rf"^{IDENT}(?:\s*\??\.\s*{IDENT}|\(.*\)|\[.*\])*$", re.DOTALL)

FUNCTION_LITERAL_PATTERN = re.compile(rf"^(?:async\s+)?(?:function\b|{IDENT}\s*=>)")


def _is_quoted(value: str) -> bool:
    return len(value) >= 2 and value[0] in "\"'`" and value[-1] == value[0]


def _is_wrapped(value: str, opener: str, closer: str) -> bool:
    return value.startswith(opener) and value.endswith(closer)


def is_likely_expression(value: str) -> bool:
    """Check whether argument text should be used as a JS expression verbatim.

    Args:
        value: Trimmed argument text

    Returns:
        True for literals, array/object/function literals, ``new``
        expressions, identifier chains and parenthesized expressions
    """
    if not value:
        return False
    if value in LITERAL_WORDS:
        return True
    if NUMBER_PATTERN.match(value):
        return True
    if _is_quoted(value):
        return True
    if _is_wrapped(value, "[", "]") or _is_wrapped(value, "{", "}"):
        return True
    if FUNCTION_LITERAL_PATTERN.match(value):
        return True
    if value.startswith("(") and followed_by(mask(value), 0, "=>"):
        return True
    if re.match(r"^new\s", value):
        return True
    if CHAIN_PATTERN.match(value):
        return True
    return _is_wrapped(value, "(", ")")


def format_argument(value: str) -> str:
    """Format one argument: blank becomes ``undefined``, other text is quoted."""
    trimmed = value.strip()
    if not trimmed:
        return "undefined"
    if is_likely_expression(trimmed):
        return trimmed
    logger.debug(f"Quoting argument {trimmed!r}")
    return json.dumps(trimmed)


def format_arguments(values: list[str] | tuple[str, ...]) -> str:
    """Format an argument list for a call expression."""
    return ", ".join(format_argument(v) for v in values)
