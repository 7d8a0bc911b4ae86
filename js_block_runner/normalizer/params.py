"""Strip TypeScript annotations from function parameter lists."""

import logging
import re

from js_block_runner.analyzer.vocabulary import IDENT
from js_block_runner.lexer import find_matching, mask, split_top_level

logger = logging.getLogger(__name__)

# function ( / function name( / function* name( / function name<T>(
FUNCTION_PARAMS_PATTERN = re.compile(
    rf"\bfunction\b\s*\*?\s*(?:{IDENT})?\s*(?P<generic><[^(){{}};]*>)?\s*\("
)


def find_top_level_colon(text: str) -> int:
    """Index of the first ``:`` outside any brackets, or -1."""
    masked = mask(text)
    depth = 0
    for i, c in enumerate(masked):
        if c in "<{[(":
            depth += 1
        elif c in ">}])":
            if c == ">" and i > 0 and masked[i - 1] == "=":
                continue
            depth -= 1
        elif c == ":" and depth == 0:
            return i
    return -1


def find_default_value_equals(text: str) -> int:
    """Index of the ``=`` that starts a default value, or -1.

    Skips ``=>``, ``==``, ``===``, ``!=``, ``!==``, ``<=``, ``>=`` and the
    brackets of array types such as ``string[]``.
    """
    masked = mask(text)
    depth = 0
    i = 0
    n = len(masked)
    while i < n:
        c = masked[i]
        nxt = masked[i + 1] if i + 1 < n else ""
        if c == "=" and nxt == ">":
            i += 2
            continue
        if c in "=!<>" and nxt == "=":
            i += 3 if masked[i + 2 : i + 3] == "=" else 2
            continue
        if c in "<{(":
            depth += 1
        elif c in ">})":
            depth -= 1
        elif c == "[":
            if i > 0 and (masked[i - 1].isalnum() or masked[i - 1] in "_$>]") and nxt == "]":
                # Array type: T[]
                i += 2
                continue
            depth += 1
        elif c == "]":
            if depth > 0:
                depth -= 1
        elif c == "=" and depth == 0:
            return i
        i += 1
    return -1


def strip_type_from_param(param: str) -> str:
    """Strip the type annotation from one parameter, keeping any default.

    Examples:
        ``a: number`` -> ``a``
        ``b?: string = "x"`` -> ``b = "x"``
        ``...rest: T[]`` -> ``...rest``
        ``{ x, y }: Point = origin`` -> ``{ x, y } = origin``
    """
    trimmed = param.strip()
    if not trimmed:
        return trimmed

    if trimmed.startswith(("{", "[")):
        close_index = find_matching(mask(trimmed), 0)
        if close_index == -1:
            return trimmed
        pattern = trimmed[: close_index + 1]
        rest = trimmed[close_index + 1 :].strip()
        if rest.startswith(":"):
            after_colon = rest[1:].strip()
            eq_index = find_default_value_equals(after_colon)
            if eq_index >= 0:
                return f"{pattern} = {after_colon[eq_index + 1:].strip()}"
            return pattern
        if rest.startswith("="):
            return f"{pattern} {rest}"
        return trimmed

    is_rest = trimmed.startswith("...")
    body = trimmed[3:].strip() if is_rest else trimmed
    prefix = "..." if is_rest else ""

    colon_index = find_top_level_colon(body)
    eq_index = find_default_value_equals(body)

    if colon_index == -1 or (eq_index != -1 and eq_index < colon_index):
        # No annotation; the colon (if any) belongs to the default value
        if eq_index >= 0:
            name = body[:eq_index].strip().removesuffix("?")
            return f"{prefix}{name} = {body[eq_index + 1:].strip()}"
        return f"{prefix}{body.removesuffix('?')}"

    name = body[:colon_index].strip().removesuffix("?")
    after_colon = body[colon_index + 1 :].strip()
    eq_index = find_default_value_equals(after_colon)
    if eq_index >= 0:
        return f"{prefix}{name} = {after_colon[eq_index + 1:].strip()}"
    return f"{prefix}{name}"


def strip_param_types(params: str) -> str:
    """Strip annotations from every parameter of a raw parameter list."""
    if not params.strip():
        return params
    stripped = [strip_type_from_param(p) for p in split_top_level(params)]
    return ", ".join(p for p in stripped if p)


def strip_function_param_types(code: str) -> str:
    """Strip parameter annotations of ``function``-keyword definitions.

    Generic type parameters (``function f<T>(``) are removed too. Arrow
    function parameter lists are left alone.
    """
    masked = mask(code)
    pieces = []
    cursor = 0
    for match in FUNCTION_PARAMS_PATTERN.finditer(masked):
        open_index = match.end() - 1
        if open_index < cursor:
            continue
        close_index = find_matching(masked, open_index)
        if close_index == -1:
            continue

        head_end = match.start("generic") if match.group("generic") else open_index
        pieces.append(code[cursor:head_end].rstrip() if match.group("generic") else code[cursor:head_end])
        pieces.append("(")
        pieces.append(strip_param_types(code[open_index + 1 : close_index]))
        pieces.append(")")
        cursor = close_index + 1

    pieces.append(code[cursor:])
    return "".join(pieces)
