"""Infer locally bound names and function identity from fragment text."""

import logging
import re

from js_block_runner.analyzer.vocabulary import IDENT, IDENT_PATTERN, KEYWORDS
from js_block_runner.lexer import find_matching, mask, split_top_level
from js_block_runner.models import FunctionIdentity

logger = logging.getLogger(__name__)

# Simple declarations: const x / let y / var z
DECLARATION_PATTERN = re.compile(rf"\b(?:const|let|var)\s+({IDENT})")

# Destructuring declarations: const { a, b: c } = ... / let [x, y] = ...
DESTRUCTURE_PATTERN = re.compile(r"\b(?:const|let|var)\s+([{\[])")

# Additional declarators in a list: let a = 1, b = 2
DECLARATOR_LIST_PATTERN = re.compile(rf"\b(?:const|let|var)\s+{IDENT}[^;\n]*")

FUNCTION_NAME_PATTERN = re.compile(rf"\bfunction\s*\*?\s*({IDENT})")
CLASS_NAME_PATTERN = re.compile(rf"\bclass\s+({IDENT})")
CATCH_PATTERN = re.compile(r"\bcatch\s*\(")

# Arrow functions with a single bare parameter: x => ...
ARROW_SINGLE_PARAM_PATTERN = re.compile(rf"(?<![\w$.])({IDENT})\s*=>")

# Name patterns tried in order against a selected fragment. The second item
# says what must follow the parameter list: "=>" for arrows, "{" for method
# bodies, or None when the pattern is conclusive on its own.
NAME_PATTERNS = [
    # async function name( or function name(
    (
        re.compile(rf"^(?:export\s+)?(?:default\s+)?(?:async\s+)?function\s*\*?\s*({IDENT})\s*[<(]"),
        None,
    ),
    # const name = async ( or const name = (
    (
        re.compile(rf"^(?:export\s+)?(?:const|let|var)\s+({IDENT})\s*(?::[^=]+)?=\s*(?:async\s*)?\("),
        "=>",
    ),
    # const name = x => ...
    (
        re.compile(rf"^(?:export\s+)?(?:const|let|var)\s+({IDENT})\s*=\s*(?:async\s+)?{IDENT}\s*=>"),
        None,
    ),
    # const name = async function( or const name = function(
    (
        re.compile(rf"^(?:export\s+)?(?:const|let|var)\s+({IDENT})\s*(?::[^=]+)?=\s*(?:async\s+)?function\b"),
        None,
    ),
    # name: async ( or name = ( (object property or class field arrow)
    (re.compile(rf"^({IDENT})\s*[:=]\s*(?:async\s*)?\("), "=>"),
    # name: async function( or name: function(
    (re.compile(rf"^({IDENT})\s*[:=]\s*(?:async\s+)?function\b"), None),
    # async name( or name( (class method shorthand)
    (
        re.compile(rf"^(?:(?:static|public|private|protected)\s+)*(?:async\s+)?({IDENT})\s*[<(]"),
        "{",
    ),
]

# Optional return type annotation between ")" and what follows it
RETURN_TYPE_PREFIX = re.compile(r"^\s*(?::[^{};=]*)?")

ANONYMOUS_PREFIXES = (
    "(",
    "async (",
    "async(",
    "function(",
    "function (",
    "function*",
    "async function(",
    "async function (",
)


def extract_local_definitions(text: str) -> set[str]:
    """Extract names declared anywhere inside the fragment.

    Covers const/let/var declarations (including destructuring and declarator
    lists), function and class declarations, parameters of every function
    and arrow function, and catch parameters.

    Args:
        text: JavaScript/TypeScript source

    Returns:
        Set of locally bound names
    """
    masked = mask(text)
    names: set[str] = set()

    for match in DECLARATION_PATTERN.finditer(masked):
        names.add(match.group(1))

    for match in DECLARATOR_LIST_PATTERN.finditer(masked):
        for part in split_top_level(match.group(0))[1:]:
            declarator = re.match(rf"\s*({IDENT})\s*(?:=|$)", part)
            if declarator:
                names.add(declarator.group(1))

    for match in DESTRUCTURE_PATTERN.finditer(masked):
        open_index = match.start(1)
        close_index = find_matching(masked, open_index)
        if close_index != -1:
            names.update(pattern_bound_names(text[open_index : close_index + 1]))

    for pattern in (FUNCTION_NAME_PATTERN, CLASS_NAME_PATTERN):
        for match in pattern.finditer(masked):
            names.add(match.group(1))

    for params in _parameter_lists(masked, text):
        for param in split_top_level(params):
            names.update(param_bound_names(param))

    for match in CATCH_PATTERN.finditer(masked):
        open_index = match.end() - 1
        close_index = find_matching(masked, open_index)
        if close_index != -1:
            names.update(param_bound_names(text[open_index + 1 : close_index]))

    for match in ARROW_SINGLE_PARAM_PATTERN.finditer(masked):
        if match.group(1) not in KEYWORDS:
            names.add(match.group(1))

    names -= KEYWORDS
    names.discard("")
    logger.debug(f"Local definitions: {sorted(names)}")
    return names


def _parameter_lists(masked: str, text: str) -> list[str]:
    """Find the parameter lists of functions and parenthesized arrows."""
    lists = []
    for match in re.finditer(r"\(", masked):
        open_index = match.start()
        close_index = find_matching(masked, open_index)
        if close_index == -1:
            continue
        before = masked[:open_index].rstrip()
        after = masked[close_index + 1 :].lstrip()
        is_function = re.search(rf"\bfunction\s*\*?\s*(?:{IDENT})?\s*(?:<[^>]*>)?$", before)
        is_arrow = after.startswith("=>") or re.match(r"^:\s*[^=;{]*=>", after)
        is_method = re.search(rf"(?:^|[{{}};,\s]){IDENT}$", before) and after.startswith("{")
        if is_function or is_arrow:
            lists.append(text[open_index + 1 : close_index])
        elif is_method:
            word = re.search(rf"({IDENT})$", before).group(1)
            if word not in KEYWORDS:
                lists.append(text[open_index + 1 : close_index])
    return lists


def pattern_bound_names(pattern: str) -> set[str]:
    """Return the names bound by a destructuring pattern.

    ``{ a, b: c, d = 1, ...rest }`` binds a, c, d and rest;
    ``[x, , [y]]`` binds x and y.
    """
    pattern = pattern.strip()
    names: set[str] = set()
    if not pattern:
        return names
    if pattern[0] in "{[":
        close_index = find_matching(mask(pattern), 0)
        inner = pattern[1:close_index] if close_index != -1 else pattern[1:]
        is_object = pattern[0] == "{"
        for element in split_top_level(inner):
            element = element.strip()
            if not element:
                continue
            if element.startswith("..."):
                names.update(pattern_bound_names(element[3:]))
                continue
            if is_object:
                key_value = split_top_level(element, ":")
                if len(key_value) > 1:
                    names.update(pattern_bound_names(":".join(key_value[1:])))
                    continue
            names.update(pattern_bound_names(element))
        return names

    # A plain binding, possibly with a default value
    target = split_top_level(pattern, "=")[0].strip()
    if IDENT_PATTERN.match(target):
        names.add(target)
    return names


def param_bound_names(param: str) -> set[str]:
    """Return the names a single parameter binds, ignoring TS annotations."""
    param = param.strip()
    if param.startswith("..."):
        param = param[3:].strip()
    # Constructor parameter properties: private readonly x: T
    param = re.sub(r"^(?:(?:public|private|protected|readonly)\s+)+", "", param)
    if param.startswith(("{", "[")):
        close_index = find_matching(mask(param), 0)
        if close_index != -1:
            return pattern_bound_names(param[: close_index + 1])
        return set()
    name = re.match(rf"({IDENT})", param)
    return {name.group(1)} if name else set()


def param_display_name(param: str) -> str:
    """Return the name shown for a parameter (destructuring is summarized)."""
    trimmed = param.strip()
    if trimmed.startswith(("{", "[")):
        opener, closer = trimmed[0], "}" if trimmed[0] == "{" else "]"
        close_index = find_matching(mask(trimmed), 0)
        inner = trimmed[1:close_index].strip() if close_index != -1 else trimmed[1:]
        if len(inner) < 30:
            return f"{opener}{inner}{closer}"
        return f"{opener}...{closer}"

    without_default = split_top_level(trimmed, "=")[0].strip()
    without_type = without_default.split(":")[0].strip()
    return without_type.removeprefix("...").removesuffix("?")


def parse_param_list(params: str) -> list[str]:
    """Split a raw parameter list into display names."""
    if not params.strip():
        return []
    names = []
    for param in split_top_level(params):
        name = param_display_name(param)
        if name:
            names.append(name)
    return names


def extract_params_from_text(func_text: str) -> list[str]:
    """Find the first parameter list in a function's text and parse it."""
    masked = mask(func_text)
    # Single bare arrow parameter: x => ...
    arrow = re.match(rf"^\s*(?:async\s+)?({IDENT})\s*=>", masked)
    if arrow and arrow.group(1) not in KEYWORDS:
        return [arrow.group(1)]
    open_index = masked.find("(")
    if open_index == -1:
        return []
    close_index = find_matching(masked, open_index)
    if close_index == -1:
        return []
    return parse_param_list(func_text[open_index + 1 : close_index])


def followed_by(masked: str, open_index: int, expected: str) -> bool:
    """Check what comes after the parameter list opening at ``open_index``.

    A TypeScript return type annotation between the list and ``expected``
    is skipped.
    """
    if open_index == -1 or masked[open_index] != "(":
        return False
    close_index = find_matching(masked, open_index)
    if close_index == -1:
        return False
    rest = masked[close_index + 1 :]
    rest = rest[RETURN_TYPE_PREFIX.match(rest).end() :]
    return rest.startswith(expected)


def is_method_shorthand(code_text: str) -> bool:
    """Check whether a fragment is a lone class/object method like ``load(id) {``."""
    trimmed = code_text.strip()
    pattern, expected = NAME_PATTERNS[-1]
    match = pattern.match(trimmed)
    if not match or match.group(1) in KEYWORDS or match.group(1) == "function":
        return False
    masked = mask(trimmed)
    return followed_by(masked, masked.find("(", match.end(1)), expected)


def function_identity_from_text(code_text: str) -> FunctionIdentity | None:
    """Extract function identity from a selected fragment.

    Args:
        code_text: The selected code

    Returns:
        FunctionIdentity, or None when the fragment is not a function
    """
    trimmed = code_text.strip()
    masked = mask(trimmed)

    function_name = None
    name_match = None
    for pattern, expected in NAME_PATTERNS:
        match = pattern.match(masked)
        if not match:
            continue
        candidate = match.group(1)
        if candidate in KEYWORDS:
            break
        if expected and not followed_by(masked, masked.find("(", match.end(1)), expected):
            continue
        function_name = candidate
        name_match = match
        break

    is_anonymous = function_name is None and (
        trimmed.startswith(ANONYMOUS_PREFIXES)
        or re.match(rf"^(?:async\s+)?{IDENT}\s*=>", masked) is not None
    )
    if is_anonymous and trimmed.startswith(("(", "async")) and not trimmed.startswith("async function"):
        # A parenthesized expression is only a function when an arrow follows
        is_anonymous = re.match(rf"^(?:async\s+)?{IDENT}\s*=>", masked) is not None or followed_by(
            masked, masked.find("("), "=>"
        )

    if function_name is None and not is_anonymous:
        return None

    head = trimmed
    if name_match is not None:
        # Skip past the name so "const f = (a) =>" finds the arrow's list
        head = re.sub(r"^\s*[:=]\s*", "", trimmed[name_match.end(1) :], count=1)

    params = tuple(extract_params_from_text(head))
    logger.info(f"Function identity from text: {function_name}({', '.join(params)})")
    return FunctionIdentity(name=function_name, parameters=params)
