"""Pick and render the wrapper that invokes the fragment."""

import logging
import re

from js_block_runner.analyzer.scope import RETURN_TYPE_PREFIX
from js_block_runner.analyzer.vocabulary import IDENT
from js_block_runner.lexer import find_matching, mask
from js_block_runner.models import ExecutionShape, FunctionIdentity, ScriptFlags

logger = logging.getLogger(__name__)

# (is_bare_block, uses_self_binding, uses_async_context) -> shape
# (False, False, False) is resolved by whether the target has a name.
SHAPE_TABLE = {
    (True, False, False): ExecutionShape.BLOCK,
    (True, False, True): ExecutionShape.ASYNC_BLOCK,
    (True, True, False): ExecutionShape.BOUND_BLOCK,
    (True, True, True): ExecutionShape.BOUND_ASYNC_BLOCK,
    (False, False, True): ExecutionShape.ASYNC_BODY_CALL,
    (False, True, True): ExecutionShape.BOUND_ASYNC_BODY_CALL,
    (False, True, False): ExecutionShape.BOUND_CALL,
}

SELF_REFERENCE_PATTERN = re.compile(r"(?<![\w$.])this\s*\??\.")
AWAIT_PATTERN = re.compile(r"(?<![\w$.])await\b")

# Heads of async functions, arrows and methods
ASYNC_FUNCTION_PATTERN = re.compile(rf"(?<![\w$.])async\s+function\b\s*\*?\s*(?:{IDENT})?\s*(?:<[^(]*>)?\s*\(")
ASYNC_ARROW_PARENS_PATTERN = re.compile(r"(?<![\w$.])async\s*\(")
ASYNC_ARROW_SINGLE_PATTERN = re.compile(rf"(?<![\w$.])async\s+{IDENT}\s*=>")
ASYNC_METHOD_PATTERN = re.compile(rf"(?<![\w$.])async\s+\*?\s*(?!function\b)({IDENT})\s*(?:<[^(]*>)?\s*\(")


def select_shape(flags: ScriptFlags, identity: FunctionIdentity | None) -> ExecutionShape:
    key = (flags.is_bare_block, flags.uses_self_binding, flags.uses_async_context)
    if key in SHAPE_TABLE:
        return SHAPE_TABLE[key]
    if identity is not None and identity.name:
        return ExecutionShape.NAMED_CALL
    return ExecutionShape.ANONYMOUS_CALL


def embeds_code(shape: ExecutionShape, identity: FunctionIdentity | None) -> bool:
    """Whether the wrapper contains the code, or calls it by name."""
    named = identity is not None and bool(identity.name)
    return not (shape == ExecutionShape.NAMED_CALL or (shape == ExecutionShape.BOUND_CALL and named))


def _bound_arguments(receiver: str, arguments: str) -> str:
    return f"{receiver}, {arguments}" if arguments else receiver


def uses_self(code: str) -> bool:
    return SELF_REFERENCE_PATTERN.search(mask(code)) is not None


def _body_end(masked: str, start: int) -> int:
    """End of a function body starting at or after ``start``.

    A braced body ends at its matching brace; an expression body ends at
    the first ``,`` or ``;`` at depth zero, or where an enclosing bracket
    closes.
    """
    i = start
    while i < len(masked) and masked[i].isspace():
        i += 1
    if i < len(masked) and masked[i] == "{":
        close_index = find_matching(masked, i)
        return len(masked) if close_index == -1 else close_index + 1

    depth = 0
    while i < len(masked):
        c = masked[i]
        if c in "([{":
            depth += 1
        elif c in ")]}":
            if depth == 0:
                return i
            depth -= 1
        elif c in ",;" and depth == 0:
            return i
        i += 1
    return len(masked)


def _after_params(masked: str, open_index: int) -> int | None:
    """Index just past ``=>`` or at ``{`` following a parameter list.

    A return type annotation between the list and the body is skipped.
    """
    close_index = find_matching(masked, open_index)
    if close_index == -1:
        return None
    rest = masked[close_index + 1 :]
    rest = rest[RETURN_TYPE_PREFIX.match(rest).end() :]
    stripped = rest.lstrip()
    offset = len(masked) - len(stripped)
    if stripped.startswith("=>"):
        return offset + 2
    if stripped.startswith("{"):
        return offset
    return None


def async_spans(code: str) -> list[tuple[int, int]]:
    """Character ranges covered by async function, arrow and method bodies."""
    masked = mask(code)
    spans = []
    for pattern in (ASYNC_FUNCTION_PATTERN, ASYNC_ARROW_PARENS_PATTERN, ASYNC_METHOD_PATTERN):
        for match in pattern.finditer(masked):
            body_start = _after_params(masked, match.end() - 1)
            if body_start is not None:
                spans.append((match.start(), _body_end(masked, body_start)))
    for match in ASYNC_ARROW_SINGLE_PATTERN.finditer(masked):
        spans.append((match.start(), _body_end(masked, match.end())))
    return spans


def uses_top_level_await(code: str) -> bool:
    """Check for an ``await`` that is not inside any async function."""
    masked = mask(code)
    spans = async_spans(code)
    for match in AWAIT_PATTERN.finditer(masked):
        if not any(start <= match.start() < end for start, end in spans):
            return True
    return False


def _expression(code: str) -> str:
    return re.sub(r"[;\s]+$", "", code)


def render_body(
    shape: ExecutionShape,
    code: str,
    identity: FunctionIdentity | None,
    arguments: str,
) -> str:
    """Render the statements placed inside the deferred execution callback.

    Args:
        shape: The selected shape
        code: Normalized source
        identity: Function identity, if the fragment is a function
        arguments: Already formatted argument expressions

    Returns:
        JavaScript statements ending in a ``return``
    """
    name = identity.name if identity is not None else None

    if shape in (ExecutionShape.BLOCK, ExecutionShape.ASYNC_BLOCK):
        return f"return (async function () {{\n{code}\n}})();"
    if shape == ExecutionShape.BOUND_BLOCK:
        return f"return (function () {{\n{code}\n}}).call(__ctx.self);"
    if shape == ExecutionShape.BOUND_ASYNC_BLOCK:
        return f"return (async function () {{\n{code}\n}}).call(__ctx.self);"

    if shape in (ExecutionShape.ASYNC_BODY_CALL, ExecutionShape.BOUND_ASYNC_BODY_CALL):
        bound = shape == ExecutionShape.BOUND_ASYNC_BODY_CALL
        call = ""
        if name:
            if bound:
                call = f"\nreturn {name}.call({_bound_arguments('this', arguments)});"
            else:
                call = f"\nreturn {name}({arguments});"
        invoke = ".call(__ctx.self)" if bound else "()"
        return f"return (async function () {{\n{code}{call}\n}}){invoke};"

    if shape == ExecutionShape.NAMED_CALL:
        return f"return {name}({arguments});"
    if shape == ExecutionShape.ANONYMOUS_CALL:
        return f"const __target = (\n{_expression(code)}\n);\nreturn __target({arguments});"

    # BOUND_CALL
    self_args = _bound_arguments("__ctx.self", arguments)
    if name:
        return f"return {name}.call({self_args});"
    return f"const __target = (\n{_expression(code)}\n);\nreturn __target.call({self_args});"
