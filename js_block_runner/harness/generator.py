"""Assemble the complete, self-contained harness script."""

import logging

from js_block_runner.harness import templates
from js_block_runner.harness.arguments import format_arguments
from js_block_runner.harness.mocks import (
    SELF_PREFIX,
    prepare_mocks,
    render_definitions,
    render_installation,
)
from js_block_runner.harness.shapes import (
    embeds_code,
    render_body,
    select_shape,
    uses_self,
    uses_top_level_await,
)
from js_block_runner.models import (
    FunctionIdentity,
    GeneratedScript,
    MockBinding,
    NormalizedSource,
    ScriptFlags,
)
from js_block_runner.normalizer import is_function

logger = logging.getLogger(__name__)


def compute_flags(
    code: str,
    bindings: list[MockBinding],
    identity: FunctionIdentity | None,
    arguments: list[str] | tuple[str, ...],
) -> ScriptFlags:
    """Derive the three booleans that select the execution shape."""
    self_keys = any(b.enabled and b.key.startswith(SELF_PREFIX) for b in bindings)
    return ScriptFlags(
        is_bare_block=identity is None and not arguments and not is_function(code),
        uses_self_binding=uses_self(code) or self_keys,
        uses_async_context=uses_top_level_await(code),
    )


def generate(
    normalized: NormalizedSource,
    bindings: list[MockBinding],
    identity: FunctionIdentity | None = None,
    arguments: list[str] | tuple[str, ...] = (),
) -> GeneratedScript:
    """Generate the harness for a normalized fragment.

    Args:
        normalized: Output of the normalizer
        bindings: Mock bindings; disabled ones are ignored
        identity: Function identity, when the fragment is a function
        arguments: Raw argument texts, aligned with the parameters

    Returns:
        GeneratedScript with the script text, flags and selected shape

    Raises:
        InvalidMockKeyError: If an enabled mock key is not a dotted path
    """
    code = normalized.code
    mocks = prepare_mocks(bindings)
    flags = compute_flags(code, bindings, identity, arguments)
    shape = select_shape(flags, identity)
    logger.info(
        f"Generating harness: shape={shape.value}, bare={flags.is_bare_block}, "
        f"self={flags.uses_self_binding}, async={flags.uses_async_context}"
    )

    body = render_body(shape, code, identity, format_arguments(arguments))

    parts = [
        templates.HEADER.format(shape=shape.value),
        templates.CLOSURE_START,
        templates.section("Mock definitions"),
        render_definitions(mocks),
        templates.SCOPE_START,
        templates.section("Helpers"),
        templates.HELPERS,
        templates.section("Mock installation"),
        render_installation(mocks),
    ]
    warning = templates.import_warning(normalized.stripped_specifiers)
    if warning:
        parts.append(warning)
    parts.append(templates.section("User code"))
    if not embeds_code(shape, identity):
        parts.append(code)
    parts.extend(
        [
            templates.section("Execution"),
            templates.EXECUTION.format(body=body),
            templates.SCOPE_END,
            templates.CLOSURE_END,
        ]
    )

    text = "\n".join(part for part in parts if part)
    return GeneratedScript(
        text=text,
        flags=flags,
        shape=shape,
        stripped_specifiers=normalized.stripped_specifiers,
    )
