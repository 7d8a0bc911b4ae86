"""Turn a raw JS/TS fragment into runnable JavaScript."""

import logging
import re

from js_block_runner.analyzer.scope import function_identity_from_text, is_method_shorthand
from js_block_runner.analyzer.vocabulary import IDENT
from js_block_runner.models import NormalizedSource
from js_block_runner.normalizer.imports import strip_imports_and_exports
from js_block_runner.normalizer.params import strip_function_param_types
from js_block_runner.normalizer.type_eraser import erase_types

logger = logging.getLogger(__name__)

# static async name( / name<T>(
METHOD_HEAD_PATTERN = re.compile(
    rf"^(?P<modifiers>(?:static\s+)*)(?P<async>async\s+)?(?P<name>{IDENT})\s*(?:<[^(]*>)?\s*\("
)

# name: (..) => / name = async function (..) / name: x =>
PROPERTY_FUNCTION_PATTERN = re.compile(rf"^(?P<name>{IDENT})\s*[:=]\s*")


def convert_method_to_function(code: str) -> str:
    """Rewrite a lone class/object method into a function declaration.

    ``async load(id) {...}`` becomes ``async function load(id) {...}``.
    Other code is returned unchanged.
    """
    trimmed = code.strip()
    if not is_method_shorthand(trimmed):
        return code
    match = METHOD_HEAD_PATTERN.match(trimmed)
    if not match:
        return code

    prefix = "async function" if match.group("async") else "function"
    converted = f"{prefix} {match.group('name')}({trimmed[match.end():]}"
    logger.info(f"Converted method {match.group('name')} to a function declaration")
    return strip_function_param_types(converted)


def convert_property_to_declaration(code: str) -> str:
    """Rewrite ``name: (..) =>`` or ``name = function`` into ``const name = ...``."""
    trimmed = code.strip()
    match = PROPERTY_FUNCTION_PATTERN.match(trimmed)
    if not match or function_identity_from_text(trimmed) is None:
        return code
    body = trimmed[match.end() :].rstrip()
    body = re.sub(r"[,;]+$", "", body).rstrip()
    logger.info(f"Converted property {match.group('name')} to a const declaration")
    return f"const {match.group('name')} = {body};"


def is_function(code: str) -> bool:
    """Check whether normalized code is a function declaration or literal."""
    return function_identity_from_text(code) is not None


def normalize(fragment: str) -> NormalizedSource:
    """Strip module syntax and TypeScript so the fragment runs under node.

    Args:
        fragment: Raw fragment text

    Returns:
        NormalizedSource with the runtime code and stripped module specifiers
    """
    code, specifiers = strip_imports_and_exports(fragment)
    code = erase_types(code)
    code = convert_method_to_function(code)
    code = convert_property_to_declaration(code)
    code = code.strip()
    logger.info(f"Normalized fragment: {len(fragment)} -> {len(code)} chars")
    return NormalizedSource(code=code, stripped_specifiers=tuple(specifiers))
