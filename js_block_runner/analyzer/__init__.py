"""Static detection of the external names a code fragment depends on."""

from js_block_runner.analyzer.reference_analyzer import analyze, reference_keys
from js_block_runner.analyzer.scope import (
    extract_local_definitions,
    function_identity_from_text,
)
from js_block_runner.analyzer.strategies import (
    CallStrategy,
    TextCallStrategy,
    TreeCallStrategy,
)

__all__ = [
    "analyze",
    "reference_keys",
    "extract_local_definitions",
    "function_identity_from_text",
    "CallStrategy",
    "TextCallStrategy",
    "TreeCallStrategy",
]
