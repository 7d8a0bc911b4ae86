"""Harness generation: mocks, spies and execution wrappers."""

from js_block_runner.harness.arguments import format_argument, format_arguments
from js_block_runner.harness.generator import compute_flags, generate
from js_block_runner.harness.mocks import InvalidMockKeyError, classify
from js_block_runner.harness.shapes import SHAPE_TABLE, select_shape

__all__ = [
    "generate",
    "compute_flags",
    "format_argument",
    "format_arguments",
    "InvalidMockKeyError",
    "classify",
    "SHAPE_TABLE",
    "select_shape",
]
