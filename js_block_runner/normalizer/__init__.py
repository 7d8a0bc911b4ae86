"""TypeScript erasure and module-syntax removal for code fragments."""

from js_block_runner.normalizer.imports import strip_imports_and_exports
from js_block_runner.normalizer.normalizer import is_function, normalize
from js_block_runner.normalizer.params import strip_param_types, strip_type_from_param
from js_block_runner.normalizer.type_eraser import erase_types

__all__ = [
    "normalize",
    "is_function",
    "strip_imports_and_exports",
    "erase_types",
    "strip_param_types",
    "strip_type_from_param",
]
