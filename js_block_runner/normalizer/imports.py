"""Remove module import/export syntax and collect the removed specifiers."""

import logging
import re

from js_block_runner.lexer import MaskedSource, sub_code

logger = logging.getLogger(__name__)

# Quoted module specifier. In masked text the quotes survive but the
# interior is blank, so group "spec" is read back from the original.
_SPECIFIER = r"(?P<spec>(['\"])[^'\"\n]*\2)"

# import type { A } from 'x' / import { type A, type B } from 'x'
TYPE_ONLY_IMPORT_PATTERN = re.compile(
    r"^[ \t]*import\s+(?:type\s+[\w$*{}\s,]+?|\{\s*type\s+[\w$]+(?:\s*,\s*type\s+[\w$]+)*\s*,?\s*\})"
    rf"\s+from\s*{_SPECIFIER}[ \t]*;?[ \t]*\n?",
    re.MULTILINE,
)

# import x from 'y' / import { a, b } from 'y' (multi-line) / import 'side-effect'
IMPORT_PATTERN = re.compile(
    rf"^[ \t]*import\s*(?:[\w$*{{}}\s,]+?\s*from\s*)?{_SPECIFIER}[ \t]*;?[ \t]*\n?",
    re.MULTILINE,
)

# const x = require('y') / const { a } = require('y').default
REQUIRE_PATTERN = re.compile(
    rf"^[ \t]*(?:const|let|var)\s+[^=;]+?=\s*require\s*\(\s*{_SPECIFIER}\s*\)[^;\n]*;?[ \t]*\n?",
    re.MULTILINE,
)

# export * from 'x' / export { a, b as c } from 'x'
REEXPORT_PATTERN = re.compile(
    rf"^[ \t]*export\s+(?:type\s+)?(?:\*(?:\s+as\s+[\w$]+)?|\{{[^}}]*\}})\s*from\s*{_SPECIFIER}[ \t]*;?[ \t]*\n?",
    re.MULTILINE,
)

# export { a, b } with no source module
EXPORT_LIST_PATTERN = re.compile(r"^[ \t]*export\s+(?:type\s+)?\{[^}]*\}[ \t]*;?[ \t]*\n?", re.MULTILINE)

# export const x / export default function f / export default class C
EXPORT_KEYWORD_PATTERN = re.compile(r"^([ \t]*)export\s+(?:default\s+)?", re.MULTILINE)

MODULE_PATTERNS = [
    (TYPE_ONLY_IMPORT_PATTERN, False),
    (IMPORT_PATTERN, True),
    (REQUIRE_PATTERN, True),
    (REEXPORT_PATTERN, True),
    (EXPORT_LIST_PATTERN, False),
]


def strip_imports_and_exports(code: str) -> tuple[str, list[str]]:
    """Remove import/require/re-export statements and leading ``export``.

    Type-only imports are removed without being recorded, since nothing
    is lost at runtime.

    Args:
        code: Fragment source

    Returns:
        Tuple of (code without module syntax, specifiers in first-seen order)
    """
    source = MaskedSource(code)
    removals: list[tuple[int, int, str | None]] = []

    for pattern, records in MODULE_PATTERNS:
        for match in pattern.finditer(source.masked):
            specifier = None
            if records and "spec" in pattern.groupindex and match.group("spec"):
                start, end = match.span("spec")
                specifier = code[start + 1 : end - 1]
            removals.append((match.start(), match.end(), specifier))

    removals.sort(key=lambda r: r[0])

    pieces = []
    specifiers: list[str] = []
    cursor = 0
    for start, end, specifier in removals:
        if start < cursor:
            # Already covered by an earlier statement
            continue
        pieces.append(code[cursor:start])
        cursor = end
        if specifier is not None and specifier not in specifiers:
            specifiers.append(specifier)
    pieces.append(code[cursor:])

    result = sub_code(EXPORT_KEYWORD_PATTERN, r"\1", "".join(pieces))
    if specifiers:
        logger.info(f"Stripped module imports: {specifiers}")
    return result, specifiers
