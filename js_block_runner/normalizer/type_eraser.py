"""Best-effort erasure of TypeScript-only syntax.

Each stage is a plain text rewrite over the previous stage's output. Matches
that start inside a string, template, regex or comment are left alone.
"""

import logging
import re
from collections.abc import Callable

from js_block_runner.analyzer.vocabulary import IDENT
from js_block_runner.lexer import MaskedSource, find_matching, sub_code
from js_block_runner.normalizer.params import strip_function_param_types

logger = logging.getLogger(__name__)

# A type expression on one line: Foo, Foo.Bar<T, U>, string[], A | B, Promise<X>
TYPE = r"[A-Za-z_$][\w$.<>, \t\[\]|&]*"

INTERFACE_PATTERN = re.compile(
    rf"^[ \t]*(?:export\s+)?(?:declare\s+)?interface\s+{IDENT}[^{{;]*\{{",
    re.MULTILINE,
)
TYPE_ALIAS_PATTERN = re.compile(
    rf"^[ \t]*(?:export\s+)?(?:declare\s+)?type\s+{IDENT}\s*(?:<[^=;]*>)?\s*=",
    re.MULTILINE,
)
ENUM_PATTERN = re.compile(
    rf"^[ \t]*(?:export\s+)?(?:declare\s+)?(?:const\s+)?enum\s+{IDENT}\s*\{{",
    re.MULTILINE,
)

# ): Promise<T> {  /  ): T =>
RETURN_TYPE_PATTERN = re.compile(rf"\)\s*:\s*{TYPE}(?<=\S)\s*(?=\{{|=>)")

# const x: Map<K, V> = ... / let y: string;
VARIABLE_ANNOTATION_PATTERN = re.compile(
    rf"\b((?:const|let|var)\s+{IDENT})\s*:\s*{TYPE}(?<=\S)[ \t]*(?=[=;,)\n]|$)"
)

# Head of a class body: class Foo<T> extends Bar {
CLASS_HEAD_PATTERN = re.compile(rf"(?<![.\w$])class\b(?!\s*:)[^{{;]*\{{")

# Class fields: count: number = 0; / static name?: string;
CLASS_FIELD_PATTERN = re.compile(
    rf"^([ \t]*(?:static[ \t]+)?#?{IDENT})[ \t]*[?!]?[ \t]*:[ \t]*{TYPE}(?<=\S)[ \t]*(?=[=;\n]|$)",
    re.MULTILINE,
)

# x as Foo / y as const / z as unknown as Bar
AS_CAST_PATTERN = re.compile(rf"[ \t]+as[ \t]+(?:const\b|{TYPE}(?<=\S))(?=[ \t]*[;,)\]}}\n]|[ \t]*$)")

# foo<T>( / new Map<string, number>(
GENERIC_ARGUMENTS_PATTERN = re.compile(
    r"(?<=[\w$])<(?:[\w$., \t\[\]]|\|(?!\|)|&(?!&)|<[\w$., \t\[\]|&]*>)*>(?=\s*\()"
)

# value!. / value!; / call()![0]
NON_NULL_PATTERN = re.compile(r"(?<=[\w$)\]])!(?=\s*[.;,)\]\[])")

READONLY_PATTERN = re.compile(r"\breadonly\s+")
VISIBILITY_PATTERN = re.compile(r"^([ \t]*)(?:public|private|protected)\s+", re.MULTILINE)
ABSTRACT_PATTERN = re.compile(r"\babstract\s+")
DECLARE_PATTERN = re.compile(r"^[ \t]*declare\s+[^;{]+;[ \t]*\n?", re.MULTILINE)

TRAILING_WHITESPACE_PATTERN = re.compile(r"[ \t]+\n")
BLANK_RUN_PATTERN = re.compile(r"\n{3,}")


def _remove_blocks(code: str, pattern: re.Pattern, end_of: Callable[[str, int], int]) -> str:
    """Remove every statement whose head matches ``pattern``.

    ``end_of(masked, match_end)`` returns the index just past the statement.
    """
    source = MaskedSource(code)
    pieces = []
    cursor = 0
    for match in pattern.finditer(source.masked):
        if match.start() < cursor:
            continue
        end = end_of(source.masked, match.end())
        if end == -1:
            continue
        # Swallow the rest of the line, including the newline
        newline = re.match(r"[ \t]*;?[ \t]*\n?", source.masked[end:])
        pieces.append(code[cursor : match.start()])
        cursor = end + newline.end()
    pieces.append(code[cursor:])
    return "".join(pieces)


def _brace_block_end(masked: str, match_end: int) -> int:
    close_index = find_matching(masked, match_end - 1)
    return -1 if close_index == -1 else close_index + 1


def _type_alias_end(masked: str, match_end: int) -> int:
    """End of a type alias: a ``;`` or a newline at depth zero.

    A newline does not end the alias when the next line continues a union
    or intersection.
    """
    depth = 0
    i = match_end
    n = len(masked)
    while i < n:
        c = masked[i]
        if c in "([{<":
            depth += 1
        elif c in ")]}>":
            if not (c == ">" and masked[i - 1] == "="):
                depth -= 1
        elif depth <= 0 and c == ";":
            return i
        elif depth <= 0 and c == "\n":
            following = masked[i + 1 :].lstrip()
            if not following.startswith(("|", "&")) and masked[match_end:i].strip():
                return i
        i += 1
    return n


def remove_type_declarations(code: str) -> str:
    """Remove interface and type alias declarations."""
    code = _remove_blocks(code, INTERFACE_PATTERN, _brace_block_end)
    return _remove_blocks(code, TYPE_ALIAS_PATTERN, _type_alias_end)


def strip_return_types(code: str) -> str:
    """Remove return type annotations before ``{`` or ``=>``."""
    return sub_code(RETURN_TYPE_PATTERN, ") ", code)


def strip_variable_annotations(code: str) -> str:
    def _replace(match: re.Match) -> str:
        following = match.string[match.end() : match.end() + 1]
        return f"{match.group(1)} " if following == "=" else match.group(1)

    return sub_code(VARIABLE_ANNOTATION_PATTERN, _replace, code)


def strip_class_field_annotations(code: str) -> str:
    """Remove type annotations from fields declared directly in class bodies.

    Lines nested deeper than the class body (method bodies, object literals)
    are left alone.
    """
    masked = MaskedSource(code).masked
    edits = []
    for head in CLASS_HEAD_PATTERN.finditer(masked):
        open_index = head.end() - 1
        close_index = find_matching(masked, open_index)
        if close_index == -1:
            continue
        body = masked[open_index + 1 : close_index]
        for match in CLASS_FIELD_PATTERN.finditer(body):
            before = body[: match.start()]
            if before.count("{") != before.count("}") or before.count("(") != before.count(")"):
                continue
            following = body[match.end() : match.end() + 1]
            replacement = f"{match.group(1)} " if following == "=" else match.group(1)
            start = open_index + 1 + match.start()
            edits.append((start, open_index + 1 + match.end(), replacement))

    for start, end, replacement in sorted(edits, reverse=True):
        code = code[:start] + replacement + code[end:]
    return code


def strip_inline_types(code: str) -> str:
    """Strip casts, generic arguments, non-null assertions and modifiers."""
    code = strip_variable_annotations(code)
    code = sub_code(AS_CAST_PATTERN, "", code)
    code = sub_code(GENERIC_ARGUMENTS_PATTERN, "", code)
    code = sub_code(NON_NULL_PATTERN, "", code)
    code = sub_code(READONLY_PATTERN, "", code)
    code = sub_code(VISIBILITY_PATTERN, r"\1", code)
    code = sub_code(ABSTRACT_PATTERN, "", code)
    code = strip_class_field_annotations(code)
    code = sub_code(DECLARE_PATTERN, "", code)
    return _remove_blocks(code, ENUM_PATTERN, _brace_block_end)


def collapse_whitespace(code: str) -> str:
    code = sub_code(TRAILING_WHITESPACE_PATTERN, "\n", code)
    return sub_code(BLANK_RUN_PATTERN, "\n\n", code)


STAGES = [
    remove_type_declarations,
    strip_return_types,
    strip_function_param_types,
    strip_inline_types,
    collapse_whitespace,
]


def erase_types(code: str) -> str:
    """Run every type erasure stage in order.

    Args:
        code: Source with imports already removed

    Returns:
        Runtime JavaScript
    """
    for stage in STAGES:
        code = stage(code)
        logger.debug(f"After {stage.__name__}: {len(code)} chars")
    return code
