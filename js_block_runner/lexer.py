"""Lexical helpers for JavaScript/TypeScript fragments.

Every textual stage of the project works on a *masked* copy of the source:
the interiors of string, template and regex literals and whole comments are
replaced with spaces (newlines are kept), so pattern matching never fires
inside a literal. The masked text has the same length as the original, which
lets callers match against the mask and read or rewrite the original at the
same offsets.
"""

import bisect
import logging
import re
from collections.abc import Callable

logger = logging.getLogger(__name__)

# Tokens after which a "/" starts a regex literal rather than a division
REGEX_PRECEDING_CHARS = frozenset("(,=:[!&|?{};+-*%<>~^")
REGEX_PRECEDING_WORDS = frozenset(
    {
        "return",
        "typeof",
        "case",
        "do",
        "else",
        "in",
        "of",
        "new",
        "delete",
        "void",
        "throw",
        "yield",
        "await",
        "instanceof",
    }
)

OPENERS = {"(": ")", "[": "]", "{": "}"}


class _Scanner:
    """Collects the spans of a source text that belong to literals or comments."""

    def __init__(self, text: str):
        self.text = text
        self.spans: list[tuple[int, int]] = []

    def scan(self) -> list[tuple[int, int]]:
        self._scan_code(0, stop_at_brace=False)
        return self.spans

    def _scan_code(self, i: int, stop_at_brace: bool) -> int:
        text = self.text
        n = len(text)
        depth = 0
        prev = ""
        while i < n:
            ch = text[i]
            nxt = text[i + 1] if i + 1 < n else ""

            if ch == "/" and nxt == "/":
                end = text.find("\n", i)
                end = n if end == -1 else end
                self.spans.append((i, end))
                i = end
                continue
            if ch == "/" and nxt == "*":
                end = text.find("*/", i + 2)
                end = n if end == -1 else end + 2
                self.spans.append((i, end))
                i = end
                continue
            if ch in "'\"":
                end = self._string_end(i)
                self.spans.append((i + 1, max(i + 1, end - 1)))
                i = end
                prev = "a"
                continue
            if ch == "`":
                i = self._scan_template(i)
                prev = "a"
                continue
            if ch == "/" and self._regex_allowed(prev):
                end = self._regex_end(i)
                if end is not None:
                    self.spans.append((i + 1, end - 1))
                    i = end
                    prev = "a"
                    continue

            if ch == "{":
                depth += 1
            elif ch == "}":
                if stop_at_brace and depth == 0:
                    return i + 1
                depth -= 1

            if ch.isalnum() or ch in "_$":
                start = i
                while i < n and (text[i].isalnum() or text[i] in "_$"):
                    i += 1
                prev = text[start:i]
                continue
            if not ch.isspace():
                prev = ch
            i += 1
        return n

    def _string_end(self, i: int) -> int:
        text = self.text
        quote = text[i]
        j = i + 1
        while j < len(text):
            c = text[j]
            if c == "\\":
                j += 2
                continue
            if c == quote:
                return j + 1
            if c == "\n":
                # Unterminated string literal
                return j
            j += 1
        return len(text)

    def _scan_template(self, i: int) -> int:
        text = self.text
        j = i + 1
        static_start = j
        while j < len(text):
            c = text[j]
            if c == "\\":
                j += 2
                continue
            if c == "`":
                self.spans.append((static_start, j))
                return j + 1
            if c == "$" and text[j + 1 : j + 2] == "{":
                self.spans.append((static_start, j))
                j = self._scan_code(j + 2, stop_at_brace=True)
                static_start = j
                continue
            j += 1
        self.spans.append((static_start, len(text)))
        return len(text)

    def _regex_allowed(self, prev: str) -> bool:
        if not prev:
            return True
        if prev in REGEX_PRECEDING_WORDS:
            return True
        return len(prev) == 1 and prev in REGEX_PRECEDING_CHARS

    def _regex_end(self, i: int) -> int | None:
        text = self.text
        j = i + 1
        in_class = False
        while j < len(text):
            c = text[j]
            if c == "\n":
                return None
            if c == "\\":
                j += 2
                continue
            if in_class:
                if c == "]":
                    in_class = False
            elif c == "[":
                in_class = True
            elif c == "/":
                j += 1
                while j < len(text) and (text[j].isalnum() or text[j] == "_"):
                    j += 1
                return j
            j += 1
        return None


class MaskedSource:
    """A source text paired with its literal-masked twin.

    Usage:
        source = MaskedSource(code)
        for match in PATTERN.finditer(source.masked):
            original = source.text[match.start():match.end()]
    """

    def __init__(self, text: str):
        self.text = text
        self.spans = _Scanner(text).scan()
        self._starts = [start for start, _ in self.spans]
        self.masked = self._build_mask()

    def _build_mask(self) -> str:
        chars = list(self.text)
        for start, end in self.spans:
            for k in range(start, end):
                if chars[k] != "\n":
                    chars[k] = " "
        return "".join(chars)

    def in_literal(self, pos: int) -> bool:
        """Check whether an offset falls inside a masked literal or comment."""
        idx = bisect.bisect_right(self._starts, pos) - 1
        if idx < 0:
            return False
        start, end = self.spans[idx]
        return start <= pos < end


def mask(text: str) -> str:
    """Return the text with literal interiors and comments blanked out."""
    return MaskedSource(text).masked


def sub_code(
    pattern: re.Pattern,
    repl: str | Callable[[re.Match], str],
    text: str,
) -> str:
    """Apply a regex substitution only to matches that start outside literals.

    Matching runs on the original text so replacements can reuse literal
    contents (e.g. default values), but a match is skipped when its first
    character lies inside a string, template, regex or comment.
    """
    source = MaskedSource(text)

    def _replace(match: re.Match) -> str:
        if source.in_literal(match.start()):
            return match.group(0)
        if callable(repl):
            return repl(match)
        return match.expand(repl)

    return pattern.sub(_replace, text)


def find_matching(masked: str, open_index: int) -> int:
    """Find the index of the delimiter closing the one at ``open_index``.

    Only the delimiter kind at ``open_index`` and its nested kin are tracked,
    so the text must already be masked. Returns -1 when unbalanced.
    """
    opener = masked[open_index]
    closer = OPENERS[opener]
    depth = 0
    for i in range(open_index, len(masked)):
        c = masked[i]
        if c == opener:
            depth += 1
        elif c == closer:
            depth -= 1
            if depth == 0:
                return i
    return -1


def split_top_level(text: str, separator: str = ",") -> list[str]:
    """Split text at separators that are not nested in brackets or literals.

    Angle brackets count as nesting so generic types such as
    ``Map<string, number>`` stay in one piece.
    """
    masked = mask(text)
    parts = []
    depth = 0
    angle = 0
    start = 0
    for i, c in enumerate(masked):
        if c in "([{":
            depth += 1
        elif c in ")]}":
            depth -= 1
        elif c == "<" and i > 0 and (masked[i - 1].isalnum() or masked[i - 1] in "_$"):
            angle += 1
        elif c == ">" and angle > 0 and masked[i - 1] != "=":
            angle -= 1
        elif c == separator and depth == 0 and angle == 0:
            parts.append(text[start:i])
            start = i + 1
    parts.append(text[start:])
    return parts
