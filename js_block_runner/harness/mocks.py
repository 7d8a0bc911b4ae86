"""Classify mock expressions and render their installation code."""

import json
import logging
import re
from dataclasses import dataclass

from js_block_runner.analyzer.vocabulary import DOTTED_KEY_PATTERN, RESERVED_WORDS
from js_block_runner.lexer import find_matching, mask
from js_block_runner.models import MockBinding, MockKind

logger = logging.getLogger(__name__)

SELF_PREFIX = "this."

VALUE_WORDS = frozenset({"null", "undefined", "true", "false", "NaN", "Infinity", "-Infinity"})
NUMBER_PATTERN = re.compile(
    r"^[+-]?(?:0[xob][0-9a-f_]+n?|(?:\d[\d_]*\.?[\d_]*|\.\d[\d_]*)(?:e[+-]?\d+)?n?)$", re.IGNORECASE
)
# Masked literals: the quotes survive, the interior is blank
STRING_LITERAL_PATTERN = re.compile(r"""^(['"`])[^'"`]*\1$""")
REGEX_LITERAL_PATTERN = re.compile(r"^/.+/[a-z]*$")
CLASS_LITERAL_PATTERN = re.compile(r"^class\b")


class InvalidMockKeyError(ValueError):
    """Raised when a mock key is not a dotted identifier path."""

    def __init__(self, key: str):
        super().__init__(f"Invalid mock key: {key!r} (expected a dotted identifier path)")
        self.key = key


@dataclass
class PreparedMock:
    """A binding with its classification and generated constant name."""

    binding: MockBinding
    kind: MockKind
    constant: str
    expression: str

    @property
    def key(self) -> str:
        return self.binding.key

    @property
    def is_self(self) -> bool:
        return self.key.startswith(SELF_PREFIX)

    @property
    def root(self) -> str:
        return self.key.split(".", 1)[0]

    @property
    def path(self) -> list[str]:
        """Path below the root (or below ``this``)."""
        return self.key.split(".")[1:]


def validate_key(key: str) -> None:
    """Check that a key is ``ident(.ident)*`` and binds no reserved word."""
    if not DOTTED_KEY_PATTERN.match(key):
        raise InvalidMockKeyError(key)
    segments = key.split(".")
    if segments[0] == "this":
        if len(segments) == 1:
            raise InvalidMockKeyError(key)
        return
    if segments[0] in RESERVED_WORDS:
        raise InvalidMockKeyError(key)


def clean_expression(expression: str | None) -> str:
    """Trim whitespace and trailing semicolons; absent or empty means undefined."""
    if expression is None:
        return "undefined"
    cleaned = re.sub(r"[;\s]+$", "", expression.strip())
    return cleaned or "undefined"


def is_value_literal(expression: str) -> bool:
    """Check for a literal that can never be called.

    Numbers, strings, templates, regexes, object and array literals and the
    words ``null``, ``undefined``, ``true``, ``false``, ``NaN`` and
    ``Infinity`` qualify. Anything else may evaluate to a function.
    """
    if expression in VALUE_WORDS or NUMBER_PATTERN.match(expression):
        return True
    masked = mask(expression)
    if STRING_LITERAL_PATTERN.match(masked) or REGEX_LITERAL_PATTERN.match(expression):
        return True
    if masked[:1] in ("{", "["):
        return find_matching(masked, 0) == len(masked) - 1
    return False


def classify(key: str, expression: str) -> MockKind:
    """Decide how a mock is materialized.

    Non-callable literals are installed as plain values. Everything else is
    wrapped in a spy, which installs the value unchanged at runtime when it
    turns out not to be a function. Class literals and capitalized roots get
    a spy that also supports ``new``.
    """
    if is_value_literal(expression):
        return MockKind.VALUE
    root = key.removeprefix(SELF_PREFIX).split(".", 1)[0]
    if CLASS_LITERAL_PATTERN.match(expression) or root[:1].isupper():
        return MockKind.CONSTRUCTOR
    return MockKind.CALLABLE


def constant_name(index: int, key: str) -> str:
    safe = re.sub(r"[^A-Za-z0-9_$]", "_", key)
    return f"__mock_{index}_{safe}"


def prepare_mocks(bindings: list[MockBinding]) -> list[PreparedMock]:
    """Validate, deduplicate (last wins) and classify the enabled bindings.

    Args:
        bindings: Bindings from the run configuration

    Returns:
        Prepared mocks sorted by key

    Raises:
        InvalidMockKeyError: If any enabled key is malformed
    """
    by_key: dict[str, MockBinding] = {}
    for binding in bindings:
        if not binding.enabled:
            continue
        validate_key(binding.key)
        by_key[binding.key] = binding

    prepared = []
    for index, key in enumerate(sorted(by_key)):
        binding = by_key[key]
        expression = clean_expression(binding.expression)
        kind = classify(key, expression)
        prepared.append(
            PreparedMock(
                binding=binding,
                kind=kind,
                constant=constant_name(index, key),
                expression=expression,
            )
        )
        logger.debug(f"Mock {key}: {kind.value}")

    logger.info(f"Prepared {len(prepared)} mocks")
    return prepared


def render_definitions(mocks: list[PreparedMock]) -> str:
    """One constant per mock holding the value of the user's expression."""
    return "\n".join(f"const {m.constant} = __guard(() => ({m.expression}));" for m in mocks)


def materialize(mock: PreparedMock) -> str:
    """The JS expression installed at the mock's key."""
    name = json.dumps(mock.key)
    if mock.kind == MockKind.CALLABLE:
        return f"__spy({name}, {mock.constant})"
    if mock.kind == MockKind.CONSTRUCTOR:
        return f"__constructorSpy({name}, {mock.constant})"
    return mock.constant


def render_installation(mocks: list[PreparedMock]) -> str:
    """Bind roots lexically, then set nested paths.

    A bare key declares its root directly. A root that only appears in
    dotted keys gets a namespace object inheriting from the same-named
    global, so unmocked members still resolve.
    """
    lines = []
    bare = {m.root: m for m in mocks if not m.is_self and not m.path}

    declared: set[str] = set()
    for mock in mocks:
        if mock.is_self or mock.root in declared:
            continue
        declared.add(mock.root)
        if mock.root in bare:
            lines.append(f"const {mock.root} = {materialize(bare[mock.root])};")
        else:
            lines.append(f"const {mock.root} = __namespace({json.dumps(mock.root)});")

    for mock in mocks:
        if not mock.path:
            continue
        target = "__ctx.self" if mock.is_self else mock.root
        lines.append(f"__guard(() => __setPath({target}, {json.dumps(mock.path)}, {materialize(mock)}));")

    return "\n".join(lines)
