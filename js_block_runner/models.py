"""Data models shared by the analyzer, normalizer, harness and runner."""

import json
from dataclasses import asdict, dataclass, field
from enum import Enum
from pathlib import Path


class FragmentOrigin(str, Enum):
    """Where a fragment's text came from."""

    SELECTION = "selection"
    ENCLOSING_FUNCTION = "enclosing_function"
    DOCUMENT = "document"


class ReferenceKind(str, Enum):
    """How an external reference was detected."""

    CALL = "call"
    SELF = "self"
    CONSTANT = "constant"
    FREE_VARIABLE = "free_variable"


class MockKind(str, Enum):
    """How a mock expression is materialized in the harness."""

    VALUE = "value"
    CALLABLE = "callable"
    CONSTRUCTOR = "constructor"


class ExecutionShape(str, Enum):
    """The wrapper used to invoke the fragment inside the harness."""

    BLOCK = "block"
    ASYNC_BLOCK = "async_block"
    BOUND_BLOCK = "bound_block"
    BOUND_ASYNC_BLOCK = "bound_async_block"
    ASYNC_BODY_CALL = "async_body_call"
    BOUND_ASYNC_BODY_CALL = "bound_async_body_call"
    NAMED_CALL = "named_call"
    ANONYMOUS_CALL = "anonymous_call"
    BOUND_CALL = "bound_call"


@dataclass(frozen=True)
class SourceFragment:
    """The code under analysis, captured once."""

    text: str
    origin: FragmentOrigin = FragmentOrigin.SELECTION


@dataclass(frozen=True)
class FunctionIdentity:
    """Name and parameter names of a fragment that is a function."""

    name: str | None
    parameters: tuple[str, ...] = ()


@dataclass(frozen=True)
class ExternalReference:
    """A dependency the fragment does not define locally."""

    key: str  # e.g. "api.get", "this.logger.error", "CONFIG"
    kind: ReferenceKind

    @property
    def root(self) -> str:
        return self.key.split(".", 1)[0]


@dataclass(frozen=True)
class MockBinding:
    """A user-supplied substitute for an external reference.

    An expression of None binds the key to ``undefined``.
    """

    key: str
    expression: str | None = None
    enabled: bool = True


@dataclass(frozen=True)
class NormalizedSource:
    """Runtime JavaScript plus the module specifiers that were stripped."""

    code: str
    stripped_specifiers: tuple[str, ...] = ()


@dataclass(frozen=True)
class ScriptFlags:
    """Booleans that decide the execution shape."""

    is_bare_block: bool
    uses_self_binding: bool
    uses_async_context: bool


@dataclass(frozen=True)
class GeneratedScript:
    """A complete harness ready to be written and executed."""

    text: str
    flags: ScriptFlags
    shape: ExecutionShape
    stripped_specifiers: tuple[str, ...] = ()

    @property
    def uses_self_binding(self) -> bool:
        return self.flags.uses_self_binding

    @property
    def uses_async_context(self) -> bool:
        return self.flags.uses_async_context

    @property
    def is_bare_block(self) -> bool:
        return self.flags.is_bare_block


@dataclass
class RunConfig:
    """What the configuration surface hands to the generator and runner."""

    bindings: list[MockBinding] = field(default_factory=list)
    arguments: list[str] = field(default_factory=list)
    debug: bool = False

    def enabled_bindings(self) -> list[MockBinding]:
        return [b for b in self.bindings if b.enabled]


@dataclass
class RunResult:
    """Outcome of launching a generated script."""

    artifact: Path
    exit_code: int
    command: list[str]


@dataclass
class DetectionReport:
    """Everything the detect command reports about a fragment."""

    fragment: SourceFragment
    identity: FunctionIdentity | None
    references: list[ExternalReference]

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "origin": self.fragment.origin.value,
            "function": asdict(self.identity) if self.identity else None,
            "references": [
                {"key": r.key, "kind": r.kind.value} for r in self.references
            ],
        }

    def to_json(self, indent: int = 2) -> str:
        """Serialize to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)
