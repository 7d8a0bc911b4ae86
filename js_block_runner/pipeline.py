"""Main pipeline: capture a fragment, detect references, generate a harness."""

import logging
from dataclasses import dataclass

from tree_sitter import Node

from js_block_runner.analyzer import analyze, function_identity_from_text
from js_block_runner.harness import generate
from js_block_runner.models import (
    DetectionReport,
    FragmentOrigin,
    FunctionIdentity,
    GeneratedScript,
    RunConfig,
    SourceFragment,
)
from js_block_runner.normalizer import normalize
from js_block_runner.syntax import enclosing_function

logger = logging.getLogger(__name__)


@dataclass
class CapturedFragment:
    """A fragment plus what capture learned about it."""

    fragment: SourceFragment
    identity: FunctionIdentity | None = None
    scope: Node | None = None


def capture_fragment(
    source: str,
    offset: int | None = None,
    dialect: str = "typescript",
) -> CapturedFragment:
    """Capture the code to run.

    Without an offset the whole source is treated as a selection. With an
    offset, the enclosing function is used; if there is none, the whole
    document is used instead.

    Args:
        source: Selected text or whole document
        offset: Caret position (character offset) inside the document
        dialect: Grammar used to find the enclosing function

    Returns:
        CapturedFragment with origin, identity and (for functions) the scope node
    """
    if offset is None:
        fragment = SourceFragment(text=source, origin=FragmentOrigin.SELECTION)
        return CapturedFragment(fragment=fragment, identity=function_identity_from_text(source))

    found = enclosing_function(source, offset, dialect)
    if found is None:
        logger.info("No enclosing function; using the whole document")
        fragment = SourceFragment(text=source, origin=FragmentOrigin.DOCUMENT)
        return CapturedFragment(fragment=fragment, identity=function_identity_from_text(source))

    fragment = SourceFragment(text=found.text, origin=FragmentOrigin.ENCLOSING_FUNCTION)
    return CapturedFragment(fragment=fragment, identity=found.identity, scope=found.node)


def line_to_offset(source: str, line: int) -> int:
    """Convert a 1-based line number to the character offset of its first non-blank."""
    lines = source.split("\n")
    if line < 1 or line > len(lines):
        raise ValueError(f"Line {line} is outside the document (1-{len(lines)})")
    offset = sum(len(text) + 1 for text in lines[: line - 1])
    text = lines[line - 1]
    return offset + (len(text) - len(text.lstrip()))


def detect(captured: CapturedFragment, known_locals: tuple[str, ...] = ()) -> DetectionReport:
    """Run reference detection for a captured fragment."""
    params = captured.identity.parameters if captured.identity else ()
    references = analyze(
        captured.fragment.text,
        known_locals=(*known_locals, *params),
        scope=captured.scope,
    )
    return DetectionReport(
        fragment=captured.fragment,
        identity=captured.identity,
        references=references,
    )


def build_script(captured: CapturedFragment, config: RunConfig) -> GeneratedScript:
    """Normalize the fragment and generate its harness.

    Raises:
        InvalidMockKeyError: If an enabled mock key is malformed
    """
    normalized = normalize(captured.fragment.text)
    script = generate(
        normalized,
        config.enabled_bindings(),
        identity=captured.identity,
        arguments=config.arguments,
    )
    logger.info(f"Generated {len(script.text)} chars of harness ({script.shape.value})")
    return script
