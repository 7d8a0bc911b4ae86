"""Command-line interface for js-block-runner."""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from js_block_runner.config import (
    ConfigError,
    RunnerSettings,
    load_config,
    merge_config,
)
from js_block_runner.harness import InvalidMockKeyError
from js_block_runner.models import RunConfig
from js_block_runner.pipeline import (
    CapturedFragment,
    build_script,
    capture_fragment,
    detect,
    line_to_offset,
)
from js_block_runner.runner import ArtifactStore, RunnerError, run_script
from js_block_runner.syntax import DIALECTS, dialect_for_path

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False):
    """Configure logging to stderr."""
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
        force=True,
    )


def _add_source_arguments(parser: argparse.ArgumentParser):
    parser.add_argument(
        "file",
        help="JavaScript/TypeScript file, or - to read stdin",
    )
    location = parser.add_mutually_exclusive_group()
    location.add_argument(
        "--offset",
        type=int,
        help="Caret character offset; the enclosing function is used",
    )
    location.add_argument(
        "--line",
        type=int,
        help="Caret line (1-based); the enclosing function is used",
    )
    parser.add_argument(
        "--dialect",
        choices=DIALECTS,
        help="Grammar for locating functions (default: from file extension)",
    )


def _add_config_arguments(parser: argparse.ArgumentParser):
    parser.add_argument(
        "--config",
        "-c",
        help="JSON run config with mocks, args and debug",
    )
    parser.add_argument(
        "--mock",
        "-m",
        action="append",
        default=[],
        metavar="KEY=EXPR",
        help="Mock a key with a JS expression (KEY alone binds undefined); repeatable",
    )
    parser.add_argument(
        "--arg",
        "-a",
        action="append",
        default=[],
        metavar="EXPR",
        help="Argument for the function call, in parameter order; repeatable",
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        prog="js-block-runner",
        description="Run JavaScript/TypeScript fragments with mocked dependencies",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Log pipeline progress to stderr",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # detect subcommand
    detect_parser = subparsers.add_parser(
        "detect",
        help="List the external references a fragment depends on",
    )
    _add_source_arguments(detect_parser)
    detect_parser.add_argument(
        "--local",
        action="append",
        default=[],
        metavar="NAME",
        help="Name known to be bound in scope; repeatable",
    )

    # generate subcommand
    generate_parser = subparsers.add_parser(
        "generate",
        help="Print or write the harness script without running it",
    )
    _add_source_arguments(generate_parser)
    _add_config_arguments(generate_parser)
    generate_parser.add_argument(
        "--output",
        "-o",
        help="Write the script here instead of stdout",
    )

    # run subcommand
    run_parser = subparsers.add_parser(
        "run",
        help="Generate the harness and run it with node",
    )
    _add_source_arguments(run_parser)
    _add_config_arguments(run_parser)
    run_parser.add_argument(
        "--debug",
        action="store_true",
        help="Start node paused with the inspector on port 9229",
    )
    defaults = RunnerSettings()
    run_parser.add_argument(
        "--artifact-dir",
        default=None,
        help=f"Directory for generated scripts (default: {defaults.artifact_dir})",
    )
    run_parser.add_argument(
        "--keep",
        type=int,
        default=defaults.max_files,
        help=f"Maximum number of artifacts kept (default: {defaults.max_files})",
    )
    run_parser.add_argument(
        "--max-age",
        type=float,
        default=defaults.max_age_seconds,
        help=f"Delete artifacts older than this many seconds (default: {defaults.max_age_seconds:g})",
    )

    return parser


def parse_args(args: list[str]) -> argparse.Namespace:
    """Parse command-line arguments."""
    return create_parser().parse_args(args)


def read_source(file: str) -> str:
    """Read a source file, or stdin for ``-``."""
    if file == "-":
        return sys.stdin.read()
    return Path(file).read_text(encoding="utf-8")


def capture_from_args(parsed: argparse.Namespace) -> CapturedFragment:
    source = read_source(parsed.file)
    dialect = parsed.dialect or dialect_for_path(parsed.file)
    offset = parsed.offset
    if parsed.line is not None:
        offset = line_to_offset(source, parsed.line)
    return capture_fragment(source, offset=offset, dialect=dialect)


def config_from_args(parsed: argparse.Namespace) -> RunConfig:
    base = load_config(parsed.config) if parsed.config else None
    return merge_config(
        base,
        mock_options=parsed.mock,
        arg_options=parsed.arg,
        debug=getattr(parsed, "debug", False),
    )


async def run_detect(parsed: argparse.Namespace) -> int:
    """Run the detect command."""
    captured = capture_from_args(parsed)
    report = detect(captured, known_locals=tuple(parsed.local))
    print(report.to_json())
    return 0


async def run_generate(parsed: argparse.Namespace) -> int:
    """Run the generate command."""
    captured = capture_from_args(parsed)
    script = build_script(captured, config_from_args(parsed))
    if parsed.output:
        Path(parsed.output).write_text(script.text, encoding="utf-8")
        print(f"Harness written to: {parsed.output}", file=sys.stderr)
    else:
        print(script.text)
    return 0


async def run_run(parsed: argparse.Namespace) -> int:
    """Run the run command.

    Returns:
        node's exit code
    """
    captured = capture_from_args(parsed)
    config = config_from_args(parsed)
    script = build_script(captured, config)

    settings = RunnerSettings(max_files=parsed.keep, max_age_seconds=parsed.max_age)
    if parsed.artifact_dir:
        settings.artifact_dir = Path(parsed.artifact_dir)
    store = ArtifactStore.from_settings(settings)
    artifact = store.write(script.text)
    logger.info(f"Running {artifact} ({script.shape.value})")

    result = await run_script(artifact, debug=config.debug)
    return result.exit_code


COMMANDS = {
    "detect": run_detect,
    "generate": run_generate,
    "run": run_run,
}


async def run_cli(args: list[str]) -> int:
    """Run the CLI with the given arguments.

    Args:
        args: Command-line arguments (without program name)

    Returns:
        Exit code (0 for success, non-zero for errors)
    """
    try:
        parsed = parse_args(args)
    except SystemExit as e:
        return e.code if e.code else 1

    setup_logging(parsed.verbose)

    if parsed.command is None:
        create_parser().print_help(sys.stderr)
        return 1

    try:
        return await COMMANDS[parsed.command](parsed)
    except (ConfigError, InvalidMockKeyError, RunnerError, OSError, ValueError) as e:
        logger.error(f"{parsed.command} failed: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 1


def main():
    """Entry point for the CLI."""
    exit_code = asyncio.run(run_cli(sys.argv[1:]))
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
