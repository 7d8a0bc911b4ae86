"""Run configuration: mock bindings, arguments and runner settings."""

import json
import logging
import tempfile
from dataclasses import dataclass, field
from pathlib import Path

from js_block_runner.models import MockBinding, RunConfig

logger = logging.getLogger(__name__)

ARTIFACT_DIR_NAME = "js-block-runner"


class ConfigError(Exception):
    """Error reading or validating a run configuration."""


@dataclass
class RunnerSettings:
    """Where artifacts go and how many are kept."""

    artifact_dir: Path = field(default_factory=lambda: Path(tempfile.gettempdir()) / ARTIFACT_DIR_NAME)
    max_files: int = 50
    max_age_seconds: float = 86400


def _binding_from_entry(key: str, entry) -> MockBinding:
    if entry is None or isinstance(entry, str):
        return MockBinding(key=key, expression=entry)
    if isinstance(entry, dict):
        expression = entry.get("expression")
        enabled = entry.get("enabled", True)
        if expression is not None and not isinstance(expression, str):
            raise ConfigError(f"Mock {key!r}: expression must be a string or null")
        if not isinstance(enabled, bool):
            raise ConfigError(f"Mock {key!r}: enabled must be true or false")
        return MockBinding(key=key, expression=expression, enabled=enabled)
    raise ConfigError(f"Mock {key!r}: expected a string, null or an object")


def parse_config(data: dict) -> RunConfig:
    """Build a RunConfig from decoded JSON.

    Args:
        data: {"mocks": {...}, "args": [...], "debug": bool}

    Returns:
        RunConfig

    Raises:
        ConfigError: If a field has the wrong shape
    """
    if not isinstance(data, dict):
        raise ConfigError("Run config must be a JSON object")

    mocks = data.get("mocks", {})
    if not isinstance(mocks, dict):
        raise ConfigError("'mocks' must be an object mapping keys to expressions")
    bindings = [_binding_from_entry(key, entry) for key, entry in mocks.items()]

    arguments = data.get("args", [])
    if not isinstance(arguments, list) or not all(isinstance(a, str) for a in arguments):
        raise ConfigError("'args' must be a list of strings")

    debug = data.get("debug", False)
    if not isinstance(debug, bool):
        raise ConfigError("'debug' must be true or false")

    return RunConfig(bindings=bindings, arguments=list(arguments), debug=debug)


def load_config(path: str | Path) -> RunConfig:
    """Load a run config file.

    Raises:
        ConfigError: If the file cannot be read or is not valid JSON
    """
    path = Path(path)
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e
    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in {path}: {e}") from e

    config = parse_config(data)
    logger.info(f"Loaded config from {path}: {len(config.bindings)} mocks, {len(config.arguments)} args")
    return config


def parse_mock_option(option: str) -> MockBinding:
    """Parse ``KEY=EXPR`` (or a bare ``KEY`` for undefined)."""
    key, sep, expression = option.partition("=")
    key = key.strip()
    if not key:
        raise ConfigError(f"Invalid --mock value: {option!r}")
    return MockBinding(key=key, expression=expression if sep else None)


def merge_config(
    base: RunConfig | None,
    mock_options: list[str] | None = None,
    arg_options: list[str] | None = None,
    debug: bool = False,
) -> RunConfig:
    """Apply command-line overrides on top of a file config.

    Command-line mocks replace file mocks with the same key; command-line
    arguments replace the file's argument list entirely.
    """
    config = base or RunConfig()
    bindings = {b.key: b for b in config.bindings}
    for option in mock_options or []:
        binding = parse_mock_option(option)
        bindings[binding.key] = binding

    arguments = list(arg_options) if arg_options else list(config.arguments)
    return RunConfig(
        bindings=list(bindings.values()),
        arguments=arguments,
        debug=debug or config.debug,
    )
