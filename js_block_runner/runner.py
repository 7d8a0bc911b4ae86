"""Write generated scripts to disk and run them with node."""

import asyncio
import logging
import os
import re
import shutil
import sys
import tempfile
import time
from pathlib import Path

from js_block_runner.config import RunnerSettings
from js_block_runner.models import RunResult

logger = logging.getLogger(__name__)

INSPECTOR_PORT = 9229

ARTIFACT_PREFIX = "runner-"
ARTIFACT_SUFFIX = ".cjs"

DEBUG_INSTRUCTIONS = f"""\
DEBUG MODE: node is paused waiting for a debugger on port {INSPECTOR_PORT}.
  IDE: attach to a Node.js process at localhost:{INSPECTOR_PORT}, then resume.
  Chrome: open chrome://inspect, click 'inspect' under Remote Target, then press F8.
Tip: add 'debugger;' to your code where you want to pause.
"""


class RunnerError(Exception):
    """Error locating node, writing an artifact or launching a run."""

    def __init__(self, message: str, phase: str = "launch"):
        super().__init__(message)
        self.phase = phase


class ArtifactStore:
    """A directory of generated scripts with bounded retention.

    Every write first evicts artifacts older than ``max_age_seconds`` and
    then the oldest ones beyond ``max_files``.
    """

    def __init__(
        self,
        directory: Path | None = None,
        max_files: int = 50,
        max_age_seconds: float = 86400,
    ):
        self.directory = Path(directory) if directory else RunnerSettings().artifact_dir
        self.max_files = max_files
        self.max_age_seconds = max_age_seconds

    @classmethod
    def from_settings(cls, settings: RunnerSettings) -> "ArtifactStore":
        return cls(settings.artifact_dir, settings.max_files, settings.max_age_seconds)

    def artifacts(self) -> list[Path]:
        """Existing artifacts, oldest first."""
        if not self.directory.is_dir():
            return []
        files = self.directory.glob(f"{ARTIFACT_PREFIX}*{ARTIFACT_SUFFIX}")
        return sorted(files, key=lambda p: (p.stat().st_mtime, p.name))

    def _delete(self, path: Path) -> bool:
        try:
            path.unlink()
            return True
        except FileNotFoundError:
            return False
        except OSError as e:
            logger.warning(f"Could not evict {path}: {e}")
            return False

    def evict(self, now: float | None = None) -> int:
        """Delete expired artifacts, then trim to leave room for one more.

        Returns:
            Number of files deleted
        """
        now = time.time() if now is None else now
        deleted = 0
        remaining = []
        for path in self.artifacts():
            if now - path.stat().st_mtime > self.max_age_seconds:
                deleted += self._delete(path)
            else:
                remaining.append(path)

        excess = len(remaining) - max(self.max_files - 1, 0)
        for path in remaining[: max(excess, 0)]:
            deleted += self._delete(path)

        if deleted:
            logger.info(f"Evicted {deleted} old artifacts from {self.directory}")
        return deleted

    def write(self, text: str) -> Path:
        """Write a script under a collision-free name.

        Raises:
            RunnerError: If the directory or file cannot be written
        """
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            self.evict()
            fd, name = tempfile.mkstemp(
                prefix=f"{ARTIFACT_PREFIX}{time.time_ns()}-",
                suffix=ARTIFACT_SUFFIX,
                dir=self.directory,
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(text)
        except OSError as e:
            raise RunnerError(f"Cannot write artifact in {self.directory}: {e}", phase="write") from e

        logger.info(f"Wrote artifact {name}")
        return Path(name)


def _version_key(path: Path) -> tuple[int, ...]:
    return tuple(int(n) for n in re.findall(r"\d+", path.name)) or (0,)


def _versioned_bins(root: Path, relative: str) -> list[Path]:
    """Node binaries under a version manager directory, newest first."""
    if not root.is_dir():
        return []
    versions = sorted((d for d in root.iterdir() if d.is_dir()), key=_version_key, reverse=True)
    return [v / relative for v in versions]


def candidate_paths(home: Path | None = None) -> list[Path]:
    """Common node install locations, checked after PATH."""
    home = Path.home() if home is None else home
    candidates = [
        Path("/opt/homebrew/bin/node"),
        Path("/usr/local/bin/node"),
        Path("/usr/bin/node"),
        Path("/usr/local/nodejs/bin/node"),
    ]

    nvm_root = home / ".nvm" / "versions" / "node"
    default_alias = home / ".nvm" / "alias" / "default"
    if default_alias.is_file():
        version = default_alias.read_text(encoding="utf-8").strip()
        if version:
            candidates.append(nvm_root / version / "bin" / "node")
    candidates.extend(_versioned_bins(nvm_root, "bin/node"))
    candidates.extend(_versioned_bins(home / ".fnm" / "node-versions", "installation/bin/node"))
    candidates.append(home / ".volta" / "bin" / "node")
    candidates.extend(_versioned_bins(home / ".asdf" / "installs" / "nodejs", "bin/node"))
    candidates.append(home / "n" / "bin" / "node")
    candidates.extend(_versioned_bins(Path("/usr/local/n/versions/node"), "bin/node"))

    candidates.append(Path("C:/Program Files/nodejs/node.exe"))
    candidates.append(Path("C:/Program Files (x86)/nodejs/node.exe"))
    return candidates


def find_node(home: Path | None = None) -> str:
    """Locate a node executable.

    Returns:
        Absolute path to node

    Raises:
        RunnerError: If node is not on PATH or in any common location
    """
    for name in ("node", "node.exe"):
        found = shutil.which(name)
        if found:
            logger.info(f"Found node on PATH: {found}")
            return found

    for path in candidate_paths(home):
        if path.is_file() and os.access(path, os.X_OK):
            logger.info(f"Found node at {path}")
            return str(path)

    raise RunnerError(
        "Node.js not found. Install it or make sure 'node' is on your PATH.",
        phase="locate",
    )


def build_command(node: str, artifact: Path, debug: bool = False) -> list[str]:
    command = [node]
    if debug:
        command.append(f"--inspect-brk={INSPECTOR_PORT}")
    command.append(str(artifact))
    return command


async def _pump(stream: asyncio.StreamReader, sink) -> None:
    while True:
        line = await stream.readline()
        if not line:
            break
        sink.write(line.decode("utf-8", errors="replace"))
        sink.flush()


async def run_script(
    artifact: Path,
    debug: bool = False,
    node: str | None = None,
    stdout=None,
    stderr=None,
) -> RunResult:
    """Run an artifact with node, streaming its output.

    Args:
        artifact: Path of the generated script
        debug: Start paused with the inspector on port 9229
        node: Node executable (located when omitted)
        stdout: Sink for the child's stdout (default sys.stdout)
        stderr: Sink for the child's stderr and debug notes (default sys.stderr)

    Returns:
        RunResult with node's exit code

    Raises:
        RunnerError: If node cannot be found or started
    """
    stdout = stdout or sys.stdout
    stderr = stderr or sys.stderr
    node = node or find_node()
    command = build_command(node, artifact, debug)

    if debug:
        stderr.write(DEBUG_INSTRUCTIONS)
        stderr.flush()

    logger.info(f"Launching: {' '.join(command)}")
    try:
        process = await asyncio.create_subprocess_exec(
            *command,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as e:
        raise RunnerError(f"Cannot start {node}: {e}", phase="launch") from e

    await asyncio.gather(_pump(process.stdout, stdout), _pump(process.stderr, stderr))
    exit_code = await process.wait()
    logger.info(f"node exited with {exit_code}")
    return RunResult(artifact=artifact, exit_code=exit_code, command=command)
