"""Tests for CLI interface."""

import io
import json
import subprocess
import sys
from pathlib import Path

import pytest

from js_block_runner import runner
from js_block_runner.cli import run_cli


@pytest.fixture
def fixtures_path():
    return Path(__file__).parent / "fixtures"


class TestCLI:
    def given_args(self, *args):
        self.args = [str(a) for a in args]

    async def when_cli_is_run(self, capsys):
        self.exit_code = await run_cli(self.args)
        self.captured = capsys.readouterr()

    def then_exit_code_is(self, code):
        assert self.exit_code == code

    def then_stdout_is_report(self):
        self.report = json.loads(self.captured.out)

    def then_stderr_contains(self, text):
        assert text in self.captured.err

    @pytest.mark.asyncio
    async def test_detect_outputs_json_report(self, fixtures_path, capsys):
        """detect prints the reference report for the function at the caret line."""
        self.given_args("detect", fixtures_path / "sample_js" / "user_service.ts", "--line", 18)
        await self.when_cli_is_run(capsys)
        self.then_exit_code_is(0)
        self.then_stdout_is_report()
        assert self.report["origin"] == "enclosing_function"
        assert self.report["function"] == {"name": "load", "parameters": ["id", "options"]}
        assert {"key": "api.get", "kind": "call"} in self.report["references"]

    @pytest.mark.asyncio
    async def test_detect_with_extra_locals(self, tmp_path, capsys):
        source = tmp_path / "snippet.js"
        source.write_text("return store.save(record);")
        self.given_args("detect", source, "--local", "store")
        await self.when_cli_is_run(capsys)
        self.then_exit_code_is(0)
        self.then_stdout_is_report()
        assert self.report["references"] == [{"key": "record", "kind": "free_variable"}]

    @pytest.mark.asyncio
    async def test_detect_reads_stdin(self, monkeypatch, capsys):
        monkeypatch.setattr("sys.stdin", io.StringIO("return MAX_SIZE + cache.size();"))
        self.given_args("detect", "-")
        await self.when_cli_is_run(capsys)
        self.then_exit_code_is(0)
        self.then_stdout_is_report()
        assert self.report["origin"] == "selection"
        assert [r["key"] for r in self.report["references"]] == ["MAX_SIZE", "cache.size"]

    @pytest.mark.asyncio
    async def test_generate_prints_harness(self, fixtures_path, capsys):
        self.given_args(
            "generate",
            fixtures_path / "sample_js" / "math.js",
            "--line",
            2,
            "--arg",
            "2",
            "--arg",
            "3",
        )
        await self.when_cli_is_run(capsys)
        self.then_exit_code_is(0)
        assert "// Shape: named_call" in self.captured.out
        assert "return add(2, 3);" in self.captured.out

    @pytest.mark.asyncio
    async def test_generate_writes_output_file(self, fixtures_path, tmp_path, capsys):
        output = tmp_path / "harness.cjs"
        self.given_args(
            "generate",
            fixtures_path / "sample_js" / "math.js",
            "--config",
            fixtures_path / "run_config.json",
            "-m",
            "CONFIG={ debug: true }",
            "-o",
            output,
        )
        await self.when_cli_is_run(capsys)
        self.then_exit_code_is(0)
        self.then_stderr_contains(f"Harness written to: {output}")
        text = output.read_text()
        assert "const __mock_0_CONFIG = __guard(() => ({ debug: true }));" in text
        assert "this.logger.info" not in text

    @pytest.mark.asyncio
    async def test_invalid_mock_key_fails(self, fixtures_path, capsys):
        self.given_args("generate", fixtures_path / "sample_js" / "math.js", "-m", "bad key=1")
        await self.when_cli_is_run(capsys)
        self.then_exit_code_is(1)
        self.then_stderr_contains("Invalid mock key")

    @pytest.mark.asyncio
    async def test_missing_source_fails(self, tmp_path, capsys):
        self.given_args("detect", tmp_path / "absent.js")
        await self.when_cli_is_run(capsys)
        self.then_exit_code_is(1)
        self.then_stderr_contains("Error:")

    @pytest.mark.asyncio
    async def test_line_outside_document_fails(self, fixtures_path, capsys):
        self.given_args("detect", fixtures_path / "sample_js" / "math.js", "--line", 999)
        await self.when_cli_is_run(capsys)
        self.then_exit_code_is(1)
        self.then_stderr_contains("outside the document")

    @pytest.mark.asyncio
    async def test_run_without_node_fails(self, fixtures_path, tmp_path, monkeypatch, capsys):
        monkeypatch.setattr(runner.shutil, "which", lambda name: None)
        monkeypatch.setattr(runner, "candidate_paths", lambda home=None: [])
        self.given_args(
            "run",
            fixtures_path / "sample_js" / "math.js",
            "--artifact-dir",
            tmp_path,
        )
        await self.when_cli_is_run(capsys)
        self.then_exit_code_is(1)
        self.then_stderr_contains("Node.js not found")
        assert len(list(tmp_path.glob("runner-*.cjs"))) == 1

    @pytest.mark.asyncio
    async def test_no_command_prints_help(self, capsys):
        self.given_args()
        await self.when_cli_is_run(capsys)
        self.then_exit_code_is(1)
        self.then_stderr_contains("usage")

    @pytest.mark.asyncio
    async def test_offset_and_line_are_exclusive(self, fixtures_path, capsys):
        self.given_args("detect", fixtures_path / "sample_js" / "math.js", "--line", 1, "--offset", 0)
        await self.when_cli_is_run(capsys)
        self.then_exit_code_is(2)


def test_module_entry_point_runs_detect():
    """python -m js_block_runner imports the whole package and runs a command."""
    result = subprocess.run(
        [sys.executable, "-m", "js_block_runner", "detect", "-"],
        input="function total(items) { return api.sum(items); }",
        capture_output=True,
        text=True,
    )

    assert result.returncode == 0, result.stderr
    report = json.loads(result.stdout)
    assert report["function"] == {"name": "total", "parameters": ["items"]}
    assert report["references"] == [{"key": "api.sum", "kind": "call"}]
