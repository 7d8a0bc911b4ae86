"""Integration tests that generate harnesses and run them under node."""

import json
import shutil
import subprocess
import sys
from pathlib import Path

import pytest

pytestmark = pytest.mark.skipif(shutil.which("node") is None, reason="node is not installed")


@pytest.fixture
def fixtures_path():
    return Path(__file__).parent / "fixtures" / "sample_js"


class TestEndToEnd:
    def given_fragment(self, tmp_path, code, name="fragment.js"):
        self.tmp_path = tmp_path
        self.source = tmp_path / name
        self.source.write_text(code)
        self.options = []

    def given_file(self, tmp_path, path):
        self.tmp_path = tmp_path
        self.source = path
        self.options = []

    def given_options(self, *options):
        self.options.extend(str(o) for o in options)

    def when_run(self):
        self.result = subprocess.run(
            [
                sys.executable,
                "-m",
                "js_block_runner",
                "run",
                str(self.source),
                "--artifact-dir",
                str(self.tmp_path / "artifacts"),
                *self.options,
            ],
            capture_output=True,
            text=True,
        )

    def then_succeeds_with_result(self, value):
        assert self.result.returncode == 0, self.result.stderr
        assert "Execution completed in" in self.result.stdout
        assert f"RESULT: {json.dumps(value, separators=(',', ':'))}" in self.result.stdout

    def then_fails_with(self, text):
        assert self.result.returncode != 0
        assert "Execution failed after" in self.result.stderr
        assert text in self.result.stderr

    def then_stdout_contains(self, text):
        assert text in self.result.stdout

    def then_stderr_contains(self, text):
        assert text in self.result.stderr

    def test_named_function_with_arguments(self, tmp_path):
        """A selected function is called with the given arguments."""
        self.given_fragment(tmp_path, "function add(a, b) { return a + b; }")
        self.given_options("--arg", "2", "--arg", "3")
        self.when_run()
        self.then_succeeds_with_result(5)

    def test_async_function_with_mocked_dependency(self, tmp_path):
        """A mocked async call is awaited and recorded."""
        self.given_fragment(tmp_path, "async function getUser(id) { return await api.get(id); }")
        self.given_options("--mock", 'api.get=async (id) => ({id, name: "x"})', "--arg", "1")
        self.when_run()
        self.then_succeeds_with_result({"id": 1, "name": "x"})
        self.then_stdout_contains("Mock calls:")
        self.then_stdout_contains("api.get: called 1 time(s)")
        self.then_stdout_contains('returned: {"id":1,"name":"x"}')

    def test_unmocked_self_reference_fails(self, tmp_path):
        """The bound self record starts empty, so this.logger is undefined."""
        self.given_fragment(tmp_path, 'this.logger.error("x")')
        self.when_run()
        self.then_fails_with("TypeError")

    def test_stripped_import_is_announced_and_mockable(self, tmp_path):
        self.given_fragment(tmp_path, 'import { x } from "./m"; return x + 1;')
        self.given_options("--mock", "x=41")
        self.when_run()
        self.then_stderr_contains("  - ./m")
        self.then_succeeds_with_result(42)

    def test_typescript_function_at_caret(self, tmp_path, fixtures_path):
        self.given_file(tmp_path, fixtures_path / "user_service.ts")
        self.given_options("--line", 25, "--arg", "{ first: 'ada', last: 'lovelace' }", "--arg", "true")
        self.when_run()
        self.then_succeeds_with_result("ADA LOVELACE")

    @pytest.mark.parametrize(
        "value",
        ["function (a, b) {\n    return a + b;\n  }", "(a, b) => {\n    return a + b;\n  }"],
    )
    def test_object_property_function_at_caret(self, tmp_path, value):
        """A function stored under an object key is declared under that key and called."""
        self.given_fragment(tmp_path, f"const calculator = {{\n  add: {value},\n}};\n")
        self.given_options("--line", 3, "--arg", 2, "--arg", 3)
        self.when_run()
        self.then_succeeds_with_result(5)

    def test_class_method_with_self_mocks(self, tmp_path, fixtures_path):
        """A method runs bound to the self record holding its mocked members."""
        self.given_file(tmp_path, fixtures_path / "user_service.ts")
        self.given_options(
            "--line",
            18,
            "--mock",
            "this.cache={ get: () => undefined }",
            "--mock",
            "this.logger.info=() => {}",
            "--mock",
            'api.get=async (id) => ({id, name: "x"})',
            "--arg",
            "7",
        )
        self.when_run()
        self.then_succeeds_with_result({"id": 7, "name": "x"})
        self.then_stdout_contains("this.logger.info: called 1 time(s)")

    def test_mocked_console_does_not_hide_results(self, tmp_path):
        self.given_fragment(tmp_path, "console.log('hidden');\nreturn 1;")
        self.given_options("--mock", "console={ log: () => {} }")
        self.when_run()
        self.then_succeeds_with_result(1)
        assert "hidden" not in self.result.stdout

    def test_spy_records_every_call_in_order(self, tmp_path):
        """Nested mock paths are reachable and each call is one record."""
        self.given_fragment(tmp_path, "save(1);\nsave(2);\nsave(3);\nreturn settings.db.port;")
        self.given_options("--mock", "save=(n) => n * 10", "--mock", "settings.db.port=5432")
        self.when_run()
        self.then_succeeds_with_result(5432)
        self.then_stdout_contains("save: called 3 time(s)")
        output = self.result.stdout
        first, second, third = (output.index(f"args: [{n}]") for n in (1, 2, 3))
        assert first < second < third
        self.then_stdout_contains("returned: 30")

    @pytest.mark.parametrize(
        "mock, call, result",
        [
            ("helperFn=((x) => x * 2)", "helperFn(4)", 8),
            ("pick=Math.max", "pick(1, 4)", 4),
        ],
    )
    def test_function_valued_expressions_are_spied(self, tmp_path, mock, call, result):
        """Any expression that evaluates to a function is recorded when called."""
        self.given_fragment(tmp_path, f"return {call};")
        self.given_options("--mock", mock)
        self.when_run()
        self.then_succeeds_with_result(result)
        self.then_stdout_contains(f"{mock.split('=')[0]}: called 1 time(s)")

    def test_computed_non_function_is_installed_as_is(self, tmp_path):
        self.given_fragment(tmp_path, "return limits.max;")
        self.given_options("--mock", "limits=Object.freeze({ max: 3 })")
        self.when_run()
        self.then_succeeds_with_result(3)
        assert "Mock calls:" not in self.result.stdout

    def test_throwing_mock_expression_reaches_failure_handler(self, tmp_path):
        self.given_fragment(tmp_path, "return cfg.debug;")
        self.given_options("--mock", "cfg=JSON.parse('{')")
        self.when_run()
        self.then_fails_with("SyntaxError")

    def test_path_under_non_object_mock_reaches_failure_handler(self, tmp_path):
        """Spies created before the failure are still reported."""
        self.given_fragment(tmp_path, "return api.get();")
        self.given_options("--mock", "api=null", "--mock", "api.get=() => 1")
        self.when_run()
        self.then_fails_with("Cannot install mock path get on a non-object")
        self.then_stdout_contains("api.get: called 0 time(s)")

    def test_constructor_mock_supports_new(self, tmp_path):
        self.given_fragment(tmp_path, "const c = new Client('u');\nreturn c.url;")
        self.given_options("--mock", "Client=class { constructor(url) { this.url = url; } }")
        self.when_run()
        self.then_succeeds_with_result("u")
        self.then_stdout_contains("Client: called 1 time(s)")
