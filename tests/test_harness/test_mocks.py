"""Tests for mock classification and installation rendering."""

import pytest

from js_block_runner.harness.mocks import (
    InvalidMockKeyError,
    classify,
    clean_expression,
    prepare_mocks,
    render_definitions,
    render_installation,
    validate_key,
)
from js_block_runner.models import MockBinding, MockKind


class TestValidateKey:
    @pytest.mark.parametrize("key", ["api", "api.get", "this.logger.error", "$store.state", "_cache"])
    def test_accepts_dotted_paths(self, key):
        validate_key(key)

    @pytest.mark.parametrize("key", ["", "this", "api..get", "1abc", "api.get()", "class.x", "a-b"])
    def test_rejects_malformed_keys(self, key):
        with pytest.raises(InvalidMockKeyError) as excinfo:
            validate_key(key)

        assert excinfo.value.key == key


class TestClassify:
    @pytest.mark.parametrize(
        "key, expression, expected",
        [
            ("api.get", "async (id) => ({ id })", MockKind.CALLABLE),
            ("save", "function (x) { return x; }", MockKind.CALLABLE),
            ("format", "v => String(v)", MockKind.CALLABLE),
            ("helperFn", "((x) => x * 2)", MockKind.CALLABLE),
            ("pick", "Math.max", MockKind.CALLABLE),
            ("fetch", "jest.fn()", MockKind.CALLABLE),
            ("sum", "(a + b)", MockKind.CALLABLE),
            ("Client", "class { constructor(url) { this.url = url; } }", MockKind.CONSTRUCTOR),
            ("Client", "RealClient", MockKind.CONSTRUCTOR),
            ("Client.create", "() => ({})", MockKind.CONSTRUCTOR),
            ("this.Service", "function () {}", MockKind.CONSTRUCTOR),
            ("this.logger.error", "(msg) => msg", MockKind.CALLABLE),
        ],
    )
    def test_anything_but_a_plain_literal_is_spied(self, key, expression, expected):
        """Expressions that may evaluate to a function get a spy."""
        assert classify(key, expression) == expected

    @pytest.mark.parametrize(
        "expression",
        [
            "{ url: 'x' }",
            "[1, 2]",
            "42",
            "-1.5e3",
            "0xff",
            "10n",
            "'text'",
            '"with () => inside"',
            "`hello ${name}`",
            "/ab+c/gi",
            "null",
            "undefined",
            "true",
            "NaN",
        ],
    )
    def test_non_callable_literals_are_values(self, expression):
        assert classify("CONFIG", expression) == MockKind.VALUE
        assert classify("config.value", expression) == MockKind.VALUE

    def test_literal_followed_by_more_code_is_not_a_value(self):
        assert classify("pick", "{ a: 1 }.a") == MockKind.CALLABLE
        assert classify("pick", "'a' + b") == MockKind.CALLABLE


class TestCleanExpression:
    def test_missing_expression_is_undefined(self):
        assert clean_expression(None) == "undefined"
        assert clean_expression("  ") == "undefined"

    def test_trailing_semicolons_are_dropped(self):
        assert clean_expression("  () => 1;;  ") == "() => 1"


class TestPrepareMocks:
    def given_bindings(self, bindings):
        self.bindings = bindings

    def when_prepared(self):
        self.mocks = prepare_mocks(self.bindings)

    def then_keys_are(self, expected):
        assert [m.key for m in self.mocks] == expected

    def test_last_duplicate_wins_and_disabled_are_skipped(self):
        """Disabled bindings are ignored even when their key is malformed."""
        self.given_bindings(
            [
                MockBinding(key="api.get", expression="1"),
                MockBinding(key="not a key", expression="2", enabled=False),
                MockBinding(key="api.get", expression="() => 2"),
                MockBinding(key="CONFIG"),
            ]
        )
        self.when_prepared()
        self.then_keys_are(["CONFIG", "api.get"])
        assert self.mocks[0].expression == "undefined"
        assert self.mocks[1].expression == "() => 2"
        assert self.mocks[1].kind == MockKind.CALLABLE
        assert [m.constant for m in self.mocks] == ["__mock_0_CONFIG", "__mock_1_api_get"]

    def test_enabled_malformed_key_raises(self):
        self.given_bindings([MockBinding(key="api.", expression="1")])
        with pytest.raises(InvalidMockKeyError):
            self.when_prepared()


class TestRenderInstallation:
    def given_mocks(self, *pairs):
        self.mocks = prepare_mocks([MockBinding(key=k, expression=e) for k, e in pairs])

    def when_rendered(self):
        self.lines = render_installation(self.mocks).split("\n")

    def test_dotted_key_gets_namespace_root(self):
        self.given_mocks(("api.get", "async (id) => id"))
        self.when_rendered()
        assert self.lines == [
            'const api = __namespace("api");',
            '__guard(() => __setPath(api, ["get"], __spy("api.get", __mock_0_api_get)));',
        ]

    def test_bare_key_declares_root_directly(self):
        self.given_mocks(("fetch", "async () => ({ ok: true })"), ("TIMEOUT", "10"))
        self.when_rendered()
        assert self.lines == [
            "const TIMEOUT = __mock_0_TIMEOUT;",
            'const fetch = __spy("fetch", __mock_1_fetch);',
        ]

    def test_self_keys_install_on_bound_record(self):
        self.given_mocks(("this.logger.error", "() => {}"))
        self.when_rendered()
        assert self.lines == [
            '__guard(() => __setPath(__ctx.self, ["logger", "error"], __spy("this.logger.error", __mock_0_this_logger_error)));',
        ]

    def test_bare_and_dotted_keys_share_a_root(self):
        self.given_mocks(("store", "{}"), ("store.save", "(x) => x"))
        self.when_rendered()
        assert self.lines == [
            "const store = __mock_0_store;",
            '__guard(() => __setPath(store, ["save"], __spy("store.save", __mock_1_store_save)));',
        ]

    def test_capitalized_root_gets_constructor_spy(self):
        self.given_mocks(("Client", "class {}"), ("Parser", "createParser()"))
        self.when_rendered()
        assert self.lines == [
            'const Client = __constructorSpy("Client", __mock_0_Client);',
            'const Parser = __constructorSpy("Parser", __mock_1_Parser);',
        ]

    def test_guarded_path_installation(self):
        """A failing path assignment is recorded instead of thrown."""
        self.given_mocks(("api", "null"), ("api.get", "() => 1"))
        self.when_rendered()
        assert self.lines == [
            "const api = __mock_0_api;",
            '__guard(() => __setPath(api, ["get"], __spy("api.get", __mock_1_api_get)));',
        ]


def test_render_definitions_evaluates_each_expression_once():
    mocks = prepare_mocks([MockBinding(key="a", expression="1;"), MockBinding(key="b")])

    assert render_definitions(mocks) == (
        "const __mock_0_a = __guard(() => (1));\nconst __mock_1_b = __guard(() => (undefined));"
    )
