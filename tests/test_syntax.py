"""Tests for tree-sitter parsing and enclosing function lookup."""

from pathlib import Path

import pytest

from js_block_runner.models import FunctionIdentity
from js_block_runner.syntax import (
    declared_names,
    dialect_for_path,
    enclosing_function,
    get_parser,
    iter_nodes,
    parse,
    qualified_name,
)


@pytest.fixture
def fixtures_path():
    return Path(__file__).parent / "fixtures" / "sample_js"


class TestEnclosingFunction:
    def given_source(self, fixtures_path, name):
        self.source = (fixtures_path / name).read_text()
        self.dialect = dialect_for_path(name)

    def when_located_at(self, snippet):
        offset = self.source.index(snippet)
        self.found = enclosing_function(self.source, offset, self.dialect)

    def then_identity_is(self, name, parameters):
        assert self.found is not None
        assert self.found.identity == FunctionIdentity(name=name, parameters=parameters)

    def then_text_starts_with(self, prefix):
        assert self.found.text.startswith(prefix)

    def then_nothing_is_found(self):
        assert self.found is None

    def test_finds_class_method(self, fixtures_path):
        """A caret inside a method yields the method."""
        self.given_source(fixtures_path, "user_service.ts")
        self.when_located_at("this.logger.info")
        self.then_identity_is("load", ("id", "options"))
        self.then_text_starts_with("async load(")

    def test_finds_function_declaration(self, fixtures_path):
        self.given_source(fixtures_path, "user_service.ts")
        self.when_located_at("return upper ?")
        self.then_identity_is("formatName", ("user", "upper"))
        self.then_text_starts_with("function formatName(")

    def test_arrow_is_widened_to_its_declaration(self, fixtures_path):
        """An arrow bound by const is captured with its declaration."""
        self.given_source(fixtures_path, "user_service.ts")
        self.when_located_at("await task()")
        self.then_identity_is("retry", ("task",))
        self.then_text_starts_with("const retry = async")

    def test_outside_any_function(self, fixtures_path):
        self.given_source(fixtures_path, "math.js")
        self.when_located_at("console.log(total)")
        self.then_nothing_is_found()

    @pytest.mark.parametrize(
        "value",
        ["function (a, b) { return a + b; }", "(a, b) => { return a + b; }"],
    )
    def test_object_property_function_is_widened_to_its_pair(self, value):
        """The captured text keeps the property name so it can be declared."""
        self.source = f"const calculator = {{\n  add: {value},\n}};\n"
        self.dialect = "javascript"
        self.when_located_at("a + b")
        self.then_identity_is("add", ("a", "b"))
        self.then_text_starts_with(f"add: {value}")

    def test_quoted_property_key_is_anonymous(self):
        self.source = "const handlers = {\n  'on-save': (doc) => persist(doc),\n};\n"
        self.dialect = "javascript"
        self.when_located_at("persist(doc)")
        self.then_identity_is(None, ("doc",))
        self.then_text_starts_with("(doc) =>")

    def test_outermost_named_function_wins(self):
        """Inner callbacks do not shadow the named function around them."""
        self.source = "function outer(list) {\n  return list.map((item) => item * 2);\n}\n"
        self.dialect = "javascript"
        self.when_located_at("item * 2")
        self.then_identity_is("outer", ("list",))


class TestTreeHelpers:
    def test_qualified_name_of_member_chain(self):
        tree = parse("this.a.b(); x[0].y();", "javascript")
        callees = [c.child_by_field_name("function") for c in iter_nodes(tree.root_node, "call_expression")]

        names = [qualified_name(c) for c in callees]

        assert names == ["this.a.b", None]

    def test_declared_names_cover_bindings(self):
        tree = parse(
            "import { a } from 'm';\n"
            "const { b, c: d } = o;\n"
            "function f(e, [g]) {}\n"
            "try {} catch (err) {}\n",
            "javascript",
        )

        names = declared_names(tree.root_node)

        assert {"a", "b", "d", "f", "e", "g", "err"} <= names
        assert "c" not in names

    def test_unknown_dialect_is_rejected(self):
        with pytest.raises(ValueError):
            get_parser("coffeescript")


@pytest.mark.parametrize(
    "path, dialect",
    [
        ("a.tsx", "tsx"),
        ("a.js", "javascript"),
        ("a.mjs", "javascript"),
        ("a.ts", "typescript"),
        ("-", "typescript"),
    ],
)
def test_dialect_for_path(path, dialect):
    assert dialect_for_path(path) == dialect
