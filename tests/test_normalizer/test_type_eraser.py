"""Tests for TypeScript erasure stages."""

from js_block_runner.normalizer.type_eraser import (
    erase_types,
    remove_type_declarations,
    strip_inline_types,
    strip_return_types,
)


class TestRemoveTypeDeclarations:
    def test_removes_interfaces_and_aliases(self):
        code = (
            "interface A {\n  x: number;\n  nested: { y: string };\n}\n"
            "type B = string | number;\n"
            "const v = 1;\n"
        )

        assert remove_type_declarations(code) == "const v = 1;\n"

    def test_multiline_union_alias(self):
        code = "type Color =\n  | 'red'\n  | 'blue';\nconst c = 'red';"

        assert remove_type_declarations(code) == "const c = 'red';"


class TestStripReturnTypes:
    def test_before_body(self):
        code = "function f(a): Promise<User> {\n  return a;\n}"

        assert strip_return_types(code) == "function f(a) {\n  return a;\n}"

    def test_before_arrow(self):
        assert strip_return_types("const g = (a): number => a;") == "const g = (a) => a;"


class TestStripInlineTypes:
    def test_variable_annotation(self):
        assert strip_inline_types("const cache: Map<string, User> = new Map();") == "const cache = new Map();"

    def test_as_casts(self):
        assert strip_inline_types("const n = value as number;") == "const n = value;"
        assert strip_inline_types("const k = ['a'] as const;") == "const k = ['a'];"

    def test_generic_call_arguments(self):
        assert strip_inline_types("const m = new Map<string, number>();") == "const m = new Map();"

    def test_non_null_assertion(self):
        assert strip_inline_types("user!.name") == "user.name"
        assert strip_inline_types("a !== b") == "a !== b"

    def test_modifiers(self):
        assert strip_inline_types("  private readonly name = 1;") == "  name = 1;"

    def test_class_field_annotations(self):
        """Fields lose their types; nested object literals keep their keys."""
        code = (
            "class Counter {\n"
            "  private readonly step: number = 1;\n"
            "  static label?: string;\n"
            "  count!: number;\n"
            "  handlers = { onSave: save };\n"
            "  tick() {\n"
            "    const options = {\n"
            "      retries: limit\n"
            "    };\n"
            "  }\n"
            "}"
        )

        assert strip_inline_types(code) == (
            "class Counter {\n"
            "  step = 1;\n"
            "  static label;\n"
            "  count;\n"
            "  handlers = { onSave: save };\n"
            "  tick() {\n"
            "    const options = {\n"
            "      retries: limit\n"
            "    };\n"
            "  }\n"
            "}"
        )

    def test_object_literal_outside_class_is_unchanged(self):
        code = "const config = {\n  url: baseUrl\n};"

        assert strip_inline_types(code) == code

    def test_enum_declaration(self):
        assert strip_inline_types("enum Color { Red, Green }\nconst c = 1;") == "const c = 1;"

    def test_text_in_strings_is_kept(self):
        code = 'const s = "x as number";'

        assert strip_inline_types(code) == code


class TestEraseTypes:
    def test_full_function(self):
        code = (
            "interface Options { retries: number }\n"
            "\n\n\n"
            "async function load(id: string, opts: Options = { retries: 1 }): Promise<User> {\n"
            "  const result: User = await api.get<User>(id)!;\n"
            "  return result as User;\n"
            "}\n"
        )

        assert erase_types(code) == (
            "\n\n"
            "async function load(id, opts = { retries: 1 }) {\n"
            "  const result = await api.get(id);\n"
            "  return result;\n"
            "}\n"
        )

    def test_plain_javascript_is_unchanged(self):
        code = "function add(a, b) {\n  return a + b;\n}\n"

        assert erase_types(code) == code
