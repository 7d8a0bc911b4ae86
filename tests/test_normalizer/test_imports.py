"""Tests for import/export stripping."""

from js_block_runner.normalizer.imports import strip_imports_and_exports


class TestStripImportsAndExports:
    def given_code(self, code):
        self.code = code

    def when_stripped(self):
        self.result, self.specifiers = strip_imports_and_exports(self.code)

    def then_result_is(self, expected):
        assert self.result == expected

    def then_specifiers_are(self, expected):
        assert self.specifiers == expected

    def test_strips_inline_import_and_records_specifier(self):
        """An import sharing a line with code is removed up to the code."""
        self.given_code('import { x } from "./m"; return x + 1;')
        self.when_stripped()
        self.then_result_is("return x + 1;")
        self.then_specifiers_are(["./m"])

    def test_strips_every_module_form(self):
        self.given_code(
            'import React from "react";\n'
            'import type { User } from "./types";\n'
            'const fs = require("fs");\n'
            'export { helper } from "./helpers";\n'
            "export const answer = 42;\n"
            "export default function main() {}\n"
            "export { answer };\n"
        )
        self.when_stripped()
        self.then_result_is("const answer = 42;\nfunction main() {}\n")
        self.then_specifiers_are(["react", "fs", "./helpers"])

    def test_type_only_imports_are_not_recorded(self):
        self.given_code("import { type A, type B } from './types';\nconst a = 1;")
        self.when_stripped()
        self.then_result_is("const a = 1;")
        self.then_specifiers_are([])

    def test_multiline_named_import(self):
        self.given_code("import {\n  a,\n  b,\n} from 'lib';\nuse(a, b);")
        self.when_stripped()
        self.then_result_is("use(a, b);")
        self.then_specifiers_are(["lib"])

    def test_specifiers_are_deduplicated_in_first_seen_order(self):
        self.given_code('import b from "b";\nimport a from "a";\nimport { c } from "b";\n')
        self.when_stripped()
        self.then_specifiers_are(["b", "a"])

    def test_import_text_in_strings_is_kept(self):
        self.given_code("log(\"import x from 'y'\");")
        self.when_stripped()
        self.then_result_is("log(\"import x from 'y'\");")
        self.then_specifiers_are([])
