"""Word lists shared by every detection strategy.

Keeping these in one place means the tree-based and text-based strategies
agree on what counts as a keyword, a built-in, or a mockable global.
"""

import re

IDENT = r"[A-Za-z_$][\w$]*"

IDENT_PATTERN = re.compile(rf"^{IDENT}$")
DOTTED_KEY_PATTERN = re.compile(rf"^{IDENT}(?:\.{IDENT})*$")

# Words that can precede "(" without being a call of an external function
KEYWORDS = frozenset(
    {
        "if",
        "for",
        "while",
        "switch",
        "catch",
        "function",
        "return",
        "typeof",
        "new",
        "await",
        "async",
        "class",
        "const",
        "let",
        "var",
        "try",
        "throw",
        "finally",
        "else",
        "do",
        "break",
        "continue",
        "import",
        "export",
        "from",
        "default",
        "yield",
        "delete",
        "void",
        "instanceof",
        "in",
        "of",
        "with",
        "debugger",
        "super",
        "this",
        "extends",
        "implements",
        "interface",
        "package",
        "private",
        "protected",
        "public",
        "static",
        "get",
        "set",
    }
)

LITERAL_WORDS = frozenset({"true", "false", "null", "undefined", "NaN", "Infinity"})

# TypeScript words that show up in annotations but never name a value
TYPE_WORDS = frozenset(
    {
        "type",
        "enum",
        "declare",
        "readonly",
        "abstract",
        "keyof",
        "infer",
        "is",
        "as",
        "satisfies",
        "namespace",
        "module",
        "string",
        "number",
        "boolean",
        "any",
        "unknown",
        "never",
        "object",
        "symbol",
        "bigint",
    }
)

# Lowercase globals that are never reported as free variables
LOWERCASE_BUILTINS = frozenset(
    {
        "console",
        "fetch",
        "require",
        "alert",
        "confirm",
        "prompt",
        "arguments",
        "globalThis",
        "exports",
        "process",
        "setTimeout",
        "setInterval",
        "clearTimeout",
        "clearInterval",
        "parseInt",
        "parseFloat",
        "isNaN",
        "isFinite",
        "encodeURIComponent",
        "decodeURIComponent",
        "encodeURI",
        "decodeURI",
        "eval",
        "atob",
        "btoa",
    }
)

# Calls offered for mocking even though they look like built-ins
MOCKABLE_GLOBALS = frozenset(
    {
        "fetch",
        "require",
        "alert",
        "confirm",
        "prompt",
        "open",
        "close",
        "print",
        "scroll",
        "scrollTo",
        "scrollBy",
        "focus",
        "blur",
        "getComputedStyle",
        "matchMedia",
        "requestAnimationFrame",
        "cancelAnimationFrame",
        "queueMicrotask",
        "structuredClone",
        "reportError",
    }
)

# Ubiquitous built-ins that are never worth mocking
DEFAULT_ALLOWLIST = frozenset(
    {
        # Number/String conversion
        "parseInt",
        "parseFloat",
        "Number",
        "String",
        "Boolean",
        # Date
        "Date",
        "Date.now",
        "Date.parse",
        # Constructors
        "Array",
        "Object",
        "Promise",
        "Error",
        "TypeError",
        "SyntaxError",
        "ReferenceError",
        "RangeError",
        "URIError",
        "EvalError",
        "Map",
        "Set",
        "WeakMap",
        "WeakSet",
        "RegExp",
        "Int8Array",
        "Uint8Array",
        "Int16Array",
        "Uint16Array",
        "Int32Array",
        "Uint32Array",
        "Float32Array",
        "Float64Array",
        "ArrayBuffer",
        "SharedArrayBuffer",
        "DataView",
        "URL",
        "URLSearchParams",
        # Timers and global functions
        "setTimeout",
        "setInterval",
        "clearTimeout",
        "clearInterval",
        "encodeURIComponent",
        "decodeURIComponent",
        "encodeURI",
        "decodeURI",
        "isNaN",
        "isFinite",
        "eval",
        "atob",
        "btoa",
        "Reflect",
        "Proxy",
        "Symbol",
    }
)

# Any key rooted at one of these is a built-in namespace member
BUILTIN_NAMESPACES = frozenset(
    {
        "console",
        "Math",
        "JSON",
        "Object",
        "Array",
        "Number",
        "String",
        "Promise",
        "Reflect",
        "Symbol",
        "Intl",
        "Atomics",
    }
)

GLOBAL_CONSTANTS = frozenset(
    {
        "NAN",
        "NULL",
        "TRUE",
        "FALSE",
        "UNDEFINED",
        "INFINITY",
        "JSON",
        "MATH",
        "DATE",
        "ARRAY",
        "OBJECT",
        "STRING",
        "NUMBER",
        "BOOLEAN",
        "MAP",
        "SET",
        "PROMISE",
        "PROXY",
        "REFLECT",
        "SYMBOL",
        "INT8ARRAY",
        "UINT8ARRAY",
        "INT16ARRAY",
        "UINT16ARRAY",
        "INT32ARRAY",
        "UINT32ARRAY",
        "FLOAT32ARRAY",
        "FLOAT64ARRAY",
        "ARRAYBUFFER",
        "SHAREDARRAYBUFFER",
        "DATAVIEW",
        "ERROR",
        "TYPEERROR",
        "SYNTAXERROR",
        "REFERENCEERROR",
        "RANGEERROR",
    }
)

BUILTIN_CLASSES = frozenset(
    {
        "Array",
        "Object",
        "String",
        "Number",
        "Boolean",
        "Function",
        "Date",
        "RegExp",
        "Error",
        "TypeError",
        "SyntaxError",
        "ReferenceError",
        "RangeError",
        "Map",
        "Set",
        "WeakMap",
        "WeakSet",
        "Promise",
        "Proxy",
        "Reflect",
        "Symbol",
        "Int8Array",
        "Uint8Array",
        "Int16Array",
        "Uint16Array",
        "Int32Array",
        "Uint32Array",
        "Float32Array",
        "Float64Array",
        "ArrayBuffer",
        "SharedArrayBuffer",
        "DataView",
        "Buffer",
        "JSON",
        "Math",
        "Intl",
        "Atomics",
        "WebAssembly",
        "URL",
        "URLSearchParams",
        "Headers",
        "Request",
        "Response",
        "FormData",
        "Blob",
        "File",
        "FileReader",
        "Event",
        "CustomEvent",
        "EventTarget",
        "Node",
        "Element",
        "Document",
        "Window",
        "Console",
        "Performance",
        "Navigator",
        "Location",
        "History",
        "NaN",
        "Infinity",
    }
)


# Words that cannot name a binding in strict-mode code
RESERVED_WORDS = frozenset(
    {
        "break",
        "case",
        "catch",
        "class",
        "const",
        "continue",
        "debugger",
        "default",
        "delete",
        "do",
        "else",
        "enum",
        "export",
        "extends",
        "false",
        "finally",
        "for",
        "function",
        "if",
        "implements",
        "import",
        "in",
        "instanceof",
        "interface",
        "let",
        "new",
        "null",
        "package",
        "private",
        "protected",
        "public",
        "return",
        "static",
        "super",
        "switch",
        "this",
        "throw",
        "true",
        "try",
        "typeof",
        "var",
        "void",
        "while",
        "with",
        "yield",
        "await",
        "arguments",
        "eval",
    }
)


def root_of(key: str) -> str:
    """Return the leading path segment of a dotted key."""
    return key.split(".", 1)[0]


def is_allowlisted(key: str) -> bool:
    """Check whether a key names a built-in that should never be offered."""
    return key in DEFAULT_ALLOWLIST or root_of(key) in BUILTIN_NAMESPACES
