"""JavaScript text blocks assembled into the generated harness."""

import json

HEADER = """\
// Generated by js-block-runner
// Shape: {shape}
'use strict';
"""

# Runtime globals are captured before any mock can shadow them
CLOSURE_START = """\
(function harness(__ctx) {
const __rt = {
  console: globalThis.console,
  JSON: globalThis.JSON,
  Date: globalThis.Date,
  Object: globalThis.Object,
  Reflect: globalThis.Reflect,
  Promise: globalThis.Promise,
  String: globalThis.String,
  process: globalThis.process,
};

// The first failure while building mocks is rethrown when execution starts
function __guard(build) {
  try {
    return build();
  } catch (err) {
    if (!('setupError' in __ctx)) {
      __ctx.setupError = err;
    }
    return undefined;
  }
}
"""

# Mock roots are declared inside this block, after the mock values above
# have been evaluated against the real globals.
SCOPE_START = "{"
SCOPE_END = "}"

CLOSURE_END = "})({ self: {}, spies: [] });\n"

HELPERS = """\
function __isObjectLike(value) {
  return value !== null && (typeof value === 'object' || typeof value === 'function');
}

function __setPath(root, path, value) {
  if (!__isObjectLike(root)) {
    throw new TypeError('Cannot install mock path ' + path.join('.') + ' on a non-object');
  }
  let current = root;
  for (const segment of path.slice(0, -1)) {
    if (!__rt.Object.prototype.hasOwnProperty.call(current, segment)) {
      const inherited = current[segment];
      current[segment] = __isObjectLike(inherited) ? __rt.Object.create(inherited) : {};
    }
    current = current[segment];
  }
  current[path[path.length - 1]] = value;
}

function __namespace(name) {
  const inherited = globalThis[name];
  return __isObjectLike(inherited) ? __rt.Object.create(inherited) : {};
}

function __settle(entry, result) {
  if (result !== null && (typeof result === 'object' || typeof result === 'function') &&
      typeof result.then === 'function') {
    return result.then(
      (value) => {
        entry.result = value;
        return value;
      },
      (err) => {
        entry.error = err;
        throw err;
      }
    );
  }
  entry.result = result;
  return result;
}

function __register(spy, name, calls) {
  spy.calls = calls;
  spy.mockName = name;
  __ctx.spies.push(spy);
  return spy;
}

function __isConstructor(impl) {
  try {
    __rt.Reflect.construct(__rt.String, [], impl);
    return true;
  } catch (err) {
    return false;
  }
}

function __spy(name, impl) {
  if (typeof impl !== 'function') {
    return impl;
  }
  const calls = [];
  const spy = function (...args) {
    const entry = { args, timestamp: __rt.Date.now() };
    calls.push(entry);
    let result;
    try {
      result = impl.apply(this, args);
    } catch (err) {
      entry.error = err;
      throw err;
    }
    return __settle(entry, result);
  };
  return __register(spy, name, calls);
}

function __constructorSpy(name, impl) {
  if (typeof impl !== 'function') {
    return impl;
  }
  const constructible = __isConstructor(impl);
  const calls = [];
  const spy = function (...args) {
    const entry = { args, timestamp: __rt.Date.now() };
    calls.push(entry);
    try {
      if (!new.target) {
        return __settle(entry, impl.apply(this, args));
      }
      if (constructible) {
        const instance = __rt.Reflect.construct(impl, args, new.target);
        entry.result = instance;
        return instance;
      }
      const result = impl.apply(this, args);
      entry.result = result;
      return __isObjectLike(result) ? result : this;
    } catch (err) {
      entry.error = err;
      throw err;
    }
  };
  if (impl.prototype) {
    spy.prototype = impl.prototype;
  }
  // Static members resolve through the implementation
  __rt.Object.setPrototypeOf(spy, impl);
  return __register(spy, name, calls);
}

function __serialize(value) {
  if (value === undefined) {
    return 'undefined';
  }
  try {
    const text = __rt.JSON.stringify(value);
    return text === undefined ? 'undefined' : text;
  } catch (err) {
    return '[non-serializable]';
  }
}

function __describeError(err) {
  if (err && err.message !== undefined) {
    return (err.name ? err.name + ': ' : '') + err.message;
  }
  return __rt.String(err);
}

function __reportMocks() {
  if (__ctx.spies.length === 0) {
    return;
  }
  __rt.console.log('');
  __rt.console.log('Mock calls:');
  for (const spy of __ctx.spies) {
    __rt.console.log('  ' + spy.mockName + ': called ' + spy.calls.length + ' time(s)');
    spy.calls.forEach((call, i) => {
      __rt.console.log('    [' + (i + 1) + '] args: ' + __serialize(call.args));
      if ('error' in call) {
        __rt.console.log('        threw: ' + __describeError(call.error));
      } else if ('result' in call) {
        __rt.console.log('        returned: ' + __serialize(call.result));
      } else {
        __rt.console.log('        pending');
      }
    });
  }
}
"""

EXECUTION = """\
const __startTime = __rt.Date.now();
__rt.Promise.resolve()
  .then(() => {{
    if ('setupError' in __ctx) {{
      throw __ctx.setupError;
    }}
{body}
  }})
  .then((result) => {{
    const elapsed = __rt.Date.now() - __startTime;
    __rt.console.log('Execution completed in ' + elapsed + 'ms');
    __rt.console.log('RESULT: ' + __serialize(result));
  }})
  .catch((err) => {{
    const elapsed = __rt.Date.now() - __startTime;
    __rt.console.error('Execution failed after ' + elapsed + 'ms');
    __rt.console.error(err && err.stack ? err.stack : __rt.String(err));
    __rt.process.exitCode = 1;
  }})
  .finally(() => __reportMocks());
"""


def section(title: str) -> str:
    return f"// --- {title} ---"


def import_warning(specifiers: tuple[str, ...] | list[str]) -> str:
    """Runtime notice listing the module specifiers that were stripped."""
    if not specifiers:
        return ""
    lines = [
        "__rt.console.warn("
        + json.dumps("Note: the following imports were stripped (mock them if needed):")
        + ");"
    ]
    for specifier in specifiers:
        lines.append(f"__rt.console.warn({json.dumps('  - ' + specifier)});")
    return "\n".join(lines)
