"""
Restricted Script Interpreter

A small "node-like" dialect for ``#!/usr/bin/env node`` scripts. The
script body is Python, run without import machinery and with a
whitelisted set of builtins. The body is checked before it is compiled:
imports, underscore attributes, frame and traceback attributes, and
names starting with a double underscore are rejected as a SyntaxError.
Scripts get these globals::

    console.log(*args)   console.info(*args)     -> stdout
    console.error(*args) console.warn(*args)     -> stderr
    process.argv         [interpreter, script path, *args]
    process.env          copy of the session environment
    process.exit(code)   stop with ``code``
    Error                base error class
    JSON.stringify / JSON.parse

An uncaught error is reported as ``<interpreter>: <ErrorKind>: <message>``
and the script exits with status 1.

Author: YSNRFD
Version: 1.0.0
"""

import ast
import builtins
import json
from typing import Any, List

from .base import Script, ScriptInterpreter
from pysh.exceptions import ScriptExit
from pysh.logger import get_logger
from pysh.shell.exit_codes import ExitCode


_ALLOWED_BUILTINS = (
    'abs', 'all', 'any', 'bool', 'chr', 'dict', 'divmod', 'enumerate',
    'filter', 'float', 'format', 'hasattr', 'hash', 'int', 'isinstance',
    'iter', 'len', 'list', 'map', 'max', 'min', 'next', 'ord', 'pow',
    'range', 'repr', 'reversed', 'round', 'set', 'slice', 'sorted', 'str',
    'sum', 'tuple', 'zip', '__build_class__',
    'Exception', 'ArithmeticError', 'AssertionError', 'AttributeError',
    'IndexError', 'KeyError', 'LookupError', 'NameError', 'RuntimeError',
    'StopIteration', 'TypeError', 'ValueError', 'ZeroDivisionError',
)

# Frame, code and traceback introspection reaches the interpreter's own globals
_BLOCKED_ATTRIBUTES = frozenset({
    'ag_code', 'ag_frame', 'cr_code', 'cr_frame', 'gi_code', 'gi_frame',
    'f_back', 'f_builtins', 'f_code', 'f_globals', 'f_locals',
    'tb_frame', 'tb_next', 'mro',
})


def check_restricted(tree: ast.AST, filename: str) -> None:
    """
    Reject constructs that reach outside the dialect.

    Raises:
        SyntaxError: On an import, a private or introspection attribute,
            or a dunder name
    """
    for node in ast.walk(tree):
        if isinstance(node, (ast.Import, ast.ImportFrom)):
            problem = "import is not supported"
        elif isinstance(node, ast.Attribute) and (
            node.attr.startswith("_") or node.attr in _BLOCKED_ATTRIBUTES
        ):
            problem = f"access to attribute '{node.attr}' is not allowed"
        elif isinstance(node, ast.Name) and node.id.startswith("__"):
            problem = f"name '{node.id}' is not allowed"
        else:
            continue
        raise SyntaxError(
            problem,
            (filename, getattr(node, "lineno", None), getattr(node, "col_offset", None), None)
        )


class Error(Exception):
    """Base error class visible to scripts."""


def _format_value(value: Any) -> str:
    if value is None:
        return 'null'
    if value is True:
        return 'true'
    if value is False:
        return 'false'
    if isinstance(value, (dict, list, tuple)):
        try:
            return json.dumps(value)
        except (TypeError, ValueError):
            return str(value)
    return str(value)


class _Console:
    def __init__(self, io):
        self._io = io

    def _emit(self, stream, args) -> None:
        stream.write(' '.join(_format_value(a) for a in args) + '\n')

    def log(self, *args) -> None:
        self._emit(self._io.stdout, args)

    info = log

    def error(self, *args) -> None:
        self._emit(self._io.stderr, args)

    warn = error


class _Environment(dict):
    """Environment mirror readable as ``env.USER`` or ``env['USER']``."""

    def __getattr__(self, name: str) -> Any:
        return self.get(name)

    def __setattr__(self, name: str, value: Any) -> None:
        self[name] = str(value)


class _Process:
    def __init__(self, argv: List[str], env: dict[str, str]):
        self.argv = argv
        self.env = _Environment(env)

    @staticmethod
    def exit(code: int = 0) -> None:
        raise ScriptExit(int(code))


class _JSON:
    @staticmethod
    def stringify(value: Any, replacer: Any = None, indent: Any = None) -> str:
        return json.dumps(value, indent=indent)

    @staticmethod
    def parse(text: str) -> Any:
        return json.loads(text)


class NodeInterpreter(ScriptInterpreter):
    """Interpreter for the restricted dialect."""

    name = "node"

    def __init__(self):
        self._logger = get_logger('interpreter')

    def _namespace(self, script: Script, context, io) -> dict[str, Any]:
        safe_builtins = {name: getattr(builtins, name) for name in _ALLOWED_BUILTINS}
        console = _Console(io)
        safe_builtins['print'] = console.log
        return {
            '__builtins__': safe_builtins,
            '__name__': '__main__',
            'console': console,
            'process': _Process(
                [script.interpreter_id, script.path, *script.args],
                dict(context.env),
            ),
            'Error': Error,
            'JSON': _JSON(),
        }

    async def run(self, script: Script, context, io) -> int:
        if io.is_cancelled():
            return ExitCode.INTERRUPTED

        namespace = self._namespace(script, context, io)
        try:
            tree = ast.parse(script.body, script.path)
            check_restricted(tree, script.path)
            code = compile(tree, script.path, 'exec')
            exec(code, namespace)
        except ScriptExit as e:
            return e.code
        except Exception as e:
            kind = type(e).__name__
            message = e.msg if isinstance(e, SyntaxError) else str(e)
            self._logger.debug(
                "Uncaught script error",
                context={'path': script.path, 'kind': kind}
            )
            io.stderr.write(f"{script.interpreter_id}: {kind}: {message}\n")
            return ExitCode.GENERAL_ERROR

        return ExitCode.SUCCESS
