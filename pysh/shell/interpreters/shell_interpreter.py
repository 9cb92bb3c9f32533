"""
Shell Script Interpreter

Runs ``#!/bin/sh`` style scripts line by line through the shell that
owns the session, so pipes, redirections and variable expansion behave
exactly as they do at the prompt.

Supported on top of ordinary command lines:
- ``NAME=value`` assignments (kept in the session environment)
- Positional parameters: $0, $1..$9, ${N}, $#, $@, $*
- Command substitution: $(...)
- ``exit [N]``

Author: YSNRFD
Version: 1.0.0
"""

import re
import uuid
from typing import List, Optional, Tuple

from .base import Script, ScriptInterpreter
from pysh.exceptions import ShellExit
from pysh.filesystem.path_resolver import PathResolver
from pysh.logger import get_logger
from pysh.shell.exit_codes import ExitCode
from pysh.shell.expander import Expander
from pysh.shell.parser import CommandParser
from pysh.shell.streams import create_io_streams


_ASSIGNMENT = re.compile(r'^([A-Za-z_][A-Za-z0-9_]*)=(.*)$', re.DOTALL)
_UNQUOTED_SPECIALS = set('\\\'"$|;&<>*?()`')


def quote_for_context(value: str, in_double: bool) -> str:
    """
    Escape an inserted value so the tokenizer reads it back literally.

    Inside double quotes the value stays one word. Unquoted, it is
    split on whitespace into separate words, as a shell would.
    """
    if in_double:
        return value.replace('\\', '\\\\').replace('"', '\\"').replace('$', '\\$')
    words = value.split()
    return ' '.join(
        ''.join('\\' + c if c in _UNQUOTED_SPECIALS else c for c in word)
        for word in words
    )


def find_closing_paren(text: str, start: int) -> int:
    """Index of the ')' closing the '(' just before ``start``, or -1."""
    depth = 1
    in_single = False
    in_double = False
    i = start

    while i < len(text):
        char = text[i]
        if char == '\\' and not in_single:
            i += 2
            continue
        if char == "'" and not in_double:
            in_single = not in_single
        elif char == '"' and not in_single:
            in_double = not in_double
        elif not in_single and not in_double:
            if char == '(':
                depth += 1
            elif char == ')':
                depth -= 1
                if depth == 0:
                    return i
        i += 1

    return -1


class ShellInterpreter(ScriptInterpreter):
    """
    Line-oriented shell interpreter.

    The exit status is that of the last command line run, or 0 when the
    script runs no commands. A cancelled token stops the script before
    its next line with status 130.
    """

    name = "sh"

    def __init__(self, substitution_dir: str = "/tmp"):
        self._parser = CommandParser()
        self._substitution_dir = substitution_dir
        self._logger = get_logger('interpreter')

    async def run(self, script: Script, context, io) -> int:
        shell = context.shell
        status = ExitCode.SUCCESS

        for number, line in enumerate(self._parser.split_commands(script.body), 1):
            if io.is_cancelled():
                return ExitCode.INTERRUPTED

            line = self.expand_positional(line, script)

            assignment = self._match_assignment(line)
            if assignment is not None:
                name, value = assignment
                value = await self.substitute(value, context, io)
                context.env[name] = Expander.expand_token(value, context.env)
                context.set_exit_code(ExitCode.SUCCESS)
                status = ExitCode.SUCCESS
                continue

            line = await self.substitute(line, context, io)
            if not line.strip():
                continue

            self._logger.debug(
                "Script line",
                context={'path': script.path, 'line': number}
            )
            status = await shell.execute_command(line, headless=True, io=io)

        if io.is_cancelled():
            return ExitCode.INTERRUPTED
        return status

    def _match_assignment(self, line: str) -> Optional[Tuple[str, str]]:
        tokens = self._parser.tokenize(line).tokens
        if len(tokens) != 1:
            return None
        match = _ASSIGNMENT.match(tokens[0])
        if match is None:
            return None
        return match.group(1), match.group(2)

    @staticmethod
    def _positional_value(key: str, script: Script) -> Optional[List[str]]:
        """Words for a positional parameter, or None if ``key`` isn't one."""
        if key == '0':
            return [script.path]
        if key.isdigit():
            index = int(key)
            return [script.args[index - 1]] if index <= len(script.args) else ['']
        if key == '#':
            return [str(len(script.args))]
        if key in ('@', '*'):
            return list(script.args)
        return None

    def expand_positional(self, line: str, script: Script) -> str:
        """Replace positional parameters outside single quotes."""
        out: List[str] = []
        in_single = False
        in_double = False
        i = 0

        while i < len(line):
            char = line[i]

            if char == '\\' and not in_single:
                out.append(line[i:i + 2])
                i += 2
                continue
            if char == "'" and not in_double:
                in_single = not in_single
            elif char == '"' and not in_single:
                in_double = not in_double
            elif char == '$' and not in_single and i + 1 < len(line):
                key, end = None, i + 1
                following = line[i + 1]
                if following.isdigit() or following in '#@*':
                    key, end = following, i + 2
                elif following == '{':
                    close = line.find('}', i + 2)
                    inner = line[i + 2:close] if close != -1 else ''
                    if inner.isdigit() or inner in ('#', '@', '*'):
                        key, end = inner, close + 1

                words = self._positional_value(key, script) if key else None
                if words is not None:
                    if in_double:
                        out.append(quote_for_context(' '.join(words), True))
                    else:
                        out.append(' '.join(quote_for_context(w, False) for w in words))
                    i = end
                    continue

            out.append(char)
            i += 1

        return ''.join(out)

    async def substitute(self, line: str, context, io) -> str:
        """Replace every $(...) outside single quotes with its output."""
        out: List[str] = []
        in_single = False
        in_double = False
        i = 0

        while i < len(line):
            char = line[i]

            if char == '\\' and not in_single:
                out.append(line[i:i + 2])
                i += 2
                continue
            if char == "'" and not in_double:
                in_single = not in_single
            elif char == '"' and not in_single:
                in_double = not in_double
            elif not in_single and line.startswith('$(', i):
                close = find_closing_paren(line, i + 2)
                if close != -1:
                    inner = await self.substitute(line[i + 2:close], context, io)
                    output = await self.capture(inner, context, io)
                    out.append(quote_for_context(output, in_double))
                    i = close + 1
                    continue

            out.append(char)
            i += 1

        return ''.join(out)

    async def capture(self, command: str, context, io) -> str:
        """
        Run ``command`` headless and return its stdout, trailing newlines
        trimmed.

        Output goes through a transient file in the substitution
        directory, which is always removed afterwards.
        """
        fs = context.fs
        user, group = context.user, context.group
        directory = self._substitution_dir
        name = f".pysh-subst-{uuid.uuid4().hex[:12]}"
        path = PathResolver.join(directory, name)

        fs.write_file(directory, name, user, group, "", permissions="rw-------")
        sub_io = create_io_streams(io.cancel_token)
        sub_io.stdout.on(
            lambda data: fs.write_file(directory, name, user, group, data, append=True)
        )
        sub_io.stderr.on(io.stderr.write)

        try:
            try:
                await context.shell.execute_command(command, headless=True, io=sub_io)
            except ShellExit as e:
                # exit only leaves the substitution
                context.set_exit_code(e.code)
            output = fs.read_file(path, user, group)
        finally:
            if fs.exists(path, user, group):
                fs.remove(path, user, group)

        return output.rstrip('\n')
