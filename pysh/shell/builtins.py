"""
Shell Built-in Commands

The standard utility set. Every command is a coroutine with the shared
handler signature and talks to the session only through the context
(filesystem, environment, history) and its streams.

Author: YSNRFD
Version: 1.0.0
"""

import asyncio
import re
from typing import List, Optional, Tuple

from .exit_codes import ExitCode
from .expander import Expander
from pysh.exceptions import (
    FileSystemException,
    FileExistsError,
    FileNotFoundError,
    InvalidModeError,
    ShellExit,
)
from pysh.filesystem.node import Access, FilesystemNode, is_valid_mode, mode_from_octal
from pysh.filesystem.path_resolver import PathResolver


_ECHO_OPTION = re.compile(r'^-[neE]+$')
_OCTAL_MODE = re.compile(r'^0?[0-7]{3}$')
_SYMBOLIC_MODE = re.compile(r'^([ugoa]*)([+\-=])([rwx]*)$')
_ENV_NAME = re.compile(r'^[A-Za-z_][A-Za-z0-9_]*$')

_SIMPLE_ESCAPES = {
    'a': '\a', 'b': '\b', 'e': '\x1b', 'f': '\f', 'n': '\n',
    'r': '\r', 't': '\t', 'v': '\v', '\\': '\\',
}


def interpret_escapes(text: str) -> Tuple[str, bool]:
    """
    Apply ``echo -e`` backslash escapes.

    Returns:
        (text, stop) where stop is True when ``\\c`` cut the output short
    """
    out: List[str] = []
    i = 0

    while i < len(text):
        char = text[i]
        if char != '\\' or i + 1 >= len(text):
            out.append(char)
            i += 1
            continue

        following = text[i + 1]
        if following == 'c':
            return ''.join(out), True
        if following in _SIMPLE_ESCAPES:
            out.append(_SIMPLE_ESCAPES[following])
            i += 2
        elif following == 'x':
            digits = re.match(r'[0-9A-Fa-f]{1,2}', text[i + 2:])
            if digits:
                out.append(chr(int(digits.group(0), 16)))
                i += 2 + len(digits.group(0))
            else:
                out.append('\\x')
                i += 2
        elif following == '0':
            digits = re.match(r'[0-7]{0,3}', text[i + 2:]).group(0)
            out.append(chr(int(digits, 8) if digits else 0))
            i += 2 + len(digits)
        else:
            out.append('\\' + following)
            i += 2

    return ''.join(out), False


def apply_symbolic_mode(current: str, spec: str) -> Optional[str]:
    """
    Apply a symbolic chmod expression such as ``u+x,go-w`` to a mode
    string. Returns None if the expression is malformed.
    """
    triads = [list(current[0:3]), list(current[3:6]), list(current[6:9])]
    letters = 'rwx'

    for clause in spec.split(','):
        match = _SYMBOLIC_MODE.match(clause)
        if match is None:
            return None
        who, op, perms = match.groups()
        targets = [0, 1, 2] if not who or 'a' in who else [
            index for index, scope in enumerate('ugo') if scope in who
        ]
        for index in targets:
            for position, letter in enumerate(letters):
                if op == '=':
                    triads[index][position] = letter if letter in perms else '-'
                elif letter in perms:
                    triads[index][position] = letter if op == '+' else '-'

    return ''.join(''.join(t) for t in triads)


def split_flags(args: List[str], allowed: str) -> Tuple[set, List[str], Optional[str]]:
    """
    Separate short flags from operands.

    Flags stop at ``--``. A lone ``-`` is an operand.

    Returns:
        (flags, operands, bad_flag)
    """
    flags = set()
    operands: List[str] = []
    parsing = True

    for arg in args:
        if parsing and arg == '--':
            parsing = False
        elif parsing and arg.startswith('-') and len(arg) > 1:
            for flag in arg[1:]:
                if flag not in allowed:
                    return flags, operands, flag
                flags.add(flag)
        else:
            operands.append(arg)

    return flags, operands, None


class BuiltinCommands:
    """
    Built-in shell commands.

    ``install`` registers every command on the owning shell. Pipes hand
    the previous stage's output over as the first argument, so commands
    that take file operands treat it as one.
    """

    def __init__(self, shell):
        """
        Initialize built-in commands.

        Args:
            shell: The shell instance
        """
        self._shell = shell
        self._commands = [
            ('cat', self.cmd_cat, "Concatenate files and print them", "cat [-n] [FILE]..."),
            ('cd', self.cmd_cd, "Change the working directory", "cd [DIR|-]"),
            ('chmod', self.cmd_chmod, "Change file permissions", "chmod MODE FILE..."),
            ('chown', self.cmd_chown, "Change file owner and group", "chown OWNER[:GROUP] FILE..."),
            ('clear', self.cmd_clear, "Clear the screen", "clear"),
            ('echo', self.cmd_echo, "Display a line of text", "echo [-neE] [STRING]..."),
            ('env', self.cmd_env, "Print the environment", "env"),
            ('exit', self.cmd_exit, "Exit the shell", "exit [N]"),
            ('export', self.cmd_export, "Set environment variables", "export [NAME[=VALUE]]..."),
            ('false', self.cmd_false, "Do nothing, unsuccessfully", "false"),
            ('help', self.cmd_help, "Display help for commands", "help [COMMAND]"),
            ('history', self.cmd_history, "Show command history", "history [-c] [N]"),
            ('ls', self.cmd_ls, "List directory contents", "ls [-al] [PATH]..."),
            ('mkdir', self.cmd_mkdir, "Create directories", "mkdir [-p] DIR..."),
            ('pwd', self.cmd_pwd, "Print the working directory", "pwd"),
            ('rm', self.cmd_rm, "Remove files or directories", "rm [-rf] PATH..."),
            ('rmdir', self.cmd_rmdir, "Remove empty directories", "rmdir DIR..."),
            ('tail', self.cmd_tail, "Output the last part of files",
             "tail [-n NUM] [-f] [-s SECONDS] [FILE]..."),
            ('touch', self.cmd_touch, "Create files or update timestamps", "touch FILE..."),
            ('true', self.cmd_true, "Do nothing, successfully", "true"),
            ('unset', self.cmd_unset, "Remove environment variables", "unset NAME..."),
            ('whoami', self.cmd_whoami, "Print the current user name", "whoami"),
        ]

    def names(self) -> List[str]:
        return [name for name, *_ in self._commands]

    def install(self) -> None:
        """Register every built-in on the shell."""
        for name, handler, description, usage in self._commands:
            self._shell.register_command(
                name, handler, description, usage, raw_args=(name == 'echo')
            )

    # Output helpers

    @staticmethod
    def _fail(io, message: str, code: int = ExitCode.GENERAL_ERROR) -> int:
        io.stderr.write(message + '\n')
        return code

    @staticmethod
    def _fs_fail(io, command: str, operand: str, error: FileSystemException) -> int:
        io.stderr.write(f"{command}: {operand}: {error.strerror}\n")
        return ExitCode.GENERAL_ERROR

    # Text

    async def cmd_echo(self, args: List[str], context, io) -> int:
        """
        Echo arguments.

        Arguments arrive unexpanded. Single-quoted words are printed as
        they are, everything else gets variable expansion.
        """
        newline = True
        interpret = False
        index = 0

        while index < len(args) and _ECHO_OPTION.match(args[index]):
            for flag in args[index][1:]:
                if flag == 'n':
                    newline = False
                elif flag == 'e':
                    interpret = True
                else:
                    interpret = False
            index += 1

        words: List[str] = []
        stopped = False
        for arg in args[index:]:
            text, quote = Expander.strip_enclosing_quotes(arg)
            if quote == 'single':
                words.append(text)
                continue
            if quote == 'double':
                text = Expander.expand_variables(text, context.env).replace('\\"', '"')
            else:
                text = Expander.expand_token(arg, context.env)
            if interpret:
                text, stopped = interpret_escapes(text)
            words.append(text)
            if stopped:
                break

        output = ' '.join(words)
        if newline and not stopped:
            output += '\n'
        io.stdout.write(output)
        return ExitCode.SUCCESS

    async def cmd_cat(self, args: List[str], context, io) -> int:
        """Concatenate files. With no operands (or '-') read stdin."""
        flags, operands, bad = split_flags(args, 'n')
        if bad:
            return self._fail(io, f"cat: invalid option -- '{bad}'")

        fs = context.fs
        status = ExitCode.SUCCESS
        chunks: List[str] = []

        for operand in operands or ['-']:
            if operand == '-':
                chunks.append(io.stdin.read())
                continue
            try:
                chunks.append(fs.read_file(context.resolve_path(operand), context.user, context.group))
            except FileSystemException as e:
                status = self._fs_fail(io, 'cat', operand, e)

        content = ''.join(chunks)
        if 'n' in flags and content:
            lines = content.splitlines(keepends=True)
            content = ''.join(f"{number:6}\t{line}" for number, line in enumerate(lines, 1))
        io.stdout.write(content)
        return status

    async def cmd_tail(self, args: List[str], context, io) -> int:
        """
        Output the last lines of files (default 10).

        ``-f`` keeps polling for appended data every ``-s`` seconds until
        the line is cancelled or the poll limit is reached.
        """
        count = 10
        follow = False
        interval = 1.0
        operands: List[str] = []

        i = 0
        while i < len(args):
            arg = args[i]
            if arg in ('-n', '-s'):
                if i + 1 >= len(args):
                    return self._fail(io, f"tail: option requires an argument -- '{arg[1]}'")
                value = args[i + 1]
                try:
                    if arg == '-n':
                        count = abs(int(value))
                    else:
                        interval = max(0.0, float(value))
                except ValueError:
                    return self._fail(io, f"tail: invalid number: '{value}'")
                i += 2
                continue
            if re.match(r'^-\d+$', arg):
                count = int(arg[1:])
            elif arg == '-f':
                follow = True
            elif arg.startswith('-') and arg != '-':
                return self._fail(io, f"tail: invalid option -- '{arg[1:]}'")
            else:
                operands.append(arg)
            i += 1

        fs = context.fs
        targets = operands or ['-']
        headers = len(targets) > 1
        seen: dict[str, str] = {}
        status = ExitCode.SUCCESS

        for position, operand in enumerate(targets):
            if operand == '-':
                content, title = io.stdin.read(), 'standard input'
            else:
                try:
                    content = fs.read_file(context.resolve_path(operand), context.user, context.group)
                except FileSystemException as e:
                    io.stderr.write(f"tail: cannot open '{operand}' for reading: {e.strerror}\n")
                    status = ExitCode.GENERAL_ERROR
                    continue
                title = operand
                seen[operand] = content

            if headers:
                io.stdout.write(f"{'' if position == 0 else chr(10)}==> {title} <==\n")
            lines = content.splitlines(keepends=True)
            io.stdout.write(''.join(lines[-count:]) if count else '')

        if follow and seen:
            await self._follow(seen, interval, context, io)

        return status

    async def _follow(self, seen: dict[str, str], interval: float, context, io) -> None:
        max_polls = self._shell.config.shell.max_follow_polls
        override = context.env.get('TAIL_MAX_POLL')
        if override is not None and override.strip().isdigit():
            max_polls = int(override)

        polls = 0
        while polls < max_polls and not io.is_cancelled():
            await asyncio.sleep(interval)
            polls += 1
            if io.is_cancelled():
                break
            for operand, previous in seen.items():
                try:
                    current = context.fs.read_file(
                        context.resolve_path(operand), context.user, context.group
                    )
                except FileSystemException:
                    continue
                if len(current) > len(previous):
                    io.stdout.write(current[len(previous):])
                seen[operand] = current

    # Navigation and listing

    async def cmd_pwd(self, args: List[str], context, io) -> int:
        io.stdout.write(context.cwd + '\n')
        return ExitCode.SUCCESS

    async def cmd_cd(self, args: List[str], context, io) -> int:
        """Change directory. No operand means HOME, '-' means OLDPWD."""
        if len(args) > 1:
            return self._fail(io, "cd: too many arguments")

        operand = args[0] if args else context.home
        if operand == '-':
            operand = context.env.get('OLDPWD')
            if not operand:
                return self._fail(io, "cd: OLDPWD not set")

        target = context.resolve_path(operand)
        try:
            node = context.fs.get_node(target, context.user, context.group)
        except FileSystemException as e:
            return self._fs_fail(io, 'cd', operand, e)

        if node is None:
            return self._fail(io, f"cd: {operand}: No such file or directory")
        if not node.is_directory:
            return self._fail(io, f"cd: {operand}: Not a directory")
        if not node.has_permission(Access.EXECUTE, context.user, context.group):
            return self._fail(io, f"cd: {operand}: Permission denied")

        context.env['OLDPWD'] = context.cwd
        context.env['PWD'] = target
        if args and args[0] == '-':
            io.stdout.write(target + '\n')
        return ExitCode.SUCCESS

    @staticmethod
    def _long_entry(node: FilesystemNode, name: str) -> str:
        return f"{node.mode_string()} {node.owner:<8} {node.group:<8} {node.size:>6} {name}"

    async def cmd_ls(self, args: List[str], context, io) -> int:
        """List directory contents."""
        flags, operands, bad = split_flags(args, 'al')
        if bad:
            return self._fail(io, f"ls: invalid option -- '{bad}'")

        show_hidden = 'a' in flags
        long_format = 'l' in flags
        fs = context.fs
        status = ExitCode.SUCCESS
        targets = operands or ['.']

        for position, operand in enumerate(targets):
            path = context.resolve_path(operand)
            try:
                node = fs.get_node(path, context.user, context.group)
                if node is None:
                    raise FileNotFoundError(path)
                if node.is_directory:
                    entries = [
                        (child, child.name)
                        for child in fs.list_directory(path, context.user, context.group, show_hidden)
                    ]
                else:
                    entries = [(node, operand)]
            except FileSystemException as e:
                io.stderr.write(f"ls: cannot access '{operand}': {e.strerror}\n")
                status = ExitCode.GENERAL_ERROR
                continue

            if len(targets) > 1 and node.is_directory:
                io.stdout.write(f"{'' if position == 0 else chr(10)}{operand}:\n")

            if long_format:
                for child, name in entries:
                    io.stdout.write(self._long_entry(child, name) + '\n')
            elif entries:
                io.stdout.write('  '.join(name for _, name in entries) + '\n')

        return status

    # File management

    async def cmd_mkdir(self, args: List[str], context, io) -> int:
        """Create directories. ``-p`` creates parents and accepts existing ones."""
        flags, operands, bad = split_flags(args, 'p')
        if bad:
            return self._fail(io, f"mkdir: invalid option -- '{bad}'")
        if not operands:
            return self._fail(io, "mkdir: missing operand")

        fs = context.fs
        mode = self._shell.config.filesystem.default_dir_mode
        status = ExitCode.SUCCESS

        for operand in operands:
            path = context.resolve_path(operand)
            try:
                if 'p' in flags:
                    current = '/'
                    for component in PathResolver.components(path):
                        fs.add_directory(current, component, context.user, context.group,
                                         permissions=mode)
                        current = PathResolver.join(current, component)
                    continue

                if fs.exists(path, context.user, context.group):
                    raise FileExistsError(path)
                parent, name = PathResolver.split(path)
                fs.add_directory(parent, name, context.user, context.group, permissions=mode)
            except FileSystemException as e:
                io.stderr.write(f"mkdir: cannot create directory '{operand}': {e.strerror}\n")
                status = ExitCode.GENERAL_ERROR

        return status

    async def cmd_rmdir(self, args: List[str], context, io) -> int:
        if not args:
            return self._fail(io, "rmdir: missing operand")

        fs = context.fs
        status = ExitCode.SUCCESS
        for operand in args:
            path = context.resolve_path(operand)
            try:
                node = fs.get_node(path, context.user, context.group)
                if node is None:
                    raise FileNotFoundError(path)
                if not node.is_directory:
                    io.stderr.write(f"rmdir: failed to remove '{operand}': Not a directory\n")
                    status = ExitCode.GENERAL_ERROR
                    continue
                fs.remove(path, context.user, context.group)
            except FileSystemException as e:
                io.stderr.write(f"rmdir: failed to remove '{operand}': {e.strerror}\n")
                status = ExitCode.GENERAL_ERROR

        return status

    async def cmd_rm(self, args: List[str], context, io) -> int:
        """Remove files; ``-r`` for directories, ``-f`` to ignore missing ones."""
        flags, operands, bad = split_flags(args, 'rRf')
        if bad:
            return self._fail(io, f"rm: invalid option -- '{bad}'")
        force = 'f' in flags
        recursive = 'r' in flags or 'R' in flags
        if not operands:
            return ExitCode.SUCCESS if force else self._fail(io, "rm: missing operand")

        fs = context.fs
        status = ExitCode.SUCCESS
        for operand in operands:
            path = context.resolve_path(operand)
            try:
                node = fs.get_node(path, context.user, context.group)
                if node is None:
                    if force:
                        continue
                    raise FileNotFoundError(path)
                if node.is_directory and not recursive:
                    io.stderr.write(f"rm: cannot remove '{operand}': Is a directory\n")
                    status = ExitCode.GENERAL_ERROR
                    continue
                fs.remove(path, context.user, context.group, recursive=recursive)
            except FileSystemException as e:
                io.stderr.write(f"rm: cannot remove '{operand}': {e.strerror}\n")
                status = ExitCode.GENERAL_ERROR

        return status

    async def cmd_touch(self, args: List[str], context, io) -> int:
        if not args:
            return self._fail(io, "touch: missing file operand")

        status = ExitCode.SUCCESS
        for operand in args:
            try:
                context.fs.touch(context.resolve_path(operand), context.user, context.group)
            except FileSystemException as e:
                io.stderr.write(f"touch: cannot touch '{operand}': {e.strerror}\n")
                status = ExitCode.GENERAL_ERROR
        return status

    async def cmd_chmod(self, args: List[str], context, io) -> int:
        """Change permissions: octal (755), full mode string or symbolic (u+x)."""
        if len(args) < 2:
            return self._fail(io, "chmod: missing operand")

        spec, operands = args[0], args[1:]
        fs = context.fs
        status = ExitCode.SUCCESS

        for operand in operands:
            path = context.resolve_path(operand)
            try:
                node = fs.get_node(path, context.user, context.group)
                if node is None:
                    raise FileNotFoundError(path)
                if _OCTAL_MODE.match(spec):
                    mode = mode_from_octal(spec)
                elif is_valid_mode(spec):
                    mode = spec
                else:
                    mode = apply_symbolic_mode(node.permissions, spec)
                    if mode is None:
                        raise InvalidModeError(spec, path=path)
                fs.change_permissions(path, mode, context.user, context.group)
            except InvalidModeError:
                return self._fail(io, f"chmod: invalid mode: '{spec}'")
            except FileSystemException as e:
                io.stderr.write(f"chmod: changing permissions of '{operand}': {e.strerror}\n")
                status = ExitCode.GENERAL_ERROR

        return status

    async def cmd_chown(self, args: List[str], context, io) -> int:
        if len(args) < 2:
            return self._fail(io, "chown: missing operand")

        owner, _, group_name = args[0].partition(':')
        if not owner:
            return self._fail(io, f"chown: invalid user: '{args[0]}'")

        status = ExitCode.SUCCESS
        for operand in args[1:]:
            try:
                context.fs.change_ownership(
                    context.resolve_path(operand),
                    owner,
                    group_name or None,
                    context.user,
                    context.group,
                )
            except FileSystemException as e:
                io.stderr.write(f"chown: changing ownership of '{operand}': {e.strerror}\n")
                status = ExitCode.GENERAL_ERROR
        return status

    # Environment

    async def cmd_export(self, args: List[str], context, io) -> int:
        """Set variables. Without operands list them."""
        if not args:
            for name in sorted(context.env):
                if _ENV_NAME.match(name):
                    io.stdout.write(f'declare -x {name}="{context.env[name]}"\n')
            return ExitCode.SUCCESS

        status = ExitCode.SUCCESS
        for arg in args:
            name, has_value, value = arg.partition('=')
            if not _ENV_NAME.match(name):
                io.stderr.write(f"export: '{arg}': not a valid identifier\n")
                status = ExitCode.GENERAL_ERROR
                continue
            if has_value:
                context.env[name] = value
            else:
                context.env.setdefault(name, '')
        return status

    async def cmd_unset(self, args: List[str], context, io) -> int:
        for name in args:
            context.env.pop(name, None)
        return ExitCode.SUCCESS

    async def cmd_env(self, args: List[str], context, io) -> int:
        for name in sorted(context.env):
            if _ENV_NAME.match(name):
                io.stdout.write(f"{name}={context.env[name]}\n")
        return ExitCode.SUCCESS

    async def cmd_whoami(self, args: List[str], context, io) -> int:
        io.stdout.write(context.user + '\n')
        return ExitCode.SUCCESS

    # Session

    async def cmd_history(self, args: List[str], context, io) -> int:
        """Show numbered history; ``-c`` clears it, ``N`` shows the last N."""
        history = context.history
        if args and args[0] == '-c':
            history.clear()
            return ExitCode.SUCCESS

        start = 0
        if args:
            if not args[0].isdigit():
                return self._fail(io, f"history: {args[0]}: numeric argument required")
            start = max(0, len(history) - int(args[0]))

        for number, line in enumerate(history[start:], start + 1):
            io.stdout.write(f"{number:5}  {line}\n")
        return ExitCode.SUCCESS

    async def cmd_help(self, args: List[str], context, io) -> int:
        """List commands, or show one command's usage."""
        registry = self._shell.registry

        if args:
            entry = registry.get(args[0])
            if entry is None:
                return self._fail(io, f"help: no help topics match '{args[0]}'")
            io.stdout.write(f"{entry.name}: {entry.usage or entry.name}\n")
            if entry.description:
                io.stdout.write(f"    {entry.description}\n")
            return ExitCode.SUCCESS

        entries = registry.entries()
        width = max((len(entry.name) for entry in entries), default=0)
        io.stdout.write("Available commands:\n")
        for entry in entries:
            io.stdout.write(f"  {entry.name.ljust(width)}  {entry.description}\n")
        return ExitCode.SUCCESS

    async def cmd_clear(self, args: List[str], context, io) -> int:
        self._shell.renderer.clear()
        return ExitCode.SUCCESS

    async def cmd_true(self, args: List[str], context, io) -> int:
        return ExitCode.SUCCESS

    async def cmd_false(self, args: List[str], context, io) -> int:
        return ExitCode.GENERAL_ERROR

    async def cmd_exit(self, args: List[str], context, io) -> int:
        """Exit the shell (or the running script) with N, default $?."""
        if len(args) > 1:
            return self._fail(io, "exit: too many arguments")

        code = context.last_exit_code
        if args:
            try:
                code = int(args[0]) & 0xFF
            except ValueError:
                io.stderr.write(f"exit: {args[0]}: numeric argument required\n")
                code = ExitCode.MISUSE
        raise ShellExit(code)
