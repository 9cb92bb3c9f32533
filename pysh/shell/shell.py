"""
PySH Shell Module

The orchestrator: runs one input line at a time through pipeline
splitting, redirection parsing, tokenizing, expansion, resolution and
dispatch, and records the resulting exit status.

Pipes pass the previous stage's stdout (trailing newlines trimmed) to
the next stage as its first argument, not on stdin. Every builtin in
this package is written against that contract.

Author: YSNRFD
Version: 1.0.0
"""

from typing import Awaitable, Callable, List, Optional

from .context import CommandContext
from .exit_codes import ExitCode
from .expander import Expander
from .interpreters import InterpreterRegistry, create_default_registry
from .parser import CommandParser, Redirections
from .resolver import CommandResolver, ResolutionKind
from .streams import CancellationToken, IOStreams, create_io_streams
from pysh.core.config_loader import Config, get_config
from pysh.core.registry import CommandEntry, CommandHandler, CommandRegistry
from pysh.exceptions import (
    FileSystemException,
    ShellException,
    ShellExit,
    ShellSyntaxError,
)
from pysh.filesystem.path_resolver import PathResolver
from pysh.logger import get_logger
from pysh.presentation import NullRenderer, Renderer


class Shell:
    """
    PySH command orchestrator.

    Provides:
    - Pipelines with argument-passing pipes
    - Stdout/stderr redirection on the last stage
    - Builtin, executable-path and shebang script dispatch
    - Exit status tracking in $? and LAST_EXIT_CODE
    - Cooperative cancellation of the running line

    Example:
        >>> shell = create_shell(context, BufferRenderer())
        >>> await shell.execute_command('echo hello | echo > out.txt')
        0
    """

    def __init__(
        self,
        context: CommandContext,
        renderer: Optional[Renderer] = None,
        config: Optional[Config] = None,
        interpreters: Optional[InterpreterRegistry] = None
    ):
        self._context = context
        self._context.shell = self
        self._config = config or get_config()
        self._renderer = renderer or NullRenderer()
        self._parser = CommandParser()
        self._registry = CommandRegistry()
        self._resolver = CommandResolver(self._registry)
        self._interpreters = interpreters or create_default_registry(
            self._config.shell.substitution_dir
        )
        self._logger = get_logger('shell')

        self._current_token: Optional[CancellationToken] = None
        self._executing = False
        self._depth = 0
        self._exit_requested = False
        self._exit_code = 0

    @property
    def context(self) -> CommandContext:
        return self._context

    @property
    def config(self) -> Config:
        return self._config

    @property
    def renderer(self) -> Renderer:
        return self._renderer

    @property
    def parser(self) -> CommandParser:
        return self._parser

    @property
    def registry(self) -> CommandRegistry:
        return self._registry

    @property
    def resolver(self) -> CommandResolver:
        return self._resolver

    @property
    def interpreters(self) -> InterpreterRegistry:
        return self._interpreters

    @property
    def executing(self) -> bool:
        return self._executing

    @property
    def exit_requested(self) -> bool:
        return self._exit_requested

    @property
    def exit_code(self) -> int:
        return self._exit_code

    # Registration

    def register_command(
        self,
        name: str,
        handler: CommandHandler,
        description: str = "",
        usage: Optional[str] = None,
        raw_args: bool = False
    ) -> CommandEntry:
        """
        Register a command.

        Standard utilities also become reachable as /bin/<name> and
        /usr/bin/<name>.
        """
        entry = self._registry.register(name, handler, description, usage, raw_args)
        if self._registry.is_standard_utility(name):
            for directory in self._config.shell.bin_dirs:
                self._resolver.register_executable(f"{directory}/{name}", handler)
        return entry

    def get_commands(self) -> List[CommandEntry]:
        return self._registry.entries()

    # Prompt and history

    def get_prompt(self) -> str:
        cwd = self._context.cwd
        home = self._context.home
        if home != '/' and (cwd == home or cwd.startswith(home + '/')):
            cwd = '~' + cwd[len(home):]
        return self._config.shell.prompt.format(
            user=self._context.user,
            hostname=self._context.env.get('HOSTNAME', self._config.session.hostname),
            cwd=cwd,
        )

    def _append_history(self, line: str) -> None:
        history = self._context.history
        history.append(line)
        overflow = len(history) - self._config.shell.history_size
        if overflow > 0:
            del history[:overflow]

    # Execution

    async def execute_command(
        self,
        line: str,
        headless: bool = False,
        io: Optional[IOStreams] = None
    ) -> int:
        """
        Execute one input line.

        Args:
            line: The command line
            headless: Skip history, command echo and prompt updates;
                visible output goes to ``io`` (or nowhere) instead of
                the renderer
            io: Streams of the caller when run from a script or a
                command substitution; its cancellation token is shared

        Returns:
            Exit status of the last stage that ran
        """
        if not line.strip():
            return ExitCode.SUCCESS

        if not headless:
            self._append_history(line)
            self._renderer.write_command(self.get_prompt(), line)

        top_level = self._depth == 0
        if io is not None and io.cancel_token is not None:
            token = io.cancel_token
        elif not top_level and self._current_token is not None:
            token = self._current_token
        else:
            token = CancellationToken()

        if top_level:
            self._current_token = token
            self._executing = True
        self._depth += 1

        try:
            status = await self._run_line(line, headless, io, token)
        except ShellExit as e:
            if not top_level:
                raise
            self._logger.info("Exit requested", context={'code': e.code})
            self._exit_requested = True
            self._exit_code = e.code
            self._context.set_exit_code(e.code)
            status = e.code
        finally:
            self._depth -= 1
            if top_level:
                self._executing = False
                self._current_token = None

        if not headless:
            self._renderer.update_prompt(self._context.cwd, self._context.home)
        return status

    def cancel_current_execution(self) -> None:
        """Cancel the running line (Ctrl-C)."""
        if not self._executing or self._current_token is None:
            self._renderer.write_output('^C\n', 'output-error')
            return
        self._current_token.cancel()
        self._context.set_exit_code(ExitCode.INTERRUPTED)
        self._renderer.write_output('^C\n', 'output-error')
        self._logger.info("Execution cancelled")

    def _mirror(
        self,
        data: str,
        is_error: bool,
        headless: bool,
        io: Optional[IOStreams]
    ) -> None:
        """Send live output to the renderer, or to the caller's streams."""
        if not headless:
            self._renderer.write_output(data, 'output-error' if is_error else None)
        elif io is not None:
            (io.stderr if is_error else io.stdout).write(data)

    def _interrupted(self) -> int:
        self._context.set_exit_code(ExitCode.INTERRUPTED)
        return ExitCode.INTERRUPTED

    async def _run_line(
        self,
        line: str,
        headless: bool,
        io: Optional[IOStreams],
        token: CancellationToken
    ) -> int:
        try:
            stages = self._parser.split_pipeline(line)
            if not stages:
                return ExitCode.SUCCESS
            stages[-1], redirections = self._parser.split_redirections(stages[-1])
        except ShellSyntaxError as e:
            self._mirror(f"pysh: {e.message}\n", True, headless, io)
            self._context.set_exit_code(ExitCode.MISUSE)
            return ExitCode.MISUSE

        self._logger.debug(
            "Executing line",
            context={'stages': len(stages), 'headless': headless}
        )

        previous_output = ''
        status = ExitCode.SUCCESS

        for index, stage in enumerate(stages):
            if token.is_cancelled():
                return self._interrupted()

            is_last = index == len(stages) - 1
            stage_io = create_io_streams(token)
            captured_out: List[str] = []
            captured_err: List[str] = []
            stage_io.stdout.on(captured_out.append)
            stage_io.stderr.on(captured_err.append)

            if is_last and not redirections.redirects_stdout:
                stage_io.stdout.on(lambda data: self._mirror(data, False, headless, io))
            if not (is_last and redirections.redirects_stderr):
                stage_io.stderr.on(lambda data: self._mirror(data, True, headless, io))
            elif redirections.merge_stderr and not redirections.redirects_stdout:
                stage_io.stderr.on(lambda data: self._mirror(data, False, headless, io))

            status = await self._run_stage(stage, previous_output, stage_io)
            self._context.set_exit_code(status)

            if token.is_cancelled():
                return self._interrupted()

            output = ''.join(captured_out)
            if is_last:
                status = self._apply_redirections(
                    redirections, output, ''.join(captured_err), status, headless, io
                )
            previous_output = output

        return status

    async def _run_stage(self, stage: str, previous_output: str, io: IOStreams) -> int:
        env = self._context.env
        tokenized = self._parser.tokenize(stage)
        if tokenized.here_string is not None:
            io.stdin.write(Expander.expand_token(tokenized.here_string, env) + '\n')

        raw = tokenized.tokens
        if not raw:
            return ExitCode.SUCCESS

        name = Expander.expand_token(raw[0], env)
        entry = self._registry.get(name)
        if entry is not None and entry.raw_args:
            args = list(raw[1:])
        else:
            args = Expander.expand_arguments(raw[1:], self._context)

        if previous_output:
            piped = previous_output.rstrip('\n')
            # Raw-argument commands must see piped text as a literal word
            args.insert(0, f"'{piped}'" if entry is not None and entry.raw_args else piped)

        resolved = self._resolver.resolve(name, self._context)
        context = self._context

        if resolved.kind in (ResolutionKind.BUILTIN, ResolutionKind.EXECUTABLE):
            return await self._dispatch(name, lambda: resolved.handler(args, context, io), io)

        if resolved.kind == ResolutionKind.SCRIPT:
            return await self._dispatch(
                name,
                lambda: self._interpreters.execute(
                    resolved.interpreter, resolved.path, args, context, io, context.fs
                ),
                io,
            )

        if resolved.kind == ResolutionKind.NOT_EXECUTABLE:
            io.stderr.write(f"pysh: {name}: Permission denied\n")
            return ExitCode.CANNOT_EXECUTE

        io.stderr.write(f"Command '{name}' not found. Type 'help' for available commands.\n")
        return ExitCode.NOT_FOUND

    async def _dispatch(
        self,
        name: str,
        call: Callable[[], Awaitable[int]],
        io: IOStreams
    ) -> int:
        """Run a handler, converting any failure into stderr plus a status."""
        try:
            code = await call()
        except FileSystemException as e:
            io.stderr.write(f"{name}: {e.strerror}\n")
            return ExitCode.GENERAL_ERROR
        except ShellException as e:
            io.stderr.write(f"{name}: {e.message}\n")
            return e.exit_code
        except Exception as e:
            self._logger.exception("Command failed", exc=e, context={'command': name})
            io.stderr.write(f"{name}: {e}\n")
            return ExitCode.GENERAL_ERROR

        return ExitCode.SUCCESS if code is None else int(code)

    def _apply_redirections(
        self,
        redirections: Redirections,
        output: str,
        errors: str,
        status: int,
        headless: bool,
        io: Optional[IOStreams]
    ) -> int:
        ok = True
        if redirections.merge_stderr:
            output += errors
        elif redirections.stderr is not None:
            ok = self._redirect(redirections.stderr, errors, False, headless, io)

        if redirections.stdout is not None:
            ok = self._redirect(
                redirections.stdout, output, redirections.append, headless, io
            ) and ok

        if not ok:
            status = ExitCode.GENERAL_ERROR
            self._context.set_exit_code(status)
        return status

    def _redirect(
        self,
        target_raw: str,
        data: str,
        append: bool,
        headless: bool,
        io: Optional[IOStreams]
    ) -> bool:
        """Write captured output to a redirect target. False on failure."""
        target = Expander.expand_token(target_raw, self._context.env).strip()
        if not target:
            return True

        full_path = self._context.resolve_path(target)
        if full_path == PathResolver.normalize(self._config.filesystem.null_device):
            return True

        directory, name = PathResolver.split(full_path)
        if not name:
            self._mirror(f"pysh: {target}: Is a directory\n", True, headless, io)
            return False

        try:
            self._context.fs.write_file(
                directory,
                name,
                self._context.user,
                self._context.group,
                data,
                permissions=self._config.filesystem.default_file_mode,
                append=append,
            )
        except FileSystemException as e:
            self._mirror(f"pysh: {target}: {e.strerror}\n", True, headless, io)
            return False

        self._logger.debug(
            "Redirected output",
            context={'target': full_path, 'append': append, 'bytes': len(data)}
        )
        return True


def create_shell(
    context: CommandContext,
    renderer: Optional[Renderer] = None,
    config: Optional[Config] = None
) -> Shell:
    """Factory function to create a shell with the standard builtins installed."""
    from .builtins import BuiltinCommands

    shell = Shell(context, renderer, config)
    BuiltinCommands(shell).install()
    return shell
