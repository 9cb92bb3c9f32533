"""
Interpreter Registry

Maps interpreter ids (as found in shebang lines) to interpreters and
runs script files with them.

Author: YSNRFD
Version: 1.0.0
"""

from typing import List, Optional

from .base import Script, ScriptInterpreter
from pysh.exceptions import PermissionDeniedError, ShellExit, ScriptExit
from pysh.filesystem.node import Access
from pysh.filesystem.vfs import VirtualFileSystem
from pysh.logger import get_logger
from pysh.shell.exit_codes import ExitCode


class InterpreterRegistry:
    """
    Registry of script interpreters.

    Example:
        >>> registry = InterpreterRegistry()
        >>> registry.register('sh', ShellInterpreter())
        >>> await registry.execute('sh', '/home/guest/run.sh', [], context, io, fs)
        0
    """

    def __init__(self):
        self._interpreters: dict[str, ScriptInterpreter] = {}
        self._logger = get_logger('interpreter')

    def register(self, interpreter_id: str, interpreter: ScriptInterpreter) -> None:
        self._interpreters[interpreter_id] = interpreter

    def get(self, interpreter_id: str) -> Optional[ScriptInterpreter]:
        return self._interpreters.get(interpreter_id)

    def ids(self) -> List[str]:
        return sorted(self._interpreters)

    async def execute(
        self,
        interpreter_id: str,
        path: str,
        args: List[str],
        context,
        io,
        fs: VirtualFileSystem
    ) -> int:
        """
        Run the script at ``path`` with the interpreter ``interpreter_id``.

        Returns:
            The script's exit status; 127 for an unknown interpreter, 1 for
            a missing file or an interpreter failure, 126 for an
            unreadable file
        """
        interpreter = self._interpreters.get(interpreter_id)
        if interpreter is None:
            io.stderr.write(f"Interpreter not found: {interpreter_id}\n")
            return ExitCode.NOT_FOUND

        try:
            node = fs.get_node(path, context.user, context.group)
        except PermissionDeniedError:
            io.stderr.write(f"{interpreter_id}: {path}: Permission denied\n")
            return ExitCode.CANNOT_EXECUTE

        if node is None or node.is_directory:
            io.stderr.write(f"{interpreter_id}: {path}: No such file or directory\n")
            return ExitCode.GENERAL_ERROR

        if not node.has_permission(Access.READ, context.user, context.group):
            io.stderr.write(f"{interpreter_id}: {path}: Permission denied\n")
            return ExitCode.CANNOT_EXECUTE

        script = Script(
            interpreter_id=interpreter_id,
            path=path,
            source=node.read(),
            args=list(args),
        )

        self._logger.debug(
            "Running script",
            context={'interpreter': interpreter_id, 'path': path, 'args': len(args)}
        )

        try:
            return int(await interpreter.run(script, context, io))
        except (ShellExit, ScriptExit) as e:
            return int(e.code)
        except Exception as e:
            self._logger.exception(
                "Interpreter failed",
                exc=e,
                context={'interpreter': interpreter_id, 'path': path}
            )
            io.stderr.write(f"Script execution failed: {getattr(e, 'message', e)}\n")
            return ExitCode.GENERAL_ERROR
