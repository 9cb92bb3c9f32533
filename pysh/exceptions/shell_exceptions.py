"""
Shell Exceptions

Exceptions raised by the parser, resolver, interpreters and the
orchestrator. ShellExit and ScriptExit are control-flow signals and
derive from BaseException so that generic ``except Exception`` dispatch
wrappers never swallow them.

Author: YSNRFD
Version: 1.0.0
"""

from typing import Optional, Any


class ShellException(Exception):
    """
    Base exception for shell-level errors.

    Attributes:
        message: Human-readable error description
        error_code: Numeric error code for programmatic handling
        exit_code: Exit status the shell reports for this error
    """

    exit_code = 1

    def __init__(
        self,
        message: str,
        error_code: Optional[int] = None,
        context: Optional[dict[str, Any]] = None
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_code = error_code or 5000
        self.context = context or {}

    def __str__(self) -> str:
        return f"[Error {self.error_code}] {self.message}"


class CommandNotFoundError(ShellException):
    """No builtin, executable or script matched the command name."""

    exit_code = 127

    def __init__(self, name: str) -> None:
        super().__init__(
            f"Command '{name}' not found",
            error_code=5001,
            context={'command': name}
        )
        self.name = name


class NotExecutableError(ShellException):
    """The command resolved to a file without the execute bit."""

    exit_code = 126

    def __init__(self, name: str, path: Optional[str] = None) -> None:
        super().__init__(
            f"{name}: Permission denied",
            error_code=5002,
            context={'command': name, 'path': path}
        )
        self.name = name
        self.path = path


class InterpreterNotFoundError(ShellException):
    """A shebang named an interpreter that is not registered."""

    exit_code = 127

    def __init__(self, interpreter_id: str) -> None:
        super().__init__(
            f"Interpreter not found: {interpreter_id}",
            error_code=5003,
            context={'interpreter': interpreter_id}
        )
        self.interpreter_id = interpreter_id


class ScriptRuntimeError(ShellException):
    """A script failed in a way its interpreter could not report itself."""

    def __init__(
        self,
        message: str,
        path: Optional[str] = None,
        line: Optional[int] = None
    ) -> None:
        super().__init__(
            message,
            error_code=5004,
            context={'path': path, 'line': line}
        )
        self.path = path
        self.line = line


class CancelledExecution(ShellException):
    """The running command line was interrupted through its token."""

    exit_code = 130

    def __init__(self, message: str = "Execution cancelled") -> None:
        super().__init__(message, error_code=5005)


class ShellSyntaxError(ShellException):
    """The command line could not be parsed."""

    exit_code = 2

    def __init__(self, token: str) -> None:
        super().__init__(
            f"syntax error near unexpected token '{token}'",
            error_code=5006,
            context={'token': token}
        )
        self.token = token


class ShellExit(BaseException):
    """Raised by ``exit`` to unwind to the nearest script or session."""

    def __init__(self, code: int = 0) -> None:
        super().__init__(code)
        self.code = code


class ScriptExit(BaseException):
    """Raised by ``process.exit`` inside the restricted script dialect."""

    def __init__(self, code: int = 0) -> None:
        super().__init__(code)
        self.code = code
