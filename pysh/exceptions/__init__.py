"""
PySH Exception Hierarchy

Architecture:
    FileSystemException
    ├── FileNotFoundError
    ├── FileExistsError
    ├── PermissionDeniedError
    ├── DirectoryNotEmptyError
    ├── IsADirectoryError
    ├── NotADirectoryError
    └── InvalidModeError
    ShellException
    ├── CommandNotFoundError
    ├── NotExecutableError
    ├── InterpreterNotFoundError
    ├── ScriptRuntimeError
    ├── CancelledExecution
    └── ShellSyntaxError
    ShellExit (BaseException)
    ScriptExit (BaseException)

Note that FileNotFoundError, FileExistsError, IsADirectoryError and
NotADirectoryError shadow the builtins of the same name when imported
from here.
"""

from .fs_exceptions import (
    FileSystemException,
    FileNotFoundError,
    FileExistsError,
    PermissionDeniedError,
    DirectoryNotEmptyError,
    IsADirectoryError,
    NotADirectoryError,
    InvalidModeError,
)

from .shell_exceptions import (
    ShellException,
    CommandNotFoundError,
    NotExecutableError,
    InterpreterNotFoundError,
    ScriptRuntimeError,
    CancelledExecution,
    ShellSyntaxError,
    ShellExit,
    ScriptExit,
)


__all__ = [
    'FileSystemException',
    'FileNotFoundError',
    'FileExistsError',
    'PermissionDeniedError',
    'DirectoryNotEmptyError',
    'IsADirectoryError',
    'NotADirectoryError',
    'InvalidModeError',
    'ShellException',
    'CommandNotFoundError',
    'NotExecutableError',
    'InterpreterNotFoundError',
    'ScriptRuntimeError',
    'CancelledExecution',
    'ShellSyntaxError',
    'ShellExit',
    'ScriptExit',
]
