"""
Filesystem Exceptions

Exceptions raised by the virtual filesystem. Every class carries a
``strerror`` in conventional shell phrasing so command handlers can
report ``<name>: <path>: <strerror>`` without inspecting the type.

Author: YSNRFD
Version: 1.0.0
"""

from typing import Optional, Any


class FileSystemException(Exception):
    """
    Base exception for all filesystem-related errors.

    Attributes:
        message: Human-readable error description
        path: Path associated with the error (if applicable)
        error_code: Numeric error code for programmatic handling
        strerror: Short shell-style reason ("Permission denied", ...)
    """

    strerror = "Input/output error"

    def __init__(
        self,
        message: str,
        path: Optional[str] = None,
        error_code: Optional[int] = None,
        context: Optional[dict[str, Any]] = None
    ) -> None:
        super().__init__(message)
        self.message = message
        self.path = path
        self.error_code = error_code or 4000
        self.context = context or {}
        if path:
            self.context["path"] = path

    def __str__(self) -> str:
        base = f"[Error {self.error_code}] {self.message}"
        if self.path:
            base = f"{base} (path={self.path})"
        return base


class FileNotFoundError(FileSystemException):
    """
    The specified file does not exist.

    Example:
        >>> raise FileNotFoundError("/path/to/file")
    """

    strerror = "No such file or directory"

    def __init__(
        self,
        path: str,
        context: Optional[dict[str, Any]] = None
    ) -> None:
        super().__init__(
            message=f"File not found: {path}",
            path=path,
            error_code=4001,
            context=context
        )


class FileExistsError(FileSystemException):
    """The specified path already exists and cannot be replaced."""

    strerror = "File exists"

    def __init__(
        self,
        path: str,
        context: Optional[dict[str, Any]] = None
    ) -> None:
        super().__init__(
            message=f"File already exists: {path}",
            path=path,
            error_code=4002,
            context=context
        )


class PermissionDeniedError(FileSystemException):
    """
    Permission denied for the operation.

    Raised when the requesting user/group lacks the needed bit in the
    governing permission triad, or is not the owner for owner-only
    operations such as chmod.

    Example:
        >>> raise PermissionDeniedError("/root/file", operation="write")
    """

    strerror = "Permission denied"

    def __init__(
        self,
        path: str,
        operation: Optional[str] = None,
        user: Optional[str] = None,
        context: Optional[dict[str, Any]] = None
    ) -> None:
        ctx = context or {}
        if operation:
            ctx["operation"] = operation
        if user is not None:
            ctx["user"] = user
        super().__init__(
            message=f"Permission denied: {operation or 'access'} on {path}",
            path=path,
            error_code=4003,
            context=ctx
        )
        self.operation = operation
        self.user = user


class DirectoryNotEmptyError(FileSystemException):
    """Attempted to remove a directory that still has entries."""

    strerror = "Directory not empty"

    def __init__(
        self,
        path: str,
        context: Optional[dict[str, Any]] = None
    ) -> None:
        super().__init__(
            message=f"Directory not empty: {path}",
            path=path,
            error_code=4004,
            context=context
        )


class IsADirectoryError(FileSystemException):
    """A file operation was attempted on a directory."""

    strerror = "Is a directory"

    def __init__(
        self,
        path: str,
        context: Optional[dict[str, Any]] = None
    ) -> None:
        super().__init__(
            message=f"Is a directory: {path}",
            path=path,
            error_code=4008,
            context=context
        )


class NotADirectoryError(FileSystemException):
    """A directory operation was attempted on a file."""

    strerror = "Not a directory"

    def __init__(
        self,
        path: str,
        context: Optional[dict[str, Any]] = None
    ) -> None:
        super().__init__(
            message=f"Not a directory: {path}",
            path=path,
            error_code=4009,
            context=context
        )


class InvalidModeError(FileSystemException):
    """A permission string or octal mode could not be parsed."""

    strerror = "Invalid mode"

    def __init__(
        self,
        mode: str,
        path: Optional[str] = None,
        context: Optional[dict[str, Any]] = None
    ) -> None:
        ctx = context or {}
        ctx["mode"] = mode
        super().__init__(
            message=f"Invalid mode: {mode!r}",
            path=path,
            error_code=4010,
            context=ctx
        )
        self.mode = mode
