"""
Shared fixtures for the PySH test suite.
"""

from typing import Optional, Tuple

from pysh.core.config_loader import Config
from pysh.filesystem.path_resolver import PathResolver
from pysh.main import boot
from pysh.presentation import BufferRenderer
from pysh.shell.shell import Shell
from pysh.shell.streams import IOStreams, create_io_streams


def make_shell(config: Optional[Config] = None) -> Tuple[Shell, BufferRenderer]:
    """A seeded session for the default guest user, recording its output."""
    renderer = BufferRenderer()
    shell = boot(config or Config(), renderer)
    return shell, renderer


def write(shell: Shell, path: str, content: str, permissions: str = "rw-r--r--") -> None:
    """Create a file as the session user."""
    context = shell.context
    directory, name = PathResolver.split(context.resolve_path(path))
    context.fs.write_file(
        directory, name, context.user, context.group, content, permissions=permissions
    )


def read(shell: Shell, path: str) -> str:
    """Read a file as the session user."""
    context = shell.context
    return context.fs.read_file(context.resolve_path(path), context.user, context.group)


def capture_streams() -> Tuple[IOStreams, list, list]:
    """Streams whose stdout and stderr are collected into lists."""
    io = create_io_streams()
    out: list = []
    err: list = []
    io.stdout.on(out.append)
    io.stderr.on(err.append)
    return io, out, err
