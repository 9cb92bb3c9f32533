"""
PySH - A POSIX-like Shell Simulation

An in-process shell over a permission-checked virtual file system:
pipelines, redirection, variable and glob expansion, PATH resolution
and shebang scripts, implemented in Python 3.10+ using only the
standard library.
"""

__version__ = "1.0.0"
__author__ = "YSNRFD"

from .filesystem.vfs import VirtualFileSystem
from .shell.context import CommandContext, create_context
from .shell.shell import Shell, create_shell

__all__ = [
    'VirtualFileSystem',
    'CommandContext',
    'create_context',
    'Shell',
    'create_shell',
]
