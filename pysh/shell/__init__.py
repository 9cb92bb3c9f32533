"""
PySH Shell Module

Command execution for a session:
- Parser and expander
- Command resolver
- Pipeline and redirection orchestrator
- Script interpreters
- Built-in commands
"""

from .builtins import BuiltinCommands
from .context import CommandContext, create_context
from .exit_codes import ExitCode
from .expander import Expander
from .parser import CommandParser, Redirections, TokenizedCommand
from .resolver import CommandResolver, ResolutionKind, ResolvedCommand, parse_shebang
from .shell import Shell, create_shell
from .streams import (
    CancellationToken,
    InputStream,
    IOStreams,
    OutputStream,
    create_io_streams,
)

__all__ = [
    'BuiltinCommands',
    'CommandContext',
    'create_context',
    'ExitCode',
    'Expander',
    'CommandParser',
    'Redirections',
    'TokenizedCommand',
    'CommandResolver',
    'ResolutionKind',
    'ResolvedCommand',
    'parse_shebang',
    'Shell',
    'create_shell',
    'CancellationToken',
    'InputStream',
    'IOStreams',
    'OutputStream',
    'create_io_streams',
]
