"""
PySH Command Registry

A closed registry mapping command names to handlers. Every handler
shares the same coroutine signature::

    async def handler(args: list[str], context, io) -> int

Author: YSNRFD
Version: 1.0.0
"""

from __future__ import annotations

import inspect
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, List

from pysh.logger import get_logger


CommandHandler = Callable[[List[str], Any, Any], Awaitable[int]]


# Utilities that also answer to /bin/<name> and /usr/bin/<name>
STANDARD_UTILITIES = frozenset({
    'cat', 'cd', 'chmod', 'chown', 'echo', 'env', 'false', 'ls', 'mkdir',
    'pwd', 'rm', 'rmdir', 'tail', 'touch', 'true', 'whoami',
})


@dataclass
class CommandEntry:
    """A registered command."""
    name: str
    handler: CommandHandler
    description: str = ""
    usage: Optional[str] = None
    raw_args: bool = False


class CommandRegistry:
    """
    Registry of named commands.

    ``raw_args`` marks a command that receives its arguments with the
    original quoting intact and performs its own quote stripping and
    variable expansion (echo). Every other command receives fully
    expanded arguments.

    Example:
        >>> registry = CommandRegistry()
        >>> registry.register('hello', hello, "Say hello", "hello [name]")
        >>> registry.get('hello').description
        'Say hello'
    """

    def __init__(self):
        self._commands: dict[str, CommandEntry] = {}
        self._logger = get_logger('registry')

    def register(
        self,
        name: str,
        handler: CommandHandler,
        description: str = "",
        usage: Optional[str] = None,
        raw_args: bool = False
    ) -> CommandEntry:
        """
        Register a command handler.

        Re-registering a name replaces the previous entry.

        Raises:
            TypeError: If the handler is not a coroutine function
            ValueError: If the name is empty or contains whitespace or '/'
        """
        if not name or any(c.isspace() for c in name) or '/' in name:
            raise ValueError(f"Invalid command name: {name!r}")
        if not inspect.iscoroutinefunction(handler):
            raise TypeError(f"Handler for '{name}' must be an async function")

        entry = CommandEntry(
            name=name,
            handler=handler,
            description=description,
            usage=usage,
            raw_args=raw_args,
        )
        if name in self._commands:
            self._logger.debug("Replacing command", context={'name': name})
        self._commands[name] = entry
        return entry

    def unregister(self, name: str) -> bool:
        return self._commands.pop(name, None) is not None

    def get(self, name: str) -> Optional[CommandEntry]:
        return self._commands.get(name)

    def has(self, name: str) -> bool:
        return name in self._commands

    def names(self) -> List[str]:
        """Registered names in sorted order."""
        return sorted(self._commands)

    def entries(self) -> List[CommandEntry]:
        return [self._commands[name] for name in self.names()]

    def is_standard_utility(self, name: str) -> bool:
        return name in STANDARD_UTILITIES

    def __contains__(self, name: str) -> bool:
        return name in self._commands

    def __len__(self) -> int:
        return len(self._commands)
