"""
Command Resolver

Decides what a command name refers to: a registered builtin, a mapped
executable path, a script that needs an interpreter, a file that may not
be executed, or nothing at all.

Author: YSNRFD
Version: 1.0.0
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, List

from pysh.core.registry import CommandRegistry, CommandHandler
from pysh.exceptions import PermissionDeniedError
from pysh.filesystem.node import Access, FilesystemNode
from pysh.filesystem.path_resolver import PathResolver
from pysh.logger import get_logger


class ResolutionKind(Enum):
    BUILTIN = 'builtin'
    EXECUTABLE = 'executable'
    SCRIPT = 'script'
    NOT_EXECUTABLE = 'not_executable'
    NOT_FOUND = 'not_found'


@dataclass
class ResolvedCommand:
    """Outcome of resolving one command name."""
    kind: ResolutionKind
    handler: Optional[CommandHandler] = None
    path: Optional[str] = None
    interpreter: Optional[str] = None
    name: Optional[str] = None

    @property
    def runnable(self) -> bool:
        return self.kind in (
            ResolutionKind.BUILTIN,
            ResolutionKind.EXECUTABLE,
            ResolutionKind.SCRIPT,
        )


def parse_shebang(content: str) -> Optional[str]:
    """
    Extract the interpreter id from a ``#!`` first line.

    ``#!/usr/bin/env node`` yields ``node``; anything else yields the
    first word after ``#!``.
    """
    if not content.startswith('#!'):
        return None
    first_line = content.split('\n', 1)[0][2:].strip()
    words = first_line.split()
    if not words:
        return None
    if words[0] == '/usr/bin/env':
        return words[1] if len(words) > 1 else None
    return words[0]


class CommandResolver:
    """
    Resolves command names in a fixed order.

    1. Registered builtin name
    2. Path-like name: the node at that path (relative to PWD)
    3. Each directory of PATH in turn; the first one that yields any
       result, including ``NOT_EXECUTABLE``, wins

    Files are judged the same way in steps 2 and 3: the execute bit is
    required, then a registered path alias, a shebang line or a builtin
    binding makes the file runnable.
    """

    def __init__(self, registry: CommandRegistry):
        self._registry = registry
        self._executables: dict[str, CommandHandler] = {}
        self._logger = get_logger('resolver')

    def register_executable(self, path: str, handler: CommandHandler) -> None:
        """Map an absolute path to a handler (e.g. /bin/cat to cat)."""
        self._executables[PathResolver.normalize(path)] = handler

    def executable_paths(self) -> List[str]:
        return sorted(self._executables)

    def resolve(self, name: str, context) -> ResolvedCommand:
        entry = self._registry.get(name)
        if entry is not None:
            return ResolvedCommand(ResolutionKind.BUILTIN, entry.handler, name=name)

        if PathResolver.is_path_like(name):
            full_path = context.resolve_path(name)
            result = self._resolve_file(full_path, context)
            result = result or ResolvedCommand(ResolutionKind.NOT_FOUND, path=full_path)
            result.name = name
            self._logger.debug(
                "Resolved path",
                context={'name': name, 'kind': result.kind.value, 'path': full_path}
            )
            return result

        path_dirs = [d for d in context.env.get('PATH', '').split(':') if d]
        for directory in path_dirs:
            candidate = PathResolver.join('/', directory, name)
            result = self._resolve_file(candidate, context)
            if result is not None:
                result.name = name
                self._logger.debug(
                    "Resolved via PATH",
                    context={'name': name, 'kind': result.kind.value, 'path': candidate}
                )
                return result

        return ResolvedCommand(ResolutionKind.NOT_FOUND, name=name)

    def _lookup(self, path: str, context) -> Optional[FilesystemNode]:
        try:
            return context.fs.get_node(path, context.user, context.group)
        except PermissionDeniedError:
            # An unsearchable directory hides the file
            return None

    def _resolve_file(self, path: str, context) -> Optional[ResolvedCommand]:
        """Judge the file at ``path``; None when there is nothing there."""
        node = self._lookup(path, context)
        alias = self._executables.get(path)

        if node is None or node.is_directory:
            if alias is not None and node is None:
                return ResolvedCommand(ResolutionKind.EXECUTABLE, alias, path=path)
            return None

        if not node.has_permission(Access.EXECUTE, context.user, context.group):
            return ResolvedCommand(ResolutionKind.NOT_EXECUTABLE, path=path)

        if alias is not None:
            return ResolvedCommand(ResolutionKind.EXECUTABLE, alias, path=path)

        interpreter = parse_shebang(node.content or '')
        if interpreter:
            return ResolvedCommand(
                ResolutionKind.SCRIPT, path=path, interpreter=interpreter
            )

        if node.binding:
            entry = self._registry.get(node.binding)
            if entry is not None:
                return ResolvedCommand(ResolutionKind.BUILTIN, entry.handler, path=path)

        return None
