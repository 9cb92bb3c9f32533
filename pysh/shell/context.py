"""
Command Context

The single per-session object passed by reference to every command,
the resolver and the interpreters: environment, history, the
filesystem handle and a back-reference to the running shell.

Author: YSNRFD
Version: 1.0.0
"""

from dataclasses import dataclass, field
from typing import Any, List, Optional

from pysh.core.config_loader import Config, get_config
from pysh.filesystem.path_resolver import PathResolver
from pysh.filesystem.vfs import VirtualFileSystem


@dataclass
class CommandContext:
    """Mutable session state shared by everything a session runs."""
    fs: VirtualFileSystem
    env: dict[str, str] = field(default_factory=dict)
    history: List[str] = field(default_factory=list)
    group: str = "guest"
    shell: Optional[Any] = None

    @property
    def cwd(self) -> str:
        return self.env.get('PWD') or '/'

    @property
    def user(self) -> str:
        return self.env.get('USER', '')

    @property
    def home(self) -> str:
        return self.env.get('HOME') or '/'

    @property
    def last_exit_code(self) -> int:
        try:
            return int(self.env.get('LAST_EXIT_CODE', '0'))
        except ValueError:
            return 0

    def set_exit_code(self, code: int) -> None:
        """Record a status under both LAST_EXIT_CODE and ``?``."""
        value = str(int(code))
        self.env['LAST_EXIT_CODE'] = value
        self.env['?'] = value

    def resolve_path(self, path: str) -> str:
        """Absolute, normalized form of ``path`` relative to PWD."""
        if path == '~' or path.startswith('~/'):
            path = self.home + path[1:]
        return PathResolver.resolve(path, self.cwd)


def create_context(fs: VirtualFileSystem, config: Optional[Config] = None) -> CommandContext:
    """
    Build the session context from configuration.

    The working directory starts at the user's home.
    """
    config = config or get_config()
    session = config.session
    env = {
        'PWD': session.home,
        'HOME': session.home,
        'USER': session.user,
        'SHELL': session.shell,
        'PATH': session.path,
        'HOSTNAME': session.hostname,
        'LAST_EXIT_CODE': '0',
        '?': '0',
    }
    return CommandContext(fs=fs, env=env, group=session.group)
