"""
Bulk Loader

Privileged population of a VirtualFileSystem, used only when a session
is being set up. It writes nodes straight into the tree without any
permission checks, so it is kept apart from the checked API and is
never imported by the shell itself.

Author: YSNRFD
Version: 1.0.0
"""

from typing import Iterable, Optional

from .devices import render_proc_files
from .node import FilesystemNode, DeviceKind
from .path_resolver import PathResolver
from .vfs import VirtualFileSystem
from pysh.core.config_loader import Config, get_config
from pysh.exceptions import FileExistsError, NotADirectoryError
from pysh.logger import get_logger


class BulkLoader:
    """
    Unchecked writer for seeding a filesystem.

    Example:
        >>> loader = BulkLoader(fs)
        >>> loader.load_directory('/home/alice', 'alice', 'staff')
        >>> loader.load_file('/home/alice', 'notes.txt', 'alice', 'staff', 'hi')
    """

    def __init__(self, fs: VirtualFileSystem):
        self._fs = fs
        self._logger = get_logger('loader')

    def _walk(self, path: str) -> Optional[FilesystemNode]:
        current = self._fs.root
        for component in PathResolver.components(PathResolver.normalize(path)):
            if not current.is_directory:
                return None
            current = current.children.get(component)
            if current is None:
                return None
        return current

    def load_directory(
        self,
        path: str,
        owner: str = "root",
        group: str = "root",
        permissions: str = "rwxr-xr-x"
    ) -> FilesystemNode:
        """
        Create a directory and any missing parents.

        Missing parents get the same owner, group and mode. An existing
        directory at ``path`` is returned unchanged.
        """
        normalized = PathResolver.normalize(path)
        current = self._fs.root
        walked = ''

        for component in PathResolver.components(normalized):
            walked = f"{walked}/{component}"
            child = current.children.get(component)
            if child is None:
                child = FilesystemNode.directory(
                    component, owner=owner, group=group, permissions=permissions
                )
                current.add_child(child)
            elif not child.is_directory:
                raise NotADirectoryError(walked)
            current = child

        return current

    def load_file(
        self,
        directory: str,
        name: str,
        owner: str = "root",
        group: str = "root",
        content: str = "",
        permissions: str = "rw-r--r--",
        binding: Optional[str] = None,
        device: Optional[DeviceKind] = None
    ) -> FilesystemNode:
        """Create or replace a file, creating its directory if needed."""
        parent = self._walk(directory)
        if parent is None:
            parent = self.load_directory(directory)
        elif not parent.is_directory:
            raise NotADirectoryError(PathResolver.normalize(directory))

        existing = parent.children.get(name)
        if existing is not None and existing.is_directory:
            raise FileExistsError(PathResolver.join(directory, name))

        node = FilesystemNode.file(
            name,
            content=content,
            owner=owner,
            group=group,
            permissions=permissions,
            binding=binding,
            device=device,
        )
        parent.add_child(node)
        return node


_BASE_DIRECTORIES = [
    ('/bin', 'rwxr-xr-x'),
    ('/boot', 'rwxr-xr-x'),
    ('/dev', 'rwxr-xr-x'),
    ('/etc', 'rwxr-xr-x'),
    ('/home', 'rwxr-xr-x'),
    ('/lib', 'rwxr-xr-x'),
    ('/proc', 'r-xr-xr-x'),
    ('/root', 'rwx------'),
    ('/tmp', 'rwxrwxrwx'),
    ('/usr', 'rwxr-xr-x'),
    ('/usr/bin', 'rwxr-xr-x'),
    ('/usr/local', 'rwxr-xr-x'),
    ('/usr/local/bin', 'rwxr-xr-x'),
    ('/var', 'rwxr-xr-x'),
    ('/var/log', 'rwxr-xr-x'),
    ('/var/tmp', 'rwxrwxrwx'),
]


def seed_base_layout(
    fs: VirtualFileSystem,
    config: Optional[Config] = None,
    binaries: Iterable[str] = ()
) -> BulkLoader:
    """
    Populate a fresh filesystem with the standard layout.

    Creates the usual top-level directories, the session user's home,
    the null device, the /proc files and one executable binding file
    under /bin for every name in ``binaries``.
    """
    config = config or get_config()
    session = config.session
    loader = BulkLoader(fs)

    for path, mode in _BASE_DIRECTORIES:
        loader.load_directory(path, 'root', 'root', mode)

    # Parents already exist, so only the home directory itself is user-owned
    loader.load_directory(session.home, session.user, session.group)

    null_dir, null_name = PathResolver.split(config.filesystem.null_device)
    loader.load_file(
        null_dir, null_name, 'root', 'root',
        permissions='rw-rw-rw-', device=DeviceKind.NULL
    )

    for name, content in render_proc_files().items():
        loader.load_file(
            config.filesystem.proc_root, name, 'root', 'root',
            content=content, permissions='r--r--r--', device=DeviceKind.PROC
        )

    loader.load_file(
        '/etc', 'hostname', 'root', 'root', content=f"{session.hostname}\n"
    )
    loader.load_file(
        '/etc', 'passwd', 'root', 'root',
        content=(
            "root:x:0:0:root:/root:/bin/pysh\n"
            f"{session.user}:x:1000:1000::{session.home}:{session.shell}\n"
        )
    )

    count = 0
    for name in binaries:
        loader.load_file(
            '/bin', name, 'root', 'root',
            permissions='rwxr-xr-x', binding=name
        )
        count += 1

    get_logger('loader').info(
        "Seeded base filesystem",
        context={'user': session.user, 'home': session.home, 'binaries': count}
    )
    return loader
