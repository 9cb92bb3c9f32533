"""
Virtual File System (VFS) Module

A permission-checked, in-memory hierarchical file system:
- Hierarchical directory tree of FilesystemNode objects
- Owner/group/other permission evaluation for every operation
- Path normalization
- Special handling for the null device and read-only /proc files

Every operation takes the requesting ``user`` and ``group``. Seeding the
initial tree without checks is done through ``BulkLoader`` in
``pysh.filesystem.loader``, never through this class.

Author: YSNRFD
Version: 1.0.0
"""

from typing import Optional, Any, List

from .node import FilesystemNode, Access, is_valid_mode
from .path_resolver import PathResolver
from pysh.exceptions import (
    FileNotFoundError,
    FileExistsError,
    PermissionDeniedError,
    DirectoryNotEmptyError,
    IsADirectoryError,
    NotADirectoryError,
    InvalidModeError,
)
from pysh.logger import get_logger


class VirtualFileSystem:
    """
    Virtual File System.

    Lookup contract: ``get_node`` returns ``None`` for anything missing
    (including a path that runs through a regular file) and raises
    ``PermissionDeniedError`` only when a directory on the way lacks the
    execute bit for the requester. Every other operation raises on
    failure.

    Example:
        >>> fs = VirtualFileSystem()
        >>> fs.write_file('/tmp', 'note.txt', 'alice', 'staff', 'hi\\n')
        >>> fs.read_file('/tmp/note.txt', 'alice', 'staff')
        'hi\\n'
    """

    def __init__(self):
        self._root = FilesystemNode.directory('', owner='root', group='root')
        self._logger = get_logger('filesystem')

    @property
    def root(self) -> FilesystemNode:
        return self._root

    # Path and permission helpers

    @staticmethod
    def normalize_path(path: str) -> str:
        """Normalize to an absolute path ('.' and '..' resolved)."""
        return PathResolver.normalize(path)

    @staticmethod
    def has_permission(
        node: FilesystemNode,
        access: Access,
        user: str,
        group: str
    ) -> bool:
        """
        Evaluate one access bit for a requester.

        The owner triad applies if the user owns the node, else the group
        triad if the group matches, else the other triad.
        """
        return node.has_permission(access, user, group)

    def _require(
        self,
        node: FilesystemNode,
        access: Access,
        path: str,
        user: str,
        group: str,
        operation: str
    ) -> None:
        if not node.has_permission(access, user, group):
            self._logger.debug(
                "Permission denied",
                context={'path': path, 'operation': operation, 'user': user}
            )
            raise PermissionDeniedError(path, operation=operation, user=user)

    def get_node(self, path: str, user: str, group: str) -> Optional[FilesystemNode]:
        """
        Look up a node.

        Args:
            path: Absolute path (normalized here)
            user: Requesting user
            group: Requesting group

        Returns:
            The node, or None if any component is missing

        Raises:
            PermissionDeniedError: If a traversed directory is not searchable
        """
        normalized = self.normalize_path(path)
        current = self._root

        for component in PathResolver.components(normalized):
            if not current.is_directory:
                return None
            self._require(current, Access.EXECUTE, normalized, user, group, "search")
            current = current.children.get(component)
            if current is None:
                return None

        return current

    def _get_existing(self, path: str, user: str, group: str) -> FilesystemNode:
        node = self.get_node(path, user, group)
        if node is None:
            raise FileNotFoundError(self.normalize_path(path))
        return node

    def _get_directory(self, path: str, user: str, group: str) -> FilesystemNode:
        node = self._get_existing(path, user, group)
        if not node.is_directory:
            raise NotADirectoryError(self.normalize_path(path))
        return node

    def exists(self, path: str, user: str, group: str) -> bool:
        try:
            return self.get_node(path, user, group) is not None
        except PermissionDeniedError:
            return False

    def is_directory(self, path: str, user: str, group: str) -> bool:
        try:
            node = self.get_node(path, user, group)
        except PermissionDeniedError:
            return False
        return node is not None and node.is_directory

    def is_file(self, path: str, user: str, group: str) -> bool:
        try:
            node = self.get_node(path, user, group)
        except PermissionDeniedError:
            return False
        return node is not None and node.is_file

    # Creation

    def add_directory(
        self,
        path: str,
        name: str,
        user: str,
        group: str,
        owner: Optional[str] = None,
        dir_group: Optional[str] = None,
        permissions: str = "rwxr-xr-x"
    ) -> FilesystemNode:
        """
        Create a directory ``name`` inside ``path``.

        Requires write permission on the parent. An existing directory
        with the same name is returned unchanged.

        Raises:
            FileNotFoundError: If the parent does not exist
            NotADirectoryError: If the parent is a file
            FileExistsError: If a file with that name exists
            PermissionDeniedError: If the parent is not writable
        """
        if not is_valid_mode(permissions):
            raise InvalidModeError(str(permissions))

        parent_path = self.normalize_path(path)
        parent = self._get_directory(parent_path, user, group)
        full_path = PathResolver.join(parent_path, name)

        existing = parent.children.get(name)
        if existing is not None:
            if existing.is_directory:
                return existing
            raise FileExistsError(full_path)

        self._require(parent, Access.WRITE, parent_path, user, group, "mkdir")

        node = FilesystemNode.directory(
            name,
            owner=owner or user,
            group=dir_group or group,
            permissions=permissions,
        )
        parent.add_child(node)

        self._logger.debug(
            "Created directory",
            context={'path': full_path, 'owner': node.owner, 'mode': permissions}
        )
        return node

    def write_file(
        self,
        path: str,
        name: str,
        user: str,
        group: str,
        content: str = "",
        permissions: str = "rw-r--r--",
        append: bool = False,
        owner: Optional[str] = None,
        file_group: Optional[str] = None
    ) -> FilesystemNode:
        """
        Create, overwrite or append to the file ``name`` inside ``path``.

        A new file needs write permission on the parent and is created
        with ``permissions``; an existing file needs write permission on
        the file itself and keeps its mode. Writes to the null device are
        accepted and discarded.

        Raises:
            FileNotFoundError: If the parent does not exist
            IsADirectoryError: If the target is a directory
            PermissionDeniedError: If the write is not allowed
        """
        parent_path = self.normalize_path(path)
        parent = self._get_directory(parent_path, user, group)
        full_path = PathResolver.join(parent_path, name)

        existing = parent.children.get(name)
        if existing is not None:
            if existing.is_directory:
                raise IsADirectoryError(full_path)
            if existing.is_null_device:
                return existing
            if existing.is_read_only_device:
                raise PermissionDeniedError(full_path, operation="write", user=user)
            self._require(existing, Access.WRITE, full_path, user, group, "write")
            existing.write(content, append=append)
            self._logger.debug(
                "Appended to file" if append else "Wrote file",
                context={'path': full_path, 'size': existing.size}
            )
            return existing

        if not is_valid_mode(permissions):
            raise InvalidModeError(str(permissions), path=full_path)
        self._require(parent, Access.WRITE, parent_path, user, group, "create")

        node = FilesystemNode.file(
            name,
            content=content,
            owner=owner or user,
            group=file_group or group,
            permissions=permissions,
        )
        parent.add_child(node)

        self._logger.debug(
            "Created file",
            context={'path': full_path, 'size': node.size, 'mode': permissions}
        )
        return node

    def touch(self, path: str, user: str, group: str) -> FilesystemNode:
        """Refresh a node's timestamp, creating an empty file if missing."""
        normalized = self.normalize_path(path)
        node = self.get_node(normalized, user, group)
        if node is None:
            parent_path, name = PathResolver.split(normalized)
            return self.write_file(parent_path, name, user, group)
        if node.is_null_device:
            return node
        self._require(node, Access.WRITE, normalized, user, group, "touch")
        node.touch()
        return node

    # Reading

    def read_file(self, path: str, user: str, group: str) -> str:
        """
        Read a file's content.

        Raises:
            FileNotFoundError: If the path does not exist
            IsADirectoryError: If the path is a directory
            PermissionDeniedError: If the file is not readable
        """
        normalized = self.normalize_path(path)
        node = self._get_existing(normalized, user, group)
        if node.is_directory:
            raise IsADirectoryError(normalized)
        self._require(node, Access.READ, normalized, user, group, "read")
        return node.read()

    def list_directory(
        self,
        path: str,
        user: str,
        group: str,
        show_hidden: bool = False
    ) -> List[FilesystemNode]:
        """
        List a directory's children sorted by name.

        Raises:
            FileNotFoundError, NotADirectoryError, PermissionDeniedError
        """
        normalized = self.normalize_path(path)
        directory = self._get_directory(normalized, user, group)
        self._require(directory, Access.READ, normalized, user, group, "list")

        entries = [
            child for name, child in sorted(directory.children.items())
            if show_hidden or not name.startswith('.')
        ]
        return entries

    # Metadata

    def change_permissions(self, path: str, mode: str, user: str, group: str) -> None:
        """
        Set a node's permission string. Only the owner may do this.

        Raises:
            InvalidModeError: If ``mode`` is not a 9-character mode string
        """
        normalized = self.normalize_path(path)
        node = self._get_existing(normalized, user, group)
        if not is_valid_mode(mode):
            raise InvalidModeError(str(mode), path=normalized)
        if node.owner != user or node.is_read_only_device:
            raise PermissionDeniedError(normalized, operation="chmod", user=user)
        node.chmod(mode)
        self._logger.debug("Changed permissions", context={'path': normalized, 'mode': mode})

    def change_ownership(
        self,
        path: str,
        owner: str,
        group_name: Optional[str],
        user: str,
        group: str
    ) -> None:
        """Give a node to another owner (and group). Only the owner may do this."""
        normalized = self.normalize_path(path)
        node = self._get_existing(normalized, user, group)
        if node.owner != user or node.is_read_only_device:
            raise PermissionDeniedError(normalized, operation="chown", user=user)
        node.chown(owner, group_name)
        self._logger.debug(
            "Changed ownership",
            context={'path': normalized, 'owner': owner, 'group': group_name}
        )

    # Removal

    def remove(self, path: str, user: str, group: str, recursive: bool = False) -> None:
        """
        Remove a file, an empty directory, or (recursive) a whole subtree.

        Requires write permission on the parent directory.

        Raises:
            FileNotFoundError: If the path does not exist
            DirectoryNotEmptyError: If a non-empty directory is removed
                without ``recursive``
            PermissionDeniedError: If the parent is not writable, or the
                target is the root or a device file
        """
        normalized = self.normalize_path(path)
        if normalized == '/':
            raise PermissionDeniedError('/', operation="remove", user=user)

        parent_path, name = PathResolver.split(normalized)
        parent = self._get_directory(parent_path, user, group)
        node = parent.children.get(name)
        if node is None:
            raise FileNotFoundError(normalized)
        if node.device is not None:
            raise PermissionDeniedError(normalized, operation="remove", user=user)
        if node.is_directory and node.children and not recursive:
            raise DirectoryNotEmptyError(normalized)

        self._require(parent, Access.WRITE, parent_path, user, group, "remove")
        parent.remove_child(name)

        self._logger.debug(
            "Removed node",
            context={'path': normalized, 'type': node.type.value, 'recursive': recursive}
        )

    # Statistics

    def calculate_size(self, path: str, user: str, group: str) -> int:
        """Total content bytes below (and including) a node."""
        node = self._get_existing(path, user, group)
        return self._subtree_size(node)

    def _subtree_size(self, node: FilesystemNode) -> int:
        if node.is_file:
            return node.size
        return sum(self._subtree_size(child) for child in node.children.values())

    def get_stats(self) -> dict[str, Any]:
        """Get filesystem statistics."""
        files = 0
        directories = 0
        stack = [self._root]
        while stack:
            node = stack.pop()
            if node.is_directory:
                directories += 1
                stack.extend(node.children.values())
            else:
                files += 1
        return {
            'total_nodes': files + directories,
            'files': files,
            'directories': directories,
            'total_size': self._subtree_size(self._root),
        }
