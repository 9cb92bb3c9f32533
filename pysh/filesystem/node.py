"""
Filesystem Node Module

The node abstraction for the virtual file system. A node is either a
file (with text content) or a directory (with a children map), and
carries a 9-character ``rwxr-xr-x`` style permission string.

Author: YSNRFD
Version: 1.0.0
"""

import re
import time
from dataclasses import dataclass, field
from enum import Enum, Flag
from typing import Optional, Any

from pysh.exceptions import InvalidModeError


_MODE_PATTERN = re.compile(r'^[r-][w-][x-][r-][w-][x-][r-][w-][x-]$')


class NodeType(Enum):
    """Types of nodes."""
    FILE = 'file'
    DIRECTORY = 'directory'


class DeviceKind(Enum):
    """Special files handled outside the generic content model."""
    NULL = 'null'
    PROC = 'proc'


class Access(Enum):
    """Access kinds checked against a permission triad."""
    READ = 'r'
    WRITE = 'w'
    EXECUTE = 'x'


class Permission(Flag):
    """File permission bits."""
    OWNER_READ = 0o400
    OWNER_WRITE = 0o200
    OWNER_EXEC = 0o100

    GROUP_READ = 0o040
    GROUP_WRITE = 0o020
    GROUP_EXEC = 0o010

    OTHER_READ = 0o004
    OTHER_WRITE = 0o002
    OTHER_EXEC = 0o001


# Bit order of the 9-character mode string
_MODE_BITS = (
    (Permission.OWNER_READ, 'r'),
    (Permission.OWNER_WRITE, 'w'),
    (Permission.OWNER_EXEC, 'x'),
    (Permission.GROUP_READ, 'r'),
    (Permission.GROUP_WRITE, 'w'),
    (Permission.GROUP_EXEC, 'x'),
    (Permission.OTHER_READ, 'r'),
    (Permission.OTHER_WRITE, 'w'),
    (Permission.OTHER_EXEC, 'x'),
)


def is_valid_mode(mode: Any) -> bool:
    """Check a value is a 9-character permission string."""
    return isinstance(mode, str) and _MODE_PATTERN.match(mode) is not None


def mode_from_octal(octal: str) -> str:
    """
    Convert an octal mode ("755") to a permission string ("rwxr-xr-x").

    Raises:
        InvalidModeError: If the value is not a 3-digit octal number
    """
    if not re.fullmatch(r'0?[0-7]{3}', octal or ''):
        raise InvalidModeError(octal)
    value = int(octal, 8)
    return ''.join(
        char if value & bit.value else '-'
        for bit, char in _MODE_BITS
    )


def mode_to_octal(mode: str) -> str:
    """Convert a permission string ("rw-r--r--") to octal ("644")."""
    if not is_valid_mode(mode):
        raise InvalidModeError(mode)
    value = 0
    for (bit, _), char in zip(_MODE_BITS, mode):
        if char != '-':
            value |= bit.value
    return f"{value:03o}"


def content_size(content: Optional[str]) -> int:
    """Size in bytes of the UTF-8 encoded content."""
    if not content:
        return 0
    return len(content.encode('utf-8'))


@dataclass
class FilesystemNode:
    """
    A file or directory in the virtual tree.

    Files hold ``content``; directories hold ``children``. ``binding``
    names a registered builtin that this file stands for (the files
    seeded under /bin), and ``device`` marks the null device and the
    generated /proc files.
    """

    type: NodeType
    name: str
    permissions: str = "rw-r--r--"
    owner: str = "root"
    group: str = "root"
    size: int = 0
    modified: float = field(default_factory=time.time)
    content: Optional[str] = None
    children: Optional[dict[str, 'FilesystemNode']] = None
    binding: Optional[str] = None
    device: Optional[DeviceKind] = None

    def __post_init__(self):
        if not is_valid_mode(self.permissions):
            raise InvalidModeError(str(self.permissions), path=self.name)
        if self.type == NodeType.DIRECTORY:
            if self.children is None:
                self.children = {}
            self.content = None
            self.size = 0
        else:
            self.children = None
            if self.content is None:
                self.content = ""
            self.size = content_size(self.content)

    @classmethod
    def directory(
        cls,
        name: str,
        owner: str = "root",
        group: str = "root",
        permissions: str = "rwxr-xr-x"
    ) -> 'FilesystemNode':
        return cls(
            type=NodeType.DIRECTORY,
            name=name,
            permissions=permissions,
            owner=owner,
            group=group,
        )

    @classmethod
    def file(
        cls,
        name: str,
        content: str = "",
        owner: str = "root",
        group: str = "root",
        permissions: str = "rw-r--r--",
        binding: Optional[str] = None,
        device: Optional[DeviceKind] = None
    ) -> 'FilesystemNode':
        return cls(
            type=NodeType.FILE,
            name=name,
            permissions=permissions,
            owner=owner,
            group=group,
            content=content,
            binding=binding,
            device=device,
        )

    @property
    def is_directory(self) -> bool:
        return self.type == NodeType.DIRECTORY

    @property
    def is_file(self) -> bool:
        return self.type == NodeType.FILE

    @property
    def is_null_device(self) -> bool:
        return self.device == DeviceKind.NULL

    @property
    def is_read_only_device(self) -> bool:
        return self.device == DeviceKind.PROC

    def triad_for(self, user: str, group: str) -> str:
        """
        Select the permission triad governing a requester.

        Owner if the user matches, else group if the group matches,
        else other. There is no superuser override.
        """
        if user == self.owner:
            return self.permissions[0:3]
        if group == self.group:
            return self.permissions[3:6]
        return self.permissions[6:9]

    def has_permission(self, access: Access, user: str, group: str) -> bool:
        """Check if a requester holds a specific access bit."""
        triad = self.triad_for(user, group)
        index = {Access.READ: 0, Access.WRITE: 1, Access.EXECUTE: 2}[access]
        return triad[index] == access.value

    def chmod(self, permissions: str) -> None:
        """Change the permission string."""
        if not is_valid_mode(permissions):
            raise InvalidModeError(str(permissions), path=self.name)
        self.permissions = permissions
        self.modified = time.time()

    def chown(self, owner: str, group: Optional[str] = None) -> None:
        """Change owner and (optionally) group."""
        self.owner = owner
        if group is not None:
            self.group = group
        self.modified = time.time()

    def touch(self) -> None:
        """Update modification time."""
        self.modified = time.time()

    def write(self, data: str, append: bool = False) -> int:
        """
        Replace or extend the file content.

        The null device keeps its empty content whatever is written.

        Returns:
            Number of bytes accepted
        """
        if not self.is_file:
            return 0
        if self.is_null_device:
            return content_size(data)

        self.content = (self.content or "") + data if append else data
        self.size = content_size(self.content)
        self.modified = time.time()
        return content_size(data)

    def read(self) -> str:
        if not self.is_file or self.is_null_device:
            return ""
        return self.content or ""

    def add_child(self, node: 'FilesystemNode') -> None:
        self.children[node.name] = node
        self.modified = time.time()

    def remove_child(self, name: str) -> Optional['FilesystemNode']:
        removed = self.children.pop(name, None)
        if removed is not None:
            self.modified = time.time()
        return removed

    def mode_string(self) -> str:
        """``ls -l`` style mode with the type prefix."""
        prefix = 'd' if self.is_directory else ('c' if self.device else '-')
        return prefix + self.permissions

    def to_dict(self) -> dict[str, Any]:
        """Convert node to dictionary for display."""
        return {
            'name': self.name,
            'type': self.type.value,
            'permissions': self.permissions,
            'owner': self.owner,
            'group': self.group,
            'size': self.size,
            'modified': time.strftime('%Y-%m-%d %H:%M', time.localtime(self.modified)),
            'binding': self.binding,
            'device': self.device.value if self.device else None,
        }
