"""
PySH Filesystem Module

The in-memory virtual file system:
- Nodes with owner/group/mode permissions
- Path normalization
- Permission-checked operations
- Null device and /proc files

Seeding lives in ``pysh.filesystem.loader`` and is imported explicitly
by whoever sets a session up.
"""

from .node import (
    FilesystemNode,
    NodeType,
    DeviceKind,
    Access,
    Permission,
    mode_from_octal,
    mode_to_octal,
    is_valid_mode,
)
from .path_resolver import PathResolver
from .vfs import VirtualFileSystem

__all__ = [
    'FilesystemNode',
    'NodeType',
    'DeviceKind',
    'Access',
    'Permission',
    'mode_from_octal',
    'mode_to_octal',
    'is_valid_mode',
    'PathResolver',
    'VirtualFileSystem',
]
