"""
Path Resolver Module

Handles path resolution and manipulation in the virtual file system.
Paths handed to the filesystem are always absolute; relative paths are
resolved against the caller's working directory first.

Author: YSNRFD
Version: 1.0.0
"""

from typing import List, Tuple


class PathResolver:
    """
    Resolves and manipulates filesystem paths.

    Handles:
    - Absolute and relative paths
    - . and .. components
    - Path normalization
    """

    @staticmethod
    def components(path: str) -> List[str]:
        """Split a path, dropping empty and '.' components."""
        return [c for c in path.split('/') if c and c != '.']

    @staticmethod
    def normalize(path: str) -> str:
        """
        Normalize a path by resolving . and ..

        The result always starts with '/', never climbs above the root
        and normalizing it again returns it unchanged.

        Example:
            >>> PathResolver.normalize('/a/b/../c')
            '/a/c'
        """
        result: List[str] = []

        for component in PathResolver.components(path):
            if component == '..':
                if result:
                    result.pop()
            else:
                result.append(component)

        return '/' + '/'.join(result)

    @staticmethod
    def resolve(path: str, cwd: str = '/') -> str:
        """
        Resolve a path relative to a current working directory.

        Args:
            path: Path to resolve
            cwd: Current working directory

        Returns:
            Absolute resolved path
        """
        if path.startswith('/'):
            return PathResolver.normalize(path)
        return PathResolver.normalize(cwd.rstrip('/') + '/' + path)

    @staticmethod
    def join(*paths: str) -> str:
        """Join path components, later absolute parts replacing earlier ones."""
        if not paths:
            return '/'

        result = paths[0]
        for path in paths[1:]:
            if path.startswith('/'):
                result = path
            else:
                result = result.rstrip('/') + '/' + path

        return PathResolver.normalize(result)

    @staticmethod
    def dirname(path: str) -> str:
        normalized = PathResolver.normalize(path)
        if normalized == '/':
            return '/'
        return normalized.rsplit('/', 1)[0] or '/'

    @staticmethod
    def basename(path: str) -> str:
        normalized = PathResolver.normalize(path)
        if normalized == '/':
            return ''
        return normalized.rsplit('/', 1)[1]

    @staticmethod
    def split(path: str) -> Tuple[str, str]:
        """
        Split a path into directory and base name.

        Returns:
            Tuple of (dirname, basename)
        """
        return (PathResolver.dirname(path), PathResolver.basename(path))

    @staticmethod
    def is_path_like(name: str) -> bool:
        """
        Whether a command name refers to a file rather than a bare name.

        True for absolute paths, relative-path markers (./, ../, a
        leading '.') and anything containing a separator.
        """
        return name.startswith('/') or name.startswith('.') or '/' in name
