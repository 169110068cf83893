"""
Path Resolver Module

Canonical path handling for the virtual namespace. A canonical path has
exactly one leading slash, no trailing slash (except the root itself) and
no repeated slashes. Dot segments carry no special meaning; names that
are dot segments are rejected by :meth:`PathResolver.validate_name`.

Author: Elxa Corporation
Version: 2.0.0
"""

from typing import Any, List, Tuple

from elxafs.exceptions import InvalidPathError, InvalidNameError


SEPARATOR = '/'
ROOT = '/'


class PathResolver:
    """
    Normalizes, joins and decomposes slash-delimited paths.

    All methods are static and pure.
    """

    @staticmethod
    def _check(value: Any) -> str:
        if value is None:
            return ''
        if not isinstance(value, str):
            raise InvalidPathError(value)
        return value

    @staticmethod
    def components(path: str) -> List[str]:
        """Split a path into its non-empty segments."""
        return [c for c in PathResolver._check(path).split(SEPARATOR) if c]

    @staticmethod
    def normalize(path: str) -> str:
        """
        Normalize a path into canonical form.

        Args:
            path: Path to normalize (``None`` and ``''`` mean the root)

        Returns:
            Canonical absolute path

        Raises:
            InvalidPathError: If ``path`` is not a string
        """
        return ROOT + SEPARATOR.join(PathResolver.components(path))

    @staticmethod
    def join(*segments: str) -> str:
        """
        Join path segments.

        Leading and trailing separators of each segment are stripped and
        empty segments dropped before joining.

        Example:
            >>> PathResolver.join('/Root/Users/', '/kit', '')
            '/Root/Users/kit'
        """
        parts = [PathResolver._check(s).strip(SEPARATOR) for s in segments]
        return PathResolver.normalize(SEPARATOR.join(p for p in parts if p))

    @staticmethod
    def parent(path: str) -> str:
        """Get the parent path; the root for paths with at most one segment."""
        parts = PathResolver.components(path)
        if len(parts) <= 1:
            return ROOT
        return ROOT + SEPARATOR.join(parts[:-1])

    @staticmethod
    def basename(path: str) -> str:
        """Get the last segment of a path ('' for the root)."""
        parts = PathResolver.components(path)
        return parts[-1] if parts else ''

    @staticmethod
    def split(path: str) -> Tuple[str, str]:
        """Split a path into (parent, basename)."""
        return (PathResolver.parent(path), PathResolver.basename(path))

    @staticmethod
    def splitext(name: str) -> Tuple[str, str]:
        """
        Split a file name into stem and extension.

        Dot-files such as ``.settings`` have no extension.

        Example:
            >>> PathResolver.splitext('photo.final.png')
            ('photo.final', '.png')
        """
        index = name.rfind('.')
        if index <= 0 or index == len(name) - 1:
            return (name, '')
        return (name[:index], name[index:])

    @staticmethod
    def is_descendant(path: str, ancestor: str) -> bool:
        """True when ``path`` lies strictly below ``ancestor``."""
        path = PathResolver.normalize(path)
        ancestor = PathResolver.normalize(ancestor)
        if ancestor == ROOT:
            return path != ROOT
        return path.startswith(ancestor + SEPARATOR)

    @staticmethod
    def is_same_or_descendant(path: str, ancestor: str) -> bool:
        return (PathResolver.normalize(path) == PathResolver.normalize(ancestor)
                or PathResolver.is_descendant(path, ancestor))

    @staticmethod
    def relabel(path: str, old_prefix: str, new_prefix: str) -> str:
        """
        Replace the ``old_prefix`` part of ``path`` with ``new_prefix``.

        Example:
            >>> PathResolver.relabel('/a/b/c', '/a/b', '/x')
            '/x/c'
        """
        path = PathResolver.normalize(path)
        old_prefix = PathResolver.normalize(old_prefix)
        if path == old_prefix:
            return PathResolver.normalize(new_prefix)
        if not PathResolver.is_descendant(path, old_prefix):
            raise ValueError(f"{path} is not below {old_prefix}")
        suffix = path[len(old_prefix):] if old_prefix != ROOT else path
        return PathResolver.join(new_prefix, suffix)

    @staticmethod
    def depth(path: str) -> int:
        """Number of segments in a path (0 for the root)."""
        return len(PathResolver.components(path))

    @staticmethod
    def validate_name(name: Any) -> str:
        """
        Check that a folder or file name can be used as a single segment.

        Raises:
            InvalidNameError: Empty name, name containing a separator or a
                dot segment
        """
        if not isinstance(name, str) or not name:
            raise InvalidNameError(name, reason="empty")
        if SEPARATOR in name:
            raise InvalidNameError(name, reason="contains separator")
        if name in ('.', '..'):
            raise InvalidNameError(name, reason="dot segment")
        return name
