"""
FileGateway security module.

Resolves caller-supplied paths against the root scope and rejects any path
that would escape it. Every other component calls in here before touching
the filesystem.
"""

import os
from typing import Optional

from reliquary.shared.gate import PathUtils

from .errors import OutOfScopeError


def normalize_path(path: str) -> str:
    """
    Normalize a path for comparison.

    Collapses ``.`` and ``..`` segments, unifies separators and applies the
    host's case convention. ``~`` is deliberately left alone: caller input is
    never expanded against the server's home directory.

    Args:
        path: Raw path string

    Returns:
        Normalized absolute path
    """
    return os.path.normcase(os.path.normpath(os.path.abspath(path)))


def _boundary(root: str) -> str:
    # A filesystem root already ends with a separator
    return root if root.endswith(os.sep) else root + os.sep


def is_within_root(root: str, resolved: str) -> bool:
    """Check that a normalized path equals root or is a descendant of it."""
    return resolved == root or resolved.startswith(_boundary(root))


def resolve_path(root: str, user_path: Optional[str]) -> str:
    """
    Resolve a caller-supplied path against the root scope.

    Absolute paths are taken as-is, relative ones are joined to ``root``.
    The root itself is a valid result.

    Args:
        root: Root directory of the gateway
        user_path: Untrusted path from the caller

    Returns:
        Normalized absolute path inside ``root``

    Raises:
        OutOfScopeError: If the path is empty or resolves outside ``root``
    """
    root = normalize_path(root)

    if not user_path:
        raise OutOfScopeError(user_path, root)

    if "\x00" in user_path:
        raise OutOfScopeError(user_path, root)

    if os.path.isabs(user_path):
        candidate = user_path
    else:
        candidate = os.path.join(root, user_path)

    resolved = normalize_path(candidate)
    if not is_within_root(root, resolved):
        raise OutOfScopeError(user_path, root, resolved)

    return resolved


def relative_to_root(root: str, resolved: str) -> str:
    """
    Express a resolved path relative to ``root`` with forward slashes.

    Returns "." for the root itself.
    """
    rel = os.path.relpath(resolved, normalize_path(root))
    return PathUtils.to_posix(rel)
