"""
FileGateway raw file operations.

Thin wrappers over the OS. Paths must already be resolved by the security
module; errors surface as the original OSError for the caller to classify.
"""

import os
import shutil
import stat
from typing import Iterator, List, Tuple

from reliquary.shared.gate import PathUtils


def stat_raw(path: str) -> Tuple[os.stat_result, bool]:
    """Stat a path. Returns (stat_result, is_directory)."""
    st = os.stat(path)
    return st, stat.S_ISDIR(st.st_mode)


def read_raw(path: str, encoding: str = "utf-8") -> str:
    """Read a text file exactly as stored (no newline translation)."""
    with open(path, "r", encoding=encoding, newline="") as f:
        return f.read()


def write_raw(path: str, content: str, encoding: str = "utf-8") -> None:
    """
    Write a text file exactly as given (no newline translation).

    Content is encoded before the file is opened, so text that cannot be
    encoded raises UnicodeEncodeError and leaves the existing file untouched.
    """
    content_bytes = content.encode(encoding)
    with open(path, "wb") as f:
        f.write(content_bytes)


def rename_raw(old_path: str, new_path: str) -> None:
    """Rename, replacing an existing file at the destination."""
    os.replace(old_path, new_path)


def copy_raw(old_path: str, new_path: str) -> None:
    """Copy a file or directory tree, overwriting the destination."""
    if os.path.isdir(old_path):
        shutil.copytree(old_path, new_path, dirs_exist_ok=True)
    else:
        shutil.copy2(old_path, new_path)


def make_directory(path: str, parents: bool = False) -> bool:
    """
    Create a directory.

    Args:
        path: Directory to create
        parents: Create missing intermediate directories

    Returns:
        True if created, False if it already existed

    Raises:
        FileExistsError: If a non-directory occupies the path
        OSError: On any other failure
    """
    if os.path.isdir(path):
        return False

    try:
        if parents:
            os.makedirs(path)
        else:
            os.mkdir(path)
    except FileExistsError:
        # Lost a race with another creator
        if os.path.isdir(path):
            return False
        raise
    return True


def _is_listable(entry: os.DirEntry) -> bool:
    return not entry.name.startswith(".") and not entry.is_symlink()


def walk_files(directory: str) -> Iterator[str]:
    """
    Yield absolute paths of all files below a directory.

    Hidden entries (leading dot) and symbolic links are skipped, and hidden
    directories are not descended into.
    """
    with os.scandir(directory) as entries:
        children = sorted(entries, key=lambda e: e.name)

    for entry in children:
        if not _is_listable(entry):
            continue
        if entry.is_dir(follow_symlinks=False):
            yield from walk_files(entry.path)
        else:
            yield entry.path


def list_files(directory: str) -> List[str]:
    """List files below a directory, relative to it, with forward slashes."""
    return sorted(
        PathUtils.to_posix(os.path.relpath(path, directory))
        for path in walk_files(directory)
    )
