"""
FileGateway recycle bin.

Deletion never erases: files are moved into a flat recycle directory under
the repo root. Directories are refused outright.
"""

import os
from datetime import datetime

from reliquary.shared.gate import GateLogger, PathUtils

from .backup import flatten_path
from .errors import DangerousOperationError, PathNotFoundError, WriteFailedError
from .models import RecycleRecord
from .operations import rename_raw

_log = GateLogger.get("FileGateway.recycle")


class RecycleBin:
    """Moves deleted files into the recycle area."""

    def __init__(self, recycle_root: str):
        self.recycle_root = recycle_root

    def recycle_path_for(self, relative_path: str) -> str:
        """Absolute path a recycled ``relative_path`` is stored at."""
        return os.path.join(self.recycle_root, flatten_path(relative_path))

    def recycle(self, absolute_path: str, relative_path: str) -> RecycleRecord:
        """
        Move a file into the recycle area.

        An existing entry with the same flattened name is replaced.

        Args:
            absolute_path: Resolved path of the file to delete
            relative_path: The same path relative to the repo root

        Returns:
            RecycleRecord for the moved file

        Raises:
            DangerousOperationError: If the target is a directory
            PathNotFoundError: If the target does not exist
            WriteFailedError: If the move fails
        """
        if os.path.isdir(absolute_path) and not os.path.islink(absolute_path):
            raise DangerousOperationError(
                f"Refusing to delete directory: {relative_path}",
                path=relative_path,
            )
        if not os.path.lexists(absolute_path):
            raise PathNotFoundError(f"File does not exist: {relative_path}", path=relative_path)

        recycle_path = self.recycle_path_for(relative_path)

        try:
            PathUtils.ensure_dir(self.recycle_root)
            rename_raw(absolute_path, recycle_path)
        except OSError as e:
            raise WriteFailedError(
                f"Failed to recycle {relative_path}: {e}",
                path=relative_path,
                cause=e,
            ) from e

        _log.info(f"Recycled {relative_path} -> {recycle_path}")
        return RecycleRecord(
            original_path=relative_path,
            recycle_path=recycle_path,
            created_at=datetime.now(),
        )
