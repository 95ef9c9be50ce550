"""
FileGateway backup management.

Preserves content that is about to be overwritten while it disagrees with
what the caller last saw. Backups live in one flat directory, one file per
relative path; a later backup of the same path replaces the earlier one.
"""

import hashlib
import os
from datetime import datetime
from typing import Optional

from reliquary.shared.gate import GateLogger, PathUtils

from .errors import BackupFailedError
from .models import BackupRecord
from .operations import write_raw

_log = GateLogger.get("FileGateway.backup")

# "%" is escaped first so encoded names decode back to exactly one path
ESCAPE_PERCENT = "%25"
ESCAPE_SEPARATOR = "%2F"
# Every other "%" is followed by "25" or "2F", so this never occurs unhashed
HASH_MARKER = "%23"
# Longest single file name on common filesystems
MAX_NAME_BYTES = 255


def flatten_path(relative_path: str) -> str:
    """
    Turn a relative path into a single file name.

    ``dir1/note.md`` becomes ``dir1%2Fnote.md``. Both separator styles are
    encoded and a literal ``%`` becomes ``%25``, so two different paths never
    share a flattened name. A name longer than MAX_NAME_BYTES is cut and
    suffixed with ``%23`` and the SHA-256 of the full encoded name.

    Args:
        relative_path: Path relative to the repo root

    Returns:
        Flat file name
    """
    name = relative_path.lstrip("/\\")
    name = name.replace("%", ESCAPE_PERCENT)
    name = name.replace("\\", ESCAPE_SEPARATOR).replace("/", ESCAPE_SEPARATOR)
    if not name or name in (".", ".."):
        raise ValueError(f"Cannot flatten path: {relative_path!r}")

    encoded = name.encode("utf-8")
    if len(encoded) <= MAX_NAME_BYTES:
        return name

    # Too long for one directory entry: keep a readable prefix plus a digest
    digest = hashlib.sha256(encoded).hexdigest()
    keep = MAX_NAME_BYTES - len(HASH_MARKER) - len(digest)
    prefix = encoded[:keep].decode("utf-8", errors="ignore")
    return f"{prefix}{HASH_MARKER}{digest}"


def unflatten_path(name: str) -> str:
    """
    Inverse of flatten_path, always with forward slashes.

    Names shortened with a digest cannot be restored.
    """
    if HASH_MARKER in name:
        raise ValueError(f"Name was shortened and cannot be restored: {name!r}")
    return name.replace(ESCAPE_SEPARATOR, "/").replace(ESCAPE_PERCENT, "%")


class BackupWriter:
    """Writes backup copies of superseded file content."""

    def __init__(self, backup_root: str, encoding: str = "utf-8"):
        """
        Initialize the backup writer.

        Args:
            backup_root: Directory backups are written to (created on demand)
            encoding: Text encoding for backup files
        """
        self.backup_root = backup_root
        self.encoding = encoding

    def backup_path_for(self, relative_path: str) -> str:
        """Absolute path a backup of ``relative_path`` is stored at."""
        return os.path.join(self.backup_root, flatten_path(relative_path))

    def backup(self, relative_path: str, superseded_content: str) -> BackupRecord:
        """
        Store superseded content verbatim.

        Args:
            relative_path: Path of the original file relative to the repo root
            superseded_content: Content that was on disk before the write

        Returns:
            BackupRecord describing the stored copy

        Raises:
            BackupFailedError: If the directory or file cannot be written
        """
        try:
            backup_path = self.backup_path_for(relative_path)
        except ValueError as e:
            raise BackupFailedError(str(e), path=relative_path, cause=e) from e

        try:
            PathUtils.ensure_dir(self.backup_root)
            write_raw(backup_path, superseded_content, self.encoding)
        except (OSError, UnicodeError) as e:
            raise BackupFailedError(
                f"Failed to create backup of {relative_path}: {e}",
                path=relative_path,
                cause=e,
            ) from e

        record = BackupRecord(
            original_path=relative_path,
            backup_path=backup_path,
            size_bytes=len(superseded_content.encode(self.encoding)),
            created_at=datetime.now(),
        )
        _log.info(f"Backed up {relative_path} -> {backup_path}")
        return record

    def backup_if_changed(
        self,
        relative_path: str,
        disk_content: Optional[str],
        new_content: Optional[str]
    ) -> Optional[BackupRecord]:
        """
        Back up disk content only when it differs from the incoming content.

        Both values must be present as text; otherwise nothing is written.

        Returns:
            BackupRecord if a backup was written, None otherwise
        """
        if not isinstance(disk_content, str) or not isinstance(new_content, str):
            return None
        if not disk_content or not new_content or disk_content == new_content:
            return None

        return self.backup(relative_path, disk_content)
