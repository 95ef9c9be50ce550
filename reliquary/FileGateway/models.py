"""
FileGateway Pydantic models.

Defines the gateway configuration, file metadata, write requests and the
backup/recycle records produced by the write and delete paths.
"""

import os
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Dict, Any, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


DEFAULT_BACKUP_DIR = "logseq/backup"
DEFAULT_RECYCLE_DIR = "logseq/.recycle"


class FileKind(str, Enum):
    """Type of a filesystem entry."""
    FILE = "file"
    DIR = "dir"


class StatStatus(str, Enum):
    """Explicit outcome of a probe that found nothing."""
    NOT_FOUND = "not-found"


NOT_FOUND = StatStatus.NOT_FOUND


class GatewayConfig(BaseModel):
    """Immutable configuration for one FileGateway instance."""
    model_config = ConfigDict(frozen=True)

    root: str = Field(description="Absolute directory all operations are confined to")
    backup_dir: str = Field(
        default=DEFAULT_BACKUP_DIR,
        description="Backup area, relative to the repo root of a call"
    )
    recycle_dir: str = Field(
        default=DEFAULT_RECYCLE_DIR,
        description="Recycle area, relative to the repo root of a call"
    )
    encoding: str = Field(default="utf-8")

    @field_validator("root")
    @classmethod
    def _normalize_root(cls, value: str) -> str:
        if not value:
            raise ValueError("root must not be empty")
        return os.path.normcase(os.path.abspath(os.path.normpath(value)))

    @field_validator("backup_dir", "recycle_dir")
    @classmethod
    def _check_area(cls, value: str) -> str:
        if not value or os.path.isabs(value):
            raise ValueError(f"must be a non-empty relative path: {value!r}")
        parts = value.replace("\\", "/").split("/")
        if ".." in parts:
            raise ValueError(f"must not contain '..': {value!r}")
        return value

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for JSON serialization."""
        return self.model_dump(mode="json")


class FileStat(BaseModel):
    """Metadata about a file or directory."""
    kind: FileKind
    size: int = Field(default=0, ge=0)
    modified_at: datetime
    created_at: datetime

    @classmethod
    def from_os_stat(cls, st: os.stat_result, is_dir: bool) -> "FileStat":
        """Build from an os.stat() result."""
        return cls(
            kind=FileKind.DIR if is_dir else FileKind.FILE,
            size=st.st_size,
            modified_at=datetime.fromtimestamp(st.st_mtime, tz=timezone.utc),
            created_at=datetime.fromtimestamp(st.st_ctime, tz=timezone.utc),
        )

    @property
    def is_directory(self) -> bool:
        return self.kind == FileKind.DIR

    @property
    def mtime(self) -> float:
        """Modification time in epoch milliseconds."""
        return self.modified_at.timestamp() * 1000

    @property
    def ctime(self) -> float:
        """Creation/change time in epoch milliseconds."""
        return self.created_at.timestamp() * 1000

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict, including the millisecond wire fields."""
        data = self.model_dump(mode="json")
        data["type"] = self.kind.value
        data["mtime"] = self.mtime
        data["ctime"] = self.ctime
        return data


ProbeResult = Union[FileStat, StatStatus]


class WriteRequest(BaseModel):
    """A request to replace the content of one file."""
    path: str
    content: str
    last_known_content: Optional[str] = Field(
        default=None,
        description="What the caller believes is on disk before the write"
    )
    skip_compare: bool = Field(default=False, description="Skip the divergence check entirely")
    skip_metadata_update: bool = Field(default=False, description="Do not record the new mtime")


class BackupRecord(BaseModel):
    """Superseded content preserved before an overwrite."""
    original_path: str = Field(description="Path relative to the repo root")
    backup_path: str = Field(description="Absolute path of the backup file")
    size_bytes: int = 0
    created_at: datetime = Field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for JSON serialization."""
        return self.model_dump(mode="json")


class RecycleRecord(BaseModel):
    """A deleted file parked in the recycle area."""
    original_path: str = Field(description="Path relative to the repo root")
    recycle_path: str = Field(description="Absolute path inside the recycle area")
    created_at: datetime = Field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for JSON serialization."""
        return self.model_dump(mode="json")


class FileEntry(BaseModel):
    """A file together with its content and metadata."""
    path: str = Field(description="Path relative to the listed directory")
    content: str
    stat: FileStat

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for JSON serialization."""
        return {"path": self.path, "content": self.content, "stat": self.stat.to_dict()}


class WriteResult(BaseModel):
    """Outcome of a committed write."""
    path: str
    stat: FileStat
    backup: Optional[BackupRecord] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict, flattening the stat fields to the top level."""
        data = self.stat.to_dict()
        data["path"] = self.path
        if self.backup is not None:
            data["backupPath"] = self.backup.backup_path
        return data
