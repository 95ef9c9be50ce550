from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter
from pydantic import BaseModel, ConfigDict, Field

from reliquary.FileGateway import FileGateway, NOT_FOUND, PathNotFoundError


class _Body(BaseModel):
    """Base for request bodies; accepts both alias and field names."""
    model_config = ConfigDict(populate_by_name=True)


class DirRequest(_Body):
    """Model for requests naming a directory."""
    dir: str


class OpenDirRequest(_Body):
    """Model for opening a directory; without one the server cannot choose."""
    dir: Optional[str] = None


class PathRequest(_Body):
    """Model for requests naming a single path."""
    path: str


class WriteFileRequest(_Body):
    """Model for writing a file."""
    path: str
    content: str
    last_known_content: Optional[str] = Field(default=None, alias="lastKnownContent")
    skip_compare: bool = Field(default=False, alias="skipCompare")
    skip_metadata_update: bool = Field(default=False, alias="skipMetadataUpdate")


class UnlinkRequest(_Body):
    """Model for deleting a file into the recycle area."""
    repo_dir: str = Field(alias="repo-dir")
    path: str


class MoveRequest(_Body):
    """Model for rename and copy."""
    old_path: str = Field(alias="old-path")
    new_path: str = Field(alias="new-path")


class BackupRequest(_Body):
    """Model for an explicit backup of superseded content."""
    repo_dir: str = Field(alias="repo-dir")
    path: str
    db_content: Optional[str] = Field(default=None, alias="db-content")
    content: Optional[str] = None


def create_router(gateway: FileGateway) -> APIRouter:
    router = APIRouter(prefix="/api/fs")

    @router.post("/mkdir")
    def api_mkdir(data: DirRequest) -> Dict[str, Any]:
        """Create a directory; an existing one is fine."""
        gateway.mkdir(data.dir)
        return {"success": True}

    @router.post("/mkdir-recur")
    def api_mkdir_recur(data: DirRequest) -> Dict[str, Any]:
        """Create a directory and its parents."""
        gateway.mkdir_recursive(data.dir)
        return {"success": True}

    @router.post("/readdir")
    def api_readdir(data: DirRequest) -> list:
        """List files below a directory, recursively."""
        return gateway.list_files(data.dir)

    @router.post("/readFile")
    def api_read_file(data: PathRequest) -> str:
        """Read a file's contents as a JSON string."""
        return gateway.read_file(data.path)

    @router.post("/writeFile")
    def api_write_file(data: WriteFileRequest) -> Dict[str, Any]:
        """Write a file, backing up diverged disk content."""
        result = gateway.write_file(
            data.path,
            data.content,
            last_known_content=data.last_known_content,
            skip_compare=data.skip_compare,
            skip_metadata_update=data.skip_metadata_update,
        )
        return result.to_dict()

    @router.post("/stat")
    def api_stat(data: PathRequest) -> Dict[str, Any]:
        """Get file or directory metadata."""
        stat = gateway.stat(data.path)
        if stat is NOT_FOUND:
            raise PathNotFoundError(f"File does not exist: {data.path}", path=data.path)
        return stat.to_dict()

    @router.post("/unlink")
    def api_unlink(data: UnlinkRequest) -> Dict[str, Any]:
        """Move a file to the recycle area."""
        record = gateway.unlink_file(data.repo_dir, data.path)
        return {"success": True, "recyclePath": record.recycle_path}

    @router.post("/rename")
    def api_rename(data: MoveRequest) -> Dict[str, Any]:
        """Rename a file or directory."""
        gateway.rename(data.old_path, data.new_path)
        return {"success": True}

    @router.post("/copyFile")
    def api_copy_file(data: MoveRequest) -> Dict[str, Any]:
        """Copy a file, overwriting the destination."""
        gateway.copy_file(data.old_path, data.new_path)
        return {"success": True}

    @router.post("/getFiles")
    def api_get_files(data: PathRequest) -> Dict[str, Any]:
        """List files with their content and stat."""
        entries = gateway.list_with_content(data.path)
        return {"path": data.path, "files": [e.to_dict() for e in entries]}

    @router.post("/openDir")
    def api_open_dir(data: Optional[OpenDirRequest] = None) -> Dict[str, Any]:
        """Open a directory; there is no picker dialog on the server."""
        directory = data.dir if data else None
        entries = gateway.open_dir(directory)
        return {"path": directory, "files": [e.to_dict() for e in entries]}

    @router.post("/backupDbFile")
    def api_backup_db_file(data: BackupRequest) -> Dict[str, Any]:
        """Back up superseded content when it differs from the new content."""
        record = gateway.backup_db_file(data.repo_dir, data.path, data.db_content, data.content)
        if record is None:
            return {"success": True}
        return {"success": True, "backupPath": record.backup_path}

    @router.get("/test")
    def api_test() -> Dict[str, Any]:
        """Describe how to call the API."""
        return {
            "message": "Reliquary filesystem API server is running",
            "graphDir": gateway.root,
            "note": "All /api/fs/* endpoints require POST method with JSON body",
            "example": {
                "endpoint": "/api/fs/getFiles",
                "method": "POST",
                "body": {"path": gateway.root},
            },
        }

    return router


__all__ = ["create_router"]
