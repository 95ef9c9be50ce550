"""
FileGateway - Root-scoped remote file access for Reliquary.

Provides:
- Path containment: every caller path is resolved against one root
- Conflict-aware writes that back up content changed behind the caller's back
- Soft deletes into a recycle area, never permanent removal
- Idempotent directory creation

Usage:
    from reliquary.FileGateway import FileGateway, GatewayConfig

    gateway = FileGateway(GatewayConfig(root="/srv/graphs/alice"))

    gateway.write_file("pages/today.md", "- hello", last_known_content="- hi")
    text = gateway.read_file("pages/today.md")
    record = gateway.unlink_file("/srv/graphs/alice", "pages/today.md")
"""

import logging
import os
from enum import Enum
from typing import Optional, List, Dict, Any

from reliquary.shared.gate import (
    GateErrorHandler,
    GateLogger,
    PathUtils,
    build_health_status,
)

from .backup import BackupWriter, flatten_path
from .conflict import has_diverged
from .errors import (
    GatewayError,
    OutOfScopeError,
    PathNotFoundError,
    ProbeFailedError,
    ReadFailedError,
    WriteFailedError,
    DangerousOperationError,
    BackupFailedError,
    UnsupportedOperationError,
)
from .index import DocumentIndex, InMemoryDocumentIndex
from .models import (
    GatewayConfig,
    FileKind,
    FileStat,
    NOT_FOUND,
    ProbeResult,
    WriteRequest,
    WriteResult,
    BackupRecord,
    RecycleRecord,
    FileEntry,
)
from .operations import (
    read_raw,
    write_raw,
    rename_raw,
    copy_raw,
    make_directory,
    walk_files,
    list_files as op_list_files,
)
from .probe import stat_path
from .recycle import RecycleBin
from .security import resolve_path, relative_to_root, is_within_root

_log = GateLogger.get("FileGateway")


class WriteState(str, Enum):
    """Stages of a write, in order."""
    RESOLVING = "Resolving"
    PROBING = "Probing"
    COMPARING = "Comparing"
    BACKING_UP = "Backing-up"
    COMMITTING = "Committing"
    DONE = "Done"
    REJECTED = "Rejected"


class FileGateway:
    """
    The only entry point for file operations.

    Each instance is bound to one immutable GatewayConfig, so several roots
    can be served side by side. Instances hold no per-request state.
    """

    def __init__(self, config: GatewayConfig, index: Optional[DocumentIndex] = None):
        """
        Args:
            config: Root scope and backup/recycle layout
            index: Caller-side record of last-known content and mtimes
        """
        self.config = config
        self.index = index if index is not None else InMemoryDocumentIndex()

    @property
    def root(self) -> str:
        return self.config.root

    # ==================== Path Handling ====================

    def _resolve(self, path: Optional[str], operation: str) -> str:
        """Resolve a caller path, logging rejections."""
        try:
            return resolve_path(self.root, path)
        except OutOfScopeError as e:
            _log.warning(f"{operation} rejected: {e.message}")
            raise

    def _relative(self, resolved: str, base: Optional[str] = None) -> str:
        """Path relative to ``base`` (or the root) when inside it."""
        if base is not None and is_within_root(base, resolved):
            return relative_to_root(base, resolved)
        return relative_to_root(self.root, resolved)

    # ==================== Directories ====================

    def mkdir(self, path: str) -> bool:
        """
        Create a directory. An existing directory is not an error.

        Returns:
            True if the directory was created, False if it already existed
        """
        resolved = self._resolve(path, "mkdir")
        return self._make_directory(resolved, path, parents=False)

    def mkdir_recursive(self, path: str) -> bool:
        """Create a directory and any missing parents. Idempotent."""
        resolved = self._resolve(path, "mkdir-recur")
        return self._make_directory(resolved, path, parents=True)

    def _make_directory(self, resolved: str, path: str, parents: bool) -> bool:
        try:
            created = make_directory(resolved, parents=parents)
        except FileExistsError as e:
            raise WriteFailedError(f"A file with that name already exists: {path}", path=path, cause=e) from e
        except FileNotFoundError as e:
            raise PathNotFoundError(f"Parent directory does not exist: {path}", path=path, cause=e) from e
        except OSError as e:
            raise WriteFailedError(f"Failed to create directory {path}: {e}", path=path, cause=e) from e

        if created:
            _log.info(f"Created directory {self._relative(resolved)}")
        return created

    # ==================== Reads ====================

    def stat(self, path: str) -> ProbeResult:
        """Metadata for a path, or NOT_FOUND."""
        resolved = self._resolve(path, "stat")
        return stat_path(resolved)

    def read_file(self, path: str) -> str:
        """
        Read a text file.

        Raises:
            OutOfScopeError: Path escapes the root
            PathNotFoundError: Nothing exists at the path
            ReadFailedError: Directory, undecodable content or other I/O error
        """
        resolved = self._resolve(path, "readFile")
        try:
            return read_raw(resolved, self.config.encoding)
        except FileNotFoundError as e:
            raise PathNotFoundError(f"File does not exist: {path}", path=path, cause=e) from e
        except IsADirectoryError as e:
            raise ReadFailedError(f"Path is a directory, not a file: {path}", path=path, cause=e) from e
        except UnicodeDecodeError as e:
            raise ReadFailedError(
                f"Cannot decode file with {self.config.encoding} encoding: {path}", path=path, cause=e
            ) from e
        except OSError as e:
            raise ReadFailedError(f"readFile failed: {e}", path=path, cause=e) from e

    def _require_directory(self, resolved: str, path: str) -> None:
        if not os.path.exists(resolved):
            raise PathNotFoundError(f"Directory does not exist: {path}", path=path)
        if not os.path.isdir(resolved):
            raise ReadFailedError(f"Path is not a directory: {path}", path=path)

    def list_files(self, directory: str) -> List[str]:
        """
        List files below a directory, recursively.

        Hidden entries and symbolic links are excluded.

        Returns:
            Sorted forward-slash paths relative to ``directory``
        """
        resolved = self._resolve(directory, "readdir")
        self._require_directory(resolved, directory)
        try:
            return op_list_files(resolved)
        except OSError as e:
            raise ReadFailedError(f"readdir failed: {e}", path=directory, cause=e) from e

    def list_with_content(self, directory: str) -> List[FileEntry]:
        """
        List files below a directory together with their content and stat.

        Files that cannot be read as text are skipped with a warning.
        """
        resolved = self._resolve(directory, "getFiles")
        self._require_directory(resolved, directory)

        entries: List[FileEntry] = []
        try:
            paths = list(walk_files(resolved))
        except OSError as e:
            raise ReadFailedError(f"getFiles failed: {e}", path=directory, cause=e) from e

        for file_path in paths:
            rel = PathUtils.to_posix(os.path.relpath(file_path, resolved))
            try:
                content = read_raw(file_path, self.config.encoding)
                stat = stat_path(file_path)
            except (OSError, UnicodeDecodeError, ProbeFailedError) as e:
                _log.warning(f"Skipping file {rel}: {e}")
                continue
            if stat is NOT_FOUND:
                continue
            entries.append(FileEntry(path=rel, content=content, stat=stat))

        return entries

    def open_dir(self, directory: Optional[str] = None) -> List[FileEntry]:
        """
        Load a directory's files. Without a directory there is nothing to
        pick from on a server, so the call is unsupported.
        """
        if not directory:
            raise UnsupportedOperationError("openDir not supported in server mode")
        return self.list_with_content(directory)

    # ==================== Writes ====================

    def write_file(
        self,
        path: str,
        content: str,
        last_known_content: Optional[str] = None,
        skip_compare: bool = False,
        skip_metadata_update: bool = False
    ) -> WriteResult:
        """Keyword form of write()."""
        return self.write(WriteRequest(
            path=path,
            content=content,
            last_known_content=last_known_content,
            skip_compare=skip_compare,
            skip_metadata_update=skip_metadata_update,
        ))

    def write(self, request: WriteRequest) -> WriteResult:
        """
        Write new content, backing up the old content if it changed behind
        the caller's back.

        The divergence check is advisory: it decides whether a backup is
        taken, never whether the write happens. Reading for the comparison
        and committing are not atomic; an edit landing in between is not
        detected.

        Args:
            request: Target path, new content and comparison options

        Returns:
            WriteResult with the new stat and the backup, if one was taken

        Raises:
            OutOfScopeError: Target escapes the root (nothing was touched)
            WriteFailedError: Target could not be probed or written
        """
        state = WriteState.RESOLVING
        try:
            resolved = self._resolve(request.path, "writeFile")
            rel = self._relative(resolved)

            state = self._advance(rel, WriteState.PROBING)
            existing = self._probe_for_write(resolved, request.path)
            PathUtils.ensure_parent(resolved)

            backup: Optional[BackupRecord] = None
            if not request.skip_compare and existing is not NOT_FOUND:
                state = self._advance(rel, WriteState.COMPARING)
                disk_content = self._read_for_compare(resolved, rel)
                last_known = self._last_known(rel, request.last_known_content)

                if disk_content and has_diverged(disk_content, last_known):
                    state = self._advance(rel, WriteState.BACKING_UP)
                    backup = self._backup_best_effort(self.root, rel, disk_content)

            state = self._advance(rel, WriteState.COMMITTING)
            write_raw(resolved, request.content, self.config.encoding)
            new_stat = stat_path(resolved)
            if new_stat is NOT_FOUND:
                raise WriteFailedError(f"File vanished after write: {request.path}", path=request.path)

            if not request.skip_metadata_update:
                self.index.set_last_modified_at(rel, new_stat.mtime)
                self.index.set_content(rel, request.content)

            self._advance(rel, WriteState.DONE)
            _log.info(
                f"{'Updated' if existing is not NOT_FOUND else 'Created'} {rel} "
                f"({new_stat.size} bytes){' with backup' if backup else ''}"
            )
            return WriteResult(path=rel, stat=new_stat, backup=backup)

        except OutOfScopeError:
            raise
        except GatewayError as e:
            _log.warning(f"write {request.path}: {WriteState.REJECTED.value} at {state.value}: {e.message}")
            if isinstance(e, WriteFailedError):
                raise
            raise WriteFailedError(e.message, path=request.path, cause=e) from e
        except (OSError, UnicodeError) as e:
            _log.warning(f"write {request.path}: {WriteState.REJECTED.value} at {state.value}: {e}")
            raise WriteFailedError(f"Failed to write file {request.path}: {e}", path=request.path, cause=e) from e

    def _advance(self, rel: str, state: WriteState) -> WriteState:
        _log.debug(f"write {rel}: {state.value}")
        return state

    def _probe_for_write(self, resolved: str, path: str) -> ProbeResult:
        existing = stat_path(resolved)
        if existing is not NOT_FOUND and existing.kind == FileKind.DIR:
            raise WriteFailedError(f"Path is a directory, not a file: {path}", path=path)
        return existing

    def _read_for_compare(self, resolved: str, rel: str) -> str:
        """Current disk content, or "" when it cannot be read."""
        try:
            return read_raw(resolved, self.config.encoding)
        except (OSError, UnicodeDecodeError) as e:
            _log.warning(f"Could not read {rel} for comparison, assuming empty: {e}")
            return ""

    def _last_known(self, rel: str, supplied: Optional[str]) -> str:
        if supplied is not None:
            return supplied
        from_index = self.index.get_content(rel)
        return from_index if from_index is not None else ""

    @GateErrorHandler.wrap(
        "FileGateway", "backup", errors=(BackupFailedError,), log_level=logging.WARNING
    )
    def _backup_best_effort(self, repo: str, rel: str, content: str) -> Optional[BackupRecord]:
        writer = BackupWriter(os.path.join(repo, self.config.backup_dir), self.config.encoding)
        return writer.backup(rel, content)

    def backup_db_file(
        self,
        repo_root: str,
        path: str,
        disk_content: Optional[str],
        new_content: Optional[str]
    ) -> Optional[BackupRecord]:
        """
        Back up ``disk_content`` when it differs from ``new_content``.

        Best-effort: backup failures are logged and return None. Only a path
        outside the root is reported to the caller.

        Args:
            repo_root: Graph directory the backup area lives under
            path: File path, relative to ``repo_root`` or absolute
            disk_content: Content being superseded
            new_content: Content replacing it

        Returns:
            BackupRecord if a backup was written, None otherwise
        """
        repo = self._resolve(repo_root, "backupDbFile")
        if path and not os.path.isabs(path):
            path = os.path.join(repo, path)
        resolved = self._resolve(path, "backupDbFile")
        rel = self._relative(resolved, base=repo)

        writer = BackupWriter(os.path.join(repo, self.config.backup_dir), self.config.encoding)
        try:
            return writer.backup_if_changed(rel, disk_content, new_content)
        except BackupFailedError as e:
            return GateErrorHandler.handle("FileGateway", "backupDbFile", e, None, logging.WARNING)

    def rename(self, old_path: str, new_path: str) -> None:
        """Rename a file or directory, creating destination parents."""
        old_resolved = self._resolve(old_path, "rename")
        new_resolved = self._resolve(new_path, "rename")
        try:
            PathUtils.ensure_parent(new_resolved)
            rename_raw(old_resolved, new_resolved)
        except FileNotFoundError as e:
            raise PathNotFoundError(f"Source does not exist: {old_path}", path=old_path, cause=e) from e
        except OSError as e:
            raise WriteFailedError(f"Failed to rename {old_path} to {new_path}: {e}", path=old_path, cause=e) from e
        _log.info(f"Renamed {self._relative(old_resolved)} -> {self._relative(new_resolved)}")

    def copy_file(self, old_path: str, new_path: str) -> None:
        """Copy a file, overwriting the destination without confirmation."""
        old_resolved = self._resolve(old_path, "copyFile")
        new_resolved = self._resolve(new_path, "copyFile")
        if not os.path.exists(old_resolved):
            raise PathNotFoundError(f"Source does not exist: {old_path}", path=old_path)
        if os.path.isdir(old_resolved) and is_within_root(old_resolved, new_resolved):
            raise WriteFailedError(
                f"Cannot copy a directory into itself: {old_path} -> {new_path}", path=old_path
            )
        try:
            PathUtils.ensure_parent(new_resolved)
            copy_raw(old_resolved, new_resolved)
        except OSError as e:
            raise WriteFailedError(f"Failed to copy {old_path} to {new_path}: {e}", path=old_path, cause=e) from e
        _log.info(f"Copied {self._relative(old_resolved)} -> {self._relative(new_resolved)}")

    # ==================== Deletes ====================

    def unlink_file(self, repo_root: str, path: str) -> RecycleRecord:
        """
        Delete a file by moving it into the repo's recycle area.

        Raises:
            OutOfScopeError: Repo root or path escapes the root
            DangerousOperationError: The path is a directory
            PathNotFoundError: Nothing exists at the path
        """
        repo = self._resolve(repo_root, "unlink")
        resolved = self._resolve(path, "unlink")
        rel = self._relative(resolved, base=repo)

        bin_ = RecycleBin(os.path.join(repo, self.config.recycle_dir))
        try:
            return bin_.recycle(resolved, rel)
        except DangerousOperationError as e:
            _log.warning(f"unlink rejected: {e.message}")
            raise

    def rmdir(self, path: str) -> None:
        """Directory deletion is never performed."""
        self._resolve(path, "rmdir")
        raise DangerousOperationError(f"Refusing to delete directory: {path}", path=path)

    # ==================== Unsupported ====================

    def watch_dir(self, directory: str, **options) -> None:
        """Directory watching is not available on this backend."""
        raise UnsupportedOperationError("watch-dir not implemented for this backend", path=directory)

    def unwatch_dir(self, directory: str) -> None:
        """Directory watching is not available on this backend."""
        raise UnsupportedOperationError("unwatch-dir not implemented for this backend", path=directory)

    # ==================== Health Checks ====================

    def is_healthy(self) -> bool:
        """Root exists, is a directory and is readable."""
        return os.path.isdir(self.root) and os.access(self.root, os.R_OK)

    def get_health_status(self) -> Dict[str, Any]:
        """Get detailed health information."""
        return build_health_status(
            gate_name="FileGateway",
            initialized=True,
            dependencies=self.get_dependencies(),
            checks={
                "root_exists": os.path.isdir(self.root),
                "root_readable": os.access(self.root, os.R_OK),
                "root_writable": os.access(self.root, os.W_OK),
            },
            details={
                "root": self.root,
                "backup_dir": self.config.backup_dir,
                "recycle_dir": self.config.recycle_dir,
            },
        )

    def get_dependencies(self) -> List[str]:
        """List external dependencies."""
        return ["filesystem"]


__all__ = [
    # Gateway
    "FileGateway",
    "WriteState",
    # Models
    "GatewayConfig",
    "FileKind",
    "FileStat",
    "NOT_FOUND",
    "WriteRequest",
    "WriteResult",
    "BackupRecord",
    "RecycleRecord",
    "FileEntry",
    # Index
    "DocumentIndex",
    "InMemoryDocumentIndex",
    # Components
    "BackupWriter",
    "RecycleBin",
    "flatten_path",
    "has_diverged",
    "resolve_path",
    # Errors
    "GatewayError",
    "OutOfScopeError",
    "PathNotFoundError",
    "ProbeFailedError",
    "ReadFailedError",
    "WriteFailedError",
    "DangerousOperationError",
    "BackupFailedError",
    "UnsupportedOperationError",
]
