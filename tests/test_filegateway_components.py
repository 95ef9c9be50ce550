"""
Tests for the FileGateway building blocks: path guard, stat probe,
conflict detection, backups and the recycle bin.
"""

import os
import pytest
from datetime import timezone
from pathlib import Path

from pydantic import ValidationError

from reliquary.FileGateway import (
    BackupWriter,
    RecycleBin,
    GatewayConfig,
    FileKind,
    FileStat,
    NOT_FOUND,
    OutOfScopeError,
    ProbeFailedError,
    BackupFailedError,
    DangerousOperationError,
    PathNotFoundError,
    flatten_path,
    has_diverged,
    resolve_path,
)
from reliquary.FileGateway.backup import unflatten_path
from reliquary.FileGateway.probe import stat_path
from reliquary.FileGateway.security import normalize_path, relative_to_root


class TestPathGuard:
    """Tests for resolving caller paths against the root."""

    def test_relative_path_resolves_under_root(self, graph_root):
        """Relative paths are joined to the root."""
        resolved = resolve_path(str(graph_root), "pages/readme.md")

        assert resolved == normalize_path(str(graph_root / "pages" / "readme.md"))

    def test_root_itself_is_valid(self, graph_root):
        """The root, however spelled, is a valid target."""
        root = normalize_path(str(graph_root))

        assert resolve_path(str(graph_root), str(graph_root)) == root
        assert resolve_path(str(graph_root), ".") == root
        assert resolve_path(str(graph_root), "pages/..") == root

    def test_absolute_path_inside_root(self, graph_root):
        """Absolute paths inside the root are accepted as-is."""
        target = str(graph_root / "journals" / "2026_10_19.md")

        assert resolve_path(str(graph_root), target) == normalize_path(target)

    def test_traversal_rejected(self, graph_root):
        """Dot-dot segments that climb out of the root are rejected."""
        with pytest.raises(OutOfScopeError) as exc_info:
            resolve_path(str(graph_root), "../../etc/passwd")

        assert exc_info.value.path == "../../etc/passwd"
        assert exc_info.value.root == normalize_path(str(graph_root))
        assert exc_info.value.code == "OutOfScope"

    def test_absolute_path_outside_rejected(self, graph_root):
        """Absolute paths elsewhere on disk are rejected."""
        with pytest.raises(OutOfScopeError):
            resolve_path(str(graph_root), "/etc/passwd")

    def test_sibling_with_common_prefix_rejected(self, graph_root):
        """A sibling directory sharing the root's name prefix is outside."""
        evil = str(graph_root) + "-evil"

        with pytest.raises(OutOfScopeError):
            resolve_path(str(graph_root), evil)
        with pytest.raises(OutOfScopeError):
            resolve_path(str(graph_root), "../alice-evil/notes.md")

    def test_empty_path_rejected(self, graph_root):
        """Empty or missing paths have nothing to resolve."""
        with pytest.raises(OutOfScopeError):
            resolve_path(str(graph_root), "")
        with pytest.raises(OutOfScopeError):
            resolve_path(str(graph_root), None)

    def test_tilde_not_expanded(self, graph_root):
        """A leading tilde is a literal directory name under the root."""
        resolved = resolve_path(str(graph_root), "~/notes.md")

        assert resolved == normalize_path(str(graph_root / "~" / "notes.md"))

    def test_relative_to_root(self, graph_root):
        """Relative form uses forward slashes."""
        resolved = resolve_path(str(graph_root), "pages/sub/note.md")

        assert relative_to_root(str(graph_root), resolved) == "pages/sub/note.md"
        assert relative_to_root(str(graph_root), str(graph_root)) == "."


class TestStatProbe:
    """Tests for the stat probe."""

    def test_file_stat(self, graph_root):
        """Existing files report kind, size and times."""
        stat = stat_path(str(graph_root / "pages" / "readme.md"))

        assert isinstance(stat, FileStat)
        assert stat.kind == FileKind.FILE
        assert stat.size == len("Hello World")
        assert stat.mtime > 0

    def test_directory_stat(self, graph_root):
        """Directories report kind dir."""
        stat = stat_path(str(graph_root / "pages"))

        assert stat.kind == FileKind.DIR
        assert stat.is_directory is True

    def test_missing_is_not_found(self, graph_root):
        """Absence is the NOT_FOUND sentinel, not an error."""
        assert stat_path(str(graph_root / "missing.md")) is NOT_FOUND

    def test_path_through_file_is_not_found(self, graph_root):
        """A path that treats a file as a directory does not exist."""
        assert stat_path(str(graph_root / "pages" / "readme.md" / "child")) is NOT_FOUND

    def test_other_failures_raise_probe_failed(self, graph_root, monkeypatch):
        """Permission and I/O errors are reported as ProbeFailed."""
        def denied(path):
            raise PermissionError(13, "Permission denied", path)

        monkeypatch.setattr("reliquary.FileGateway.probe.stat_raw", denied)

        with pytest.raises(ProbeFailedError) as exc_info:
            stat_path(str(graph_root / "pages" / "readme.md"))

        assert isinstance(exc_info.value.cause, PermissionError)

    def test_times_are_utc(self, graph_root):
        """Timestamps carry UTC and convert back to the raw stat values."""
        target = graph_root / "pages" / "readme.md"

        stat = stat_path(str(target))

        assert stat.modified_at.tzinfo == timezone.utc
        assert stat.mtime == pytest.approx(os.stat(target).st_mtime * 1000)
        assert stat.ctime == pytest.approx(os.stat(target).st_ctime * 1000)

    def test_to_dict_has_wire_fields(self, graph_root):
        """Serialized stats carry type and millisecond times."""
        data = stat_path(str(graph_root / "pages" / "readme.md")).to_dict()

        assert data["type"] == "file"
        assert data["size"] == 11
        assert isinstance(data["mtime"], float)
        assert "ctime" in data


class TestConflictDetector:
    """Tests for divergence detection."""

    def test_identical_content(self):
        assert has_diverged("A", "A") is False

    def test_whitespace_only_difference(self):
        """Trailing newlines and surrounding spaces do not count."""
        assert has_diverged("A\n", "A") is False
        assert has_diverged("  A  \n\n", "\tA") is False

    def test_real_difference(self):
        assert has_diverged("A\n", "B") is True

    def test_inner_whitespace_counts(self):
        """Only leading and trailing whitespace is ignored."""
        assert has_diverged("A B", "A  B") is True

    def test_missing_or_binary_content_is_unknown(self):
        """Without two texts nothing can be compared, so no divergence."""
        assert has_diverged(None, "A") is False
        assert has_diverged("A", None) is False
        assert has_diverged(b"A", "B") is False


class TestFlattening:
    """Tests for flat backup/recycle file names."""

    def test_separators_encoded(self):
        assert flatten_path("dir1/note.md") == "dir1%2Fnote.md"
        assert flatten_path("a\\b\\c.md") == "a%2Fb%2Fc.md"

    def test_distinct_paths_never_collide(self):
        """Paths that only differ by separator vs. dash stay distinct."""
        assert flatten_path("dir1/note.md") != flatten_path("dir1-note.md")
        assert flatten_path("dir1/note.md") != flatten_path("dir1%2Fnote.md")

    def test_percent_escaped(self):
        assert flatten_path("100%/done.md") == "100%25%2Fdone.md"

    def test_unflatten_restores_path(self):
        assert unflatten_path(flatten_path("a/100%2F/b.md")) == "a/100%2F/b.md"

    def test_leading_separator_dropped(self):
        assert flatten_path("/pages/x.md") == "pages%2Fx.md"

    def test_long_name_is_shortened(self):
        """Names past the filesystem limit keep a prefix and gain a digest."""
        long_a = "pages/" + "n" * 250 + "a.md"
        long_b = "pages/" + "n" * 250 + "b.md"

        name_a = flatten_path(long_a)
        name_b = flatten_path(long_b)

        assert len(name_a.encode("utf-8")) <= 255
        assert name_a.startswith("pages%2Fnnn")
        assert "%23" in name_a
        assert name_a != name_b
        assert flatten_path(long_a) == name_a

    def test_long_multibyte_name_stays_within_limit(self):
        name = flatten_path("pages/" + "日" * 120 + ".md")

        assert len(name.encode("utf-8")) <= 255

    def test_shortened_name_cannot_be_restored(self):
        with pytest.raises(ValueError):
            unflatten_path(flatten_path("pages/" + "n" * 300))

    def test_root_cannot_be_flattened(self):
        with pytest.raises(ValueError):
            flatten_path(".")


class TestBackupWriter:
    """Tests for backup copies."""

    def test_backup_writes_verbatim(self, temp_dir):
        """Content is stored untrimmed under the flattened name."""
        writer = BackupWriter(str(temp_dir / "backup"))

        record = writer.backup("pages/note.md", "A\n")

        backup_file = temp_dir / "backup" / "pages%2Fnote.md"
        assert Path(record.backup_path) == backup_file
        assert backup_file.read_bytes() == b"A\n"
        assert record.original_path == "pages/note.md"
        assert record.size_bytes == 2

    def test_backup_last_write_wins(self, temp_dir):
        """A second backup of the same path replaces the first."""
        writer = BackupWriter(str(temp_dir / "backup"))

        writer.backup("pages/note.md", "first")
        writer.backup("pages/note.md", "second")

        files = os.listdir(temp_dir / "backup")
        assert files == ["pages%2Fnote.md"]
        assert (temp_dir / "backup" / "pages%2Fnote.md").read_text() == "second"

    def test_backup_directory_is_created(self, temp_dir):
        """Missing backup directories are created, existing ones reused."""
        root = temp_dir / "deep" / "backup"
        BackupWriter(str(root)).backup("a.md", "x")
        BackupWriter(str(root)).backup("b.md", "y")

        assert sorted(os.listdir(root)) == ["a.md", "b.md"]

    def test_backup_failure_raises_backup_failed(self, temp_dir):
        """A file in the way of the backup directory is a BackupFailed error."""
        blocker = temp_dir / "blocked"
        blocker.write_text("not a directory")

        with pytest.raises(BackupFailedError) as exc_info:
            BackupWriter(str(blocker / "backup")).backup("a.md", "x")

        assert isinstance(exc_info.value.cause, OSError)

    def test_unencodable_backup_keeps_previous(self, temp_dir):
        """A backup that cannot be encoded leaves the earlier copy intact."""
        writer = BackupWriter(str(temp_dir / "backup"))
        writer.backup("a.md", "old")

        with pytest.raises(BackupFailedError):
            writer.backup("a.md", "bad \ud800")

        assert (temp_dir / "backup" / "a.md").read_text() == "old"

    def test_backup_if_changed(self, temp_dir):
        """Only differing, non-empty texts produce a backup."""
        writer = BackupWriter(str(temp_dir / "backup"))

        assert writer.backup_if_changed("a.md", "same", "same") is None
        assert writer.backup_if_changed("a.md", None, "new") is None
        assert writer.backup_if_changed("a.md", "", "new") is None
        assert not (temp_dir / "backup").exists()

        record = writer.backup_if_changed("a.md", "old", "new")
        assert Path(record.backup_path).read_text() == "old"


class TestRecycleBin:
    """Tests for soft deletes."""

    def test_recycle_moves_file(self, graph_root, temp_dir):
        """The file leaves its place and appears in the recycle area."""
        bin_ = RecycleBin(str(temp_dir / "recycle"))
        target = graph_root / "pages" / "readme.md"

        record = bin_.recycle(str(target), "pages/readme.md")

        assert not target.exists()
        assert Path(record.recycle_path) == temp_dir / "recycle" / "pages%2Freadme.md"
        assert Path(record.recycle_path).read_text() == "Hello World"

    def test_recycle_overwrites_previous_entry(self, graph_root, temp_dir):
        """Deleting the same path twice keeps only the last deletion."""
        bin_ = RecycleBin(str(temp_dir / "recycle"))
        target = graph_root / "pages" / "readme.md"

        bin_.recycle(str(target), "pages/readme.md")
        target.write_text("Second version")
        record = bin_.recycle(str(target), "pages/readme.md")

        assert os.listdir(temp_dir / "recycle") == ["pages%2Freadme.md"]
        assert Path(record.recycle_path).read_text() == "Second version"

    def test_directory_refused(self, graph_root, temp_dir):
        """Directories are never deleted."""
        bin_ = RecycleBin(str(temp_dir / "recycle"))

        with pytest.raises(DangerousOperationError):
            bin_.recycle(str(graph_root / "pages"), "pages")

        assert (graph_root / "pages" / "readme.md").exists()
        assert not (temp_dir / "recycle").exists()

    def test_missing_file(self, graph_root, temp_dir):
        bin_ = RecycleBin(str(temp_dir / "recycle"))

        with pytest.raises(PathNotFoundError):
            bin_.recycle(str(graph_root / "nope.md"), "nope.md")


class TestGatewayConfig:
    """Tests for the immutable configuration."""

    def test_root_is_normalized(self, graph_root):
        config = GatewayConfig(root=str(graph_root / "pages" / ".."))

        assert config.root == normalize_path(str(graph_root))

    def test_config_is_frozen(self, graph_root):
        config = GatewayConfig(root=str(graph_root))

        with pytest.raises(ValidationError):
            config.root = "/"

    def test_areas_must_be_relative(self, graph_root):
        with pytest.raises(ValidationError):
            GatewayConfig(root=str(graph_root), backup_dir="/tmp/backup")
        with pytest.raises(ValidationError):
            GatewayConfig(root=str(graph_root), recycle_dir="../recycle")

    def test_defaults(self, graph_root):
        config = GatewayConfig(root=str(graph_root))

        assert config.backup_dir == "logseq/backup"
        assert config.recycle_dir == "logseq/.recycle"
        assert config.encoding == "utf-8"
