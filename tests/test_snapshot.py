"""Tests for the snapshot tree: building, ordering, lookup and invariants."""

from pathlib import PurePosixPath

import pytest
from pydantic import ValidationError

from integrity_snapshot.core import DirectoryEntry, FileEntry, Snapshot
from integrity_snapshot.errors import InvariantViolation, SnapshotError
from integrity_snapshot.snapshot import SnapshotBuilder

from conftest import metrics_of, snapshot_of


class TestSnapshotBuilder:
    """Test insertion during the mutable build phase."""

    def test_directories_created_implicitly(self):
        snapshot = snapshot_of({"a/b/c.txt": "deep", "a/d.txt": "shallow"})

        a = snapshot.lookup("a")
        assert isinstance(a, DirectoryEntry)
        assert isinstance(a.entries["b"], DirectoryEntry)
        assert isinstance(a.entries["d.txt"], FileEntry)
        assert snapshot.lookup("a/b/c.txt").metrics == metrics_of(b"deep")

    def test_children_sorted_regardless_of_insertion_order(self):
        snapshot = snapshot_of({"zeta": "z", "Alpha": "A", "beta": "b", "_x": "_"})

        # Byte order: uppercase < underscore < lowercase
        assert list(snapshot.root.entries) == ["Alpha", "_x", "beta", "zeta"]

    def test_accepts_pure_paths(self):
        builder = SnapshotBuilder()
        builder.insert(PurePosixPath("dir/file.txt"), FileEntry(metrics=metrics_of(b"x")))
        snapshot = builder.build()

        assert snapshot.lookup(PurePosixPath("dir/file.txt")) is not None

    def test_empty_builder_gives_empty_directory(self):
        snapshot = SnapshotBuilder().build()

        assert snapshot.root == DirectoryEntry()
        assert snapshot.file_count == 0

    def test_duplicate_insertion_is_fatal(self):
        builder = SnapshotBuilder()
        builder.insert("a.txt", FileEntry(metrics=metrics_of(b"1")))

        with pytest.raises(InvariantViolation):
            builder.insert("a.txt", FileEntry(metrics=metrics_of(b"2")))

    def test_insert_below_file_is_fatal(self):
        builder = SnapshotBuilder()
        builder.insert("a", FileEntry(metrics=metrics_of(b"1")))

        with pytest.raises(InvariantViolation):
            builder.insert("a/b.txt", FileEntry(metrics=metrics_of(b"2")))

    def test_insert_over_directory_is_fatal(self):
        builder = SnapshotBuilder()
        builder.insert("a/b.txt", FileEntry(metrics=metrics_of(b"1")))

        with pytest.raises(InvariantViolation):
            builder.insert("a", FileEntry(metrics=metrics_of(b"2")))

    def test_insert_after_build_is_fatal(self):
        builder = SnapshotBuilder()
        builder.build()

        with pytest.raises(InvariantViolation):
            builder.insert("late.txt", FileEntry(metrics=metrics_of(b"x")))
        with pytest.raises(InvariantViolation):
            builder.build()

    @pytest.mark.parametrize("bad_path", ["", ".", "/abs/file", "../escape", "a/../b", "nul\x00byte"])
    def test_malformed_paths_are_fatal(self, bad_path):
        with pytest.raises(InvariantViolation):
            SnapshotBuilder().insert(bad_path, FileEntry(metrics=metrics_of(b"x")))

    def test_invariant_violation_is_not_recoverable_error(self):
        """Invariant violations stay out of the SnapshotError taxonomy."""
        assert not issubclass(InvariantViolation, SnapshotError)
        assert issubclass(InvariantViolation, AssertionError)


class TestSnapshotLookup:
    """Test read-only lookup on a built snapshot."""

    @pytest.fixture
    def snapshot(self):
        return snapshot_of({
            "README": "readme",
            "src/main.py": "main",
            "src/pkg/util.py": "util",
        })

    def test_lookup_file(self, snapshot):
        entry = snapshot.lookup("src/pkg/util.py")
        assert isinstance(entry, FileEntry)
        assert entry.metrics == metrics_of(b"util")

    def test_lookup_directory(self, snapshot):
        entry = snapshot.lookup("src/pkg")
        assert isinstance(entry, DirectoryEntry)
        assert list(entry.entries) == ["util.py"]

    def test_lookup_missing(self, snapshot):
        assert snapshot.lookup("src/missing.py") is None
        assert snapshot.lookup("nope/deeper/file") is None

    def test_lookup_through_file_is_not_found(self, snapshot):
        """A path continuing past a file resolves to nothing."""
        assert snapshot.lookup("README/child") is None
        assert snapshot.lookup("src/main.py/x/y") is None

    def test_lookup_empty_path_is_root(self, snapshot):
        assert snapshot.lookup("") is snapshot.root
        assert snapshot.lookup(".") is snapshot.root


class TestSnapshotModel:
    """Test the immutable snapshot models."""

    def test_snapshot_is_frozen(self):
        snapshot = snapshot_of({"a.txt": "a"})

        with pytest.raises(ValidationError):
            snapshot.root = DirectoryEntry()

    def test_iter_files_sorted(self):
        snapshot = snapshot_of({"b/z.txt": "1", "a.txt": "22", "b/a.txt": "333"})

        paths = [path for path, _ in snapshot.iter_files()]
        assert paths == ["a.txt", "b/a.txt", "b/z.txt"]
        assert snapshot.file_count == 3
        assert snapshot.total_size == 6

    def test_directory_entry_sorts_on_construction(self):
        f = FileEntry(metrics=metrics_of(b"x"))
        directory = DirectoryEntry(entries={"b": f, "a": f, "C": f})

        assert list(directory.entries) == ["C", "a", "b"]

    @pytest.mark.parametrize("segment", ["", ".", "..", "a/b", "a\x00b"])
    def test_directory_entry_rejects_bad_segments(self, segment):
        with pytest.raises(ValidationError):
            DirectoryEntry(entries={segment: FileEntry(metrics=metrics_of(b"x"))})

    def test_equality_is_structural(self):
        assert snapshot_of({"a/b": "1", "c": "2"}) == snapshot_of({"c": "2", "a/b": "1"})
        assert snapshot_of({"a/b": "1"}) != snapshot_of({"a/b": "2"})

    def test_unsupported_version_rejected(self):
        with pytest.raises(ValidationError):
            Snapshot(version="999")
