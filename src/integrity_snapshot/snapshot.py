"""Snapshot construction: mutable builder phase and directory scanning."""

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, Union
import logging
import time

from .constants import CHUNK_SIZE
from .core import DirectoryEntry, FileEntry, PathLike, Snapshot, split_path
from .errors import InvariantViolation
from .hashing import compute_file_metrics
from .ignore import IgnoreSpec
from .walker import iter_files


logger = logging.getLogger(__name__)

# Mutable directory node used only while building: segment -> node
_PendingDirectory = Dict[str, Union["_PendingDirectory", FileEntry]]


def _insert(directory: _PendingDirectory, segments, entry: FileEntry) -> None:
    first, rest = segments[0], segments[1:]
    if not rest:
        if first in directory:
            raise InvariantViolation(f"duplicate insertion at {first!r}")
        directory[first] = entry
        return

    child = directory.setdefault(first, {})
    if isinstance(child, FileEntry):
        raise InvariantViolation(f"cannot insert below file {first!r}")
    _insert(child, rest, entry)


def _freeze(directory: _PendingDirectory) -> DirectoryEntry:
    return DirectoryEntry(entries={
        segment: child if isinstance(child, FileEntry) else _freeze(child)
        for segment, child in directory.items()
    })


class SnapshotBuilder:
    """
    Mutable phase of a snapshot's lifecycle.

    Paths are inserted one at a time; build() freezes the tree into an
    immutable Snapshot and closes the builder. Directories are created
    implicitly by the paths inserted below them.
    """

    def __init__(self):
        self._root: _PendingDirectory = {}
        self._built = False

    def insert(self, path: PathLike, entry: FileEntry) -> None:
        """Insert a leaf entry at a root-relative path.

        Each path may be inserted at most once. The enumerator feeding the
        builder guarantees that, so a repeated path, a path running through
        an existing file, or an insertion after build() raises
        InvariantViolation.
        """
        if self._built:
            raise InvariantViolation("snapshot already built; builder is closed")
        segments = split_path(path)
        if not segments:
            raise InvariantViolation(f"empty path: {path!r}")
        if any(s == ".." or "/" in s or "\x00" in s for s in segments):
            raise InvariantViolation(f"path must be relative and normalized: {path!r}")
        _insert(self._root, segments, entry)

    def build(self) -> Snapshot:
        """Freeze the tree into an immutable Snapshot."""
        if self._built:
            raise InvariantViolation("snapshot already built; builder is closed")
        self._built = True
        return Snapshot(root=_freeze(self._root))


@dataclass
class ScanResult:
    """A freshly built snapshot plus statistics about the scan."""
    snapshot: Snapshot
    files: int
    total_bytes: int
    elapsed: float  # seconds

    @property
    def throughput(self) -> float:
        """Read rate in MB/s."""
        if self.elapsed <= 0:
            return 0.0
        return self.total_bytes / self.elapsed / 1e6


def scan_tree(
    root: Union[str, Path],
    ignore: Optional[IgnoreSpec] = None,
    chunk_size: int = CHUNK_SIZE,
) -> ScanResult:
    """Walk root, hash every regular file and assemble a snapshot.

    Any error aborts the whole scan; no partial snapshot is returned.

    Args:
        root: Directory to snapshot (or a single file)
        ignore: Ignore rules; defaults to IgnoreSpec(root)
        chunk_size: Read size for the metrics engine

    Raises:
        ReadError: If a directory or file cannot be read
        PathStripError: If the enumerator yields a path outside root
    """
    root = Path(root)
    start = time.perf_counter()
    builder = SnapshotBuilder()
    files = 0
    total_bytes = 0

    for rel_path, path in iter_files(root, ignore):
        metrics = compute_file_metrics(path, chunk_size)
        logger.debug("Hashed %s (%d bytes)", rel_path, metrics.size)
        builder.insert(rel_path, FileEntry(metrics=metrics))
        files += 1
        total_bytes += metrics.size

    snapshot = builder.build()
    elapsed = time.perf_counter() - start
    logger.info("Scanned %d files (%d bytes) under %s in %.3fs", files, total_bytes, root, elapsed)
    return ScanResult(snapshot=snapshot, files=files, total_bytes=total_bytes, elapsed=elapsed)


def build_snapshot(
    root: Union[str, Path],
    ignore: Optional[IgnoreSpec] = None,
    chunk_size: int = CHUNK_SIZE,
) -> Snapshot:
    """Build a snapshot of root. See scan_tree()."""
    return scan_tree(root, ignore, chunk_size).snapshot
