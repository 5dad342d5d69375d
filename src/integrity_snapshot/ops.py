"""Core operations for integrity-snapshot: build, persist, load, check."""

from pathlib import Path
from typing import Optional, Union
import logging
import os
import tempfile

from .config import SnapshotConfig
from .core import Snapshot
from .diffing import EntryDiff, diff_snapshots
from .errors import StorageError
from .formats import SnapshotFormat, format_for_path, get_format
from .ignore import IgnoreSpec
from .snapshot import ScanResult, scan_tree


logger = logging.getLogger(__name__)


# ============= Atomic Write Helpers =============

def _atomic_write_bytes(path: Path, data: bytes) -> None:
    """Atomically write bytes to file with crash safety.

    1. Writes to temp file with fsync to ensure content is on disk
    2. Atomic rename to target path (appears all-at-once)
    3. Fsync parent directory to ensure rename is durable

    Directory fsync is best-effort: unsupported on Windows and some
    filesystems.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    # Create temp file in same directory
    with tempfile.NamedTemporaryFile(
        mode="wb",
        delete=False,
        dir=path.parent,
        prefix=f".{path.name}.tmp-",
        suffix=""
    ) as f:
        f.write(data)
        f.flush()
        os.fsync(f.fileno())
        tmp = Path(f.name)

    try:
        os.replace(tmp, path)

        try:
            flags = os.O_RDONLY
            if hasattr(os, "O_DIRECTORY"):
                flags |= os.O_DIRECTORY

            dirfd = os.open(str(path.parent), flags)
            try:
                os.fsync(dirfd)
            finally:
                os.close(dirfd)
        except OSError:
            # The file itself was fsynced above; only the rename may be lost
            logger.debug("Directory fsync not supported for %s", path.parent)
    except BaseException:
        tmp.unlink(missing_ok=True)
        raise


def _resolve_format(path: Path, fmt: Optional[str]) -> SnapshotFormat:
    return get_format(fmt) if fmt else format_for_path(path)


# ============= Persistence =============

def save_snapshot(snapshot: Snapshot, path: Union[str, Path], fmt: Optional[str] = None) -> None:
    """
    Encode a snapshot and write it atomically.

    Args:
        snapshot: Snapshot to persist.
        path: Destination file.
        fmt: "json" or "cbor"; inferred from the suffix when omitted.

    Raises:
        EncodeError: If the snapshot cannot be encoded.
        StorageError: If the file cannot be written.
    """
    path = Path(path)
    data = _resolve_format(path, fmt).encode(snapshot)
    try:
        _atomic_write_bytes(path, data)
    except OSError as e:
        raise StorageError(path, e.strerror or str(e)) from e
    logger.info("Wrote snapshot to %s (%d bytes)", path, len(data))


def load_snapshot(path: Union[str, Path], fmt: Optional[str] = None) -> Snapshot:
    """
    Read and decode a persisted snapshot.

    Raises:
        StorageError: If the file cannot be read.
        DecodeError: If the contents are not a valid snapshot.
    """
    path = Path(path)
    snapshot_format = _resolve_format(path, fmt)
    try:
        data = path.read_bytes()
    except OSError as e:
        raise StorageError(path, e.strerror or str(e)) from e
    snapshot = snapshot_format.decode(data)
    logger.info("Loaded %s snapshot from %s", snapshot_format.name, path)
    return snapshot


def convert_snapshot(src: Union[str, Path], dest: Union[str, Path],
                     src_fmt: Optional[str] = None, dest_fmt: Optional[str] = None) -> Snapshot:
    """Re-encode a persisted snapshot in another format."""
    snapshot = load_snapshot(src, src_fmt)
    save_snapshot(snapshot, dest, dest_fmt)
    return snapshot


# ============= Build & Check =============

def make_ignore_spec(root: Path, config: SnapshotConfig) -> IgnoreSpec:
    """Ignore rules for a scan of root under the given configuration."""
    return IgnoreSpec(root, extra=config.ignore, include_hidden=config.include_hidden)


def scan(root: Union[str, Path], config: Optional[SnapshotConfig] = None) -> ScanResult:
    """Build a fresh snapshot of root with the given configuration."""
    root = Path(root)
    config = config or SnapshotConfig()
    ignore = make_ignore_spec(root, config) if root.is_dir() else None
    return scan_tree(root, ignore=ignore, chunk_size=config.chunk_size)


def check(root: Union[str, Path], baseline: Snapshot,
          config: Optional[SnapshotConfig] = None) -> EntryDiff:
    """
    Rebuild the snapshot of root and compare it against a baseline.

    Returns:
        Diff from the baseline (old) to the current tree (new).
    """
    current = scan(root, config).snapshot
    return diff_snapshots(baseline, current)
