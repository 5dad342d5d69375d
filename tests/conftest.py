"""Shared test fixtures and utilities."""

import io
from pathlib import Path
from typing import Dict, Union

import pytest

from integrity_snapshot.core import FileEntry, Metrics, Snapshot
from integrity_snapshot.hashing import compute_metrics
from integrity_snapshot.snapshot import SnapshotBuilder


def metrics_of(content: bytes) -> Metrics:
    """Metrics for an in-memory byte string."""
    return compute_metrics(io.BytesIO(content))


def snapshot_of(files: Dict[str, Union[bytes, str]]) -> Snapshot:
    """Build a snapshot directly from {relative path: content}."""
    builder = SnapshotBuilder()
    for path, content in files.items():
        if isinstance(content, str):
            content = content.encode("utf-8")
        builder.insert(path, FileEntry(metrics=metrics_of(content)))
    return builder.build()


@pytest.fixture
def write_file(tmp_path):
    """Factory fixture to write files relative to tmp_path."""
    def _write(path: str, content: Union[str, bytes] = "test content") -> Path:
        file_path = tmp_path / path
        file_path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            file_path.write_bytes(content)
        else:
            file_path.write_text(content)
        return file_path
    return _write


@pytest.fixture
def test_tree(tmp_path):
    """Create a small directory tree in tmp_path."""
    def make_tree():
        (tmp_path / "file1.txt").write_text("content1")
        (tmp_path / "file2.txt").write_text("content2")

        src_dir = tmp_path / "src"
        src_dir.mkdir()
        (src_dir / "main.py").write_text("print('hello')")

        data_dir = tmp_path / "data"
        data_dir.mkdir()
        (data_dir / "data.csv").write_text("a,b,c\n1,2,3")
        (data_dir / "blob.bin").write_bytes(b"\x00\x01\xff")

        return {
            "file1.txt": tmp_path / "file1.txt",
            "file2.txt": tmp_path / "file2.txt",
            "src/main.py": src_dir / "main.py",
            "data/data.csv": data_dir / "data.csv",
            "data/blob.bin": data_dir / "blob.bin",
        }
    return make_tree
