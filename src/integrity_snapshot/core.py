"""Core data models for integrity-snapshot.

Snapshot Tree:
--------------
A snapshot is a recursive tree of entries keyed by path segment:

    Entry = DirectoryEntry(entries: segment -> Entry) | FileEntry(metrics)

Every inner node is a directory and every leaf holding data is a file.
Directory children are always kept sorted by the raw bytes of their
segment (os.fsencode), on construction and on load. The diff engine
depends on that ordering to compare two directories in a single linear
merge.

All models here are frozen. A tree is assembled by SnapshotBuilder
(see snapshot.py) and never changes afterwards.
"""

from pathlib import PurePath, PurePosixPath
from typing import TYPE_CHECKING, Annotated, Dict, Iterator, Literal, Optional, Tuple, Union
import os

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from .constants import SNAPSHOT_VERSION

if TYPE_CHECKING:
    from .diffing import EntryDiff


DIGEST_SIZE = 32  # SHA-256 and SHA3-256 both produce 32 bytes
MAX_FILE_SIZE = 2 ** 64 - 1

PathLike = Union[str, PurePath]


def segment_key(segment: str) -> bytes:
    """Sort key for a path segment: its raw filesystem bytes."""
    return os.fsencode(segment)


def split_path(path: PathLike) -> Tuple[str, ...]:
    """Split a relative path into segments.

    Strings are interpreted as POSIX paths. "." segments are dropped, so
    "" and "." both split to an empty tuple.
    """
    if not isinstance(path, PurePath):
        path = PurePosixPath(path)
    return tuple(part for part in path.parts if part != ".")


# Segments that are not valid UTF-8 (undecodable filename bytes, carried
# as surrogate escapes) are persisted as this marker plus the hex of
# their raw bytes. NUL never occurs in a real segment, so the marker
# cannot collide with a name.
RAW_SEGMENT_MARKER = "\x00raw:"


def escape_segment(segment: str) -> str:
    """Persistable form of a segment: itself when UTF-8 encodable."""
    try:
        segment.encode("utf-8")
    except UnicodeEncodeError:
        return RAW_SEGMENT_MARKER + os.fsencode(segment).hex()
    return segment


def unescape_segment(segment):
    """Inverse of escape_segment."""
    if isinstance(segment, str) and segment.startswith(RAW_SEGMENT_MARKER):
        return os.fsdecode(bytes.fromhex(segment[len(RAW_SEGMENT_MARKER):]))
    return segment


def _check_segment(segment: str) -> None:
    if not segment or segment in (".", "..") or "/" in segment or "\x00" in segment:
        raise ValueError(f"invalid path segment: {segment!r}")


# ============= File Metrics =============

Digest = Annotated[bytes, Field(min_length=DIGEST_SIZE, max_length=DIGEST_SIZE)]


class Metrics(BaseModel):
    """Fingerprint of a single file, computed in one pass over its bytes."""

    model_config = ConfigDict(frozen=True)

    sha2: Digest  # SHA-256
    sha3: Digest  # SHA3-256
    size: int = Field(ge=0, le=MAX_FILE_SIZE)
    nul: bool  # Does the file contain a NUL byte?
    nonascii: bool  # Does the file contain bytes >= 0x80?

    @field_validator("sha2", "sha3", mode="before")
    @classmethod
    def parse_hex_digest(cls, v):
        """Accept hex strings, which is how digests appear in JSON."""
        if isinstance(v, str):
            return bytes.fromhex(v)
        return v

    @field_serializer("sha2", "sha3", when_used="json")
    def serialize_digest(self, v: bytes) -> str:
        return v.hex()


# ============= Snapshot Tree =============

class FileEntry(BaseModel):
    """Leaf node holding the metrics of one regular file."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["file"] = "file"
    metrics: Metrics

    def lookup(self, path: PathLike) -> Optional["Entry"]:
        """Files have no children: only the empty path resolves."""
        return None if split_path(path) else self

    def iter_files(self, prefix: str = "") -> Iterator[Tuple[str, Metrics]]:
        yield prefix, self.metrics


class DirectoryEntry(BaseModel):
    """Inner node: sorted mapping of path segment to child entry.

    An empty directory is DirectoryEntry(), spelled out explicitly.
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["directory"] = "directory"
    entries: Dict[str, "Entry"] = Field(default_factory=dict)

    @field_validator("entries", mode="before")
    @classmethod
    def parse_segments(cls, v):
        """Restore segments that were persisted in raw-bytes form."""
        if isinstance(v, dict):
            return {unescape_segment(segment): child for segment, child in v.items()}
        return v

    @field_serializer("entries", mode="wrap")
    def serialize_entries(self, entries, handler):
        return handler({escape_segment(segment): child for segment, child in entries.items()})

    @field_validator("entries", mode="after")
    @classmethod
    def sort_entries(cls, v: Dict[str, "Entry"]) -> Dict[str, "Entry"]:
        """Validate segment names and order children by raw bytes."""
        for segment in v:
            _check_segment(segment)
        return dict(sorted(v.items(), key=lambda item: segment_key(item[0])))

    def lookup(self, path: PathLike) -> Optional["Entry"]:
        """Resolve a relative path to an entry.

        Returns None if any segment is missing, including when the path
        runs through a file before its segments are exhausted. The empty
        path resolves to this directory.
        """
        node: Entry = self
        for segment in split_path(path):
            if not isinstance(node, DirectoryEntry):
                return None
            child = node.entries.get(segment)
            if child is None:
                return None
            node = child
        return node

    def iter_files(self, prefix: str = "") -> Iterator[Tuple[str, Metrics]]:
        """Yield (POSIX path, metrics) for every file below, in sorted order."""
        for segment, child in self.entries.items():
            yield from child.iter_files(f"{prefix}/{segment}" if prefix else segment)


Entry = Annotated[Union[DirectoryEntry, FileEntry], Field(discriminator="kind")]

DirectoryEntry.model_rebuild()


class Snapshot(BaseModel):
    """
    Immutable point-in-time capture of a directory tree.

    Built once by SnapshotBuilder or loaded once from a persisted form.
    There is no insertion API here on purpose.
    """

    model_config = ConfigDict(frozen=True)

    version: str = SNAPSHOT_VERSION
    root: Entry = Field(default_factory=DirectoryEntry)

    @field_validator("version")
    @classmethod
    def check_version(cls, v: str) -> str:
        if v != SNAPSHOT_VERSION:
            raise ValueError(f"unsupported snapshot version {v!r} (expected {SNAPSHOT_VERSION!r})")
        return v

    def lookup(self, path: PathLike) -> Optional[Entry]:
        """Find the entry at a root-relative path, or None."""
        return self.root.lookup(path)

    def diff(self, other: "Snapshot") -> "EntryDiff":
        """Compare this (older) snapshot against a newer one."""
        from .diffing import diff_entries
        return diff_entries(self.root, other.root)

    def iter_files(self) -> Iterator[Tuple[str, Metrics]]:
        """Yield (POSIX path, metrics) for every file, in sorted order."""
        return self.root.iter_files()

    @property
    def file_count(self) -> int:
        return sum(1 for _ in self.iter_files())

    @property
    def total_size(self) -> int:
        """Total bytes across all files."""
        return sum(metrics.size for _, metrics in self.iter_files())
