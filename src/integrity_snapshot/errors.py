"""Custom exceptions for integrity-snapshot.

Everything a caller is expected to handle derives from SnapshotError.
InvariantViolation is deliberately outside that hierarchy: it signals a
broken builder contract and is never caught by the library.
"""

from pathlib import Path
from typing import Optional, Union


class SnapshotError(RuntimeError):
    """Base class for all recoverable snapshot errors."""
    pass


# I/O Errors
class ReadError(SnapshotError):
    """A directory or file could not be read while building a snapshot."""

    def __init__(self, path: Union[str, Path], reason: str):
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"Cannot read {path}: {reason}")


class PathStripError(SnapshotError):
    """An enumerated path is not located under the scanned root."""

    def __init__(self, path: Union[str, Path], root: Union[str, Path]):
        self.path = Path(path)
        self.root = Path(root)
        super().__init__(f"Path {path} is not relative to root {root}")


class StorageError(SnapshotError):
    """Persisted snapshot file could not be opened or written."""

    def __init__(self, path: Union[str, Path], reason: str):
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"Cannot access snapshot file {path}: {reason}")


# Serialization Errors
class SerializationError(SnapshotError):
    """Base class for snapshot encoding and decoding errors."""
    pass


class DecodeError(SerializationError):
    """Persisted snapshot is malformed."""

    def __init__(self, fmt: str, reason: str, path: Optional[Path] = None):
        self.fmt = fmt
        self.path = path
        where = f" in {path}" if path else ""
        super().__init__(f"Malformed {fmt} snapshot{where}: {reason}")


class EncodeError(SerializationError):
    """Snapshot could not be encoded."""

    def __init__(self, fmt: str, reason: str):
        self.fmt = fmt
        super().__init__(f"Cannot encode snapshot as {fmt}: {reason}")


class UnknownFormatError(SerializationError):
    """Requested serialization format does not exist."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(
            f"Unknown snapshot format '{name}'. Use 'json' or 'cbor'."
        )


# Configuration Errors
class ConfigError(SnapshotError):
    """Configuration file is present but invalid."""
    pass


# Programming errors
class InvariantViolation(AssertionError):
    """The snapshot tree's uniqueness or shape invariant was broken.

    Raised for duplicate leaf insertion, insertion through a file node and
    insertion into a builder that was already frozen. These can only happen
    if the enumerator feeding the builder is broken, so they are not part
    of the recoverable SnapshotError taxonomy.
    """
    pass
