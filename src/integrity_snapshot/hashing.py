"""Single-pass metrics computation for snapshot files.

Each file is read exactly once, in bounded chunks, and every chunk is fed
to all accumulators: SHA-256, SHA3-256, a byte counter and two flag tests
(any NUL byte, any byte outside 7-bit ASCII). Two unrelated digest
algorithms are kept side by side so that a collision crafted against one
of them does not go unnoticed.
"""

from pathlib import Path
from typing import BinaryIO, Union
import hashlib
import re

from .constants import CHUNK_SIZE
from .core import Metrics
from .errors import ReadError


_NON_ASCII = re.compile(rb"[\x80-\xff]")


class MetricsEngine:
    """Accumulates file metrics chunk by chunk.

    Nothing is observable until finalize() is called.
    """

    def __init__(self):
        self._sha2 = hashlib.sha256()
        self._sha3 = hashlib.sha3_256()
        self._size = 0
        self._nul = False
        self._nonascii = False

    def update(self, chunk: bytes) -> None:
        """Feed one chunk into every accumulator."""
        self._sha2.update(chunk)
        self._sha3.update(chunk)
        self._size += len(chunk)
        self._nul = self._nul or b"\x00" in chunk
        self._nonascii = self._nonascii or _NON_ASCII.search(chunk) is not None

    def finalize(self) -> Metrics:
        """Extract both digests and compose the metrics record."""
        return Metrics(
            sha2=self._sha2.digest(),
            sha3=self._sha3.digest(),
            size=self._size,
            nul=self._nul,
            nonascii=self._nonascii,
        )


def compute_metrics(stream: BinaryIO, chunk_size: int = CHUNK_SIZE) -> Metrics:
    """Compute metrics from a binary stream in one forward pass.

    Args:
        stream: Readable binary stream positioned at the start of the data
        chunk_size: Maximum bytes per read; does not affect the result

    Returns:
        Metrics for all bytes remaining in the stream

    Raises:
        ValueError: If chunk_size is not positive
    """
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")

    engine = MetricsEngine()
    for chunk in iter(lambda: stream.read(chunk_size), b""):
        engine.update(chunk)
    return engine.finalize()


def compute_file_metrics(path: Union[str, Path], chunk_size: int = CHUNK_SIZE) -> Metrics:
    """Compute metrics for a file on disk.

    The file handle is closed before returning, on success or failure.

    Args:
        path: File to read
        chunk_size: Maximum bytes per read

    Returns:
        Metrics of the file contents

    Raises:
        ReadError: If the file cannot be opened or read
    """
    path = Path(path)
    try:
        with path.open("rb") as f:
            return compute_metrics(f, chunk_size)
    except OSError as e:
        raise ReadError(path, e.strerror or str(e)) from e


__all__ = [
    "MetricsEngine",
    "compute_metrics",
    "compute_file_metrics",
]
