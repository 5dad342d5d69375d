"""Base protocol for snapshot serialization formats."""

from typing import Protocol

from ..core import Snapshot


class SnapshotFormat(Protocol):
    """
    Protocol for snapshot encodings.

    Implementations must round-trip exactly: decode(encode(s)) == s, with
    the same tree shape and the same bytes in every metrics field.
    """

    name: str
    suffix: str

    def encode(self, snapshot: Snapshot) -> bytes:
        """
        Serialize a snapshot.

        Raises:
            EncodeError: If the snapshot cannot be represented
        """
        ...

    def decode(self, data: bytes) -> Snapshot:
        """
        Deserialize a snapshot.

        Raises:
            DecodeError: If data is not a well-formed snapshot
        """
        ...
