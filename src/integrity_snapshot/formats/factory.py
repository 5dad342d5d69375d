"""Lookup of snapshot formats by name or file suffix."""

from pathlib import Path
from typing import Dict, Union

from ..errors import UnknownFormatError
from .base import SnapshotFormat
from .cbor_format import CborFormat
from .json_format import JsonFormat


FORMATS: Dict[str, SnapshotFormat] = {
    "json": JsonFormat(),
    "cbor": CborFormat(),
}


def get_format(name: str) -> SnapshotFormat:
    """
    Get a snapshot format by name.

    Args:
        name: "json" or "cbor" (case-insensitive)

    Raises:
        UnknownFormatError: If no such format exists
    """
    try:
        return FORMATS[name.lower()]
    except KeyError:
        raise UnknownFormatError(name)


def format_for_path(path: Union[str, Path], default: str = "json") -> SnapshotFormat:
    """
    Pick a format from a file's suffix.

    ".cbor" selects CBOR, ".json" selects JSON; any other suffix falls
    back to the default format name.
    """
    suffix = Path(path).suffix.lower()
    for fmt in FORMATS.values():
        if fmt.suffix == suffix:
            return fmt
    return get_format(default)
