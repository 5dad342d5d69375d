"""Persisted snapshot formats: JSON (human-inspectable) and CBOR (compact binary)."""

from .base import SnapshotFormat
from .factory import FORMATS, format_for_path, get_format

__all__ = ["FORMATS", "SnapshotFormat", "format_for_path", "get_format"]
