"""Snapshot configuration helpers."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List

import yaml

from .constants import CHUNK_SIZE, CONFIG_FILE, DEFAULT_SNAPSHOT_FILE, INTEGRITY_SNAPSHOT_DIR
from .errors import ConfigError


@dataclass
class SnapshotConfig:
    """Configuration controlling how a tree is scanned and persisted."""

    ignore: List[str] = field(default_factory=list)
    include_hidden: bool = False
    chunk_size: int = CHUNK_SIZE
    format: str = "json"  # "json" or "cbor"
    snapshot_file: str = DEFAULT_SNAPSHOT_FILE


def config_path(root: Path) -> Path:
    return root / INTEGRITY_SNAPSHOT_DIR / CONFIG_FILE


def load_snapshot_config(root: Path) -> SnapshotConfig:
    """Load configuration from .integrity-snapshot/config.yaml if present.

    A missing file yields defaults. A file that exists but cannot be
    parsed, or holds values of the wrong type, raises ConfigError: scanning
    with silently different ignore rules would change what gets checked.
    """
    cfg_path = config_path(root)
    if not cfg_path.is_file():
        return SnapshotConfig()

    try:
        data = yaml.safe_load(cfg_path.read_text()) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Cannot read {cfg_path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"{cfg_path} must contain a mapping")

    ignore = data.get("ignore", [])
    if not isinstance(ignore, list) or not all(isinstance(p, str) for p in ignore):
        raise ConfigError(f"{cfg_path}: 'ignore' must be a list of patterns")

    include_hidden = data.get("include_hidden", False)
    if not isinstance(include_hidden, bool):
        raise ConfigError(f"{cfg_path}: 'include_hidden' must be true or false")

    chunk_size = data.get("chunk_size", CHUNK_SIZE)
    if isinstance(chunk_size, bool) or not isinstance(chunk_size, int) or chunk_size <= 0:
        raise ConfigError(f"{cfg_path}: 'chunk_size' must be a positive integer")

    fmt = str(data.get("format", "json")).lower()
    if fmt not in ("json", "cbor"):
        raise ConfigError(f"{cfg_path}: 'format' must be 'json' or 'cbor', got {fmt!r}")

    return SnapshotConfig(
        ignore=ignore,
        include_hidden=include_hidden,
        chunk_size=chunk_size,
        format=fmt,
        snapshot_file=str(data.get("snapshot_file", DEFAULT_SNAPSHOT_FILE)),
    )
