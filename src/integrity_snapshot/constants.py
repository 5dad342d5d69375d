"""Constants for integrity-snapshot."""

# Project marker directory (hidden, so it is skipped by default scans)
INTEGRITY_SNAPSHOT_DIR = ".integrity-snapshot"

# Configuration files (inside INTEGRITY_SNAPSHOT_DIR)
CONFIG_FILE = "config.yaml"

# Ignore files honored in every scanned directory, lowest precedence first
IGNORE_FILE = ".integrityignore"
IGNORE_FILES = (".gitignore", ".ignore", IGNORE_FILE)

# Default snapshot file written by `build` and read by `check`
DEFAULT_SNAPSHOT_FILE = ".integrity-snapshot.json"

# Read size for the metrics engine
CHUNK_SIZE = 8192

# Serialized snapshot format version
SNAPSHOT_VERSION = "1"
