"""Gitignore-style pattern matching for integrity-snapshot."""

from pathlib import Path
from typing import Iterable, List
import re

from pathspec import GitIgnoreSpec

from .constants import DEFAULT_SNAPSHOT_FILE, IGNORE_FILES, INTEGRITY_SNAPSHOT_DIR
from .errors import ReadError


# Default patterns to always ignore: our own metadata, so that writing a
# snapshot inside the scanned tree does not show up as an addition.
DEFAULTS = [
    f"/{INTEGRITY_SNAPSHOT_DIR}/",
    f"/{DEFAULT_SNAPSHOT_FILE}",
    "/.integrity-snapshot.cbor",
]

_GLOB_SPECIAL = re.compile(r"([\[\]*?\\])")


def _read_patterns(path: Path) -> List[str]:
    try:
        content = path.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        raise ReadError(path, e.strerror or str(e)) from e
    patterns = []
    for line in content.splitlines():
        line = line.strip()
        if line and not line.startswith("#"):
            patterns.append(line)
    return patterns


def anchor_pattern(pattern: str, rel_dir: str) -> str:
    """Rewrite a pattern read from rel_dir's ignore file to be root-relative.

    As in git, a pattern with a slash before its end is relative to the
    directory holding the ignore file; one without matches at any depth
    below it.
    """
    if rel_dir in ("", "."):
        return pattern
    negate = pattern.startswith("!")
    body = pattern[1:] if negate else pattern
    base = "/" + _GLOB_SPECIAL.sub(r"\\\1", rel_dir)
    if "/" in body.rstrip("/"):
        anchored = f"{base}/{body.lstrip('/')}"
    else:
        anchored = f"{base}/**/{body}"
    return "!" + anchored if negate else anchored


class IgnoreSpec:
    """Manages gitignore-style patterns for file exclusion.

    Patterns come from, in increasing precedence: the built-in defaults,
    the .gitignore, .ignore and .integrityignore files of every traversed
    directory (parents before children), and the extra patterns given
    explicitly. Later patterns win, so a nested ignore file can re-include
    what its parent excluded.
    """

    def __init__(self, root: Path, extra: Iterable[str] = (), include_hidden: bool = False):
        """Initialize ignore spec with default and custom patterns.

        Args:
            root: Root directory being scanned
            extra: Additional patterns to include
            include_hidden: Whether dot-files and dot-directories are scanned
        """
        self.root = Path(root)
        self.include_hidden = include_hidden
        self.extra = list(extra)
        self._file_patterns: List[str] = []
        self._loaded = set()
        self._compile()
        self.load_directory(".")

    def _compile(self) -> None:
        self.patterns = DEFAULTS + self._file_patterns + self.extra
        self.spec = GitIgnoreSpec.from_lines(self.patterns)

    def load_directory(self, rel_dir: str) -> None:
        """Pick up the ignore files of a directory reached by the walk.

        Call for each directory before testing its entries, parents first.
        Loading the same directory twice is a no-op.

        Raises:
            ReadError: If an ignore file exists but cannot be read
        """
        rel_dir = rel_dir or "."
        if rel_dir in self._loaded:
            return
        self._loaded.add(rel_dir)

        directory = self.root if rel_dir == "." else self.root / rel_dir
        found = []
        for name in IGNORE_FILES:
            path = directory / name
            if path.is_file():
                found.extend(anchor_pattern(p, rel_dir) for p in _read_patterns(path))
        if found:
            self._file_patterns.extend(found)
            self._compile()

    def _is_hidden(self, relpath: str) -> bool:
        return not self.include_hidden and relpath.rsplit("/", 1)[-1].startswith(".")

    def is_ignored(self, relpath: str) -> bool:
        """Check if a root-relative POSIX file path should be skipped.

        Args:
            relpath: Root-relative path in POSIX format (forward slashes)

        Returns:
            True if the path is hidden (and hidden files are excluded) or
            matches any ignore pattern
        """
        return self._is_hidden(relpath) or self.spec.match_file(relpath)

    def should_traverse(self, dirpath: str) -> bool:
        """Check if a directory should be descended into during scanning.

        If a directory is ignored, the walk prunes it entirely.

        Args:
            dirpath: Root-relative directory path in POSIX format

        Returns:
            True if the directory should be traversed
        """
        dirpath = dirpath.rstrip("/")
        if self._is_hidden(dirpath):
            return False

        # Add trailing slash to match directory patterns
        return not self.spec.match_file(dirpath + "/")
