"""Directory enumeration for snapshot builds."""

from pathlib import Path
from typing import Iterator, Optional, Tuple
import logging
import os
import stat

from .core import segment_key
from .errors import PathStripError, ReadError
from .ignore import IgnoreSpec


logger = logging.getLogger(__name__)


def _raise(error: OSError) -> None:
    raise error


def relative_posix(path: Path, root: Path) -> str:
    """Express path relative to root in POSIX form ("." for root itself).

    Raises:
        PathStripError: If path is not under root
    """
    try:
        return path.relative_to(root).as_posix()
    except ValueError:
        raise PathStripError(path, root)


def _join(rel_dir: str, name: str) -> str:
    return f"{rel_dir}/{name}" if rel_dir != "." else name


def iter_files(root: Path, ignore: Optional[IgnoreSpec] = None) -> Iterator[Tuple[str, Path]]:
    """Yield (relative POSIX path, absolute path) for each regular file.

    A root that is itself a regular file is yielded under its own name.
    Symbolic links are never followed and, like sockets, FIFOs and device
    nodes, are not yielded. Ignored and hidden directories are pruned.
    Ignore files (.gitignore, .ignore, .integrityignore) are honored in
    every directory the walk enters.

    Args:
        root: Directory (or single file) to enumerate
        ignore: Ignore rules; defaults to IgnoreSpec(root)

    Raises:
        ReadError: If the root or any directory below it cannot be read
        PathStripError: If an enumerated path falls outside root
    """
    root = Path(root)
    try:
        root_mode = root.stat().st_mode
    except OSError as e:
        raise ReadError(root, e.strerror or str(e)) from e

    if stat.S_ISREG(root_mode):
        yield root.name, root
        return
    if not stat.S_ISDIR(root_mode):
        logger.debug("Root %s is neither a file nor a directory, nothing to scan", root)
        return

    if ignore is None:
        ignore = IgnoreSpec(root)

    try:
        for dirpath, dirnames, filenames in os.walk(root, onerror=_raise):
            current = Path(dirpath)
            rel_dir = relative_posix(current, root)
            ignore.load_directory(rel_dir)

            kept = []
            for name in dirnames:
                if ignore.should_traverse(_join(rel_dir, name)):
                    kept.append(name)
                else:
                    logger.debug("Pruned directory %s", _join(rel_dir, name))
            dirnames[:] = sorted(kept, key=segment_key)

            for name in sorted(filenames, key=segment_key):
                rel = _join(rel_dir, name)
                if ignore.is_ignored(rel):
                    continue
                path = current / name
                mode = path.lstat().st_mode
                if not stat.S_ISREG(mode):
                    logger.debug("Skipping non-regular file %s", rel)
                    continue
                yield rel, path
    except OSError as e:
        raise ReadError(e.filename or root, e.strerror or str(e)) from e
