"""Diff computation between two snapshot trees.

The directory case is a merge-join: both child mappings are already sorted
by segment bytes, so one pass over the two sequences pairs up common keys
and classifies the rest as added or removed. Counts are rolled up bottom-up
so a caller can decide at any depth whether a subtree is worth descending
into without walking it again.
"""

from dataclasses import dataclass, field
from typing import Dict, Literal, Tuple, Union

from .core import DirectoryEntry, Entry, FileEntry, Metrics, Snapshot, segment_key


EntryKind = Literal["file", "directory"]


@dataclass(frozen=True)
class DirectoryDiff:
    """Aggregated change counts for a directory and everything below it."""

    added: int = 0
    removed: int = 0
    changed: int = 0
    unchanged: int = 0

    @property
    def has_changes(self) -> bool:
        """Check if anything was added, removed or changed."""
        return self.added > 0 or self.removed > 0 or self.changed > 0


@dataclass(frozen=True)
class MetricsDiff:
    """Comparison of one file's metrics between two snapshots."""

    changed_content: bool
    zeroed: bool  # Truncated from non-empty to empty
    changed_nul: bool
    changed_nonascii: bool
    old: Metrics
    new: Metrics

    @property
    def is_suspicious(self) -> bool:
        return self.zeroed or self.changed_nul or self.changed_nonascii


@dataclass(frozen=True)
class DirectoryEntryDiff:
    """Diff of two directories: per-key child diffs plus rolled-up counts.

    entries only holds keys present on both sides; keys present on one
    side only are listed by name in added/removed.
    """

    entries: Dict[str, "EntryDiff"]
    counts: DirectoryDiff
    added: Tuple[str, ...] = field(default=())
    removed: Tuple[str, ...] = field(default=())


@dataclass(frozen=True)
class FileEntryDiff:
    metrics: MetricsDiff


@dataclass(frozen=True)
class KindChanged:
    """Same path is a file on one side and a directory on the other."""

    old_kind: EntryKind
    new_kind: EntryKind


EntryDiff = Union[DirectoryEntryDiff, FileEntryDiff, KindChanged]


def diff_metrics(old: Metrics, new: Metrics) -> MetricsDiff:
    """Classify the change between two file fingerprints."""
    return MetricsDiff(
        changed_content=(
            old.size != new.size
            or old.sha2 != new.sha2
            or old.sha3 != new.sha3
        ),
        zeroed=old.size > 0 and new.size == 0,
        changed_nul=old.nul != new.nul,
        changed_nonascii=old.nonascii != new.nonascii,
        old=old,
        new=new,
    )


def _diff_directories(old: DirectoryEntry, new: DirectoryEntry) -> DirectoryEntryDiff:
    entries: Dict[str, EntryDiff] = {}
    added = []
    removed = []
    changed = 0
    unchanged = 0
    # Rolled up from subdirectories, on top of this level's added/removed
    nested_added = 0
    nested_removed = 0

    old_items = list(old.entries.items())
    new_items = list(new.entries.items())
    i = j = 0
    while i < len(old_items) and j < len(new_items):
        old_key, old_value = old_items[i]
        new_key, new_value = new_items[j]
        old_sort, new_sort = segment_key(old_key), segment_key(new_key)

        if old_sort < new_sort:
            removed.append(old_key)
            i += 1
        elif old_sort > new_sort:
            added.append(new_key)
            j += 1
        else:
            child = diff_entries(old_value, new_value)
            if isinstance(child, DirectoryEntryDiff):
                nested_added += child.counts.added
                nested_removed += child.counts.removed
                changed += child.counts.changed
                unchanged += child.counts.unchanged
            elif isinstance(child, FileEntryDiff):
                if child.metrics.changed_content:
                    changed += 1
                else:
                    unchanged += 1
            else:
                changed += 1
            entries[old_key] = child
            i += 1
            j += 1

    removed.extend(key for key, _ in old_items[i:])
    added.extend(key for key, _ in new_items[j:])

    return DirectoryEntryDiff(
        entries=entries,
        counts=DirectoryDiff(
            added=len(added) + nested_added,
            removed=len(removed) + nested_removed,
            changed=changed,
            unchanged=unchanged,
        ),
        added=tuple(added),
        removed=tuple(removed),
    )


def _kind(entry: Entry) -> EntryKind:
    return "directory" if isinstance(entry, DirectoryEntry) else "file"


def diff_entries(old: Entry, new: Entry) -> EntryDiff:
    """
    Compare two entries found at the same path.

    Args:
        old: Entry from the baseline snapshot.
        new: Entry from the newer snapshot.

    Returns:
        DirectoryEntryDiff for two directories, FileEntryDiff for two
        files, KindChanged when one is a file and the other a directory.
    """
    if isinstance(old, DirectoryEntry) and isinstance(new, DirectoryEntry):
        return _diff_directories(old, new)
    if isinstance(old, FileEntry) and isinstance(new, FileEntry):
        return FileEntryDiff(metrics=diff_metrics(old.metrics, new.metrics))
    return KindChanged(old_kind=_kind(old), new_kind=_kind(new))


def diff_snapshots(old: Snapshot, new: Snapshot) -> EntryDiff:
    """Compare two snapshots root to root."""
    return diff_entries(old.root, new.root)
