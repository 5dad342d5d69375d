"""Display logic for snapshot diffs and listings."""

from typing import Optional
import os

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .core import Metrics, Snapshot, split_path
from .diffing import (
    DirectoryEntryDiff,
    EntryDiff,
    FileEntryDiff,
    KindChanged,
    MetricsDiff,
)
from .utils import humanize_size


INDENT = "| "


def _join(parent: str, name: str) -> str:
    return name if parent in ("", ".") else f"{parent}/{name}"


def _show(path: str) -> str:
    # Undecodable filename bytes print as \xNN escapes
    return escape(os.fsencode(path).decode("utf-8", "backslashreplace"))


def render_diff(diff: EntryDiff, console: Console, path: str = ".", depth: int = 0) -> None:
    """Print a depth-indented report of a diff tree.

    Directories whose rolled-up counts show no additions, removals or
    changes are skipped along with everything below them. Files are printed
    only when their content changed, with any suspicious pattern listed
    on its own line.

    Args:
        diff: Diff tree to render
        console: Rich console for output
        path: Display name of the diff's root
        depth: Indentation level of the root
    """
    if isinstance(diff, DirectoryEntryDiff):
        _render_directory(diff, console, path, depth)
    elif isinstance(diff, FileEntryDiff):
        _render_file(diff.metrics, console, path, depth)
    elif isinstance(diff, KindChanged):
        console.print(
            f"{INDENT * depth}[magenta]{_show(path)}: "
            f"{diff.old_kind} -> {diff.new_kind}[/magenta]"
        )


def _render_directory(diff: DirectoryEntryDiff, console: Console, path: str, depth: int) -> None:
    counts = diff.counts
    if not counts.has_changes:
        return

    prefix = INDENT * depth
    console.print(
        f"{prefix}[bold]{_show(path)}[/bold]: "
        f"{counts.changed} changed, {counts.added} added, "
        f"{counts.removed} removed, {counts.unchanged} unchanged"
    )
    child_prefix = INDENT * (depth + 1)
    for name in diff.added:
        console.print(f"{child_prefix}[green]+[/green] {_show(_join(path, name))}")
    for name in diff.removed:
        console.print(f"{child_prefix}[red]-[/red] {_show(_join(path, name))}")
    for name, child in diff.entries.items():
        render_diff(child, console, _join(path, name), depth + 1)


def _render_file(diff: MetricsDiff, console: Console, path: str, depth: int) -> None:
    if not (diff.changed_content or diff.is_suspicious):
        return

    prefix = INDENT * depth
    console.print(
        f"{prefix}[yellow]M[/yellow] {_show(path)} changed "
        f"({humanize_size(diff.old.size)} -> {humanize_size(diff.new.size)})"
    )
    for warning in suspicious_patterns(diff):
        console.print(f"{prefix}  [red]> suspicious:[/red] {warning}")


def suspicious_patterns(diff: MetricsDiff) -> list:
    """Describe the suspicious patterns in a file diff, most severe first."""
    warnings = []
    if diff.zeroed:
        warnings.append("file was truncated to zero bytes")
    if diff.changed_nul:
        if diff.new.nul:
            warnings.append("original had no NUL bytes, but now does")
        else:
            warnings.append("original had NUL bytes, but now does not")
    if diff.changed_nonascii:
        if diff.new.nonascii:
            warnings.append("original had no non-ASCII bytes, but now does")
        else:
            warnings.append("original had non-ASCII bytes, but now does not")
    return warnings


def summarize(diff: EntryDiff) -> str:
    """One-line summary of a diff."""
    if isinstance(diff, DirectoryEntryDiff):
        c = diff.counts
        if not c.has_changes:
            return f"No changes ({c.unchanged} unchanged)"
        return f"{c.changed} changed, {c.added} added, {c.removed} removed, {c.unchanged} unchanged"
    if isinstance(diff, FileEntryDiff):
        return "File changed" if diff.metrics.changed_content else "No changes"
    return f"Kind changed: {diff.old_kind} -> {diff.new_kind}"


def has_changes(diff: EntryDiff) -> bool:
    """Check if a diff reports any addition, removal or change."""
    if isinstance(diff, DirectoryEntryDiff):
        return diff.counts.has_changes
    if isinstance(diff, FileEntryDiff):
        return diff.metrics.changed_content or diff.metrics.is_suspicious
    return True


def display_metrics(path: str, metrics: Metrics, console: Console) -> None:
    """Show every field of one file's metrics."""
    table = Table(title=_show(path), show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("SHA-256", metrics.sha2.hex())
    table.add_row("SHA3-256", metrics.sha3.hex())
    table.add_row("Size", f"{metrics.size:,} bytes ({humanize_size(metrics.size)})")
    table.add_row("NUL bytes", "yes" if metrics.nul else "no")
    table.add_row("Non-ASCII bytes", "yes" if metrics.nonascii else "no")
    console.print(table)


def display_listing(snapshot: Snapshot, console: Console, prefix: Optional[str] = None) -> None:
    """List files as "<sha256> <size> <path>", optionally under a prefix."""
    # Same normalization as Snapshot.lookup: "./sub/" lists "sub"
    prefix = "/".join(split_path(prefix)) if prefix else ""
    count = 0
    for path, metrics in snapshot.iter_files():
        if prefix and not (path == prefix or path.startswith(prefix + "/")):
            continue
        console.print(f"{metrics.sha2.hex()} {metrics.size:>12} {_show(path)}", highlight=False)
        count += 1
    console.print(f"[dim]{count} files[/dim]")
