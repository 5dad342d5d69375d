"""CLI for integrity-snapshot."""

from pathlib import Path
from typing import List, Optional
import logging

import typer
from rich.console import Console

from .config import SnapshotConfig, load_snapshot_config
from .constants import DEFAULT_SNAPSHOT_FILE
from .core import FileEntry
from .display import display_listing, display_metrics, has_changes, render_diff, summarize
from .diffing import diff_snapshots
from .errors import SnapshotError
from .ops import check as ops_check, convert_snapshot, load_snapshot, save_snapshot, scan
from .utils import humanize_size


app = typer.Typer(help="""\
Point-in-time integrity snapshots of a directory tree. Record two
independent digests and content fingerprints per file, then diff a later
state against the baseline to surface tampering.""")

console = Console()

_state = {"verbose": False}


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging and build timing"),
):
    """Global options."""
    _state["verbose"] = verbose
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _fail(e: SnapshotError) -> None:
    console.print(f"[red]✗[/red] {e}")
    raise typer.Exit(2)


def _load_config(root: Path, include_hidden: Optional[bool], ignore: List[str]) -> SnapshotConfig:
    """Config from the root's config file, with CLI overrides applied."""
    config = load_snapshot_config(root) if root.is_dir() else SnapshotConfig()
    if include_hidden is not None:
        config.include_hidden = include_hidden
    config.ignore = list(config.ignore) + list(ignore)
    return config


def _default_snapshot_path(root: Path, config: SnapshotConfig) -> Path:
    base = root if root.is_dir() else Path.cwd()
    return base / (config.snapshot_file or DEFAULT_SNAPSHOT_FILE)


def _pick_format(path: Path, fmt: Optional[str], config: SnapshotConfig) -> Optional[str]:
    """Explicit --format wins, then a known suffix, then the config."""
    if fmt:
        return fmt
    if path.suffix.lower() in (".json", ".cbor"):
        return None
    return config.format


@app.command()
def build(
    root: Path = typer.Argument(..., help="Directory (or file) to snapshot"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Snapshot file to write"),
    fmt: Optional[str] = typer.Option(None, "--format", "-f", help="json or cbor (default: from suffix)"),
    hidden: Optional[bool] = typer.Option(None, "--hidden/--no-hidden", help="Include dot-files"),
    ignore: List[str] = typer.Option([], "--ignore", "-i", help="Extra gitignore-style pattern"),
):
    """Build a snapshot of ROOT and save it.

    Examples:
        integrity-snapshot build ./data                   # Writes ./data/.integrity-snapshot.json
        integrity-snapshot build ./data -o base.cbor      # Compact binary form
        integrity-snapshot build . -i '*.log' --hidden    # Extra ignores, include dot-files
    """
    try:
        config = _load_config(root, hidden, ignore)
        output = output or _default_snapshot_path(root, config)
        result = scan(root, config)
        save_snapshot(result.snapshot, output, _pick_format(output, fmt, config))
    except SnapshotError as e:
        _fail(e)

    console.print(
        f"[green]✓[/green] Snapshot of {result.files} files "
        f"({humanize_size(result.total_bytes)}) written to {output}"
    )
    if _state["verbose"]:
        console.print(
            f"[dim]build took {result.elapsed:.3f} seconds, read {result.total_bytes} bytes, "
            f"{result.throughput:.1f} MB/s[/dim]"
        )


@app.command()
def check(
    root: Path = typer.Argument(..., help="Directory (or file) to verify"),
    snapshot_file: Optional[Path] = typer.Option(None, "--snapshot", "-s", help="Baseline snapshot file"),
    fmt: Optional[str] = typer.Option(None, "--format", "-f", help="json or cbor (default: from suffix)"),
    hidden: Optional[bool] = typer.Option(None, "--hidden/--no-hidden", help="Include dot-files"),
    ignore: List[str] = typer.Option([], "--ignore", "-i", help="Extra gitignore-style pattern"),
):
    """Rebuild ROOT's snapshot and compare it with a saved baseline.

    Exits 0 when nothing changed, 1 when changes were found.
    """
    try:
        config = _load_config(root, hidden, ignore)
        snapshot_file = snapshot_file or _default_snapshot_path(root, config)
        baseline = load_snapshot(snapshot_file, _pick_format(snapshot_file, fmt, config))
        diff = ops_check(root, baseline, config)
    except SnapshotError as e:
        _fail(e)

    render_diff(diff, console)
    console.print(f"[bold]{summarize(diff)}[/bold]")
    if has_changes(diff):
        raise typer.Exit(1)


@app.command()
def diff(
    old: Path = typer.Argument(..., help="Baseline snapshot file"),
    new: Path = typer.Argument(..., help="Newer snapshot file"),
):
    """Compare two saved snapshots.

    Exits 0 when nothing changed, 1 when changes were found.
    """
    try:
        result = diff_snapshots(load_snapshot(old), load_snapshot(new))
    except SnapshotError as e:
        _fail(e)

    render_diff(result, console)
    console.print(f"[bold]{summarize(result)}[/bold]")
    if has_changes(result):
        raise typer.Exit(1)


@app.command()
def show(
    snapshot_file: Path = typer.Argument(..., help="Snapshot file"),
    path: Optional[str] = typer.Argument(None, help="Entry to show (default: whole snapshot)"),
):
    """Show the metrics of one entry, or list every file in a snapshot."""
    try:
        snapshot = load_snapshot(snapshot_file)
    except SnapshotError as e:
        _fail(e)

    if path is None:
        display_listing(snapshot, console)
        return

    entry = snapshot.lookup(path)
    if entry is None:
        console.print(f"[red]✗[/red] Not in snapshot: {path}")
        raise typer.Exit(1)
    if isinstance(entry, FileEntry):
        display_metrics(path, entry.metrics, console)
    else:
        display_listing(snapshot, console, prefix=path)


@app.command()
def convert(
    src: Path = typer.Argument(..., help="Snapshot file to read"),
    dest: Path = typer.Argument(..., help="Snapshot file to write"),
    fmt: Optional[str] = typer.Option(None, "--format", "-f", help="Output format (default: from suffix)"),
):
    """Re-encode a snapshot (e.g. JSON to CBOR)."""
    try:
        snapshot = convert_snapshot(src, dest, dest_fmt=fmt)
    except SnapshotError as e:
        _fail(e)
    console.print(f"[green]✓[/green] Converted snapshot of {snapshot.file_count} files: {src} -> {dest}")


def main():
    """Entry point for CLI."""
    app()


if __name__ == "__main__":
    main()
