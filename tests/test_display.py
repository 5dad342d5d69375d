"""Tests for diff rendering."""

import os
import sys

import pytest
from rich.console import Console

from integrity_snapshot.diffing import diff_metrics, diff_snapshots
from integrity_snapshot.display import (
    display_listing,
    display_metrics,
    has_changes,
    render_diff,
    summarize,
    suspicious_patterns,
)

from conftest import metrics_of, snapshot_of


@pytest.fixture
def console():
    return Console(record=True, width=200, color_system=None)


def _lines(console):
    return console.export_text().splitlines()


class TestRenderDiff:
    """Test the depth-indented diff report."""

    def test_unchanged_tree_prints_nothing(self, console):
        snap = snapshot_of({"a": "1", "b/c": "2"})

        render_diff(diff_snapshots(snap, snap), console)

        assert console.export_text() == ""

    def test_changed_tree(self, console):
        old = snapshot_of({
            "keep.txt": "k",
            "gone.txt": "g",
            "src/main.py": "main",
            "quiet/x": "x",
        })
        new = snapshot_of({
            "keep.txt": "k",
            "src/main.py": "",
            "src/added.py": "a",
            "quiet/x": "x",
        })

        render_diff(diff_snapshots(old, new), console)
        lines = _lines(console)

        assert lines[0] == ".: 1 changed, 1 added, 1 removed, 2 unchanged"
        assert "| - gone.txt" in lines
        assert "| src: 1 changed, 1 added, 0 removed, 0 unchanged" in lines
        assert "| | + src/added.py" in lines
        assert any(line.startswith("| | M src/main.py changed") for line in lines)
        assert "| |   > suspicious: file was truncated to zero bytes" in lines
        # Unchanged subtree suppressed
        assert not any("quiet" in line for line in lines)

    def test_kind_change(self, console):
        old = snapshot_of({"x": "file"})
        new = snapshot_of({"x/y": "dir"})

        render_diff(diff_snapshots(old, new), console)

        assert "| x: file -> directory" in _lines(console)

    def test_custom_root_label(self, console):
        old = snapshot_of({"a": "1"})
        new = snapshot_of({"a": "2"})

        render_diff(diff_snapshots(old, new), console, path="/srv/www")
        lines = _lines(console)

        assert lines[0].startswith("/srv/www: 1 changed")
        assert lines[1].startswith("| M /srv/www/a changed")


class TestSuspiciousPatterns:
    """Test wording of suspicious-pattern warnings."""

    def test_appeared(self):
        diff = diff_metrics(metrics_of(b"text"), metrics_of(b"te\x00xt\xc3\xa9"))

        assert suspicious_patterns(diff) == [
            "original had no NUL bytes, but now does",
            "original had no non-ASCII bytes, but now does",
        ]

    def test_disappeared(self):
        diff = diff_metrics(metrics_of(b"\x00\x80"), metrics_of(b"ok"))

        assert suspicious_patterns(diff) == [
            "original had NUL bytes, but now does not",
            "original had non-ASCII bytes, but now does not",
        ]

    def test_plain_change_not_suspicious(self):
        diff = diff_metrics(metrics_of(b"v1"), metrics_of(b"v2"))

        assert suspicious_patterns(diff) == []


class TestSummaries:
    """Test one-line summaries and listings."""

    def test_summarize(self):
        old = snapshot_of({"a": "1", "b": "2"})
        new = snapshot_of({"a": "1", "b": "3", "c": "4"})

        assert summarize(diff_snapshots(old, old)) == "No changes (2 unchanged)"
        assert summarize(diff_snapshots(old, new)) == "1 changed, 1 added, 0 removed, 1 unchanged"
        assert has_changes(diff_snapshots(old, new))
        assert not has_changes(diff_snapshots(old, old))

    def test_listing(self, console):
        snap = snapshot_of({"a.txt": "a", "dir/b.txt": "bb"})

        display_listing(snap, console, prefix="dir")
        lines = _lines(console)

        assert len(lines) == 2
        assert lines[0].startswith(metrics_of(b"bb").sha2.hex())
        assert lines[0].endswith("dir/b.txt")
        assert lines[1] == "1 files"

    @pytest.mark.parametrize("prefix", ["dir", "./dir", "./dir/", "dir/"])
    def test_listing_prefix_normalized(self, console, prefix):
        snap = snapshot_of({"a.txt": "a", "dir/b.txt": "bb", "dirx/c.txt": "c"})

        display_listing(snap, console, prefix=prefix)
        lines = _lines(console)

        assert lines[-1] == "1 files"
        assert lines[0].endswith(" dir/b.txt")

    @pytest.mark.skipif(sys.platform == "win32", reason="undecodable filename bytes are a POSIX concept")
    def test_listing_undecodable_name(self, console):
        snap = snapshot_of({os.fsdecode(b"bad\xff.txt"): "x"})

        display_listing(snap, console)

        assert _lines(console)[0].endswith("bad\\xff.txt")

    def test_metrics_table(self, console):
        metrics = metrics_of(b"\x00abc")

        display_metrics("a.bin", metrics, console)
        text = console.export_text()

        assert metrics.sha2.hex() in text
        assert metrics.sha3.hex() in text
        assert "4 bytes" in text
