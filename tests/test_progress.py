"""Tests for scan and cleanup progress tracking."""

import io
import threading
from pathlib import Path

from rich.console import Console

from swp.plugins.progress import CleanupProgress, ScanProgress


def test_scan_progress_counters_are_thread_safe() -> None:
    progress = ScanProgress(4000, enabled=False)

    def _work() -> None:
        for index in range(500):
            progress.update(Path(f"file-{index}"))
            if index % 5 == 0:
                progress.found_file()

    threads = [threading.Thread(target=_work) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    progress.finish()

    assert progress.scanned_count == 4000
    assert progress.found_count == 800
    assert progress.finished


def test_scan_progress_context_manager_finishes_on_error() -> None:
    progress = ScanProgress(1, enabled=False)

    try:
        with progress:
            raise RuntimeError("boom")
    except RuntimeError:
        pass

    assert progress.finished


def test_enabled_progress_renders_summary() -> None:
    buffer = io.StringIO()
    console = Console(file=buffer, width=200, force_terminal=False)

    with ScanProgress(2, console=console) as progress:
        progress.update(Path("a.bin"))
        progress.found_file()
        progress.update(Path("b.bin"))

    assert "Found 1 large files in 2 files scanned" in buffer.getvalue()


def test_cleanup_progress_tracks_space_freed() -> None:
    progress = CleanupProgress(2, enabled=False)

    progress.file_deleted(Path("a.bin"), 1024)
    progress.file_skipped(Path("b.bin"))
    progress.file_deleted(Path("c.bin"), 2048)
    progress.finish()

    assert progress.space_freed == 3072
