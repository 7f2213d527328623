"""Progress indicators for scanning and cleanup runs.

Counters are authoritative and safe to bump from worker threads; the rich
progress bar is purely advisory and rendering failures are logged, never
raised into the scan.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
)

from .utils import format_size

LOGGER = logging.getLogger(__name__)


class _ProgressBar:
    """Wrap a rich progress bar so display errors never propagate."""

    def __init__(
        self,
        description: str,
        total: int,
        *,
        bar_style: str,
        console: Optional[Console],
        enabled: bool,
    ) -> None:
        self._progress = Progress(
            TextColumn("[progress.description]{task.description}"),
            BarColumn(style=bar_style),
            MofNCompleteColumn(),
            TextColumn("{task.fields[message]}"),
            TimeElapsedColumn(),
            console=console,
            disable=not enabled,
            transient=False,
        )
        self._task: TaskID = self._progress.add_task(description, total=total, message="")
        self._finished = False
        self._safely(self._progress.start)

    def update(self, *, advance: int = 0, message: str | None = None) -> None:
        fields = {} if message is None else {"message": message}
        self._safely(self._progress.update, self._task, advance=advance, **fields)

    def stop(self, message: str) -> None:
        if self._finished:
            return
        self._finished = True
        self._safely(self._progress.update, self._task, message=message)
        self._safely(self._progress.stop)

    @property
    def finished(self) -> bool:
        return self._finished

    def _safely(self, func, *args, **kwargs) -> None:
        try:
            func(*args, **kwargs)
        except Exception as exc:  # pragma: no cover - display is advisory
            LOGGER.debug("Progress display failed: %s", exc)


class ScanProgress:
    """Track scanned entries and matches while a scan runs.

    Attributes:
        scanned_count: Entries visited so far.
        found_count: Entries that survived every filter.
    """

    def __init__(
        self,
        estimated_files: int,
        *,
        console: Optional[Console] = None,
        enabled: bool = True,
    ) -> None:
        self._lock = threading.Lock()
        self.scanned_count = 0
        self.found_count = 0
        self._bar = _ProgressBar(
            "Scanning",
            estimated_files,
            bar_style="cyan",
            console=console,
            enabled=enabled,
        )

    def update(self, path: Path) -> None:
        """Record that ``path`` has been visited."""
        with self._lock:
            self.scanned_count += 1
            found = self.found_count
        self._bar.update(advance=1, message=f"{found} large files | {path.name}")

    def found_file(self) -> None:
        """Record that a matching file was found."""
        with self._lock:
            self.found_count += 1

    def finish(self) -> None:
        """Stop the bar with a summary message."""
        with self._lock:
            found, scanned = self.found_count, self.scanned_count
        self._bar.stop(f"Complete! Found {found} large files in {scanned} files scanned")

    def finish_with_error(self, error: str) -> None:
        """Stop the bar with an error message."""
        self._bar.stop(f"Error: {error}")

    @property
    def finished(self) -> bool:
        return self._bar.finished

    def __enter__(self) -> "ScanProgress":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if exc_val is not None:
            self.finish_with_error(str(exc_val))
        else:
            self.finish()


class CleanupProgress:
    """Track files removed and bytes freed during cleanup."""

    def __init__(
        self,
        total_files: int,
        *,
        console: Optional[Console] = None,
        enabled: bool = True,
    ) -> None:
        self._lock = threading.Lock()
        self.space_freed = 0
        self._bar = _ProgressBar(
            "Cleaning",
            total_files,
            bar_style="green",
            console=console,
            enabled=enabled,
        )

    def file_deleted(self, path: Path, size: int) -> None:
        """Record the removal of ``path``."""
        with self._lock:
            self.space_freed += size
            freed = self.space_freed
        self._bar.update(advance=1, message=f"Space freed: {format_size(freed)} | {path.name}")

    def file_skipped(self, path: Path) -> None:
        """Advance the bar without counting freed space."""
        self._bar.update(advance=1, message=f"Skipped: {path.name}")

    def finish(self) -> None:
        """Stop the bar with the total reclaimed space."""
        with self._lock:
            freed = self.space_freed
        self._bar.stop(f"Complete! Freed {format_size(freed)}")


__all__ = ["ScanProgress", "CleanupProgress"]
