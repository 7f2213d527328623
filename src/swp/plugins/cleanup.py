"""Executor that removes files confirmed by the operator."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Optional

from .errors import CleanupError
from .models import CleanupReport, ScanResult
from .progress import CleanupProgress

LOGGER = logging.getLogger(__name__)


class CleanupExecutor:
    """Delete selected scan results, collecting per-item failures.

    Nothing is retried; a failed removal is recorded in the report and the run
    moves on to the next item.
    """

    def apply(
        self,
        selected: Iterable[ScanResult],
        *,
        dry_run: bool = False,
        progress: Optional[CleanupProgress] = None,
    ) -> CleanupReport:
        """Remove each selected file.

        Args:
            selected: Results confirmed for deletion.
            dry_run: When True, validate and count without deleting.
            progress: Optional progress tracker updated per item.

        Returns:
            CleanupReport: Totals and error messages for the run.

        Raises:
            CleanupError: If any selected path is relative; nothing is removed.
        """
        selected = list(selected)
        relative = [str(result.path) for result in selected if not result.path.is_absolute()]
        if relative:
            if progress is not None:
                progress.finish()
            raise CleanupError(f"refusing to remove relative paths: {', '.join(relative)}")

        report = CleanupReport()

        for result in selected:
            path = result.path
            error = self._validate(path)
            if error is not None:
                report.errors.append(f"{path}: {error}")
                if progress is not None:
                    progress.file_skipped(path)
                continue

            if not dry_run:
                try:
                    path.unlink()
                except OSError as exc:
                    LOGGER.warning("Failed to remove %s: %s", path, exc)
                    report.errors.append(f"{path}: {exc.strerror or exc}")
                    if progress is not None:
                        progress.file_skipped(path)
                    continue
                LOGGER.info("Removed %s (%d bytes)", path, result.size)

            report.items_cleaned += 1
            report.space_freed += result.size
            if progress is not None:
                progress.file_deleted(path, result.size)

        if progress is not None:
            progress.finish()
        return report

    def _validate(self, path: Path) -> str | None:
        if path.is_symlink():
            return "refusing to remove a symbolic link"
        if not path.exists():
            return "file no longer exists"
        if not path.is_file():
            return "not a regular file"
        return None


__all__ = ["CleanupExecutor"]
