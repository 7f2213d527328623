"""Large-file discovery plugin.

The scanner enumerates a directory tree once, then classifies every regular
file on a thread pool. All classification goes through a single
:class:`~swp.plugins.filter.SmartFilter` guarded by a lock, so git handles and
compiled ``.gitignore`` matchers are shared safely between workers.
"""

from __future__ import annotations

import logging
import os
import queue
import stat
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Iterator, List, Optional

from rich.console import Console

from .base import FeaturePlugin
from .cleanup import CleanupExecutor
from .errors import ConfigurationError, ScanError
from .filter import DAY_SECONDS, SmartFilter
from .models import (
    CleanupReport,
    LargeFile,
    RiskLevel,
    ScanResult,
    declaration_order,
)
from .progress import CleanupProgress, ScanProgress
from .terminal import TerminalError
from .utils import format_size, parse_size_string

if TYPE_CHECKING:
    from swp.config.models import LargeFileSettings

    from .ui import InteractiveSelector

LOGGER = logging.getLogger(__name__)

DEFAULT_SIZE_THRESHOLD = 100 * 1024 * 1024
FILTER_LOCK_TIMEOUT_SECONDS = 30.0
GITIGNORE_MAX_DEPTH = 5

SelectorFactory = Callable[[List[ScanResult]], "InteractiveSelector"]


class LargeFilePlugin(FeaturePlugin):
    """Find files above a size threshold and rate how risky deleting them is."""

    def __init__(
        self,
        *,
        size_threshold: int = DEFAULT_SIZE_THRESHOLD,
        older_than_days: Optional[int] = None,
        include_git_tracked: bool = False,
        max_workers: Optional[int] = None,
        smart_filter: Optional[SmartFilter] = None,
        show_progress: bool = False,
        console: Optional[Console] = None,
        selector_factory: Optional[SelectorFactory] = None,
        lock_timeout: float = FILTER_LOCK_TIMEOUT_SECONDS,
    ) -> None:
        self.size_threshold = size_threshold
        self.older_than_days = older_than_days
        self.include_git_tracked = include_git_tracked
        self.max_workers = max_workers
        self.show_progress = show_progress
        self._console = console
        self._selector_factory = selector_factory
        self._smart_filter = smart_filter or SmartFilter()
        self._filter_lock = threading.Lock()
        self._lock_timeout = lock_timeout

    @property
    def name(self) -> str:
        return "large-files"

    @property
    def version(self) -> str:
        return "1.0.0"

    @property
    def smart_filter(self) -> SmartFilter:
        """Return the shared classifier cache."""
        return self._smart_filter

    def configure(self, settings: "LargeFileSettings") -> None:
        """Apply ``settings`` to the plugin.

        Raises:
            ConfigurationError: If the size threshold cannot be parsed.
        """
        self.size_threshold = parse_size_string(settings.size_threshold)
        self.older_than_days = settings.older_than_days
        self.include_git_tracked = settings.include_git_tracked
        self.max_workers = settings.max_workers

    def apply_age_filter(self, days: int) -> None:
        self.older_than_days = days

    # ------------------------------------------------------------------ scanning

    @contextmanager
    def _locked_filter(self) -> Iterator[SmartFilter]:
        if not self._filter_lock.acquire(timeout=self._lock_timeout):
            raise ConfigurationError("Failed to lock filter: timed out waiting for other workers")
        try:
            yield self._smart_filter
        finally:
            self._filter_lock.release()

    def initialize_filters(self, root: Path) -> None:
        """Discover the enclosing repository and preload ``.gitignore`` files.

        Ignore files are collected from ``root`` down to a fixed depth; a file
        that cannot be read or parsed is logged and skipped.

        Raises:
            ConfigurationError: If the classifier lock cannot be acquired.
        """
        with self._locked_filter() as smart_filter:
            smart_filter.discover_git_repos(root)

            for directory, dirnames, filenames in os.walk(root):
                current = Path(directory)
                depth = len(current.relative_to(root).parts)
                if ".gitignore" in filenames:
                    try:
                        smart_filter.load_gitignore(current)
                    except ConfigurationError as exc:
                        LOGGER.warning("Ignoring %s: %s", current / ".gitignore", exc)
                # .gitignore files sit at most GITIGNORE_MAX_DEPTH entries below root
                if depth + 1 >= GITIGNORE_MAX_DEPTH:
                    dirnames[:] = []

    def _iter_entries(self, root: Path) -> Iterator[Path]:
        """Yield every entry below ``root`` without following symlinks."""
        if not root.is_dir() or root.is_symlink():
            yield root
            return

        pending = [root]
        while pending:
            directory = pending.pop()
            try:
                with os.scandir(directory) as iterator:
                    for entry in iterator:
                        path = Path(entry.path)
                        yield path
                        try:
                            if entry.is_dir(follow_symlinks=False):
                                pending.append(path)
                        except OSError as exc:
                            LOGGER.debug("Cannot inspect %s: %s", path, exc)
            except OSError as exc:
                LOGGER.debug("Skipping unreadable directory %s: %s", directory, exc)

    def should_include_by_age(self, metadata: os.stat_result, *, now: Optional[float] = None) -> bool:
        """Return True if the last access is older than the configured age limit.

        Files whose access time lies in the future are kept.
        """
        if self.older_than_days is None:
            return True
        elapsed = (now if now is not None else time.time()) - metadata.st_atime
        if elapsed < 0:
            return True
        return elapsed > self.older_than_days * DAY_SECONDS

    def process_entry(self, path: Path) -> Optional[LargeFile]:
        """Classify ``path`` and return it if it passes every filter."""
        try:
            metadata = path.lstat()
        except OSError as exc:
            LOGGER.debug("Cannot stat %s: %s", path, exc)
            return None

        if not stat.S_ISREG(metadata.st_mode):
            return None
        if metadata.st_size < self.size_threshold:
            return None
        if not self.should_include_by_age(metadata):
            return None

        try:
            with self._locked_filter() as smart_filter:
                file_type = smart_filter.detect_file_type(path)
                git_status = smart_filter.get_git_status(path)
                risk_level = smart_filter.calculate_risk_level(
                    path, metadata, self.include_git_tracked, git_status=git_status
                )
        except ConfigurationError as exc:
            LOGGER.debug("Skipping %s: %s", path, exc)
            return None

        if risk_level is RiskLevel.CRITICAL and not self.include_git_tracked:
            return None

        return LargeFile(
            path=path,
            size=metadata.st_size,
            last_modified=metadata.st_mtime,
            last_accessed=metadata.st_atime,
            risk_level=risk_level,
            file_type=file_type,
            git_status=git_status,
        )

    def scan_parallel(self, root: Path) -> List[LargeFile]:
        """Scan ``root`` on a worker pool and return the sorted matches.

        Raises:
            ConfigurationError: If the classifier cannot be initialized.
        """
        self.initialize_filters(root)
        entries = list(self._iter_entries(root))
        LOGGER.debug("Scanning %d entries under %s", len(entries), root)

        found: "queue.Queue[LargeFile]" = queue.Queue()
        progress = ScanProgress(len(entries), console=self._console, enabled=self.show_progress)

        def _visit(path: Path) -> None:
            progress.update(path)
            large_file = self.process_entry(path)
            if large_file is not None:
                progress.found_file()
                found.put(large_file)

        with progress:
            with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                for _ in executor.map(_visit, entries):
                    pass

        results: List[LargeFile] = []
        while True:
            try:
                results.append(found.get_nowait())
            except queue.Empty:
                break

        self.sort_results(results)
        return results

    def sort_results(self, results: List[LargeFile]) -> None:
        """Order ``results`` in place, largest first."""
        results.sort(key=lambda item: item.size, reverse=True)

    def scan(self, path: Path) -> List[ScanResult]:
        """Return large files found under ``path``.

        Raises:
            ScanError: If ``path`` does not exist.
            ConfigurationError: If the classifier cannot be initialized.
        """
        root = Path(path).expanduser()
        if not root.exists():
            raise ScanError(f"Path does not exist: {path}")
        root = root.resolve()

        now = time.time()
        return [self._summarize(item, now) for item in self.scan_parallel(root)]

    def _summarize(self, item: LargeFile, now: float) -> ScanResult:
        age_days = max(0, int((now - item.last_modified) // DAY_SECONDS))
        description = (
            f"{format_size(item.size)} | {age_days} days old | "
            f"Type: {item.file_type.value} | Git: {item.git_status.value}"
        )
        return ScanResult(
            path=item.path,
            size=item.size,
            description=description,
            risk_level=item.risk_level,
        )

    # ------------------------------------------------------------ select / clean

    def interactive_select(self, results: List[ScanResult]) -> List[ScanResult]:
        """Run the interactive selector over ``results``.

        Raises:
            ConfigurationError: If the terminal cannot be driven.
        """
        if not results:
            return []

        selector = self._build_selector(results)
        try:
            return selector.run()
        except (TerminalError, OSError) as exc:
            raise ConfigurationError(f"UI error: {exc}") from exc

    def _build_selector(self, results: List[ScanResult]) -> "InteractiveSelector":
        if self._selector_factory is not None:
            return self._selector_factory(results)

        from .ui import InteractiveSelector

        return InteractiveSelector(results, console=self._console)

    def clean(self, selected: List[ScanResult], *, dry_run: bool = False) -> CleanupReport:
        """Delete ``selected`` files and report what was reclaimed."""
        progress = CleanupProgress(len(selected), console=self._console, enabled=self.show_progress)
        return CleanupExecutor().apply(selected, dry_run=dry_run, progress=progress)


class EnhancedLargeFilePlugin(LargeFilePlugin):
    """Large-file plugin that surfaces the riskiest files first."""

    @property
    def name(self) -> str:
        return "large-files-enhanced"

    @property
    def version(self) -> str:
        return "2.0.0"

    def sort_results(self, results: List[LargeFile]) -> None:
        """Order ``results`` most severe first, then largest first."""
        results.sort(
            key=lambda item: (declaration_order(item.risk_level), item.size),
            reverse=True,
        )


def plugin_from_settings(settings: "LargeFileSettings", **kwargs) -> LargeFilePlugin:
    """Build and configure the plugin variant selected by ``settings``."""
    plugin_cls = EnhancedLargeFilePlugin if settings.enhanced_sort else LargeFilePlugin
    plugin = plugin_cls(**kwargs)
    plugin.configure(settings)
    return plugin


__all__ = [
    "DEFAULT_SIZE_THRESHOLD",
    "LargeFilePlugin",
    "EnhancedLargeFilePlugin",
    "plugin_from_settings",
]
