"""Plugin interfaces implemented by swp feature plugins."""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING, List

from .models import CleanupReport, ScanResult

if TYPE_CHECKING:
    from swp.config.models import LargeFileSettings


class Plugin(ABC):
    """Common surface shared by every plugin."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique identifier for the plugin."""

    @property
    @abstractmethod
    def version(self) -> str:
        """Plugin version string."""

    @abstractmethod
    def configure(self, settings: "LargeFileSettings") -> None:
        """Apply user settings.

        Raises:
            ConfigurationError: If a setting cannot be interpreted.
        """

    @abstractmethod
    def apply_age_filter(self, days: int) -> None:
        """Restrict results to files older than ``days``."""


class FeaturePlugin(Plugin):
    """Plugin that finds cleanable items, lets the user pick, and removes them."""

    @abstractmethod
    def scan(self, path: Path) -> List[ScanResult]:
        """Return cleanable items found under ``path``."""

    @abstractmethod
    def interactive_select(self, results: List[ScanResult]) -> List[ScanResult]:
        """Let the operator choose which results to act on."""

    @abstractmethod
    def clean(self, selected: List[ScanResult], *, dry_run: bool = False) -> CleanupReport:
        """Remove the selected items."""


__all__ = ["Plugin", "FeaturePlugin"]
