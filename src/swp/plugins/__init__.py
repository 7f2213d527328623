"""Feature plugins for swp.

Heavier modules (scanner, terminal UI) are imported from their own modules;
this package only re-exports the shared types.
"""

from .errors import CleanupError, ConfigurationError, PluginError, ScanError
from .models import CleanupReport, FileType, GitFileStatus, RiskLevel, ScanResult

__all__ = [
    "PluginError",
    "ConfigurationError",
    "ScanError",
    "CleanupError",
    "RiskLevel",
    "FileType",
    "GitFileStatus",
    "ScanResult",
    "CleanupReport",
]
