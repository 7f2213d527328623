"""Errors raised by swp plugins."""


class PluginError(Exception):
    """Base exception for plugin configuration, scanning, and cleanup failures."""

    kind = "Plugin"

    def __str__(self) -> str:
        return f"{self.kind} error: {super().__str__()}"


class ConfigurationError(PluginError):
    """Raised when plugin settings, filter caches, or the terminal UI cannot be set up."""

    kind = "Configuration"


class ScanError(PluginError):
    """Raised when a scan cannot start, e.g. because the root path is missing."""

    kind = "Scan"


class CleanupError(PluginError):
    """Raised when a cleanup run cannot proceed."""

    kind = "Cleanup"


__all__ = ["PluginError", "ConfigurationError", "ScanError", "CleanupError"]
