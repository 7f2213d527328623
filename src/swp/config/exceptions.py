"""Custom exceptions for swp configuration files."""


class ConfigError(Exception):
    """Raised when the configuration file or its overrides cannot be processed."""
