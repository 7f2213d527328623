"""Logging setup for the swp command line tool."""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from swp.config.models import LoggingSettings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
_HANDLER_MARKER = "_swp_handler"


def configure_logging(settings: LoggingSettings, *, logger_name: str = "swp") -> logging.Logger:
    """Attach stderr and optional rotating-file handlers to the ``swp`` logger.

    Calling this again replaces the handlers installed by a previous call, so
    repeated CLI invocations in one process never duplicate output.

    Args:
        settings: Logging section of the resolved configuration.
        logger_name: Logger to configure.

    Returns:
        logging.Logger: The configured logger.
    """
    level = getattr(logging, settings.level.upper(), logging.WARNING)
    formatter = logging.Formatter(LOG_FORMAT)
    logger = logging.getLogger(logger_name)

    for handler in list(logger.handlers):
        if getattr(handler, _HANDLER_MARKER, False):
            logger.removeHandler(handler)
            handler.close()

    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(level)
    stream_handler.setFormatter(formatter)
    setattr(stream_handler, _HANDLER_MARKER, True)
    logger.addHandler(stream_handler)

    if settings.log_file:
        log_path = Path(settings.log_file).expanduser()
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_path,
            maxBytes=settings.max_size_mb * 1024 * 1024,
            backupCount=settings.backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        setattr(file_handler, _HANDLER_MARKER, True)
        logger.addHandler(file_handler)

    logger.setLevel(level)
    return logger


__all__ = ["configure_logging", "LOG_FORMAT"]
