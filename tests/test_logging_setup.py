"""Tests for logging configuration."""

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from swp.config.models import LoggingSettings
from swp.logging_setup import configure_logging


def _owned_handlers(logger: logging.Logger) -> list:
    return [handler for handler in logger.handlers if getattr(handler, "_swp_handler", False)]


def test_configure_logging_is_idempotent(tmp_path: Path) -> None:
    settings = LoggingSettings(level="debug", log_file=str(tmp_path / "logs" / "swp.log"))

    logger = configure_logging(settings, logger_name="swp.test_idempotent")
    configure_logging(settings, logger_name="swp.test_idempotent")

    handlers = _owned_handlers(logger)
    assert len(handlers) == 2
    assert logger.level == logging.DEBUG
    rotating = [handler for handler in handlers if isinstance(handler, RotatingFileHandler)]
    assert len(rotating) == 1
    assert rotating[0].maxBytes == settings.max_size_mb * 1024 * 1024
    assert rotating[0].backupCount == settings.backup_count

    for handler in handlers:
        logger.removeHandler(handler)
        handler.close()


def test_file_handler_writes_records(tmp_path: Path) -> None:
    log_file = tmp_path / "swp.log"
    logger = configure_logging(
        LoggingSettings(level="INFO", log_file=str(log_file)),
        logger_name="swp.test_file",
    )

    logger.getChild("scanner").info("scanned %d entries", 3)
    for handler in _owned_handlers(logger):
        handler.flush()

    assert "scanned 3 entries" in log_file.read_text(encoding="utf-8")

    for handler in _owned_handlers(logger):
        logger.removeHandler(handler)
        handler.close()


def test_unknown_level_falls_back_to_warning() -> None:
    logger = configure_logging(LoggingSettings(level="chatty"), logger_name="swp.test_level")

    assert logger.level == logging.WARNING
    assert len(_owned_handlers(logger)) == 1

    for handler in _owned_handlers(logger):
        logger.removeHandler(handler)
