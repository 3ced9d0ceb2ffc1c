"""Logging configuration for the vocabulary backend."""
import logging
import sys
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import Optional, Union

from linguamentor.config import LoggingSettings


def setup_logging(
    settings: LoggingSettings,
    first_message: str = "",
    level: Optional[Union[int, str]] = None,
) -> None:
    """Configure logging for the entire application.

    Args:
        settings: Logging settings (level, format and optional log directory).
        first_message: Banner written once the console handler is attached.
        level: Optional logging level overriding ``settings.level``.
    """
    if level is None:
        level = settings.level
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())

    formatter = logging.Formatter(settings.format)

    # Configure root logger
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Remove any existing handlers to avoid duplicates
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if first_message:
        root_logger.info("================================================")
        root_logger.info(first_message)
    root_logger.info(f"Logging configured with level: {logging.getLevelName(level)}")

    if settings.dir is not None:
        try:
            log_dir = Path(settings.dir)
            log_dir.mkdir(parents=True, exist_ok=True)

            log_file = log_dir / "linguamentor.log"
            file_handler = TimedRotatingFileHandler(
                log_file,
                when=settings.rotation,
                interval=settings.interval,
                backupCount=settings.backup_count,
                encoding="utf-8",
            )
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)

            root_logger.info(
                f"Log file: {log_file} (rotation: {settings.rotation}, "
                f"interval: {settings.interval}, backup_count: {settings.backup_count})"
            )
        except OSError as e:
            root_logger.warning(f"Could not set up file logging: {e}")

    # Set logging levels for third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("telegram").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)
