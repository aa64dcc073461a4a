"""
Logger configuration.

Console logging with ISO timestamps for applications embedding the engine.
The library itself only creates module loggers; configuring handlers is
left to the caller.

Dependencies: logging (stdlib), segment_index.configs
System role: Centralized logging configuration
"""

import logging
import sys

from segment_index.configs.settings import get_settings


def configure_logging(level: str | None = None) -> None:
    """
    Configure Python logging with ISO timestamp and structured format.

    Args:
        level: Root log level name; Settings.effective_log_level when None
    """
    if level is None:
        level = get_settings().effective_log_level

    # Remove any existing handlers to avoid duplicates
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(
        logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )

    root_logger.setLevel(level.upper())
    root_logger.addHandler(handler)

    # SQL echo is controlled by DatabaseSettings.echo_sql, not the root level
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Module logger; equivalent to logging.getLogger(name)."""
    return logging.getLogger(name)
