"""
NonMessenger - Logging setup.

Library modules only create loggers. Applications embedding the core call
setup_logging() once to attach handlers to the package logger.
"""

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from .config import Config
from .constants import (
    DEFAULT_DATA_DIR,
    LOG_BACKUP_COUNT,
    LOG_DATE_FORMAT,
    LOG_FILENAME,
    LOG_FORMAT,
    LOG_MAX_BYTES,
    LOGS_DIR,
)
from .errors import ConfigError, ErrorCode

PACKAGE_LOGGER = "nonmessenger"


def setup_logging(config: Optional[Config] = None, log_dir: Optional[Path] = None) -> logging.Logger:
    """
    Configure the package logger from the [logging] config section.

    Args:
        config: Configuration (defaults are used when omitted)
        log_dir: Directory for the rotating log file (defaults to ~/.nonmessenger/logs)

    Returns:
        The configured package logger

    Raises:
        ConfigError: If the configured level is unknown
    """
    if config is None:
        config = Config()

    level_name = str(config.get("logging", "level", "INFO")).upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        raise ConfigError(
            ErrorCode.E703_INVALID_CONFIG,
            f"Unknown log level: {level_name}",
            {"level": level_name},
        )

    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(level)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    if config.get("logging", "console_logging", True):
        console = logging.StreamHandler()
        console.setFormatter(formatter)
        logger.addHandler(console)

    if config.get("logging", "file_logging", False):
        if log_dir is None:
            log_dir = Path(DEFAULT_DATA_DIR).expanduser() / LOGS_DIR
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_dir / LOG_FILENAME,
            maxBytes=LOG_MAX_BYTES,
            backupCount=LOG_BACKUP_COUNT,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.debug(f"Logging configured at {level_name}")
    return logger
