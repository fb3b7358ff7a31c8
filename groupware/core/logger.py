"""Logging configuration for the groupware service.

Handlers are attached to the package logger only; module loggers obtained
with ``logging.getLogger(__name__)`` propagate to it.
"""

import logging
import logging.handlers
from pathlib import Path
from typing import Optional

from groupware.core.config import Settings, get_settings

PACKAGE_LOGGER = "groupware"
LOG_FORMAT = "%(asctime)s [%(levelname)s] [%(name)s] %(message)s"
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"

LOG_FILE_MAX_BYTES = 10 * 1024 * 1024
LOG_FILE_BACKUPS = 5


def setup_logger(settings: Optional[Settings] = None, name: str = PACKAGE_LOGGER) -> logging.Logger:
    """Configure the service logger from settings.

    Reads ``log_level``, and writes to ``<log_dir>/<name>.log`` when
    ``log_to_file`` is set. Calling it again only updates the level.

    Raises:
        ValueError: If ``log_level`` is not a logging level name
    """
    settings = settings or get_settings()
    level = logging.getLevelName(settings.log_level.upper())
    if not isinstance(level, int):
        raise ValueError(f"Invalid log level: {settings.log_level}")

    logger = logging.getLogger(name)
    logger.setLevel(level)
    if logger.handlers:
        return logger

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    console = logging.StreamHandler()
    console.setFormatter(formatter)
    logger.addHandler(console)

    if settings.log_to_file:
        log_dir = Path(settings.log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        rotating = logging.handlers.RotatingFileHandler(
            log_dir / f"{name}.log",
            maxBytes=LOG_FILE_MAX_BYTES,
            backupCount=LOG_FILE_BACKUPS,
        )
        rotating.setFormatter(formatter)
        logger.addHandler(rotating)

    return logger
