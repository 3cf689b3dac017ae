"""Logging setup for linked-heatmap."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

LOGGER_NAME = "linked_heatmap"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(
    level: int = logging.INFO,
    log_file: str | Path | None = None,
) -> logging.Logger:
    """Configure the package logger.

    Parameters
    ----------
    level : int
        Logging level for the package logger and its handlers.
    log_file : str or Path, optional
        Also write log records to this file.

    Returns
    -------
    logging.Logger
        The configured ``linked_heatmap`` logger.
    """
    formatter = logging.Formatter(LOG_FORMAT)

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)

    # Drop handlers from an earlier call so records are not duplicated
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.propagate = False
    return logger


def get_logger(name: str) -> logging.Logger:
    """Return a child of the package logger for a module ``__name__``."""
    if name == LOGGER_NAME or name.startswith(LOGGER_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{LOGGER_NAME}.{name}")
