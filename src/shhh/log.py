"""Logging setup: rotating file log plus optional console output."""

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "shhh"
MAX_LOG_BYTES = 5 * 1024 * 1024
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def setup_logging(log_path: Path, verbose: bool = False) -> logging.Logger:
    """
    Configure the ``shhh`` logger.

    The file log rotates once it exceeds 5 MiB, keeping one backup. When
    ``verbose`` is set, records are also shown on stderr.

    Raises:
        OSError: If the log directory or file cannot be created
    """
    log_path = Path(log_path)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.DEBUG)
    logger.propagate = False

    file_handler = RotatingFileHandler(
        log_path, maxBytes=MAX_LOG_BYTES, backupCount=1, encoding="utf-8"
    )
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(file_handler)

    if verbose:
        console_handler = RichHandler(console=Console(stderr=True), show_path=False)
        console_handler.setLevel(logging.DEBUG)
        logger.addHandler(console_handler)

    return logger


def disable_logging() -> logging.Logger:
    """Fallback used when the log file cannot be opened."""
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.addHandler(logging.NullHandler())
    logger.propagate = False
    return logger
