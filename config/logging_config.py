"""Logging configuration for Furnish."""

import logging
import sys
from pathlib import Path
from datetime import datetime
from typing import Optional

# Third-party loggers that log every request at INFO
NOISY_LOGGERS = ("httpx", "httpcore")

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"


def _resolve_level(log_level: str) -> int:
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {log_level}")
    return level


def setup_logging(
    log_level: str = "INFO",
    log_file: Optional[Path] = None,
    log_to_console: bool = True,
) -> logging.Logger:
    """
    Configure the ``furnish`` logger tree.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional path to log file
        log_to_console: Whether to also log to console

    Returns:
        The root ``furnish`` logger
    """
    level = _resolve_level(log_level)
    logger = logging.getLogger("furnish")
    logger.setLevel(level)
    logger.handlers.clear()

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    if log_to_console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    # Request lines only at DEBUG
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.DEBUG if level <= logging.DEBUG else logging.WARNING)

    return logger


def get_logger(name: str = "furnish") -> logging.Logger:
    """Logger under the ``furnish.`` namespace, e.g. ``furnish.pagination``."""
    if name == "furnish" or name.startswith("furnish."):
        return logging.getLogger(name)
    return logging.getLogger(f"furnish.{name}")


DEFAULT_LOG_FILE = Path(__file__).parent.parent / "logs" / f"furnish_{datetime.now().strftime('%Y%m%d')}.log"
