"""
Logging configuration for the Sales Tracker Dashboard.

Modules obtain loggers through ``get_logger(__name__)``; the entry point
calls ``setup_logging`` once to attach console and rotating file handlers
to the package logger.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

PACKAGE_LOGGER = "sales_tracker"

DETAILED_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s'
SIMPLE_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger for a module

    Args:
        name: Logger name, usually ``__name__``

    Returns:
        Logger instance
    """
    return logging.getLogger(name)


def setup_logging(
    level: Optional[str] = None,
    log_dir: Optional[Path] = None,
    log_to_file: bool = True,
    log_to_console: bool = True,
    console_format: str = SIMPLE_FORMAT,
) -> logging.Logger:
    """
    Set up and configure the package logger

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_dir: Directory for the rotating log file
        log_to_file: Whether to write to ``<log_dir>/sales_tracker.log``
        log_to_console: Whether to write to stdout
        console_format: Format string for console output

    Returns:
        Configured package logger
    """
    logger = logging.getLogger(PACKAGE_LOGGER)

    # Determine log level
    if level:
        log_level = getattr(logging, level.upper(), logging.INFO)
    else:
        log_level = logging.INFO

    logger.setLevel(log_level)

    # If logger is already configured, only adjust the level
    if logger.handlers:
        for handler in logger.handlers:
            handler.setLevel(log_level)
        return logger

    if log_to_console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(logging.Formatter(console_format))
        console_handler.setLevel(log_level)
        logger.addHandler(console_handler)

    if log_to_file:
        log_dir = Path(log_dir or "logs")
        log_dir.mkdir(parents=True, exist_ok=True)

        file_handler = RotatingFileHandler(
            log_dir / f"{PACKAGE_LOGGER}.log",
            maxBytes=10485760,  # 10MB
            backupCount=5
        )
        file_handler.setFormatter(logging.Formatter(DETAILED_FORMAT))
        file_handler.setLevel(log_level)
        logger.addHandler(file_handler)

    return logger
