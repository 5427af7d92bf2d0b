"""
Logging configuration for Finsight.

All module loggers live under the ``finsight`` namespace and share the
handlers installed on the package logger by ``setup_logging``.
"""

import logging
import sys
from typing import Optional
from finsight.config.settings import get_config

PACKAGE_LOGGER = "finsight"

_configured = False


def setup_logging(
    name: str = PACKAGE_LOGGER,
    level: Optional[str] = None,
    log_file: Optional[str] = None
) -> logging.Logger:
    """
    Install console (and optional file) handlers on a logger.

    Args:
        name: Logger name, the package logger by default
        level: Logging level override
        log_file: Optional log file path

    Returns:
        Configured logger instance
    """
    config = get_config()
    logger = logging.getLogger(name)

    log_level = level or config.logging.level
    logger.setLevel(getattr(logging, log_level.upper()))

    # Avoid duplicate handlers
    if logger.handlers:
        return logger

    formatter = logging.Formatter(
        fmt=config.logging.format,
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    file_path = log_file or config.logging.file_path
    if file_path:
        file_handler = logging.FileHandler(file_path)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.propagate = False
    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a module logger, configuring the package logger on first use."""
    global _configured
    if not _configured:
        setup_logging()
        _configured = True
    return logging.getLogger(name)


def preview(text: str, limit: int = 50) -> str:
    """Shorten user text for log lines."""
    text = " ".join((text or "").split())
    return text if len(text) <= limit else f"{text[:limit]}..."
