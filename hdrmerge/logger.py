"""
Logger Setup Module
-------------------
Provides a centralized function to configure and retrieve loggers.
Every module logs through one stdout handler attached to the root logger,
so the merge and tone mapping stages share a single format.
"""

import logging
import os
import sys

# --- Configuration ---
LOG_LEVEL = logging.getLevelName(os.environ.get("HDRMERGE_LOG_LEVEL", "INFO").upper())
if not isinstance(LOG_LEVEL, int):
    LOG_LEVEL = logging.INFO
LOG_FORMAT = '[%(asctime)s] %(levelname)-7s [%(name)s]: %(message)s'
LOG_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

# --- Singleton Pattern for Logger Setup ---
_loggers = {}
_handler = None


def setup_logger(name: str, level: int = LOG_LEVEL) -> logging.Logger:
    """
    Get a logger instance, configuring the root handler only once.

    Args:
        name: Name of the logger (module short name, e.g. "radiance").
        level: Logging level for this specific logger (defaults to LOG_LEVEL).

    Returns:
        Configured logger instance.
    """
    global _handler

    if _handler is None:
        _handler = logging.StreamHandler(sys.stdout)
        _handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))

        root_logger = logging.getLogger()
        # Root stays at DEBUG; the per-logger level does the filtering.
        root_logger.setLevel(logging.DEBUG)
        if not any(isinstance(h, logging.StreamHandler) for h in root_logger.handlers):
            root_logger.addHandler(_handler)

    logger = logging.getLogger(name)
    logger.setLevel(level)

    if name not in _loggers:
        _loggers[name] = logger

    return logger
