"""Logging configuration."""

import logging
import os
import sys

# Configuration from environment
LOG_FILE = os.environ.get("IPBAN_LOG_FILE")
VERBOSE = os.environ.get("VERBOSE", "0") == "1"

LOGGER_NAME = "ipban"

# Module-level state (initialized by init_logging)
logger: logging.Logger = logging.getLogger(LOGGER_NAME)


def init_logging(verbose: bool = VERBOSE, log_file: str | None = LOG_FILE) -> logging.Logger:
    """Initialize logging. Returns the package logger.

    Module loggers (ipban.lists.normalizer, ipban.config, ...) are children
    of this logger and inherit its handler.
    """
    global logger

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    logger.propagate = False
    logger.handlers.clear()
    if log_file:
        handler = logging.FileHandler(log_file)
    else:
        handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter('%(asctime)s %(name)s %(levelname)s %(message)s'))
    logger.addHandler(handler)

    return logger

