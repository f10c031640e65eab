"""Logging utilities for rawbox modules."""

import logging
import os
from typing import Optional, Union

LOG_LEVEL_ENV = 'RAWBOX_LOG_LEVEL'

DEFAULT_FORMAT = '[%(asctime)s] [%(levelname)s] %(name)s: %(message)s'

PACKAGE_LOGGER = 'rawbox'


def get_logger(name: str) -> logging.Logger:
    """Get a logger that automatically inherits from root logger.

    This ensures that loggers work with basicConfig() without needing
    explicit setup_logging() calls. The logger will:
    - Propagate to root logger (default behavior)
    - Only set a default level if neither the root logger nor the
      rawbox logger (see setup_logging) has handlers

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    logger.propagate = True

    # Only set default level if neither root nor the rawbox logger is
    # configured (i.e., neither basicConfig nor setup_logging has run)
    root_logger = logging.getLogger()
    if not root_logger.handlers and not _package_configured(name):
        logger.setLevel(logging.WARNING)  # Default to WARNING if no basicConfig

    return logger


def _package_configured(name: str) -> bool:
    """True if name lives under a rawbox logger set up by setup_logging()."""
    if name != PACKAGE_LOGGER and not name.startswith(PACKAGE_LOGGER + '.'):
        return False
    package = logging.getLogger(PACKAGE_LOGGER)
    return any(getattr(h, '_rawbox_handler', False) for h in package.handlers)


def resolve_level(level: Optional[Union[int, str]] = None) -> int:
    """
    Resolve a logging level from a number, a level name or the environment.

    Unknown names fall back to INFO.
    """
    if level is None:
        level = os.environ.get(LOG_LEVEL_ENV, 'INFO')
    if isinstance(level, int):
        return level

    resolved = logging.getLevelName(level.strip().upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def setup_logging(level: Optional[Union[int, str]] = None) -> logging.Logger:
    """
    Configure the rawbox logger hierarchy.

    Installs a single stream handler on the ``rawbox`` logger; calling it
    again only updates the level. Child loggers inherit the level.

    Args:
        level: Level number or name (default: $RAWBOX_LOG_LEVEL or INFO)

    Returns:
        The ``rawbox`` package logger
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(resolve_level(level))

    # Loggers created earlier by get_logger() were pinned to WARNING
    prefix = PACKAGE_LOGGER + '.'
    for name, child in list(logging.Logger.manager.loggerDict.items()):
        if name.startswith(prefix) and isinstance(child, logging.Logger):
            child.setLevel(logging.NOTSET)

    if not any(getattr(h, '_rawbox_handler', False) for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(DEFAULT_FORMAT, '%H:%M:%S'))
        handler._rawbox_handler = True
        logger.addHandler(handler)
        logger.propagate = False

    return logger
