"""Logging helpers for the SAR fleet package"""

import logging
import os
from pathlib import Path
from typing import Optional

PACKAGE_LOGGER = "sar_fleet"
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def get_logger(name, log_file: Optional[str] = None, level: int = logging.INFO):
    """Get a configured logger.

    Handlers live on the package logger only, so module loggers
    (``sar_fleet.rrt_planner`` etc.) propagate to a single console handler.
    A file handler is added the first time ``log_file`` is given.

    Args:
        name: Logger name (usually ``__name__``)
        log_file: Optional path of a log file to append to
        level: Level applied to the package logger

    Returns:
        logging.Logger
    """
    root = logging.getLogger(PACKAGE_LOGGER)
    formatter = logging.Formatter(LOG_FORMAT)

    if not root.handlers:
        root.setLevel(level)

        # Console handler
        ch = logging.StreamHandler()
        ch.setLevel(logging.DEBUG)
        ch.setFormatter(formatter)
        root.addHandler(ch)

    # File handler if specified
    if log_file:
        log_path = Path(log_file)
        has_file = any(
            isinstance(h, logging.FileHandler) and h.baseFilename == os.path.abspath(log_file)
            for h in root.handlers
        )
        if not has_file:
            log_path.parent.mkdir(parents=True, exist_ok=True)
            fh = logging.FileHandler(log_file)
            fh.setLevel(logging.DEBUG)
            fh.setFormatter(formatter)
            root.addHandler(fh)

    if name == PACKAGE_LOGGER or name.startswith(PACKAGE_LOGGER + "."):
        return logging.getLogger(name)
    return root.getChild(name)


def set_log_level(level: int):
    """Change the verbosity of every sar_fleet logger."""
    logging.getLogger(PACKAGE_LOGGER).setLevel(level)
