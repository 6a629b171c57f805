"""Logging setup: a log file in the data directory plus warnings on stderr.

stdout is reserved for the assistant's answer or the JSON record stream,
so nothing is ever logged there.
"""
from __future__ import annotations

import logging
import sys
from pathlib import Path

LOG_FORMAT = "%(asctime)s | %(levelname)-5s | %(filename)s:%(lineno)d - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def configure_logging(log_dir: str | Path | None, level: str = "INFO") -> logging.Logger:
    """Configure the ``acai`` logger. Safe to call more than once."""
    logger = logging.getLogger("acai")
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    logger.propagate = False
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    stderr = logging.StreamHandler(sys.stderr)
    stderr.setLevel(logging.WARNING)
    stderr.setFormatter(formatter)
    logger.addHandler(stderr)

    if log_dir is not None:
        path = Path(log_dir)
        try:
            path.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(path / "acai.log", encoding="utf-8")
        except OSError as e:
            logger.warning("Cannot write log file in %s: %s", path, e)
        else:
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)

    return logger
