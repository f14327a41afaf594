"""Logging setup for the omniscient CLI.

Library modules only create loggers; handlers are attached here by the CLI
entry point.
"""

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

LOGGER_NAME = "omniscient"

_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _file_handler(log_path: str) -> logging.Handler | None:
    path = Path(log_path).expanduser()
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        handler = RotatingFileHandler(str(path), maxBytes=1_000_000, backupCount=3)
    except OSError:
        return None
    handler.setLevel(logging.INFO)
    handler.setFormatter(logging.Formatter(_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    return handler


def configure_logging(verbose: bool = False, log_path: str | None = None) -> list[logging.Handler]:
    """Attach the rotating operations log and, with ``verbose``, a stderr handler.

    An unwritable log path is ignored so a read-only home never breaks capture.
    Returns the handlers added so callers can detach them again.
    """
    logger = logging.getLogger(LOGGER_NAME)
    added: list[logging.Handler] = []

    if log_path:
        handler = _file_handler(log_path)
        if handler is not None:
            logger.addHandler(handler)
            added.append(handler)

    if verbose:
        stream = logging.StreamHandler(sys.stderr)
        stream.setLevel(logging.DEBUG)
        stream.setFormatter(logging.Formatter(_FORMAT, datefmt="%H:%M:%S"))
        logger.addHandler(stream)
        added.append(stream)

    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    return added


def remove_handlers(handlers: list[logging.Handler]) -> None:
    logger = logging.getLogger(LOGGER_NAME)
    for handler in handlers:
        logger.removeHandler(handler)
        handler.close()
