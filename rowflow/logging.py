"""Logging for RowFlow.

Every module logs through ``get_logger(__name__)``. Loggers get their own
stream handler and do not propagate, so the level set on the root logger by
``configure_logging`` decides what tasks and stages print.
"""

import logging
import sys
from typing import IO, Any, Dict, Optional

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Per-row and per-statement output, shown only in verbose mode
TECHNICAL_MODULES = [
    "rowflow.connections.bulk_insert",
    "rowflow.connections.manager",
    "rowflow.dataflow.channel",
    "rowflow.dataflow.stage",
]

NOISY_THIRD_PARTY_LOGGERS = [
    "sqlalchemy.engine",
    "sqlalchemy.pool",
    "sqlalchemy.dialects",
]


def _stream_handler(stream: Optional[IO[str]] = None) -> logging.Handler:
    handler = logging.StreamHandler(stream)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    return handler


def get_logger(name: str) -> logging.Logger:
    """Return the logger called ``name``, typically ``__name__``."""
    logger = logging.getLogger(name)
    if not logger.handlers:
        logger.addHandler(_stream_handler())
        logger.propagate = False
    return logger


def configure_logging(verbose: bool = False, quiet: bool = False) -> None:
    """Set log levels from the CLI flags.

    Args:
        verbose: Show debug output, technical modules included
        quiet: Only show warnings and errors; wins over ``verbose``
    """
    if quiet:
        root_level = logging.WARNING
    elif verbose:
        root_level = logging.DEBUG
    else:
        root_level = logging.INFO

    root_logger = logging.getLogger()
    root_logger.setLevel(root_level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    root_logger.addHandler(_stream_handler(sys.stdout))

    technical_level = logging.DEBUG if verbose and not quiet else logging.WARNING
    for module_name in TECHNICAL_MODULES:
        logging.getLogger(module_name).setLevel(technical_level)

    for logger_name in NOISY_THIRD_PARTY_LOGGERS:
        logging.getLogger(logger_name).setLevel(logging.WARNING)


def get_logging_status() -> Dict[str, Any]:
    """Levels and handler state of the root logger and every rowflow logger."""
    modules = {}
    for name in logging.root.manager.loggerDict:
        if not name.startswith("rowflow"):
            continue
        logger = logging.getLogger(name)
        modules[name] = {
            "level": logging.getLevelName(logger.level),
            "propagate": logger.propagate,
            "has_handlers": bool(logger.handlers),
        }
    return {"root_level": logging.getLevelName(logging.getLogger().level), "modules": modules}
