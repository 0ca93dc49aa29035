"""
Centralized logging configuration for the reference data store.

Every module takes its logger from :func:`create_logger`; console output
is colored by level, and a plain-text file copy is written when
REFDATA_LOG_DIR (or an explicit directory) is set. Failures that end a
seed step or a CLI command are reported through :func:`log_exception`.
"""

import logging
import os
import sys
from typing import Any, List, Mapping, Optional, Union

import colorlog

from refdata.exceptions import (
    ConfigurationError,
    ConstraintViolationError,
    ExportError,
    HierarchyError,
    SchemaError,
    SeedError,
)

CONSOLE_FORMAT = (
    "%(log_color)s[%(levelname)s]%(reset)s "
    "%(blue)s[%(name)s]%(reset)s "
    "%(message)s"
)
FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

LEVEL_COLORS = {
    "DEBUG": "cyan",
    "INFO": "green",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "red,bg_white",
}

# Most specific class first
HINTS = (
    (HierarchyError, "Parent links must form a tree: no self-loops, no cycles, levels parent + 1"),
    (ConstraintViolationError, "Referenced codes must exist in their parent tables; run 'refdata check'"),
    (SeedError, "Seeding is idempotent; fix the fixture and run 'refdata seed' again"),
    (SchemaError, "Create the tables with 'refdata init' and check table and column names"),
    (ConfigurationError, "Check REFDATA_* and TARGET in the environment or .env"),
    (ExportError, "Check that the output directory is writable"),
)


def _default_level() -> str:
    return os.getenv("REFDATA_LOG_LEVEL", "INFO").upper()


def _console_handler(log_level: Union[int, str]) -> logging.Handler:
    handler = colorlog.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    handler.setFormatter(colorlog.ColoredFormatter(CONSOLE_FORMAT, log_colors=LEVEL_COLORS))
    return handler


def _file_handler(path: str, log_level: Union[int, str]) -> logging.Handler:
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setLevel(log_level)
    handler.setFormatter(logging.Formatter(FILE_FORMAT))
    return handler


def create_logger(
    name: Optional[str] = None,
    log_level: Union[int, str, None] = None,
    log_dir: Optional[str] = None,
    log_file: Optional[str] = None,
) -> logging.Logger:
    """
    Create a color-coded logger with optional file logging.

    Calling it again for the same name replaces the handlers rather than
    stacking them.

    :param name: Name of the logger (typically __name__)
    :param log_level: Logging level (default: REFDATA_LOG_LEVEL or INFO)
    :param log_dir: Directory for log files (default: REFDATA_LOG_DIR)
    :param log_file: Log file name (default: "<name>.log")
    :return: Configured logger instance
    """
    name = name or "refdata"
    log_level = log_level or _default_level()
    if log_dir is None:
        log_dir = os.getenv("REFDATA_LOG_DIR") or None

    logger = colorlog.getLogger(name)
    logger.setLevel(log_level)
    logger.propagate = False
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()

    logger.addHandler(_console_handler(log_level))
    if log_dir or log_file:
        path = log_file or f"{name}.log"
        if log_dir:
            path = os.path.join(log_dir, path)
        logger.addHandler(_file_handler(path, log_level))

    return logger


def troubleshooting_hints(e: BaseException) -> List[str]:
    """Hints for an error and the error it was raised from."""
    hints = []
    for error in (e, e.__cause__):
        for error_type, hint in HINTS:
            if isinstance(error, error_type):
                if hint not in hints:
                    hints.append(hint)
                break
    return hints


def log_exception(logger, e, context: Union[Mapping[str, Any], str, None] = None):
    """
    Report a failure with its context, cause and what to try next.

    :param logger: Logger instance
    :param e: Exception object
    :param context: Mapping of what was being done (step, fixture, command ...) or a label
    """
    logger.critical("🚨 REFERENCE DATA ERROR 🚨")
    logger.critical(f"Error Type: {type(e).__name__}")
    logger.critical(f"Error Details: {e}")

    if isinstance(context, Mapping):
        for key, value in context.items():
            logger.critical(f"  {key}: {value}")
    elif context:
        logger.critical(f"Context: {context}")

    cause = e.__cause__
    if cause is not None:
        logger.critical(f"Caused by: {type(cause).__name__}: {cause}")

    for hint in troubleshooting_hints(e):
        logger.critical(f"💡 {hint}")
