"""
Centralized logging utilities for the nanobanana command-line tool.

Defines a shared logger instance and setup function so every module
logs through the same handler. Keeping the logger here also avoids
circular imports between the imaging core and the CLI layer.
"""

import logging
import sys
from typing import TextIO

_VERBOSITY_LEVELS = {
    (True, False): logging.DEBUG,
    (False, True): logging.WARNING,
}


def setup_logger(
        name: str = __name__,
        level: int = logging.INFO,
        formatter: logging.Formatter | None = None,
        handler: logging.Handler | None = None,
        stream: TextIO | None = None,
) -> logging.Logger:
    """
    Configure a named logger once and return it.

    Calling it again for a name that already has a handler only updates
    the level, so repeated imports never stack handlers. Without an
    explicit handler, records go to ``stream`` (stderr by default),
    which keeps stdout free for ``--json`` documents.

    Args:
        name: Logger name, typically set to __name__.
        level: Logging level (e.g., logging.INFO, logging.DEBUG).
        formatter: Optional custom formatter.
        handler: Optional custom handler; overrides ``stream``.
        stream: Text stream for the default StreamHandler.

    Returns:
        A configured logger instance.

    """
    logger_instance = logging.getLogger(name)
    logger_instance.setLevel(level)
    if logger_instance.handlers:
        return logger_instance

    if handler is None:
        handler = logging.StreamHandler(
            sys.stderr if stream is None else stream)
    handler.setFormatter(
        formatter or logging.Formatter(
            "%(asctime)s [%(levelname)s] %(message)s"),
    )
    logger_instance.addHandler(handler)
    logger_instance.propagate = False
    return logger_instance


def set_verbosity(*, verbose: bool = False, quiet: bool = False) -> None:
    """Map the CLI ``--verbose``/``--quiet`` flags onto the shared logger."""
    logger.setLevel(_VERBOSITY_LEVELS.get((verbose, quiet), logging.INFO))


# Shared logger used across modules
logger = setup_logger("nanobanana")
