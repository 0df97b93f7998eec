"""Logging configuration for journeykit.

Log records go to stderr so exported bundles can be piped from stdout.
"""

import logging
import sys

from journeykit.core.config import Settings, get_settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# chatty per-request loggers, raised to WARNING unless debugging
_TRANSPORT_LOGGERS = ("httpx", "httpcore")


def setup_logging(settings: Settings | None = None, verbose: bool = False) -> None:
    """Configure tool-wide logging.

    Level is DEBUG when ``settings.debug`` or ``verbose`` is set, otherwise INFO.
    """
    settings = settings or get_settings()
    debug = settings.debug or verbose
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stderr)],
    )
    for name in _TRANSPORT_LOGGERS:
        logging.getLogger(name).setLevel(logging.DEBUG if debug else logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Return a logger for the given module name (usually ``__name__``)."""
    return logging.getLogger(name)
