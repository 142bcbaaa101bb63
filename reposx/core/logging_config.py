"""
Logging setup for the command line entrypoint.

Every module logs through ``logging.getLogger(__name__)``; this module only
decides where those records go. Status lines meant for the user are printed
by the commands themselves, logging goes to stderr.

Level precedence: --debug / --verbose flag > REPOSX_LOG_LEVEL > WARNING.
"""
from __future__ import annotations

import logging
import sys
from typing import Optional

LOG_LEVEL_ENV_VAR = "REPOSX_LOG_LEVEL"

_FMT_MINIMAL = "%(message)s"
_FMT_VERBOSE = "%(asctime)s [%(name)s] %(message)s"
_FMT_DEBUG = "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d - %(message)s"
_DATEFMT = "%H:%M:%S"

# httpx logs every request at INFO
_NOISY_LOGGERS = ("httpx", "httpcore")

_console_handler: Optional[logging.Handler] = None


def setup_logging(level: Optional[str] = "WARNING") -> None:
    """Install (or replace) the stderr handler on the root logger."""
    global _console_handler
    numeric_level = parse_level(level)

    if numeric_level <= logging.DEBUG:
        fmt, datefmt = _FMT_DEBUG, _DATEFMT
    elif numeric_level <= logging.INFO:
        fmt, datefmt = _FMT_VERBOSE, _DATEFMT
    else:
        fmt, datefmt = _FMT_MINIMAL, None

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(numeric_level)
    console.setFormatter(logging.Formatter(fmt, datefmt=datefmt))

    root = logging.getLogger()
    if _console_handler is not None:
        root.removeHandler(_console_handler)
    root.addHandler(console)
    _console_handler = console
    root.setLevel(numeric_level)

    if numeric_level > logging.DEBUG:
        for name in _NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)


def parse_level(level: Optional[str]) -> int:
    """Convert a level name to its numeric value, WARNING when unknown."""
    if not level:
        return logging.WARNING
    numeric = getattr(logging, level.upper(), None)
    if not isinstance(numeric, int):
        return logging.WARNING
    return numeric
