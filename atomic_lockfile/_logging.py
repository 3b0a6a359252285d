"""Log output for processes contending for a lock file."""

from __future__ import annotations

import logging
import sys
from typing import Optional, TextIO

PACKAGE_LOGGER = "atomic_lockfile"
# Several processes usually write to one terminal, so every line names its PID.
LOG_FORMAT = "%(asctime)s [%(levelname)s] pid=%(process)d %(name)s: %(message)s"


def level_for(verbosity: int) -> int:
    """Map ``-v`` count minus ``-q`` count to a logging level.

    -1 or less = ERROR (hide "giving up" warnings), 0 = WARNING,
    1 = INFO (acquire/release), 2+ = DEBUG (every attempt and wait).
    """
    if verbosity < 0:
        return logging.ERROR
    if verbosity == 0:
        return logging.WARNING
    if verbosity == 1:
        return logging.INFO
    return logging.DEBUG


def setup_logging(verbosity: int = 0, stream: Optional[TextIO] = None) -> logging.Handler:
    """Route lock activity of this process to *stream* (stderr by default).

    Replaces any handler installed by an earlier call and returns the new one.
    """
    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.setLevel(level_for(verbosity))
    for previous in list(package_logger.handlers):
        package_logger.removeHandler(previous)
    package_logger.addHandler(handler)
    return handler
