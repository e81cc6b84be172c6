"""Console logging setup for the command-line entry point.

Library modules only create loggers with `logging.getLogger(__name__)`; handlers are
installed here, once, by `nonogram.main`.
"""

import logging

LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"
DATE_FORMAT = "%H:%M:%S"


def configure_logging(level: int | str = logging.INFO) -> None:
    """Send log records at `level` and above to stderr, replacing existing root handlers."""
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    logging.basicConfig(level=level, format=LOG_FORMAT, datefmt=DATE_FORMAT, force=True)
