"""Logging setup for the stagewise CLI.

The analysis engine only creates module loggers; handlers and levels are
configured here, once, by the command line entry point.
"""

import logging


def verbosity_to_level(verbosity: int) -> int:
    """Map a -v count to a logging level (0 -> WARNING, 1 -> INFO, 2+ -> DEBUG)."""
    if verbosity <= 0:
        return logging.WARNING
    if verbosity == 1:
        return logging.INFO
    return logging.DEBUG


def configure_logging(verbosity: int) -> None:
    """Configure the root logger to write to stderr at the level for verbosity."""
    logging.basicConfig(
        level=verbosity_to_level(verbosity),
        format="%(levelname)s %(name)s: %(message)s",
    )
