"""Logging setup for the command line tools."""

from __future__ import annotations

import logging
import os

from rich.console import Console
from rich.logging import RichHandler

stderr_console = Console(stderr=True)


def setup_logging(verbose: bool = False) -> logging.Logger:
    """Route edgewalk logs through rich on stderr.

    ``LOG_LEVEL`` in the environment overrides the level chosen by ``verbose``.
    """
    logging.basicConfig(
        level="WARNING",
        format="%(message)s",
        handlers=[RichHandler(console=stderr_console, rich_tracebacks=True, show_path=False)],
    )

    logger = logging.getLogger("edgewalk")
    level: str | int = logging.DEBUG if verbose else logging.WARNING
    if "LOG_LEVEL" in os.environ:
        level = os.environ["LOG_LEVEL"]
    logger.setLevel(level)

    return logger
