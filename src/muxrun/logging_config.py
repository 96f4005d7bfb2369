"""Logging setup for the muxrun command line.

Log records go to stderr through rich so they never mix with command
output such as a yanked buffer printed on stdout.
"""

from __future__ import annotations

import logging
import os

from rich.console import Console
from rich.logging import RichHandler

LOG_LEVEL_ENV = "MUXRUN_LOG_LEVEL"


def get_log_level(verbose: bool = False) -> int:
    if verbose:
        return logging.DEBUG

    level_name = os.getenv(LOG_LEVEL_ENV, "WARNING").upper()
    level = logging.getLevelName(level_name)
    return level if isinstance(level, int) else logging.WARNING


def setup_logging(verbose: bool = False) -> None:
    logger = logging.getLogger("muxrun")
    logger.setLevel(get_log_level(verbose))

    # Called once per CLI invocation; the shell command would otherwise stack handlers.
    if any(isinstance(h, RichHandler) for h in logger.handlers):
        return

    handler = RichHandler(console=Console(stderr=True), show_path=False, rich_tracebacks=False)
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    logger.addHandler(handler)
    logger.propagate = False
