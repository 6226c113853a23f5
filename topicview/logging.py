"""Logging setup for topicview.

Every module logs through ``get_logger(__name__)``. The CLI calls
``configure_logging`` once; with ``--debug`` each git invocation shows up on
stderr.
"""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

ROOT_LOGGER = "topicview"

stderr_console = Console(stderr=True)


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the topicview namespace."""
    if not name.startswith(ROOT_LOGGER):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)


def configure_logging(debug: bool = False) -> logging.Logger:
    """Attach a rich handler to the package logger.

    Safe to call more than once; the previous handler is replaced.
    """
    logger = logging.getLogger(ROOT_LOGGER)
    for handler in list(logger.handlers):
        if getattr(handler, "_topicview", False):
            logger.removeHandler(handler)

    handler = RichHandler(
        console=stderr_console,
        show_time=debug,
        show_path=debug,
        markup=False,
    )
    handler._topicview = True  # type: ignore[attr-defined]
    handler.setFormatter(logging.Formatter("%(message)s"))

    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if debug else logging.WARNING)
    return logger
