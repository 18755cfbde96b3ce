from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

PACKAGE_LOGGER = "snippet_exec"


def get_logger(name: str) -> logging.Logger:
    """Return a module logger nested under the package logger.

    Example:
        ```python
        logger = get_logger(__name__)
        ```
    """
    if name == PACKAGE_LOGGER or name.startswith(PACKAGE_LOGGER + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{PACKAGE_LOGGER}.{name}")


def configure_logging(level: int | str = logging.WARNING) -> logging.Logger:
    """Attach a single Rich handler to the package logger and set its level.

    Calling it again only updates the level.

    Example:
        ```python
        configure_logging("DEBUG")
        ```
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    if isinstance(level, str):
        level = level.upper()
    logger.setLevel(level)
    for handler in logger.handlers:
        if isinstance(handler, RichHandler):
            return logger

    handler = RichHandler(
        console=Console(stderr=True),
        rich_tracebacks=True,
        markup=False,
        show_path=False,
        show_time=True,
        show_level=True,
        tracebacks_show_locals=False,
    )
    logger.addHandler(handler)
    logger.propagate = False
    return logger
