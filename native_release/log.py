"""Logging setup for the CLI.

Library modules only call ``logging.getLogger(__name__)``; handlers are
installed once by the CLI entry point.
"""

import logging

from rich.console import Console
from rich.logging import RichHandler

LOG_FORMAT = "%(message)s"

_handler: RichHandler | None = None


def configure_logging(level: str = "INFO", console: Console | None = None) -> None:
    """Install a rich handler on the package logger.

    Safe to call more than once; the previous handler is replaced.

    Args:
        level: Logging level name.
        console: Console to render to (defaults to stderr).
    """
    global _handler

    package_logger = logging.getLogger("native_release")
    if _handler is not None:
        package_logger.removeHandler(_handler)

    _handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
    )
    _handler.setFormatter(logging.Formatter(LOG_FORMAT))
    package_logger.addHandler(_handler)
    package_logger.setLevel(level.upper())


__all__ = ["LOG_FORMAT", "configure_logging"]
