"""Console logging with info/success/warning/error severity tags."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler
from rich.theme import Theme

SUCCESS = 25
logging.addLevelName(SUCCESS, "SUCCESS")

_THEME = Theme(
    {
        "logging.level.info": "cyan",
        "logging.level.success": "bold green",
        "logging.level.warning": "yellow",
        "logging.level.error": "bold red",
    }
)


def configure_logging(level: str = "INFO", *, console: Console | None = None) -> logging.Logger:
    """Route the ``projtrack`` logger to a rich console handler.

    Calling it again replaces the previous handler instead of adding one.
    """
    logger = logging.getLogger("projtrack")
    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)

    handler = RichHandler(
        console=console or Console(stderr=True, theme=_THEME),
        show_path=False,
        markup=False,
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.setLevel(level.upper())
    return logger
