"""
Munin logging setup.

Library modules only ever call logging.getLogger(__name__); nothing is configured
on import. Hosts (and the demo in main.py) call install() once to route the
"munin" logger through rich.
"""
import logging

from rich.console import Console
from rich.logging import RichHandler

logger = logging.getLogger("munin")

_handler = None


def install(level="INFO", *, colorful=True, console=None):
    """
    Attach a RichHandler to the "munin" logger and set its level.

    Calling it again replaces the previously installed handler, so the logger
    never prints a record twice. Returns the handler.

    Parameters
    - level: logging level name or number.
    - colorful: False renders plain text (no color, no markup).
    - console: rich Console to write to (stderr by default).
    """
    global _handler

    if console is None:
        console = Console(stderr=True, no_color=not colorful, highlight=colorful)
    handler = RichHandler(
        console=console,
        rich_tracebacks=colorful,
        markup=False,
        show_path=False,
    )
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))

    uninstall()
    logger.addHandler(handler)
    logger.setLevel(level)
    _handler = handler
    return handler


def uninstall():
    """
    Detach the handler installed by install(), if any.
    """
    global _handler

    if _handler is not None:
        logger.removeHandler(_handler)
        _handler = None


__all__ = (
    "install",
    "uninstall",
)
