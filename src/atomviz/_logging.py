"""Opt-in logging setup for applications embedding atomviz."""

import logging

from rich.console import Console
from rich.logging import RichHandler


def configure_logging(*, verbose: bool = False, console: Console | None = None) -> RichHandler:
    """Route atomviz log records to a rich handler on stderr.

    The library never configures logging by itself; call this from
    application code. Calling it again replaces the previously installed
    handler.

    Returns:
        The installed handler.

    """
    handler = RichHandler(
        console=console if console is not None else Console(stderr=True),
        show_time=False,
        show_path=verbose,
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))

    logger = logging.getLogger("atomviz")
    for existing in [h for h in logger.handlers if isinstance(h, RichHandler)]:
        logger.removeHandler(existing)
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    return handler
