import logging

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "callsampler"

_handler = None


def set_log_level(level: int) -> None:
    """Set the level of the messages emitted by the package loggers.

    The first call installs a handler that writes to stderr, so that log
    messages never get mixed with the rendered call trees.
    """
    global _handler
    logger = logging.getLogger(LOGGER_NAME)
    if _handler is None:
        _handler = RichHandler(
            console=Console(stderr=True),
            show_time=False,
            show_path=False,
        )
        _handler.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(_handler)
    logger.setLevel(level)
