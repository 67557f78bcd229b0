import logging
from typing import Set

from rich.logging import RichHandler
from textual.logging import TextualHandler

from utils.config import settings


class CenteredFormatter(logging.Formatter):
    longest_name_length = 14  # Initial default width

    def __init__(self, fmt=None, datefmt=None, style="%", initial_width=14):
        super().__init__(fmt, datefmt, style)
        CenteredFormatter.longest_name_length = initial_width

    def format(self, record):
        CenteredFormatter.longest_name_length = max(
            CenteredFormatter.longest_name_length, len(record.name)
        )

        dynamic_width = CenteredFormatter.longest_name_length + 2
        record.name = f"{record.name.center(dynamic_width - 2)}"
        return super().format(record)


_FORMAT = "[%(name)s]  %(message)s"

# names of every logger handed out, so handlers can be swapped later
_loggers: Set[str] = set()


def get_logger(name=None) -> logging.Logger:
    """
    Creates and returns a logger configured with RichHandler for rich output.
    """
    if name is None:
        name = "artisha"
    logger = logging.getLogger(name)
    _loggers.add(name)
    log_level = logging.DEBUG if settings.debug else logging.INFO
    logger.setLevel(log_level)

    if not logger.handlers:
        console_handler = RichHandler(
            show_time=True,
            show_level=True,
            show_path=False,
            rich_tracebacks=True,
            log_time_format="[%X]",
        )
        console_handler.setFormatter(CenteredFormatter(_FORMAT))
        console_handler.setLevel(log_level)
        logger.addHandler(console_handler)

        logger.propagate = False
        logger.debug(f"Logger for '{name}' initialized with RichHandler.")

    return logger


def route_to_textual() -> None:
    """
    Swap console output for the textual devtools console on every logger
    handed out so far.

    Called once the app is running, since a RichHandler writing to the
    terminal would draw over the screen.
    """
    for name in _loggers:
        logger = logging.getLogger(name)
        for handler in list(logger.handlers):
            if isinstance(handler, RichHandler):
                logger.removeHandler(handler)
        if not any(isinstance(h, TextualHandler) for h in logger.handlers):
            handler = TextualHandler()
            handler.setFormatter(CenteredFormatter(_FORMAT))
            logger.addHandler(handler)
