"""Logging configuration for SpeechGate."""

import logging

from rich.console import Console
from rich.logging import RichHandler

from speechgate.core.config import LoggingConfig

PACKAGE_LOGGER = "speechgate"


def setup_logging(config: LoggingConfig | None = None, console: Console | None = None) -> logging.Logger:
    """
    Route the package logger through a Rich console handler.

    Calling this more than once replaces the previously installed handler
    instead of stacking another one.

    Args:
        config: Logging configuration. Defaults to LoggingConfig().
        console: Optional Rich console to write to (stderr by default).

    Returns:
        The configured package logger.
    """
    if config is None:
        config = LoggingConfig()

    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(config.level)

    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=config.show_path,
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))
    logger.addHandler(handler)
    logger.propagate = False
    return logger
