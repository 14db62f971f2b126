"""Logging setup for TaskBook entry points.

Library modules only create ``logging.getLogger(__name__)`` loggers; handlers
are installed here, once, by whichever entry point runs.
"""

import logging
import sys

from .config import LoggingSettings, get_settings


_HANDLER_NAME = "taskbook-console"


def configure_logging(settings: LoggingSettings | None = None) -> logging.Logger:
    """Attach a console handler to the ``taskbook`` logger.

    Calling it again replaces the previous handler instead of stacking them.

    Returns:
        The configured package logger

    """
    settings = settings or get_settings().log
    level = getattr(logging, settings.level, logging.INFO)

    package_logger = logging.getLogger("taskbook")
    package_logger.setLevel(level)

    for handler in list(package_logger.handlers):
        if handler.get_name() == _HANDLER_NAME:
            package_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.set_name(_HANDLER_NAME)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(settings.format, settings.date_format))
    package_logger.addHandler(handler)

    return package_logger
