"""
Logging helpers for the Weather 2045 projection package.

Every module obtains its logger through ``app_logger(__name__)`` so that
handlers and formatting are configured in one place.
"""

import logging
import os
from typing import Optional

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_LEVEL_ENV = "WEATHER2045_LOG_LEVEL"


def _resolve_level(level: Optional[int]) -> int:
    if level is not None:
        return level
    name = os.environ.get(LOG_LEVEL_ENV, "INFO").upper()
    return getattr(logging, name, logging.INFO)


def app_logger(
    name: str, log_file: Optional[str] = None, level: Optional[int] = None
) -> logging.Logger:
    """
    Return a configured logger for the given module name.

    Handlers are attached only once per logger, so repeated calls (for example
    on module reload) do not duplicate output.

    :param name: Logger name, normally ``__name__``
    :param log_file: Optional path of a file to mirror log output into
    :param level: Explicit level; defaults to $WEATHER2045_LOG_LEVEL or INFO
    :return: logging.Logger
    """
    logger = logging.getLogger(name)
    logger.setLevel(_resolve_level(level))

    if not logger.handlers:
        formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

        stream_handler = logging.StreamHandler()
        stream_handler.setFormatter(formatter)
        logger.addHandler(stream_handler)

        if log_file:
            file_handler = logging.FileHandler(log_file)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)

    return logger
