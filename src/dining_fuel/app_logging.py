"""Logging configuration helpers."""

import logging

_LOGGER_NAME = "dining_fuel"
_FORMAT = "%(asctime)s %(levelname)s: %(name)s: %(message)s"


def configure_logging(level: int | str = logging.INFO) -> None:
    """Configure the package logger with a single stream handler.

    `level` may be a logging constant or a level name such as "DEBUG", so it
    can come straight from settings. Repeated calls only adjust the level.
    """
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level.upper() if isinstance(level, str) else level)
    if logger.handlers:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(_FORMAT))
    logger.addHandler(handler)
    logger.propagate = False
