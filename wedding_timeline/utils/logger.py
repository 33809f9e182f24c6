"""
Logging setup. One stdout handler sits on the package logger; module loggers
made with ``logging.getLogger(__name__)`` propagate to it.
"""
import logging
import sys
from wedding_timeline.config import get_settings

PACKAGE_LOGGER = "wedding_timeline"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def log_level() -> int:
    settings = get_settings()
    if settings.DEBUG:
        return logging.DEBUG
    return getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)


def get_logger(name: str = PACKAGE_LOGGER) -> logging.Logger:
    """Logger inside the package namespace, installing the handler on first use"""
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    if not package_logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        package_logger.addHandler(handler)
    package_logger.setLevel(log_level())

    if name == PACKAGE_LOGGER or name.startswith(PACKAGE_LOGGER + "."):
        return logging.getLogger(name)
    return package_logger.getChild(name)
