"""
Application-wide logging configuration.

One uniform console format for request handling and storage:
    timestamp | level | logger | message

configure_logging() is called once by create_app(); every module obtains its
logger through get_logger(__name__).
"""

import logging

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """
    Configure root logging settings.

    Parameters:
        level (str): "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"

    basicConfig is a no-op once the root logger has handlers, so repeated
    application factories (as in tests) only adjust the level.
    """
    resolved = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(level=resolved, format=LOG_FORMAT)
    logging.getLogger().setLevel(resolved)
    logging.getLogger(__name__).debug("Logging initialized with level %s", level)


def get_logger(name: str) -> logging.Logger:
    """Return a logger instance to be used in any module."""
    return logging.getLogger(name)
