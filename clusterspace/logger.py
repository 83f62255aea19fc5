"""Module to create a logger instance."""

import logging
import sys
from logging import Formatter, Logger, StreamHandler


class StdoutFilter(logging.Filter):
    """Class to redirect logs to stdout."""

    def filter(self, record):
        """Redirect to stdout only logs with level lower or equal then WARNING."""
        return record.levelno <= logging.WARNING


class StderrFilter(logging.Filter):
    """Class to redirect logs to stderr."""

    def filter(self, record):
        """Redirect to stderr only logs with level greater or equal then ERROR."""
        return record.levelno >= logging.ERROR


def create_logger(name: str, level: str | int | None = None) -> Logger:
    """Create a logger with a stdout and a stderr stream handler.

    Messages up to WARNING go to stdout, the others to stderr. Calling it twice
    with the same name does not duplicate the handlers.

    Args:
        name (str): logger name.
        level (str | int | None): logging level. Invalid values are reported by
            the logger itself and the level is left untouched.

    Returns:
        Logger: the configured logger.

    """
    logger = logging.getLogger(name)
    error_msg = None
    if level is not None:
        try:
            logger.setLevel(level)
        except (ValueError, TypeError):
            error_msg = f"Invalid log level: {level}"

    if not logger.handlers:
        formatter = Formatter("%(asctime)s - %(levelname)s - %(name)s - %(message)s")

        stdout_handler = StreamHandler(sys.stdout)
        stdout_handler.setFormatter(formatter)
        stdout_handler.addFilter(StdoutFilter())
        logger.addHandler(stdout_handler)

        stderr_handler = StreamHandler()
        stderr_handler.setFormatter(formatter)
        stderr_handler.addFilter(StderrFilter())
        logger.addHandler(stderr_handler)

    if error_msg is not None:
        logger.error(error_msg)

    return logger
