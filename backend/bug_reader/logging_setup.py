"""Logging setup for the bug reader service."""

import logging

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: str = "INFO", log_format: str = LOG_FORMAT) -> logging.Logger:
    """
    Configure the root logger with a single console handler.

    Args:
        level: Logging level name (DEBUG, INFO, WARNING, ...)
        log_format: Format string for log messages

    Returns:
        Configured root logger
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    root_logger.handlers.clear()

    handler = logging.StreamHandler()
    handler.setLevel(numeric_level)
    handler.setFormatter(logging.Formatter(log_format))
    root_logger.addHandler(handler)

    return root_logger
