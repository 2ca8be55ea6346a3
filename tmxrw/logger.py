"""
Centralized Logging Module for the TMX reader/writer.

Provides consistent logging across all modules with output to:
- Console (INFO and above)
- File (only when TMXRW_LOG_FILE names a log file, captures DEBUG)
"""
import logging
import os
import sys

LOG_FILE_ENV = "TMXRW_LOG_FILE"

# Formatter with timestamp, level, module, and message
LOG_FORMAT = "%(asctime)s | %(levelname)-7s | %(name)s | %(funcName)s() | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def get_logger(name: str) -> logging.Logger:
    """
    Returns a configured logger instance.

    Args:
        name: Usually __name__ of the calling module.

    Returns:
        A logging.Logger instance configured for console and optional file output.
    """
    logger = logging.getLogger(name)

    # Avoid adding handlers multiple times
    if logger.handlers:
        return logger

    logger.setLevel(logging.DEBUG)
    formatter = logging.Formatter(LOG_FORMAT, DATE_FORMAT)

    log_file = os.environ.get(LOG_FILE_ENV)
    if log_file:
        log_dir = os.path.dirname(os.path.abspath(log_file))
        os.makedirs(log_dir, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    # Console Handler - only INFO and above for cleaner output
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    return logger
