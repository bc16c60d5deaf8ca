"""
Package logger with colored level names.

Modules log through get_logger(); the CLI calls setup_logger() once to
attach a stderr handler at the requested level.
"""

import logging
import sys

RESET = "\033[0m"
COLORS = {
    "DEBUG": "\033[94m",  # Blue
    "INFO": "\033[92m",  # Green
    "WARNING": "\033[93m",  # Yellow
    "ERROR": "\033[91m",  # Red
    "CRITICAL": "\033[95m",  # Magenta
}


class ColoredFormatter(logging.Formatter):
    def format(self, record):
        log_color = COLORS.get(record.levelname, RESET)
        record.levelname = f"{log_color}{record.levelname}{RESET}"
        return super().format(record)


def get_logger():
    return logging.getLogger("loggrams")


def setup_logger(level=logging.INFO):
    logger = get_logger()
    logger.setLevel(level)

    # Repeated CLI invocations in one process must not stack handlers
    if not logger.handlers:
        stream_handler = logging.StreamHandler(sys.stderr)
        stream_handler.setFormatter(ColoredFormatter("%(levelname)s - %(message)s"))
        logger.addHandler(stream_handler)
    for handler in logger.handlers:
        handler.setLevel(level)
    return logger
