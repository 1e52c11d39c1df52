"""Centralized logging setup for the CareBridge pipeline.

One stdout handler on the root logger with a consistent format; SDK
loggers that chatter at INFO are capped at WARNING.
"""

import logging
import sys

_NOISY_LOGGERS = ("botocore", "boto3", "urllib3", "httpx", "openai")


def setup_logging(level: str = "INFO") -> None:
    """Configure the root logger with a standard format.

    Calling it again once a handler is installed is a no-op.

    Args:
        level: Logging level string (DEBUG, INFO, WARNING, ERROR, CRITICAL).
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    root = logging.getLogger()

    if root.handlers:
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    root.addHandler(handler)
    root.setLevel(numeric_level)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))


def get_logger(name: str) -> logging.Logger:
    """Get a named logger instance.

    Args:
        name: Logger name, typically ``__name__`` of the calling module.
    """
    return logging.getLogger(name)
