"""Logging configuration for Hornerito.

The bot runs for days, so the file log rotates at midnight into
hornerito.log.YYYY-MM-DD instead of being named once at startup.
"""

import logging
from logging.handlers import TimedRotatingFileHandler
from config import Config

LOGGER_NAME = "hornerito"

# Libraries that log every HTTP request or job run at INFO
_NOISY_LOGGERS = ("httpx", "telegram.ext", "apscheduler", "openai")

_FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
_CONSOLE_FORMAT = "%(levelname)s - %(message)s"


def setup_logging(config: Config, console: bool = True) -> logging.Logger:
    """Configure the hornerito logger.

    Args:
        config: Application configuration containing log settings.
        console: Also log to stderr.

    Returns:
        Configured logger instance.
    """
    config.log_dir.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(config.log_level)
    # Safe to call again, e.g. from tests
    logger.handlers.clear()

    file_handler = TimedRotatingFileHandler(
        config.log_dir / f"{LOGGER_NAME}.log",
        when="midnight",
        backupCount=30,
        encoding="utf-8",
    )
    file_handler.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    logger.addHandler(file_handler)

    if console:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(logging.Formatter(_CONSOLE_FORMAT))
        logger.addHandler(console_handler)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return logger


def get_logger() -> logging.Logger:
    """Get the application logger."""
    return logging.getLogger(LOGGER_NAME)
