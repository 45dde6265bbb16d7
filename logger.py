"""Logging configuration for Spendwatch.

Log records go to a date-named file under the configured log directory and,
unless disabled, to the console.
"""

import logging
from datetime import date
from config import Config

LOGGER_NAME = "spendwatch"

# Chatty third-party loggers pulled in by the receipt extraction client
_QUIET_LOGGERS = ("openai", "httpx", "httpcore")


def setup_logging(config: Config, console: bool = True) -> logging.Logger:
    """Set up application logging.

    Args:
        config: Application configuration containing log settings.
        console: Also log to stderr.

    Returns:
        Configured logger instance.
    """
    config.log_dir.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(config.log_level)

    # setup_logging may run more than once per process (CLI + tests)
    logger.handlers.clear()

    file_handler = logging.FileHandler(
        config.log_dir / f"{LOGGER_NAME}-{date.today().isoformat()}.log"
    )
    file_handler.setLevel(config.log_level)
    file_handler.setFormatter(
        logging.Formatter(
            "%(asctime)s - %(name)s - %(threadName)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    logger.addHandler(file_handler)

    if console:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(config.log_level)
        console_handler.setFormatter(logging.Formatter("%(levelname)s - %(message)s"))
        logger.addHandler(console_handler)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return logger


def get_logger() -> logging.Logger:
    """Get the application logger."""
    return logging.getLogger(LOGGER_NAME)
