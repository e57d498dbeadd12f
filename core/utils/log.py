# core/utils/log.py
import logging

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
PACKAGE_LOGGERS = ("core", "api", "cli")


def configure_logging(level: str = "INFO") -> None:
    """Set up logging for the project's own loggers.

    Each package logger gets a single stream handler; calling this twice
    only updates the level.
    """
    for name in PACKAGE_LOGGERS:
        logger = logging.getLogger(name)
        if not logger.handlers:
            handler = logging.StreamHandler()
            handler.setFormatter(logging.Formatter(LOG_FORMAT))
            logger.addHandler(handler)
        logger.setLevel(getattr(logging, level.upper(), logging.INFO))
