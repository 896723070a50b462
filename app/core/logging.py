"""Logging setup for the API process."""
import logging

from app.core.config import Settings

LOGGER_NAME = "finanzas"


def setup_logging(config: Settings) -> logging.Logger:
    """Configure the ``finanzas`` logger hierarchy.

    Args:
        config: Application settings (DEBUG, LOG_LEVEL)

    Returns:
        The configured package logger
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(config.LOG_LEVEL.upper())

    # Remove existing handlers to avoid duplicates on reload
    logger.handlers.clear()

    if config.DEBUG:
        fmt = "[%(asctime)s] %(levelname)-8s [%(name)s.%(funcName)s:%(lineno)d] %(message)s"
        datefmt = "%H:%M:%S"
    else:
        fmt = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
        datefmt = "%Y-%m-%d %H:%M:%S"

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(fmt=fmt, datefmt=datefmt))
    logger.addHandler(handler)
    logger.propagate = False

    logger.info("Logging initialized (environment=%s)", config.ENVIRONMENT)
    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a child logger, e.g. ``get_logger("sync")`` -> ``finanzas.sync``."""
    return logging.getLogger(f"{LOGGER_NAME}.{name}")
