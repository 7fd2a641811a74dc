"""Structured JSON logging setup."""
import logging
import sys

from pythonjsonlogger.json import JsonFormatter

from goalflow.config import settings


LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(funcName)s %(message)s"


def setup_logging(level: str | None = None) -> logging.Logger:
    """
    Install a JSON formatter on the root logger.

    Args:
        level: Optional log level name (defaults to settings.log_level)

    Returns:
        The configured root logger
    """
    logger = logging.getLogger()
    logger.setLevel((level or settings.log_level).upper())

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(JsonFormatter(LOG_FORMAT))

    if logger.hasHandlers():
        logger.handlers.clear()
    logger.addHandler(console_handler)

    # Reduce noisy libraries
    logging.getLogger("uvicorn").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)

    logger.info("JSON structured logging initialized")
    return logger
