"""
Logging configuration for the Khelna API.

Called once from app.main; every module logs through logging.getLogger(__name__).
"""

import logging
from typing import Dict

from app.core.config import settings

LOG_FORMAT = "%(asctime)s %(name)s %(levelname)s: %(message)s"

# Third-party loggers kept quiet regardless of LOG_LEVEL
NOISY_LOGGERS = {
    "sqlalchemy.engine": "WARNING",
    "uvicorn.access": "WARNING",
}


def configure_logging():
    """Configure logging for the application."""
    log_level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    logging.basicConfig(level=log_level, format=LOG_FORMAT)

    app_logger = logging.getLogger("app")
    app_logger.setLevel(log_level)

    for logger_name, level_name in NOISY_LOGGERS.items():
        logging.getLogger(logger_name).setLevel(getattr(logging, level_name))


def get_logger_levels() -> Dict[str, str]:
    """Get current log levels for the configured loggers."""
    result = {"root": logging.getLevelName(logging.getLogger().level)}
    for logger_name in ["app", *NOISY_LOGGERS]:
        result[logger_name] = logging.getLevelName(logging.getLogger(logger_name).level)
    return result
