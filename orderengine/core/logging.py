"""
Logging configuration
"""

import logging
import logging.config

from .config import Settings


def setup_logging(settings: Settings) -> None:
    """Configure root logging once at startup"""
    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {"format": settings.LOG_FORMAT},
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "default",
            },
        },
        "root": {
            "handlers": ["console"],
            "level": settings.LOG_LEVEL,
        },
        "loggers": {
            "sqlalchemy.engine": {
                "level": "INFO" if settings.DATABASE_ECHO else "WARNING",
            },
        },
    })
