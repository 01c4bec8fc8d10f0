"""Process-wide logging setup."""

from __future__ import annotations

import logging
import logging.config

from quickpe.core.config import Settings


def configure_logging(settings: Settings) -> None:
    level = "DEBUG" if settings.debug else settings.logging.level.upper()
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {"format": settings.logging.format},
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                },
            },
            "loggers": {
                "quickpe": {"handlers": ["console"], "level": level, "propagate": False},
                "sqlalchemy.engine": {"level": "INFO" if settings.database.echo else "WARNING"},
            },
        }
    )
    logging.getLogger(__name__).debug("Logging configured at %s", level)


__all__ = ["configure_logging"]
