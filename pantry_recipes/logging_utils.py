"""
Logging setup shared by every module.

Usage:
    from .logging_utils import get_logger

    logger = get_logger(__name__)
    logger.info("Loaded %d recipes", count)
"""

from __future__ import annotations

import logging
import logging.config

from .config import get_settings

_configured = False


def build_logging_config(level: str) -> dict:
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": {
                "format": "%(asctime)s %(levelname)s [%(name)s] %(message)s",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "standard",
                "level": level,
            },
        },
        "loggers": {
            "pantry_recipes": {
                "handlers": ["console"],
                "level": level,
                "propagate": True,
            },
        },
    }


def setup_logging(level: str | None = None) -> None:
    """
    Apply the logging configuration once. Safe to call repeatedly; passing an
    explicit level reconfigures.
    """
    global _configured
    if _configured and level is None:
        return
    logging.config.dictConfig(build_logging_config(level or get_settings().log_level))
    _configured = True


def get_logger(name: str) -> logging.Logger:
    setup_logging()
    return logging.getLogger(name)


__all__ = ["get_logger", "setup_logging"]
