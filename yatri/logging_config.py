"""Logging setup for the portal backend.

Everything goes to the console and ``portal.log``. Mail transport and
notification records are also copied to ``mail.log`` so delivery problems
can be followed without the request noise.
"""
from __future__ import annotations

import logging
from logging.config import dictConfig
from pathlib import Path

from pydantic import ValidationError

from yatri.config import get_settings

LOG_FORMAT = "%(asctime)s %(levelname)-7s [%(name)s] %(message)s"

MAIL_LOGGERS = (
    "yatri.services.mail_transport",
    "yatri.services.notification_service",
)

_configured = False


def build_logging_config(log_dir: Path, level: str, debug: bool = False) -> dict:
    """dictConfig schema for the given directory and level."""

    def file_handler(name: str) -> dict:
        return {
            "class": "logging.FileHandler",
            "filename": str(log_dir / name),
            "encoding": "utf-8",
            "formatter": "portal",
            "level": level,
        }

    loggers = {
        name: {"handlers": ["mail_file"], "level": level, "propagate": True}
        for name in MAIL_LOGGERS
    }
    # SQL echo only when debugging.
    loggers["sqlalchemy.engine"] = {"level": "INFO" if debug else "WARNING"}

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {"portal": {"format": LOG_FORMAT}},
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "portal",
                "level": level,
            },
            "portal_file": file_handler("portal.log"),
            "mail_file": file_handler("mail.log"),
        },
        "loggers": loggers,
        "root": {"level": level, "handlers": ["console", "portal_file"]},
    }


def configure_logging() -> None:
    """Configure application logging once per process."""

    global _configured
    if _configured:
        return

    try:
        settings = get_settings()
    except ValidationError:
        # Bad environment; still log somewhere so the error is visible.
        log_dir, level, debug = Path("logs"), "INFO", False
    else:
        log_dir, level, debug = settings.log_dir, settings.log_level, settings.debug
    log_dir.mkdir(parents=True, exist_ok=True)

    dictConfig(build_logging_config(log_dir, level, debug))
    logging.getLogger(__name__).debug("Logging to %s at %s", log_dir, level)
    _configured = True
