"""
Logging setup shared by the SupplyHub API and the import console.

Import runs log one INFO line at start and at finish, a WARNING per rejected
row and an ERROR when a temporary upload cannot be deleted. All of it goes
through a single stderr handler. SQLAlchemy's engine logger and the multipart
parser are held at WARNING so per-row SAVEPOINT statements do not flood it.
"""
from __future__ import annotations

import logging
from logging.config import dictConfig
from typing import Optional


_is_configured = False


def configure_logging(level: Optional[str] = None) -> None:
    """
    Install the console handler once per process; later calls are no-ops.

    Args:
        level: ``settings.log_level`` or the console's ``--log-level``; INFO when unset.
    """
    global _is_configured

    if _is_configured:
        return

    log_level = (level or "INFO").upper()

    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "standard": {
                    "format": "%(asctime)s | %(levelname)-7s | %(name)s | %(message)s",
                    "datefmt": "%Y-%m-%d %H:%M:%S",
                }
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "standard",
                    "level": log_level,
                }
            },
            "root": {
                "handlers": ["console"],
                "level": log_level,
            },
            # Third-party chatter stays at WARNING regardless of the app level.
            "loggers": {
                "sqlalchemy.engine": {"level": "WARNING"},
                "multipart": {"level": "WARNING"},
            },
        }
    )

    logging.getLogger("supplyhub").setLevel(log_level)

    _is_configured = True
