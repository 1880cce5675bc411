"""Process-wide logging for the intake service and the page-session client.

One stdout handler on the root logger; uvicorn's loggers share it and
httpx request chatter is held at WARNING. `LOG_LEVEL` overrides the
default INFO level.
"""
from __future__ import annotations

import logging
import os
from logging.config import dictConfig

LOG_FORMAT = "%(asctime)s %(levelname)s:%(name)s:%(message)s"


def _level() -> str:
    level = (os.getenv("LOG_LEVEL") or "INFO").strip().upper()
    return level if level in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"} else "INFO"


def _dict_config(level: str) -> dict:
    server_logger = {"level": level, "handlers": ["console"], "propagate": False}
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {"default": {"format": LOG_FORMAT}},
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": level,
                "formatter": "default",
                "stream": "ext://sys.stdout",
            }
        },
        "root": {"level": level, "handlers": ["console"]},
        "loggers": {
            "uvicorn": server_logger,
            "uvicorn.error": dict(server_logger),
            "uvicorn.access": dict(server_logger),
            "httpx": {"level": "WARNING"},
            "httpcore": {"level": "WARNING"},
        },
    }


def configure_logging() -> None:
    """Install the handlers once; later calls are no-ops while the root has handlers."""
    if logging.getLogger().handlers:
        return
    dictConfig(_dict_config(_level()))


__all__ = ["LOG_FORMAT", "configure_logging"]
