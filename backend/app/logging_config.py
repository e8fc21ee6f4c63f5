"""Logging setup for the airwatch service.

Log lines are plain `%`-style text. Structured context (the sensor source,
the cache decision, subscriber counts) is passed through `extra=` and
appended as `key=value` pairs after the message.
"""

from __future__ import annotations

import logging
import time
from logging.config import dictConfig
from typing import Iterable

CONTEXT_KEYS = ("source", "decision", "subscribers", "dropped")

_configured = False


class ContextualFormatter(logging.Formatter):
    """Formatter that appends known `extra` attributes to the message.

    Only keys in `context_keys` are looked at, and attributes that are
    missing or None are skipped:

        Subscriber buffer full | subscribers=3 dropped=12
    """

    converter = time.gmtime

    def __init__(
        self,
        fmt: str | None = None,
        datefmt: str | None = None,
        context_keys: Iterable[str] = CONTEXT_KEYS,
    ) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self.context_keys = tuple(context_keys)

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        context = " ".join(
            f"{key}={getattr(record, key)}"
            for key in self.context_keys
            if getattr(record, key, None) is not None
        )
        return f"{message} | {context}" if context else message


def configure_logging(level: str | int = "INFO") -> None:
    """Send root logging to stderr through ContextualFormatter. Runs once per process."""
    global _configured
    if _configured:
        return

    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "contextual": {
                    "()": ContextualFormatter,
                    "fmt": "%(asctime)sZ | %(levelname)s | %(name)s | %(message)s",
                    "datefmt": "%Y-%m-%dT%H:%M:%S",
                }
            },
            "handlers": {
                "default": {
                    "class": "logging.StreamHandler",
                    "level": level,
                    "formatter": "contextual",
                }
            },
            "root": {"handlers": ["default"], "level": level},
        }
    )

    _configured = True
