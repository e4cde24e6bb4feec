"""Structured JSON logging for the IRT engine."""

import logging
import sys
from typing import Any

from pythonjsonlogger import jsonlogger

from examprep.core.config import settings

LOG_FIELDS = "%(timestamp)s %(level)s %(logger)s %(module)s %(function)s"

# Third-party loggers that stay at WARNING whatever LOG_LEVEL says
QUIET_LOGGERS = ("scipy", "numpy", "asyncio")


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """JSON records with a fixed envelope; `extra=` keys are merged in by the base class."""

    def add_fields(self, log_record: dict[str, Any], record: logging.LogRecord, message_dict: dict) -> None:
        super().add_fields(log_record, record, message_dict)

        log_record["timestamp"] = self.formatTime(record, self.datefmt)
        log_record["level"] = record.levelname
        log_record["logger"] = record.name
        log_record["module"] = record.module
        log_record["function"] = record.funcName
        log_record["msg"] = record.getMessage()
        log_record.setdefault("env", settings.ENV)

        for key in ("message", "asctime"):
            log_record.pop(key, None)


def setup_logging(level: str | None = None) -> None:
    """
    Route all records through one stdout handler with CustomJsonFormatter.

    level overrides settings.LOG_LEVEL (case-insensitive).
    """
    level_name = (level or settings.LOG_LEVEL).upper()
    root = logging.getLogger()
    root.setLevel(getattr(logging, level_name, logging.INFO))
    root.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(CustomJsonFormatter(LOG_FIELDS, datefmt="%Y-%m-%dT%H:%M:%S"))
    root.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
