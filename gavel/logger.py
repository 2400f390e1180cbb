"""Structured JSON logging to standard error."""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timedelta
from typing import Any

_LOGGER_NAME = "gavel"


def _format_time(created: float) -> str:
    moment = datetime.fromtimestamp(created).astimezone()
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}" + moment.strftime("%z")


def _encode(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, timedelta):
        return str(value)
    return str(value)


class _JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "level": record.levelname.lower(),
            "time": _format_time(record.created),
            "message": record.getMessage(),
        }
        entry.update(getattr(record, "fields", {}))
        return json.dumps(entry, default=_encode)


class _StderrHandler(logging.Handler):
    """Writes to whatever ``sys.stderr`` is at the time of each record."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            stream = sys.stderr
            stream.write(self.format(record) + "\n")
            stream.flush()
        except Exception:
            self.handleError(record)


def _build_logger() -> logging.Logger:
    log = logging.getLogger(_LOGGER_NAME)
    if not any(isinstance(handler, _StderrHandler) for handler in log.handlers):
        handler = _StderrHandler()
        handler.setFormatter(_JsonFormatter())
        log.addHandler(handler)
    log.setLevel(logging.INFO)
    log.propagate = False
    return log


_log = _build_logger()


def info(message: str, **kwargs: Any) -> None:
    """Log an informational message with extra fields."""
    _log.info(message, extra={"fields": kwargs})


def error(message: str, err: BaseException | None, **kwargs: Any) -> None:
    """Log an error message; ``err`` is recorded under the ``error`` key."""
    fields = dict(kwargs)
    if err is not None:
        fields["error"] = str(err)
    _log.error(message, extra={"fields": fields})