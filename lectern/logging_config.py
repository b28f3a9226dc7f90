"""
Logging setup for Lectern.

Every record carries the request id and, once the bearer token has been
resolved, the id of the learner making the request. Both come from context
variables so engine code can log without threading them through calls:

    from lectern.logging_config import get_logger
    logger = get_logger(__name__)
    logger.info("Subtopic mastered", extra={"subtopic_id": str(sid)})

Production writes one JSON object per line; everything else gets a compact
text line.
"""

import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Optional

request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)
user_id_var: ContextVar[Optional[str]] = ContextVar("user_id", default=None)

# Chatty libraries: SQL echo, PDF parsing internals, HTTP client traces
QUIET_LOGGERS = (
    "uvicorn.access",
    "sqlalchemy.engine",
    "pdfminer",
    "pdfplumber",
    "openai",
    "httpx",
    "httpcore",
)

# LogRecord attributes that are not user-supplied `extra` fields
_STANDARD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime", "request_id", "user_id"}


class ContextFilter(logging.Filter):
    """Stamp request_id and user_id onto each record ("-" when unset)."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get() or "-"
        record.user_id = user_id_var.get() or "-"
        return True


def _extras(record: logging.LogRecord) -> Dict[str, Any]:
    return {k: v for k, v in vars(record).items() if k not in _STANDARD_ATTRS and v is not None}


class JsonFormatter(logging.Formatter):
    """One JSON object per record, with `extra` fields inlined."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        for key in ("request_id", "user_id"):
            value = getattr(record, key, "-")
            if value != "-":
                entry[key] = value
        entry.update(_extras(record))
        if record.exc_info:
            entry["exc"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class TextFormatter(logging.Formatter):
    """Human-readable line; `extra` fields are appended as key=value."""

    def __init__(self) -> None:
        super().__init__(
            "%(asctime)s %(levelname)-5s %(name)s [req=%(request_id)s user=%(user_id)s] %(message)s",
            datefmt="%H:%M:%S",
        )

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        extras = _extras(record)
        if extras:
            line += " " + " ".join(f"{k}={v}" for k, v in extras.items())
        return line


def configure_logging(
    *,
    log_level: str = "INFO",
    environment: str = "development",
    debug: bool = False,
) -> None:
    """
    Install a single stderr handler on the root logger.

    Safe to call more than once (reloads, tests): existing root handlers are
    replaced rather than duplicated.
    """
    level = logging.DEBUG if debug else logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    handler = logging.StreamHandler(sys.stderr)
    handler.addFilter(ContextFilter())
    handler.setFormatter(JsonFormatter() if environment == "production" else TextFormatter())

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
