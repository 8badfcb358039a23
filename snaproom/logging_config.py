"""
Structured JSON logging for the SnapRoom server.

Each record is written as one JSON line. What a line is about (the HTTP request
id, or the connection and room a socket frame came from) lives in a ContextVar
and is stamped onto records by ``LogContextFilter``, so coordination code logs
plain messages and the output still names the connection and room.
"""

from __future__ import annotations

import json
import logging
import os
from contextvars import ContextVar, Token
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Optional

DEFAULT_LOG_FILE = "server.log"
CONTEXT_FIELDS = ("request_id", "connection", "room")

_LOG_CONTEXT: ContextVar[Optional[Dict[str, str]]] = ContextVar(
    "snaproom_log_context", default=None
)
_STANDARD_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None))
) | {"message", "asctime", *CONTEXT_FIELDS}


def bind_log_context(**fields: Optional[str]) -> Token:
    """Layer ``fields`` over the current context; a falsy value clears that key."""
    unknown = set(fields) - set(CONTEXT_FIELDS)
    if unknown:
        raise TypeError(f"unknown log context field(s): {', '.join(sorted(unknown))}")
    merged = dict(_LOG_CONTEXT.get() or {})
    for key, value in fields.items():
        if value:
            merged[key] = value
        else:
            merged.pop(key, None)
    return _LOG_CONTEXT.set(merged)


def unbind_log_context(token: Token) -> None:
    _LOG_CONTEXT.reset(token)


def current_log_context() -> Dict[str, str]:
    return dict(_LOG_CONTEXT.get() or {})


def _jsonable(value: Any) -> Any:
    try:
        json.dumps(value)
    except (TypeError, ValueError):
        return repr(value)
    return value


class LogContextFilter(logging.Filter):
    """Copy the bound context onto records that do not set those fields themselves."""

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in current_log_context().items():
            if getattr(record, key, None) is None:
                setattr(record, key, value)
        return True


class JsonLineFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in CONTEXT_FIELDS:
            value = getattr(record, key, None)
            if value:
                payload[key] = value
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)

        extra = {
            key: _jsonable(value)
            for key, value in record.__dict__.items()
            if key not in _STANDARD_ATTRS
        }
        if extra:
            payload["extra"] = extra
        return json.dumps(payload, ensure_ascii=True)


def default_log_dir() -> Path:
    for env_name in ("SNAPROOM_LOG_DIR", "LOG_DIR"):
        override = os.getenv(env_name)
        if override:
            return Path(override).expanduser().resolve()
    return Path("logs").resolve()


def init_logging(
    log_dir: str | os.PathLike[str] | None = None,
    *,
    level: str = "INFO",
    filename: str = DEFAULT_LOG_FILE,
) -> Path:
    """Route the root logger to a rotating JSON file and stderr; return the file path."""
    base = Path(log_dir).expanduser().resolve() if log_dir else default_log_dir()
    base.mkdir(parents=True, exist_ok=True)
    log_path = base / filename

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    formatter = JsonLineFormatter()
    context = LogContextFilter()
    file_handler = RotatingFileHandler(
        log_path, maxBytes=5 * 1024 * 1024, backupCount=5, encoding="utf-8"
    )
    for handler in (file_handler, logging.StreamHandler()):
        handler.setFormatter(formatter)
        handler.addFilter(context)
        root.addHandler(handler)

    level_no = getattr(logging, str(level).upper(), None)
    root.setLevel(level_no if isinstance(level_no, int) else logging.INFO)
    return log_path


__all__ = [
    "CONTEXT_FIELDS",
    "JsonLineFormatter",
    "LogContextFilter",
    "bind_log_context",
    "current_log_context",
    "default_log_dir",
    "init_logging",
    "unbind_log_context",
]
