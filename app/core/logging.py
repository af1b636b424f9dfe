"""Structured logging for the waitlist service.

Every log line is a JSON object (or a plain line when LOG_FORMAT=plain)
carrying the request id of the HTTP request that produced it. Registrant
PII (email, name) and credentials (admin keys, database URLs) are scrubbed
from structured fields before anything is written; code that needs to
correlate events for one registrant logs ``hash_for_log(email)`` instead.
"""

from __future__ import annotations

import hashlib
import json
import logging
import re
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from logging import LogRecord
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Iterable, Mapping

from app.core.config import LogSettings, settings

SERVICE_NAME = "farmtech-waitlist"
REDACTED = "[REDACTED]"
DEFAULT_LOG_FILE = "logs/waitlist.log"

_request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)

SENSITIVE_KEYS_DEFAULT: frozenset[str] = frozenset(
    {
        # registrant PII ("name" is reserved on LogRecord, hence full_name)
        "email",
        "full_name",
        # credentials
        "api_key",
        "x-api-key",
        "admin_api_keys",
        "app_admin_api_keys",
        "authorization",
        "cookie",
        "set-cookie",
        "password",
        "secret",
        "token",
        # connection strings may embed passwords
        "database_url",
        "url",
    }
)

# Attributes every LogRecord has; anything else on a record came from ``extra=``
_RECORD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime", "taskName"}

# user:password@ inside a DSN
_DSN_PASSWORD = re.compile(r"(://[^:/@\s]+:)[^@\s]+@")

# Chatty library loggers, kept at WARNING unless explicitly turned up
_QUIET_LOGGERS = ("aiosqlite", "asyncio", "sqlalchemy.engine", "sqlalchemy.pool")


def set_request_id(request_id: str | None) -> None:
    _request_id_var.set(request_id)


def get_request_id() -> str | None:
    """Return the id of the request being handled, if any."""
    return _request_id_var.get()


def clear_request_id() -> None:
    _request_id_var.set(None)


def hash_for_log(value: str) -> str:
    """Short, stable fingerprint of an identifier (email, API key, IP).

    Lets logs correlate events for the same registrant or client without
    writing the identifier itself.
    """
    return hashlib.sha256(value.encode()).hexdigest()[:16]


def redact(value: Any, sensitive_keys: Iterable[str] = SENSITIVE_KEYS_DEFAULT) -> Any:
    """Scrub sensitive entries from a structured log value.

    Mapping entries whose key is sensitive (case-insensitive) are replaced by
    ``[REDACTED]``; lists and tuples are walked recursively; strings that look
    like DSNs have their password masked.

    Examples:
        >>> redact({"email": "ann@example.com", "position": 3})
        {'email': '[REDACTED]', 'position': 3}
        >>> redact("postgresql://waitlist:s3cret@db/waitlist")
        'postgresql://waitlist:***@db/waitlist'
    """
    keys = sensitive_keys if isinstance(sensitive_keys, (set, frozenset)) else set(sensitive_keys)

    if isinstance(value, Mapping):
        return {
            k: REDACTED if str(k).lower() in keys else redact(v, keys)
            for k, v in value.items()
        }
    if isinstance(value, (list, tuple)):
        return type(value)(redact(v, keys) for v in value)
    if isinstance(value, str) and "://" in value:
        return _DSN_PASSWORD.sub(r"\1***@", value)
    return value


def record_extras(record: LogRecord) -> dict[str, Any]:
    """Fields passed through ``extra=`` on a log call."""
    return {
        key: value
        for key, value in record.__dict__.items()
        if key not in _RECORD_ATTRS and not key.startswith("_")
    }


class RequestIdFilter(logging.Filter):
    """Stamp records with the current request id when they lack one."""

    def filter(self, record: LogRecord) -> bool:  # noqa: D401
        if getattr(record, "request_id", None) is None:
            record.request_id = get_request_id()
        return True


class SensitiveDataFilter(logging.Filter):
    """Scrub sensitive ``extra=`` fields in place, before any formatter runs.

    Running as a handler filter means the plain formatter and third-party
    formatters never see raw values either.
    """

    def __init__(self, sensitive_keys: Iterable[str] | None = None) -> None:
        super().__init__()
        self.sensitive_keys = frozenset(sensitive_keys or SENSITIVE_KEYS_DEFAULT)

    def filter(self, record: LogRecord) -> bool:  # noqa: D401
        scrubbed = redact(record_extras(record), self.sensitive_keys)
        for key, value in scrubbed.items():
            setattr(record, key, value)
        return True


class JsonFormatter(logging.Formatter):
    """One JSON object per record: envelope fields first, then extras."""

    def __init__(
        self,
        *,
        sensitive_keys: Iterable[str] | None = None,
        service: str = SERVICE_NAME,
        environment: str | None = None,
    ) -> None:
        super().__init__()
        self.sensitive_keys = frozenset(sensitive_keys or SENSITIVE_KEYS_DEFAULT)
        self.service = service
        self.environment = environment

    def format(self, record: LogRecord) -> str:  # noqa: D401
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname.lower(),
            "event": record.getMessage(),
            "logger": record.name,
            "service": self.service,
        }
        if self.environment:
            payload["env"] = self.environment

        extras = redact(record_extras(record), self.sensitive_keys)
        request_id = extras.pop("request_id", None) or get_request_id()
        if request_id:
            payload["request_id"] = request_id
        payload.update(extras)

        if record.levelno >= logging.ERROR:
            payload["location"] = f"{record.module}:{record.lineno}"
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str)


def _build_handler(log_settings: LogSettings) -> logging.Handler:
    """Stdout handler, or a (rotating) file handler when LOG_OUTPUT=file."""

    if log_settings.output.lower() != "file":
        return logging.StreamHandler(sys.stdout)

    path = Path(log_settings.file_path or DEFAULT_LOG_FILE)
    path.parent.mkdir(parents=True, exist_ok=True)
    if log_settings.max_bytes <= 0:
        return logging.FileHandler(path, encoding="utf-8")
    return RotatingFileHandler(
        path,
        maxBytes=log_settings.max_bytes,
        backupCount=log_settings.backup_count,
        encoding="utf-8",
    )


def configure_logging(log_settings: LogSettings | None = None) -> None:
    """Install the service's single root handler.

    Safe to call repeatedly (each app instance calls it); previous root
    handlers are replaced, not stacked.

    Args:
        log_settings: Optional log settings; defaults to global settings.
    """

    cfg = log_settings or settings.log
    level = logging.DEBUG if settings.app.debug else getattr(logging, cfg.level.upper(), logging.INFO)

    handler = _build_handler(cfg)
    handler.addFilter(RequestIdFilter())
    handler.addFilter(SensitiveDataFilter())
    if cfg.format.lower() == "plain":
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s [%(request_id)s] %(message)s")
        )
    else:
        handler.setFormatter(JsonFormatter(environment=settings.app_env))

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
    if settings.database.echo:
        logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO)

    # uvicorn lines (startup, errors) go through the JSON root handler; run()
    # passes log_config=None so uvicorn installs no handlers of its own
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        logging.getLogger(name).handlers.clear()
        logging.getLogger(name).propagate = True
