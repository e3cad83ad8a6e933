import json
import logging
import sys
import uuid
from contextvars import ContextVar
from typing import Any, Optional

from libs.common.config import get_settings

_request_id: ContextVar[Optional[str]] = ContextVar("request_id", default=None)
_request_path: ContextVar[Optional[str]] = ContextVar("request_path", default=None)
_request_method: ContextVar[Optional[str]] = ContextVar(
    "request_method", default=None
)
# Set when the request came from another GlowMart service (X-Caller-Service)
_caller_service: ContextVar[Optional[str]] = ContextVar(
    "caller_service", default=None
)


def set_request_context(
    request_id: Optional[str] = None,
    path: Optional[str] = None,
    method: Optional[str] = None,
    caller_service: Optional[str] = None,
) -> str:
    """
    Bind request metadata to the current context.
    Generates a request ID when none is supplied and returns it.
    """
    request_id = request_id or uuid.uuid4().hex
    _request_id.set(request_id)
    _request_path.set(path)
    _request_method.set(method)
    _caller_service.set(caller_service)
    return request_id


def get_request_id() -> Optional[str]:
    return _request_id.get()


def get_caller_service() -> Optional[str]:
    return _caller_service.get()


def clear_request_context() -> None:
    _request_id.set(None)
    _request_path.set(None)
    _request_method.set(None)
    _caller_service.set(None)


class RequestContextFilter(logging.Filter):
    """Attach the current request context to every log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = _request_id.get() or "-"
        record.path = _request_path.get()
        record.method = _request_method.get()
        record.caller = _caller_service.get()
        return True


class JsonFormatter(logging.Formatter):
    """One JSON object per line for log shipping outside local dev."""

    def format(self, record: logging.LogRecord) -> str:
        log_record: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "request_id": getattr(record, "request_id", None),
        }

        if getattr(record, "path", None):
            log_record["path"] = record.path
            log_record["method"] = record.method
        if getattr(record, "caller", None):
            log_record["caller_service"] = record.caller

        extra_fields = getattr(record, "extra_fields", None)
        if extra_fields:
            log_record.update(
                {key: value for key, value in extra_fields.items() if value is not None}
            )

        if record.exc_info:
            log_record["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_record, default=str)


def configure_logging() -> None:
    """
    Configure the root logger: plain text locally, JSON elsewhere.
    """
    settings = get_settings()
    log_level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    handler.addFilter(RequestContextFilter())

    if settings.ENVIRONMENT == "local":
        handler.setFormatter(
            logging.Formatter(
                "%(asctime)s %(levelname)s %(name)s [%(request_id)s] %(message)s"
            )
        )
    else:
        handler.setFormatter(JsonFormatter())

    # Each app calls this at startup; replace rather than stack handlers
    if root_logger.hasHandlers():
        root_logger.handlers.clear()
    root_logger.addHandler(handler)

    for noisy in ("uvicorn.access", "httpx", "httpcore"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
