from __future__ import annotations

import logging
import json
import sys
from datetime import datetime, timezone
from contextvars import ContextVar
from typing import Any, Optional

from app.core.config import settings

# Context variables for request-scoped data, set by the HTTP middleware
request_id_ctx: ContextVar[Optional[str]] = ContextVar("request_id", default=None)
request_route_ctx: ContextVar[Optional[str]] = ContextVar("request_route", default=None)


class JSONFormatter(logging.Formatter):
    """Structured JSON log formatter.

    Every line carries the service name; lines emitted while a request is
    being handled also carry its id and ``METHOD path``.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "service": settings.APP_NAME,
            "logger": record.name,
            "message": record.getMessage(),
        }

        # Add context variables
        req_id = request_id_ctx.get()
        if req_id:
            log_entry["request_id"] = req_id

        route = request_route_ctx.get()
        if route:
            log_entry["route"] = route

        # Add extra fields (book ids, quantities, ...)
        if hasattr(record, "extra_data"):
            log_entry.update(record.extra_data)

        # Add exception info if present
        if record.exc_info and record.exc_info[0] is not None:
            log_entry["exception"] = self.formatException(record.exc_info)

        # Datetimes and UUIDs in extra_data are rendered with str()
        return json.dumps(log_entry, default=str)


def setup_logging() -> None:
    """Configure structured JSON logging for the application."""
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))

    # Remove existing handlers
    root_logger.handlers.clear()

    # Console handler with JSON formatter
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter())
    root_logger.addHandler(handler)

    # The request middleware already logs every request; SQL echo stays behind DEBUG
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if settings.DEBUG else logging.WARNING
    )


def get_logger(name: str) -> logging.Logger:
    """Get a named logger."""
    return logging.getLogger(name)


def with_fields(**fields: Any) -> dict:
    """``extra=`` payload whose fields land at the top level of the JSON line."""
    return {"extra_data": fields}
