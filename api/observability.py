"""Structured JSON logging and per-request correlation ids.

Every log line is one JSON object. Service code logs an event name as the
message and puts its identifiers (``client_id``, ``user_id``, statuses) in
``extra=``; those land as top-level keys next to the request id of the HTTP
request that produced them.
"""

from __future__ import annotations

import contextvars
import json
import logging
import sys
import time
from datetime import datetime, timezone
from typing import Callable, Optional
from uuid import uuid4

from fastapi import FastAPI, Request, Response

logger = logging.getLogger("api.requests")

SERVICE_NAME = "coaching-api"
# Chatty at INFO and never useful per request.
QUIET_LOGGERS = {"sqlalchemy.engine": logging.WARNING, "passlib": logging.ERROR, "httpx": logging.WARNING}

_request_id_var: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar("request_id", default=None)
_logging_configured = False
_RESERVED = set(logging.makeLogRecord({}).__dict__) | {"message", "asctime"}


def get_request_id() -> Optional[str]:
    return _request_id_var.get()


def set_request_id(value: Optional[str]):
    return _request_id_var.set(value)


def reset_request_id(token) -> None:
    _request_id_var.reset(token)


def new_request_id() -> str:
    return uuid4().hex


class JsonFormatter(logging.Formatter):
    def __init__(self, service: Optional[str] = None):
        super().__init__()
        self.service = service

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, object] = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if self.service:
            payload["service"] = self.service
        request_id = get_request_id()
        if request_id:
            payload["request_id"] = request_id
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        for key, value in record.__dict__.items():
            if key in _RESERVED or key.startswith("_") or key in payload:
                continue
            payload[key] = value
        return json.dumps(payload, default=str, separators=(",", ":"))


def configure_logging(level: str = "INFO", service: str = SERVICE_NAME) -> None:
    """Route everything through one stdout JSON handler. Safe to call again to change the level."""
    global _logging_configured
    root = logging.getLogger()
    root.setLevel(getattr(logging, str(level).upper(), logging.INFO))
    if _logging_configured:
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter(service=service))
    root.handlers[:] = [handler]
    # uvicorn installs its own handlers; let its records reach ours instead.
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        logging.getLogger(name).handlers.clear()
    for name, quiet_level in QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(quiet_level)
    _logging_configured = True


def request_log_fields(
    *,
    method: str,
    path: str,
    status_code: int,
    duration_ms: float,
    client_ip: Optional[str],
    route: Optional[str] = None,
) -> dict[str, object]:
    fields: dict[str, object] = {
        "method": method,
        "path": path,
        "status_code": int(status_code),
        "duration_ms": round(float(duration_ms), 2),
        "client_ip": client_ip or "",
    }
    if route:
        # Template such as /api/admin/coaching-clients/{client_id}/status, for grouping.
        fields["route"] = route
    return fields


def install_request_logging(app: FastAPI, header_name: str = "X-Request-ID") -> None:
    """Tag each request with an id (echoed back in ``header_name``) and log one line per request."""

    @app.middleware("http")
    async def request_context_and_logging(request: Request, call_next: Callable) -> Response:
        request_id = (request.headers.get(header_name) or "").strip() or new_request_id()
        token = set_request_id(request_id)
        started = time.perf_counter()

        def fields(status_code: int) -> dict[str, object]:
            route = request.scope.get("route")
            return request_log_fields(
                method=request.method,
                path=request.url.path,
                status_code=status_code,
                duration_ms=(time.perf_counter() - started) * 1000.0,
                client_ip=getattr(request.client, "host", None),
                route=getattr(route, "path", None),
            )

        try:
            response = await call_next(request)
        except Exception:
            logger.exception("http_request_error", extra=fields(500))
            raise
        else:
            response.headers[header_name] = request_id
            logger.info("http_request", extra=fields(response.status_code))
            return response
        finally:
            reset_request_id(token)
