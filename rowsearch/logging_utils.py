from __future__ import annotations

import contextvars
import json
import logging
import os
import sys
import time
import uuid
from datetime import datetime, timezone
from typing import Any

request_id_var: contextvars.ContextVar[str] = contextvars.ContextVar("request_id", default="-")
run_id_var: contextvars.ContextVar[str] = contextvars.ContextVar("run_id", default="-")
variant_var: contextvars.ContextVar[str] = contextvars.ContextVar("variant", default="-")

_CONTEXT_FIELDS = ("request_id", "run_id", "variant")
_RESERVED_RECORD_FIELDS = {
    "name",
    "msg",
    "args",
    "levelname",
    "levelno",
    "pathname",
    "filename",
    "module",
    "exc_info",
    "exc_text",
    "stack_info",
    "lineno",
    "funcName",
    "created",
    "msecs",
    "relativeCreated",
    "thread",
    "threadName",
    "processName",
    "process",
    "taskName",
    "event",
    "message",
    *_CONTEXT_FIELDS,
}


class SearchContextFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "request_id"):
            record.request_id = request_id_var.get()
        if not hasattr(record, "run_id"):
            record.run_id = run_id_var.get()
        if not hasattr(record, "variant"):
            record.variant = variant_var.get()
        if not hasattr(record, "event"):
            record.event = record.msg if isinstance(record.msg, str) else "log"
        return True


class StructuredFormatter(logging.Formatter):
    def __init__(self, json_output: bool) -> None:
        super().__init__()
        self.json_output = json_output

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "event": getattr(record, "event", "log"),
        }
        for field in _CONTEXT_FIELDS:
            payload[field] = getattr(record, field, "-")
        message = record.getMessage()
        if message and message != payload["event"]:
            payload["message"] = message

        for key, value in record.__dict__.items():
            if key.startswith("_") or key in _RESERVED_RECORD_FIELDS:
                continue
            payload[key] = value

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        if self.json_output:
            return json.dumps(payload, default=str)

        ordered = [
            f"timestamp={payload.pop('timestamp')}",
            f"level={payload.pop('level')}",
            f"event={payload.pop('event')}",
        ]
        ordered.extend(f"{field}={payload.pop(field)}" for field in _CONTEXT_FIELDS)
        ordered.extend(f"{k}={v}" for k, v in payload.items())
        return " ".join(ordered)


def configure_logging() -> None:
    root = logging.getLogger()
    if getattr(root, "_rowsearch_logging_configured", False):
        return

    level = os.getenv("LOG_LEVEL", "INFO").upper()
    json_output = os.getenv("LOG_FORMAT", "text").lower() == "json"

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(StructuredFormatter(json_output=json_output))
    context_filter = SearchContextFilter()
    handler.addFilter(context_filter)

    root.handlers.clear()
    root.addHandler(handler)
    root.addFilter(context_filter)
    root.setLevel(level)
    root._rowsearch_logging_configured = True  # type: ignore[attr-defined]


def set_request_context(*, request_id: str) -> None:
    request_id_var.set(request_id)


def clear_request_context() -> None:
    request_id_var.set("-")


def current_request_id() -> str:
    return request_id_var.get()


def set_run_context(*, run_id: str, variant: str) -> None:
    run_id_var.set(run_id)
    variant_var.set(variant)


def clear_run_context() -> None:
    run_id_var.set("-")
    variant_var.set("-")


def new_request_id() -> str:
    return str(uuid.uuid4())


def new_run_id() -> str:
    return uuid.uuid4().hex[:12]


def log_event(logger: logging.Logger, event: str, level: int = logging.INFO, **fields: Any) -> None:
    logger.log(level, event, extra={"event": event, **fields})


def elapsed_ms(start_time: float) -> int:
    return int((time.perf_counter() - start_time) * 1000)
