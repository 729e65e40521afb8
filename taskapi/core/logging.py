from __future__ import annotations

import logging
import logging.config
from collections.abc import Mapping
from uuid import uuid4

import structlog
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response
from starlette.types import ASGIApp

from taskapi.core.config import Settings

TRACE_HEADER = "X-Trace-ID"


def _normalize_optional_text(value: str | None) -> str | None:
    if value is None:
        return None
    normalized = value.strip()
    return normalized if normalized else None


def bind_log_context(
    *,
    trace_id: str | None = None,
    task_id: int | None = None,
) -> None:
    payload: dict[str, object] = {}
    normalized_trace_id = _normalize_optional_text(trace_id)
    if normalized_trace_id is not None:
        payload["trace_id"] = normalized_trace_id
    if task_id is not None and task_id > 0:
        payload["task_id"] = task_id
    if payload:
        structlog.contextvars.bind_contextvars(**payload)


def clear_log_context() -> None:
    structlog.contextvars.clear_contextvars()


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.stdlib.get_logger(name)


def configure_logging(settings: Settings) -> None:
    level = settings.log_level.upper()
    timestamper = structlog.processors.TimeStamper(fmt="iso", utc=True)
    shared_processors: list[object] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        timestamper,
    ]

    renderer: object
    if settings.log_format == "console":
        renderer = structlog.dev.ConsoleRenderer()
    else:
        renderer = structlog.processors.JSONRenderer()

    handlers: dict[str, dict[str, object]] = {
        "stdout": {
            "class": "logging.StreamHandler",
            "formatter": "structured",
            "level": level,
        }
    }
    if settings.log_file is not None:
        handlers["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "formatter": "structured",
            "level": level,
            "filename": settings.log_file,
            "maxBytes": 5 * 1024 * 1024,
            "backupCount": 3,
            "encoding": "utf-8",
        }

    configured_handlers = list(handlers)
    routed_logger = {
        "handlers": configured_handlers,
        "level": level,
        "propagate": False,
    }

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "structured": {
                    "()": structlog.stdlib.ProcessorFormatter,
                    "foreign_pre_chain": shared_processors,
                    "processors": [
                        structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                        structlog.processors.format_exc_info,
                        structlog.processors.EventRenamer("message"),
                        renderer,
                    ],
                }
            },
            "handlers": handlers,
            "loggers": {
                "": {
                    "handlers": configured_handlers,
                    "level": level,
                },
                "uvicorn": dict(routed_logger),
                "uvicorn.error": dict(routed_logger),
                "uvicorn.access": dict(routed_logger),
                "sqlalchemy": dict(routed_logger),
            },
        }
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            timestamper,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def task_id_from_path_params(path_params: Mapping[str, object]) -> int | None:
    raw = path_params.get("task_id")
    if raw is None:
        return None
    try:
        task_id = int(str(raw))
    except ValueError:
        return None
    return task_id if task_id > 0 else None


def trace_headers(request: Request) -> dict[str, str]:
    """Trace header for responses built outside ``TraceContextMiddleware``."""
    trace_id = getattr(request.state, "trace_id", None)
    return {TRACE_HEADER: trace_id} if trace_id else {}


class TraceContextMiddleware(BaseHTTPMiddleware):
    """Binds ``trace_id`` for the request and ``task_id`` once the route is matched.

    The trace id is also kept on ``request.state`` so the server-error handler,
    which runs outside this middleware, can echo it.
    """

    def __init__(self, app: ASGIApp) -> None:
        super().__init__(app)
        self._logger = get_logger("taskapi.api.request")

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        trace_id = _resolve_request_trace_id(request)
        request.state.trace_id = trace_id
        clear_log_context()
        bind_log_context(trace_id=trace_id)
        self._logger.info(
            "request.received",
            method=request.method,
            path=request.url.path,
        )
        try:
            response = await call_next(request)
        except Exception:
            # path_params are filled in by the router during call_next.
            bind_log_context(task_id=task_id_from_path_params(request.path_params))
            self._logger.exception(
                "request.failed",
                method=request.method,
                path=request.url.path,
            )
            clear_log_context()
            raise
        bind_log_context(task_id=task_id_from_path_params(request.path_params))
        response.headers[TRACE_HEADER] = trace_id
        self._logger.info(
            "request.completed",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
        )
        clear_log_context()
        return response


def _resolve_request_trace_id(request: Request) -> str:
    incoming = _normalize_optional_text(request.headers.get(TRACE_HEADER))
    if incoming is not None:
        return incoming
    return f"trace-http-{uuid4().hex}"
