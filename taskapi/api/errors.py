from __future__ import annotations

from enum import StrEnum
from http import HTTPStatus
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict
from starlette.exceptions import HTTPException

from taskapi.core.logging import get_logger, trace_headers
from taskapi.db.repositories import StorageError, TaskNotFoundError
from taskapi.security import redact_sensitive_text

logger = get_logger("taskapi.api.errors")


class ErrorKind(StrEnum):
    BAD_REQUEST = "bad_request"
    NOT_FOUND = "not_found"
    UNAUTHORIZED = "unauthorized"
    INTERNAL = "internal"


_STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.BAD_REQUEST: status.HTTP_400_BAD_REQUEST,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.UNAUTHORIZED: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.INTERNAL: status.HTTP_500_INTERNAL_SERVER_ERROR,
}

# NOT_FOUND and UNAUTHORIZED always answer with these fixed messages.
_FIXED_MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.NOT_FOUND: "Not Found",
    ErrorKind.UNAUTHORIZED: "Unauthorized",
}

_DEFAULT_MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.BAD_REQUEST: "Bad Request",
    ErrorKind.INTERNAL: "Internal Server Error",
}


class ErrorResponse(BaseModel):
    error: str
    model_config = ConfigDict(json_schema_extra={"example": {"error": "title cannot be empty"}})


class ApiException(Exception):
    def __init__(self, kind: ErrorKind, message: str | None = None) -> None:
        self.kind = kind
        self.message = message
        super().__init__(message or kind.value)

    @property
    def status_code(self) -> int:
        return _STATUS_BY_KIND[self.kind]


def build_error_response(kind: ErrorKind, message: str | None = None) -> JSONResponse:
    text = _FIXED_MESSAGES.get(kind) or message or _DEFAULT_MESSAGES[kind]
    payload = ErrorResponse(error=redact_sensitive_text(text))
    return JSONResponse(status_code=_STATUS_BY_KIND[kind], content=payload.model_dump(mode="json"))


def _status_phrase(status_code: int) -> str:
    try:
        return HTTPStatus(status_code).phrase
    except ValueError:
        return "Unknown Error"


def _format_validation_errors(exc: RequestValidationError) -> str:
    messages: list[str] = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        message = str(error.get("msg", "Invalid value")).removeprefix("Value error, ")
        messages.append(f"'{location}': {message}" if location else message)
    return "; ".join(messages) or "Request validation failed."


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(ApiException)
    async def handle_api_exception(_: Request, exc: ApiException) -> JSONResponse:
        return build_error_response(exc.kind, exc.message)

    @app.exception_handler(TaskNotFoundError)
    async def handle_task_not_found(_: Request, __: TaskNotFoundError) -> JSONResponse:
        return build_error_response(ErrorKind.NOT_FOUND)

    @app.exception_handler(StorageError)
    async def handle_storage_error(request: Request, exc: StorageError) -> JSONResponse:
        logger.error(
            "storage.failed",
            method=request.method,
            path=request.url.path,
            exc_info=exc,
        )
        return build_error_response(ErrorKind.INTERNAL, "Database operation failed.")

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(_: Request, exc: RequestValidationError) -> JSONResponse:
        return build_error_response(ErrorKind.BAD_REQUEST, _format_validation_errors(exc))

    @app.exception_handler(HTTPException)
    async def handle_http_exception(_: Request, exc: HTTPException) -> JSONResponse:
        # Routing failures (unknown path, wrong method) keep their own status.
        message = exc.detail if isinstance(exc.detail, str) else _status_phrase(exc.status_code)
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(error=message).model_dump(mode="json"),
            headers=exc.headers,
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_exception(request: Request, exc: Exception) -> JSONResponse:
        logger.error(
            "request.unhandled_error",
            method=request.method,
            path=request.url.path,
            exc_info=exc,
        )
        response = build_error_response(ErrorKind.INTERNAL, "Unexpected server error.")
        # Runs outside TraceContextMiddleware, so the header is added here.
        response.headers.update(trace_headers(request))
        return response


def error_response_docs(*kinds: ErrorKind) -> dict[int | str, dict[str, Any]]:
    responses: dict[int | str, dict[str, Any]] = {}
    for kind in kinds:
        status_code = _STATUS_BY_KIND[kind]
        example = _FIXED_MESSAGES.get(kind) or _status_phrase(status_code)
        responses[status_code] = {
            "model": ErrorResponse,
            "description": _status_phrase(status_code),
            "content": {"application/json": {"example": {"error": example}}},
        }
    return responses
