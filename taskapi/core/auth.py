from __future__ import annotations

from collections.abc import Awaitable, Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from taskapi.api.errors import ErrorKind, build_error_response
from taskapi.core.config import Settings
from taskapi.core.logging import get_logger
from taskapi.core.tokens import InvalidTokenError, verify_token

GATED_PATH_PREFIX = "/api/tasks"
READ_METHODS = frozenset({"GET"})

logger = get_logger("taskapi.core.auth")


def requires_auth(*, auth_enabled: bool, read_only_without_auth: bool, method: str) -> bool:
    if not auth_enabled:
        return False
    if read_only_without_auth and method.upper() in READ_METHODS:
        return False
    return True


def extract_bearer_token(authorization: str | None) -> str | None:
    if authorization is None:
        return None
    prefix = "bearer "
    if not authorization.lower().startswith(prefix):
        return None
    token = authorization[len(prefix) :].strip()
    return token if token else None


def _is_gated_path(path: str) -> bool:
    return path == GATED_PATH_PREFIX or path.startswith(f"{GATED_PATH_PREFIX}/")


class JwtAuthMiddleware(BaseHTTPMiddleware):
    """Rejects task requests that need a bearer token and lack a valid one.

    Only the decision is made here; the request is passed on unchanged.
    """

    def __init__(self, app: ASGIApp, *, settings: Settings) -> None:
        super().__init__(app)
        self._secret = settings.jwt_secret
        self._read_only_without_auth = settings.read_only_without_jwt

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        if request.method == "OPTIONS":
            return await call_next(request)
        if not _is_gated_path(request.url.path):
            return await call_next(request)
        if not requires_auth(
            auth_enabled=self._secret is not None,
            read_only_without_auth=self._read_only_without_auth,
            method=request.method,
        ):
            return await call_next(request)

        token = extract_bearer_token(request.headers.get("Authorization"))
        if token is None:
            return self._reject(request, reason="missing_bearer_token")

        assert self._secret is not None
        try:
            verify_token(token, self._secret)
        except InvalidTokenError as exc:
            return self._reject(request, reason="invalid_token", detail=str(exc))
        return await call_next(request)

    def _reject(self, request: Request, *, reason: str, detail: str | None = None) -> Response:
        logger.warning(
            "auth.rejected",
            method=request.method,
            path=request.url.path,
            reason=reason,
            detail=detail,
        )
        return build_error_response(ErrorKind.UNAUTHORIZED)
