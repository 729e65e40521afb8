from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, ConfigDict

from taskapi.api.errors import ApiException, ErrorKind, error_response_docs
from taskapi.core.config import Settings
from taskapi.core.logging import get_logger
from taskapi.core.tokens import TokenSigningError, issue_token

router = APIRouter(tags=["auth"])
logger = get_logger("taskapi.api.auth")

AUTH_DISABLED_MESSAGE = "JWT not enabled on server (set JWT_SECRET to enable)"


class LoginRequest(BaseModel):
    username: str
    password: str
    model_config = ConfigDict(
        json_schema_extra={"example": {"username": "alice", "password": "pw"}}
    )


class LoginResponse(BaseModel):
    token: str
    expires_in_hours: int


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


AppSettings = Annotated[Settings, Depends(get_app_settings)]


def credentials_accepted(username: str, password: str) -> bool:
    """Placeholder credential check: any non-blank username and password pass.

    There is no user store behind this. It only keeps obviously empty logins
    out and must not be treated as authentication of a real identity.
    """
    return bool(username.strip()) and bool(password.strip())


@router.post(
    "/login",
    response_model=LoginResponse,
    responses=error_response_docs(
        ErrorKind.BAD_REQUEST,
        ErrorKind.UNAUTHORIZED,
        ErrorKind.INTERNAL,
    ),
)
def login(payload: LoginRequest, settings: AppSettings) -> LoginResponse:
    if settings.jwt_secret is None:
        raise ApiException(ErrorKind.BAD_REQUEST, AUTH_DISABLED_MESSAGE)
    if not credentials_accepted(payload.username, payload.password):
        raise ApiException(ErrorKind.UNAUTHORIZED)

    try:
        issued = issue_token(payload.username, settings.jwt_secret)
    except TokenSigningError as exc:
        raise ApiException(ErrorKind.INTERNAL, str(exc)) from exc

    logger.info("auth.login_succeeded", subject=payload.username)
    return LoginResponse(token=issued.token, expires_in_hours=issued.expires_in_hours)
