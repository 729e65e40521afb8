"""Signed, time-limited bearer tokens.

Tokens are HS256 JWTs carrying ``sub`` (the login name) and ``exp``. Nothing is
stored server-side: a token is trusted when its signature checks out against
the configured secret and ``exp`` has not passed.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from jose import JOSEError, JWTError, jwt

ALGORITHM = "HS256"
TOKEN_TTL_HOURS = 12


class TokenSigningError(RuntimeError):
    """Raised when a token cannot be produced."""


class InvalidTokenError(ValueError):
    """Raised for a bad signature, malformed token, or missing/expired ``exp``."""


@dataclass(frozen=True, slots=True)
class Claims:
    sub: str
    exp: int


@dataclass(frozen=True, slots=True)
class IssuedToken:
    token: str
    expires_in_hours: int


def issue_token(subject: str, secret: str, *, now: datetime | None = None) -> IssuedToken:
    issued_at = now or datetime.now(UTC)
    expires_at = issued_at + timedelta(hours=TOKEN_TTL_HOURS)
    claims = {"sub": subject, "exp": int(expires_at.timestamp())}
    try:
        token = jwt.encode(claims, secret, algorithm=ALGORITHM)
    except JOSEError as exc:
        raise TokenSigningError("Failed to sign token") from exc
    return IssuedToken(token=token, expires_in_hours=TOKEN_TTL_HOURS)


def verify_token(token: str, secret: str) -> Claims:
    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=[ALGORITHM],
            options={"require_exp": True, "require_sub": True},
        )
    except JWTError as exc:
        raise InvalidTokenError(str(exc)) from exc

    subject = payload.get("sub")
    expiry = payload.get("exp")
    if not isinstance(subject, str) or not isinstance(expiry, int):
        raise InvalidTokenError("token claims have unexpected types")
    return Claims(sub=subject, exp=expiry)
