from __future__ import annotations

import re

_REPLACEMENT = "***REDACTED***"

# Keep the key name visible, hide the value.
_ASSIGNMENT_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"(?i)\b(jwt[_-]?secret)\s*[:=]\s*([^\s,;]+)"),
    re.compile(r"(?i)\b(access[_-]?token|token)\s*[:=]\s*([^\s,;]+)"),
    re.compile(r"(?i)\b(secret(?:[_-]?key)?)\s*[:=]\s*([^\s,;]+)"),
    re.compile(r"(?i)\b(password)\s*[:=]\s*([^\s,;]+)"),
)

_BEARER_PATTERN = re.compile(r"(?i)\b(bearer)\s+([A-Za-z0-9\-_\.=]+)")

# Compact JWS: three base64url segments, header always starts with "eyJ".
_JWT_PATTERN = re.compile(r"\beyJ[A-Za-z0-9\-_]+\.[A-Za-z0-9\-_]+\.[A-Za-z0-9\-_]*")


def redact_sensitive_text(value: str) -> str:
    redacted = value
    for pattern in _ASSIGNMENT_PATTERNS:
        redacted = pattern.sub(lambda match: f"{match.group(1)}={_REPLACEMENT}", redacted)
    redacted = _BEARER_PATTERN.sub(lambda match: f"{match.group(1)} {_REPLACEMENT}", redacted)
    redacted = _JWT_PATTERN.sub(_REPLACEMENT, redacted)
    return redacted
