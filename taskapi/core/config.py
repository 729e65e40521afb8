from __future__ import annotations

import os
from functools import lru_cache
from typing import Literal

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field


class ConfigurationError(Exception):
    """Raised when an environment value cannot be turned into a setting."""


Environment = Literal["development", "test", "production"]
LogFormat = Literal["json", "console"]

DEFAULT_DATABASE_URL = "sqlite:///./data.db"
DEFAULT_BIND_ADDR = "0.0.0.0:8080"


class Settings(BaseModel):
    model_config = ConfigDict(frozen=True)

    app_name: str = Field(default="Task Tracker API")
    app_env: Environment = Field(default="development")
    debug: bool = Field(default=True)
    database_url: str = Field(default=DEFAULT_DATABASE_URL)
    bind_addr: str = Field(default=DEFAULT_BIND_ADDR)
    jwt_secret: str | None = Field(default=None)
    read_only_without_jwt: bool = Field(default=True)
    testing: bool = Field(default=False)
    log_level: str = Field(default="INFO")
    log_format: LogFormat = Field(default="console")
    log_file: str | None = Field(default=None)
    sqlalchemy_echo: bool | None = Field(default=None)  # None = auto (debug mode)
    cors_allow_origins: tuple[str, ...] = Field(default=())
    cors_allow_credentials: bool = Field(default=False)

    @property
    def auth_enabled(self) -> bool:
        return self.jwt_secret is not None

    @property
    def bind_host(self) -> str:
        return parse_bind_address(self.bind_addr)[0]

    @property
    def bind_port(self) -> int:
        return parse_bind_address(self.bind_addr)[1]

    @property
    def echo_sql(self) -> bool:
        if self.sqlalchemy_echo is not None:
            return self.sqlalchemy_echo
        return self.debug and not self.testing


def _to_bool(value: str | None, *, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    return default


def _to_bool_or_none(value: str | None) -> bool | None:
    """Parse boolean from env var, return None if not set (for auto behavior)."""
    if value is None:
        return None
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    return None


def _normalize_env(value: str | None) -> Environment:
    if value is None:
        return "development"
    lowered = value.strip().lower()
    if lowered == "test":
        return "test"
    if lowered == "production":
        return "production"
    return "development"


def _normalize_log_format(value: str | None, app_env: Environment) -> LogFormat:
    if value is not None:
        lowered = value.strip().lower()
        if lowered == "console":
            return "console"
        if lowered == "json":
            return "json"
    return "console" if app_env == "development" else "json"


def _normalize_optional_secret(value: str | None) -> str | None:
    if value is None:
        return None
    normalized = value.strip()
    return normalized if normalized else None


def _parse_csv_list(value: str | None) -> tuple[str, ...]:
    if value is None:
        return ()
    items = [part.strip() for part in value.split(",")]
    return tuple(item for item in items if item)


def normalize_database_url(value: str | None) -> str:
    """Accept both SQLAlchemy URLs and the short ``sqlite://data.db`` form."""
    if value is None or not value.strip():
        return DEFAULT_DATABASE_URL
    url = value.strip()
    prefix = "sqlite://"
    if url.startswith(prefix) and not url.startswith("sqlite:///") and url != prefix:
        return f"sqlite:///{url[len(prefix):]}"
    return url


def parse_bind_address(value: str) -> tuple[str, int]:
    host, separator, port_text = value.strip().rpartition(":")
    if not separator or not host:
        raise ConfigurationError(f"BIND_ADDR must look like host:port, got {value!r}")
    try:
        port = int(port_text)
    except ValueError as exc:
        raise ConfigurationError(f"BIND_ADDR port is not a number: {value!r}") from exc
    if not 0 < port < 65536:
        raise ConfigurationError(f"BIND_ADDR port out of range: {value!r}")
    return host.strip("[]"), port


def load_settings() -> Settings:
    # Values already present in the environment win over the .env file.
    load_dotenv(override=False)

    app_env = _normalize_env(os.getenv("APP_ENV"))
    bind_addr = os.getenv("BIND_ADDR", DEFAULT_BIND_ADDR)
    parse_bind_address(bind_addr)

    return Settings(
        app_name=os.getenv("APP_NAME", "Task Tracker API"),
        app_env=app_env,
        debug=_to_bool(os.getenv("DEBUG"), default=app_env != "production"),
        database_url=normalize_database_url(os.getenv("DATABASE_URL")),
        bind_addr=bind_addr,
        jwt_secret=_normalize_optional_secret(os.getenv("JWT_SECRET")),
        read_only_without_jwt=_to_bool(os.getenv("READ_ONLY_WITHOUT_JWT"), default=True),
        testing=_to_bool(os.getenv("TESTING"), default=app_env == "test"),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        log_format=_normalize_log_format(os.getenv("LOG_FORMAT"), app_env),
        log_file=os.getenv("LOG_FILE"),
        sqlalchemy_echo=_to_bool_or_none(os.getenv("SQLALCHEMY_ECHO")),
        cors_allow_origins=_parse_csv_list(os.getenv("CORS_ALLOW_ORIGINS")),
        cors_allow_credentials=_to_bool(
            os.getenv("CORS_ALLOW_CREDENTIALS"),
            default=False,
        ),
    )


@lru_cache
def get_settings() -> Settings:
    return load_settings()
