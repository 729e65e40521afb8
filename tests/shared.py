from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from fastapi.testclient import TestClient
from sqlalchemy import text
from sqlalchemy.engine import Engine

from taskapi.core.config import Settings
from taskapi.core.tokens import issue_token
from taskapi.db.engine import create_engine_from_url
from taskapi.main import create_app

TEST_SECRET = "test-signing-secret"


def to_sqlite_url(path: Path) -> str:
    return f"sqlite:///{path.as_posix()}"


def build_test_settings(database_url: str, **overrides: Any) -> Settings:
    values: dict[str, Any] = {
        "app_env": "test",
        "testing": True,
        "debug": False,
        "database_url": database_url,
        "log_level": "WARNING",
        "log_format": "console",
    }
    values.update(overrides)
    return Settings(**values)


@dataclass
class ApiTestContext:
    client: TestClient
    engine: Engine
    settings: Settings

    def bearer(self, subject: str = "alice") -> dict[str, str]:
        assert self.settings.jwt_secret is not None
        token = issue_token(subject, self.settings.jwt_secret).token
        return {"Authorization": f"Bearer {token}"}

    def count_tasks(self) -> int:
        with self.engine.connect() as connection:
            return int(connection.execute(text("SELECT COUNT(*) FROM tasks")).scalar_one())


@contextmanager
def open_api_context(database_url: str, **overrides: Any) -> Iterator[ApiTestContext]:
    settings = build_test_settings(database_url, **overrides)
    engine = create_engine_from_url(database_url)
    try:
        with TestClient(create_app(settings)) as client:
            yield ApiTestContext(client=client, engine=engine, settings=settings)
    finally:
        engine.dispose()
