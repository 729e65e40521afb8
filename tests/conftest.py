from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest

from tests.shared import TEST_SECRET, ApiTestContext, open_api_context, to_sqlite_url


@pytest.fixture
def db_url(tmp_path: Path) -> str:
    return to_sqlite_url(tmp_path / "tasks.db")


@pytest.fixture
def api_context(db_url: str) -> Iterator[ApiTestContext]:
    """Open server: no signing secret configured."""
    with open_api_context(db_url) as context:
        yield context


@pytest.fixture
def auth_api_context(db_url: str) -> Iterator[ApiTestContext]:
    """Auth enabled, GET requests exempt."""
    with open_api_context(db_url, jwt_secret=TEST_SECRET, read_only_without_jwt=True) as context:
        yield context


@pytest.fixture
def strict_auth_api_context(db_url: str) -> Iterator[ApiTestContext]:
    """Auth enabled for every task request, reads included."""
    with open_api_context(db_url, jwt_secret=TEST_SECRET, read_only_without_jwt=False) as context:
        yield context
