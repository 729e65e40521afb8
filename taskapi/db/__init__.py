"""Database layer modules and public helpers."""

from taskapi.db.models import Task
from taskapi.db.session import get_session

__all__ = [
    "Task",
    "get_session",
]
