from taskapi.db.repositories.common import StorageError, TaskNotFoundError
from taskapi.db.repositories.task_repository import TaskRepository

__all__ = [
    "StorageError",
    "TaskNotFoundError",
    "TaskRepository",
]
