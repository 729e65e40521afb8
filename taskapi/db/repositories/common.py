from __future__ import annotations


class TaskNotFoundError(LookupError):
    def __init__(self, task_id: int) -> None:
        self.task_id = task_id
        super().__init__(f"task {task_id} does not exist")


class StorageError(RuntimeError):
    """Raised when the database rejects or fails an operation."""
