from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import delete, update
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from taskapi.db.models import Task
from taskapi.db.repositories.common import StorageError, TaskNotFoundError


class TaskRepository:
    """CRUD over the ``tasks`` table.

    ``update`` reads the row and then writes the merged values back in a second
    statement. Nothing locks the row in between, so a concurrent writer can be
    overwritten with values from the earlier read.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    @contextmanager
    def _storage_errors(self, action: str) -> Iterator[None]:
        try:
            yield
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise StorageError(f"failed to {action}") from exc

    def create(self, title: str) -> Task:
        task = Task(title=title, completed=False)
        with self._storage_errors("create task"):
            self.session.add(task)
            self.session.commit()
            self.session.refresh(task)
        return task

    def list(self) -> list[Task]:
        statement = select(Task).order_by(Task.id.desc())  # type: ignore[union-attr]
        with self._storage_errors("list tasks"):
            return list(self.session.exec(statement).all())

    def get(self, task_id: int) -> Task:
        with self._storage_errors("load task"):
            task = self.session.get(Task, task_id)
        if task is None:
            raise TaskNotFoundError(task_id)
        return task

    def update(
        self,
        task_id: int,
        *,
        title: str | None = None,
        completed: bool | None = None,
    ) -> Task:
        current = self.get(task_id)
        new_title = title if title is not None else current.title
        new_completed = completed if completed is not None else current.completed

        statement = (
            update(Task)
            .where(Task.id == task_id)  # type: ignore[arg-type]
            .values(title=new_title, completed=new_completed)
        )
        with self._storage_errors("update task"):
            result = self.session.exec(statement)  # type: ignore[call-overload]
            if result.rowcount != 1:
                self.session.rollback()
                raise TaskNotFoundError(task_id)
            self.session.commit()

        # The commit expired ``current``; reload the row as written.
        return self.get(task_id)

    def delete(self, task_id: int) -> None:
        statement = delete(Task).where(Task.id == task_id)  # type: ignore[arg-type]
        with self._storage_errors("delete task"):
            result = self.session.exec(statement)  # type: ignore[call-overload]
            if result.rowcount == 0:
                self.session.rollback()
                raise TaskNotFoundError(task_id)
            self.session.commit()
