from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel, ConfigDict, Field, field_validator
from sqlmodel import Session

from taskapi.api.errors import ErrorKind, error_response_docs
from taskapi.core.logging import get_logger
from taskapi.db.repositories import TaskRepository
from taskapi.db.session import get_session

router = APIRouter(prefix="/tasks", tags=["tasks"])
logger = get_logger("taskapi.api.tasks")


def _require_non_blank_title(value: str) -> str:
    if not value.strip():
        raise ValueError("title cannot be empty")
    return value


class TaskCreate(BaseModel):
    title: str
    model_config = ConfigDict(json_schema_extra={"example": {"title": "Write release notes"}})

    @field_validator("title")
    @classmethod
    def validate_title(cls, value: str) -> str:
        return _require_non_blank_title(value)


class TaskUpdate(BaseModel):
    title: str | None = None
    completed: bool | None = None
    model_config = ConfigDict(json_schema_extra={"example": {"completed": True}})

    @field_validator("title")
    @classmethod
    def validate_title(cls, value: str | None) -> str | None:
        # Omitted or null titles keep the stored value and are not checked.
        if value is None:
            return None
        return _require_non_blank_title(value)


class TaskRead(BaseModel):
    id: int
    title: str
    completed: bool
    created_at: str
    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "example": {
                "id": 3,
                "title": "Write release notes",
                "completed": False,
                "created_at": "2026-10-18 09:30:00",
            }
        },
    )


def get_task_repository(session: Annotated[Session, Depends(get_session)]) -> TaskRepository:
    return TaskRepository(session)


Tasks = Annotated[TaskRepository, Depends(get_task_repository)]


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=TaskRead,
    responses=error_response_docs(
        ErrorKind.BAD_REQUEST,
        ErrorKind.UNAUTHORIZED,
        ErrorKind.INTERNAL,
    ),
)
def create_task(payload: TaskCreate, tasks: Tasks) -> TaskRead:
    task = tasks.create(payload.title)
    logger.info("task.created", task_id=task.id)
    return TaskRead.model_validate(task)


@router.get(
    "",
    response_model=list[TaskRead],
    responses=error_response_docs(ErrorKind.UNAUTHORIZED, ErrorKind.INTERNAL),
)
def list_tasks(tasks: Tasks) -> list[TaskRead]:
    return [TaskRead.model_validate(task) for task in tasks.list()]


@router.get(
    "/{task_id}",
    response_model=TaskRead,
    responses=error_response_docs(
        ErrorKind.NOT_FOUND,
        ErrorKind.UNAUTHORIZED,
        ErrorKind.INTERNAL,
    ),
)
def get_task(task_id: int, tasks: Tasks) -> TaskRead:
    return TaskRead.model_validate(tasks.get(task_id))


@router.put(
    "/{task_id}",
    response_model=TaskRead,
    responses=error_response_docs(
        ErrorKind.BAD_REQUEST,
        ErrorKind.NOT_FOUND,
        ErrorKind.UNAUTHORIZED,
        ErrorKind.INTERNAL,
    ),
)
def update_task(task_id: int, payload: TaskUpdate, tasks: Tasks) -> TaskRead:
    task = tasks.update(task_id, title=payload.title, completed=payload.completed)
    logger.info(
        "task.updated",
        task_id=task_id,
        fields=sorted(payload.model_dump(exclude_none=True)),
        completed=task.completed,
    )
    return TaskRead.model_validate(task)


@router.delete(
    "/{task_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    responses=error_response_docs(
        ErrorKind.NOT_FOUND,
        ErrorKind.UNAUTHORIZED,
        ErrorKind.INTERNAL,
    ),
)
def delete_task(task_id: int, tasks: Tasks) -> Response:
    tasks.delete(task_id)
    logger.info("task.deleted", task_id=task_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
