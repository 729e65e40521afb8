from __future__ import annotations

from sqlalchemy import Boolean, Column, Text, text
from sqlmodel import Field, SQLModel


class Task(SQLModel, table=True):
    """Row of the ``tasks`` table created by ``migrations/001_init.sql``.

    ``id`` and ``created_at`` are filled in by the database on insert.
    """

    __tablename__ = "tasks"

    id: int | None = Field(default=None, primary_key=True)
    title: str = Field(sa_column=Column(Text(), nullable=False))
    completed: bool = Field(
        default=False,
        sa_column=Column(Boolean(), nullable=False, server_default=text("0")),
    )
    created_at: str | None = Field(
        default=None,
        sa_column=Column(Text(), nullable=False, server_default=text("(datetime('now'))")),
    )
