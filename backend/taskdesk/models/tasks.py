"""Active task model with due date, pinning, and manual ordering fields."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel

from taskdesk.core.time import utcnow

RUNTIME_ANNOTATION_TYPES = (datetime,)

TASK_PRIORITIES = ("low", "medium", "high")
PIN_SCOPES = ("today", "yesterday", "all")


class Task(SQLModel, table=True):
    """Owner-scoped task in the active set."""

    __tablename__ = "tasks"  # pyright: ignore[reportAssignmentType]

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    owner_id: UUID = Field(foreign_key="users.id", index=True)

    title: str
    description: str | None = None
    # Calendar day key (YYYY-MM-DD); carries no time of day.
    due_date: str | None = Field(default=None, index=True)
    priority: str = Field(default="medium", index=True)
    completed: bool = Field(default=False)
    project_tags: list[str] = Field(default_factory=list, sa_column=Column(JSON))

    # pinned_at is set exactly when pinned_scope is set.
    pinned_scope: str | None = None
    pinned_at: datetime | None = None
    order_index: int | None = None

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
