"""Point-in-time snapshot of a task moved out of the active set."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel

from taskdesk.core.time import utcnow

RUNTIME_ANNOTATION_TYPES = (datetime,)


class ArchivedTask(SQLModel, table=True):
    """Archived copy of a task with project names frozen at archive time."""

    __tablename__ = "archived_tasks"  # pyright: ignore[reportAssignmentType]

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    owner_id: UUID = Field(foreign_key="users.id", index=True)
    # Back-reference only; the original row is gone once the move completes.
    original_task_id: UUID = Field(index=True)

    title: str
    description: str | None = None
    due_date: str | None = None
    priority: str = Field(default="medium")
    completed: bool = Field(default=False)
    project_tags: list[str] = Field(default_factory=list, sa_column=Column(JSON))
    project_names: list[str] = Field(default_factory=list, sa_column=Column(JSON))

    created_at: datetime = Field(default_factory=utcnow)
    moved_at: datetime = Field(default_factory=utcnow, index=True)
    days_past_due: int = Field(default=0)
