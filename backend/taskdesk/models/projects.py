"""Project model used to tag tasks, soft-deleted via the ``active`` flag."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from sqlmodel import Field, SQLModel

from taskdesk.core.time import utcnow

RUNTIME_ANNOTATION_TYPES = (datetime,)

DEFAULT_PROJECT_COLOR = "#6366f1"


class Project(SQLModel, table=True):
    """Owner-scoped project; inactive rows stay resolvable for archived tasks."""

    __tablename__ = "projects"  # pyright: ignore[reportAssignmentType]

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    owner_id: UUID = Field(foreign_key="users.id", index=True)
    name: str
    color: str = Field(default=DEFAULT_PROJECT_COLOR)
    active: bool = Field(default=True, index=True)

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
