"""Notes addressed by a project/date scope key, one row per owner and scope."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel

from taskdesk.core.time import utcnow

RUNTIME_ANNOTATION_TYPES = (datetime,)


class Note(SQLModel, table=True):
    """Free-text note for a (project or all projects) x (day or all time) scope."""

    __tablename__ = "notes"  # pyright: ignore[reportAssignmentType]
    __table_args__ = (UniqueConstraint("owner_id", "scope_key", name="uq_notes_owner_scope"),)

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    owner_id: UUID = Field(foreign_key="users.id", index=True)
    project_id: UUID | None = Field(default=None, foreign_key="projects.id", index=True)
    project_name: str | None = None
    note_date: str | None = Field(default=None, index=True)
    scope_key: str = Field(index=True)
    note_text: str = Field(default="")

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
