"""Schemas for archive listing, statistics, and archive run results."""

from __future__ import annotations

from datetime import datetime
from typing import Literal
from uuid import UUID

from sqlmodel import Field, SQLModel

RUNTIME_ANNOTATION_TYPES = (datetime, UUID)


class ArchivedTaskRead(SQLModel):
    """Archived task payload with denormalized project names."""

    id: UUID
    original_task_id: UUID
    title: str
    description: str | None = None
    due_date: str | None = None
    priority: str
    completed: bool
    project_tags: list[str] = Field(default_factory=list)
    project_names: list[str] = Field(default_factory=list)
    created_at: datetime
    moved_at: datetime
    days_past_due: int


class ArchiveStatsRead(SQLModel):
    """Aggregate archive statistics."""

    total_archived: int
    total_completed: int
    total_incomplete: int
    avg_days_past_due: int
    max_days_past_due: int
    oldest_moved_at: datetime
    latest_moved_at: datetime


class ArchiveWarningRead(SQLModel):
    """A task that was not cleanly moved during an archive run."""

    task_id: UUID
    title: str
    kind: Literal["insert_failed", "delete_failed"]
    detail: str


class ArchiveRunRead(SQLModel):
    """Single summary for one archive run."""

    status: Literal["noop", "success", "partial", "failed"]
    message: str
    today: str
    selected: int
    moved: int
    warnings: list[ArchiveWarningRead] = Field(default_factory=list)


class ArchiveClearRead(SQLModel):
    deleted: int
