"""Schemas for task CRUD, pinning, reordering, and dashboard payloads."""

from __future__ import annotations

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import field_validator
from sqlmodel import Field, SQLModel

from taskdesk.core.calendar import normalize_due_date

RUNTIME_ANNOTATION_TYPES = (datetime, UUID)

Priority = Literal["low", "medium", "high"]
PinScope = Literal["today", "yesterday", "all"]


class TaskCreate(SQLModel):
    """Payload for creating a task."""

    title: str = Field(max_length=500)
    description: str | None = None
    due_date: str | None = None
    priority: Priority = "medium"
    project_tags: list[UUID] = Field(default_factory=list)

    @field_validator("title")
    @classmethod
    def _title(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("title must not be blank")
        return cleaned

    @field_validator("due_date", mode="before")
    @classmethod
    def _due_date(cls, value: object) -> str | None:
        return normalize_due_date(value)  # type: ignore[arg-type]


class TaskUpdate(SQLModel):
    """Partial task update; omitted fields stay unchanged."""

    title: str | None = Field(default=None, max_length=500)
    description: str | None = None
    due_date: str | None = None
    priority: Priority | None = None
    completed: bool | None = None
    project_tags: list[UUID] | None = None

    @field_validator("title")
    @classmethod
    def _title(cls, value: str | None) -> str | None:
        if value is None:
            return None
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("title must not be blank")
        return cleaned

    @field_validator("due_date", mode="before")
    @classmethod
    def _due_date(cls, value: object) -> str | None:
        return normalize_due_date(value)  # type: ignore[arg-type]


class TaskPinUpdate(SQLModel):
    """Pin a task to a scope, or unpin it with ``scope: null``."""

    scope: PinScope | None = None


class TaskOrderItem(SQLModel):
    id: UUID
    order_index: int


class TaskReorder(SQLModel):
    """Bulk manual ordering update."""

    items: list[TaskOrderItem] = Field(default_factory=list)


class TaskRead(SQLModel):
    """Task payload returned by the API."""

    id: UUID
    title: str
    description: str | None = None
    due_date: str | None = None
    priority: str
    completed: bool
    project_tags: list[str] = Field(default_factory=list)
    pinned_scope: str | None = None
    pinned_at: datetime | None = None
    order_index: int | None = None
    created_at: datetime
    updated_at: datetime


class DashboardRead(SQLModel):
    """Today's progress and task counts."""

    today: str
    due_today: int
    completed_today: int
    completion_rate: float
    upcoming: int
    overdue: int
    total: int
