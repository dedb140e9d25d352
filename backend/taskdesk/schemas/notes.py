"""Schemas for scoped note upsert and read payloads."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import field_validator
from sqlmodel import Field, SQLModel

from taskdesk.core.calendar import normalize_due_date

RUNTIME_ANNOTATION_TYPES = (datetime, UUID)


class NoteUpsert(SQLModel):
    """Create or replace the note for a project/date scope."""

    project_id: UUID | None = None
    project_name: str | None = None
    note_date: str | None = None
    note_text: str = Field(default="", max_length=20000)

    @field_validator("note_date", mode="before")
    @classmethod
    def _note_date(cls, value: object) -> str | None:
        return normalize_due_date(value)  # type: ignore[arg-type]


class NoteRead(SQLModel):
    """Note payload returned by the API."""

    id: UUID
    project_id: UUID | None = None
    project_name: str | None = None
    note_date: str | None = None
    scope_key: str
    note_text: str
    created_at: datetime
    updated_at: datetime
