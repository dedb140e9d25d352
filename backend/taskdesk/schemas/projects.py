"""Schemas for project create/update/read payloads."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import field_validator
from sqlmodel import Field, SQLModel

RUNTIME_ANNOTATION_TYPES = (datetime, UUID)


def _clean_name(value: str | None) -> str | None:
    if value is None:
        return None
    cleaned = value.strip()
    if not cleaned:
        raise ValueError("name must not be blank")
    return cleaned


class ProjectCreate(SQLModel):
    """Payload for creating a project."""

    name: str = Field(max_length=120)
    color: str | None = None

    @field_validator("name")
    @classmethod
    def _name(cls, value: str) -> str:
        return _clean_name(value) or ""


class ProjectUpdate(SQLModel):
    """Payload for renaming or recoloring a project."""

    name: str | None = Field(default=None, max_length=120)
    color: str | None = None

    @field_validator("name")
    @classmethod
    def _name(cls, value: str | None) -> str | None:
        return _clean_name(value)


class ProjectRead(SQLModel):
    """Project payload returned by the API."""

    id: UUID
    name: str
    color: str
    active: bool
    created_at: datetime
    updated_at: datetime
