"""Scoped note endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID

from fastapi import APIRouter, HTTPException, Query, status

from taskdesk.api.deps import OWNER_DEP, SESSION_DEP
from taskdesk.core.calendar import normalize_due_date
from taskdesk.schemas.notes import NoteRead, NoteUpsert
from taskdesk.services import notes as note_service

if TYPE_CHECKING:
    from sqlmodel.ext.asyncio.session import AsyncSession

    from taskdesk.models.users import User

router = APIRouter(prefix="/notes", tags=["notes"])
PROJECT_NAME_QUERY = Query(default=None)
PROJECT_ID_QUERY = Query(default=None)
NOTE_DATE_QUERY = Query(default=None)


def _normalized_date(value: str | None) -> str | None:
    try:
        return normalize_due_date(value)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(exc),
        ) from exc


@router.put("", response_model=NoteRead)
async def upsert_note(
    payload: NoteUpsert,
    session: AsyncSession = SESSION_DEP,
    owner: User = OWNER_DEP,
) -> NoteRead:
    """Write the note for a project/date scope, replacing any existing text."""
    note = await note_service.upsert_note(session, owner_id=owner.id, payload=payload)
    return NoteRead.model_validate(note, from_attributes=True)


@router.get("/scope", response_model=NoteRead | None)
async def get_note_for_scope(
    project_name: str | None = PROJECT_NAME_QUERY,
    note_date: str | None = NOTE_DATE_QUERY,
    session: AsyncSession = SESSION_DEP,
    owner: User = OWNER_DEP,
) -> NoteRead | None:
    note = await note_service.get_note_by_scope(
        session,
        owner_id=owner.id,
        project_name=project_name,
        note_date=_normalized_date(note_date),
    )
    if note is None:
        return None
    return NoteRead.model_validate(note, from_attributes=True)


@router.get("", response_model=list[NoteRead])
async def list_notes(
    project_id: UUID | None = PROJECT_ID_QUERY,
    note_date: str | None = NOTE_DATE_QUERY,
    session: AsyncSession = SESSION_DEP,
    owner: User = OWNER_DEP,
) -> list[NoteRead]:
    """List notes for one project or for one calendar day."""
    if project_id is not None:
        notes = await note_service.list_notes_by_project(
            session,
            owner_id=owner.id,
            project_id=project_id,
        )
    else:
        normalized = _normalized_date(note_date)
        if normalized is None:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail="Provide project_id or note_date",
            )
        notes = await note_service.list_notes_by_date(
            session,
            owner_id=owner.id,
            note_date=normalized,
        )
    return [NoteRead.model_validate(note, from_attributes=True) for note in notes]
