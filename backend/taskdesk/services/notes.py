"""Scoped notes: one note per owner for each project/date scope."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy.exc import IntegrityError
from sqlmodel import col, select

from taskdesk.core.logging import get_logger
from taskdesk.core.time import utcnow
from taskdesk.models.notes import Note
from taskdesk.services.projects import get_project_or_404

if TYPE_CHECKING:
    from uuid import UUID

    from sqlmodel.ext.asyncio.session import AsyncSession

    from taskdesk.schemas.notes import NoteUpsert

logger = get_logger(__name__)

NULL_TOKEN = "__null__"


def build_note_scope_key(project_name: str | None, note_date: str | None) -> str:
    """Compose ``<project>::<date>``; blanks stand for all projects / all time."""
    normalized_project = (project_name or "").strip().lower() or NULL_TOKEN
    normalized_date = note_date or NULL_TOKEN
    return f"{normalized_project}::{normalized_date}"


async def get_note_by_scope(
    session: AsyncSession,
    *,
    owner_id: UUID,
    project_name: str | None,
    note_date: str | None,
) -> Note | None:
    scope_key = build_note_scope_key(project_name, note_date)
    result = await session.exec(
        select(Note).where(
            col(Note.owner_id) == owner_id,
            col(Note.scope_key) == scope_key,
        ),
    )
    return result.first()


async def upsert_note(session: AsyncSession, *, owner_id: UUID, payload: NoteUpsert) -> Note:
    """Insert the note for a scope, or replace the text of the existing one."""
    project_name = payload.project_name
    if payload.project_id is not None:
        project = await get_project_or_404(
            session,
            owner_id=owner_id,
            project_id=payload.project_id,
            include_inactive=True,
        )
        project_name = project_name or project.name
    project_name = project_name.strip() if project_name and project_name.strip() else None
    scope_key = build_note_scope_key(project_name, payload.note_date)

    try:
        note = await _write_note(
            session,
            owner_id=owner_id,
            payload=payload,
            project_name=project_name,
            scope_key=scope_key,
        )
    except IntegrityError:
        # A concurrent insert claimed the scope first; apply ours as an update.
        await session.rollback()
        logger.info("notes.upsert.retry", extra={"scope_key": scope_key})
        note = await _write_note(
            session,
            owner_id=owner_id,
            payload=payload,
            project_name=project_name,
            scope_key=scope_key,
        )
    return note


async def _write_note(
    session: AsyncSession,
    *,
    owner_id: UUID,
    payload: NoteUpsert,
    project_name: str | None,
    scope_key: str,
) -> Note:
    note = await get_note_by_scope(
        session,
        owner_id=owner_id,
        project_name=project_name,
        note_date=payload.note_date,
    )
    if note is None:
        note = Note(
            owner_id=owner_id,
            project_id=payload.project_id,
            project_name=project_name,
            note_date=payload.note_date,
            scope_key=scope_key,
            note_text=payload.note_text,
        )
    else:
        note.note_text = payload.note_text
        note.project_id = payload.project_id or note.project_id
        note.project_name = project_name
        note.updated_at = utcnow()
    session.add(note)
    await session.commit()
    await session.refresh(note)
    return note


async def list_notes_by_project(
    session: AsyncSession,
    *,
    owner_id: UUID,
    project_id: UUID,
) -> list[Note]:
    statement = (
        select(Note)
        .where(col(Note.owner_id) == owner_id, col(Note.project_id) == project_id)
        .order_by(col(Note.note_date).desc())
    )
    return list(await session.exec(statement))


async def list_notes_by_date(
    session: AsyncSession,
    *,
    owner_id: UUID,
    note_date: str,
) -> list[Note]:
    statement = (
        select(Note)
        .where(col(Note.owner_id) == owner_id, col(Note.note_date) == note_date)
        .order_by(col(Note.updated_at).desc())
    )
    return list(await session.exec(statement))
