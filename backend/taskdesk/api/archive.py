"""Archive endpoints: run the past-due sweep, browse, summarize, and prune."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID

from fastapi import APIRouter, HTTPException, status

from taskdesk.api.deps import OWNER_DEP, TASK_STORE_DEP
from taskdesk.core.logging import get_logger
from taskdesk.schemas.archived_tasks import (
    ArchiveClearRead,
    ArchivedTaskRead,
    ArchiveRunRead,
    ArchiveStatsRead,
    ArchiveWarningRead,
)
from taskdesk.schemas.common import OkResponse
from taskdesk.services import archive as archive_service
from taskdesk.services.archive import ArchiveReadError, OwnershipError
from taskdesk.services.task_store import StoreError

if TYPE_CHECKING:
    from taskdesk.models.users import User
    from taskdesk.services.task_store import SqlTaskStore

router = APIRouter(prefix="/archive", tags=["archive"])
logger = get_logger(__name__)


def _unauthorized(exc: OwnershipError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc))


def _unavailable(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=detail)


@router.post("/run", response_model=ArchiveRunRead)
async def run_archive(
    store: SqlTaskStore = TASK_STORE_DEP,
    owner: User = OWNER_DEP,
) -> ArchiveRunRead:
    """Move every past-due task into the archive and report one summary.

    Tasks that could not be moved are listed under ``warnings``; the response
    is still 200 so the caller sees what did move.
    """
    try:
        outcome = await archive_service.archive_past_due(store, owner.id)
    except OwnershipError as exc:
        raise _unauthorized(exc) from exc
    except ArchiveReadError as exc:
        raise _unavailable("Could not read tasks; nothing was archived") from exc
    return ArchiveRunRead(
        status=outcome.status,
        message=outcome.message,
        today=outcome.today,
        selected=outcome.selected,
        moved=outcome.moved,
        warnings=[
            ArchiveWarningRead(
                task_id=warning.task_id,
                title=warning.title,
                kind=warning.kind,
                detail=warning.detail,
            )
            for warning in outcome.warnings
        ],
    )


@router.get("", response_model=list[ArchivedTaskRead])
async def list_archived_tasks(
    store: SqlTaskStore = TASK_STORE_DEP,
    owner: User = OWNER_DEP,
) -> list[ArchivedTaskRead]:
    """List archived tasks, most recently moved first."""
    # A failed name-index read rolls the session back and expires loaded rows,
    # so the index is read before anything else.
    owner_id = owner.id
    try:
        index = await archive_service.archive_name_index(store, owner_id)
        records = await archive_service.list_archived_tasks(store, owner_id)
    except OwnershipError as exc:
        raise _unauthorized(exc) from exc
    except StoreError as exc:
        raise _unavailable("Could not read the archive") from exc
    items = []
    for record in records:
        item = ArchivedTaskRead.model_validate(record, from_attributes=True)
        item.project_names = archive_service.backfill_project_names(record, index)
        items.append(item)
    return items


@router.get("/stats", response_model=ArchiveStatsRead)
async def get_archive_stats(
    store: SqlTaskStore = TASK_STORE_DEP,
    owner: User = OWNER_DEP,
) -> ArchiveStatsRead:
    try:
        records = await archive_service.list_archived_tasks(store, owner.id)
    except OwnershipError as exc:
        raise _unauthorized(exc) from exc
    except StoreError as exc:
        raise _unavailable("Could not read the archive") from exc
    stats = archive_service.compute_archive_stats(records)
    return ArchiveStatsRead(
        total_archived=stats.total_archived,
        total_completed=stats.total_completed,
        total_incomplete=stats.total_incomplete,
        avg_days_past_due=stats.avg_days_past_due,
        max_days_past_due=stats.max_days_past_due,
        oldest_moved_at=stats.oldest_moved_at,
        latest_moved_at=stats.latest_moved_at,
    )


@router.delete("/{archived_id}", response_model=OkResponse)
async def delete_archived_task(
    archived_id: UUID,
    store: SqlTaskStore = TASK_STORE_DEP,
    owner: User = OWNER_DEP,
) -> OkResponse:
    try:
        deleted = await archive_service.delete_archived_task(store, owner.id, archived_id)
    except OwnershipError as exc:
        raise _unauthorized(exc) from exc
    except StoreError as exc:
        raise _unavailable("Could not delete the archived task") from exc
    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Archived task not found")
    return OkResponse()


@router.delete("", response_model=ArchiveClearRead)
async def clear_archive(
    store: SqlTaskStore = TASK_STORE_DEP,
    owner: User = OWNER_DEP,
) -> ArchiveClearRead:
    """Delete every archived task of the owner."""
    try:
        deleted = await archive_service.clear_all_archived_tasks(store, owner.id)
    except OwnershipError as exc:
        raise _unauthorized(exc) from exc
    except StoreError as exc:
        raise _unavailable("Could not clear the archive") from exc
    logger.info("archive.cleared", extra={"owner_id": str(owner.id), "deleted": deleted})
    return ArchiveClearRead(deleted=deleted)
