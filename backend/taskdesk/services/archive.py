"""Past-due archiving: move overdue tasks into the archive and report on it.

``archive_past_due`` is the only operation here that changes the active task
set. It judges every task against one sampled "today", snapshots each overdue
task (project ids resolved to names at that moment), inserts the snapshot and
only then deletes the original. Because selection only ever reads the active
set, running it again right away moves nothing.

Per-task failures never abort the run. A failed insert leaves the task active
and retriable; a failed delete after a successful insert leaves the task in
both sets and is reported as such. Read failures and a missing owner abort the
run before anything is written.

Two concurrent runs for the same owner can both insert a snapshot of the same
task before either delete lands. That duplicate is a known, accepted race for a
single-user tool; it surfaces as a ``delete_failed`` warning on one side.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Literal

from taskdesk.core.calendar import today as calendar_today
from taskdesk.core.logging import get_logger
from taskdesk.core.time import utcnow
from taskdesk.models.archived_tasks import ArchivedTask
from taskdesk.services.overdue import days_past_due, select_overdue
from taskdesk.services.task_store import StoreError

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence
    from datetime import datetime
    from uuid import UUID

    from taskdesk.core.calendar import CalendarDay
    from taskdesk.models.projects import Project
    from taskdesk.models.tasks import Task
    from taskdesk.services.task_store import TaskStore

logger = get_logger(__name__)

WarningKind = Literal["insert_failed", "delete_failed"]
RunStatus = Literal["noop", "success", "partial", "failed"]


class OwnershipError(Exception):
    """Raised when an archive operation has no authenticated owner."""


class ArchiveReadError(Exception):
    """Raised when tasks or projects cannot be read; nothing was changed."""


@dataclass(frozen=True)
class ArchiveWarning:
    """A task the run could not fully move."""

    task_id: UUID
    title: str
    kind: WarningKind
    detail: str


@dataclass
class ArchiveOutcome:
    """Result of one ``archive_past_due`` run."""

    today: CalendarDay
    selected: int
    moved: int
    warnings: list[ArchiveWarning] = field(default_factory=list)

    @property
    def status(self) -> RunStatus:
        if not self.warnings:
            return "success" if self.moved else "noop"
        return "partial" if self.moved else "failed"

    @property
    def message(self) -> str:
        status = self.status
        if status == "noop":
            return "No past-due tasks found"
        if status == "success":
            return f"Moved {self.moved} past-due task(s) to archive"
        if status == "partial":
            return (
                f"Moved {self.moved} of {self.selected} past-due task(s) to archive; "
                f"{len(self.warnings)} need attention"
            )
        return f"Archive failed for {len(self.warnings)} past-due task(s)"


@dataclass(frozen=True)
class ArchiveStats:
    """Aggregate figures over an owner's archive."""

    total_archived: int
    total_completed: int
    total_incomplete: int
    avg_days_past_due: int
    max_days_past_due: int
    oldest_moved_at: datetime
    latest_moved_at: datetime


def _require_owner(owner_id: UUID | None) -> UUID:
    if owner_id is None:
        raise OwnershipError("Not authenticated")
    return owner_id


def project_name_index(projects: Iterable[Project]) -> dict[str, str]:
    """Map project id strings to names; callers pass inactive projects too."""
    return {str(project.id): project.name for project in projects}


def resolve_project_names(tags: Sequence[str] | None, index: Mapping[str, str]) -> list[str]:
    """Resolve tag ids to names, dropping ids that match no project."""
    return [index[tag] for tag in tags or () if tag in index]


def build_archive_snapshot(
    task: Task,
    *,
    project_index: Mapping[str, str],
    today: CalendarDay,
    moved_at: datetime,
) -> ArchivedTask:
    """Copy an overdue task into an archive record frozen at *moved_at*."""
    if task.due_date is None:
        raise ValueError(f"Task {task.id} has no due date")
    tags = list(task.project_tags or [])
    return ArchivedTask(
        owner_id=task.owner_id,
        original_task_id=task.id,
        title=task.title,
        description=task.description,
        due_date=task.due_date,
        priority=task.priority,
        completed=task.completed,
        project_tags=tags,
        project_names=resolve_project_names(tags, project_index),
        created_at=task.created_at,
        moved_at=moved_at,
        days_past_due=days_past_due(task.due_date, today),
    )


async def archive_past_due(
    store: TaskStore,
    owner_id: UUID | None,
    *,
    now: datetime | None = None,
) -> ArchiveOutcome:
    """Move every overdue task of *owner_id* into the archive."""
    owner = _require_owner(owner_id)
    moved_at = now if now is not None else utcnow()
    today = calendar_today(moved_at)

    try:
        tasks = await store.list_active_tasks(owner)
        projects = await store.list_projects(owner, include_inactive=True)
    except StoreError as exc:
        logger.warning("archive.run.read_failed", extra={"owner_id": str(owner)})
        raise ArchiveReadError(str(exc)) from exc

    index = project_name_index(projects)
    # Snapshot everything up front; a failed write rolls the session back and
    # the loaded task rows are not safe to read afterwards.
    pending: list[tuple[UUID, str, ArchivedTask]] = []
    for task in select_overdue(tasks, today):
        snapshot = build_archive_snapshot(
            task,
            project_index=index,
            today=today,
            moved_at=moved_at,
        )
        pending.append((task.id, task.title, snapshot))
    outcome = ArchiveOutcome(today=today, selected=len(pending), moved=0)
    if not pending:
        logger.info("archive.run.noop", extra={"owner_id": str(owner), "today": today})
        return outcome

    for task_id, title, snapshot in pending:
        try:
            await store.insert_archived_task(snapshot)
        except StoreError as exc:
            outcome.warnings.append(
                ArchiveWarning(task_id=task_id, title=title, kind="insert_failed", detail=str(exc)),
            )
            logger.warning("archive.task.insert_failed", extra={"task_id": str(task_id)})
            continue

        try:
            deleted = await store.delete_task(owner, task_id)
        except StoreError as exc:
            deleted = False
            detail = str(exc)
        else:
            detail = "task no longer in the active set"
        if not deleted:
            outcome.warnings.append(
                ArchiveWarning(task_id=task_id, title=title, kind="delete_failed", detail=detail),
            )
            logger.error(
                "archive.task.duplicated",
                extra={"task_id": str(task_id), "detail": detail},
            )
            continue
        outcome.moved += 1

    logger.info(
        "archive.run.complete",
        extra={
            "owner_id": str(owner),
            "today": today,
            "selected": outcome.selected,
            "moved": outcome.moved,
            "warnings": len(outcome.warnings),
        },
    )
    return outcome


async def list_archived_tasks(store: TaskStore, owner_id: UUID | None) -> list[ArchivedTask]:
    """Return the owner's archive, most recently moved first."""
    return await store.list_archived_tasks(_require_owner(owner_id))


async def delete_archived_task(
    store: TaskStore,
    owner_id: UUID | None,
    archived_id: UUID,
) -> bool:
    """Delete one archive entry; ``False`` when it does not exist for this owner."""
    return await store.delete_archived_task(_require_owner(owner_id), archived_id)


async def clear_all_archived_tasks(store: TaskStore, owner_id: UUID | None) -> int:
    return await store.delete_all_archived_tasks(_require_owner(owner_id))


async def archive_name_index(store: TaskStore, owner_id: UUID | None) -> dict[str, str]:
    """Name index for display backfill; an unreadable project list yields ``{}``."""
    owner = _require_owner(owner_id)
    try:
        projects = await store.list_projects(owner, include_inactive=True)
    except StoreError:
        logger.warning("archive.names.read_failed", extra={"owner_id": str(owner)})
        return {}
    return project_name_index(projects)


def backfill_project_names(record: ArchivedTask, index: Mapping[str, str]) -> list[str]:
    """Stored names win; rows archived without names fall back to the index."""
    if record.project_names:
        return list(record.project_names)
    return resolve_project_names(record.project_tags, index)


def _round_half_up(total: int, count: int) -> int:
    return (2 * total + count) // (2 * count)


def compute_archive_stats(
    archived: Iterable[ArchivedTask],
    *,
    now: datetime | None = None,
) -> ArchiveStats:
    """Summarize the archive in a single pass."""
    total = completed = days_total = days_max = 0
    oldest: datetime | None = None
    latest: datetime | None = None
    for record in archived:
        total += 1
        if record.completed:
            completed += 1
        days = record.days_past_due or 0
        days_total += days
        days_max = max(days_max, days)
        if oldest is None or record.moved_at < oldest:
            oldest = record.moved_at
        if latest is None or record.moved_at > latest:
            latest = record.moved_at

    if total == 0:
        default = now if now is not None else utcnow()
        return ArchiveStats(
            total_archived=0,
            total_completed=0,
            total_incomplete=0,
            avg_days_past_due=0,
            max_days_past_due=0,
            oldest_moved_at=default,
            latest_moved_at=default,
        )
    return ArchiveStats(
        total_archived=total,
        total_completed=completed,
        total_incomplete=total - completed,
        avg_days_past_due=_round_half_up(days_total, total),
        max_days_past_due=days_max,
        oldest_moved_at=oldest,
        latest_moved_at=latest,
    )
