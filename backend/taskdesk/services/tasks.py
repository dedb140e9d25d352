"""Active task CRUD: create, edit, toggle, pin, reorder, delete."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import HTTPException, status
from sqlalchemy import func
from sqlmodel import col, select

from taskdesk.core.logging import get_logger
from taskdesk.core.time import utcnow
from taskdesk.models.projects import Project
from taskdesk.models.tasks import Task

if TYPE_CHECKING:
    from collections.abc import Sequence
    from datetime import datetime
    from uuid import UUID

    from sqlmodel.ext.asyncio.session import AsyncSession

    from taskdesk.schemas.tasks import PinScope, TaskCreate, TaskOrderItem, TaskUpdate

logger = get_logger(__name__)


async def list_tasks(session: AsyncSession, *, owner_id: UUID) -> list[Task]:
    statement = (
        select(Task)
        .where(col(Task.owner_id) == owner_id)
        .order_by(col(Task.created_at).desc())
    )
    return list(await session.exec(statement))


async def get_task_or_404(session: AsyncSession, *, owner_id: UUID, task_id: UUID) -> Task:
    task = await session.get(Task, task_id)
    if task is None or task.owner_id != owner_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Task not found")
    return task


async def validate_project_tags(
    session: AsyncSession,
    *,
    owner_id: UUID,
    project_ids: Sequence[UUID],
) -> list[str]:
    """Return de-duplicated tag strings, rejecting ids that are not active projects."""
    unique = list(dict.fromkeys(project_ids))
    if not unique:
        return []
    rows = await session.exec(
        select(col(Project.id)).where(
            col(Project.owner_id) == owner_id,
            col(Project.active).is_(True),
            col(Project.id).in_(unique),
        ),
    )
    known = set(rows)
    missing = [str(project_id) for project_id in unique if project_id not in known]
    if missing:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Unknown project tags: {', '.join(missing)}",
        )
    return [str(project_id) for project_id in unique]


async def _next_order_index(session: AsyncSession, *, owner_id: UUID) -> int:
    result = await session.exec(
        select(func.max(Task.order_index)).where(col(Task.owner_id) == owner_id),
    )
    current = result.one()
    return 0 if current is None else current + 1


async def create_task(
    session: AsyncSession,
    *,
    owner_id: UUID,
    payload: TaskCreate,
) -> Task:
    """Create a task at the bottom of the manual order."""
    tags = await validate_project_tags(
        session,
        owner_id=owner_id,
        project_ids=payload.project_tags,
    )
    task = Task(
        owner_id=owner_id,
        title=payload.title,
        description=payload.description,
        due_date=payload.due_date,
        priority=payload.priority,
        project_tags=tags,
        order_index=await _next_order_index(session, owner_id=owner_id),
    )
    session.add(task)
    await session.commit()
    await session.refresh(task)
    return task


async def update_task(session: AsyncSession, *, task: Task, payload: TaskUpdate) -> Task:
    updates = payload.model_dump(exclude_unset=True)
    if "project_tags" in updates:
        updates["project_tags"] = await validate_project_tags(
            session,
            owner_id=task.owner_id,
            project_ids=payload.project_tags or [],
        )
    for key in ("title", "priority", "completed"):
        if key in updates and updates[key] is None:
            del updates[key]
    for key, value in updates.items():
        setattr(task, key, value)
    task.updated_at = utcnow()
    session.add(task)
    await session.commit()
    await session.refresh(task)
    return task


async def toggle_task(session: AsyncSession, *, task: Task) -> Task:
    task.completed = not task.completed
    task.updated_at = utcnow()
    session.add(task)
    await session.commit()
    await session.refresh(task)
    return task


async def set_pin(
    session: AsyncSession,
    *,
    task: Task,
    scope: PinScope | None,
    now: datetime | None = None,
) -> Task:
    """Pin or unpin; ``pinned_at`` is stamped exactly when a scope is set."""
    if scope is None:
        task.pinned_scope = None
        task.pinned_at = None
    else:
        task.pinned_scope = scope
        task.pinned_at = now if now is not None else utcnow()
    task.updated_at = utcnow()
    session.add(task)
    await session.commit()
    await session.refresh(task)
    return task


async def reorder_tasks(
    session: AsyncSession,
    *,
    owner_id: UUID,
    items: Sequence[TaskOrderItem],
) -> list[Task]:
    """Apply manual ``order_index`` values in one transaction."""
    if not items:
        return []
    wanted = {item.id: item.order_index for item in items}
    rows = list(
        await session.exec(
            select(Task).where(
                col(Task.owner_id) == owner_id,
                col(Task.id).in_(list(wanted)),
            ),
        ),
    )
    found = {task.id for task in rows}
    missing = [str(task_id) for task_id in wanted if task_id not in found]
    if missing:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Tasks not found: {', '.join(missing)}",
        )
    now = utcnow()
    for task in rows:
        task.order_index = wanted[task.id]
        task.updated_at = now
        session.add(task)
    await session.commit()
    logger.debug("tasks.reorder", extra={"owner_id": str(owner_id), "count": len(rows)})
    return sorted(rows, key=lambda task: wanted[task.id])


async def delete_task(session: AsyncSession, *, task: Task) -> None:
    """Remove a task outright; it does not pass through the archive."""
    await session.delete(task)
    await session.commit()
