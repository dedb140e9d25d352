"""Active task endpoints: views, CRUD, completion toggle, pins, ordering."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID

from fastapi import APIRouter, HTTPException, Query, status

from taskdesk.api.deps import OWNER_DEP, SESSION_DEP
from taskdesk.core.calendar import today as calendar_today
from taskdesk.schemas.common import OkResponse
from taskdesk.schemas.tasks import (
    DashboardRead,
    TaskCreate,
    TaskPinUpdate,
    TaskRead,
    TaskReorder,
    TaskUpdate,
)
from taskdesk.services import tasks as task_service
from taskdesk.services.task_views import (
    CompletionFilter,
    ViewContext,
    build_view,
    dashboard_summary,
)

if TYPE_CHECKING:
    from sqlmodel.ext.asyncio.session import AsyncSession

    from taskdesk.models.users import User

router = APIRouter(prefix="/tasks", tags=["tasks"])
VIEW_QUERY = Query(default="all")
PROJECT_QUERY = Query(default=None)
COMPLETION_QUERY = Query(default="all")


def _read(task: object) -> TaskRead:
    return TaskRead.model_validate(task, from_attributes=True)


@router.get("", response_model=list[TaskRead])
async def list_tasks(
    view: ViewContext = VIEW_QUERY,
    project_id: UUID | None = PROJECT_QUERY,
    completion: CompletionFilter = COMPLETION_QUERY,
    session: AsyncSession = SESSION_DEP,
    owner: User = OWNER_DEP,
) -> list[TaskRead]:
    """List active tasks for one view, pinned tasks first."""
    tasks = await task_service.list_tasks(session, owner_id=owner.id)
    try:
        visible = build_view(
            tasks,
            view=view,
            today=calendar_today(),
            project_id=project_id,
            completion=completion,
        )
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(exc),
        ) from exc
    return [_read(task) for task in visible]


@router.get("/dashboard", response_model=DashboardRead)
async def get_dashboard(
    session: AsyncSession = SESSION_DEP,
    owner: User = OWNER_DEP,
) -> DashboardRead:
    """Today's completion progress plus upcoming and overdue counts."""
    tasks = await task_service.list_tasks(session, owner_id=owner.id)
    summary = dashboard_summary(tasks, today=calendar_today())
    return DashboardRead(
        today=summary.today,
        due_today=summary.due_today,
        completed_today=summary.completed_today,
        completion_rate=summary.completion_rate,
        upcoming=summary.upcoming,
        overdue=summary.overdue,
        total=summary.total,
    )


@router.post("", response_model=TaskRead)
async def create_task(
    payload: TaskCreate,
    session: AsyncSession = SESSION_DEP,
    owner: User = OWNER_DEP,
) -> TaskRead:
    task = await task_service.create_task(session, owner_id=owner.id, payload=payload)
    return _read(task)


@router.post("/reorder", response_model=list[TaskRead])
async def reorder_tasks(
    payload: TaskReorder,
    session: AsyncSession = SESSION_DEP,
    owner: User = OWNER_DEP,
) -> list[TaskRead]:
    tasks = await task_service.reorder_tasks(session, owner_id=owner.id, items=payload.items)
    return [_read(task) for task in tasks]


@router.patch("/{task_id}", response_model=TaskRead)
async def update_task(
    task_id: UUID,
    payload: TaskUpdate,
    session: AsyncSession = SESSION_DEP,
    owner: User = OWNER_DEP,
) -> TaskRead:
    task = await task_service.get_task_or_404(session, owner_id=owner.id, task_id=task_id)
    task = await task_service.update_task(session, task=task, payload=payload)
    return _read(task)


@router.post("/{task_id}/toggle", response_model=TaskRead)
async def toggle_task(
    task_id: UUID,
    session: AsyncSession = SESSION_DEP,
    owner: User = OWNER_DEP,
) -> TaskRead:
    task = await task_service.get_task_or_404(session, owner_id=owner.id, task_id=task_id)
    task = await task_service.toggle_task(session, task=task)
    return _read(task)


@router.post("/{task_id}/pin", response_model=TaskRead)
async def pin_task(
    task_id: UUID,
    payload: TaskPinUpdate,
    session: AsyncSession = SESSION_DEP,
    owner: User = OWNER_DEP,
) -> TaskRead:
    """Pin a task to a view scope, or unpin it."""
    task = await task_service.get_task_or_404(session, owner_id=owner.id, task_id=task_id)
    task = await task_service.set_pin(session, task=task, scope=payload.scope)
    return _read(task)


@router.delete("/{task_id}", response_model=OkResponse)
async def delete_task(
    task_id: UUID,
    session: AsyncSession = SESSION_DEP,
    owner: User = OWNER_DEP,
) -> OkResponse:
    task = await task_service.get_task_or_404(session, owner_id=owner.id, task_id=task_id)
    await task_service.delete_task(session, task=task)
    return OkResponse()
