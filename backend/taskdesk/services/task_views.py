"""View filtering and ordering for task lists.

A view context (all, today, yesterday, upcoming, overdue, project) decides which
tasks are visible. Pins surface a task at the top of the view its scope names;
``all`` pins apply everywhere. Manual drag ordering is not ambient state: the
caller passes the overrides for the current view context explicitly.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

from taskdesk.core.calendar import shift_day
from taskdesk.services.overdue import is_overdue

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping
    from uuid import UUID

    from taskdesk.core.calendar import CalendarDay
    from taskdesk.models.tasks import Task

ViewContext = Literal["all", "today", "yesterday", "upcoming", "overdue", "project"]
CompletionFilter = Literal["all", "completed", "incomplete"]

_PIN_SCOPES_BY_VIEW: dict[str, frozenset[str]] = {
    "today": frozenset({"today", "all"}),
    "yesterday": frozenset({"yesterday", "all"}),
}
_DEFAULT_PIN_SCOPES = frozenset({"all"})


@dataclass(frozen=True)
class DashboardSummary:
    today: CalendarDay
    due_today: int
    completed_today: int
    completion_rate: float
    upcoming: int
    overdue: int
    total: int


def view_context_key(view: ViewContext, project_id: UUID | None = None) -> str:
    """Key under which a client stores manual ordering for one view."""
    if view == "project" and project_id is not None:
        return f"project:{project_id}"
    return view


def _pinned_in_view(task: Task, view: ViewContext) -> bool:
    if task.pinned_scope is None:
        return False
    return task.pinned_scope in _PIN_SCOPES_BY_VIEW.get(view, _DEFAULT_PIN_SCOPES)


def _in_view(
    task: Task,
    *,
    view: ViewContext,
    today: CalendarDay,
    project_id: UUID | None,
) -> bool:
    if view == "all":
        return True
    if view == "project":
        return project_id is not None and str(project_id) in (task.project_tags or [])
    if _pinned_in_view(task, view):
        return True
    if view == "today":
        return task.due_date == today
    if view == "yesterday":
        return task.due_date == shift_day(today, -1)
    if view == "upcoming":
        return task.due_date is not None and task.due_date > today
    if view == "overdue":
        return is_overdue(task.due_date, today)
    raise ValueError(f"Unknown view context: {view!r}")


def _matches_completion(task: Task, completion: CompletionFilter) -> bool:
    if completion == "completed":
        return task.completed
    if completion == "incomplete":
        return not task.completed
    return True


def filter_tasks(
    tasks: Iterable[Task],
    *,
    view: ViewContext,
    today: CalendarDay,
    project_id: UUID | None = None,
    completion: CompletionFilter = "all",
) -> list[Task]:
    if view == "project" and project_id is None:
        raise ValueError("project view requires a project_id")
    selected = []
    for task in tasks:
        if not _in_view(task, view=view, today=today, project_id=project_id):
            continue
        if view != "project" and project_id is not None:
            if str(project_id) not in (task.project_tags or []):
                continue
        if _matches_completion(task, completion):
            selected.append(task)
    return selected


def order_tasks(
    tasks: Iterable[Task],
    *,
    view: ViewContext,
    overrides: Mapping[str, int] | None = None,
) -> list[Task]:
    """Pinned first (latest pin on top), then overrides, ``order_index``, newest."""
    overrides = overrides or {}

    def _key(task: Task) -> tuple:
        pinned = _pinned_in_view(task, view)
        pinned_rank = -task.pinned_at.timestamp() if pinned and task.pinned_at else 0.0
        override = overrides.get(str(task.id))
        return (
            0 if pinned else 1,
            pinned_rank,
            0 if override is not None else 1,
            override if override is not None else 0,
            task.order_index if task.order_index is not None else sys.maxsize,
            -task.created_at.timestamp(),
        )

    return sorted(tasks, key=_key)


def build_view(
    tasks: Iterable[Task],
    *,
    view: ViewContext,
    today: CalendarDay,
    project_id: UUID | None = None,
    completion: CompletionFilter = "all",
    overrides: Mapping[str, int] | None = None,
) -> list[Task]:
    visible = filter_tasks(
        tasks,
        view=view,
        today=today,
        project_id=project_id,
        completion=completion,
    )
    return order_tasks(visible, view=view, overrides=overrides)


def dashboard_summary(tasks: Iterable[Task], *, today: CalendarDay) -> DashboardSummary:
    due_today = completed_today = upcoming = overdue = total = 0
    for task in tasks:
        total += 1
        if task.due_date == today:
            due_today += 1
            if task.completed:
                completed_today += 1
        elif not task.completed and task.due_date is not None and task.due_date > today:
            upcoming += 1
        elif is_overdue(task.due_date, today):
            overdue += 1
    rate = round(completed_today / due_today * 100, 1) if due_today else 0.0
    return DashboardSummary(
        today=today,
        due_today=due_today,
        completed_today=completed_today,
        completion_rate=rate,
        upcoming=upcoming,
        overdue=overdue,
        total=total,
    )
