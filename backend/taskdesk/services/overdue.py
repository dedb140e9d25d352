"""Overdue classification over calendar-day keys."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, TypeVar

from taskdesk.core.calendar import days_between

if TYPE_CHECKING:
    from collections.abc import Iterable

    from taskdesk.core.calendar import CalendarDay


class HasDueDate(Protocol):
    due_date: str | None


T = TypeVar("T", bound=HasDueDate)


def is_overdue(due_date: CalendarDay | None, today: CalendarDay) -> bool:
    """Return whether *due_date* falls strictly before *today*.

    Keys are fixed-width ``YYYY-MM-DD`` strings, so string order is date order.
    A task due today is not overdue and a task without a due date never is.
    """
    if not due_date:
        return False
    return due_date < today


def days_past_due(due_date: CalendarDay, today: CalendarDay) -> int:
    """Whole calendar days *due_date* is behind *today*, never less than 1."""
    if not is_overdue(due_date, today):
        raise ValueError(f"Task due {due_date!r} is not overdue on {today!r}")
    return max(1, days_between(due_date, today))


def select_overdue(tasks: Iterable[T], today: CalendarDay) -> list[T]:
    """Pick every overdue task, completed or not."""
    return [task for task in tasks if is_overdue(task.due_date, today)]
