# ruff: noqa: INP001
"""Overdue classification and days-past-due arithmetic."""

from __future__ import annotations

from dataclasses import dataclass

import pytest

from taskdesk.services.overdue import days_past_due, is_overdue, select_overdue


@dataclass
class _Dated:
    name: str
    due_date: str | None
    completed: bool = False


def test_due_before_today_is_overdue() -> None:
    assert is_overdue("2025-01-09", "2025-01-10") is True


def test_due_today_is_not_overdue() -> None:
    assert is_overdue("2025-01-10", "2025-01-10") is False


def test_missing_due_date_is_never_overdue() -> None:
    assert is_overdue(None, "2025-01-10") is False
    assert is_overdue("", "2025-01-10") is False


def test_year_boundary_compares_as_dates() -> None:
    assert is_overdue("2024-12-31", "2025-01-01") is True
    assert is_overdue("2025-01-01", "2024-12-31") is False


def test_days_past_due_counts_whole_days() -> None:
    assert days_past_due("2025-01-01", "2025-01-10") == 9
    assert days_past_due("2025-01-05", "2025-01-10") == 5
    assert days_past_due("2025-01-09", "2025-01-10") == 1


def test_days_past_due_rejects_tasks_that_are_not_overdue() -> None:
    with pytest.raises(ValueError):
        days_past_due("2025-01-10", "2025-01-10")


def test_select_overdue_includes_completed_tasks() -> None:
    tasks = [
        _Dated("a", "2025-01-01"),
        _Dated("b", "2025-01-05", completed=True),
        _Dated("c", "2025-01-10"),
        _Dated("d", None),
        _Dated("e", "2025-02-01"),
    ]

    selected = select_overdue(tasks, "2025-01-10")

    assert [task.name for task in selected] == ["a", "b"]
