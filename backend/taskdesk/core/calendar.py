"""Calendar-day normalization in the application's fixed regional timezone.

All due-date comparisons go through :func:`normalize_to_calendar_day`, which
turns dates, instants, and their string forms into a ``YYYY-MM-DD`` key for the
civil day in India Standard Time (UTC+05:30).

Two kinds of input are distinguished:

* calendar days (``date`` objects and bare ``YYYY-MM-DD`` strings) are returned
  as-is and never shifted;
* instants (``datetime`` objects and ISO datetime strings) are converted to the
  regional offset first. Naive instants are read as UTC, which is how
  :func:`taskdesk.core.time.utcnow` stores them.

IST has no daylight saving, so day arithmetic on the calendar date matches the
24-hour arithmetic the application has always used. Should the region ever be
configured with a DST-observing zone, ``shift_day`` stays correct but callers
that add wall-clock hours would not.
"""

from __future__ import annotations

import re
from datetime import UTC, date, datetime, timedelta, timezone

from taskdesk.core.time import utcnow

REGION_TZ = timezone(timedelta(hours=5, minutes=30), "IST")

CalendarDay = str

_DAY_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def parse_calendar_day(day: CalendarDay) -> date:
    """Parse a ``YYYY-MM-DD`` key into a :class:`date`."""
    if not isinstance(day, str) or not _DAY_PATTERN.match(day):
        raise ValueError(f"Not a calendar day key: {day!r}")
    return date.fromisoformat(day)


def _instant_to_day(instant: datetime) -> CalendarDay:
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=UTC)
    return instant.astimezone(REGION_TZ).date().isoformat()


def normalize_to_calendar_day(value: date | datetime | str) -> CalendarDay:
    """Return the regional calendar-day key for a date, instant, or ISO string."""
    # datetime is a date subclass, so check it first.
    if isinstance(value, datetime):
        return _instant_to_day(value)
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, str):
        text = value.strip()
        if _DAY_PATTERN.match(text):
            return parse_calendar_day(text).isoformat()
        if not text:
            raise ValueError("Empty date value")
        if text.endswith(("Z", "z")):
            text = f"{text[:-1]}+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError as exc:
            raise ValueError(f"Unrecognized date value: {value!r}") from exc
        return _instant_to_day(parsed)
    raise ValueError(f"Unsupported date value type: {type(value).__name__}")


def normalize_due_date(value: date | datetime | str | None) -> CalendarDay | None:
    """Normalize a stored due date, which has no time-of-day meaning.

    Strings carrying a time component are cut at ``T`` instead of being shifted,
    so ``2025-03-01T00:00:00Z`` stays on ``2025-03-01``.
    """
    if value is None:
        return None
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        return parse_calendar_day(text.split("T", 1)[0]).isoformat()
    if isinstance(value, datetime):
        return value.date().isoformat()
    return normalize_to_calendar_day(value)


def shift_day(day: CalendarDay, days: int) -> CalendarDay:
    return (parse_calendar_day(day) + timedelta(days=days)).isoformat()


def today(now: datetime | None = None) -> CalendarDay:
    """Return today's regional day key, sampling the clock once."""
    return _instant_to_day(now if now is not None else utcnow())


def tomorrow(now: datetime | None = None) -> CalendarDay:
    return shift_day(today(now), 1)


def yesterday(now: datetime | None = None) -> CalendarDay:
    return shift_day(today(now), -1)


def days_between(start: CalendarDay, end: CalendarDay) -> int:
    """Whole calendar days from *start* to *end* (negative when end is earlier)."""
    return (parse_calendar_day(end) - parse_calendar_day(start)).days
