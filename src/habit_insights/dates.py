"""Calendar primitives: day keys, Sunday-start weeks and month grids.

Every bucket key in habit-insights is a local calendar date rendered as
YYYY-MM-DD. Weeks always start on Sunday, independent of host locale.
"""

from __future__ import annotations

import calendar
from collections.abc import Iterable
from datetime import date, datetime, timedelta, tzinfo

from habit_insights.models import Session, parse_timestamp

DAY_NAMES: list[str] = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]


def day_key(timestamp: str | datetime | date, tz: tzinfo | None = None) -> str:
    """Normalize a timestamp to its local calendar date (YYYY-MM-DD).

    Naive datetimes are already local wall-clock time. Aware datetimes are
    converted to ``tz``, or to the host's local zone when ``tz`` is None.
    """
    if isinstance(timestamp, str):
        timestamp = parse_timestamp(timestamp)
    if isinstance(timestamp, datetime):
        if timestamp.tzinfo is not None:
            timestamp = timestamp.astimezone(tz)
        return timestamp.date().isoformat()
    return timestamp.isoformat()


def to_date(day: str | datetime | date, tz: tzinfo | None = None) -> date:
    """Return the calendar date for a day key, date or timestamp."""
    return date.fromisoformat(day_key(day, tz))


def sunday_index(d: date) -> int:
    """Weekday with Sunday=0 ... Saturday=6."""
    return (d.weekday() + 1) % 7


def start_of_week(day: str | datetime | date, tz: tzinfo | None = None) -> str:
    """Return the Sunday on or before ``day``."""
    d = to_date(day, tz)
    return (d - timedelta(days=sunday_index(d))).isoformat()


def same_week(a: str | datetime | date, b: str | datetime | date, tz: tzinfo | None = None) -> bool:
    return start_of_week(a, tz) == start_of_week(b, tz)


def add_days(day: str | date, days: int) -> str:
    return (to_date(day) + timedelta(days=days)).isoformat()


def month_grid(year: int, month: int) -> list[list[str | None]]:
    """Build a 7-wide calendar grid for a month.

    Day 1 lands in its Sunday=0 column; the first and last rows are padded
    with None.
    """
    first_weekday, days_in_month = calendar.monthrange(year, month)
    leading = (first_weekday + 1) % 7

    cells: list[str | None] = [None] * leading
    cells.extend(date(year, month, d).isoformat() for d in range(1, days_in_month + 1))
    if len(cells) % 7:
        cells.extend([None] * (7 - len(cells) % 7))

    return [cells[i:i + 7] for i in range(0, len(cells), 7)]


def week_range(offset: int, today: str | datetime | date, tz: tzinfo | None = None) -> tuple[str, str]:
    """Return (sunday, saturday) of the week ``offset`` weeks from today's."""
    start = add_days(start_of_week(today, tz), offset * 7)
    return (start, add_days(start, 6))


def week_offset_for(day: str | datetime | date, today: str | datetime | date, tz: tzinfo | None = None) -> int:
    """Whole weeks between the week containing ``day`` and this week.

    Negative for past weeks, 0 for this week.
    """
    delta = to_date(start_of_week(day, tz)) - to_date(start_of_week(today, tz))
    return delta.days // 7


def week_label(offset: int) -> str:
    """Human label for a week offset: 'This Week', 'Last Week', '3 weeks ago'."""
    if offset == 0:
        return "This Week"
    if offset == -1:
        return "Last Week"
    if offset == 1:
        return "1 week ahead"
    if offset > 0:
        return f"{offset} weeks ahead"
    return f"{abs(offset)} weeks ago"


def active_months(
    sessions: Iterable[Session],
    today: str | datetime | date | None = None,
    tz: tzinfo | None = None,
) -> dict[int, list[int]]:
    """Map year -> sorted months (1-12) that contain at least one session.

    Pass ``today`` for entities that are still active: the current month is
    then always selectable even before anything has been logged in it.
    Graduated entities leave it out so only months with activity are listed.
    """
    found: dict[int, set[int]] = {}
    for session in sessions:
        d = to_date(session.completed_at, tz)
        found.setdefault(d.year, set()).add(d.month)

    if today is not None:
        t = to_date(today, tz)
        found.setdefault(t.year, set()).add(t.month)

    return {year: sorted(months) for year, months in sorted(found.items(), reverse=True)}
