"""Streak tracking for habit-insights."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date, datetime, timedelta, tzinfo

from habit_insights.dates import day_key
from habit_insights.models import Session, StreakResult


def _parse_date(d: str) -> date:
    """Parse a YYYY-MM-DD string to a date object."""
    return date.fromisoformat(d)


def active_days(sessions: Iterable[Session], tz: tzinfo | None = None) -> set[str]:
    """Return the set of day keys with at least one session."""
    return {day_key(s.completed_at, tz) for s in sessions}


def get_streak_from_dates(sorted_dates: list[str], reference_date: str) -> int:
    """Given a sorted list of active dates and a reference date,
    count consecutive days backwards from reference_date."""
    if not sorted_dates:
        return 0

    ref = _parse_date(reference_date)
    date_set = {_parse_date(d) for d in sorted_dates}

    if ref not in date_set:
        return 0

    streak = 0
    current = ref
    while current in date_set:
        streak += 1
        current -= timedelta(days=1)

    return streak


def current_streak(days: set[str], today: str) -> int:
    """Consecutive active days ending today, or ending yesterday.

    A day logged yesterday keeps the streak alive until today is over.
    """
    if not days:
        return 0
    sorted_dates = sorted(days)
    if today in days:
        return get_streak_from_dates(sorted_dates, today)
    yesterday = (_parse_date(today) - timedelta(days=1)).isoformat()
    if yesterday in days:
        return get_streak_from_dates(sorted_dates, yesterday)
    return 0


def longest_streak(days: set[str]) -> int:
    """Length of the longest run of consecutive active days."""
    if not days:
        return 0
    sorted_dates = sorted(days)
    longest = 0
    streak = 1
    for i in range(1, len(sorted_dates)):
        prev = _parse_date(sorted_dates[i - 1])
        curr = _parse_date(sorted_dates[i])
        if (curr - prev).days == 1:
            streak += 1
        else:
            longest = max(longest, streak)
            streak = 1
    return max(longest, streak)


def calculate_streak_from_days(days: set[str], today: str) -> StreakResult:
    """Calculate current and longest streak from a set of day keys."""
    if not days:
        return StreakResult(current=0, longest=0)
    current = current_streak(days, today)
    longest = max(longest_streak(days), current)
    return StreakResult(current=current, longest=longest)


def calculate_streak(
    sessions: Iterable[Session], now: datetime | date | str, tz: tzinfo | None = None
) -> StreakResult:
    """Calculate streaks for a set of sessions, relative to ``now``.

    Pre-filter ``sessions`` to one habit or vision for per-entity streaks.
    """
    return calculate_streak_from_days(active_days(sessions, tz), day_key(now, tz))


def habit_streaks(
    sessions: Iterable[Session],
    habit_ids: Iterable[str],
    now: datetime | date | str,
    tz: tzinfo | None = None,
) -> dict[str, StreakResult]:
    """Return a StreakResult per habit id. Habits with no sessions get (0, 0)."""
    by_habit: dict[str, set[str]] = {hid: set() for hid in habit_ids}
    for session in sessions:
        if session.habit_id in by_habit:
            by_habit[session.habit_id].add(day_key(session.completed_at, tz))
    today = day_key(now, tz)
    return {hid: calculate_streak_from_days(days, today) for hid, days in by_habit.items()}
