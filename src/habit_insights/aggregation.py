"""Session aggregation for habit-insights.

Pure functions that bucket focus sessions by day and week and sum their
durations. No side effects, no storage access - accepts records as input.
Status filtering (active/graduated/deleted) is the caller's job.
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import replace
from datetime import date, datetime, timedelta, tzinfo

from habit_insights.dates import DAY_NAMES, add_days, day_key, week_range
from habit_insights.models import (
    DayAggregate,
    OrphanPolicy,
    Session,
    SummaryStats,
    Vision,
    VisionMinutes,
    WeekWindow,
    Win,
    parse_timestamp,
)

ONE_DAY = timedelta(days=1)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves going up (2.5 -> 3)."""
    return math.floor(value + 0.5)


def local_naive(value: str | datetime | date, tz: tzinfo | None = None) -> datetime:
    """Return ``value`` as a naive local datetime so mixed inputs compare."""
    dt = parse_timestamp(value)
    if dt.tzinfo is not None:
        dt = dt.astimezone(tz).replace(tzinfo=None)
    return dt


def _vision_index(visions: Iterable[Vision] | None) -> dict[str, Vision] | None:
    if visions is None:
        return None
    return {v.id: v for v in visions}


def _vision_meta(index: dict[str, Vision] | None, vision_id: str) -> tuple[str, str] | None:
    """Return (name, color) for a vision id, or None for an orphan."""
    if index is None:
        return (vision_id, "")
    vision = index.get(vision_id)
    if vision is None:
        return None
    return (vision.name, vision.color)


def total_minutes(sessions: Iterable[Session]) -> int:
    return sum(s.duration_minutes for s in sessions)


def aggregate_by_day(
    sessions: Iterable[Session],
    visions: Iterable[Vision] | None = None,
    policy: OrphanPolicy = OrphanPolicy.BREAKDOWN_ONLY,
    tz: tzinfo | None = None,
) -> dict[str, DayAggregate]:
    """Group sessions by local day, summing minutes per day and per vision.

    When ``visions`` is None every vision id is treated as known (its id
    doubles as its name). Otherwise sessions whose vision is missing are
    handled according to ``policy``. Keys are returned in date order.
    """
    index = _vision_index(visions)
    totals: dict[str, int] = {}
    breakdown: dict[str, dict[str, VisionMinutes]] = {}

    for session in sessions:
        meta = _vision_meta(index, session.vision_id)
        if meta is None and policy is OrphanPolicy.EXCLUDE:
            continue

        key = day_key(session.completed_at, tz)
        totals[key] = totals.get(key, 0) + session.duration_minutes
        per_vision = breakdown.setdefault(key, {})
        if meta is None:
            continue

        name, color = meta
        existing = per_vision.get(session.vision_id)
        minutes = session.duration_minutes + (existing.minutes if existing else 0)
        per_vision[session.vision_id] = VisionMinutes(minutes=minutes, name=name, color=color)

    return {
        key: DayAggregate(date=key, total_minutes=totals[key], per_vision=breakdown[key])
        for key in sorted(totals)
    }


def week_window(
    sessions: Iterable[Session],
    now: datetime | date | str,
    week_offset: int = 0,
    visions: Iterable[Vision] | None = None,
    policy: OrphanPolicy = OrphanPolicy.BREAKDOWN_ONLY,
    tz: tzinfo | None = None,
) -> WeekWindow:
    """Return the 7 days (Sunday first) of the week ``week_offset`` weeks from now.

    Days without sessions are zero-filled.
    """
    start, _ = week_range(week_offset, now, tz)
    by_day = aggregate_by_day(sessions, visions, policy, tz)

    days: list[DayAggregate] = []
    for i, name in enumerate(DAY_NAMES):
        key = add_days(start, i)
        agg = by_day.get(key)
        if agg is None:
            days.append(DayAggregate(date=key, day_name=name))
        else:
            days.append(replace(agg, day_name=name))

    return WeekWindow(offset=week_offset, start=start, days=days)


def elapsed_days(
    start: datetime | date | str,
    end: datetime | date | str,
    tz: tzinfo | None = None,
) -> int:
    """Days from ``start`` to ``end``, counting the start day. Never below 1."""
    delta = local_naive(end, tz) - local_naive(start, tz)
    return max(1, math.floor(delta / ONE_DAY) + 1)


def daily_average(sessions: Iterable[Session], window_days: int) -> int:
    """Average minutes per day over ``window_days`` (floored to 1)."""
    return round_half_up(total_minutes(sessions) / max(1, window_days))


def summary_stats(
    sessions: Iterable[Session],
    now: datetime | date | str,
    joined_at: datetime | date | str | None = None,
    tz: tzinfo | None = None,
) -> SummaryStats:
    """Overall numbers for the productivity header.

    The window starts at the earlier of the first session and ``joined_at``.
    """
    sessions = list(sessions)
    if not sessions:
        return SummaryStats(total_hours=0, days_since_start=1, active_days=0, daily_average=0)

    minutes = total_minutes(sessions)
    earliest = min(local_naive(s.completed_at, tz) for s in sessions)
    if joined_at is not None:
        earliest = min(earliest, local_naive(joined_at, tz))

    days = elapsed_days(earliest, now, tz)
    return SummaryStats(
        total_hours=round_half_up(minutes / 60),
        days_since_start=days,
        active_days=len({day_key(s.completed_at, tz) for s in sessions}),
        daily_average=daily_average(sessions, days),
    )


def sessions_for_date(
    sessions: Iterable[Session], day: str | datetime | date, tz: tzinfo | None = None
) -> list[Session]:
    """Return the sessions logged on a given local day, in input order."""
    target = day_key(day, tz)
    return [s for s in sessions if day_key(s.completed_at, tz) == target]


def filter_until(
    sessions: Iterable[Session], cutoff: datetime | date | str, tz: tzinfo | None = None
) -> list[Session]:
    """Keep sessions logged on or before the cutoff day (e.g. a graduation date)."""
    last_day = day_key(cutoff, tz)
    return [s for s in sessions if day_key(s.completed_at, tz) <= last_day]


def wall_of_fame(
    sessions: Iterable[Session],
    visions: Iterable[Vision] | None = None,
    vision_id: str | None = None,
    tz: tzinfo | None = None,
) -> list[Win]:
    """Sessions annotated with a major win, newest first.

    Sessions whose vision is absent from ``visions`` are skipped.
    """
    index = _vision_index(visions)
    wins: list[Win] = []
    for session in sessions:
        title = (session.major_win or "").strip()
        if not title:
            continue
        if vision_id is not None and session.vision_id != vision_id:
            continue
        meta = _vision_meta(index, session.vision_id)
        if meta is None:
            continue
        wins.append(
            Win(
                title=title,
                completed_at=session.completed_at,
                vision_id=session.vision_id,
                vision_name=meta[0],
                vision_color=meta[1],
            )
        )
    wins.sort(key=lambda w: local_naive(w.completed_at, tz), reverse=True)
    return wins
