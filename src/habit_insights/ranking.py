"""Vision rankings, calendar heatmap levels and chart scaling.

Pure functions over session records; colours are left to the presentation
layer, which only receives discrete levels.
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from datetime import tzinfo

from habit_insights.dates import day_key, month_grid
from habit_insights.models import (
    ChartScale,
    HeatmapCell,
    Session,
    Vision,
    VisionRanking,
    WeekWindow,
)

# Lower bound (minutes) -> intensity level, highest first.
INTENSITY_THRESHOLDS: list[tuple[int, int]] = [
    (120, 5),
    (60, 4),
    (30, 3),
    (15, 2),
    (1, 1),
]

MAX_INTENSITY = 5

# Y-axis ceilings for the weekly chart, in minutes (5h, 10h, 15h, 20h, 25h).
CHART_CEILINGS: list[int] = [300, 600, 900, 1200, 1500]


def rank_visions(
    sessions: Iterable[Session],
    visions: Iterable[Vision] | None = None,
    tz: tzinfo | None = None,
) -> list[VisionRanking]:
    """Rank visions by number of distinct active days, descending.

    Ranks are dense, 1-based. Ties keep input order: the order of ``visions``
    when given, otherwise the order in which each vision first appears in
    ``sessions``. Visions without sessions are not ranked, and sessions for
    visions missing from ``visions`` are ignored.
    """
    days_by_vision: dict[str, set[str]] = {}
    for session in sessions:
        days_by_vision.setdefault(session.vision_id, set()).add(day_key(session.completed_at, tz))

    if visions is None:
        order = [(vid, vid, "") for vid in days_by_vision]
    else:
        seen: set[str] = set()
        order = []
        for vision in visions:
            if vision.id in days_by_vision and vision.id not in seen:
                seen.add(vision.id)
                order.append((vision.id, vision.name, vision.color))

    # sorted() is stable, so equal counts keep their relative order
    ranked = sorted(order, key=lambda item: -len(days_by_vision[item[0]]))
    return [
        VisionRanking(
            vision_id=vid,
            name=name,
            color=color,
            active_days=len(days_by_vision[vid]),
            rank=i + 1,
        )
        for i, (vid, name, color) in enumerate(ranked)
    ]


def intensity_level(minutes: int) -> int:
    """Map a day's total minutes to a heatmap level, 0 (inactive) to 5."""
    for lower_bound, level in INTENSITY_THRESHOLDS:
        if minutes >= lower_bound:
            return level
    return 0


def intensity_opacity(level: int) -> float:
    """Opacity step for a level: 1 -> 0.2 ... 5 -> 1.0, 0 -> 0.0."""
    level = max(0, min(level, MAX_INTENSITY))
    return round(level / MAX_INTENSITY, 1)


def heatmap_month(
    sessions: Iterable[Session],
    year: int,
    month: int,
    habit_id: str | None = None,
    tz: tzinfo | None = None,
) -> list[list[HeatmapCell | None]]:
    """Return the month grid with a HeatmapCell for every day of the month.

    Padding cells outside the month stay None. ``habit_id`` narrows the
    sessions to a single habit.
    """
    minutes_by_day: dict[str, int] = {}
    for session in sessions:
        if habit_id is not None and session.habit_id != habit_id:
            continue
        key = day_key(session.completed_at, tz)
        minutes_by_day[key] = minutes_by_day.get(key, 0) + session.duration_minutes

    rows: list[list[HeatmapCell | None]] = []
    for week in month_grid(year, month):
        row: list[HeatmapCell | None] = []
        for key in week:
            if key is None:
                row.append(None)
                continue
            minutes = minutes_by_day.get(key, 0)
            row.append(HeatmapCell(date=key, minutes=minutes, intensity_level=intensity_level(minutes)))
        rows.append(row)
    return rows


def chart_scale(week: WeekWindow) -> ChartScale:
    """Pick the y-axis ceiling and label interval for a week's chart."""
    peak = max((d.total_minutes for d in week.days), default=0)
    max_minutes = next((c for c in CHART_CEILINGS if peak <= c), CHART_CEILINGS[-1])
    max_hours = math.ceil(max_minutes / 60)
    return ChartScale(
        max_minutes=max_minutes,
        max_hours=max_hours,
        interval_hours=1 if max_hours <= 10 else 2,
    )
