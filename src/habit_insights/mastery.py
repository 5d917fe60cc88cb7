"""Mastery time-window calculation. Pure functions, no side effects."""

from __future__ import annotations

import math
from collections.abc import Iterable
from datetime import date, datetime, tzinfo

from habit_insights.aggregation import elapsed_days, round_half_up, total_minutes
from habit_insights.models import MasteryWindow, Session, Vision

MONTHS_THRESHOLD_DAYS = 60
DAYS_PER_MONTH = 30
FULL_DAY_HOURS = 24


def months_from_days(days: int) -> float:
    """Days as months, rounded to the nearest half month: 45 -> 1.5."""
    return round_half_up(days / DAYS_PER_MONTH * 2) / 2


def mastery_window(
    minutes: int,
    created_at: datetime | date | str,
    now: datetime | date | str,
    ended_at: datetime | date | str | None = None,
    tz: tzinfo | None = None,
) -> MasteryWindow:
    """Build the "N hours in M days/months" model.

    The window runs from ``created_at`` to ``ended_at`` (graduation) when
    set, otherwise to ``now``. Under 60 days it is shown in days, from 60
    days on in half-month steps.
    """
    hours = round_half_up(minutes / 60)
    days = elapsed_days(created_at, ended_at if ended_at is not None else now, tz)

    if days < MONTHS_THRESHOLD_DAYS:
        unit, value = "days", float(days)
    else:
        unit, value = "months", months_from_days(days)

    return MasteryWindow(
        total_hours=hours,
        unit=unit,
        unit_value=value,
        show_full_days_caption=hours >= FULL_DAY_HOURS,
        full_days=math.floor(hours / FULL_DAY_HOURS),
    )


def vision_mastery(
    vision: Vision,
    sessions: Iterable[Session],
    now: datetime | date | str,
    tz: tzinfo | None = None,
) -> MasteryWindow:
    """Mastery window for one vision; graduated visions stop at graduated_at."""
    own = [s for s in sessions if s.vision_id == vision.id]
    return mastery_window(total_minutes(own), vision.created_at, now, vision.graduated_at, tz)


def _plural(value: float, singular: str, plural: str) -> str:
    return singular if value == 1 else plural


def format_value(value: float) -> str:
    """2.0 -> '2', 2.5 -> '2.5'."""
    return str(int(value)) if float(value).is_integer() else f"{value:g}"


def format_mastery(window: MasteryWindow) -> str:
    """Render a window as text: '12 hours in 45 days', '120 hours in 2.5 months'."""
    hours = f"{window.total_hours} {_plural(window.total_hours, 'hour', 'hours')}"
    unit_singular = window.unit[:-1]
    span = f"{format_value(window.unit_value)} {_plural(window.unit_value, unit_singular, window.unit)}"
    return f"{hours} in {span}"


def full_days_caption(window: MasteryWindow) -> str | None:
    """Return the full-days caption once 24 hours are logged, else None."""
    if not window.show_full_days_caption:
        return None
    return f"That's {window.full_days} full {_plural(window.full_days, 'day', 'days')}!"
