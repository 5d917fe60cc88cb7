"""Screen-level reports built from a snapshot.

Each ``build_*`` function gathers what one app screen shows (productivity
overview, weekly chart, heatmap, mastery, home-screen streaks, wall of fame)
by calling the analytics functions with the right session subset. They take
``now`` as a parameter and never print; the CLI and MCP server render them.
"""

from __future__ import annotations

from datetime import datetime

from habit_insights.aggregation import (
    filter_until,
    local_naive,
    sessions_for_date,
    summary_stats,
    total_minutes,
    wall_of_fame,
    week_window,
)
from habit_insights.dates import active_months, day_key, to_date, week_label, week_offset_for
from habit_insights.loader import Snapshot
from habit_insights.mastery import mastery_window, vision_mastery
from habit_insights.models import OrphanPolicy, Session, Status, Vision
from habit_insights.ranking import chart_scale, heatmap_month, rank_visions
from habit_insights.streaks import calculate_streak, habit_streaks


def scoped_sessions(snapshot: Snapshot, policy: OrphanPolicy) -> list[Session]:
    """All sessions, or only those of visible visions under OrphanPolicy.EXCLUDE."""
    if policy is OrphanPolicy.BREAKDOWN_ONLY:
        return list(snapshot.sessions)
    visible = {v.id for v in snapshot.visible_visions()}
    return [s for s in snapshot.sessions if s.vision_id in visible]


def pick_vision(snapshot: Snapshot, vision_id: str | None) -> Vision:
    """Return the requested visible vision, or the first one when no id is given.

    Raises ValueError when there is no such vision.
    """
    if vision_id is None:
        visions = snapshot.visible_visions()
        if not visions:
            raise ValueError("No visions yet. Create your first vision to start tracking your mastery journey!")
        return visions[0]
    vision = snapshot.get_vision(vision_id)
    if vision is None or vision.status is Status.DELETED:
        raise ValueError(f"Unknown vision: {vision_id}")
    return vision


def vision_sessions(snapshot: Snapshot, vision: Vision) -> list[Session]:
    """A vision's sessions; graduated visions are frozen at their graduation day."""
    sessions = snapshot.sessions_for_vision(vision.id)
    if vision.status is Status.GRADUATED and vision.graduated_at is not None:
        sessions = filter_until(sessions, vision.graduated_at)
    return sessions


def parse_month(raw: str) -> tuple[int, int]:
    """Parse 'YYYY-MM' into (year, month). Raises ValueError."""
    try:
        year_str, month_str = raw.split("-")
        year, month = int(year_str), int(month_str)
    except ValueError:
        raise ValueError(f"Invalid month {raw!r}, expected YYYY-MM") from None
    if not 1 <= month <= 12:
        raise ValueError(f"Invalid month {raw!r}, expected YYYY-MM")
    return year, month


def default_heatmap_month(snapshot: Snapshot, vision: Vision, now: datetime) -> tuple[int, int]:
    """Current month for active visions, last active month for graduated ones."""
    sessions = vision_sessions(snapshot, vision)
    if vision.status is Status.GRADUATED and sessions:
        months = active_months(sessions)
        last_year = max(months)
        return last_year, months[last_year][-1]
    today = to_date(now)
    return today.year, today.month


def build_summary(
    snapshot: Snapshot, now: datetime, policy: OrphanPolicy = OrphanPolicy.BREAKDOWN_ONLY
) -> dict:
    """Overall stats, mastery header, streak and vision rankings."""
    sessions = scoped_sessions(snapshot, policy)
    stats = summary_stats(sessions, now, joined_at=snapshot.joined_at)

    starts = [local_naive(s.completed_at) for s in sessions]
    if snapshot.joined_at is not None:
        starts.append(local_naive(snapshot.joined_at))
    start = min(starts) if starts else now

    return {
        "stats": stats,
        "mastery": mastery_window(total_minutes(sessions), start, now),
        "streak": calculate_streak(sessions, now),
        "rankings": rank_visions(sessions, snapshot.visible_visions()),
    }


def build_week(
    snapshot: Snapshot,
    now: datetime,
    offset: int = 0,
    on_date: str | None = None,
    policy: OrphanPolicy = OrphanPolicy.BREAKDOWN_ONLY,
) -> dict:
    """Seven days of totals with per-vision breakdown and the chart scale.

    ``on_date`` overrides ``offset`` with the week containing that date.
    """
    if on_date:
        offset = week_offset_for(on_date, now)
    week = week_window(scoped_sessions(snapshot, policy), now, offset, snapshot.visible_visions(), policy)
    return {"week": week, "scale": chart_scale(week), "label": week_label(offset)}


def build_rankings(snapshot: Snapshot) -> dict:
    return {"rankings": rank_visions(snapshot.sessions, snapshot.visible_visions())}


def build_heatmap(
    snapshot: Snapshot,
    now: datetime,
    vision_id: str | None = None,
    habit_id: str | None = None,
    month: str | None = None,
) -> dict:
    """Month heatmap for a vision, optionally narrowed to one habit."""
    vision = pick_vision(snapshot, vision_id)
    year, month_num = parse_month(month) if month else default_heatmap_month(snapshot, vision, now)
    sessions = vision_sessions(snapshot, vision)
    return {
        "vision": vision,
        "year": year,
        "month": month_num,
        "grid": heatmap_month(sessions, year, month_num, habit_id=habit_id),
        "months": active_months(sessions, today=None if vision.status is Status.GRADUATED else now),
    }


def build_mastery(snapshot: Snapshot, now: datetime, vision_id: str | None = None) -> dict:
    """Mastery window, engagement stats and streak for one vision."""
    vision = pick_vision(snapshot, vision_id)
    sessions = vision_sessions(snapshot, vision)
    end = vision.graduated_at if vision.graduated_at is not None else now
    return {
        "vision": vision,
        "mastery": vision_mastery(vision, sessions, now),
        "stats": summary_stats(sessions, end, joined_at=vision.created_at),
        "streak": calculate_streak(sessions, now),
    }


def build_streaks(snapshot: Snapshot, now: datetime) -> dict:
    """Streak and time today per active habit of active visions."""
    active_visions = {v.id: v for v in snapshot.visions if v.status is Status.ACTIVE}
    habits = [
        h for vid in active_visions for h in snapshot.habits_for(vid) if h.status is Status.ACTIVE
    ]
    streaks = habit_streaks(snapshot.sessions, [h.id for h in habits], now)
    today_sessions = sessions_for_date(snapshot.sessions, now)

    rows = []
    for habit in habits:
        vision = active_visions[habit.vision_id]
        minutes_today = sum(s.duration_minutes for s in today_sessions if s.habit_id == habit.id)
        rows.append({
            "habit_id": habit.id,
            "habit": habit.name,
            "vision": vision.name,
            "color": vision.color,
            "current": streaks[habit.id].current,
            "longest": streaks[habit.id].longest,
            "active_today": any(s.habit_id == habit.id for s in today_sessions),
            "minutes_today": minutes_today,
        })
    return {"today": day_key(now), "habits": rows}


def build_wins(snapshot: Snapshot, vision_id: str | None = None) -> dict:
    return {"wins": wall_of_fame(snapshot.sessions, snapshot.visible_visions(), vision_id=vision_id)}
