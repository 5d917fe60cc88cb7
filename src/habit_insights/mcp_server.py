"""MCP server for habit-insights.

Exposes the analytics as MCP tools so an assistant can answer questions about
streaks, weekly totals and mastery mid-conversation.
Run via: python3 -m habit_insights.mcp_server
"""
from __future__ import annotations

import dataclasses
from datetime import date, datetime
from enum import Enum
from typing import Any

from mcp.server.fastmcp import FastMCP

from habit_insights.config import get_data_path, get_orphan_policy
from habit_insights.loader import Snapshot, SnapshotError, SnapshotLoader
from habit_insights.logging_config import setup_logging

mcp = FastMCP(name="habit-insights")

NO_DATA_ERROR = "No snapshot found. Run: habit-insights config set-data <path>"


def _load_snapshot() -> Snapshot | None:
    return SnapshotLoader(get_data_path()).load()


def _now() -> datetime:
    return datetime.now()


def to_jsonable(value: Any) -> Any:
    """Convert dataclasses, dates and enums into plain JSON values."""
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: to_jsonable(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, dict):
        return {str(k): to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_jsonable(v) for v in value]
    return value


def _run(builder, *args: Any, **kwargs: Any) -> dict[str, Any]:
    """Load the snapshot, call a report builder and serialize its result."""
    try:
        snapshot = _load_snapshot()
    except SnapshotError as exc:
        return {"error": str(exc)}
    if snapshot is None:
        return {"error": NO_DATA_ERROR}
    try:
        return to_jsonable(builder(snapshot, *args, **kwargs))
    except ValueError as exc:
        return {"error": str(exc)}


@mcp.tool()
def get_summary() -> dict[str, Any]:
    """Overall productivity: total hours, active days, daily average, streak and vision rankings."""
    from habit_insights.reports import build_summary
    return _run(build_summary, _now(), get_orphan_policy())


@mcp.tool()
def get_streaks() -> dict[str, Any]:
    """Current and longest streak for every active habit, plus minutes logged today."""
    from habit_insights.reports import build_streaks
    return _run(build_streaks, _now())


@mcp.tool()
def get_week(offset: int = 0) -> dict[str, Any]:
    """Daily minutes for one week (Sunday first). offset: 0 this week, -1 last week."""
    from habit_insights.reports import build_week
    return _run(build_week, _now(), offset=offset, policy=get_orphan_policy())


@mcp.tool()
def get_rankings() -> dict[str, Any]:
    """Visions ranked by number of days with at least one focus session."""
    from habit_insights.reports import build_rankings
    return _run(build_rankings)


@mcp.tool()
def get_heatmap(vision_id: str = "", month: str = "", habit_id: str = "") -> dict[str, Any]:
    """Calendar heatmap for a vision.

    vision_id: defaults to the first vision.
    month: YYYY-MM, defaults to the current month (last active month for graduated visions).
    habit_id: only count sessions of this habit.
    """
    from habit_insights.reports import build_heatmap
    return _run(
        build_heatmap, _now(),
        vision_id=vision_id or None, habit_id=habit_id or None, month=month or None,
    )


@mcp.tool()
def get_mastery(vision_id: str = "") -> dict[str, Any]:
    """Mastery hours in days/months for a vision, with engaged days and streak."""
    from habit_insights.reports import build_mastery
    return _run(build_mastery, _now(), vision_id=vision_id or None)


@mcp.tool()
def get_wins(vision_id: str = "") -> dict[str, Any]:
    """Wall of fame: sessions marked with a major win, newest first."""
    from habit_insights.reports import build_wins
    return _run(build_wins, vision_id=vision_id or None)


def main() -> None:
    # stdout carries the MCP protocol; logs must go to stderr
    setup_logging()
    mcp.run()


if __name__ == "__main__":
    main()
