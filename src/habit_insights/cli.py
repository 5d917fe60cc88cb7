"""CLI commands for habit-insights."""

from __future__ import annotations

import argparse
from datetime import datetime
from pathlib import Path

from habit_insights.config import get_data_path, get_orphan_policy, set_data_path
from habit_insights.display import (
    console,
    print_error,
    print_heatmap,
    print_mastery,
    print_no_data_message,
    print_rankings,
    print_streaks,
    print_summary,
    print_week,
    print_wins,
)
from habit_insights.loader import Snapshot, SnapshotLoader
from habit_insights.logging_config import get_logger, setup_logging
from habit_insights.models import OrphanPolicy, parse_timestamp
from habit_insights.reports import (
    build_heatmap,
    build_mastery,
    build_rankings,
    build_streaks,
    build_summary,
    build_week,
    build_wins,
)

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Build and return the argument parser."""
    parser = argparse.ArgumentParser(
        prog="habit-insights",
        description="Streaks, weekly totals and mastery stats from your focus sessions",
    )
    parser.add_argument("--data", default=None, help="Path to the snapshot JSON file")
    parser.add_argument("--now", default=None, help="Evaluate as of this ISO timestamp")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging to stderr")
    subparsers = parser.add_subparsers(dest="command")
    subparsers.add_parser("summary", help="Overall productivity summary")
    week_parser = subparsers.add_parser("week", help="Daily totals for one week")
    week_parser.add_argument("--offset", type=int, default=0, help="Weeks from this week (-1 = last week)")
    week_parser.add_argument("--date", default=None, help="Show the week containing this date (YYYY-MM-DD)")
    subparsers.add_parser("rankings", help="Visions ranked by active days")
    heatmap_parser = subparsers.add_parser("heatmap", help="Calendar heatmap for a vision")
    heatmap_parser.add_argument("--vision", default=None, help="Vision id (default: first vision)")
    heatmap_parser.add_argument("--habit", default=None, help="Only count this habit")
    heatmap_parser.add_argument("--month", default=None, help="Month as YYYY-MM")
    mastery_parser = subparsers.add_parser("mastery", help="Mastery hours for a vision")
    mastery_parser.add_argument("--vision", default=None, help="Vision id (default: first vision)")
    subparsers.add_parser("streaks", help="Current and longest streak per habit")
    wins_parser = subparsers.add_parser("wins", help="Wall of fame")
    wins_parser.add_argument("--vision", default=None, help="Only wins for this vision")
    config_parser = subparsers.add_parser("config", help="Configure habit-insights")
    config_sub = config_parser.add_subparsers(dest="config_command")
    set_data_p = config_sub.add_parser("set-data", help="Remember the snapshot path")
    set_data_p.add_argument("path", help="Path to the snapshot JSON file")
    return parser


def resolve_now(raw: str | None) -> datetime:
    """Parse --now, or read the clock once for this invocation."""
    if raw:
        return parse_timestamp(raw)
    return datetime.now()


def main(argv: list[str] | None = None) -> None:
    """Entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)
    command = args.command or "summary"

    setup_logging(level="DEBUG" if args.verbose else None)

    if command == "config":
        if args.config_command == "set-data":
            do_set_data(args.path)
        else:
            print_error("Usage: habit-insights config set-data <path>")
        return

    data_path = Path(args.data).expanduser() if args.data else get_data_path()
    try:
        now = resolve_now(args.now)
        snapshot = SnapshotLoader(data_path).load()
    except ValueError as exc:
        print_error(str(exc))
        raise SystemExit(1) from exc

    if snapshot is None:
        print_no_data_message(str(data_path))
        return

    policy = get_orphan_policy()
    logger.debug("command_start", command=command, now=now.isoformat(), policy=policy.value)

    try:
        if command == "summary":
            do_summary(snapshot, now, policy)
        elif command == "week":
            do_week(snapshot, now, offset=args.offset, on_date=args.date, policy=policy)
        elif command == "rankings":
            do_rankings(snapshot)
        elif command == "heatmap":
            do_heatmap(snapshot, now, vision_id=args.vision, habit_id=args.habit, month=args.month)
        elif command == "mastery":
            do_mastery(snapshot, now, vision_id=args.vision)
        elif command == "streaks":
            do_streaks(snapshot, now)
        elif command == "wins":
            do_wins(snapshot, vision_id=args.vision)
    except ValueError as exc:
        print_error(str(exc))
        raise SystemExit(1) from exc


def do_summary(snapshot: Snapshot, now: datetime, policy: OrphanPolicy = OrphanPolicy.BREAKDOWN_ONLY) -> dict:
    result = build_summary(snapshot, now, policy)
    print_summary(result)
    return result


def do_week(
    snapshot: Snapshot,
    now: datetime,
    offset: int = 0,
    on_date: str | None = None,
    policy: OrphanPolicy = OrphanPolicy.BREAKDOWN_ONLY,
) -> dict:
    result = build_week(snapshot, now, offset=offset, on_date=on_date, policy=policy)
    print_week(result["week"], result["scale"], result["label"])
    return result


def do_rankings(snapshot: Snapshot) -> dict:
    result = build_rankings(snapshot)
    print_rankings(result["rankings"])
    return result


def do_heatmap(
    snapshot: Snapshot,
    now: datetime,
    vision_id: str | None = None,
    habit_id: str | None = None,
    month: str | None = None,
) -> dict:
    result = build_heatmap(snapshot, now, vision_id=vision_id, habit_id=habit_id, month=month)
    vision = result["vision"]
    title = f"{vision.name} - {datetime(result['year'], result['month'], 1).strftime('%B %Y')}"
    print_heatmap(result["grid"], title, vision.color)
    return result


def do_mastery(snapshot: Snapshot, now: datetime, vision_id: str | None = None) -> dict:
    result = build_mastery(snapshot, now, vision_id=vision_id)
    print_mastery(result["vision"].name, result["mastery"], result["stats"])
    return result


def do_streaks(snapshot: Snapshot, now: datetime) -> dict:
    result = build_streaks(snapshot, now)
    print_streaks(result["habits"])
    return result


def do_wins(snapshot: Snapshot, vision_id: str | None = None) -> dict:
    result = build_wins(snapshot, vision_id=vision_id)
    print_wins(result["wins"])
    return result


def do_set_data(path: str, config_path: Path | None = None) -> dict:
    """Remember the snapshot path in the config file."""
    expanded = Path(path).expanduser().resolve()
    set_data_path(expanded, config_path)
    console.print(f"Snapshot path set to [bold]{expanded}[/]")
    return {"ok": True, "data_path": str(expanded)}


if __name__ == "__main__":
    main()
