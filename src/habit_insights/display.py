"""Rich terminal display for habit-insights."""

from __future__ import annotations

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from habit_insights.mastery import format_mastery, full_days_caption
from habit_insights.models import (
    ChartScale,
    HeatmapCell,
    MasteryWindow,
    SummaryStats,
    VisionRanking,
    WeekWindow,
    Win,
)

console = Console()

# Glyph per heatmap intensity level 0-5
LEVEL_GLYPHS: list[str] = ["·", "░", "▒", "▓", "█", "█"]

WEEKDAY_HEADERS: list[str] = ["S", "M", "T", "W", "T", "F", "S"]


def _safe_color(color: str) -> str:
    """Vision colors are hex strings; fall back to a neutral color when unset."""
    return color or "grey70"


def format_minutes(minutes: int) -> str:
    """Format a duration: 45 -> '45m', 90 -> '1h 30m', 120 -> '2h'."""
    hours, mins = divmod(minutes, 60)
    if hours and mins:
        return f"{hours}h {mins}m"
    if hours:
        return f"{hours}h"
    return f"{mins}m"


def _bar(current: int, total: int, width: int = 20) -> str:
    """Render a progress bar as text: [████████░░░░░░░░░░░░]."""
    if total <= 0:
        return "[" + "░" * width + "]"
    ratio = min(current / total, 1.0)
    filled = int(ratio * width)
    empty = width - filled
    return "[" + "█" * filled + "░" * empty + "]"


def print_summary(data: dict) -> None:
    """Print the productivity overview: mastery header, streak and rankings."""
    stats: SummaryStats = data["stats"]
    mastery: MasteryWindow = data["mastery"]
    rankings: list[VisionRanking] = data.get("rankings", [])
    streak = data.get("streak")

    lines: list[str] = []
    lines.append("")
    lines.append(f"  [bold]{format_mastery(mastery)}[/]")
    caption = full_days_caption(mastery)
    if caption:
        lines.append(f"  {caption}")
    lines.append("")
    lines.append(f"  Active days:   {stats.active_days}/{stats.days_since_start}")
    lines.append(f"  Daily average: {format_minutes(stats.daily_average)}")
    if streak is not None:
        lines.append(f"  \U0001f525 Streak: {streak.current} days  |  Best: {streak.longest} days")

    if rankings:
        lines.append("")
        lines.append("  [bold]Top Visions:[/]")
        for r in rankings[:5]:
            color = _safe_color(r.color)
            lines.append(f"  {r.rank}. [{color}]●[/] {r.name} ({r.active_days} days)")
    lines.append("")

    panel = Panel(
        "\n".join(lines),
        title="[bold]PRODUCTIVITY[/]",
        box=box.ROUNDED,
        border_style="cyan",
        width=50,
    )
    console.print(panel)


def print_week(week: WeekWindow, scale: ChartScale, label: str) -> None:
    """Print a week of daily totals with bars scaled to the chart ceiling."""
    table = Table(
        title=f"{label} ({week.start} to {week.end})",
        box=box.ROUNDED,
        show_header=True,
        header_style="bold",
    )
    table.add_column("Day", style="bold")
    table.add_column("Date")
    table.add_column("Time", justify="right")
    table.add_column(f"0 - {scale.max_hours}h", min_width=22)
    table.add_column("Visions")

    for day in week.days:
        visions = ", ".join(
            f"[{_safe_color(v.color)}]{v.name}[/] {format_minutes(v.minutes)}"
            for v in day.per_vision.values()
        )
        table.add_row(
            day.day_name,
            day.date,
            format_minutes(day.total_minutes),
            _bar(day.total_minutes, scale.max_minutes),
            visions,
        )

    table.add_section()
    table.add_row("Total", "", format_minutes(week.total_minutes), "", "")
    console.print(table)


def print_rankings(rankings: list[VisionRanking]) -> None:
    """Print visions ordered by number of active days."""
    table = Table(title="Vision Rankings", box=box.ROUNDED, show_header=True, header_style="bold")
    table.add_column("#", justify="right", width=3)
    table.add_column("Vision", min_width=20)
    table.add_column("Active Days", justify="right")

    for r in rankings:
        color = _safe_color(r.color)
        table.add_row(str(r.rank), f"[{color}]●[/] {r.name}", str(r.active_days))

    console.print(table)


def print_heatmap(grid: list[list[HeatmapCell | None]], title: str, color: str = "") -> None:
    """Print a month heatmap, one glyph per day shaded by intensity level."""
    color = _safe_color(color)
    table = Table(title=title, box=box.SIMPLE, show_header=True, header_style="bold")
    for header in WEEKDAY_HEADERS:
        table.add_column(header, justify="center", width=4)

    for week in grid:
        cells: list[str] = []
        for cell in week:
            if cell is None:
                cells.append("")
                continue
            day = int(cell.date[-2:])
            glyph = LEVEL_GLYPHS[cell.intensity_level]
            if cell.intensity_level == 0:
                cells.append(f"[grey50]{day}{glyph}[/]")
            else:
                cells.append(f"[{color}]{day}{glyph}[/]")
        table.add_row(*cells)

    console.print(table)


def print_mastery(name: str, window: MasteryWindow, stats: SummaryStats | None = None) -> None:
    """Print the mastery panel for one vision."""
    lines: list[str] = []
    lines.append("")
    lines.append(f"  [bold]{format_mastery(window)}[/]")
    caption = full_days_caption(window)
    if caption:
        lines.append(f"  {caption}")
    if stats is not None:
        lines.append("")
        lines.append(f"  Engaged days:  {stats.active_days} out of {stats.days_since_start}")
        lines.append(f"  Daily average: {format_minutes(stats.daily_average)}")
    lines.append("")

    panel = Panel(
        "\n".join(lines),
        title=f"[bold]{name}[/]",
        box=box.ROUNDED,
        border_style="yellow",
        width=50,
    )
    console.print(panel)


def print_streaks(rows: list[dict]) -> None:
    """Print one streak row per habit.

    Each dict has: habit, vision, color, current, longest, active_today.
    """
    table = Table(title="Habit Streaks", box=box.ROUNDED, show_header=True, header_style="bold")
    table.add_column("", width=2)
    table.add_column("Habit", min_width=16)
    table.add_column("Vision")
    table.add_column("Current", justify="right")
    table.add_column("Longest", justify="right")

    for row in rows:
        icon = "✅" if row.get("active_today") else "⏳"
        color = _safe_color(row.get("color", ""))
        table.add_row(
            icon,
            row["habit"],
            f"[{color}]{row.get('vision', '')}[/]",
            f"{row['current']} days",
            f"{row['longest']} days",
        )

    console.print(table)


def print_wins(wins: list[Win]) -> None:
    """Print the wall of fame."""
    if not wins:
        console.print("No achievements yet. Complete sessions with major wins to see them here!")
        return

    table = Table(title="Wall of Fame", box=box.ROUNDED, show_header=True, header_style="bold")
    table.add_column("Date", width=12)
    table.add_column("Win", min_width=24)
    table.add_column("Vision")

    for win in wins:
        color = _safe_color(win.vision_color)
        table.add_row(
            win.completed_at.strftime("%b %d"),
            f"\U0001f3c6 {win.title}",
            f"[{color}]{win.vision_name}[/]",
        )

    console.print(table)


def print_no_data_message(path: str) -> None:
    """Print message when no snapshot is available."""
    panel = Panel(
        f"\n  No snapshot found at [bold]{path}[/].\n"
        "  Export your data and run [bold]habit-insights config set-data <path>[/].\n",
        title="[bold]HABIT INSIGHTS[/]",
        box=box.ROUNDED,
        border_style="grey50",
        width=70,
    )
    console.print(panel)


def print_error(message: str) -> None:
    console.print(f"[red]{message}[/]")
