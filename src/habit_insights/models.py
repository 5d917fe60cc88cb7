"""Record types for habit-insights.

Input records (Session, Vision, Habit) are validated once, at the boundary,
by their ``from_row`` constructors. Derived types are what the analytics
functions return; they are rebuilt on every call and never persisted.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum


class Status(str, Enum):
    ACTIVE = "active"
    GRADUATED = "graduated"
    DELETED = "deleted"


class OrphanPolicy(str, Enum):
    """How sessions whose vision is missing from the vision list are counted."""

    BREAKDOWN_ONLY = "breakdown_only"  # kept in day totals, left out of per_vision
    EXCLUDE = "exclude"  # dropped from totals as well


_FRACTION = re.compile(r"\.(\d+)")


def parse_timestamp(value: str | datetime | date) -> datetime:
    """Parse an ISO 8601 timestamp. A trailing 'Z' is read as UTC.

    A bare date becomes midnight of that date. Raises ValueError on garbage.
    """
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if not isinstance(value, str) or not value:
        raise ValueError(f"Invalid timestamp: {value!r}")
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    # Postgres drops trailing zeros; fromisoformat wants 3 or 6 digits before 3.11
    text = _FRACTION.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), text, count=1)
    return datetime.fromisoformat(text)


def _require(row: dict, key: str, kind: str) -> object:
    value = row.get(key)
    if value is None or value == "":
        raise ValueError(f"{kind} row is missing required field '{key}'")
    return value


def _parse_status(row: dict, kind: str) -> Status:
    raw = row.get("status", Status.ACTIVE.value)
    try:
        return Status(raw)
    except ValueError:
        raise ValueError(f"{kind} row has unknown status {raw!r}") from None


def _parse_graduated_at(row: dict, status: Status, kind: str) -> datetime | None:
    raw = row.get("graduated_at")
    if status is Status.GRADUATED and not raw:
        raise ValueError(f"{kind} row is graduated but has no graduated_at")
    return parse_timestamp(raw) if raw else None


@dataclass(frozen=True)
class Session:
    id: str
    habit_id: str
    vision_id: str
    completed_at: datetime
    duration_minutes: int
    major_win: str | None = None
    accomplishment: str = ""

    @classmethod
    def from_row(cls, row: dict) -> Session:
        """Build a Session from a focus_sessions row.

        Raises ValueError for missing ids, a missing or unparsable
        completed_at, or a negative / non-integer duration.
        """
        duration = row.get("duration_minutes", 0)
        if isinstance(duration, bool) or not isinstance(duration, int):
            raise ValueError(f"Session duration must be an integer, got {duration!r}")
        if duration < 0:
            raise ValueError(f"Session duration must be non-negative, got {duration}")
        return cls(
            id=str(_require(row, "id", "Session")),
            habit_id=str(_require(row, "habit_id", "Session")),
            vision_id=str(_require(row, "vision_id", "Session")),
            completed_at=parse_timestamp(_require(row, "completed_at", "Session")),
            duration_minutes=duration,
            major_win=row.get("major_win") or None,
            accomplishment=row.get("accomplishment") or "",
        )


@dataclass(frozen=True)
class Vision:
    id: str
    name: str
    color: str
    created_at: datetime
    status: Status = Status.ACTIVE
    graduated_at: datetime | None = None
    description: str = ""

    @classmethod
    def from_row(cls, row: dict) -> Vision:
        status = _parse_status(row, "Vision")
        return cls(
            id=str(_require(row, "id", "Vision")),
            name=str(_require(row, "name", "Vision")),
            color=row.get("color") or "",
            created_at=parse_timestamp(_require(row, "created_at", "Vision")),
            status=status,
            graduated_at=_parse_graduated_at(row, status, "Vision"),
            description=row.get("description") or "",
        )


@dataclass(frozen=True)
class Habit:
    id: str
    vision_id: str
    name: str
    created_at: datetime
    status: Status = Status.ACTIVE
    graduated_at: datetime | None = None

    @classmethod
    def from_row(cls, row: dict) -> Habit:
        status = _parse_status(row, "Habit")
        return cls(
            id=str(_require(row, "id", "Habit")),
            vision_id=str(_require(row, "vision_id", "Habit")),
            name=str(_require(row, "name", "Habit")),
            created_at=parse_timestamp(_require(row, "created_at", "Habit")),
            status=status,
            graduated_at=_parse_graduated_at(row, status, "Habit"),
        )


# Derived values


@dataclass(frozen=True)
class StreakResult:
    current: int
    longest: int


@dataclass(frozen=True)
class VisionMinutes:
    minutes: int
    name: str
    color: str


@dataclass(frozen=True)
class DayAggregate:
    date: str  # YYYY-MM-DD
    total_minutes: int = 0
    per_vision: dict[str, VisionMinutes] = field(default_factory=dict)
    day_name: str = ""


@dataclass(frozen=True)
class WeekWindow:
    offset: int
    start: str
    days: list[DayAggregate]

    @property
    def end(self) -> str:
        return self.days[-1].date

    @property
    def total_minutes(self) -> int:
        return sum(d.total_minutes for d in self.days)


@dataclass(frozen=True)
class VisionRanking:
    vision_id: str
    name: str
    color: str
    active_days: int
    rank: int


@dataclass(frozen=True)
class HeatmapCell:
    date: str
    minutes: int
    intensity_level: int  # 0 (inactive) to 5


@dataclass(frozen=True)
class ChartScale:
    max_minutes: int
    max_hours: int
    interval_hours: int


@dataclass(frozen=True)
class MasteryWindow:
    total_hours: int
    unit: str  # "days" | "months"
    unit_value: float
    show_full_days_caption: bool
    full_days: int


@dataclass(frozen=True)
class SummaryStats:
    total_hours: int
    days_since_start: int
    active_days: int
    daily_average: int  # minutes per day


@dataclass(frozen=True)
class Win:
    title: str
    completed_at: datetime
    vision_id: str
    vision_name: str
    vision_color: str
