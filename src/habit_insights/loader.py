"""Load a habit-tracking snapshot exported from the app's database.

The snapshot is a JSON object holding the rows of the visions, habits and
focus_sessions tables (column names as keys), plus an optional user object:

    {
      "user": {"created_at": "2024-01-01T09:00:00Z"},
      "visions": [{"id": "v1", "name": "Guitar", "color": "#329BA4", ...}],
      "habits": [{"id": "h1", "vision_id": "v1", "name": "Scales", ...}],
      "focus_sessions": [{"id": "s1", "habit_id": "h1", "vision_id": "v1",
                          "completed_at": "...", "duration_minutes": 30}]
    }
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from habit_insights.logging_config import get_logger
from habit_insights.models import Habit, Session, Status, Vision, parse_timestamp

logger = get_logger(__name__)


class SnapshotError(ValueError):
    """Raised when a snapshot file cannot be read into valid records."""


@dataclass
class Snapshot:
    visions: list[Vision] = field(default_factory=list)
    habits: list[Habit] = field(default_factory=list)
    sessions: list[Session] = field(default_factory=list)
    joined_at: datetime | None = None

    def visible_visions(self) -> list[Vision]:
        """Active visions first, then graduated ones; deleted visions are hidden."""
        active = [v for v in self.visions if v.status is Status.ACTIVE]
        graduated = [v for v in self.visions if v.status is Status.GRADUATED]
        return active + graduated

    def get_vision(self, vision_id: str) -> Vision | None:
        return next((v for v in self.visions if v.id == vision_id), None)

    def habits_for(self, vision_id: str) -> list[Habit]:
        return [h for h in self.habits if h.vision_id == vision_id and h.status is not Status.DELETED]

    def sessions_for_vision(self, vision_id: str) -> list[Session]:
        return [s for s in self.sessions if s.vision_id == vision_id]


def _flatten_session_row(row: dict) -> dict:
    """Fill habit_id / vision_id from joined ``habit`` / ``vision`` objects."""
    flat = dict(row)
    for key in ("habit", "vision"):
        nested = row.get(key)
        if isinstance(nested, dict) and not flat.get(f"{key}_id") and nested.get("id"):
            flat[f"{key}_id"] = nested["id"]
    return flat


def _build(rows: object, factory, table: str) -> list:
    if rows is None:
        return []
    if not isinstance(rows, list):
        raise SnapshotError(f"'{table}' must be a list of rows")
    records = []
    for i, row in enumerate(rows):
        if not isinstance(row, dict):
            raise SnapshotError(f"{table}[{i}] is not an object")
        try:
            records.append(factory(row))
        except ValueError as exc:
            raise SnapshotError(f"{table}[{i}]: {exc}") from exc
    return records


def parse_snapshot(raw: object) -> Snapshot:
    """Validate decoded snapshot JSON into a Snapshot. Raises SnapshotError."""
    if not isinstance(raw, dict):
        raise SnapshotError("Snapshot must be a JSON object")

    session_rows = raw.get("focus_sessions", raw.get("sessions"))
    if isinstance(session_rows, list):
        session_rows = [_flatten_session_row(r) if isinstance(r, dict) else r for r in session_rows]

    joined_at = None
    user = raw.get("user")
    if isinstance(user, dict) and user.get("created_at"):
        try:
            joined_at = parse_timestamp(user["created_at"])
        except ValueError as exc:
            raise SnapshotError(f"user.created_at: {exc}") from exc

    return Snapshot(
        visions=_build(raw.get("visions"), Vision.from_row, "visions"),
        habits=_build(raw.get("habits"), Habit.from_row, "habits"),
        sessions=_build(session_rows, Session.from_row, "focus_sessions"),
        joined_at=joined_at,
    )


class SnapshotLoader:
    def __init__(self, path: Path):
        self.path = path

    def load(self) -> Snapshot | None:
        """Read and validate the snapshot file.

        Returns None if the file doesn't exist. Raises SnapshotError if it
        exists but is not valid JSON or contains invalid rows.
        """
        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.info("snapshot_missing", path=str(self.path))
            return None

        try:
            raw = json.loads(text)
        except json.JSONDecodeError as exc:
            raise SnapshotError(f"{self.path}: invalid JSON ({exc.msg} at line {exc.lineno})") from exc

        snapshot = parse_snapshot(raw)
        logger.debug(
            "snapshot_loaded",
            path=str(self.path),
            visions=len(snapshot.visions),
            habits=len(snapshot.habits),
            sessions=len(snapshot.sessions),
        )
        return snapshot
