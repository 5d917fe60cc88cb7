"""Tests for CLI commands and argument parsing."""
from __future__ import annotations

import json
from datetime import datetime
from unittest.mock import patch

import pytest

from habit_insights.cli import (
    build_parser,
    do_heatmap,
    do_mastery,
    do_rankings,
    do_set_data,
    do_streaks,
    do_summary,
    do_week,
    do_wins,
    main,
    resolve_now,
)
from habit_insights.config import load_config
from habit_insights.display import format_minutes
from habit_insights.loader import parse_snapshot
from habit_insights.models import OrphanPolicy

NOW = datetime(2024, 3, 3, 12, 0)

RAW_SNAPSHOT = {
    "user": {"created_at": "2024-02-01T08:00:00"},
    "visions": [
        {"id": "A", "name": "Writing", "color": "#ff0000", "created_at": "2024-02-01"},
        {"id": "B", "name": "Running", "color": "#00ff00", "created_at": "2024-02-01"},
    ],
    "habits": [
        {"id": "hA", "vision_id": "A", "name": "Draft", "created_at": "2024-02-01"},
        {"id": "hB", "vision_id": "B", "name": "5k", "created_at": "2024-02-01"},
    ],
    "focus_sessions": [
        {"id": "s1", "habit_id": "hA", "vision_id": "A",
         "completed_at": "2024-03-01T09:00:00", "duration_minutes": 30},
        {"id": "s2", "habit_id": "hA", "vision_id": "A",
         "completed_at": "2024-03-02T10:00:00", "duration_minutes": 45, "major_win": "Chapter one"},
        {"id": "s3", "habit_id": "hB", "vision_id": "B",
         "completed_at": "2024-03-02T18:00:00", "duration_minutes": 10},
    ],
}


@pytest.fixture
def snapshot():
    return parse_snapshot(RAW_SNAPSHOT)


@pytest.fixture
def data_file(tmp_path):
    path = tmp_path / "snapshot.json"
    path.write_text(json.dumps(RAW_SNAPSHOT), encoding="utf-8")
    return path


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------

class TestArgumentParsing:
    def test_no_args_defaults_to_none_command(self):
        args = build_parser().parse_args([])
        assert args.command is None

    def test_week_defaults(self):
        args = build_parser().parse_args(["week"])
        assert args.command == "week"
        assert args.offset == 0
        assert args.date is None

    def test_week_offset(self):
        args = build_parser().parse_args(["week", "--offset", "-2"])
        assert args.offset == -2

    def test_heatmap_options(self):
        args = build_parser().parse_args(["heatmap", "--vision", "A", "--habit", "hA", "--month", "2024-03"])
        assert (args.vision, args.habit, args.month) == ("A", "hA", "2024-03")

    def test_global_options(self):
        args = build_parser().parse_args(["--data", "/tmp/s.json", "--now", "2024-03-03T12:00:00", "-v", "streaks"])
        assert args.data == "/tmp/s.json"
        assert args.now == "2024-03-03T12:00:00"
        assert args.verbose is True
        assert args.command == "streaks"

    def test_config_set_data(self):
        args = build_parser().parse_args(["config", "set-data", "~/export.json"])
        assert args.config_command == "set-data"
        assert args.path == "~/export.json"

    def test_invalid_command_raises(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["nonexistent"])


class TestResolveNow:
    def test_parses_timestamp(self):
        assert resolve_now("2024-03-03T12:00:00") == NOW

    def test_defaults_to_clock(self):
        assert isinstance(resolve_now(None), datetime)

    def test_invalid(self):
        with pytest.raises(ValueError):
            resolve_now("later")


class TestFormatMinutes:
    def test_minutes_only(self):
        assert format_minutes(45) == "45m"

    def test_hours_and_minutes(self):
        assert format_minutes(90) == "1h 30m"

    def test_whole_hours(self):
        assert format_minutes(120) == "2h"

    def test_zero(self):
        assert format_minutes(0) == "0m"


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

class TestDoCommands:
    def test_summary(self, snapshot):
        result = do_summary(snapshot, NOW)
        assert result["stats"].total_hours == 1
        assert [r.vision_id for r in result["rankings"]] == ["A", "B"]

    def test_week(self, snapshot):
        result = do_week(snapshot, NOW, offset=-1)
        assert result["week"].days[6].total_minutes == 55
        assert result["label"] == "Last Week"

    def test_week_on_date(self, snapshot):
        assert do_week(snapshot, NOW, on_date="2024-03-02")["week"].start == "2024-02-25"

    def test_rankings(self, snapshot):
        assert [r.rank for r in do_rankings(snapshot)["rankings"]] == [1, 2]

    def test_heatmap(self, snapshot):
        result = do_heatmap(snapshot, NOW, vision_id="B")
        assert result["vision"].name == "Running"
        assert (result["year"], result["month"]) == (2024, 3)

    def test_mastery(self, snapshot):
        result = do_mastery(snapshot, NOW)
        assert result["vision"].id == "A"
        assert result["mastery"].unit == "days"

    def test_streaks(self, snapshot):
        rows = do_streaks(snapshot, NOW)["habits"]
        assert [(r["habit"], r["current"]) for r in rows] == [("Draft", 2), ("5k", 1)]

    def test_wins(self, snapshot):
        assert [w.title for w in do_wins(snapshot)["wins"]] == ["Chapter one"]

    def test_output_goes_to_stdout(self, snapshot, capsys):
        do_rankings(snapshot)
        assert "Writing" in capsys.readouterr().out


class TestDoSetData:
    def test_persists_path(self, tmp_path):
        config_path = tmp_path / "config.json"
        result = do_set_data(str(tmp_path / "export.json"), config_path)
        assert result["ok"] is True
        assert load_config(config_path)["data_path"] == str((tmp_path / "export.json").resolve())


# ---------------------------------------------------------------------------
# main()
# ---------------------------------------------------------------------------

@patch("habit_insights.cli.get_orphan_policy", return_value=OrphanPolicy.BREAKDOWN_ONLY)
class TestMain:
    def test_default_command_is_summary(self, _policy, data_file, capsys):
        main(["--data", str(data_file), "--now", "2024-03-03T12:00:00"])
        assert "Writing" in capsys.readouterr().out

    def test_missing_snapshot_shows_no_data(self, _policy, tmp_path, capsys):
        main(["--data", str(tmp_path / "missing.json"), "streaks"])
        assert "No snapshot found" in capsys.readouterr().out

    def test_invalid_json_exits(self, _policy, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("{oops", encoding="utf-8")
        with pytest.raises(SystemExit) as exc_info:
            main(["--data", str(path), "summary"])
        assert exc_info.value.code == 1

    def test_invalid_now_exits(self, _policy, data_file):
        with pytest.raises(SystemExit) as exc_info:
            main(["--data", str(data_file), "--now", "tomorrow", "summary"])
        assert exc_info.value.code == 1

    def test_unknown_vision_exits(self, _policy, data_file):
        with pytest.raises(SystemExit) as exc_info:
            main(["--data", str(data_file), "mastery", "--vision", "nope"])
        assert exc_info.value.code == 1

    def test_week_command(self, _policy, data_file, capsys):
        main(["--data", str(data_file), "--now", "2024-03-03T12:00:00", "week", "--offset", "-1"])
        assert "Last Week" in capsys.readouterr().out

    @patch("habit_insights.cli.set_data_path")
    def test_config_set_data(self, mock_set, _policy, tmp_path):
        main(["config", "set-data", str(tmp_path / "export.json")])
        mock_set.assert_called_once()
