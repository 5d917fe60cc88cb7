"""Tests for the streak tracking system."""

from datetime import datetime

from habit_insights.models import Session, StreakResult
from habit_insights.streaks import (
    active_days,
    calculate_streak,
    calculate_streak_from_days,
    current_streak,
    get_streak_from_dates,
    habit_streaks,
    longest_streak,
)


def _session(completed_at: str, habit_id: str = "h1", minutes: int = 25) -> Session:
    return Session(
        id=f"{habit_id}-{completed_at}",
        habit_id=habit_id,
        vision_id="v1",
        completed_at=datetime.fromisoformat(completed_at),
        duration_minutes=minutes,
    )


def _sessions_on(*days: str) -> list[Session]:
    return [_session(f"{d}T09:00:00") for d in days]


class TestGetStreakFromDates:
    """Tests for get_streak_from_dates function."""

    def test_consecutive_five_days(self):
        dates = ["2026-01-01", "2026-01-02", "2026-01-03", "2026-01-04", "2026-01-05"]
        assert get_streak_from_dates(dates, "2026-01-05") == 5

    def test_reference_not_in_dates(self):
        dates = ["2026-01-01", "2026-01-02"]
        assert get_streak_from_dates(dates, "2026-01-05") == 0

    def test_single_date(self):
        assert get_streak_from_dates(["2026-01-01"], "2026-01-01") == 1

    def test_gap_breaks_streak(self):
        dates = ["2026-01-01", "2026-01-02", "2026-01-04", "2026-01-05"]
        assert get_streak_from_dates(dates, "2026-01-05") == 2

    def test_empty_dates(self):
        assert get_streak_from_dates([], "2026-01-01") == 0

    def test_streak_from_middle(self):
        dates = ["2026-01-01", "2026-01-02", "2026-01-03", "2026-01-05"]
        assert get_streak_from_dates(dates, "2026-01-03") == 3


class TestActiveDays:
    def test_multiple_sessions_same_day_count_once(self):
        sessions = [
            _session("2024-01-01T08:00:00"),
            _session("2024-01-01T21:30:00"),
            _session("2024-01-02T12:00:00"),
        ]
        assert active_days(sessions) == {"2024-01-01", "2024-01-02"}

    def test_empty(self):
        assert active_days([]) == set()


class TestCurrentStreak:
    def test_today_active(self):
        assert current_streak({"2024-01-01", "2024-01-02", "2024-01-03"}, "2024-01-03") == 3

    def test_yesterday_grace(self):
        assert current_streak({"2024-01-01", "2024-01-02"}, "2024-01-03") == 2

    def test_two_day_gap_resets(self):
        assert current_streak({"2024-01-01"}, "2024-01-03") == 0

    def test_empty(self):
        assert current_streak(set(), "2024-01-03") == 0


class TestLongestStreak:
    def test_gap_splits_runs(self):
        days = {"2024-01-01", "2024-01-02", "2024-01-03", "2024-01-05", "2024-01-06"}
        assert longest_streak(days) == 3

    def test_run_at_end_counts(self):
        days = {"2024-01-01", "2024-01-03", "2024-01-04", "2024-01-05", "2024-01-06"}
        assert longest_streak(days) == 4

    def test_single_day(self):
        assert longest_streak({"2024-01-01"}) == 1

    def test_empty(self):
        assert longest_streak(set()) == 0

    def test_month_boundary_is_consecutive(self):
        assert longest_streak({"2024-01-31", "2024-02-01", "2024-02-02"}) == 3


class TestCalculateStreak:
    def test_empty_sessions(self):
        result = calculate_streak([], datetime(2024, 1, 1, 12, 0))
        assert result == StreakResult(current=0, longest=0)

    def test_grace_window_yesterday_counts(self):
        sessions = _sessions_on("2024-01-01")
        result = calculate_streak(sessions, datetime(2024, 1, 2, 23, 59))
        assert result.current == 1

    def test_grace_window_expires(self):
        sessions = _sessions_on("2024-01-01")
        result = calculate_streak(sessions, datetime(2024, 1, 3, 0, 0))
        assert result.current == 0
        assert result.longest == 1

    def test_longest_with_gap(self):
        sessions = _sessions_on("2024-01-01", "2024-01-02", "2024-01-03", "2024-01-05", "2024-01-06")
        result = calculate_streak(sessions, datetime(2024, 1, 6, 20, 0))
        assert result.longest == 3
        assert result.current == 2

    def test_current_never_exceeds_three_for_gap_example(self):
        sessions = _sessions_on("2024-01-01", "2024-01-02", "2024-01-03", "2024-01-05", "2024-01-06")
        for day in range(1, 12):
            result = calculate_streak(sessions, datetime(2024, 1, day, 12, 0))
            assert result.current <= 3
            assert result.longest == 3

    def test_current_not_above_longest(self):
        sessions = _sessions_on("2024-02-27", "2024-02-28", "2024-02-29", "2024-03-01", "2024-03-10")
        for day in range(1, 15):
            result = calculate_streak(sessions, datetime(2024, 3, day, 12, 0))
            assert result.current <= result.longest

    def test_now_as_day_key(self):
        sessions = _sessions_on("2024-01-01", "2024-01-02")
        assert calculate_streak(sessions, "2024-01-02").current == 2

    def test_deterministic(self):
        sessions = _sessions_on("2024-01-01", "2024-01-02", "2024-01-04")
        now = datetime(2024, 1, 4, 10, 0)
        assert calculate_streak(sessions, now) == calculate_streak(sessions, now)

    def test_does_not_mutate_input(self):
        sessions = _sessions_on("2024-01-02", "2024-01-01")
        snapshot = list(sessions)
        calculate_streak(sessions, datetime(2024, 1, 2))
        assert sessions == snapshot


class TestCalculateStreakFromDays:
    def test_empty(self):
        assert calculate_streak_from_days(set(), "2024-01-01") == StreakResult(0, 0)

    def test_today_only(self):
        assert calculate_streak_from_days({"2024-01-01"}, "2024-01-01") == StreakResult(1, 1)


class TestHabitStreaks:
    def test_per_habit(self):
        sessions = [
            _session("2024-01-01T09:00:00", habit_id="read"),
            _session("2024-01-02T09:00:00", habit_id="read"),
            _session("2024-01-02T10:00:00", habit_id="run"),
        ]
        result = habit_streaks(sessions, ["read", "run"], datetime(2024, 1, 2, 22, 0))
        assert result["read"] == StreakResult(current=2, longest=2)
        assert result["run"] == StreakResult(current=1, longest=1)

    def test_habit_without_sessions(self):
        result = habit_streaks([], ["idle"], datetime(2024, 1, 2))
        assert result == {"idle": StreakResult(current=0, longest=0)}

    def test_unlisted_habits_ignored(self):
        sessions = [_session("2024-01-02T09:00:00", habit_id="other")]
        result = habit_streaks(sessions, ["read"], datetime(2024, 1, 2))
        assert list(result) == ["read"]
