from datetime import datetime, timezone
from zoneinfo import ZoneInfo

import pytest

from app.core.goals import evaluate_goal, goal_period, period_bounds

UTC = ZoneInfo("UTC")
# Wednesday
NOW = datetime(2026, 3, 11, 15, 0, tzinfo=timezone.utc)


def row(created_at: str, pages, minutes) -> dict:
    return {"created_at": created_at, "pages_read": pages, "duration_minutes": minutes}


ACTIVITIES = [
    row("2026-03-11T08:00:00Z", 12, 20),  # today
    row("2026-03-11T13:00:00Z", 10, 15),  # today
    row("2026-03-10T20:00:00Z", 30, 40),  # this week
    row("2026-03-09T07:00:00Z", 5, 0),  # this week, placeholder
    row("2026-03-08T20:00:00Z", 100, 100),  # last week
]


def test_goal_period():
    assert goal_period("daily_pages") == "daily"
    assert goal_period("weekly_sessions") == "weekly"
    with pytest.raises(ValueError):
        goal_period("yearly_books")


def test_daily_bounds():
    start, end = period_bounds("daily", UTC, NOW)

    assert start == datetime(2026, 3, 11, 0, 0, tzinfo=UTC)
    assert end.date().isoformat() == "2026-03-11"
    assert (end.hour, end.minute) == (23, 59)


def test_daily_pages_goal():
    status = evaluate_goal("daily_pages", 20, ACTIVITIES, UTC, NOW, goal_id=1)

    assert status.current_value == 22
    assert status.is_complete is True
    assert status.period == "daily"
    assert status.unit == "pages"
    assert status.period_key == "2026-03-11"
    assert status.percent == 100.0


def test_daily_minutes_goal_in_progress():
    status = evaluate_goal("daily_minutes", 70, ACTIVITIES, UTC, NOW)

    assert status.current_value == 35
    assert status.is_complete is False
    assert status.percent == pytest.approx(50.0)


def test_weekly_goals_start_on_monday():
    pages = evaluate_goal("weekly_pages", 100, ACTIVITIES, UTC, NOW)
    sessions = evaluate_goal("weekly_sessions", 3, ACTIVITIES, UTC, NOW)

    assert pages.current_value == 57
    assert pages.is_complete is False
    assert pages.period_key == "2026-03-09"
    # The placeholder row is not a session
    assert sessions.current_value == 3
    assert sessions.is_complete is True


def test_daily_goal_uses_reader_timezone():
    tokyo = ZoneInfo("Asia/Tokyo")
    # 16:00 UTC is already the 12th in Tokyo, so none of the 11th counts
    status = evaluate_goal("daily_pages", 1, ACTIVITIES, tokyo, datetime(2026, 3, 11, 16, 0, tzinfo=timezone.utc))

    assert status.current_value == 0
    assert status.period_key == "2026-03-12"


def test_empty_input():
    status = evaluate_goal("weekly_minutes", 60, None, UTC, NOW)

    assert status.current_value == 0
    assert status.to_dict()["percent"] == 0
