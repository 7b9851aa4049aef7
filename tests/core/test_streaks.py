from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

from app.core.streaks import compute_longest_streak, compute_streak, compute_streak_info, streak_run_start

UTC = ZoneInfo("UTC")
NOW = datetime(2026, 3, 11, 15, 0, tzinfo=timezone.utc)


def session(days_ago: int, pages: int = 10, minutes: int = 15, hour: int = 12) -> dict:
    created = (NOW - timedelta(days=days_ago)).replace(hour=hour)
    return {"created_at": created.isoformat(), "pages_read": pages, "duration_minutes": minutes}


def test_empty_input_is_zero():
    assert compute_streak([], UTC, NOW) == 0
    assert compute_streak(None, UTC, NOW) == 0


def test_today_yesterday_and_gap():
    # Read today, yesterday and 3 days ago, but not 2 days ago
    activities = [session(0), session(1), session(3)]
    assert compute_streak(activities, UTC, NOW) == 2


def test_single_old_session_is_zero():
    assert compute_streak([session(10)], UTC, NOW) == 0


def test_yesterday_keeps_streak_alive():
    activities = [session(1), session(2), session(3)]
    assert compute_streak(activities, UTC, NOW) == 3


def test_two_day_gap_breaks_streak():
    activities = [session(2), session(3), session(4)]
    assert compute_streak(activities, UTC, NOW) == 0


def test_same_day_sessions_count_once():
    activities = [session(0, hour=8), session(0, hour=9), session(0, hour=14), session(1)]
    assert compute_streak(activities, UTC, NOW) == 2


def test_placeholder_sessions_are_ignored():
    activities = [session(0, minutes=0), session(1)]
    # Today's row has no minutes, so only yesterday counts
    assert compute_streak(activities, UTC, NOW) == 1


def test_unparseable_dates_are_skipped():
    activities = [session(0), {"created_at": "garbage", "pages_read": 5, "duration_minutes": 5}, session(1)]
    assert compute_streak(activities, UTC, NOW) == 2


def test_order_does_not_matter():
    activities = [session(3), session(0), session(2), session(1)]
    assert compute_streak(activities, UTC, NOW) == 4


def test_days_are_bucketed_in_the_readers_timezone():
    tokyo = ZoneInfo("Asia/Tokyo")
    now = datetime(2026, 3, 11, 16, 0, tzinfo=timezone.utc)  # 01:00 on the 12th in Tokyo
    activities = [
        # 23:30 UTC on the 10th is the 11th in Tokyo
        {"created_at": "2026-03-10T23:30:00Z", "pages_read": 4, "duration_minutes": 10},
        # 16:30 UTC on the 9th is 01:30 on the 10th in Tokyo
        {"created_at": "2026-03-09T16:30:00Z", "pages_read": 4, "duration_minutes": 10},
    ]

    assert compute_streak(activities, tokyo, now) == 2
    # In UTC those are the 9th and 10th, and "today" is the 11th
    assert compute_streak(activities, UTC, now) == 2
    assert compute_streak(activities[:1], UTC, now) == 1


def test_streak_info_when_read_today():
    info = compute_streak_info([session(0), session(1)], UTC, NOW)

    assert info.streak == 2
    assert info.has_read_today is True
    assert info.at_risk is False
    assert info.seconds_left == 0


def test_streak_info_grace_day():
    info = compute_streak_info([session(1), session(2)], UTC, NOW)

    assert info.streak == 2
    assert info.has_read_today is False
    assert info.at_risk is True
    # 15:00 -> midnight
    assert info.seconds_left == 9 * 3600


def test_streak_info_broken():
    info = compute_streak_info([session(5)], UTC, NOW)

    assert info.streak == 0
    assert info.at_risk is False
    assert info.seconds_left == 0


def test_longest_streak():
    activities = [session(0), session(1), session(5), session(6), session(7), session(8), session(20)]
    assert compute_longest_streak(activities, UTC) == 4
    assert compute_longest_streak([], UTC) == 0


def test_run_start_follows_the_anchor():
    read_today = compute_streak_info([session(0), session(1), session(2)], UTC, NOW)
    grace = compute_streak_info([session(1), session(2)], UTC, NOW)

    assert streak_run_start(read_today, UTC, NOW).isoformat() == "2026-03-09"
    assert streak_run_start(grace, UTC, NOW).isoformat() == "2026-03-09"
    assert streak_run_start(compute_streak_info([], UTC, NOW), UTC, NOW) is None
