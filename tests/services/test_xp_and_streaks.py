from datetime import datetime, timedelta, timezone

import pytest

from app.config import settings
from app.core.dates import utc_now
from app.core.events import event_bus, STREAK_UPDATED, XP_UPDATED
from app.models.activity import Activity
from app.models.xp_event import XpEvent
from app.services.activity import ActivityService, session_rates
from app.services.streak import StreakService
from app.services.xp import XpService


def add_reading(db, user, created_at, pages=10, minutes=15, visibility="public"):
    activity = Activity(
        user_id=user.id,
        type="reading",
        visibility=visibility,
        pages_read=pages,
        duration_minutes=minutes,
        created_at=created_at,
    )
    db.add(activity)
    db.flush()
    return activity


def test_session_rates():
    assert session_rates(30, 60) == (30.0, 2.0)
    assert session_rates(0, 60) == (None, None)
    assert session_rates(None, None) == (None, None)


def test_award_updates_total_and_ledger(db, normal_user):
    event = XpService(db, normal_user).award(15, "goal_daily")
    db.commit()

    assert event.xp_amount == 15
    assert event.message == "Daily goal reached"
    assert normal_user.xp_total == 15
    assert normal_user.last_xp_at is not None
    assert db.query(XpEvent).count() == 1


def test_award_rejects_unknown_source(db, normal_user):
    with pytest.raises(ValueError):
        XpService(db, normal_user).award(10, "cheating")


def test_award_zero_is_a_no_op(db, normal_user):
    assert XpService(db, normal_user).award(0, "reading") is None
    assert db.query(XpEvent).count() == 0


def test_reading_xp_daily_cap(db, normal_user):
    service = XpService(db, normal_user)
    now = utc_now()

    first = service.award(30, "reading", now=now)
    second = service.award(30, "reading", now=now)
    third = service.award(30, "reading", now=now)

    assert first.xp_amount == 30
    assert second.xp_amount == settings.daily_reading_xp_cap - 30
    assert third is None
    assert normal_user.xp_total == settings.daily_reading_xp_cap

    # Other sources are not capped
    assert service.award(10, "goal_daily", now=now).xp_amount == 10


def test_award_publishes_xp_updated(db, normal_user):
    received = []
    event_bus.subscribe(XP_UPDATED, lambda **kw: received.append(kw))

    XpService(db, normal_user).award(30, "goal_weekly")

    assert received == [{"user_id": normal_user.id, "xp_total": 30}]


def test_history_is_newest_first(db, normal_user):
    service = XpService(db, normal_user)
    now = datetime(2026, 3, 11, 12, 0, tzinfo=timezone.utc)
    service.award(10, "goal_daily", now=now - timedelta(days=1))
    service.award(30, "goal_weekly", now=now)

    assert [e.source for e in service.history()] == ["goal_weekly", "goal_daily"]


def test_log_reading_session_awards_xp(db, normal_user):
    activity = ActivityService(db, normal_user).log_reading_session(30, 60, book_title="Dune")
    db.commit()

    assert activity.reading_speed_pph == 30.0
    assert activity.reading_pace_min_per_page == 2.0
    assert activity.xp_awarded == 18 + 3
    assert normal_user.xp_total == 21
    assert normal_user.current_streak == 1


def test_log_reading_session_validation(db, normal_user):
    service = ActivityService(db, normal_user)
    with pytest.raises(ValueError):
        service.log_reading_session(10, 10, visibility="everyone")
    with pytest.raises(ValueError):
        service.log_reading_session(-1, 10)


def test_cap_applies_across_sessions(db, normal_user):
    service = ActivityService(db, normal_user)
    first = service.log_reading_session(30, 60)
    second = service.log_reading_session(30, 60)
    third = service.log_reading_session(30, 60)

    assert first.xp_awarded == 21
    assert second.xp_awarded == settings.daily_reading_xp_cap - 21
    assert third.xp_awarded == 0


def test_streak_refresh_pays_milestone(db, normal_user):
    received = []
    event_bus.subscribe(STREAK_UPDATED, lambda **kw: received.append(kw["streak"]))

    add_reading(db, normal_user, utc_now() - timedelta(days=1))
    activity = ActivityService(db, normal_user).log_reading_session(10, 10)
    db.commit()

    assert normal_user.current_streak == 2
    assert normal_user.longest_streak == 2
    # 10 min + 10 pages, then the 2-day milestone
    assert activity.xp_awarded == 11
    assert normal_user.xp_total == 11 + 5
    assert received == [2]

    sources = sorted(e.source for e in db.query(XpEvent).all())
    assert sources == ["reading", "streak"]


def test_streak_refresh_is_idempotent(db, normal_user):
    now = utc_now()
    add_reading(db, normal_user, now - timedelta(days=1))
    add_reading(db, normal_user, now)

    service = StreakService(db, normal_user)
    service.refresh(now)
    service.refresh(now)

    assert normal_user.current_streak == 2
    assert db.query(XpEvent).filter(XpEvent.source == "streak").count() == 1


def test_streak_get_info_does_not_write(db, normal_user):
    add_reading(db, normal_user, utc_now())

    info = StreakService(db, normal_user).get_info()

    assert info.streak == 1
    assert info.has_read_today is True
    assert normal_user.current_streak == 0


def test_delete_activity_keeps_xp_and_refreshes_streak(db, normal_user, other_user):
    service = ActivityService(db, normal_user)
    activity = service.log_reading_session(10, 10)
    db.commit()
    xp_before = normal_user.xp_total

    with pytest.raises(PermissionError):
        ActivityService(db, other_user).delete_activity(activity)

    service.delete_activity(activity)
    db.commit()

    assert normal_user.xp_total == xp_before
    assert normal_user.current_streak == 0
    assert db.query(Activity).count() == 0


def test_relogging_today_does_not_repay_milestone(db, normal_user):
    add_reading(db, normal_user, utc_now() - timedelta(days=1))
    service = ActivityService(db, normal_user)

    for _ in range(3):
        activity = service.log_reading_session(10, 10)
        db.commit()
        service.delete_activity(activity)
        db.commit()

    streak_events = db.query(XpEvent).filter(XpEvent.source == "streak").all()
    assert len(streak_events) == 1
    assert streak_events[0].meta["milestone"] == 2
    assert streak_events[0].meta["run_start"] == (utc_now() - timedelta(days=1)).date().isoformat()


def test_new_run_pays_milestone_again(db, normal_user):
    now = datetime(2026, 3, 11, 15, 0, tzinfo=timezone.utc)
    service = StreakService(db, normal_user)

    # First run: 1st and 2nd of March
    add_reading(db, normal_user, datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc))
    add_reading(db, normal_user, datetime(2026, 3, 2, 12, 0, tzinfo=timezone.utc))
    service.refresh(datetime(2026, 3, 2, 18, 0, tzinfo=timezone.utc))

    # Streak broken, then a fresh run on the 10th and 11th
    service.refresh(now - timedelta(days=3))
    add_reading(db, normal_user, datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc))
    add_reading(db, normal_user, datetime(2026, 3, 11, 12, 0, tzinfo=timezone.utc))
    service.refresh(now)

    runs = sorted(e.meta["run_start"] for e in db.query(XpEvent).filter(XpEvent.source == "streak"))
    assert runs == ["2026-03-01", "2026-03-10"]
