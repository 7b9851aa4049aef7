"""
Day streaks - pure functions, no DB access.

A day counts when it holds at least one real reading session, in the
reader's own timezone.
"""
from dataclasses import dataclass, asdict
from datetime import date, datetime, time, timedelta
from typing import Any, Iterable, Optional
from zoneinfo import ZoneInfo

from app.core.dates import ensure_aware, utc_now
from app.core.reading_sessions import filter_real_sessions, get_field, parse_created_at


@dataclass(frozen=True)
class StreakInfo:
    streak: int
    at_risk: bool  # read yesterday, nothing yet today
    has_read_today: bool
    seconds_left: int  # until local midnight, only while at risk

    def to_dict(self) -> dict:
        return asdict(self)


def active_local_dates(activities: Iterable[Any] | None, tz: ZoneInfo) -> set[date]:
    """Distinct local dates holding at least one real reading session"""
    days = set()
    for activity in filter_real_sessions(activities):
        created = parse_created_at(get_field(activity, "created_at"))
        if created is None:
            continue
        days.add(created.astimezone(tz).date())
    return days


def _local_today(tz: ZoneInfo, now: Optional[datetime]) -> date:
    now = ensure_aware(now) if now is not None else utc_now()
    return now.astimezone(tz).date()


def _streak_anchor(days: set[date], today: date) -> Optional[date]:
    # Today if read today, else yesterday (grace day), else the streak is broken
    if today in days:
        return today
    yesterday = today - timedelta(days=1)
    if yesterday in days:
        return yesterday
    return None


def _count_back(days: set[date], anchor: date) -> int:
    streak = 0
    current_check = anchor
    while current_check in days:
        streak += 1
        current_check -= timedelta(days=1)
    return streak


def compute_streak(activities: Iterable[Any] | None, tz: ZoneInfo, now: Optional[datetime] = None) -> int:
    """Current consecutive-day streak ending today or yesterday"""
    days = active_local_dates(activities, tz)
    if not days:
        return 0

    anchor = _streak_anchor(days, _local_today(tz, now))
    if anchor is None:
        return 0

    return _count_back(days, anchor)


def compute_streak_info(activities: Iterable[Any] | None, tz: ZoneInfo, now: Optional[datetime] = None) -> StreakInfo:
    now = ensure_aware(now) if now is not None else utc_now()
    days = active_local_dates(activities, tz)
    today = _local_today(tz, now)

    anchor = _streak_anchor(days, today)
    if anchor is None:
        return StreakInfo(streak=0, at_risk=False, has_read_today=False, seconds_left=0)

    has_read_today = anchor == today
    seconds_left = 0
    if not has_read_today:
        midnight = datetime.combine(today + timedelta(days=1), time.min, tzinfo=tz)
        seconds_left = max(0, int((midnight - now).total_seconds()))

    return StreakInfo(
        streak=_count_back(days, anchor),
        at_risk=not has_read_today,
        has_read_today=has_read_today,
        seconds_left=seconds_left,
    )


def compute_longest_streak(activities: Iterable[Any] | None, tz: ZoneInfo) -> int:
    """Longest run of consecutive reading days anywhere in the history"""
    longest_streak = 0
    current_streak = 0
    prev_date = None

    for read_date in sorted(active_local_dates(activities, tz)):
        if prev_date is not None and (read_date - prev_date).days == 1:
            current_streak += 1
        else:
            current_streak = 1
        longest_streak = max(longest_streak, current_streak)
        prev_date = read_date

    return longest_streak


def streak_run_start(info: StreakInfo, tz: ZoneInfo, now: Optional[datetime] = None) -> Optional[date]:
    """First local day of the run behind `info`, None when there is no streak"""
    if info.streak <= 0:
        return None

    today = _local_today(tz, now)
    anchor = today if info.has_read_today else today - timedelta(days=1)
    return anchor - timedelta(days=info.streak - 1)
