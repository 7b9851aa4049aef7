"""
Monday-first weekly reading buckets.

This is a display aggregate: raw pages/minutes are summed as logged, with no
real-session filtering.
"""
from dataclasses import dataclass, field
from datetime import datetime, time, timedelta
from typing import Any, Iterable, Optional
from zoneinfo import ZoneInfo

from app.core.dates import ensure_aware, utc_now
from app.core.reading_sessions import activity_minutes, activity_pages, get_field, parse_created_at

DAY_LABELS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")


@dataclass
class DayStat:
    day_key: str  # local YYYY-MM-DD
    label: str
    pages: int | float = 0
    minutes: int | float = 0


@dataclass
class WeeklyActivity:
    week_start: datetime  # local Monday 00:00
    week_end: datetime  # local Sunday 23:59:59.999999
    days: list[DayStat] = field(default_factory=list)

    @property
    def total_pages(self):
        return sum(d.pages for d in self.days)

    @property
    def total_minutes(self):
        return sum(d.minutes for d in self.days)

    @property
    def range_label(self) -> str:
        return format_week_range_label(self.week_start, self.week_end)


def week_bounds(tz: ZoneInfo, week_offset: int = 0, now: Optional[datetime] = None) -> tuple[datetime, datetime]:
    """
    Local Monday 00:00 of the current week, shifted back `week_offset` weeks,
    and the matching Sunday end of day.
    """
    now = ensure_aware(now) if now is not None else utc_now()
    local_today = now.astimezone(tz).date()

    monday = local_today - timedelta(days=local_today.weekday()) - timedelta(weeks=max(0, week_offset))
    sunday = monday + timedelta(days=6)

    week_start = datetime.combine(monday, time.min, tzinfo=tz)
    week_end = datetime.combine(sunday, time.max, tzinfo=tz)
    return week_start, week_end


def empty_week(week_start: datetime) -> list[DayStat]:
    monday = week_start.date()
    return [
        DayStat(day_key=(monday + timedelta(days=i)).isoformat(), label=label)
        for i, label in enumerate(DAY_LABELS)
    ]


def aggregate_week(
    activities: Iterable[Any] | None,
    tz: ZoneInfo,
    week_offset: int = 0,
    now: Optional[datetime] = None,
) -> WeeklyActivity:
    week_start, week_end = week_bounds(tz, week_offset, now)
    result = WeeklyActivity(week_start=week_start, week_end=week_end, days=empty_week(week_start))

    for activity in activities or []:
        created = parse_created_at(get_field(activity, "created_at"))
        if created is None:
            continue

        local = created.astimezone(tz)
        if not (week_start <= local <= week_end):
            continue

        # weekday() is already Monday=0 .. Sunday=6
        bucket = result.days[local.weekday()]
        bucket.pages += activity_pages(activity)
        bucket.minutes += activity_minutes(activity)
        bucket.day_key = local.date().isoformat()

    return result


def weekly_pages(days: list[DayStat]) -> list:
    """Pages only, one entry per weekday"""
    return [d.pages for d in days]


def format_week_range_label(start: datetime, end: datetime) -> str:
    return f"{start:%d %b} – {end:%d %b}"
