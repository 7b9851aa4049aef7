"""
Daily and weekly reading goals - pure functions, no DB access.

A goal measures one metric over the reader's current local period:
- daily goals run from local midnight to local midnight
- weekly goals use the same Monday-first week as the weekly chart
"""
from dataclasses import dataclass, asdict
from datetime import datetime, time, timedelta
from typing import Any, Iterable, Optional
from zoneinfo import ZoneInfo

from app.core.dates import ensure_aware, utc_now
from app.core.reading_sessions import (
    activity_minutes,
    activity_pages,
    get_field,
    is_real_reading_session,
    parse_created_at,
)
from app.core.weekly import week_bounds

# goal type -> (period, metric)
GOAL_TYPES = {
    "daily_pages": ("daily", "pages"),
    "daily_minutes": ("daily", "minutes"),
    "weekly_pages": ("weekly", "pages"),
    "weekly_minutes": ("weekly", "minutes"),
    "weekly_sessions": ("weekly", "sessions"),
}

GOAL_UNITS = {
    "pages": "pages",
    "minutes": "min",
    "sessions": "sessions",
}


@dataclass(frozen=True)
class GoalStatus:
    goal_id: Optional[int]
    goal_type: str
    period: str
    unit: str
    target_value: int
    current_value: int | float
    is_complete: bool
    period_key: str  # local YYYY-MM-DD of the period start

    @property
    def percent(self) -> float:
        if self.target_value <= 0:
            return 100.0
        return min(100.0, self.current_value / self.target_value * 100)

    def to_dict(self) -> dict:
        return {**asdict(self), "percent": self.percent}


def goal_period(goal_type: str) -> str:
    if goal_type not in GOAL_TYPES:
        raise ValueError(f"Unknown goal type: {goal_type}")
    return GOAL_TYPES[goal_type][0]


def period_bounds(period: str, tz: ZoneInfo, now: Optional[datetime] = None) -> tuple[datetime, datetime]:
    """Local start and end of the current daily or weekly period"""
    now = ensure_aware(now) if now is not None else utc_now()

    if period == "weekly":
        return week_bounds(tz, 0, now)

    if period == "daily":
        today = now.astimezone(tz).date()
        return (
            datetime.combine(today, time.min, tzinfo=tz),
            datetime.combine(today + timedelta(days=1), time.min, tzinfo=tz) - timedelta(microseconds=1),
        )

    raise ValueError(f"Unknown goal period: {period}")


def measure(metric: str, activities: Iterable[Any]) -> int | float:
    if metric == "pages":
        return sum(activity_pages(a) for a in activities)
    if metric == "minutes":
        return sum(activity_minutes(a) for a in activities)
    if metric == "sessions":
        return sum(1 for a in activities if is_real_reading_session(a))
    raise ValueError(f"Unknown goal metric: {metric}")


def evaluate_goal(
    goal_type: str,
    target_value: int,
    activities: Iterable[Any] | None,
    tz: ZoneInfo,
    now: Optional[datetime] = None,
    goal_id: Optional[int] = None,
) -> GoalStatus:
    """Progress of one goal over the activities that fall inside its current period"""
    period = goal_period(goal_type)
    metric = GOAL_TYPES[goal_type][1]
    start, end = period_bounds(period, tz, now)

    in_period = []
    for activity in activities or []:
        created = parse_created_at(get_field(activity, "created_at"))
        if created is not None and start <= created.astimezone(tz) <= end:
            in_period.append(activity)

    current = measure(metric, in_period)

    return GoalStatus(
        goal_id=goal_id,
        goal_type=goal_type,
        period=period,
        unit=GOAL_UNITS[metric],
        target_value=target_value,
        current_value=current,
        is_complete=target_value > 0 and current >= target_value,
        period_key=start.date().isoformat(),
    )
