"""
Reading speed (pages/hour) and pace (minutes/page).

Every stat is either a value or a "no data" message. A reader with no
sessions sees "no data", never "0 pages/hour".
"""
from dataclasses import dataclass, asdict
from datetime import datetime, timedelta
from typing import Any, Iterable, Optional

from app.config import settings
from app.core.dates import ensure_aware, utc_now
from app.core.reading_sessions import (
    activity_minutes,
    activity_pages,
    coerce_number,
    filter_real_sessions,
    get_field,
    parse_created_at,
)

NO_DATA_MESSAGE = "Not enough data"


@dataclass(frozen=True)
class StatResult:
    value: Optional[float] = None
    formatted_value: Optional[str] = None
    unit: Optional[str] = None
    context: Optional[str] = None
    message: Optional[str] = None

    @property
    def has_data(self) -> bool:
        return self.value is not None

    @classmethod
    def no_data(cls) -> "StatResult":
        return cls(message=NO_DATA_MESSAGE)

    def to_dict(self) -> dict:
        if self.has_data:
            return {
                "type": "value",
                "value": self.value,
                "formatted_value": self.formatted_value,
                "unit": self.unit,
                "context": self.context,
            }
        return {"type": "message", "message": self.message}


@dataclass(frozen=True)
class ReadingStatsResult:
    speed: StatResult
    pace: StatResult
    is_valid_for_record: bool
    has_sessions: bool
    total_pages: int | float
    total_minutes: int | float


@dataclass(frozen=True)
class PersonalRecord:
    speed_pph: Optional[float]
    pace_min_per_page: Optional[float]
    has_any_sessions: bool

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class ReadingSummary:
    has_sessions: bool
    total_pages: int | float
    total_minutes: int | float
    window_days: int
    window_pages: int | float
    window_minutes: int | float
    window_stats: ReadingStatsResult
    personal_record: PersonalRecord


def format_stat_value(value: float) -> str:
    if value >= 1000:
        # Round to nearest 10 for very large values
        rounded = round(value / 10) * 10
        return f"~{rounded:,}"
    if value >= 100:
        return f"{round(value):,}"
    return f"{value:.1f}"


def format_duration(total_minutes: float) -> str:
    if total_minutes < 60:
        return f"{round(total_minutes)} min"
    return f"{total_minutes / 60:.1f} h"


def _speed_context(minutes: float) -> str:
    if minutes < 5:
        return "Computed from a short session"

    hours = int(minutes // 60)
    mins = round(minutes % 60)
    if hours > 0:
        return f"Based on {hours}h{f' {mins}min' if mins > 0 else ''} of reading"
    return f"Based on {round(minutes)} min of reading"


def compute_reading_stats(total_pages, total_minutes, min_pages_for_record: int = 5) -> ReadingStatsResult:
    """Speed and pace over a pages/minutes total. Under one minute there is no data."""
    pages = max(0, coerce_number(total_pages))
    minutes = max(0, coerce_number(total_minutes))
    has_sessions = pages > 0 or minutes > 0

    if minutes < 1:
        return ReadingStatsResult(
            speed=StatResult.no_data(),
            pace=StatResult.no_data(),
            is_valid_for_record=False,
            has_sessions=has_sessions,
            total_pages=pages,
            total_minutes=minutes,
        )

    speed_pph = round(pages / (minutes / 60), 1) if pages > 0 else None
    pace = round(minutes / pages, 1) if pages > 0 else None

    if speed_pph is not None and speed_pph > 0:
        speed = StatResult(
            value=speed_pph,
            formatted_value=format_stat_value(speed_pph),
            unit="p/h",
            context=_speed_context(minutes),
        )
    else:
        speed = StatResult.no_data()

    if pace is not None and pace > 0:
        pace_result = StatResult(value=pace, formatted_value=f"{pace:.1f}", unit="min/page")
    else:
        pace_result = StatResult.no_data()

    return ReadingStatsResult(
        speed=speed,
        pace=pace_result,
        is_valid_for_record=pages >= min_pages_for_record and pace_result.has_data,
        has_sessions=has_sessions,
        total_pages=pages,
        total_minutes=minutes,
    )


def _stored_rate(activity: Any, name: str) -> Optional[float]:
    value = coerce_number(get_field(activity, name))
    return float(value) if value > 0 else None


def compute_personal_record(
    activities: Iterable[Any] | None,
    lookback_days: int = 30,
    min_pages: int = 5,
    now: Optional[datetime] = None,
) -> PersonalRecord:
    """
    Best speed (max pages/hour) and best pace (min minutes/page) over the
    trailing window. Sessions under 1 minute or `min_pages` pages never count.
    Rates stored on the row win over a recomputation from pages/minutes.
    """
    activities = list(activities or [])
    has_any_sessions = any(activity_pages(a) > 0 or activity_minutes(a) > 0 for a in activities)
    if not has_any_sessions:
        return PersonalRecord(speed_pph=None, pace_min_per_page=None, has_any_sessions=False)

    now = ensure_aware(now) if now is not None else utc_now()
    cutoff = now - timedelta(days=lookback_days)

    best_pph = None
    best_pace = None

    for activity in activities:
        created = parse_created_at(get_field(activity, "created_at"))
        if created is None or created < cutoff:
            continue

        pages = activity_pages(activity)
        minutes = activity_minutes(activity)
        if minutes < 1 or pages < min_pages:
            continue

        pph = _stored_rate(activity, "reading_speed_pph") or pages / (minutes / 60)
        pace = _stored_rate(activity, "reading_pace_min_per_page") or minutes / pages

        if best_pph is None or pph > best_pph:
            best_pph = pph
        if best_pace is None or pace < best_pace:
            best_pace = pace

    if best_pph is not None and best_pace is not None and best_pace > 0:
        return PersonalRecord(
            speed_pph=round(best_pph, 1),
            pace_min_per_page=round(best_pace, 1),
            has_any_sessions=True,
        )

    return PersonalRecord(speed_pph=None, pace_min_per_page=None, has_any_sessions=True)


def compute_reading_summary(
    activities: Iterable[Any] | None,
    now: Optional[datetime] = None,
    window_days: Optional[int] = None,
    lookback_days: Optional[int] = None,
    min_pages: Optional[int] = None,
) -> ReadingSummary:
    """
    All-time totals, trailing window stats and the personal record over real sessions.
    Unset windows and thresholds come from settings at call time.
    """
    window_days = settings.stats_window_days if window_days is None else window_days
    lookback_days = settings.pr_lookback_days if lookback_days is None else lookback_days
    min_pages = settings.pr_min_pages if min_pages is None else min_pages
    now = ensure_aware(now) if now is not None else utc_now()
    sessions = filter_real_sessions(activities)

    total_pages = sum(activity_pages(a) for a in sessions)
    total_minutes = sum(activity_minutes(a) for a in sessions)

    window_start = now - timedelta(days=window_days)
    window_pages = 0
    window_minutes = 0
    for activity in sessions:
        created = parse_created_at(get_field(activity, "created_at"))
        if created is None or created < window_start:
            continue
        window_pages += activity_pages(activity)
        window_minutes += activity_minutes(activity)

    return ReadingSummary(
        has_sessions=bool(sessions),
        total_pages=total_pages,
        total_minutes=total_minutes,
        window_days=window_days,
        window_pages=window_pages,
        window_minutes=window_minutes,
        window_stats=compute_reading_stats(window_pages, window_minutes, min_pages),
        personal_record=compute_personal_record(sessions, lookback_days, min_pages, now),
    )
