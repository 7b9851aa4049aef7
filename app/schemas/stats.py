from datetime import datetime
from typing import List, Literal, Optional
from pydantic import BaseModel

from app.core.leveling import LevelProgress, format_xp
from app.core.reading_stats import PersonalRecord, ReadingSummary, StatResult
from app.core.streaks import StreakInfo
from app.core.weekly import WeeklyActivity


class LevelProgressResponse(BaseModel):
    level: int
    into_level: float
    needed: int
    remaining: float
    percent: float
    xp_total: float
    xp_total_label: str

    @classmethod
    def from_progress(cls, progress: LevelProgress) -> "LevelProgressResponse":
        return cls(**progress.to_dict(), xp_total_label=format_xp(progress.xp_total))


class StreakResponse(BaseModel):
    streak: int
    at_risk: bool
    has_read_today: bool
    seconds_left: int
    longest_streak: int

    @classmethod
    def from_info(cls, info: StreakInfo, longest_streak: int) -> "StreakResponse":
        return cls(**info.to_dict(), longest_streak=max(longest_streak, info.streak))


class DayStatResponse(BaseModel):
    day_key: str
    label: str
    pages: float
    minutes: float


class WeeklyActivityResponse(BaseModel):
    week_offset: int
    week_start: datetime
    week_end: datetime
    range_label: str
    total_pages: float
    total_minutes: float
    days: List[DayStatResponse]

    @classmethod
    def from_week(cls, week: WeeklyActivity, week_offset: int) -> "WeeklyActivityResponse":
        return cls(
            week_offset=week_offset,
            week_start=week.week_start,
            week_end=week.week_end,
            range_label=week.range_label,
            total_pages=week.total_pages,
            total_minutes=week.total_minutes,
            days=[DayStatResponse(**vars(d)) for d in week.days],
        )


class StatResultResponse(BaseModel):
    type: Literal["value", "message"]
    value: Optional[float] = None
    formatted_value: Optional[str] = None
    unit: Optional[str] = None
    context: Optional[str] = None
    message: Optional[str] = None

    @classmethod
    def from_result(cls, result: StatResult) -> "StatResultResponse":
        return cls(**result.to_dict())


class PersonalRecordResponse(BaseModel):
    speed_pph: Optional[float]
    pace_min_per_page: Optional[float]
    has_any_sessions: bool

    @classmethod
    def from_record(cls, record: PersonalRecord) -> "PersonalRecordResponse":
        return cls(**record.to_dict())


class ReadingSummaryResponse(BaseModel):
    has_sessions: bool
    total_pages: float
    total_minutes: float
    window_days: int
    window_pages: float
    window_minutes: float
    speed: StatResultResponse
    pace: StatResultResponse
    personal_record: PersonalRecordResponse

    @classmethod
    def from_summary(cls, summary: ReadingSummary) -> "ReadingSummaryResponse":
        return cls(
            has_sessions=summary.has_sessions,
            total_pages=summary.total_pages,
            total_minutes=summary.total_minutes,
            window_days=summary.window_days,
            window_pages=summary.window_pages,
            window_minutes=summary.window_minutes,
            speed=StatResultResponse.from_result(summary.window_stats.speed),
            pace=StatResultResponse.from_result(summary.window_stats.pace),
            personal_record=PersonalRecordResponse.from_record(summary.personal_record),
        )
