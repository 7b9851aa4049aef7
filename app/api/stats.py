from fastapi import APIRouter, Query

from app.api.deps import SessionDep, CurrentUser, TargetUserDep
from app.core.leveling import level_progress
from app.schemas.stats import (
    LevelProgressResponse,
    ReadingSummaryResponse,
    StreakResponse,
    WeeklyActivityResponse,
)
from app.services.follows import FollowService
from app.services.reading_stats import ReadingStatsService
from app.services.streak import StreakService
from app.services.weekly_activity import WeeklyActivityService

router = APIRouter()


@router.get("/level", response_model=LevelProgressResponse)
async def get_my_level(user: CurrentUser):
    """
    Level, XP into the level and progress percentage for the caller.
    """
    return LevelProgressResponse.from_progress(level_progress(user.xp_total or 0))


@router.get("/{user_id}/streak", response_model=StreakResponse)
async def get_streak(owner: TargetUserDep, db: SessionDep, viewer: CurrentUser):
    """
    Current streak computed fresh from recent reading sessions.
    Streaks are not visibility filtered; only the count is exposed.
    """
    info = StreakService(db, owner).get_info()
    return StreakResponse.from_info(info, owner.longest_streak or 0)


@router.get("/{user_id}/week", response_model=WeeklyActivityResponse)
async def get_week(
        owner: TargetUserDep,
        db: SessionDep,
        viewer: CurrentUser,
        week_offset: int = Query(0, ge=0, le=520, description="0 = this week, 1 = last week, ...")
):
    """
    Pages and minutes per day (Monday first) for one week.
    """
    visibilities = FollowService(db, viewer).visibilities_for(owner)
    week = WeeklyActivityService(db, owner).get_week(week_offset, visibilities)
    return WeeklyActivityResponse.from_week(week, week_offset)


@router.get("/{user_id}/reading", response_model=ReadingSummaryResponse)
async def get_reading_stats(owner: TargetUserDep, db: SessionDep, viewer: CurrentUser):
    """
    Totals, trailing 7-day speed/pace and the 30-day personal record.
    """
    visibilities = FollowService(db, viewer).visibilities_for(owner)
    summary = ReadingStatsService(db, owner).get_summary(visibilities)
    return ReadingSummaryResponse.from_summary(summary)
