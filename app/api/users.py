from datetime import datetime
from fastapi import APIRouter, Query
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, field_validator

from app.api.deps import SessionDep, CurrentUser, TargetUserDep
from app.core.dates import is_valid_timezone
from app.core.leveling import level_progress
from app.models.follow import Follow
from app.schemas.stats import LevelProgressResponse
from app.services.follows import FollowService
from app.services.xp import XpService

router = APIRouter()


# Schemas
class ProfileResponse(BaseModel):
    id: int
    username: str
    display_name: Optional[str]
    timezone: Optional[str]
    xp_total: int
    current_streak: int
    longest_streak: int
    followers: int
    following: int
    is_following: Optional[bool] = None
    level: LevelProgressResponse


class ProfileUpdateRequest(BaseModel):
    display_name: Optional[str] = None
    timezone: Optional[str] = None

    @field_validator("timezone")
    def known_timezone(cls, v):
        if v is not None and not is_valid_timezone(v):
            raise ValueError(f"Unknown timezone '{v}'")
        return v


class XpEventResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    source: str
    xp_amount: int
    message: str
    meta: Optional[dict]
    created_at: datetime


def build_profile(db, user, viewer=None) -> ProfileResponse:
    followers = db.query(Follow).filter(Follow.following_id == user.id).count()
    following = db.query(Follow).filter(Follow.follower_id == user.id).count()

    is_following = None
    if viewer is not None and viewer.id != user.id:
        is_following = FollowService(db, viewer).is_following(user.id)

    return ProfileResponse(
        id=user.id,
        username=user.username,
        display_name=user.display_name,
        timezone=user.timezone,
        xp_total=user.xp_total or 0,
        current_streak=user.current_streak or 0,
        longest_streak=user.longest_streak or 0,
        followers=followers,
        following=following,
        is_following=is_following,
        level=LevelProgressResponse.from_progress(level_progress(user.xp_total or 0)),
    )


@router.get("/me", response_model=ProfileResponse, name="my_profile")
async def read_me(db: SessionDep, current_user: CurrentUser):
    return build_profile(db, current_user)


@router.patch("/me", response_model=ProfileResponse)
async def update_me(update: ProfileUpdateRequest, db: SessionDep, current_user: CurrentUser):
    """
    Update display name or timezone. Changing the timezone moves day
    boundaries, so the streak is recomputed on the next activity.
    """
    data = update.model_dump(exclude_unset=True)
    for field, value in data.items():
        setattr(current_user, field, value)

    db.commit()
    db.refresh(current_user)
    return build_profile(db, current_user)


@router.get("/me/xp-history", response_model=List[XpEventResponse])
async def read_xp_history(
        db: SessionDep,
        current_user: CurrentUser,
        limit: int = Query(50, ge=1, le=200)
):
    return XpService(db, current_user).history(limit)


@router.get("/{user_id}", response_model=ProfileResponse)
async def read_user(user: TargetUserDep, db: SessionDep, current_user: CurrentUser):
    return build_profile(db, user, viewer=current_user)
