from datetime import datetime
from typing import Annotated, List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, ConfigDict, Field

from app.api.deps import SessionDep, CurrentUser
from app.models.activity import Activity
from app.models.user import User
from app.services.activity import ActivityService
from app.services.follows import FollowService

router = APIRouter()


class LogReadingRequest(BaseModel):
    pages_read: Optional[int] = Field(default=None, ge=0)
    duration_minutes: Optional[int] = Field(default=None, ge=0)
    book_title: Optional[str] = None
    visibility: str = "public"
    created_at: Optional[datetime] = None


class ActivityResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    type: str
    visibility: str
    book_title: Optional[str]
    pages_read: Optional[int]
    duration_minutes: Optional[int]
    reading_speed_pph: Optional[float]
    reading_pace_min_per_page: Optional[float]
    xp_awarded: int
    created_at: datetime


# Helper to initialize service with the CORRECT user
def get_activity_service(
        db: SessionDep,
        user: CurrentUser,
) -> ActivityService:
    return ActivityService(db, user)

ActivityServiceDep = Annotated[ActivityService, Depends(get_activity_service)]


@router.post("/", response_model=ActivityResponse, status_code=status.HTTP_201_CREATED)
async def log_reading_session(payload: LogReadingRequest, service: ActivityServiceDep):
    """
    Log a reading session. Awards reading XP and refreshes the streak.
    """
    try:
        activity = service.log_reading_session(
            pages_read=payload.pages_read,
            duration_minutes=payload.duration_minutes,
            book_title=payload.book_title,
            visibility=payload.visibility,
            created_at=payload.created_at,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    service.db.commit()
    service.db.refresh(activity)
    return activity


@router.get("/", response_model=List[ActivityResponse])
async def list_activities(
        service: ActivityServiceDep,
        user_id: Optional[int] = Query(None, description="Owner of the feed, defaults to me"),
        limit: int = Query(20, ge=1, le=100),
        offset: int = Query(0, ge=0)
):
    """
    Feed of one user's activities, restricted to the visibility tiers the
    caller is allowed to see.
    """
    owner = service.user
    if user_id is not None and user_id != service.user.id:
        owner = service.db.get(User, user_id)
        if not owner or not owner.is_active:
            raise HTTPException(status_code=404, detail="User not found")

    visibilities = FollowService(service.db, service.user).visibilities_for(owner)
    return service.list_activities(owner, visibilities, limit=limit, offset=offset)


@router.delete("/{activity_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_activity(activity_id: int, service: ActivityServiceDep):
    activity: Optional[Activity] = service.get_activity(activity_id)
    if not activity:
        raise HTTPException(status_code=404, detail="Activity not found")

    try:
        service.delete_activity(activity)
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))

    service.db.commit()
