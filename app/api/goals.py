from datetime import datetime
from typing import Annotated, List, Optional
from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, ConfigDict, Field

from app.api.deps import SessionDep, CurrentUser
from app.services.goals import GoalService

router = APIRouter()


class GoalRequest(BaseModel):
    goal_type: str
    target_value: int = Field(gt=0)


class GoalResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    goal_type: str
    target_value: int
    active: bool
    created_at: datetime
    updated_at: Optional[datetime]


class GoalStatusResponse(BaseModel):
    goal_id: int
    goal_type: str
    period: str
    unit: str
    target_value: int
    current_value: float
    is_complete: bool
    period_key: str
    percent: float


def get_goal_service(db: SessionDep, user: CurrentUser) -> GoalService:
    return GoalService(db, user)

GoalServiceDep = Annotated[GoalService, Depends(get_goal_service)]


@router.get("/", response_model=List[GoalStatusResponse])
async def get_goal_progress(service: GoalServiceDep):
    """
    Active goals with progress over the current local day or week.
    """
    return [s.to_dict() for s in service.get_statuses()]


@router.put("/", response_model=GoalResponse)
async def set_goal(payload: GoalRequest, service: GoalServiceDep):
    """
    Create or update the caller's goal of this type. If the new target is
    already met for the period, the goal XP is paid straight away.
    """
    try:
        goal = service.set_goal(payload.goal_type, payload.target_value)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    service.check_and_award()
    service.db.commit()
    service.db.refresh(goal)
    return goal


@router.delete("/{goal_id}", status_code=status.HTTP_204_NO_CONTENT)
async def disable_goal(goal_id: int, service: GoalServiceDep):
    goal = service.get_goal(goal_id)
    if not goal or not goal.active:
        raise HTTPException(status_code=404, detail="Goal not found")

    try:
        service.disable_goal(goal)
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))

    service.db.commit()
