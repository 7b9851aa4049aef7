from fastapi import APIRouter, HTTPException, status

from app.api.deps import SessionDep, CurrentUser, TargetUserDep
from app.services.follows import FollowService

router = APIRouter()


@router.post("/{user_id}", status_code=status.HTTP_201_CREATED)
async def follow_user(target: TargetUserDep, db: SessionDep, current_user: CurrentUser):
    try:
        FollowService(db, current_user).follow(target)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    db.commit()
    return {"following_id": target.id, "is_following": True}


@router.delete("/{user_id}")
async def unfollow_user(target: TargetUserDep, db: SessionDep, current_user: CurrentUser):
    removed = FollowService(db, current_user).unfollow(target)
    if not removed:
        raise HTTPException(status_code=404, detail="Not following this user")

    db.commit()
    return {"following_id": target.id, "is_following": False}
