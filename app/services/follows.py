from typing import List
from sqlalchemy.orm import Session

from app.models.activity import VISIBILITY_LEVELS
from app.models.follow import Follow
from app.models.user import User


def allowed_visibilities(viewer: User, owner: User, is_follower: bool) -> List[str]:
    """
    Which activity visibility tiers `viewer` may see on `owner`'s profile.
    - Self: everything
    - Follower: public + followers
    - Anyone else: public only
    """
    if viewer.id == owner.id:
        return list(VISIBILITY_LEVELS)
    if is_follower:
        return ["public", "followers"]
    return ["public"]


class FollowService:
    """NOTE: Flushes only. Caller must commit."""

    def __init__(self, db: Session, user: User):
        self.db = db
        self.user = user

    def _get(self, target_id: int) -> Follow | None:
        return self.db.query(Follow).filter(
            Follow.follower_id == self.user.id,
            Follow.following_id == target_id
        ).first()

    def is_following(self, target_id: int) -> bool:
        return self._get(target_id) is not None

    def follow(self, target: User) -> Follow:
        if target.id == self.user.id:
            raise ValueError("You cannot follow yourself")

        existing = self._get(target.id)
        if existing:
            return existing

        follow = Follow(follower_id=self.user.id, following_id=target.id)
        self.db.add(follow)
        self.db.flush()
        return follow

    def unfollow(self, target: User) -> bool:
        existing = self._get(target.id)
        if not existing:
            return False
        self.db.delete(existing)
        self.db.flush()
        return True

    def visibilities_for(self, owner: User) -> List[str]:
        return allowed_visibilities(self.user, owner, self.is_following(owner.id))
