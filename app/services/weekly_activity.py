from datetime import datetime, timezone
from typing import Optional, Sequence
from sqlalchemy.orm import Session

from app.core.dates import resolve_timezone
from app.core.weekly import WeeklyActivity, aggregate_week, week_bounds
from app.models.activity import Activity
from app.models.user import User


class WeeklyActivityService:
    def __init__(self, db: Session, owner: User):
        self.db = db
        self.owner = owner
        self.tz = resolve_timezone(owner.timezone)

    def get_week(
            self,
            week_offset: int = 0,
            visibilities: Optional[Sequence[str]] = None,
            now: Optional[datetime] = None
    ) -> WeeklyActivity:
        """
        Monday-Sunday buckets for the owner's week `week_offset` weeks back.
        `visibilities` limits rows to those tiers (None = all).
        """
        week_start, week_end = week_bounds(self.tz, week_offset, now)

        query = self.db.query(Activity).filter(
            Activity.user_id == self.owner.id,
            Activity.type == "reading",
            Activity.created_at >= week_start.astimezone(timezone.utc),
            Activity.created_at <= week_end.astimezone(timezone.utc)
        )

        if visibilities:
            query = query.filter(Activity.visibility.in_(list(visibilities)))

        return aggregate_week(query.all(), self.tz, week_offset, now)
