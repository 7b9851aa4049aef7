from datetime import datetime
from typing import Optional, Sequence
from sqlalchemy.orm import Session

from app.config import settings
from app.core.reading_stats import ReadingSummary, compute_reading_summary
from app.models.activity import Activity
from app.models.user import User


class ReadingStatsService:
    def __init__(self, db: Session, owner: User):
        self.db = db
        self.owner = owner

    def get_summary(
            self,
            visibilities: Optional[Sequence[str]] = None,
            now: Optional[datetime] = None
    ) -> ReadingSummary:
        query = self.db.query(Activity).filter(
            Activity.user_id == self.owner.id,
            Activity.type == "reading"
        )

        if visibilities:
            query = query.filter(Activity.visibility.in_(list(visibilities)))

        activities = query.order_by(Activity.created_at.desc()).limit(settings.stats_fetch_limit).all()
        return compute_reading_summary(activities, now=now)
