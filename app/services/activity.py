import logging
from datetime import datetime, timezone
from typing import List, Optional, Sequence
from sqlalchemy.orm import Session

from app.core.dates import ensure_aware, utc_now
from app.core.reading_sessions import coerce_number
from app.core.xp_rewards import calculate_reading_xp
from app.models.activity import Activity, VISIBILITY_LEVELS
from app.models.user import User
from app.services.goals import GoalService
from app.services.streak import StreakService
from app.services.xp import XpService


def session_rates(pages_read, duration_minutes) -> tuple[Optional[float], Optional[float]]:
    """(pages per hour, minutes per page) for one session, None when not computable"""
    pages = coerce_number(pages_read)
    minutes = coerce_number(duration_minutes)
    if pages <= 0 or minutes <= 0:
        return None, None
    return round(pages / (minutes / 60), 1), round(minutes / pages, 1)


class ActivityService:
    """
    Logging and listing reading activities.
    NOTE: Flushes only. Caller must run db.commit() to persist changes.
    """

    def __init__(self, db: Session, user: User):
        self.db = db
        self.user = user
        self.logger = logging.getLogger(__name__)

    def log_reading_session(
            self,
            pages_read: Optional[int],
            duration_minutes: Optional[int],
            book_title: Optional[str] = None,
            visibility: str = "public",
            created_at: Optional[datetime] = None
    ) -> Activity:
        """
        Store a reading session, pay reading XP, refresh the streak and pay any goal it completes.
        """
        if visibility not in VISIBILITY_LEVELS:
            raise ValueError(f"Invalid visibility '{visibility}'")

        if (pages_read is not None and pages_read < 0) or (duration_minutes is not None and duration_minutes < 0):
            raise ValueError("pages_read and duration_minutes cannot be negative")

        now = utc_now()
        # The column is naive UTC, so offsets must be folded in before storing
        created_at = ensure_aware(created_at).astimezone(timezone.utc) if created_at else now
        speed, pace = session_rates(pages_read, duration_minutes)

        activity = Activity(
            user_id=self.user.id,
            type="reading",
            visibility=visibility,
            book_title=book_title,
            pages_read=pages_read,
            duration_minutes=duration_minutes,
            reading_speed_pph=speed,
            reading_pace_min_per_page=pace,
            created_at=created_at,
        )
        self.db.add(activity)
        self.db.flush()

        xp = calculate_reading_xp(duration_minutes, pages_read or 0)
        event = XpService(self.db, self.user).award(
            xp,
            "reading",
            meta={"pages_read": pages_read or 0, "activity_id": activity.id},
            now=now
        )
        activity.xp_awarded = event.xp_amount if event else 0

        StreakService(self.db, self.user).refresh(now)
        GoalService(self.db, self.user).check_and_award(now)
        self.db.flush()

        self.logger.info(
            f"User {self.user.id} logged {pages_read or 0} pages / {duration_minutes or 0} min "
            f"(+{activity.xp_awarded} XP)"
        )
        return activity

    def get_activity(self, activity_id: int) -> Optional[Activity]:
        return self.db.get(Activity, activity_id)

    def list_activities(
            self,
            owner: User,
            visibilities: Optional[Sequence[str]] = None,
            limit: int = 20,
            offset: int = 0
    ) -> List[Activity]:
        query = self.db.query(Activity).filter(Activity.user_id == owner.id)

        if visibilities:
            query = query.filter(Activity.visibility.in_(list(visibilities)))

        return query.order_by(Activity.created_at.desc(), Activity.id.desc()).offset(offset).limit(limit).all()

    def delete_activity(self, activity: Activity) -> None:
        """Remove one of the user's own activities. XP already paid is kept."""
        if activity.user_id != self.user.id:
            raise PermissionError("Cannot delete another user's activity")

        self.db.delete(activity)
        self.db.flush()

        StreakService(self.db, self.user).refresh()
