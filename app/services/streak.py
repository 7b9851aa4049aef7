import logging
from datetime import date, datetime, time, timezone
from typing import List, Optional
from sqlalchemy.orm import Session

from app.config import settings
from app.core.dates import resolve_timezone, utc_now
from app.core.events import event_bus, STREAK_UPDATED
from app.core.streaks import StreakInfo, compute_longest_streak, compute_streak_info, streak_run_start
from app.core.xp_rewards import calculate_streak_xp, crossed_streak_milestone
from app.models.activity import Activity
from app.models.xp_event import XpEvent
from app.models.user import User
from app.services.xp import XpService


class StreakService:
    """
    Computes a reader's day streak from recent activity rows and keeps the
    cached counters on the user row in sync.
    """

    def __init__(self, db: Session, user: User):
        self.db = db
        self.user = user
        self.tz = resolve_timezone(user.timezone)
        self.logger = logging.getLogger(__name__)

    def recent_reading_activities(self, limit: Optional[int] = None) -> List[Activity]:
        return self.db.query(Activity).filter(
            Activity.user_id == self.user.id,
            Activity.type == "reading"
        ).order_by(
            Activity.created_at.desc()
        ).limit(limit or settings.streak_fetch_limit).all()

    def get_info(self, now: Optional[datetime] = None) -> StreakInfo:
        """Read-only streak view, nothing is written"""
        return compute_streak_info(self.recent_reading_activities(), self.tz, now)

    def refresh(self, now: Optional[datetime] = None) -> StreakInfo:
        """
        Recompute the streak, write current/longest back to the user and pay
        out any milestone XP crossed on the way up.
        NOTE: Flushes only. Caller must run db.commit() to persist changes.
        """
        now = now or utc_now()
        activities = self.recent_reading_activities()
        info = compute_streak_info(activities, self.tz, now)

        previous_streak = self.user.current_streak or 0
        longest = max(
            self.user.longest_streak or 0,
            compute_longest_streak(activities, self.tz),
            info.streak
        )

        if previous_streak != info.streak or (self.user.longest_streak or 0) != longest:
            self.logger.debug(
                f"User {self.user.id} streak {previous_streak} -> {info.streak} (longest {longest})"
            )
            self.user.current_streak = info.streak
            self.user.longest_streak = longest
            self.db.flush()

        milestone = crossed_streak_milestone(info.streak, previous_streak)
        if milestone:
            self._award_milestone(info, milestone, previous_streak, now)

        if previous_streak != info.streak:
            event_bus.publish(STREAK_UPDATED, user_id=self.user.id, streak=info.streak)

        return info

    def _milestone_paid(self, run_start: date, milestone: int) -> bool:
        """Whether this milestone was already paid for the run starting on run_start"""
        run_start_utc = datetime.combine(run_start, time.min, tzinfo=self.tz).astimezone(timezone.utc)
        events = self.db.query(XpEvent).filter(
            XpEvent.user_id == self.user.id,
            XpEvent.source == "streak",
            XpEvent.created_at >= run_start_utc
        ).all()

        run_key = run_start.isoformat()
        return any(
            (e.meta or {}).get("run_start") == run_key and (e.meta or {}).get("milestone") == milestone
            for e in events
        )

    def _award_milestone(self, info: StreakInfo, milestone: int, previous_streak: int, now: datetime):
        # Deleting and re-logging a session dips the cached streak, so the
        # ledger decides whether this run already earned the milestone
        run_start = streak_run_start(info, self.tz, now)
        if run_start is None or self._milestone_paid(run_start, milestone):
            self.logger.debug(f"User {self.user.id} already paid the {milestone}-day milestone for this run")
            return None

        return XpService(self.db, self.user).award(
            calculate_streak_xp(info.streak, previous_streak),
            "streak",
            meta={
                "streak_days": info.streak,
                "previous_streak_days": previous_streak,
                "milestone": milestone,
                "run_start": run_start.isoformat(),
            },
            now=now
        )
