import logging
from datetime import datetime, timezone
from typing import List, Optional
from sqlalchemy.orm import Session

from app.core.dates import resolve_timezone, utc_now
from app.core.goals import GOAL_TYPES, GoalStatus, evaluate_goal, goal_period, period_bounds
from app.core.xp_rewards import calculate_goal_xp
from app.models.activity import Activity
from app.models.goal import ReadingGoal
from app.models.user import User
from app.models.xp_event import XpEvent
from app.services.xp import XpService


class GoalService:
    """
    Reading goals and the XP paid when one is completed.
    A goal pays at most once per period (local day or Monday-first week).
    NOTE: Flushes only. Caller must run db.commit() to persist changes.
    """

    def __init__(self, db: Session, user: User):
        self.db = db
        self.user = user
        self.tz = resolve_timezone(user.timezone)
        self.logger = logging.getLogger(__name__)

    def list_goals(self, include_inactive: bool = False) -> List[ReadingGoal]:
        query = self.db.query(ReadingGoal).filter(ReadingGoal.user_id == self.user.id)
        if not include_inactive:
            query = query.filter(ReadingGoal.active.is_(True))
        return query.order_by(ReadingGoal.id).all()

    def get_goal(self, goal_id: int) -> Optional[ReadingGoal]:
        return self.db.get(ReadingGoal, goal_id)

    def set_goal(self, goal_type: str, target_value: int) -> ReadingGoal:
        """Create the goal, or update and re-enable the existing one of that type"""
        if goal_type not in GOAL_TYPES:
            raise ValueError(f"Unknown goal type '{goal_type}'")
        if target_value is None or target_value <= 0:
            raise ValueError("target_value must be positive")

        goal = self.db.query(ReadingGoal).filter(
            ReadingGoal.user_id == self.user.id,
            ReadingGoal.goal_type == goal_type
        ).first()

        if goal:
            goal.target_value = target_value
            goal.active = True
            goal.updated_at = utc_now()
        else:
            goal = ReadingGoal(user_id=self.user.id, goal_type=goal_type, target_value=target_value)
            self.db.add(goal)

        self.db.flush()
        self.logger.info(f"User {self.user.id} set {goal_type} goal to {target_value}")
        return goal

    def disable_goal(self, goal: ReadingGoal) -> None:
        if goal.user_id != self.user.id:
            raise PermissionError("Cannot change another user's goal")

        goal.active = False
        goal.updated_at = utc_now()
        self.db.flush()

    def _period_activities(self, now: datetime) -> List[Activity]:
        # The week always starts on or before today, so it covers both periods
        week_start, _ = period_bounds("weekly", self.tz, now)
        return self.db.query(Activity).filter(
            Activity.user_id == self.user.id,
            Activity.type == "reading",
            Activity.created_at >= week_start.astimezone(timezone.utc)
        ).all()

    def get_statuses(self, now: Optional[datetime] = None) -> List[GoalStatus]:
        now = now or utc_now()
        goals = self.list_goals()
        if not goals:
            return []

        activities = self._period_activities(now)
        return [
            evaluate_goal(goal.goal_type, goal.target_value, activities, self.tz, now, goal_id=goal.id)
            for goal in goals
        ]

    def _already_paid(self, status: GoalStatus, source: str, now: datetime) -> bool:
        period_start, _ = period_bounds(status.period, self.tz, now)
        events = self.db.query(XpEvent).filter(
            XpEvent.user_id == self.user.id,
            XpEvent.source == source,
            XpEvent.created_at >= period_start.astimezone(timezone.utc)
        ).all()

        return any(
            (e.meta or {}).get("goal_id") == status.goal_id
            and (e.meta or {}).get("period_key") == status.period_key
            for e in events
        )

    def check_and_award(self, now: Optional[datetime] = None) -> List[XpEvent]:
        """Pay goal XP for every goal completed in its current period and not paid yet"""
        now = now or utc_now()
        awarded = []

        for status in self.get_statuses(now):
            if not status.is_complete:
                continue

            source = f"goal_{status.period}"
            if self._already_paid(status, source, now):
                continue

            event = XpService(self.db, self.user).award(
                calculate_goal_xp(goal_period(status.goal_type)),
                source,
                meta={
                    "goal_id": status.goal_id,
                    "goal_type": status.goal_type,
                    "target_value": status.target_value,
                    "period_key": status.period_key,
                },
                now=now
            )
            if event:
                awarded.append(event)

        return awarded
