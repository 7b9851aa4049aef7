import logging
from datetime import datetime, time, timezone
from typing import List, Optional
from sqlalchemy import func
from sqlalchemy.orm import Session

from app.config import settings
from app.core.dates import resolve_timezone, utc_now
from app.core.events import event_bus, XP_UPDATED
from app.models.user import User
from app.models.xp_event import XpEvent

XP_SOURCES = ("reading", "streak", "goal_daily", "goal_weekly")


def build_xp_message(source: str, meta: Optional[dict] = None) -> str:
    meta = meta or {}
    if source == "reading":
        pages = meta.get("pages_read")
        return f"Reading session · {pages} pages" if pages else "Reading session"
    if source == "streak":
        return f"{meta.get('streak_days', 0)}-day streak"
    if source == "goal_daily":
        return "Daily goal reached"
    if source == "goal_weekly":
        return "Weekly goal reached"
    return source


class XpService:
    """
    Awards XP and keeps the xp_events ledger.
    NOTE: Flushes only. Caller must run db.commit() to persist changes.
    """

    def __init__(self, db: Session, user: User):
        self.db = db
        self.user = user
        self.logger = logging.getLogger(__name__)

    def _start_of_local_day_utc(self, now: datetime) -> datetime:
        tz = resolve_timezone(self.user.timezone)
        local_day = now.astimezone(tz).date()
        return datetime.combine(local_day, time.min, tzinfo=tz).astimezone(timezone.utc)

    def reading_xp_today(self, now: Optional[datetime] = None) -> int:
        """Reading XP already awarded since the reader's local midnight"""
        now = now or utc_now()
        total = self.db.query(func.coalesce(func.sum(XpEvent.xp_amount), 0)).filter(
            XpEvent.user_id == self.user.id,
            XpEvent.source == "reading",
            XpEvent.created_at >= self._start_of_local_day_utc(now)
        ).scalar()
        return int(total or 0)

    def award(
            self,
            amount: int,
            source: str,
            meta: Optional[dict] = None,
            message: Optional[str] = None,
            now: Optional[datetime] = None
    ) -> Optional[XpEvent]:
        """
        Add XP to the user and log it. Reading XP is capped per local day.
        Returns the ledger entry, or None when nothing was awarded.
        """
        if source not in XP_SOURCES:
            raise ValueError(f"Unknown XP source: {source}")

        if amount <= 0:
            return None

        now = now or utc_now()

        if source == "reading":
            remaining = max(0, settings.daily_reading_xp_cap - self.reading_xp_today(now))
            if remaining <= 0:
                self.logger.debug(f"User {self.user.id} hit the daily reading XP cap")
                return None
            amount = min(amount, remaining)

        # Atomic increment so concurrent awards don't overwrite each other
        self.db.query(User).filter(User.id == self.user.id).update(
            {
                User.xp_total: func.coalesce(User.xp_total, 0) + amount,
                User.last_xp_at: now,
            },
            synchronize_session=False
        )

        event = XpEvent(
            user_id=self.user.id,
            source=source,
            xp_amount=amount,
            message=message or build_xp_message(source, meta),
            meta=meta or {},
            created_at=now,
        )
        self.db.add(event)
        self.db.flush()
        self.db.refresh(self.user)

        self.logger.info(f"Awarded {amount} XP ({source}) to user {self.user.id}, total {self.user.xp_total}")
        event_bus.publish(XP_UPDATED, user_id=self.user.id, xp_total=self.user.xp_total)

        return event

    def history(self, limit: int = 50) -> List[XpEvent]:
        return self.db.query(XpEvent).filter(
            XpEvent.user_id == self.user.id
        ).order_by(
            XpEvent.created_at.desc(), XpEvent.id.desc()
        ).limit(limit).all()
