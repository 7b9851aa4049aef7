from sqlalchemy import Column, Integer, ForeignKey, DateTime, String, JSON
from sqlalchemy.orm import relationship
from datetime import datetime, timezone
from app.database import Base


class XpEvent(Base):
    """Ledger of every XP award, newest first when listed"""
    __tablename__ = "xp_events"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    # 'reading', 'streak', 'goal_daily', 'goal_weekly'
    source = Column(String, nullable=False, index=True)
    xp_amount = Column(Integer, nullable=False)
    message = Column(String, nullable=False)
    meta = Column(JSON, nullable=True)

    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc), nullable=False, index=True)

    user = relationship("User", back_populates="xp_events")
