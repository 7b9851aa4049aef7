from sqlalchemy import Boolean, Column, Integer, ForeignKey, DateTime, String, UniqueConstraint
from sqlalchemy.orm import relationship
from datetime import datetime, timezone
from app.database import Base


class ReadingGoal(Base):
    """A daily or weekly target. One row per (user, goal type); disabling keeps the row."""
    __tablename__ = "reading_goals"

    __table_args__ = (
        UniqueConstraint('user_id', 'goal_type', name='uq_goal_user_type'),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    # 'daily_pages', 'daily_minutes', 'weekly_pages', 'weekly_minutes', 'weekly_sessions'
    goal_type = Column(String, nullable=False)
    target_value = Column(Integer, nullable=False)
    active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc), nullable=False)
    updated_at = Column(DateTime, nullable=True)

    user = relationship("User", back_populates="goals")
