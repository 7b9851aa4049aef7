from sqlalchemy import Column, Integer, ForeignKey, DateTime, String, Float, Index
from sqlalchemy.orm import relationship
from datetime import datetime, timezone
from app.database import Base


VISIBILITY_LEVELS = ("public", "followers", "private")


class Activity(Base):
    """One logged event on a user's feed. Reading sessions have type 'reading'."""
    __tablename__ = "activities"

    __table_args__ = (
        Index('idx_activity_user_type_created', 'user_id', 'type', 'created_at'),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    type = Column(String, nullable=False, default="reading")
    visibility = Column(String, nullable=False, default="public")
    book_title = Column(String, nullable=True)

    # Either can be NULL or 0 for placeholder rows (e.g. "started a book")
    pages_read = Column(Integer, nullable=True)
    duration_minutes = Column(Integer, nullable=True)

    # Snapshot of the session rate at insert time
    reading_speed_pph = Column(Float, nullable=True)
    reading_pace_min_per_page = Column(Float, nullable=True)

    xp_awarded = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc), nullable=False, index=True)

    user = relationship("User", back_populates="activities")
