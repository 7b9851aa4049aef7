from sqlalchemy import Boolean, Column, Integer, String, DateTime
from sqlalchemy.orm import relationship
from datetime import datetime, timezone
from app.database import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    username = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    display_name = Column(String, nullable=True)

    # IANA zone name (e.g. "Europe/Paris"). Day streaks and weekly buckets are
    # computed in this zone. NULL means the server default.
    timezone = Column(String, nullable=True, default=None)

    # Cached counters. Recomputed from activities and written back by the services.
    xp_total = Column(Integer, nullable=False, default=0)
    current_streak = Column(Integer, nullable=False, default=0)
    longest_streak = Column(Integer, nullable=False, default=0)
    last_xp_at = Column(DateTime, nullable=True)

    is_active = Column(Boolean, default=True)

    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    last_login = Column(DateTime, nullable=True)

    # Relationships

    # When a user is deleted, delete their reading history too
    activities = relationship("Activity", back_populates="user", cascade="all, delete-orphan")
    xp_events = relationship("XpEvent", back_populates="user", cascade="all, delete-orphan")
    goals = relationship("ReadingGoal", back_populates="user", cascade="all, delete-orphan")
