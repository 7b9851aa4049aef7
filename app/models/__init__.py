# Import all models here so SQLAlchemy can set up relationships
from app.models.user import User
from app.models.activity import Activity
from app.models.xp_event import XpEvent
from app.models.follow import Follow
from app.models.goal import ReadingGoal

# This ensures all models are loaded before relationships are configured
__all__ = [
    'User',
    'Activity',
    'XpEvent',
    'Follow',
    'ReadingGoal',
]
