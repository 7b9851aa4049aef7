"""
XP award rules - pure functions, no DB access.

- Reading session: 0 XP under 5 minutes, else round(10 x log10(1 + minutes))
  plus 1 XP per 10 pages (max +5). Daily cap is applied by XpService.
- Streak milestones: 2 days +5, 5 days +15, 10 days +30, 30 days +100.
- Goals: daily +10, weekly +30.
"""
import math
from typing import Optional

from app.core.reading_sessions import coerce_number

MIN_SESSION_MINUTES = 5
MAX_PAGES_BONUS = 5

# Highest first; only the biggest milestone crossed is paid
STREAK_MILESTONES = (
    (30, 100),
    (10, 30),
    (5, 15),
    (2, 5),
)

GOAL_XP = {
    "daily": 10,
    "weekly": 30,
}


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def calculate_reading_xp(duration_minutes, pages_read=0) -> int:
    minutes = coerce_number(duration_minutes)
    if minutes < MIN_SESSION_MINUTES:
        return 0

    # Logarithmic so long sessions can't be farmed
    base_xp = _round_half_up(10 * math.log10(1 + minutes))
    pages_bonus = min(MAX_PAGES_BONUS, int(max(0, coerce_number(pages_read)) // 10))

    return base_xp + pages_bonus


def crossed_streak_milestone(streak_days: int, previous_streak_days: int = 0) -> Optional[int]:
    """Biggest milestone (in days) crossed going from previous_streak_days to streak_days"""
    if streak_days <= previous_streak_days:
        return None

    for milestone, _ in STREAK_MILESTONES:
        if streak_days >= milestone and previous_streak_days < milestone:
            return milestone

    return None


def calculate_streak_xp(streak_days: int, previous_streak_days: int = 0) -> int:
    """XP for the milestone crossed going from previous_streak_days to streak_days, else 0"""
    milestone = crossed_streak_milestone(streak_days, previous_streak_days)
    return dict(STREAK_MILESTONES)[milestone] if milestone else 0


def calculate_goal_xp(goal_type: str) -> int:
    if goal_type not in GOAL_XP:
        raise ValueError(f"Unknown goal type: {goal_type}")
    return GOAL_XP[goal_type]
