"""
Leveling rules.

Level N starts at 50 x N^2 XP:
- Level 1: 0 - 199
- Level 2: 200 - 449
- Level 3: 450 - 799
- Level 5: 1250 - 1799
"""
import math
from dataclasses import dataclass, asdict

from app.core.reading_sessions import coerce_number

XP_PER_LEVEL_FACTOR = 50


@dataclass(frozen=True)
class LevelProgress:
    level: int
    into_level: int | float  # XP earned since the start of the current level
    needed: int  # XP span of the current level
    remaining: int | float  # XP left before the next level
    percent: float  # 0 - 100
    xp_total: int | float

    def to_dict(self) -> dict:
        return asdict(self)


def xp_required_for_level(level: int) -> int:
    """XP at which `level` starts"""
    if level <= 1:
        return 0
    return XP_PER_LEVEL_FACTOR * level * level


def level_from_xp(xp_total) -> int:
    """Largest N with 50 x N^2 <= xp_total, never below 1"""
    xp = coerce_number(xp_total)
    if xp < xp_required_for_level(2):
        return 1

    # Integer square root keeps exact thresholds exact (1250 -> 5, 1249 -> 4)
    return max(1, math.isqrt(math.floor(xp) // XP_PER_LEVEL_FACTOR))


def level_progress(xp_total) -> LevelProgress:
    xp = max(0, coerce_number(xp_total))

    level = level_from_xp(xp)
    level_start = xp_required_for_level(level)
    next_level_start = xp_required_for_level(level + 1)

    into_level = max(0, xp - level_start)
    needed = next_level_start - level_start
    remaining = max(0, next_level_start - xp)

    if needed > 0:
        percent = min(100.0, max(0.0, into_level / needed * 100))
    else:
        percent = 100.0

    return LevelProgress(
        level=level,
        into_level=into_level,
        needed=needed,
        remaining=remaining,
        percent=percent,
        xp_total=xp,
    )


def format_xp(xp) -> str:
    """1500 -> '1.5K', 2300000 -> '2.3M', 42 -> '42'"""
    value = coerce_number(xp)
    if value >= 1_000_000:
        return f"{value / 1_000_000:.1f}M"
    if value >= 1_000:
        return f"{value / 1_000:.1f}K"
    return str(value)
