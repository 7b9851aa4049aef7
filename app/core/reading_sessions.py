"""
Helpers shared by every reading metric.

Activities reach this module either as ORM rows or as plain dicts (API
payloads, fixtures), so field access goes through `get_field`.
"""
import math
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any, Iterable, Optional

from app.core.dates import ensure_aware


def get_field(activity: Any, name: str, default=None):
    if activity is None:
        return default
    if isinstance(activity, Mapping):
        return activity.get(name, default)
    return getattr(activity, name, default)


def coerce_number(value: Any) -> int | float:
    """
    Numeric coercion for pages/minutes columns.
    None, blanks, garbage, NaN and infinities all become 0.
    """
    if value is None:
        return 0
    if isinstance(value, int):
        return int(value)

    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0

    if math.isnan(number) or math.isinf(number):
        return 0

    return int(number) if number.is_integer() else number


def parse_created_at(value: Any) -> Optional[datetime]:
    """Parse a created_at value into an aware UTC datetime, or None if unusable"""
    if isinstance(value, datetime):
        return ensure_aware(value).astimezone(timezone.utc)

    if not isinstance(value, str) or not value.strip():
        return None

    raw = value.strip()
    if raw.endswith(("Z", "z")):
        raw = raw[:-1] + "+00:00"

    try:
        parsed = datetime.fromisoformat(raw)
    except ValueError:
        return None

    return ensure_aware(parsed).astimezone(timezone.utc)


def activity_pages(activity: Any) -> int | float:
    return coerce_number(get_field(activity, "pages_read"))


def activity_minutes(activity: Any) -> int | float:
    return coerce_number(get_field(activity, "duration_minutes"))


def is_real_reading_session(activity: Any) -> bool:
    """
    A real session has both pages and minutes above zero.
    Placeholder rows (a 0 minute log, "started this book" entries) fail this.
    """
    return activity_pages(activity) > 0 and activity_minutes(activity) > 0


def filter_real_sessions(activities: Iterable[Any] | None) -> list:
    return [a for a in (activities or []) if is_real_reading_session(a)]
