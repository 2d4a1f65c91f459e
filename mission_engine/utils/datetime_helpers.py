"""
Calendar date resolution for the API boundary

Missions are tracked per user-local calendar date. The date is resolved once,
here, from the request, and then passed explicitly through the engine; nothing
below the API computes "today" on its own.
"""

import logging
from datetime import date, datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from mission_engine.config import DEFAULT_TIMEZONE
from mission_engine.exceptions import ValidationError

logger = logging.getLogger(__name__)


def get_zone(timezone_name: Optional[str]) -> ZoneInfo:
    """
    Look up an IANA timezone, falling back to DEFAULT_TIMEZONE when none is given

    Raises:
        ValidationError: Unknown timezone name
    """
    name = timezone_name or DEFAULT_TIMEZONE
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        raise ValidationError(
            message=f"unknown timezone '{name}'",
            field="timezone",
            value=name
        )


def user_today(timezone_name: Optional[str] = None, now: Optional[datetime] = None) -> date:
    """
    Current calendar date in the user's timezone

    Args:
        timezone_name: IANA timezone, e.g. "Asia/Jakarta"
        now: Aware instant to convert (defaults to the current UTC time)
    """
    instant = now or datetime.now(timezone.utc)
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=timezone.utc)
    return instant.astimezone(get_zone(timezone_name)).date()


def resolve_user_date(
    explicit_date: Optional[date],
    timezone_name: Optional[str] = None,
    now: Optional[datetime] = None
) -> date:
    """
    Date a mission request applies to: the explicit date, else the user's today

    Example:
        >>> resolve_user_date(None, "Asia/Jakarta", datetime(2025, 8, 21, 20, 0, tzinfo=timezone.utc))
        datetime.date(2025, 8, 22)
    """
    if explicit_date is not None:
        return explicit_date
    return user_today(timezone_name, now)
