"""
Datetime utilities.

Provides timezone-aware datetime functions.
"""

from datetime import UTC, date, datetime, timedelta
from zoneinfo import ZoneInfo


def utc_now() -> datetime:
    """
    Get current UTC datetime with timezone info.

    Returns:
        Current datetime in UTC with timezone awareness
    """
    return datetime.now(UTC)


def ensure_aware(value: datetime) -> datetime:
    """
    Treat naive datetimes as UTC.

    Args:
        value: Datetime that may lack tzinfo

    Returns:
        Timezone-aware datetime in UTC
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def business_date(moment: datetime, tz: ZoneInfo) -> date:
    """
    Calendar date of a moment in the business timezone.

    Args:
        moment: Aware datetime
        tz: Business timezone

    Returns:
        Local calendar date
    """
    return ensure_aware(moment).astimezone(tz).date()


def business_day_start(moment: datetime, tz: ZoneInfo) -> datetime:
    """Start of the business-timezone day containing ``moment``, in UTC."""
    local = ensure_aware(moment).astimezone(tz)
    start = local.replace(hour=0, minute=0, second=0, microsecond=0)
    return start.astimezone(UTC)


def latest_daily_slot(
    moment: datetime, hour: int, minute: int, tz: ZoneInfo
) -> datetime:
    """
    Most recent local ``hour:minute`` at or before ``moment``.

    Consecutive daily slots are exactly one day apart, whatever the jitter
    of the process that fires at them.

    Args:
        moment: Aware datetime
        hour: Local hour of the slot
        minute: Local minute of the slot
        tz: Business timezone

    Returns:
        Slot start in UTC
    """
    local = ensure_aware(moment).astimezone(tz)
    slot = local.replace(hour=hour, minute=minute, second=0, microsecond=0)
    if slot > local:
        slot -= timedelta(days=1)
    return slot.astimezone(UTC)
