"""Daily check-in package."""

from happyinvest.services.checkin.checkin_service import (
    CheckinResult,
    CheckinService,
    CheckinStatusResult,
    checkin_reward,
    next_streak,
)

__all__ = [
    "CheckinResult",
    "CheckinService",
    "CheckinStatusResult",
    "checkin_reward",
    "next_streak",
]
