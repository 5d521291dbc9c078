"""
Daily check-in service.

One reward per business-timezone day. Consecutive days build a streak and
every seventh consecutive day pays the larger streak reward.
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import Decimal
from zoneinfo import ZoneInfo

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from happyinvest.config.business_constants import CHECKIN_STREAK_LENGTH
from happyinvest.config.settings import settings
from happyinvest.models.enums import BalancePool, TransactionType
from happyinvest.models.user import User
from happyinvest.services.balance import BalanceChange, BalanceManager
from happyinvest.services.base_service import OperationResult
from happyinvest.utils.datetime_utils import business_date
from happyinvest.utils.db_decorators import with_rollback_on_error
from happyinvest.utils.exceptions import AlreadyProcessedError


@dataclass
class CheckinResult(OperationResult):
    """Result of a daily check-in."""

    reward: Decimal = Decimal("0")
    streak: int = 0
    new_balance: Decimal | None = None


@dataclass
class CheckinStatusResult(OperationResult):
    """Check-in status of a user."""

    checked_in_today: bool = False
    streak: int = 0


def next_streak(last_checkin: date | None, today: date, streak: int) -> int:
    """Streak after checking in on ``today``."""
    if last_checkin is not None and last_checkin == today - timedelta(days=1):
        return streak + 1
    return 1


def checkin_reward(streak: int) -> Decimal:
    """Reward paid for a check-in at the given streak length."""
    if streak % CHECKIN_STREAK_LENGTH == 0:
        return settings.checkin_streak_reward
    return settings.checkin_reward


class CheckinService:
    """Handles daily check-ins."""

    def __init__(
        self, session: AsyncSession, tz: ZoneInfo | None = None
    ) -> None:
        """
        Initialize check-in service.

        Args:
            session: Database session
            tz: Business timezone (defaults to settings)
        """
        self.session = session
        self.tz = tz or settings.tz
        self.balance_manager = BalanceManager(session)

    @with_rollback_on_error
    async def daily_checkin(self, user_id: int, now: datetime) -> CheckinResult:
        """
        Check in for today and collect the reward.

        Args:
            user_id: User ID
            now: Server time

        Returns:
            Check-in result

        Raises:
            AlreadyProcessedError: Already checked in today
        """
        today = business_date(now, self.tz)

        def check_in(user: User) -> BalanceChange:
            if user.last_checkin_date == today:
                raise AlreadyProcessedError("Already checked in today")
            streak = next_streak(
                user.last_checkin_date, today, user.checkin_streak
            )
            reward = checkin_reward(streak)
            return BalanceChange(
                spendable=reward,
                lifetime_earnings=reward,
                fields={"last_checkin_date": today, "checkin_streak": streak},
            )

        user = await self.balance_manager.apply(user_id, check_in, now)
        streak = user.checkin_streak
        reward = checkin_reward(streak)

        await self.balance_manager.record(
            user,
            TransactionType.CHECKIN.value,
            reward,
            pool=BalancePool.SPENDABLE,
            at=now,
            streak=streak,
            description=f"Daily check-in, streak {streak}",
        )

        new_balance = user.spendable_balance
        await self.session.commit()

        logger.info(
            "Daily check-in",
            extra={"user_id": user_id, "streak": streak, "reward": str(reward)},
        )
        return CheckinResult(
            message="Check-in successful",
            reward=reward,
            streak=streak,
            new_balance=new_balance,
        )

    async def get_checkin_status(
        self, user_id: int, now: datetime
    ) -> CheckinStatusResult:
        """Whether the user checked in today, and the current streak."""
        user = await self.balance_manager.get_user(user_id)
        today = business_date(now, self.tz)
        return CheckinStatusResult(
            checked_in_today=user.last_checkin_date == today,
            streak=user.checkin_streak,
        )
