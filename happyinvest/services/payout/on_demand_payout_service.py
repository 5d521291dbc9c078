"""
On-demand payout check.

User-triggered reconciliation gated by the ban check, the anti-cheat guard,
the penalty window and the per-user cooldown.
"""

import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from happyinvest.config.settings import settings
from happyinvest.models.user import User
from happyinvest.repositories.ban_repository import BanRepository
from happyinvest.services.anticheat import AntiCheatGuard
from happyinvest.services.balance import BalanceChange, BalanceManager
from happyinvest.services.base_service import OperationResult
from happyinvest.services.payout.payout_reconciler import PayoutReconciler
from happyinvest.utils.db_decorators import with_rollback_on_error
from happyinvest.utils.exceptions import ErrorCode, RateLimitedError


@dataclass
class PayoutCheckResult(OperationResult):
    """Result of an on-demand payout check."""

    income_added: Decimal = Decimal("0")
    regular_income: Decimal = Decimal("0")
    locked_income: Decimal = Decimal("0")
    investments_credited: int = 0
    next_check_allowed_at: datetime | None = None
    wait_minutes: int | None = None
    banned: bool = False
    drift_seconds: int | None = None
    violation_count: int | None = None


def minutes_until(moment: datetime, now: datetime) -> int:
    """Whole minutes from ``now`` until ``moment``, rounded up."""
    return max(1, math.ceil((moment - now).total_seconds() / 60))


def in_cooldown(user: User, now: datetime) -> bool:
    """Whether the per-user check cooldown is still running."""
    return (
        user.next_check_allowed_at is not None
        and now < user.next_check_allowed_at
    )


class OnDemandPayoutService:
    """Handles user-triggered payout checks."""

    def __init__(
        self,
        session: AsyncSession,
        cooldown: timedelta | None = None,
    ) -> None:
        """
        Initialize on-demand payout service.

        Args:
            session: Database session
            cooldown: Interval between checks (defaults to settings)
        """
        self.session = session
        self.cooldown = cooldown or timedelta(
            minutes=settings.payout_check_cooldown_minutes
        )
        self.ban_repo = BanRepository(session)
        self.balance_manager = BalanceManager(session)
        self.guard = AntiCheatGuard(session)
        self.reconciler = PayoutReconciler(session)

    @staticmethod
    def _banned() -> PayoutCheckResult:
        return PayoutCheckResult(
            success=False,
            message="Account is banned",
            error_code=ErrorCode.BANNED,
            banned=True,
        )

    @staticmethod
    def _cooling_down(until: datetime, now: datetime) -> PayoutCheckResult:
        wait = minutes_until(until, now)
        return PayoutCheckResult(
            success=False,
            message=f"Please wait {wait} minutes before checking again.",
            error_code=ErrorCode.RATE_LIMITED,
            wait_minutes=wait,
            next_check_allowed_at=until,
        )

    @with_rollback_on_error
    async def check_payout(
        self, user_id: int, client_timestamp: datetime, now: datetime
    ) -> PayoutCheckResult:
        """
        Run an on-demand payout check for one user.

        Args:
            user_id: User ID
            client_timestamp: Clock reported by the client
            now: Server time

        Returns:
            Credited income, a wait-time hint, or a banned result

        Raises:
            NotFoundError: User missing
        """
        user = await self.balance_manager.get_user(user_id)

        if await self.ban_repo.get_active(user_id, now):
            return self._banned()

        if settings.emergency_stop_payouts:
            logger.warning(
                "Payout check refused: emergency stop active",
                extra={"user_id": user_id},
            )
            return PayoutCheckResult(
                success=False,
                message="Payouts are temporarily paused",
                error_code=ErrorCode.RATE_LIMITED,
            )

        verdict = await self.guard.inspect(user_id, client_timestamp, now)
        if not verdict.ok:
            await self.session.commit()
            if verdict.banned:
                return self._banned()
            wait = minutes_until(verdict.penalty_until, now)
            return PayoutCheckResult(
                success=False,
                message=(
                    f"Your device clock is off by {verdict.drift_seconds // 60} "
                    f"minutes. Correct it and try again in {wait} minutes."
                ),
                error_code=ErrorCode.TIME_DRIFT_DETECTED,
                wait_minutes=wait,
                drift_seconds=verdict.drift_seconds,
                violation_count=verdict.violation_count,
            )

        if user.penalty_until is not None and now < user.penalty_until:
            wait = minutes_until(user.penalty_until, now)
            return PayoutCheckResult(
                success=False,
                message=f"Payout checks are suspended. Try again in {wait} minutes.",
                error_code=ErrorCode.RATE_LIMITED,
                wait_minutes=wait,
            )

        if in_cooldown(user, now):
            return self._cooling_down(user.next_check_allowed_at, now)

        next_check_allowed_at = now + self.cooldown

        def start_cooldown(current: User) -> BalanceChange:
            # Re-checked on every compare-and-swap attempt
            if in_cooldown(current, now):
                raise RateLimitedError(
                    wait_minutes=minutes_until(current.next_check_allowed_at, now),
                    retry_at=current.next_check_allowed_at,
                )
            return BalanceChange(
                fields={"next_check_allowed_at": next_check_allowed_at}
            )

        try:
            await self.balance_manager.apply(user_id, start_cooldown, now)
        except RateLimitedError as e:
            logger.info(
                "Concurrent payout check already started the cooldown",
                extra={"user_id": user_id, "wait_minutes": e.wait_minutes},
            )
            return self._cooling_down(e.retry_at, now)

        summary = await self.reconciler.reconcile_user(user_id, now)
        await self.session.commit()

        logger.info(
            "Payout check completed",
            extra={
                "user_id": user_id,
                "income_added": str(summary.income_added),
                "investments_credited": len(summary.credits),
            },
        )

        return PayoutCheckResult(
            message=(
                f"Income added: {summary.income_added}"
                if summary.credits
                else "No income due yet"
            ),
            income_added=summary.income_added,
            regular_income=summary.regular_income,
            locked_income=summary.locked_income,
            investments_credited=len(summary.credits),
            next_check_allowed_at=next_check_allowed_at,
        )
