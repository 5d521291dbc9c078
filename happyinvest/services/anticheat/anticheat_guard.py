"""
Anti-cheat guard.

Compares the client-reported clock with the server clock on the on-demand
payout path. Client time is never used to advance state; it only feeds
abuse detection. Each detection is logged, counted and opens a penalty
window; reaching the threshold bans the account.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from happyinvest.config.business_constants import AUTO_BAN_REASON
from happyinvest.config.settings import settings
from happyinvest.models.enums import BanSource, UserStatus
from happyinvest.models.user import User
from happyinvest.repositories.cheat_violation_repository import (
    CheatViolationRepository,
)
from happyinvest.services.anticheat.ban_service import BanService
from happyinvest.services.balance import BalanceChange, BalanceManager
from happyinvest.utils.datetime_utils import ensure_aware


@dataclass
class GuardVerdict:
    """Outcome of a clock drift inspection."""

    ok: bool
    drift_seconds: int
    violation_count: int = 0
    banned: bool = False
    penalty_until: datetime | None = None


def clock_drift(client_timestamp: datetime, now: datetime) -> timedelta:
    """Absolute difference between client and server clocks."""
    return abs(now - ensure_aware(client_timestamp))


class AntiCheatGuard:
    """Clock drift detection with escalation to ban."""

    def __init__(
        self,
        session: AsyncSession,
        max_drift: timedelta | None = None,
        penalty_window: timedelta | None = None,
        ban_threshold: int | None = None,
    ) -> None:
        """
        Initialize anti-cheat guard.

        Args:
            session: Database session
            max_drift: Tolerated drift (defaults to settings)
            penalty_window: Penalty after a violation (defaults to settings)
            ban_threshold: Violations that trigger a ban (defaults to settings)
        """
        self.session = session
        self.max_drift = max_drift or timedelta(
            seconds=settings.max_clock_drift_seconds
        )
        self.penalty_window = penalty_window or timedelta(
            minutes=settings.cheat_penalty_minutes
        )
        self.ban_threshold = ban_threshold or settings.cheat_ban_threshold
        self.violation_repo = CheatViolationRepository(session)
        self.balance_manager = BalanceManager(session)
        self.ban_service = BanService(session)

    async def inspect(
        self, user_id: int, client_timestamp: datetime, now: datetime
    ) -> GuardVerdict:
        """
        Inspect client clock drift and record a violation if it is too large.

        Does not commit; the caller commits together with its own refusal.

        Args:
            user_id: User ID
            client_timestamp: Clock reported by the client
            now: Server time

        Returns:
            Guard verdict
        """
        drift = clock_drift(client_timestamp, now)
        drift_seconds = int(drift.total_seconds())
        if drift <= self.max_drift:
            return GuardVerdict(ok=True, drift_seconds=drift_seconds)

        penalty_until = now + self.penalty_window

        def register_violation(user: User) -> BalanceChange:
            count = user.cheat_violation_count + 1
            fields = {
                "cheat_violation_count": count,
                "penalty_until": penalty_until,
            }
            if count >= self.ban_threshold:
                fields["status"] = UserStatus.BANNED.value
            return BalanceChange(fields=fields)

        user = await self.balance_manager.apply(
            user_id, register_violation, now, enforce_ban=False
        )
        count = user.cheat_violation_count

        await self.violation_repo.create(
            user_id=user_id,
            server_time=now,
            client_time=ensure_aware(client_timestamp),
            drift_seconds=drift_seconds,
            violation_number=count,
            created_at=now,
        )

        logger.warning(
            "Client clock drift detected",
            extra={
                "user_id": user_id,
                "drift_seconds": drift_seconds,
                "violation_count": count,
            },
        )

        banned = count >= self.ban_threshold
        if banned:
            await self.ban_service.impose_ban(
                user_id, AUTO_BAN_REASON, now, source=BanSource.ANTI_CHEAT
            )

        return GuardVerdict(
            ok=False,
            drift_seconds=drift_seconds,
            violation_count=count,
            banned=banned,
            penalty_until=penalty_until,
        )
