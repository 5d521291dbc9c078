"""
Ban service.

Creates and removes ban records. An active ban record is authoritative; the
``users.status`` column mirrors it for listings.
"""

from dataclasses import dataclass
from datetime import datetime

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from happyinvest.models.ban import BanRecord
from happyinvest.models.enums import BanSource, UserStatus
from happyinvest.repositories.ban_repository import BanRepository
from happyinvest.services.balance import BalanceChange, BalanceManager
from happyinvest.services.base_service import OperationResult
from happyinvest.utils.db_decorators import with_rollback_on_error
from happyinvest.utils.exceptions import InvalidRequestError


@dataclass
class BanResult(OperationResult):
    """Result of a ban or unban action."""

    user_id: int | None = None
    banned: bool = False


class BanService:
    """Operator and automatic bans."""

    def __init__(self, session: AsyncSession) -> None:
        """
        Initialize ban service.

        Args:
            session: Database session
        """
        self.session = session
        self.ban_repo = BanRepository(session)
        self.balance_manager = BalanceManager(session)

    async def is_banned(self, user_id: int, now: datetime) -> bool:
        """Whether an active ban record exists for the user."""
        return await self.ban_repo.get_active(user_id, now) is not None

    async def impose_ban(
        self,
        user_id: int,
        reason: str,
        now: datetime,
        expires_at: datetime | None = None,
        source: BanSource = BanSource.OPERATOR,
    ) -> BanRecord:
        """
        Create or replace the ban record without committing.

        Args:
            user_id: User ID
            reason: Ban reason
            now: Server time
            expires_at: Expiry (None for permanent)
            source: Who imposed the ban

        Returns:
            Ban record in force
        """
        await self.balance_manager.apply(
            user_id,
            BalanceChange(fields={"status": UserStatus.BANNED.value}),
            now,
            enforce_ban=False,
        )

        record = await self.ban_repo.get_by(user_id=user_id)
        if record is None:
            record = await self.ban_repo.create(
                user_id=user_id,
                reason=reason,
                source=source.value,
                banned_at=now,
                expires_at=expires_at,
            )
        else:
            await self.ban_repo.conditional_update(
                record.id,
                {},
                reason=reason,
                source=source.value,
                banned_at=now,
                expires_at=expires_at,
            )

        logger.warning(
            "User banned",
            extra={
                "user_id": user_id,
                "reason": reason,
                "source": source.value,
                "expires_at": expires_at.isoformat() if expires_at else None,
            },
        )
        return record

    @with_rollback_on_error
    async def ban_user(
        self,
        user_id: int,
        reason: str,
        now: datetime,
        expires_at: datetime | None = None,
        source: BanSource = BanSource.OPERATOR,
    ) -> BanResult:
        """
        Ban a user.

        Args:
            user_id: User ID
            reason: Ban reason
            now: Server time
            expires_at: Expiry (None for permanent)
            source: Who imposed the ban

        Returns:
            Ban result
        """
        if not reason or not reason.strip():
            raise InvalidRequestError("Ban reason is required")
        if expires_at is not None and expires_at <= now:
            raise InvalidRequestError("Ban expiry must be in the future")

        await self.impose_ban(user_id, reason, now, expires_at, source)
        await self.session.commit()
        return BanResult(message="User banned", user_id=user_id, banned=True)

    @with_rollback_on_error
    async def unban_user(
        self,
        user_id: int,
        now: datetime,
        reset_violations: bool = False,
    ) -> BanResult:
        """
        Remove the ban of a user.

        Args:
            user_id: User ID
            now: Server time
            reset_violations: Also clear the violation count and penalty

        Returns:
            Unban result
        """
        fields = {"status": UserStatus.ACTIVE.value}
        if reset_violations:
            fields.update(cheat_violation_count=0, penalty_until=None)

        await self.balance_manager.apply(
            user_id, BalanceChange(fields=fields), now, enforce_ban=False
        )
        removed = await self.ban_repo.delete_for_user(user_id)
        await self.session.commit()

        logger.info(
            "User unbanned",
            extra={
                "user_id": user_id,
                "had_ban_record": removed,
                "reset_violations": reset_violations,
            },
        )
        return BanResult(
            message="User unbanned" if removed else "User was not banned",
            user_id=user_id,
            banned=False,
        )
