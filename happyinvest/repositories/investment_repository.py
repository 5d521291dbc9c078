"""
Investment repository.

Data access layer for Investment model.
"""

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from happyinvest.models.enums import InvestmentStatus
from happyinvest.models.investment import Investment
from happyinvest.repositories.base import BaseRepository


class InvestmentRepository(BaseRepository[Investment]):
    """Investment repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize investment repository."""
        super().__init__(Investment, session)

    async def get_by_user(self, user_id: int) -> list[Investment]:
        """
        Get all investments of a user, newest first.

        Args:
            user_id: User ID

        Returns:
            List of investments
        """
        return await self.find_by(newest_first=True, user_id=user_id)

    async def get_active_by_user(self, user_id: int) -> list[Investment]:
        """
        Get active investments of a user.

        Args:
            user_id: User ID

        Returns:
            List of active investments, oldest first
        """
        return await self.find_by(
            user_id=user_id, status=InvestmentStatus.ACTIVE.value
        )

    async def has_any(self, user_id: int) -> bool:
        """Whether the user ever purchased a plan."""
        return await self.exists(user_id=user_id)

    async def get_due_ids(self, due_before: datetime) -> list[int]:
        """
        Get IDs of active investments whose last payout is old enough.

        Args:
            due_before: Investments with ``last_payout_at`` at or before this
                moment are due

        Returns:
            List of investment IDs, oldest payout first
        """
        stmt = (
            select(Investment.id)
            .where(
                Investment.status == InvestmentStatus.ACTIVE.value,
                Investment.last_payout_at <= due_before,
            )
            .order_by(Investment.last_payout_at, Investment.id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
