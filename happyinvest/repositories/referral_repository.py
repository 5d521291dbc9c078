"""
Referral repository.

Data access layer for Referral model.
"""

from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from happyinvest.models.referral import Referral
from happyinvest.repositories.base import BaseRepository


class ReferralRepository(BaseRepository[Referral]):
    """Referral repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize referral repository."""
        super().__init__(Referral, session)

    async def get_by_referred(self, referred_id: int) -> Referral | None:
        """
        Get the edge pointing at a referred user.

        Args:
            referred_id: Referred user ID

        Returns:
            Referral edge or None
        """
        return await self.get_by(referred_id=referred_id)

    async def get_by_referrer(self, referrer_id: int) -> list[Referral]:
        """
        Get edges created by a referrer, newest first.

        Args:
            referrer_id: Referrer user ID

        Returns:
            List of referral edges
        """
        return await self.find_by(newest_first=True, referrer_id=referrer_id)

    async def get_total_commission(self, referrer_id: int) -> Decimal:
        """
        Sum commission paid to a referrer.

        Args:
            referrer_id: Referrer user ID

        Returns:
            Total commission
        """
        stmt = select(func.sum(Referral.commission_earned)).where(
            Referral.referrer_id == referrer_id
        )
        result = await self.session.execute(stmt)
        total = result.scalar()
        return total or Decimal("0")
