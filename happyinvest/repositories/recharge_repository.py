"""
Recharge request repository.

Data access layer for RechargeRequest model.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from happyinvest.models.recharge import RechargeRequest
from happyinvest.repositories.base import BaseRepository


class RechargeRepository(BaseRepository[RechargeRequest]):
    """Recharge request repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize recharge repository."""
        super().__init__(RechargeRequest, session)

    async def get_by_user(self, user_id: int) -> list[RechargeRequest]:
        """Get recharge requests of a user, newest first."""
        return await self.find_by(newest_first=True, user_id=user_id)
