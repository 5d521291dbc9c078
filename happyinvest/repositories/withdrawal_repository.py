"""
Withdrawal request repository.

Data access layer for WithdrawalRequest model.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from happyinvest.models.enums import WithdrawalStatus
from happyinvest.models.withdrawal import WithdrawalRequest
from happyinvest.repositories.base import BaseRepository


class WithdrawalRepository(BaseRepository[WithdrawalRequest]):
    """Withdrawal request repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize withdrawal repository."""
        super().__init__(WithdrawalRequest, session)

    async def get_by_user(
        self, user_id: int, limit: int | None = None
    ) -> list[WithdrawalRequest]:
        """
        Get withdrawal history of a user, newest first.

        Args:
            user_id: User ID
            limit: Max number of results

        Returns:
            List of withdrawal requests
        """
        return await self.find_by(
            limit=limit, newest_first=True, user_id=user_id
        )

    async def get_pending(
        self, limit: int | None = None
    ) -> list[WithdrawalRequest]:
        """
        Get pending requests, oldest first.

        Args:
            limit: Max number of results

        Returns:
            List of pending withdrawal requests
        """
        return await self.find_by(
            limit=limit, status=WithdrawalStatus.PENDING.value
        )
