"""
User repository.

Data access layer for User model.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from happyinvest.models.user import User
from happyinvest.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """User repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize user repository."""
        super().__init__(User, session)

    async def get_by_referral_code(self, referral_code: str) -> User | None:
        """
        Get user by the referral code they issue.

        Args:
            referral_code: Referral code

        Returns:
            User or None
        """
        return await self.get_by(referral_code=referral_code)

    async def get_referred_users(self, referral_code: str) -> list[User]:
        """
        Get users who registered with a referral code.

        Args:
            referral_code: Referrer's code

        Returns:
            List of referred users, newest first
        """
        return await self.find_by(
            newest_first=True, referred_by_code=referral_code
        )

    async def lock_for_update(self, user_id: int) -> None:
        """
        Take the row lock of a user for the rest of the transaction.

        Args:
            user_id: User ID
        """
        stmt = select(User.id).where(User.id == user_id).with_for_update()
        await self.session.execute(stmt)
