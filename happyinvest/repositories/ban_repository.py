"""
Ban record repository.

Data access layer for BanRecord model.
"""

from datetime import datetime

from sqlalchemy import delete, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from happyinvest.models.ban import BanRecord
from happyinvest.repositories.base import BaseRepository


class BanRepository(BaseRepository[BanRecord]):
    """Ban record repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize ban repository."""
        super().__init__(BanRecord, session)

    async def get_active(
        self, user_id: int, now: datetime
    ) -> BanRecord | None:
        """
        Get the ban record in force for a user.

        Args:
            user_id: User ID
            now: Moment to evaluate expiry against

        Returns:
            Active ban record or None
        """
        stmt = select(BanRecord).where(
            BanRecord.user_id == user_id,
            or_(BanRecord.expires_at.is_(None), BanRecord.expires_at > now),
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_active_user_ids(
        self, user_ids: list[int], now: datetime
    ) -> set[int]:
        """
        Filter a set of users down to those currently banned.

        Args:
            user_ids: Candidate user IDs
            now: Moment to evaluate expiry against

        Returns:
            IDs with an active ban record
        """
        if not user_ids:
            return set()
        stmt = select(BanRecord.user_id).where(
            BanRecord.user_id.in_(user_ids),
            or_(BanRecord.expires_at.is_(None), BanRecord.expires_at > now),
        )
        result = await self.session.execute(stmt)
        return set(result.scalars().all())

    async def delete_for_user(self, user_id: int) -> bool:
        """
        Remove the ban record of a user.

        Args:
            user_id: User ID

        Returns:
            True if a record was removed
        """
        stmt = delete(BanRecord).where(BanRecord.user_id == user_id)
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount > 0
