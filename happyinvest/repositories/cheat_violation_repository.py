"""
Cheat violation repository.

Data access layer for CheatViolation model.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from happyinvest.models.cheat_violation import CheatViolation
from happyinvest.repositories.base import BaseRepository


class CheatViolationRepository(BaseRepository[CheatViolation]):
    """Cheat violation repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize cheat violation repository."""
        super().__init__(CheatViolation, session)

    async def get_by_user(self, user_id: int) -> list[CheatViolation]:
        """Get the violation log of a user, oldest first."""
        return await self.find_by(user_id=user_id)
