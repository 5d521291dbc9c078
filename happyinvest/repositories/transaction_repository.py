"""
Transaction repository.

Data access layer for the audit trail.
"""

from collections.abc import Sequence
from datetime import datetime
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from happyinvest.models.transaction import Transaction
from happyinvest.repositories.base import BaseRepository


class TransactionRepository(BaseRepository[Transaction]):
    """Transaction repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize transaction repository."""
        super().__init__(Transaction, session)

    async def get_by_user(
        self,
        user_id: int,
        types: Sequence[str] | None = None,
        limit: int | None = None,
    ) -> list[Transaction]:
        """
        Get audit entries of a user, newest first.

        Args:
            user_id: User ID
            types: Optional transaction type filter
            limit: Max number of results

        Returns:
            List of transactions
        """
        stmt = select(Transaction).where(Transaction.user_id == user_id)
        if types:
            stmt = stmt.where(Transaction.type.in_(list(types)))
        stmt = stmt.order_by(Transaction.created_at.desc(), Transaction.id.desc())
        if limit:
            stmt = stmt.limit(limit)

        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def sum_by_type(
        self,
        user_id: int,
        types: Sequence[str],
        since: datetime | None = None,
    ) -> dict[str, Decimal]:
        """
        Sum amounts per transaction type.

        Args:
            user_id: User ID
            types: Transaction types to include
            since: Only count entries created at or after this moment

        Returns:
            Mapping of type to total (missing types map to zero)
        """
        stmt = (
            select(Transaction.type, func.sum(Transaction.amount))
            .where(
                Transaction.user_id == user_id,
                Transaction.type.in_(list(types)),
            )
            .group_by(Transaction.type)
        )
        if since is not None:
            stmt = stmt.where(Transaction.created_at >= since)

        result = await self.session.execute(stmt)
        totals = {kind: Decimal("0") for kind in types}
        for kind, total in result.all():
            totals[kind] = Decimal(str(total or 0))
        return totals
