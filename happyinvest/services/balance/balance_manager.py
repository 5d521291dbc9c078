"""
Balance manager.

Single write path for user balance records. Every mutation is a
compare-and-swap on ``users.version``: read the record, compute the new
values, write only if nobody else wrote in between, retry on conflict.
"""

import asyncio
import random
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from happyinvest.config.business_constants import (
    CAS_RETRY_DELAY_BASE,
    MAX_CAS_RETRIES,
)
from happyinvest.models.enums import BalancePool
from happyinvest.models.transaction import Transaction
from happyinvest.models.user import User
from happyinvest.repositories.ban_repository import BanRepository
from happyinvest.repositories.transaction_repository import (
    TransactionRepository,
)
from happyinvest.repositories.user_repository import UserRepository
from happyinvest.utils.exceptions import (
    InsufficientBalanceError,
    NotFoundError,
    StoreUnavailableError,
    UserBannedError,
)

ZERO = Decimal("0")


@dataclass
class BalanceChange:
    """
    Signed deltas for the balance pools and counters of one user.

    ``fields`` holds plain column assignments written in the same update
    (pacing timestamps, violation count, status).
    """

    spendable: Decimal = ZERO
    locked: Decimal = ZERO
    withdrawn: Decimal = ZERO
    lifetime_earnings: Decimal = ZERO
    commission: Decimal = ZERO
    recharge: Decimal = ZERO
    fields: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def credit(
        cls, amount: Decimal, pool: BalancePool, **deltas: Decimal
    ) -> "BalanceChange":
        """Credit one pool."""
        if pool == BalancePool.LOCKED:
            return cls(locked=amount, **deltas)
        return cls(spendable=amount, **deltas)


Mutation = BalanceChange | Callable[[User], BalanceChange]


class BalanceManager:
    """Applies balance changes with optimistic concurrency."""

    def __init__(self, session: AsyncSession) -> None:
        """
        Initialize balance manager.

        Args:
            session: Database session
        """
        self.session = session
        self.user_repo = UserRepository(session)
        self.ban_repo = BanRepository(session)
        self.transaction_repo = TransactionRepository(session)

    async def get_user(self, user_id: int) -> User:
        """
        Load the current user record.

        Raises:
            NotFoundError: If the user does not exist
        """
        user = await self.user_repo.get_by_id(user_id, fresh=True)
        if not user:
            raise NotFoundError(f"User {user_id} not found")
        return user

    async def ensure_not_banned(self, user_id: int, now: datetime) -> None:
        """
        Re-verify ban status against the ban records.

        Raises:
            UserBannedError: If an active ban record exists
        """
        if await self.ban_repo.get_active(user_id, now):
            raise UserBannedError()

    async def apply(
        self,
        user_id: int,
        mutation: Mutation,
        now: datetime,
        enforce_ban: bool = True,
    ) -> User:
        """
        Apply a balance change to one user record.

        Args:
            user_id: User ID
            mutation: Change to apply, or a callable building it from the
                freshly read record (it may raise to abort)
            now: Current server time
            enforce_ban: Refuse the change for banned users

        Returns:
            User record after the update

        Raises:
            NotFoundError: User missing
            UserBannedError: User banned and enforce_ban is set
            InsufficientBalanceError: A pool or counter would go negative
            StoreUnavailableError: Conflicts persisted after all retries
        """
        if enforce_ban:
            await self.ensure_not_banned(user_id, now)

        for attempt in range(MAX_CAS_RETRIES):
            user = await self.get_user(user_id)
            change = mutation(user) if callable(mutation) else mutation

            values = self._new_values(user, change)
            updated = await self.user_repo.conditional_update(
                user_id,
                {"version": user.version},
                version=user.version + 1,
                **values,
                **change.fields,
            )
            if updated:
                return user

            logger.warning(
                "Balance update conflict, retrying",
                extra={
                    "user_id": user_id,
                    "attempt": attempt + 1,
                    "expected_version": user.version,
                },
            )
            if attempt < MAX_CAS_RETRIES - 1:
                delay = CAS_RETRY_DELAY_BASE * (2 ** attempt)
                await asyncio.sleep(delay + random.uniform(0, delay))

        logger.error(
            "Balance update failed after retries",
            extra={"user_id": user_id, "retries": MAX_CAS_RETRIES},
        )
        raise StoreUnavailableError()

    @staticmethod
    def _new_values(user: User, change: BalanceChange) -> dict[str, Decimal]:
        values = {
            "spendable_balance": user.spendable_balance + change.spendable,
            "locked_balance": user.locked_balance + change.locked,
            "withdrawn_total": user.withdrawn_total + change.withdrawn,
            "lifetime_earnings": (
                user.lifetime_earnings + change.lifetime_earnings
            ),
            "commission_earned": user.commission_earned + change.commission,
            "recharge_total": user.recharge_total + change.recharge,
        }
        for column, value in values.items():
            if value < ZERO:
                raise InsufficientBalanceError(
                    "Insufficient balance"
                    if column == "spendable_balance"
                    else f"Balance field {column} would become negative"
                )
        return values

    async def record(
        self,
        user: User,
        tx_type: str,
        amount: Decimal,
        pool: BalancePool | None = None,
        signed_amount: Decimal | None = None,
        at: datetime | None = None,
        **refs: Any,
    ) -> Transaction:
        """
        Write the audit entry for a change already applied to ``user``.

        Args:
            user: User record after the update
            tx_type: Transaction type
            amount: Positive amount of the event
            pool: Pool affected, if any
            signed_amount: Change of that pool (defaults to ``amount``)
            at: Event time (defaults to the wall clock)
            **refs: Reference columns (investment_id, withdrawal_id, ...)

        Returns:
            Created transaction
        """
        balance_before = balance_after = None
        if pool is not None:
            balance_after = (
                user.locked_balance
                if pool == BalancePool.LOCKED
                else user.spendable_balance
            )
            delta = amount if signed_amount is None else signed_amount
            balance_before = balance_after - delta

        return await self.transaction_repo.create(
            user_id=user.id,
            type=tx_type,
            amount=amount,
            pool=pool.value if pool is not None else None,
            balance_before=balance_before,
            balance_after=balance_after,
            **({"created_at": at} if at is not None else {}),
            **refs,
        )
