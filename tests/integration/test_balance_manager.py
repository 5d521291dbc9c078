"""
Integration tests for the balance manager.

Tests cover:
- Conditional update on the user version
- Retry on conflict, give up after the retry budget
- Negative pools refused
- Audit entry balances
"""

from decimal import Decimal
from unittest.mock import AsyncMock, patch

import pytest

from happyinvest.models import BalancePool
from happyinvest.repositories.user_repository import UserRepository
from happyinvest.services.balance import BalanceChange, BalanceManager
from happyinvest.utils.exceptions import (
    InsufficientBalanceError,
    StoreUnavailableError,
)


class TestApply:
    """Test balance mutation."""

    @pytest.mark.asyncio
    async def test_apply_bumps_version(
        self, session_maker, make_user, load_user, clock
    ):
        """Test each write increments the version."""
        user = await make_user(spendable=100)

        async with session_maker() as session:
            updated = await BalanceManager(session).apply(
                user.id, BalanceChange(spendable=Decimal("25")), clock.now
            )
            await session.commit()

        assert updated.spendable_balance == Decimal("125")
        stored = await load_user(user.id)
        assert stored.version == 1
        assert stored.spendable_balance == Decimal("125")

    @pytest.mark.asyncio
    async def test_negative_balance_refused(
        self, session_maker, make_user, load_user, clock
    ):
        """Test a debit beyond the balance is refused."""
        user = await make_user(spendable=100)

        async with session_maker() as session:
            with pytest.raises(InsufficientBalanceError):
                await BalanceManager(session).apply(
                    user.id, BalanceChange(spendable=Decimal("-100.01")), clock.now
                )

        assert (await load_user(user.id)).spendable_balance == Decimal("100")

    @pytest.mark.asyncio
    async def test_retries_after_conflict(
        self, session_maker, make_user, load_user, clock
    ):
        """Test a single conflict is retried with the fresh record."""
        user = await make_user(spendable=100)
        original = UserRepository.conditional_update
        calls = []

        async def conflict_once(self, id, expected, **values):
            calls.append(expected)
            if len(calls) == 1:
                return False
            return await original(self, id, expected, **values)

        async with session_maker() as session:
            with patch.object(UserRepository, "conditional_update", conflict_once):
                await BalanceManager(session).apply(
                    user.id, BalanceChange(spendable=Decimal("10")), clock.now
                )
            await session.commit()

        assert len(calls) == 2
        assert (await load_user(user.id)).spendable_balance == Decimal("110")

    @pytest.mark.asyncio
    async def test_gives_up_after_retries(self, session_maker, make_user, clock):
        """Test persistent conflicts surface as store unavailable."""
        user = await make_user(spendable=100)

        async with session_maker() as session:
            with patch.object(
                UserRepository,
                "conditional_update",
                AsyncMock(return_value=False),
            ) as update, patch(
                "happyinvest.services.balance.balance_manager.asyncio.sleep",
                AsyncMock(),
            ):
                with pytest.raises(StoreUnavailableError):
                    await BalanceManager(session).apply(
                        user.id, BalanceChange(spendable=Decimal("10")), clock.now
                    )

        assert update.await_count == 3


class TestRecord:
    """Test audit entries."""

    @pytest.mark.asyncio
    async def test_record_balances(self, session_maker, make_user, clock):
        """Test before and after balances of a debit."""
        user = await make_user(spendable=300)

        async with session_maker() as session:
            manager = BalanceManager(session)
            updated = await manager.apply(
                user.id, BalanceChange(spendable=Decimal("-120")), clock.now
            )
            entry = await manager.record(
                updated,
                "investment",
                Decimal("120"),
                pool=BalancePool.SPENDABLE,
                signed_amount=Decimal("-120"),
                at=clock.now,
            )
            await session.commit()

        assert entry.balance_before == Decimal("300")
        assert entry.balance_after == Decimal("180")
        assert entry.created_at == clock.now
