"""
Integration tests for plan purchases.

Tests cover:
- Successful purchase with plan snapshot and audit entry
- Insufficient balance, unknown plan, unknown user
- Banned users
"""

from datetime import timedelta
from decimal import Decimal

import pytest
from sqlalchemy import select

from happyinvest.models import Investment, Transaction, TransactionType
from happyinvest.utils.exceptions import ErrorCode


class TestPurchase:
    """Test plan purchase."""

    @pytest.mark.asyncio
    async def test_purchase_debits_and_creates_investment(
        self, ledger, make_user, load_user, session_maker, clock
    ):
        """Test price is debited and the investment starts at purchase time."""
        user = await make_user(spendable=1000)

        result = await ledger.purchase(user.id, "ten_day")

        assert result.success is True
        assert result.new_balance == Decimal("500")
        assert result.investment_id is not None

        async with session_maker() as session:
            investment = await session.get(Investment, result.investment_id)
        assert investment.price == Decimal("500")
        assert investment.daily_income == Decimal("100")
        assert investment.days_remaining == 10
        assert investment.payout_count == 0
        assert investment.status == "active"
        assert investment.last_payout_at == clock.now
        assert investment.locked_balance is False

        stored = await load_user(user.id)
        assert stored.spendable_balance == Decimal("500")

    @pytest.mark.asyncio
    async def test_purchase_writes_audit_entry(
        self, ledger, make_user, session_maker
    ):
        """Test a signed investment entry is written."""
        user = await make_user(spendable=600)

        result = await ledger.purchase(user.id, "ten_day")

        async with session_maker() as session:
            entries = (
                await session.execute(
                    select(Transaction).where(Transaction.user_id == user.id)
                )
            ).scalars().all()
        assert len(entries) == 1
        entry = entries[0]
        assert entry.type == TransactionType.INVESTMENT.value
        assert entry.amount == Decimal("500")
        assert entry.balance_before == Decimal("600")
        assert entry.balance_after == Decimal("100")
        assert entry.investment_id == result.investment_id

    @pytest.mark.asyncio
    async def test_purchase_exact_balance(self, ledger, make_user):
        """Test buying with exactly the price leaves zero."""
        user = await make_user(spendable=500)

        result = await ledger.purchase(user.id, "ten_day")

        assert result.success is True
        assert result.new_balance == Decimal("0")

    @pytest.mark.asyncio
    async def test_insufficient_balance(
        self, ledger, make_user, load_user, session_maker
    ):
        """Test nothing changes when the balance is too low."""
        user = await make_user(spendable=499)

        result = await ledger.purchase(user.id, "ten_day")

        assert result.success is False
        assert result.error_code == ErrorCode.INSUFFICIENT_BALANCE
        assert (await load_user(user.id)).spendable_balance == Decimal("499")
        async with session_maker() as session:
            count = len(
                (await session.execute(select(Investment))).scalars().all()
            )
        assert count == 0

    @pytest.mark.asyncio
    async def test_unknown_plan(self, ledger, make_user):
        """Test unknown plans are reported as not found."""
        user = await make_user(spendable=1000)

        result = await ledger.purchase(user.id, "wind_99")

        assert result.success is False
        assert result.error_code == ErrorCode.NOT_FOUND

    @pytest.mark.asyncio
    async def test_unknown_user(self, ledger):
        """Test unknown users are reported as not found."""
        result = await ledger.purchase(9999, "ten_day")

        assert result.error_code == ErrorCode.NOT_FOUND

    @pytest.mark.asyncio
    async def test_banned_user_cannot_purchase(
        self, ledger, make_user, load_user
    ):
        """Test banned users are refused without mutation."""
        user = await make_user(spendable=1000)
        await ledger.ban_user(user.id, "Chargeback")

        result = await ledger.purchase(user.id, "ten_day")

        assert result.error_code == ErrorCode.BANNED
        assert (await load_user(user.id)).spendable_balance == Decimal("1000")

    @pytest.mark.asyncio
    async def test_expired_ban_allows_purchase(
        self, ledger, make_user, clock
    ):
        """Test an expired ban no longer applies."""
        user = await make_user(spendable=1000)
        ban = await ledger.ban_user(
            user.id, "Cooling off", expires_at=clock.now + timedelta(hours=1)
        )
        assert ban.success is True

        clock.advance(hours=2)
        result = await ledger.purchase(user.id, "ten_day")

        assert result.success is True

    @pytest.mark.asyncio
    async def test_investment_listing(self, ledger, make_user):
        """Test investments are listed newest first."""
        user = await make_user(spendable=1000)
        first = await ledger.purchase(user.id, "starter")
        second = await ledger.purchase(user.id, "ten_day")

        result = await ledger.get_user_investments(user.id)

        assert [inv.id for inv in result.investments] == [
            second.investment_id,
            first.investment_id,
        ]
