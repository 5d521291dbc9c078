"""
Integration tests for the referral commission cascade.

Tests cover:
- Commission paid exactly once on the first investment
- Banned referrer forfeits the commission
- Edge bookkeeping and team statistics
"""

from decimal import Decimal
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy import select

from happyinvest.models import Investment, Referral, Transaction, TransactionType
from happyinvest.repositories.investment_repository import InvestmentRepository
from happyinvest.services.referral import ReferralCommissionCascade
from happyinvest.utils.exceptions import ErrorCode


async def get_edge(session_maker, referred_id) -> Referral | None:
    async with session_maker() as session:
        return (
            await session.execute(
                select(Referral).where(Referral.referred_id == referred_id)
            )
        ).scalar_one_or_none()


class TestCommissionOnce:
    """Test the referral commission is paid exactly once."""

    @pytest.mark.asyncio
    async def test_first_investment_pays_referrer(
        self, ledger, make_user, load_user, session_maker
    ):
        """Test the fixed bonus is credited to the referrer."""
        referrer = await make_user()
        user = await make_user(spendable=1000, referred_by=referrer)

        await ledger.purchase(user.id, "ten_day")

        stored = await load_user(referrer.id)
        assert stored.spendable_balance == Decimal("100")
        assert stored.commission_earned == Decimal("100")
        assert stored.lifetime_earnings == Decimal("100")

        edge = await get_edge(session_maker, user.id)
        assert edge.referrer_id == referrer.id
        assert edge.commission_paid is True
        assert edge.commission_earned == Decimal("100")
        assert edge.has_invested is True

    @pytest.mark.asyncio
    async def test_second_investment_pays_nothing(
        self, ledger, make_user, load_user, session_maker
    ):
        """Test later investments only update the edge totals."""
        referrer = await make_user()
        user = await make_user(spendable=1000, referred_by=referrer)

        await ledger.purchase(user.id, "ten_day")
        await ledger.purchase(user.id, "ten_day")

        assert (await load_user(referrer.id)).spendable_balance == Decimal("100")
        edge = await get_edge(session_maker, user.id)
        assert edge.total_invested == Decimal("1000")

        async with session_maker() as session:
            entries = (
                await session.execute(
                    select(Transaction).where(
                        Transaction.user_id == referrer.id,
                        Transaction.type
                        == TransactionType.REFERRAL_COMMISSION.value,
                    )
                )
            ).scalars().all()
        assert len(entries) == 1
        assert entries[0].related_user_id == user.id

    @pytest.mark.asyncio
    async def test_repeat_payment_attempt_is_noop(
        self, ledger, make_user, load_user, session_maker, clock
    ):
        """Test paying the same edge again credits nothing."""
        referrer = await make_user()
        user = await make_user(spendable=1000, referred_by=referrer)
        purchase = await ledger.purchase(user.id, "ten_day")

        async with session_maker() as session:
            cascade = ReferralCommissionCascade(session)
            referred = await cascade.user_repo.get_by_id(user.id)
            investment = await session.get(Investment, purchase.investment_id)
            paid = await cascade.pay_first_investment_commission(
                referred, investment, clock.now
            )
            await session.commit()

        assert paid is None
        assert (await load_user(referrer.id)).spendable_balance == Decimal("100")

    @pytest.mark.asyncio
    async def test_two_purchases_both_seen_as_first(
        self, ledger, make_user, load_user, session_maker
    ):
        """Test overlapping first purchases pay the referrer once."""
        referrer = await make_user()
        user = await make_user(spendable=1000, referred_by=referrer)

        # Both purchases read "no investments yet" before either commits
        with patch.object(
            InvestmentRepository, "has_any", AsyncMock(return_value=False)
        ):
            first = await ledger.purchase(user.id, "ten_day")
            second = await ledger.purchase(user.id, "ten_day")

        assert first.success is True
        assert second.success is True
        stored = await load_user(referrer.id)
        assert stored.spendable_balance == Decimal("100")
        assert stored.commission_earned == Decimal("100")

        async with session_maker() as session:
            entries = (
                await session.execute(
                    select(Transaction).where(
                        Transaction.user_id == referrer.id,
                        Transaction.type
                        == TransactionType.REFERRAL_COMMISSION.value,
                    )
                )
            ).scalars().all()
        assert len(entries) == 1
        assert entries[0].investment_id == first.investment_id

    @pytest.mark.asyncio
    async def test_unreferred_user_creates_no_edge(
        self, ledger, make_user, session_maker
    ):
        """Test users without a referral code have no edge."""
        user = await make_user(spendable=1000)

        await ledger.purchase(user.id, "ten_day")

        assert await get_edge(session_maker, user.id) is None

    @pytest.mark.asyncio
    async def test_configured_bonus_amount(
        self, session_maker, make_user, load_user, clock, catalog
    ):
        """Test the bonus is a fixed amount independent of the price."""
        from happyinvest.services.investment import PurchaseHandler

        referrer = await make_user()
        user = await make_user(spendable=1000, referred_by=referrer)

        async with session_maker() as session:
            handler = PurchaseHandler(
                session, catalog, referral_bonus=Decimal("250")
            )
            await handler.purchase(user.id, "starter", clock.now)

        assert (await load_user(referrer.id)).spendable_balance == Decimal("250")


class TestBannedReferrer:
    """Test banned referrers are not paid."""

    @pytest.mark.asyncio
    async def test_banned_referrer_forfeits(
        self, ledger, make_user, load_user, session_maker
    ):
        """Test the edge stays unpaid and is never paid later."""
        referrer = await make_user()
        user = await make_user(spendable=1000, referred_by=referrer)
        await ledger.ban_user(referrer.id, "Multiple accounts")

        first = await ledger.purchase(user.id, "ten_day")
        assert first.success is True

        edge = await get_edge(session_maker, user.id)
        assert edge.commission_paid is False
        assert edge.has_invested is True

        await ledger.unban_user(referrer.id)
        await ledger.purchase(user.id, "ten_day")

        assert (await load_user(referrer.id)).spendable_balance == Decimal("0")
        assert (await get_edge(session_maker, user.id)).commission_paid is False


class TestTeamStats:
    """Test team listings."""

    @pytest.mark.asyncio
    async def test_team_members_and_stats(self, ledger, make_user):
        """Test members, invested counts and commission totals."""
        referrer = await make_user()
        investor = await make_user(spendable=1000, referred_by=referrer)
        await make_user(referred_by=referrer)
        await ledger.purchase(investor.id, "ten_day")

        members = await ledger.get_team_members(referrer.id)
        stats = await ledger.get_team_stats(referrer.id)

        assert len(members.members) == 2
        assert stats.level1_members == 2
        assert stats.invested_members == 1
        assert stats.total_invested == Decimal("500")
        assert stats.total_commission == Decimal("100")

    @pytest.mark.asyncio
    async def test_unknown_referrer(self, ledger):
        """Test stats for a missing user."""
        result = await ledger.get_team_stats(31337)

        assert result.success is False
        assert result.error_code == ErrorCode.NOT_FOUND
