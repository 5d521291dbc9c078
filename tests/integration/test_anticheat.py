"""
Integration tests for the anti-cheat guard and bans.

Tests cover:
- Drift detection with penalty window and wait hint
- Escalation to a ban after repeated violations
- Banned users: no mutation, skipped by the sweep
- Operator ban and unban
"""

from datetime import timedelta
from decimal import Decimal

import pytest
from sqlalchemy import func, select

from happyinvest.models import BanRecord, CheatViolation
from happyinvest.utils.exceptions import ErrorCode


async def count_violations(session_maker, user_id) -> int:
    async with session_maker() as session:
        return (
            await session.execute(
                select(func.count())
                .select_from(CheatViolation)
                .where(CheatViolation.user_id == user_id)
            )
        ).scalar_one()


async def get_ban(session_maker, user_id) -> BanRecord | None:
    async with session_maker() as session:
        return (
            await session.execute(
                select(BanRecord).where(BanRecord.user_id == user_id)
            )
        ).scalar_one_or_none()


class TestDriftDetection:
    """Test clock drift handling on the on-demand path."""

    @pytest.mark.asyncio
    async def test_drift_refused_with_penalty(
        self, ledger, invested_user, load_user, session_maker, clock
    ):
        """Test a drifted check is refused and recorded."""
        user, _ = await invested_user()
        clock.advance(hours=24)

        result = await ledger.check_payout(
            user.id, clock.now - timedelta(minutes=5)
        )

        assert result.success is False
        assert result.error_code == ErrorCode.TIME_DRIFT_DETECTED
        assert result.wait_minutes == 60
        assert result.violation_count == 1
        assert result.drift_seconds == 300
        assert result.banned is False

        stored = await load_user(user.id)
        assert stored.cheat_violation_count == 1
        assert stored.penalty_until == clock.now + timedelta(hours=1)
        assert stored.spendable_balance == Decimal("500")
        assert await count_violations(session_maker, user.id) == 1

    @pytest.mark.asyncio
    async def test_small_drift_tolerated(self, ledger, invested_user, clock):
        """Test drift within two minutes is accepted."""
        user, _ = await invested_user()
        clock.advance(hours=24)

        result = await ledger.check_payout(
            user.id, clock.now + timedelta(seconds=90)
        )

        assert result.success is True
        assert result.income_added == Decimal("100")

    @pytest.mark.asyncio
    async def test_penalty_window_blocks_honest_check(
        self, ledger, invested_user, clock
    ):
        """Test a correct clock is still refused during the penalty."""
        user, _ = await invested_user()
        await ledger.check_payout(user.id, clock.now + timedelta(minutes=10))

        clock.advance(minutes=10)
        result = await ledger.check_payout(user.id, clock.now)

        assert result.error_code == ErrorCode.RATE_LIMITED
        assert result.wait_minutes == 50

    @pytest.mark.asyncio
    async def test_penalty_expires(self, ledger, invested_user, clock):
        """Test checks resume after the penalty window."""
        user, _ = await invested_user()
        await ledger.check_payout(user.id, clock.now - timedelta(minutes=10))

        clock.advance(minutes=61)
        result = await ledger.check_payout(user.id, clock.now)

        assert result.success is True


class TestBanEscalation:
    """Test repeated drift leads to a ban."""

    @pytest.mark.asyncio
    async def test_third_violation_bans(
        self, ledger, invested_user, load_user, session_maker, clock
    ):
        """Test three drifted checks ban the account."""
        user, _ = await invested_user()

        results = []
        for _ in range(3):
            clock.advance(minutes=1)
            results.append(
                await ledger.check_payout(
                    user.id, clock.now + timedelta(minutes=30)
                )
            )

        assert [r.error_code for r in results[:2]] == [
            ErrorCode.TIME_DRIFT_DETECTED,
            ErrorCode.TIME_DRIFT_DETECTED,
        ]
        assert results[2].banned is True
        assert results[2].error_code == ErrorCode.BANNED

        stored = await load_user(user.id)
        assert stored.cheat_violation_count == 3
        assert stored.status == "banned"

        ban = await get_ban(session_maker, user.id)
        assert ban is not None
        assert ban.source == "anti_cheat"
        assert ban.expires_at is None

    @pytest.mark.asyncio
    async def test_banned_check_mutates_nothing(
        self, ledger, invested_user, load_user, session_maker, clock
    ):
        """Test checks by a banned user change no state."""
        user, _ = await invested_user()
        await ledger.ban_user(user.id, "Fraud")
        clock.advance(hours=24)

        result = await ledger.check_payout(
            user.id, clock.now - timedelta(hours=3)
        )

        assert result.banned is True
        stored = await load_user(user.id)
        assert stored.cheat_violation_count == 0
        assert stored.spendable_balance == Decimal("500")
        assert stored.next_check_allowed_at is None
        assert await count_violations(session_maker, user.id) == 0

    @pytest.mark.asyncio
    async def test_sweep_skips_banned_user(
        self, ledger, invested_user, load_user, clock
    ):
        """Test the sweep does not credit banned users."""
        banned_user, _ = await invested_user()
        other_user, _ = await invested_user()
        await ledger.ban_user(banned_user.id, "Fraud")
        clock.advance(hours=24)

        result = await ledger.run_scheduled_sweep()

        assert result.users_paid == 1
        assert result.skipped == 1
        assert (await load_user(banned_user.id)).spendable_balance == Decimal("500")
        assert (await load_user(other_user.id)).spendable_balance == Decimal("600")


class TestOperatorBan:
    """Test operator ban and unban."""

    @pytest.mark.asyncio
    async def test_ban_requires_reason(self, ledger, make_user):
        """Test an empty reason is refused."""
        user = await make_user()

        result = await ledger.ban_user(user.id, "  ")

        assert result.error_code == ErrorCode.INVALID_REQUEST

    @pytest.mark.asyncio
    async def test_ban_expiry_must_be_future(self, ledger, make_user, clock):
        """Test expiry in the past is refused."""
        user = await make_user()

        result = await ledger.ban_user(
            user.id, "Fraud", expires_at=clock.now - timedelta(minutes=1)
        )

        assert result.error_code == ErrorCode.INVALID_REQUEST

    @pytest.mark.asyncio
    async def test_unban_restores_access(
        self, ledger, invested_user, load_user, session_maker, clock
    ):
        """Test unbanned users are paid again."""
        user, _ = await invested_user()
        await ledger.ban_user(user.id, "Fraud")

        unban = await ledger.unban_user(user.id)
        clock.advance(hours=24)
        result = await ledger.check_payout(user.id, clock.now)

        assert unban.success is True
        assert unban.banned is False
        assert await get_ban(session_maker, user.id) is None
        assert result.income_added == Decimal("100")
        assert (await load_user(user.id)).status == "active"

    @pytest.mark.asyncio
    async def test_unban_keeps_violation_count(
        self, ledger, invested_user, load_user, clock
    ):
        """Test violations survive an unban unless reset."""
        user, _ = await invested_user()
        for _ in range(3):
            clock.advance(minutes=1)
            await ledger.check_payout(user.id, clock.now - timedelta(hours=1))

        await ledger.unban_user(user.id)
        assert (await load_user(user.id)).cheat_violation_count == 3

        await ledger.ban_user(user.id, "Again")
        await ledger.unban_user(user.id, reset_violations=True)
        stored = await load_user(user.id)
        assert stored.cheat_violation_count == 0
        assert stored.penalty_until is None

    @pytest.mark.asyncio
    async def test_unban_without_ban(self, ledger, make_user):
        """Test unbanning an active user is harmless."""
        user = await make_user()

        result = await ledger.unban_user(user.id)

        assert result.success is True
        assert result.message == "User was not banned"
