"""
Integration tests for the scheduled payout sweep.

Tests cover:
- Totals across users and investments
- A failing record does not stop the sweep
- Emergency stop
- Store timeouts for stuck records and the due-record listing
"""

import asyncio
import time
from datetime import timedelta
from decimal import Decimal
from unittest.mock import patch

import pytest

from happyinvest.config.settings import settings
from happyinvest.repositories.investment_repository import InvestmentRepository
from happyinvest.services.ledger_engine import LedgerEngine
from happyinvest.services.payout import PayoutReconciler, ScheduledSweep
from happyinvest.utils.exceptions import ErrorCode


class TestSweepTotals:
    """Test sweep result totals."""

    @pytest.mark.asyncio
    async def test_totals_across_users(
        self, ledger, invested_user, make_user, clock
    ):
        """Test distributed amount and distinct users paid."""
        await invested_user()
        await invested_user()
        multi = await make_user(spendable=1000)
        await ledger.purchase(multi.id, "ten_day")
        await ledger.purchase(multi.id, "ten_day_vip")
        clock.advance(hours=24)

        result = await ledger.run_scheduled_sweep()

        assert result.success is True
        assert result.total_distributed == Decimal("400")
        assert result.users_paid == 3
        assert result.investments_credited == 4
        assert result.failures == 0

    @pytest.mark.asyncio
    async def test_nothing_due(self, ledger, invested_user, clock):
        """Test a sweep before the period ends distributes nothing."""
        await invested_user()
        clock.advance(hours=12)

        result = await ledger.run_scheduled_sweep()

        assert result.total_distributed == Decimal("0")
        assert result.users_paid == 0

    @pytest.mark.asyncio
    async def test_explicit_sweep_time(self, ledger, invested_user, clock):
        """Test the sweep time can be given explicitly."""
        await invested_user()

        result = await ledger.run_scheduled_sweep(now=clock.now + timedelta(hours=24))

        assert result.total_distributed == Decimal("100")


class TestSweepResilience:
    """Test failures are isolated per record."""

    @pytest.mark.asyncio
    async def test_failing_record_is_skipped(
        self, session_maker, invested_user, load_user, clock
    ):
        """Test the sweep continues past a record that fails."""
        failing_user, failing_id = await invested_user()
        healthy_user, _ = await invested_user()
        clock.advance(hours=24)

        original = PayoutReconciler.credit_if_due

        async def flaky(self, investment_id, now):
            if investment_id == failing_id:
                raise RuntimeError("disk full")
            return await original(self, investment_id, now)

        with patch.object(PayoutReconciler, "credit_if_due", flaky):
            result = await ScheduledSweep(session_maker, concurrency=1).run(
                clock.now
            )

        assert result.failures == 1
        assert result.investments_credited == 1
        assert result.users_paid == 1
        assert (await load_user(failing_user.id)).spendable_balance == Decimal("500")
        assert (await load_user(healthy_user.id)).spendable_balance == Decimal("600")

    @pytest.mark.asyncio
    async def test_failed_record_paid_next_run(
        self, session_maker, invested_user, load_user, clock
    ):
        """Test a record that failed is picked up by the next sweep."""
        user, investment_id = await invested_user()
        clock.advance(hours=24)

        async def broken(self, investment_id, now):
            raise RuntimeError("connection reset")

        with patch.object(PayoutReconciler, "credit_if_due", broken):
            await ScheduledSweep(session_maker).run(clock.now)

        clock.advance(minutes=5)
        result = await ScheduledSweep(session_maker).run(clock.now)

        assert result.total_distributed == Decimal("100")
        assert (await load_user(user.id)).spendable_balance == Decimal("600")

    @pytest.mark.asyncio
    async def test_emergency_stop(self, ledger, invested_user, load_user, clock):
        """Test the sweep is skipped while payouts are stopped."""
        user, _ = await invested_user()
        clock.advance(hours=24)

        with patch.object(settings, "emergency_stop_payouts", True):
            result = await ledger.run_scheduled_sweep()

        assert result.total_distributed == Decimal("0")
        assert (await load_user(user.id)).spendable_balance == Decimal("500")


class TestSweepTimeouts:
    """Test store I/O of the sweep is bounded."""

    @pytest.mark.asyncio
    async def test_stuck_record_counts_as_failure(
        self, session_maker, invested_user, load_user, clock
    ):
        """Test a record that hangs is abandoned after the store timeout."""
        stuck_user, stuck_id = await invested_user()
        healthy_user, _ = await invested_user()
        clock.advance(hours=24)

        original = PayoutReconciler.credit_if_due

        async def hanging(self, investment_id, now):
            if investment_id == stuck_id:
                await asyncio.sleep(30)
            return await original(self, investment_id, now)

        started = time.monotonic()
        with patch.object(PayoutReconciler, "credit_if_due", hanging):
            result = await ScheduledSweep(
                session_maker, concurrency=1, store_timeout=0.5
            ).run(clock.now)

        assert time.monotonic() - started < 5
        assert result.failures == 1
        assert result.investments_credited == 1
        assert (await load_user(stuck_user.id)).spendable_balance == Decimal("500")
        assert (await load_user(healthy_user.id)).spendable_balance == Decimal("600")

    @pytest.mark.asyncio
    async def test_listing_timeout_reports_store_unavailable(
        self, session_maker, invested_user, clock
    ):
        """Test a hanging due-record query fails the sweep closed."""
        await invested_user()
        clock.advance(hours=24)
        ledger = LedgerEngine(
            session_maker=session_maker, store_timeout=0.5, clock=clock
        )

        async def hanging(self, due_before):
            await asyncio.sleep(30)

        with patch.object(InvestmentRepository, "get_due_ids", hanging):
            result = await ledger.run_scheduled_sweep()

        assert result.success is False
        assert result.error_code == ErrorCode.STORE_UNAVAILABLE
        assert result.total_distributed == Decimal("0")
