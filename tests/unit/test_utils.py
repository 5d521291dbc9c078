"""
Unit tests for shared utilities.

Tests cover:
- Business-timezone calendar dates
- Daily sweep slot
- Ledger error codes
- Rollback decorator behaviour
"""

from datetime import UTC, date, datetime, timedelta
from unittest.mock import AsyncMock
from zoneinfo import ZoneInfo

import pytest
from sqlalchemy.exc import OperationalError

from happyinvest.utils.datetime_utils import (
    business_date,
    business_day_start,
    ensure_aware,
    latest_daily_slot,
)
from happyinvest.utils.db_decorators import with_rollback_on_error
from happyinvest.utils.exceptions import (
    ErrorCode,
    RateLimitedError,
    StoreUnavailableError,
    UserBannedError,
    is_store_failure,
)

KOLKATA = ZoneInfo("Asia/Kolkata")


class TestBusinessDate:
    """Test calendar-day helpers."""

    def test_late_utc_is_next_local_day(self):
        """Test 20:00 UTC is already tomorrow in Kolkata."""
        moment = datetime(2026, 3, 2, 20, 0, tzinfo=UTC)
        assert business_date(moment, KOLKATA) == date(2026, 3, 3)

    def test_day_start_in_utc(self):
        """Test local midnight expressed in UTC."""
        moment = datetime(2026, 3, 2, 12, 0, tzinfo=UTC)
        assert business_day_start(moment, KOLKATA) == datetime(
            2026, 3, 1, 18, 30, tzinfo=UTC
        )

    def test_ensure_aware_naive(self):
        """Test naive values are tagged UTC."""
        assert ensure_aware(datetime(2026, 1, 1)).tzinfo == UTC


class TestDailySlot:
    """Test the scheduled sweep slot."""

    def test_slot_after_fire_jitter(self):
        """Test a late fire maps back to the exact local slot."""
        fired = datetime(2026, 3, 3, 18, 35, 0, 40_000, tzinfo=UTC)
        assert latest_daily_slot(fired, 0, 5, KOLKATA) == datetime(
            2026, 3, 3, 18, 35, tzinfo=UTC
        )

    def test_before_slot_uses_previous_day(self):
        """Test a moment before today's slot returns yesterday's."""
        moment = datetime(2026, 3, 3, 18, 34, tzinfo=UTC)
        assert latest_daily_slot(moment, 0, 5, KOLKATA) == datetime(
            2026, 3, 2, 18, 35, tzinfo=UTC
        )

    def test_consecutive_fires_one_day_apart(self):
        """Test fires less than a day apart still give slots a day apart."""
        first = datetime(2026, 3, 3, 18, 35, 0, 40_000, tzinfo=UTC)
        second = first + timedelta(hours=24, milliseconds=-10)
        assert latest_daily_slot(second, 0, 5, KOLKATA) - latest_daily_slot(
            first, 0, 5, KOLKATA
        ) == timedelta(hours=24)


class TestLedgerErrors:
    """Test error categorization."""

    def test_error_codes(self):
        """Test each error carries its code."""
        assert UserBannedError().code == ErrorCode.BANNED
        assert StoreUnavailableError().code == ErrorCode.STORE_UNAVAILABLE

    def test_default_message(self):
        """Test default messages are filled in."""
        assert UserBannedError().message == "Account is banned"

    def test_rate_limited_wait(self):
        """Test wait hint is kept."""
        assert RateLimitedError("slow down", wait_minutes=5).wait_minutes == 5

    def test_rate_limited_retry_at(self):
        """Test the retry moment is kept."""
        retry_at = datetime(2026, 3, 2, 13, 0, tzinfo=UTC)
        assert RateLimitedError(retry_at=retry_at).retry_at == retry_at

    def test_store_failures(self):
        """Test store failure detection."""
        assert is_store_failure(TimeoutError())
        assert is_store_failure(OperationalError("stmt", {}, Exception("x")))
        assert not is_store_failure(UserBannedError())


class _Handler:
    def __init__(self, session):
        self.session = session

    @with_rollback_on_error
    async def fail(self):
        raise UserBannedError()

    @with_rollback_on_error
    async def succeed(self):
        return 42


class TestRollbackDecorator:
    """Test rollback on error."""

    @pytest.mark.asyncio
    async def test_rolls_back_and_reraises(self):
        """Test errors trigger a rollback and propagate."""
        from sqlalchemy.ext.asyncio import AsyncSession

        session = AsyncMock(spec=AsyncSession)
        with pytest.raises(UserBannedError):
            await _Handler(session).fail()
        session.rollback.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_success_passthrough(self):
        """Test results pass through untouched."""
        from sqlalchemy.ext.asyncio import AsyncSession

        session = AsyncMock(spec=AsyncSession)
        assert await _Handler(session).succeed() == 42
        session.rollback.assert_not_awaited()
