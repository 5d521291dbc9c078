"""Pytest configuration and shared fixtures for all tests."""

import os
import sys
from pathlib import Path

# Minimal environment for settings validation
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test_happyinvest.db")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("SWEEP_CONCURRENCY", "1")
os.environ.setdefault("BUSINESS_TIMEZONE", "Asia/Kolkata")

# Add project root to PYTHONPATH
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import itertools
from datetime import UTC, datetime, timedelta
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest

from happyinvest.config.database import create_engine_from_url, create_session_maker
from happyinvest.models import Base, User
from happyinvest.services.ledger_engine import LedgerEngine

# Noon UTC keeps the Asia/Kolkata business date equal to the UTC date
START_TIME = datetime(2026, 3, 2, 12, 0, tzinfo=UTC)

_referral_codes = itertools.count(100001)


class FakeClock:
    """Controllable server clock."""

    def __init__(self, now: datetime = START_TIME) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def mock_session():
    """Mock AsyncSession for tests without a database."""
    session = AsyncMock()
    session.execute = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    session.flush = AsyncMock()
    session.refresh = AsyncMock()
    return session


@pytest.fixture
async def engine(tmp_path):
    """File-backed SQLite engine with the full schema."""
    db_engine = create_engine_from_url(
        f"sqlite+aiosqlite:///{tmp_path / 'ledger.db'}"
    )
    async with db_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield db_engine
    await db_engine.dispose()


@pytest.fixture
def session_maker(engine):
    """Session factory bound to the test engine."""
    return create_session_maker(engine)


@pytest.fixture
def clock():
    """Server clock starting at START_TIME."""
    return FakeClock()


@pytest.fixture
def ledger(session_maker, clock):
    """Ledger engine over the test database."""
    return LedgerEngine(session_maker=session_maker, clock=clock)


@pytest.fixture
def make_user(session_maker):
    """
    Factory creating users directly in the store.

    Returns:
        Coroutine function accepting balance and referral overrides
    """

    async def _make_user(
        spendable: Decimal | int | str = 0,
        locked: Decimal | int | str = 0,
        referred_by: User | None = None,
        **fields,
    ) -> User:
        code = str(next(_referral_codes))
        async with session_maker() as session:
            user = User(
                name=fields.pop("name", f"User {code}"),
                referral_code=code,
                referred_by_code=referred_by.referral_code if referred_by else None,
                spendable_balance=Decimal(str(spendable)),
                locked_balance=Decimal(str(locked)),
                **fields,
            )
            session.add(user)
            await session.commit()
            return user

    return _make_user


@pytest.fixture
def load_user(session_maker):
    """Read the current state of a user record."""

    async def _load_user(user_id: int) -> User:
        async with session_maker() as session:
            return await session.get(User, user_id)

    return _load_user


@pytest.fixture
def sample_bank_details():
    """Valid bank details for withdrawals."""
    return {
        "account_holder": "Asha Verma",
        "account_number": "123456789012",
        "ifsc_code": "sbin0001234",
        "bank_name": "State Bank of India",
    }
