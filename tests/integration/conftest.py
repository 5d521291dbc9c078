"""
Shared fixtures for integration tests.

Integration tests run the ledger engine against a real SQLite database
with a short test catalog:
- ten_day: 500, pays 100 to spendable for 10 days
- ten_day_vip: 500, pays 100 to locked for 10 days
- starter: 200, pays 50 to spendable for 2 days
"""

import pytest

from happyinvest.config.plans import PlanCatalog
from happyinvest.services.ledger_engine import LedgerEngine

TEST_PLANS = [
    {"plan_id": "ten_day", "name": "Ten Day", "category": "basic",
     "price": 500, "term_days": 10, "daily_income": 100, "total_income": 1000},
    {"plan_id": "ten_day_vip", "name": "Ten Day VIP", "category": "vip",
     "price": 500, "term_days": 10, "daily_income": 100, "total_income": 1000},
    {"plan_id": "starter", "name": "Starter", "category": "basic",
     "price": 200, "term_days": 2, "daily_income": 50, "total_income": 100},
]


@pytest.fixture
def catalog():
    """Test plan catalog."""
    return PlanCatalog(TEST_PLANS)


@pytest.fixture
def ledger(session_maker, clock, catalog):
    """Ledger engine with the test catalog."""
    return LedgerEngine(session_maker=session_maker, catalog=catalog, clock=clock)


@pytest.fixture
def invested_user(ledger, make_user):
    """
    Factory for a user holding one fresh investment.

    Returns:
        Coroutine returning (user, investment_id)
    """

    async def _invested_user(plan_id: str = "ten_day", spendable=1000, **kwargs):
        user = await make_user(spendable=spendable, **kwargs)
        result = await ledger.purchase(user.id, plan_id)
        assert result.success, result.message
        return user, result.investment_id

    return _invested_user
