"""
Unit tests for the plan catalog.

Tests cover:
- Built-in catalog lookup
- Category variants and locked pool routing
- Validation of plan economics
"""

from decimal import Decimal

import pytest
from pydantic import ValidationError

from happyinvest.config.plans import (
    BasicPlan,
    PlanCatalog,
    VipPlan,
    default_catalog,
    parse_plan,
)


class TestDefaultCatalog:
    """Test the built-in catalog."""

    def test_lookup_by_plan_id(self):
        """Test a known plan resolves."""
        plan = default_catalog["wind_1"]
        assert plan.price == Decimal("800")
        assert plan.term_days == 22
        assert plan.daily_income == Decimal("279")

    def test_unknown_plan_missing(self):
        """Test unknown identifiers are absent."""
        assert default_catalog.get("no_such_plan") is None
        assert "no_such_plan" not in default_catalog

    def test_vip_plans_are_locked(self):
        """Test VIP category routes income to the locked pool."""
        plan = default_catalog["wind_5"]
        assert isinstance(plan, VipPlan)
        assert plan.locked_balance is True

    def test_basic_plans_are_not_locked(self):
        """Test basic category routes income to spendable."""
        plan = default_catalog["wind_power_a"]
        assert isinstance(plan, BasicPlan)
        assert plan.locked_balance is False

    def test_total_income_consistent(self):
        """Test every built-in plan pays daily income times term."""
        for plan in default_catalog.values():
            assert plan.daily_income * plan.term_days == plan.total_income


class TestPlanValidation:
    """Test plan parsing."""

    def test_parse_variant_by_category(self):
        """Test the category selects the variant."""
        plan = parse_plan(
            {"plan_id": "t", "name": "T", "category": "rich", "price": 10,
             "term_days": 2, "daily_income": 5, "total_income": 10}
        )
        assert plan.category == "rich"
        assert plan.locked_balance is True

    def test_inconsistent_total_rejected(self):
        """Test total income must match daily income times term."""
        with pytest.raises(ValidationError):
            parse_plan(
                {"plan_id": "t", "name": "T", "category": "basic", "price": 10,
                 "term_days": 2, "daily_income": 5, "total_income": 11}
            )

    def test_non_positive_price_rejected(self):
        """Test price must be positive."""
        with pytest.raises(ValidationError):
            parse_plan(
                {"plan_id": "t", "name": "T", "category": "basic", "price": 0,
                 "term_days": 1, "daily_income": 5, "total_income": 5}
            )

    def test_unknown_category_rejected(self):
        """Test categories form a closed set."""
        with pytest.raises(ValidationError):
            parse_plan(
                {"plan_id": "t", "name": "T", "category": "gold", "price": 1,
                 "term_days": 1, "daily_income": 5, "total_income": 5}
            )

    def test_duplicate_plan_id_rejected(self):
        """Test catalog refuses duplicate identifiers."""
        plan = {"plan_id": "t", "name": "T", "category": "basic", "price": 1,
                "term_days": 1, "daily_income": 5, "total_income": 5}
        with pytest.raises(ValueError):
            PlanCatalog([plan, plan])

    def test_custom_catalog(self):
        """Test a catalog built from custom data."""
        catalog = PlanCatalog(
            [{"plan_id": "ten_day", "name": "Ten", "category": "basic",
              "price": 500, "term_days": 10, "daily_income": 100,
              "total_income": 1000}]
        )
        assert len(catalog) == 1
        assert list(catalog) == ["ten_day"]
