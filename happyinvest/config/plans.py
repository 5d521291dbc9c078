"""
Plan catalog.

Read-only mapping from plan identifier to plan economics. Each plan is a
closed tagged variant per category; the category decides whether daily income
is routed into the locked balance pool. The catalog is authoritative only at
purchase time: investments keep their own snapshot of these values.
"""

from collections.abc import Iterator, Mapping
from decimal import Decimal
from enum import StrEnum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, model_validator


class PlanCategory(StrEnum):
    """Plan categories."""

    BASIC = "basic"
    VIP = "vip"
    RICH = "rich"
    ULTIMATE = "ultimate"


class PlanBase(BaseModel):
    """Economics shared by every plan category."""

    model_config = ConfigDict(frozen=True)

    plan_id: str = Field(..., min_length=1)
    name: str
    price: Decimal = Field(..., gt=0)
    daily_income: Decimal = Field(..., gt=0)
    total_income: Decimal = Field(..., gt=0)
    term_days: int = Field(..., ge=1)

    @model_validator(mode="after")
    def validate_total_income(self) -> "PlanBase":
        """Total income must equal daily income times the term."""
        if self.daily_income * self.term_days != self.total_income:
            raise ValueError(
                f"Plan {self.plan_id}: total_income {self.total_income} != "
                f"{self.daily_income} x {self.term_days}"
            )
        return self


class BasicPlan(PlanBase):
    """Regular plan, income is withdrawable."""

    category: Literal["basic"] = PlanCategory.BASIC.value
    locked_balance: Literal[False] = False


class VipPlan(PlanBase):
    """VIP plan, income accumulates in the locked pool."""

    category: Literal["vip"] = PlanCategory.VIP.value
    locked_balance: Literal[True] = True


class RichPlan(PlanBase):
    """Rich plan, income accumulates in the locked pool."""

    category: Literal["rich"] = PlanCategory.RICH.value
    locked_balance: Literal[True] = True


class UltimatePlan(PlanBase):
    """Ultimate plan, income accumulates in the locked pool."""

    category: Literal["ultimate"] = PlanCategory.ULTIMATE.value
    locked_balance: Literal[True] = True


Plan = Annotated[
    BasicPlan | VipPlan | RichPlan | UltimatePlan,
    Field(discriminator="category"),
]

_plan_adapter: TypeAdapter[Plan] = TypeAdapter(Plan)


def parse_plan(data: Mapping[str, Any]) -> Plan:
    """Build the right plan variant from raw catalog data."""
    return _plan_adapter.validate_python(dict(data))


DEFAULT_PLANS: list[dict[str, Any]] = [
    {"plan_id": "wind_1", "name": "Wind 1", "category": "basic",
     "price": 800, "term_days": 22, "daily_income": 279, "total_income": 6138},
    {"plan_id": "wind_2", "name": "Wind 2", "category": "basic",
     "price": 560, "term_days": 9, "daily_income": 1447, "total_income": 13023},
    {"plan_id": "wind_3", "name": "Wind 3", "category": "basic",
     "price": 1000, "term_days": 10, "daily_income": 3900, "total_income": 39000},
    {"plan_id": "wind_4", "name": "Wind 4", "category": "basic",
     "price": 1600, "term_days": 6, "daily_income": 4730, "total_income": 28380},
    {"plan_id": "wind_5", "name": "Wind 5", "category": "vip",
     "price": 1600, "term_days": 8, "daily_income": 7350, "total_income": 58800},
    {"plan_id": "wind_6", "name": "Wind 6", "category": "vip",
     "price": 2800, "term_days": 4, "daily_income": 17687, "total_income": 70748},
    {"plan_id": "wind_7", "name": "Wind 7", "category": "vip",
     "price": 5000, "term_days": 1, "daily_income": 32600, "total_income": 32600},
    {"plan_id": "wind_power_a", "name": "Wind Power - A", "category": "basic",
     "price": 450, "term_days": 3, "daily_income": 1830, "total_income": 5490},
    {"plan_id": "wind_power_b", "name": "Wind Power - B", "category": "basic",
     "price": 900, "term_days": 4, "daily_income": 3900, "total_income": 15600},
]


class PlanCatalog(Mapping[str, Plan]):
    """Read-only plan lookup."""

    def __init__(self, plans: list[Mapping[str, Any]] | None = None) -> None:
        raw = DEFAULT_PLANS if plans is None else plans
        parsed = [parse_plan(item) for item in raw]
        self._plans: dict[str, Plan] = {plan.plan_id: plan for plan in parsed}
        if len(self._plans) != len(parsed):
            raise ValueError("Duplicate plan_id in catalog")

    def __getitem__(self, plan_id: str) -> Plan:
        return self._plans[plan_id]

    def __iter__(self) -> Iterator[str]:
        return iter(self._plans)

    def __len__(self) -> int:
        return len(self._plans)


default_catalog = PlanCatalog()
