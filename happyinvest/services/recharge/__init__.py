"""Recharge services package."""

from happyinvest.services.recharge.recharge_service import (
    RechargeListResult,
    RechargeResult,
    RechargeService,
)

__all__ = [
    "RechargeListResult",
    "RechargeResult",
    "RechargeService",
]
