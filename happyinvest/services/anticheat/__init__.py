"""
Anti-cheat package.

- anticheat_guard: client clock drift detection and escalation
- ban_service: ban records (automatic and operator)
"""

from happyinvest.services.anticheat.anticheat_guard import (
    AntiCheatGuard,
    GuardVerdict,
    clock_drift,
)
from happyinvest.services.anticheat.ban_service import BanResult, BanService

__all__ = [
    "AntiCheatGuard",
    "BanResult",
    "BanService",
    "GuardVerdict",
    "clock_drift",
]
