"""
Referral services package.

- commission_cascade: one-time commission on a referral's first investment
- referral_query_service: team members and statistics
"""

from happyinvest.services.referral.commission_cascade import (
    ReferralCommissionCascade,
)
from happyinvest.services.referral.referral_query_service import (
    ReferralQueryService,
    TeamMember,
    TeamMembersResult,
    TeamStatsResult,
)

__all__ = [
    "ReferralCommissionCascade",
    "ReferralQueryService",
    "TeamMember",
    "TeamMembersResult",
    "TeamStatsResult",
]
