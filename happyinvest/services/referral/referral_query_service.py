"""
Referral query service.

Team listings and statistics for a referrer.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from happyinvest.repositories.referral_repository import ReferralRepository
from happyinvest.repositories.user_repository import UserRepository
from happyinvest.services.base_service import BaseService, OperationResult
from happyinvest.utils.exceptions import NotFoundError


@dataclass
class TeamMember:
    """Direct referral of a user."""

    user_id: int
    name: str
    phone: str | None
    joined_at: datetime
    level: int = 1
    has_invested: bool = False
    total_invested: Decimal = Decimal("0")
    commission_earned: Decimal = Decimal("0")


@dataclass
class TeamMembersResult(OperationResult):
    """Team members of a user."""

    members: list[TeamMember] = field(default_factory=list)


@dataclass
class TeamStatsResult(OperationResult):
    """Team statistics of a user."""

    level1_members: int = 0
    level2_members: int = 0
    level3_members: int = 0
    invested_members: int = 0
    total_invested: Decimal = Decimal("0")
    total_commission: Decimal = Decimal("0")


class ReferralQueryService(BaseService):
    """Queries over a referrer's team."""

    async def get_team_members(self, user_id: int) -> TeamMembersResult:
        """
        List users who registered with this user's referral code.

        Args:
            user_id: Referrer user ID

        Returns:
            Team members, newest first

        Raises:
            NotFoundError: If the user does not exist
        """
        user_repo = UserRepository(self.session)
        user = await user_repo.get_by_id(user_id)
        if not user:
            raise NotFoundError(f"User {user_id} not found")

        referred = await user_repo.get_referred_users(user.referral_code)
        edges = {
            edge.referred_id: edge
            for edge in await ReferralRepository(self.session).get_by_referrer(
                user_id
            )
        }

        members = []
        for member in referred:
            edge = edges.get(member.id)
            members.append(
                TeamMember(
                    user_id=member.id,
                    name=member.name,
                    phone=member.phone,
                    joined_at=member.created_at,
                    level=edge.level if edge else 1,
                    has_invested=edge.has_invested if edge else False,
                    total_invested=(
                        edge.total_invested if edge else Decimal("0")
                    ),
                    commission_earned=(
                        edge.commission_earned if edge else Decimal("0")
                    ),
                )
            )
        return TeamMembersResult(members=members)

    async def get_team_stats(self, user_id: int) -> TeamStatsResult:
        """
        Aggregate team statistics.

        Args:
            user_id: Referrer user ID

        Returns:
            Team statistics per level
        """
        members = (await self.get_team_members(user_id)).members

        stats = TeamStatsResult()
        for member in members:
            if member.level == 1:
                stats.level1_members += 1
            elif member.level == 2:
                stats.level2_members += 1
            elif member.level == 3:
                stats.level3_members += 1
            if member.has_invested:
                stats.invested_members += 1
            stats.total_invested += member.total_invested
            stats.total_commission += member.commission_earned
        return stats
