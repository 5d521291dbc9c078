"""
Business logic constants for HappyInvest.

Central location for the pacing, anti-cheat and reward rules used across the
engine. Settings fields that operators may tune use these values as defaults.
"""

from datetime import timedelta
from decimal import Decimal

# Payout pacing
PAYOUT_PERIOD = timedelta(hours=24)
PAYOUT_CHECK_COOLDOWN = timedelta(hours=1)

# Anti-cheat
MAX_CLOCK_DRIFT = timedelta(minutes=2)
CHEAT_PENALTY_WINDOW = timedelta(hours=1)
CHEAT_BAN_THRESHOLD = 3
AUTO_BAN_REASON = "Automatic ban: repeated client clock manipulation"

# Withdrawals
MIN_WITHDRAWAL_AMOUNT = Decimal("100")

# Referral cascade (fixed bonus, not proportional to the investment)
REFERRAL_BONUS_AMOUNT = Decimal("100")

# Recharge requests
MIN_RECHARGE_AMOUNT = Decimal("100")

# Daily check-in
CHECKIN_REWARD = Decimal("50")
CHECKIN_STREAK_REWARD = Decimal("500")
CHECKIN_STREAK_LENGTH = 7

# Optimistic concurrency
MAX_CAS_RETRIES = 3
CAS_RETRY_DELAY_BASE = 0.05  # seconds

# Referral code format (six digits, as issued at registration)
REFERRAL_CODE_LENGTH = 6
