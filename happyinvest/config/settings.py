"""
Application settings.

Loads configuration from environment variables using pydantic-settings.
"""

from decimal import Decimal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from loguru import logger
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from happyinvest.config.business_constants import (
    CHEAT_BAN_THRESHOLD,
    CHEAT_PENALTY_WINDOW,
    CHECKIN_REWARD,
    CHECKIN_STREAK_REWARD,
    MAX_CLOCK_DRIFT,
    MIN_RECHARGE_AMOUNT,
    MIN_WITHDRAWAL_AMOUNT,
    PAYOUT_CHECK_COOLDOWN,
    REFERRAL_BONUS_AMOUNT,
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    database_url: str
    database_echo: bool = False
    store_timeout_seconds: float = Field(
        default=5.0,
        gt=0,
        description="Upper bound for a single operation's store I/O",
    )

    # Redis (for Dramatiq)
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_password: str | None = None
    redis_db: int = 0

    # Application
    environment: str = "production"
    debug: bool = False
    log_level: str = "INFO"
    health_check_port: int = Field(
        default=8081, ge=1, le=65535, description="Health check HTTP server port"
    )

    # Calendar day boundaries (withdrawal cap, check-in)
    business_timezone: str = "Asia/Kolkata"

    # Scheduled sweep
    sweep_hour: int = Field(default=0, ge=0, le=23)
    sweep_minute: int = Field(default=5, ge=0, le=59)
    sweep_concurrency: int = Field(
        default=10,
        ge=1,
        description="Investment records credited in parallel by the sweep",
    )

    # Withdrawals
    min_withdrawal_amount: Decimal = Field(
        default=MIN_WITHDRAWAL_AMOUNT,
        gt=0,
        description="Minimum withdrawal amount",
    )

    # Referral cascade
    referral_bonus_amount: Decimal = Field(
        default=REFERRAL_BONUS_AMOUNT,
        gt=0,
        description="Fixed bonus paid to the referrer on first investment",
    )

    # Anti-cheat
    max_clock_drift_seconds: int = Field(
        default=int(MAX_CLOCK_DRIFT.total_seconds()), gt=0
    )
    cheat_penalty_minutes: int = Field(
        default=int(CHEAT_PENALTY_WINDOW.total_seconds() // 60), gt=0
    )
    cheat_ban_threshold: int = Field(default=CHEAT_BAN_THRESHOLD, ge=1)

    # On-demand payout check
    payout_check_cooldown_minutes: int = Field(
        default=int(PAYOUT_CHECK_COOLDOWN.total_seconds() // 60), gt=0
    )

    # Recharge / check-in
    min_recharge_amount: Decimal = Field(default=MIN_RECHARGE_AMOUNT, gt=0)
    checkin_reward: Decimal = Field(default=CHECKIN_REWARD, ge=0)
    checkin_streak_reward: Decimal = Field(default=CHECKIN_STREAK_REWARD, ge=0)

    # Emergency stop flags
    emergency_stop_withdrawals: bool = Field(
        default=False,
        description="Emergency stop for all withdrawals"
    )
    emergency_stop_payouts: bool = Field(
        default=False,
        description="Emergency stop for payout crediting"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @model_validator(mode='after')
    def validate_production(self) -> 'Settings':
        """Validate production-specific requirements."""
        if self.environment == 'production':
            if self.debug:
                raise ValueError(
                    'DEBUG must be False in production environment. '
                    'Set DEBUG=false in your .env file.'
                )
            if self.database_url.startswith('sqlite'):
                raise ValueError(
                    'SQLite is only supported for development and tests. '
                    'Set DATABASE_URL to a PostgreSQL URL.'
                )
            if self.database_echo:
                logger.warning(
                    'DATABASE_ECHO is enabled in production; '
                    'SQL statements will be written to the log.'
                )
        return self

    @field_validator('database_url')
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        """Validate database URL."""
        if not v.startswith(
            ('postgresql://', 'postgresql+asyncpg://', 'sqlite+aiosqlite://')
        ):
            raise ValueError(
                'DATABASE_URL must start with postgresql://, '
                'postgresql+asyncpg:// or sqlite+aiosqlite://'
            )
        if v.startswith('postgresql://'):
            v = v.replace('postgresql://', 'postgresql+asyncpg://', 1)
        return v

    @field_validator('business_timezone')
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        """Validate IANA timezone name."""
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f'Unknown timezone: {v}') from exc
        return v

    @property
    def tz(self) -> ZoneInfo:
        """Business timezone used for calendar-day rules."""
        return ZoneInfo(self.business_timezone)

    @property
    def redis_url(self) -> str:
        """Connection URL for the task broker."""
        auth = f":{self.redis_password}@" if self.redis_password else ""
        return f"redis://{auth}{self.redis_host}:{self.redis_port}/{self.redis_db}"


# Global settings instance
settings = Settings()
