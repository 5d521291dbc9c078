"""
Database configuration.

Async SQLAlchemy engine and session factory built from settings.
"""

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from happyinvest.config.settings import settings


def create_engine_from_url(url: str, echo: bool = False) -> AsyncEngine:
    """
    Create async engine.

    Args:
        url: Async database URL
        echo: Log SQL statements

    Returns:
        AsyncEngine instance
    """
    if url.startswith("sqlite"):
        return create_async_engine(url, echo=echo)
    return create_async_engine(
        url,
        echo=echo,
        pool_size=10,
        max_overflow=20,
        pool_pre_ping=True,
        pool_recycle=300,
    )


def create_session_maker(
    engine: AsyncEngine,
) -> async_sessionmaker[AsyncSession]:
    """Create session factory bound to engine."""
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


async_engine = create_engine_from_url(
    settings.database_url, echo=settings.database_echo
)
async_session_maker = create_session_maker(async_engine)
