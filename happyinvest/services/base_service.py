"""
Base service class.

Provides common functionality for all service classes including session
management, logging and the structured result container.
"""

from dataclasses import dataclass

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from happyinvest.utils.exceptions import ErrorCode, LedgerError


@dataclass
class OperationResult:
    """
    Standard operation result container.

    Every exposed ledger operation returns a subclass of this; failures carry
    an error code instead of raising across the store boundary.
    """

    success: bool = True
    message: str = ""
    error_code: ErrorCode | None = None

    @classmethod
    def failure(cls, error: LedgerError, **fields):
        """Build a failed result from a ledger error."""
        return cls(
            success=False,
            message=error.message,
            error_code=error.code,
            **fields,
        )


class BaseService:
    """
    Base service class.

    Provides common functionality for all service classes:
    - Session management
    - Logging with bound service context
    """

    def __init__(self, session: AsyncSession) -> None:
        """
        Initialize base service.

        Args:
            session: Async database session
        """
        self.session = session
        self.logger = logger.bind(service=self.__class__.__name__)

    async def commit(self) -> None:
        """Commit current transaction."""
        await self.session.commit()

    async def rollback(self) -> None:
        """Rollback current transaction."""
        await self.session.rollback()
