"""
Base repository.

Generic CRUD operations for all repositories, plus the conditional update
used for optimistic concurrency.
"""

from typing import Any, Generic, TypeVar

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from happyinvest.models.base import Base

# Generic type for model
ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Base repository with generic CRUD operations.

    Provides async database operations for any SQLAlchemy model.

    Type Parameters:
        ModelType: SQLAlchemy model class

    Example:
        class UserRepository(BaseRepository[User]):
            def __init__(self, session: AsyncSession):
                super().__init__(User, session)
    """

    def __init__(
        self, model: type[ModelType], session: AsyncSession
    ) -> None:
        """
        Initialize repository.

        Args:
            model: SQLAlchemy model class
            session: Async database session
        """
        self.model = model
        self.session = session

    async def get_by_id(
        self, id: int, fresh: bool = False
    ) -> ModelType | None:
        """
        Get entity by ID.

        Args:
            id: Entity ID
            fresh: Reload column values from the store even if the entity
                is already in the identity map

        Returns:
            Entity or None if not found
        """
        if not fresh:
            return await self.session.get(self.model, id)

        stmt = (
            select(self.model)
            .where(self.model.id == id)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by(
        self, **filters: Any
    ) -> ModelType | None:
        """
        Get single entity by filters.

        Args:
            **filters: Column filters

        Returns:
            First matching entity or None
        """
        stmt = select(self.model).filter_by(**filters)
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def find_by(
        self,
        limit: int | None = None,
        newest_first: bool = False,
        **filters: Any,
    ) -> list[ModelType]:
        """
        Find entities by filters.

        Args:
            limit: Max number of results
            newest_first: Order by descending ID
            **filters: Column filters

        Returns:
            List of matching entities
        """
        stmt = select(self.model).filter_by(**filters)
        stmt = stmt.order_by(
            self.model.id.desc() if newest_first else self.model.id
        )
        if limit:
            stmt = stmt.limit(limit)

        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def create(self, **data: Any) -> ModelType:
        """
        Create new entity.

        Args:
            **data: Entity data

        Returns:
            Created entity
        """
        entity = self.model(**data)
        self.session.add(entity)
        await self.session.flush()
        await self.session.refresh(entity)
        return entity

    async def conditional_update(
        self,
        id: int,
        expected: dict[str, Any],
        **values: Any,
    ) -> bool:
        """
        Compare-and-swap update of a single row.

        The row is written only if every column in ``expected`` still holds
        the given value. The in-session entity, if any, is refreshed after a
        successful write.

        Args:
            id: Entity ID
            expected: Column values the row must still have
            **values: New column values

        Returns:
            True if the row was updated, False on conflict or missing row
        """
        stmt = update(self.model).where(self.model.id == id)
        for column, value in expected.items():
            stmt = stmt.where(getattr(self.model, column) == value)
        stmt = stmt.values(**values).execution_options(
            synchronize_session=False
        )

        result = await self.session.execute(stmt)
        if result.rowcount != 1:
            return False

        await self.get_by_id(id, fresh=True)
        return True

    async def count(self, **filters: Any) -> int:
        """
        Count entities matching filters.

        Args:
            **filters: Column filters

        Returns:
            Count of matching entities
        """
        stmt = select(func.count()).select_from(self.model)

        if filters:
            stmt = stmt.filter_by(**filters)

        result = await self.session.execute(stmt)
        return result.scalar() or 0

    async def exists(self, **filters: Any) -> bool:
        """
        Check if entity exists.

        Args:
            **filters: Column filters

        Returns:
            True if exists, False otherwise
        """
        count = await self.count(**filters)
        return count > 0
