from typing import Any, Generic, Type, TypeVar

from sqlalchemy import and_, delete, insert, inspect, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from kindred.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """Base class for data access layer."""

    def __init__(self, model: Type[ModelType]):
        self.model = model

    @property
    def pk_column(self):
        return inspect(self.model).primary_key[0]

    async def get(self, session: AsyncSession, pk: Any) -> ModelType | None:
        """Get a single record by primary key."""
        return await session.get(self.model, pk)

    async def get_by_attribute(self, session: AsyncSession, attribute: str | None = None, value: Any = None, expression: Any | None = None) -> ModelType | None:
        """Get a single record by an attribute or a complex expression."""
        try:
            if expression is not None:
                stmt = select(self.model).where(expression)
            elif attribute is not None:
                stmt = select(self.model).where(getattr(self.model, attribute) == value)
            else:
                raise ValueError("Either attribute/value or expression must be provided")
            result = await session.execute(stmt.limit(1))
            return result.scalars().first()
        except Exception:
            await session.rollback()
            raise

    async def exists(self, session: AsyncSession, expression: Any) -> bool:
        """Existence check; duplicate rows never change the answer."""
        stmt = select(self.pk_column).where(expression).limit(1)
        result = await session.execute(stmt)
        return result.first() is not None

    async def create(self, session: AsyncSession, data: dict) -> ModelType:
        """Create a new record."""
        try:
            stmt = insert(self.model).values(**data).returning(self.model)
            result = await session.execute(stmt)
            instance = result.scalar_one()
            await session.commit()
            return instance
        except Exception:
            await session.rollback()
            raise

    async def update(self, session: AsyncSession, pk: Any, data: dict) -> ModelType | None:
        """Update a record by primary key."""
        try:
            stmt = (
                update(self.model)
                .where(self.pk_column == pk)
                .values(**data)
                .returning(self.model)
            )
            result = await session.execute(stmt)
            instance = result.scalar_one_or_none()
            await session.commit()
            return instance
        except Exception:
            await session.rollback()
            raise

    async def delete(self, session: AsyncSession, pk: Any) -> bool:
        """Delete a record by primary key."""
        try:
            stmt = delete(self.model).where(self.pk_column == pk)
            result = await session.execute(stmt)
            await session.commit()
            return result.rowcount > 0
        except Exception:
            await session.rollback()
            raise

    async def get_or_create(
        self, session: AsyncSession, defaults: dict | None = None, **kwargs: Any
    ) -> tuple[ModelType, bool]:
        """Get a record matching all kwargs or create it if it doesn't exist."""
        expression = and_(*(getattr(self.model, key) == value for key, value in kwargs.items()))
        instance = await self.get_by_attribute(session, expression=expression)
        if instance:
            return instance, False
        data = kwargs.copy()
        if defaults:
            data.update(defaults)
        instance = await self.create(session, data)
        return instance, True

