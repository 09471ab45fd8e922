"""
Base Repository

Generic CRUD shared by the entity repositories.

What This Provides:
===================
- get(key)    → Fetch one row by primary key
- list()      → Rows with equality filters, ordering and a limit
- create()    → Insert a row and reload its server defaults
- update()    → Set fields on a row fetched by primary key

Primary keys differ per entity (UUIDs for users and locations, the
deterministic string id for circles, the slot key for matching runs), so
lookups go through ``session.get`` rather than a hard-coded ``id`` column.

Generic Type Pattern:
=====================
    class CircleRepository(BaseRepository[Circle]):
        def __init__(self, session: AsyncSession):
            super().__init__(Circle, session)

    circle = await CircleRepository(db).get("2026-10-19_11AM_Circle_1")

Transactions:
=============
Repository methods only flush. Whoever opened the session commits: get_db()
at the end of a request, or the SQL collaborators of the matching service
at the end of their unit of work. That is what lets a circle row and its
member rows share one transaction.
"""

from typing import Any, Generic, Optional, Type, TypeVar

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from circlematch.shared.models.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Generic repository over one mapped class.

    Attributes:
        model: The SQLAlchemy model class
        session: The async database session
    """

    def __init__(self, model: Type[ModelType], session: AsyncSession) -> None:
        self.model = model
        self.session = session

    async def get(self, key: Any) -> Optional[ModelType]:
        """Row by primary key (UUID, circle id or slot key), or None."""
        return await self.session.get(self.model, key)

    async def list(
        self,
        *,
        limit: int = 100,
        filters: Optional[dict[str, Any]] = None,
        order_by: Optional[str] = None,
        order_desc: bool = True,
    ) -> list[ModelType]:
        """
        Rows matching `filters` (field=value, unknown fields ignored).

        Args:
            limit: Maximum rows to return
            filters: Equality filters
            order_by: Column to order by
            order_desc: Descending when True
        """
        query = select(self.model)

        for field, value in (filters or {}).items():
            if hasattr(self.model, field):
                query = query.where(getattr(self.model, field) == value)

        if order_by and hasattr(self.model, order_by):
            column = getattr(self.model, order_by)
            query = query.order_by(column.desc() if order_desc else column)

        result = await self.session.execute(query.limit(limit))
        return list(result.scalars().all())

    async def create(self, **kwargs: Any) -> ModelType:
        """
        Insert a row.

        Raises:
            sqlalchemy.exc.IntegrityError: On a primary key or unique
                constraint violation (the caller decides what it means)
        """
        instance = self.model(**kwargs)
        self.session.add(instance)
        await self.session.flush()
        # server defaults such as created_at
        await self.session.refresh(instance)
        return instance

    async def update(self, key: Any, **kwargs: Any) -> Optional[ModelType]:
        """
        Set fields on the row with this primary key.

        None is applied like any other value (clearing an error message).

        Returns:
            The updated row, or None if there is no such row
        """
        instance = await self.get(key)
        if instance is None:
            return None

        for field, value in kwargs.items():
            if hasattr(instance, field):
                setattr(instance, field, value)

        await self.session.flush()
        await self.session.refresh(instance)
        return instance
