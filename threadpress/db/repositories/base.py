"""Base repository with common CRUD operations."""

from typing import Generic, Optional, Type, TypeVar

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from threadpress.db.models import Base
from threadpress.exceptions import NotFoundError

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """Generic CRUD over one mapped model.

    Writes are flushed, never committed; the session owner decides when the
    unit of work ends.
    """

    not_found_message = "Not found"

    def __init__(self, session: AsyncSession, model: Type[ModelType]):
        self.session = session
        self.model = model

    async def get_by_id(self, id: int) -> Optional[ModelType]:
        """Get entity by ID."""
        return await self.session.get(self.model, id)

    async def get_or_raise(self, id: int) -> ModelType:
        """Get entity by ID or raise NotFoundError."""
        instance = await self.get_by_id(id)
        if instance is None:
            raise NotFoundError(self.not_found_message)
        return instance

    async def create(self, **kwargs) -> ModelType:
        """Create new entity and load server-side defaults."""
        instance = self.model(**kwargs)
        self.session.add(instance)
        await self.session.flush()
        await self.session.refresh(instance)
        return instance

    async def update(self, id: int, **kwargs) -> Optional[ModelType]:
        """Set the given columns; returns None for an unknown ID."""
        instance = await self.get_by_id(id)
        if instance is None:
            return None
        for key, value in kwargs.items():
            if hasattr(instance, key):
                setattr(instance, key, value)
        await self.session.flush()
        return instance

    async def remove(self, instance: ModelType) -> None:
        """Delete through the ORM so relationship cascades run."""
        await self.session.delete(instance)
        await self.session.flush()

    async def count(self) -> int:
        """Count all entities."""
        result = await self.session.execute(select(func.count()).select_from(self.model))
        return result.scalar() or 0
