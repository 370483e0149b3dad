"""Generic base repository with async operations.

Usage:
    from swapi_fusion.repositories.base import BaseRepository
    from swapi_fusion.models.history import HistoryRecord

    class HistoryRepository(BaseRepository[HistoryRecord]):
        pass

    repo = HistoryRepository(session)
    record = await repo.create(HistoryRecord(...))
"""

from typing import Any, Generic, TypeVar

from sqlalchemy import ColumnElement, delete
from sqlalchemy.ext.asyncio import AsyncSession

from swapi_fusion.models.base import Base

# Type variable for model classes
T = TypeVar("T", bound=Base)


class BaseRepository(Generic[T]):
    """Generic repository providing async write operations.

    Type Parameters:
        T: The SQLAlchemy model class

    Attributes:
        session: The async database session
        model_class: The model class for this repository
    """

    model_class: type[T]

    def __init__(self, session: AsyncSession) -> None:
        """Initialize the repository with a database session.

        Args:
            session: Async database session
        """
        self.session = session

    def __init_subclass__(cls, **kwargs: Any) -> None:
        """Extract model class from Generic type parameter."""
        super().__init_subclass__(**kwargs)
        for base in cls.__orig_bases__:  # type: ignore[attr-defined]
            if hasattr(base, "__args__"):
                cls.model_class = base.__args__[0]
                break

    async def create(self, entity: T) -> T:
        """Add a new entity and flush it so generated fields are populated.

        Args:
            entity: The entity to create

        Returns:
            The created entity
        """
        self.session.add(entity)
        await self.session.flush()
        await self.session.refresh(entity)
        return entity

    async def hard_delete_where(self, *criteria: ColumnElement[bool]) -> int:
        """Permanently delete every row matching the criteria.

        Does not commit. Rows already loaded in the session are left as they
        are.

        Returns:
            Number of rows deleted
        """
        result = await self.session.execute(
            delete(self.model_class)
            .where(*criteria)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount
