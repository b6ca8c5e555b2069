"""Repository base interface."""

from abc import ABC, abstractmethod
from typing import Any, Generic, Optional, TypeVar

T = TypeVar("T")


class RepositoryBase(ABC, Generic[T]):
    """Base repository interface for CRUD operations."""

    @abstractmethod
    async def get_by_id(self, id: int) -> Optional[T]:
        """Retrieve entity by ID."""
        pass

    @abstractmethod
    async def create(self, entity: Any) -> T:
        """Create new entity."""
        pass

    @abstractmethod
    async def update(self, id: int, changes: dict[str, Any]) -> T:
        """Apply field changes to an existing entity."""
        pass

    @abstractmethod
    async def delete(self, id: int) -> bool:
        """Delete entity by ID."""
        pass
