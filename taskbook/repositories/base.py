"""Base repository pattern with common operations.

Provides the foundation for all repository implementations with
standardized CRUD operations and query patterns.
"""

from abc import ABC, abstractmethod
from typing import Any, Generic, TypeVar

from sqlalchemy import func
from sqlalchemy.orm import selectinload
from sqlmodel import Session, select


EntityT = TypeVar("EntityT")


class BaseRepository(Generic[EntityT], ABC):
    """Base repository with common operations.

    Repositories only flush; committing is left to the service so that a
    business operation is persisted as one unit.
    """

    def __init__(self, session: Session):
        self.session = session

    @abstractmethod
    def get_entity_class(self) -> type[EntityT]:
        """Return the SQLModel entity class."""
        pass

    def add(self, entity: EntityT) -> EntityT:
        """Stage a new entity and flush it."""
        self.session.add(entity)
        self.session.flush()
        return entity

    def get_by_id(self, entity_id: Any) -> EntityT | None:
        """Get entity by primary key (a tuple for composite keys)."""
        return self.session.get(self.get_entity_class(), entity_id)

    def update(self, entity_id: Any, updates: dict[str, Any]) -> EntityT | None:
        """Apply attribute updates to an existing entity."""
        entity = self.get_by_id(entity_id)
        if entity:
            for key, value in updates.items():
                if hasattr(entity, key):
                    setattr(entity, key, value)
            if hasattr(entity, "touch"):
                entity.touch()
            self.session.add(entity)
            self.session.flush()
        return entity

    def delete(self, entity_id: Any) -> bool:
        """Delete entity by primary key."""
        entity = self.get_by_id(entity_id)
        if entity:
            self.session.delete(entity)
            self.session.flush()
            return True
        return False

    def list_all(self, limit: int | None = None) -> list[EntityT]:
        """Get all entities with optional limit."""
        statement = select(self.get_entity_class())
        if limit:
            statement = statement.limit(limit)
        return list(self.session.exec(statement).all())

    def count(self) -> int:
        """Count total entities."""
        statement = select(func.count()).select_from(self.get_entity_class())
        return self.session.exec(statement).one()

    def exists(self, entity_id: Any) -> bool:
        """Check if entity exists."""
        return self.get_by_id(entity_id) is not None

    @staticmethod
    def with_relations(statement, *relations):
        """Eagerly load the given relationships in the same round trip."""
        return statement.options(*(selectinload(r) for r in relations))
