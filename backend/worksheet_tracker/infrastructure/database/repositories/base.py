"""
Base repository implementation providing generic persistence operations.

Repositories never commit. They add and flush inside the session owned by
the surrounding unit of work, which decides whether the transaction
commits or rolls back.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable
from typing import Any, Generic, TypeVar
from uuid import UUID

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, SQLModel

from worksheet_tracker.domain.shared.exceptions import DomainError, ErrorType

EntityType = TypeVar("EntityType", bound=SQLModel)


class RepositoryException(DomainError):
    """Base exception for repository layer errors."""

    def __init__(self, message: str) -> None:
        super().__init__(message, ErrorType.REPOSITORY)


class EntityAlreadyExistsError(RepositoryException):
    """Raised when a write violates a uniqueness constraint."""

    pass


class DatabaseError(RepositoryException):
    """Raised when a database operation fails."""

    pass


class BaseRepository(Generic[EntityType], ABC):
    """
    Base repository class providing generic persistence operations.

    Concrete repositories inherit from this class and provide the
    entity_class property.
    """

    def __init__(self, session: Session):
        """
        Initialize repository with database session.

        Args:
            session: SQLModel database session
        """
        self.session = session

    @property
    @abstractmethod
    def entity_class(self) -> type[EntityType]:
        """Return the SQLModel entity class managed by this repository."""
        pass

    def add(self, entity: EntityType) -> EntityType:
        """
        Stage a new entity and flush it.

        Raises:
            EntityAlreadyExistsError: If a uniqueness constraint is violated
            DatabaseError: If database operation fails
        """
        self.session.add(entity)
        self.flush()
        return entity

    def add_all(self, entities: Iterable[EntityType]) -> list[EntityType]:
        entities = list(entities)
        self.session.add_all(entities)
        self.flush()
        return entities

    def get_by_id(self, entity_id: UUID) -> EntityType | None:
        """
        Get entity by ID.

        Raises:
            DatabaseError: If database operation fails
        """
        try:
            return self.session.get(self.entity_class, entity_id)
        except SQLAlchemyError as e:
            raise DatabaseError(f"Database error during get_by_id: {str(e)}") from e

    def apply_changes(self, entity: EntityType, changes: dict[str, Any]) -> EntityType:
        """Set attributes on a loaded entity and flush."""
        for field, value in changes.items():
            setattr(entity, field, value)
        self.session.add(entity)
        self.flush()
        return entity

    def flush(self) -> None:
        try:
            self.session.flush()
        except IntegrityError as e:
            raise EntityAlreadyExistsError(
                f"{self.entity_class.__name__} violates a uniqueness constraint: {str(e.orig)}"
            ) from e
        except SQLAlchemyError as e:
            raise DatabaseError(f"Database error during flush: {str(e)}") from e
