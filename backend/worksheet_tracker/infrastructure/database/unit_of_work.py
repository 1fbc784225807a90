"""
Unit of Work implementation for managing transactions across repositories.

Each unit of work opens one session from an explicitly supplied session
factory, commits when its block completes, rolls back when the block raises,
and always closes the session.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable, Iterator
from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from .repositories.base import DatabaseError
from .repositories.worksheet_repository import (
    CauseEntryRepository,
    HourRecordRepository,
    WorksheetItemRepository,
    WorksheetRepository,
)


class UnitOfWorkInterface(ABC):
    """
    Abstract base class for Unit of Work pattern.

    Defines the interface for coordinating transactions across multiple repositories.
    """

    worksheets: WorksheetRepository
    items: WorksheetItemRepository
    records: HourRecordRepository
    causes: CauseEntryRepository

    @abstractmethod
    def __enter__(self):
        """Enter the runtime context for the unit of work."""
        pass

    @abstractmethod
    def __exit__(self, exc_type, exc_val, exc_tb):
        """Exit the runtime context for the unit of work."""
        pass

    @abstractmethod
    def commit(self) -> None:
        """Commit all changes in the current transaction."""
        pass

    @abstractmethod
    def rollback(self) -> None:
        """Rollback all changes in the current transaction."""
        pass


class SqlModelUnitOfWork(UnitOfWorkInterface):
    """
    SQLModel-based implementation of Unit of Work pattern.

    Manages database transactions using SQLModel/SQLAlchemy sessions and provides
    access to all repositories within a single transactional boundary.
    """

    def __init__(self, session_factory: Callable[[], Session]):
        """
        Initialize the unit of work.

        Args:
            session_factory: Callable returning a new session bound to the engine
        """
        self._session_factory = session_factory
        self._session: Session | None = None

    def __enter__(self):
        self._session = self._session_factory()
        self.worksheets = WorksheetRepository(self._session)
        self.items = WorksheetItemRepository(self._session)
        self.records = HourRecordRepository(self._session)
        self.causes = CauseEntryRepository(self._session)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """
        Exit the runtime context and cleanup resources.

        Commits when the block completed normally, otherwise rolls back.
        """
        try:
            if exc_type is not None:
                self.rollback()
            else:
                self.commit()
        finally:
            if self._session:
                self._session.close()
                self._session = None

    def commit(self) -> None:
        """
        Commit the current transaction.

        Raises:
            DatabaseError: If commit fails
        """
        if not self._session:
            raise DatabaseError("No active session to commit")

        try:
            self._session.commit()
        except SQLAlchemyError as e:
            self.rollback()
            raise DatabaseError(f"Failed to commit transaction: {str(e)}") from e

    def rollback(self) -> None:
        """
        Rollback the current transaction.

        Raises:
            DatabaseError: If rollback fails
        """
        if not self._session:
            raise DatabaseError("No active session to rollback")

        try:
            self._session.rollback()
        except SQLAlchemyError as e:
            raise DatabaseError(f"Failed to rollback transaction: {str(e)}") from e

    @property
    def session(self) -> Session:
        """
        Get the current database session.

        Raises:
            DatabaseError: If no active session
        """
        if not self._session:
            raise DatabaseError("No active database session")
        return self._session


class UnitOfWorkManager:
    """
    Factory for Unit of Work instances bound to one session factory.

    The manager is created once per process (or per test) and handed to the
    services that need it; there is no module-level instance.
    """

    def __init__(self, session_factory: Callable[[], Session]):
        self._session_factory = session_factory

    def create_unit_of_work(self) -> SqlModelUnitOfWork:
        return SqlModelUnitOfWork(self._session_factory)

    @contextmanager
    def transaction(self) -> Iterator[SqlModelUnitOfWork]:
        """
        Context manager for executing code within a transaction.

        Usage:
            with uow_manager.transaction() as uow:
                worksheet = uow.worksheets.get_by_id(worksheet_id)
                uow.worksheets.apply_changes(worksheet, {"status": status})

        Yields:
            Unit of Work instance
        """
        uow = self.create_unit_of_work()
        with uow:
            yield uow
