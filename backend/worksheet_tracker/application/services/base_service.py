"""
Base application service providing common functionality.

Holds the unit of work manager handed in by the caller and the lookup and
status guards shared by the worksheet services.
"""

from abc import ABC
from uuid import UUID

from worksheet_tracker.core.observability import get_logger
from worksheet_tracker.domain.shared.exceptions import (
    NotFoundError,
    WorksheetNotActiveError,
)
from worksheet_tracker.infrastructure.database.models import Worksheet
from worksheet_tracker.infrastructure.database.unit_of_work import (
    SqlModelUnitOfWork,
    UnitOfWorkManager,
)


class ApplicationServiceBase(ABC):
    """
    Base class for application services.

    Provides common lookups, status guards and transaction coordination
    across all application services.
    """

    def __init__(self, uow_manager: UnitOfWorkManager):
        """
        Initialize the application service.

        Args:
            uow_manager: Manager creating one unit of work per operation
        """
        self._uow_manager = uow_manager
        self._logger = get_logger(self.__class__.__module__)

    def transaction(self):
        return self._uow_manager.transaction()

    def get_worksheet_or_raise(
        self, uow: SqlModelUnitOfWork, worksheet_id: UUID
    ) -> Worksheet:
        """
        Load a worksheet or fail.

        Raises:
            NotFoundError: If no worksheet has this ID
        """
        worksheet = uow.worksheets.get_by_id(worksheet_id)
        if worksheet is None:
            raise NotFoundError("Worksheet", worksheet_id)
        return worksheet

    @staticmethod
    def ensure_active(worksheet: Worksheet) -> None:
        """
        Raises:
            WorksheetNotActiveError: If the worksheet no longer accepts edits
        """
        if not worksheet.status.accepts_edits:
            raise WorksheetNotActiveError(worksheet.id, worksheet.status.value)

    @staticmethod
    def ensure_in_scope(
        worksheet: Worksheet, allowed_group_ids: set[UUID] | None
    ) -> None:
        """
        Hide worksheets of groups outside the caller's permitted scope.

        Raises:
            NotFoundError: If the worksheet's group is not in scope
        """
        if allowed_group_ids is not None and worksheet.group_id not in allowed_group_ids:
            raise NotFoundError("Worksheet", worksheet.id)
