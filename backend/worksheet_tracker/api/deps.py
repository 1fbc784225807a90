"""
API dependencies.

The unit of work manager lives on application state for the lifetime of the
process. Caller identity and group scope are resolved upstream and arrive as
request headers; they are trusted as given.
"""

from dataclasses import dataclass
from typing import Annotated
from uuid import UUID

from fastapi import Depends, Header, HTTPException, Request, status

from worksheet_tracker.application.services import (
    BatchOutputRecorder,
    CauseAttributionLedger,
    WorksheetService,
)
from worksheet_tracker.core.observability import get_logger
from worksheet_tracker.infrastructure.database.unit_of_work import UnitOfWorkManager

logger = get_logger(__name__)


@dataclass(frozen=True)
class CallerScope:
    """Identity and permitted groups of the caller; None means unrestricted."""

    user_id: str | None
    group_ids: set[UUID] | None


def get_uow_manager(request: Request) -> UnitOfWorkManager:
    return request.app.state.uow_manager


UowManagerDep = Annotated[UnitOfWorkManager, Depends(get_uow_manager)]


def get_caller_scope(
    x_user_id: Annotated[str | None, Header()] = None,
    x_group_scope: Annotated[str | None, Header()] = None,
) -> CallerScope:
    group_ids = None
    if x_group_scope is not None:
        try:
            group_ids = {
                UUID(value.strip()) for value in x_group_scope.split(",") if value.strip()
            }
        except ValueError:
            logger.warning("Rejected malformed group scope header", value=x_group_scope)
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="X-Group-Scope must be a comma-separated list of UUIDs",
            )
    return CallerScope(user_id=x_user_id, group_ids=group_ids)


CallerScopeDep = Annotated[CallerScope, Depends(get_caller_scope)]


def get_worksheet_service(uow_manager: UowManagerDep) -> WorksheetService:
    return WorksheetService(uow_manager)


def get_output_recorder(uow_manager: UowManagerDep) -> BatchOutputRecorder:
    return BatchOutputRecorder(uow_manager)


def get_cause_ledger(uow_manager: UowManagerDep) -> CauseAttributionLedger:
    return CauseAttributionLedger(uow_manager)


WorksheetServiceDep = Annotated[WorksheetService, Depends(get_worksheet_service)]
OutputRecorderDep = Annotated[BatchOutputRecorder, Depends(get_output_recorder)]
CauseLedgerDep = Annotated[CauseAttributionLedger, Depends(get_cause_ledger)]
