"""
Worksheet API Routes.

Endpoints for creating group worksheets, recording hourly output in
batches, attributing variance causes and managing the worksheet lifecycle.
Slot boundaries in every response are "HH:MM:SS" wall-clock text.
"""

from datetime import date
from uuid import UUID

from fastapi import APIRouter, HTTPException, Query, status

from worksheet_tracker.api.deps import (
    CallerScopeDep,
    CauseLedgerDep,
    OutputRecorderDep,
    WorksheetServiceDep,
)
from worksheet_tracker.application.dtos.worksheet_dtos import (
    BatchOutputRequest,
    BatchOutputResponse,
    BulkUpdateGroupWorksheetsRequest,
    CauseListResponse,
    CreateWorksheetRequest,
    UpdateWorkerTargetRequest,
    UpdateWorksheetRequest,
    UpsertCausesRequest,
    WorksheetItemResponse,
    WorksheetListResponse,
    WorksheetResponse,
    WorksheetSummaryResponse,
)
from worksheet_tracker.core.observability import get_logger
from worksheet_tracker.domain.shared.exceptions import DomainError, ErrorType
from worksheet_tracker.domain.worksheet.enums import WorksheetStatus

logger = get_logger(__name__)

router = APIRouter(prefix="/worksheets", tags=["worksheets"])

_STATUS_BY_ERROR_TYPE = {
    ErrorType.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ErrorType.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorType.RESOURCE_CONFLICT: status.HTTP_409_CONFLICT,
    ErrorType.BUSINESS_RULE: status.HTTP_409_CONFLICT,
}


def _to_http_exception(error: DomainError) -> HTTPException:
    status_code = _STATUS_BY_ERROR_TYPE.get(
        error.error_type, status.HTTP_500_INTERNAL_SERVER_ERROR
    )
    if status_code == status.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error("Worksheet operation failed", error=error.message)
    return HTTPException(status_code=status_code, detail=error.to_dict())


@router.post(
    "/records/batch-output",
    summary="Submit hourly output",
    description="Record actual output for many worker-hours as one atomic batch.",
    response_model=BatchOutputResponse,
    responses={
        400: {"description": "Duplicate record in batch"},
        404: {"description": "Record not found or outside caller scope"},
        409: {"description": "Worksheet is no longer active"},
    },
)
def batch_submit_output(
    request: BatchOutputRequest,
    recorder: OutputRecorderDep,
    scope: CallerScopeDep,
) -> BatchOutputResponse:
    try:
        return recorder.submit(
            request, updated_by=scope.user_id, allowed_group_ids=scope.group_ids
        )
    except DomainError as e:
        raise _to_http_exception(e) from e


@router.put(
    "/records/{record_id}/causes",
    summary="Replace variance causes",
    description="Replace the full set of causes attached to an hour record.",
    response_model=CauseListResponse,
    responses={
        404: {"description": "Record not found"},
        409: {"description": "Worksheet is no longer active"},
    },
)
def upsert_causes(
    record_id: UUID,
    request: UpsertCausesRequest,
    ledger: CauseLedgerDep,
    scope: CallerScopeDep,
) -> CauseListResponse:
    try:
        return ledger.upsert_causes(record_id, request, allowed_group_ids=scope.group_ids)
    except DomainError as e:
        raise _to_http_exception(e) from e


@router.get(
    "/records/{record_id}/causes",
    summary="List variance causes",
    response_model=CauseListResponse,
)
def list_causes(
    record_id: UUID, ledger: CauseLedgerDep, scope: CallerScopeDep
) -> CauseListResponse:
    try:
        return ledger.list_causes(record_id, allowed_group_ids=scope.group_ids)
    except DomainError as e:
        raise _to_http_exception(e) from e


@router.patch(
    "/groups/{group_id}/bulk",
    summary="Update a group's worksheet by date",
    description=(
        "Change shift type, planned output, product or process of the group's "
        "worksheet for a calendar day, cascading product and process to every worker."
    ),
    response_model=WorksheetResponse,
    responses={
        404: {"description": "No worksheet for this group and date"},
        409: {"description": "Worksheet is not active or change refused"},
    },
)
def bulk_update_group_worksheets(
    group_id: UUID,
    request: BulkUpdateGroupWorksheetsRequest,
    service: WorksheetServiceDep,
    scope: CallerScopeDep,
) -> WorksheetResponse:
    try:
        return service.bulk_update_group_worksheets(
            group_id, request, allowed_group_ids=scope.group_ids
        )
    except DomainError as e:
        raise _to_http_exception(e) from e


@router.patch(
    "/items/{item_id}/target",
    summary="Update worker target",
    description="Change one worker's hourly target and re-seed expected output.",
    response_model=WorksheetItemResponse,
)
def update_worker_target(
    item_id: UUID,
    request: UpdateWorkerTargetRequest,
    service: WorksheetServiceDep,
    scope: CallerScopeDep,
) -> WorksheetItemResponse:
    try:
        return service.update_worker_target(
            item_id, request.target_output_per_hour, allowed_group_ids=scope.group_ids
        )
    except DomainError as e:
        raise _to_http_exception(e) from e


@router.post(
    "/",
    summary="Create worksheet",
    description=(
        "Create a group's worksheet for a calendar day with one item per active "
        "member and one hour record per shift slot and member."
    ),
    response_model=WorksheetResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Invalid worksheet data"},
        409: {"description": "Worksheet already exists for this group and date"},
    },
)
def create_worksheet(
    request: CreateWorksheetRequest,
    service: WorksheetServiceDep,
    scope: CallerScopeDep,
) -> WorksheetResponse:
    try:
        return service.create_worksheet(
            request, created_by=scope.user_id, allowed_group_ids=scope.group_ids
        )
    except DomainError as e:
        raise _to_http_exception(e) from e


@router.get(
    "/",
    summary="List worksheets",
    response_model=WorksheetListResponse,
)
def list_worksheets(
    service: WorksheetServiceDep,
    scope: CallerScopeDep,
    group_id: UUID | None = Query(None, description="Filter by group"),
    work_date: date | None = Query(None, description="Filter by calendar day"),
    status_filter: WorksheetStatus | None = Query(None, alias="status"),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
) -> WorksheetListResponse:
    return service.list_worksheets(
        group_id=group_id,
        work_date=work_date,
        status=status_filter,
        allowed_group_ids=scope.group_ids,
        limit=limit,
        offset=offset,
    )


@router.get(
    "/{worksheet_id}",
    summary="Get worksheet",
    description="Worksheet with workers, hour records and causes.",
    response_model=WorksheetResponse,
    responses={404: {"description": "Worksheet not found"}},
)
def get_worksheet(
    worksheet_id: UUID, service: WorksheetServiceDep, scope: CallerScopeDep
) -> WorksheetResponse:
    try:
        return service.get_worksheet(worksheet_id, allowed_group_ids=scope.group_ids)
    except DomainError as e:
        raise _to_http_exception(e) from e


@router.get(
    "/{worksheet_id}/summary",
    summary="Worksheet output summary",
    description="Expected versus actual output and efficiency per hour and for the shift.",
    response_model=WorksheetSummaryResponse,
)
def get_worksheet_summary(
    worksheet_id: UUID, service: WorksheetServiceDep, scope: CallerScopeDep
) -> WorksheetSummaryResponse:
    try:
        return service.get_worksheet_summary(
            worksheet_id, allowed_group_ids=scope.group_ids
        )
    except DomainError as e:
        raise _to_http_exception(e) from e


@router.patch(
    "/{worksheet_id}",
    summary="Update worksheet",
    response_model=WorksheetResponse,
    responses={
        404: {"description": "Worksheet not found"},
        409: {"description": "Worksheet is not active or change refused"},
    },
)
def update_worksheet(
    worksheet_id: UUID,
    request: UpdateWorksheetRequest,
    service: WorksheetServiceDep,
    scope: CallerScopeDep,
) -> WorksheetResponse:
    try:
        return service.update_worksheet(
            worksheet_id, request, allowed_group_ids=scope.group_ids
        )
    except DomainError as e:
        raise _to_http_exception(e) from e


@router.post(
    "/{worksheet_id}/complete",
    summary="Complete worksheet",
    response_model=WorksheetResponse,
)
def complete_worksheet(
    worksheet_id: UUID, service: WorksheetServiceDep, scope: CallerScopeDep
) -> WorksheetResponse:
    try:
        return service.complete_worksheet(
            worksheet_id, allowed_group_ids=scope.group_ids
        )
    except DomainError as e:
        raise _to_http_exception(e) from e


@router.post(
    "/{worksheet_id}/cancel",
    summary="Cancel worksheet",
    response_model=WorksheetResponse,
)
def cancel_worksheet(
    worksheet_id: UUID, service: WorksheetServiceDep, scope: CallerScopeDep
) -> WorksheetResponse:
    try:
        return service.cancel_worksheet(worksheet_id, allowed_group_ids=scope.group_ids)
    except DomainError as e:
        raise _to_http_exception(e) from e
