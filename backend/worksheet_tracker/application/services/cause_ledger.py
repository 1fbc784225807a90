"""Per-record variance cause attribution."""

from uuid import UUID

from worksheet_tracker.core.observability import monitor_operation
from worksheet_tracker.domain.shared.exceptions import NotFoundError
from worksheet_tracker.infrastructure.database.models import CauseEntry, HourRecord
from worksheet_tracker.infrastructure.database.unit_of_work import SqlModelUnitOfWork

from ..dtos.mappers import WorksheetDTOMapper
from ..dtos.worksheet_dtos import CauseListResponse, UpsertCausesRequest
from .base_service import ApplicationServiceBase


class CauseAttributionLedger(ApplicationServiceBase):
    """
    Maintains the cause set explaining an hour record's output variance.

    Each upsert replaces the whole set. Deltas are free-form operator
    annotation and are not checked against the expected/actual gap.
    """

    @monitor_operation("upsert_causes")
    def upsert_causes(
        self,
        record_id: UUID,
        request: UpsertCausesRequest,
        allowed_group_ids: set[UUID] | None = None,
    ) -> CauseListResponse:
        """
        Replace every cause of a record; an empty list clears them.

        Raises:
            NotFoundError: If the record does not exist or is out of scope
            ConflictError: If the record's worksheet is not ACTIVE
        """
        with self.transaction() as uow:
            record = self._get_record(uow, record_id, allowed_group_ids)
            self.ensure_active(record.worksheet)

            entries = uow.causes.replace_for_record(
                record.id,
                [
                    CauseEntry(
                        record_id=record.id,
                        cause_type=cause.cause_type,
                        delta=cause.delta,
                        note=cause.note,
                    )
                    for cause in request.causes
                ],
            )

            self._logger.info(
                "Causes replaced",
                record_id=str(record.id),
                worksheet_id=str(record.worksheet_id),
                cause_count=len(entries),
                delta_total=sum(entry.delta for entry in entries),
            )
            return CauseListResponse(
                record_id=record.id,
                causes=[WorksheetDTOMapper.cause_to_response(e) for e in entries],
            )

    def list_causes(
        self, record_id: UUID, allowed_group_ids: set[UUID] | None = None
    ) -> CauseListResponse:
        with self.transaction() as uow:
            record = self._get_record(uow, record_id, allowed_group_ids)
            entries = uow.causes.list_for_record(record.id)
            return CauseListResponse(
                record_id=record.id,
                causes=[WorksheetDTOMapper.cause_to_response(e) for e in entries],
            )

    def _get_record(
        self,
        uow: SqlModelUnitOfWork,
        record_id: UUID,
        allowed_group_ids: set[UUID] | None,
    ) -> HourRecord:
        record = uow.records.get_by_id(record_id)
        if record is None:
            raise NotFoundError("HourRecord", record_id)
        self.ensure_in_scope(record.worksheet, allowed_group_ids)
        return record
