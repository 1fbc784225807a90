"""
Batch output recording.

A batch is validated in full before anything is written: every referenced
hour record must exist, belong to the expected worksheet and group scope,
and sit on an ACTIVE worksheet. A failure on any entry rejects the whole
batch and the unit of work rolls back.
"""

from uuid import UUID

from worksheet_tracker.core.observability import (
    OUTPUT_ENTRIES_RECORDED,
    monitor_operation,
)
from worksheet_tracker.domain.shared.exceptions import NotFoundError, ValidationError
from worksheet_tracker.domain.worksheet.enums import HourRecordStatus
from worksheet_tracker.infrastructure.database.models import HourRecord
from worksheet_tracker.infrastructure.database.types import utc_now

from ..dtos.mappers import WorksheetDTOMapper
from ..dtos.worksheet_dtos import BatchOutputRequest, BatchOutputResponse, OutputEntry
from .base_service import ApplicationServiceBase


class BatchOutputRecorder(ApplicationServiceBase):
    """Writes actual hourly output for many worker-hours in one transaction."""

    @monitor_operation("batch_submit_output")
    def submit(
        self,
        request: BatchOutputRequest,
        updated_by: str | None = None,
        allowed_group_ids: set[UUID] | None = None,
    ) -> BatchOutputResponse:
        """
        Apply a batch of output entries atomically.

        Resubmitting the same batch overwrites the same fields with the same
        values.

        Raises:
            ValidationError: If a record appears more than once in the batch
            NotFoundError: If a record does not exist or is out of scope
            ConflictError: If a record's worksheet is not ACTIVE
        """
        self._ensure_unique_records(request.entries)

        with self.transaction() as uow:
            records = uow.records.get_many_with_context(
                entry.record_id for entry in request.entries
            )

            for entry in request.entries:
                record = records.get(entry.record_id)
                if record is None:
                    raise NotFoundError("HourRecord", entry.record_id)
                self._ensure_record_in_scope(
                    record, request.worksheet_id, allowed_group_ids
                )
                self.ensure_active(record.worksheet)

            now = utc_now()
            for entry in request.entries:
                self._apply_entry(records[entry.record_id], entry, updated_by, now)
            uow.records.flush()

            OUTPUT_ENTRIES_RECORDED.inc(len(request.entries))
            self._logger.info(
                "Output batch recorded",
                entry_count=len(request.entries),
                worksheet_ids=sorted({str(r.worksheet_id) for r in records.values()}),
                updated_by=updated_by,
            )

            ordered = [records[entry.record_id] for entry in request.entries]
            return BatchOutputResponse(
                updated_count=len(ordered),
                records=[WorksheetDTOMapper.record_to_response(r) for r in ordered],
            )

    @staticmethod
    def _ensure_unique_records(entries: list[OutputEntry]) -> None:
        seen: set[UUID] = set()
        for entry in entries:
            if entry.record_id in seen:
                raise ValidationError(
                    "entries",
                    str(entry.record_id),
                    "a record may only appear once per batch",
                    error_code="DUPLICATE_RECORD",
                )
            seen.add(entry.record_id)

    def _ensure_record_in_scope(
        self,
        record: HourRecord,
        worksheet_id: UUID | None,
        allowed_group_ids: set[UUID] | None,
    ) -> None:
        if worksheet_id is not None and record.worksheet_id != worksheet_id:
            raise NotFoundError(
                "HourRecord",
                record.id,
                f"HourRecord {record.id} does not belong to worksheet {worksheet_id}",
            )
        if (
            allowed_group_ids is not None
            and record.worksheet.group_id not in allowed_group_ids
        ):
            raise NotFoundError("HourRecord", record.id)

    @staticmethod
    def _apply_entry(
        record: HourRecord,
        entry: OutputEntry,
        updated_by: str | None,
        now,
    ) -> None:
        record.actual_output_total = entry.actual_output
        record.status = entry.status or HourRecordStatus.COMPLETED
        record.updated_by = updated_by
        record.updated_at = now
        if entry.planned_output_override is not None:
            record.expected_output_total = entry.planned_output_override
        if entry.note is not None:
            record.note = entry.note

        # Mid-shift task change moves the worker to another product/process
        item = record.item
        if entry.product_id is not None and item.product_id != entry.product_id:
            item.product_id = entry.product_id
            item.updated_at = now
        if entry.process_id is not None and item.process_id != entry.process_id:
            item.process_id = entry.process_id
            item.updated_at = now
