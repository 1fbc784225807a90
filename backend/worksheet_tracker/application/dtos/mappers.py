"""
Mapping from persisted worksheet entities to response DTOs.

The mapper descends only into relationship collections that are already
loaded on an entity, so it never issues queries of its own and a partially
loaded graph maps to a response with the missing collections left as None.
"""

from sqlalchemy import inspect as sa_inspect

from worksheet_tracker.domain.worksheet.targets import efficiency
from worksheet_tracker.domain.worksheet.time_codec import to_wall_clock
from worksheet_tracker.infrastructure.database.models import (
    CauseEntry,
    HourRecord,
    Worksheet,
    WorksheetItem,
)

from .worksheet_dtos import (
    CauseEntryResponse,
    HourRecordResponse,
    WorksheetItemResponse,
    WorksheetResponse,
)


def _is_loaded(entity, attribute: str) -> bool:
    return attribute not in sa_inspect(entity).unloaded


class WorksheetDTOMapper:
    """Converts worksheet entities into API response structures."""

    @staticmethod
    def cause_to_response(cause: CauseEntry) -> CauseEntryResponse:
        return CauseEntryResponse(
            id=cause.id,
            cause_type=cause.cause_type,
            delta=cause.delta,
            note=cause.note,
        )

    @classmethod
    def record_to_response(cls, record: HourRecord) -> HourRecordResponse:
        causes = None
        if _is_loaded(record, "causes"):
            causes = [cls.cause_to_response(cause) for cause in record.causes]

        return HourRecordResponse(
            id=record.id,
            item_id=record.item_id,
            hour_index=record.hour_index,
            start_time=to_wall_clock(record.start_instant),
            end_time=to_wall_clock(record.end_instant),
            expected_output_total=record.expected_output_total,
            actual_output_total=record.actual_output_total,
            efficiency=round(
                efficiency(record.actual_output_total, record.expected_output_total), 2
            ),
            status=record.status,
            note=record.note,
            causes=causes,
        )

    @classmethod
    def item_to_response(cls, item: WorksheetItem) -> WorksheetItemResponse:
        records = None
        if _is_loaded(item, "records"):
            ordered = sorted(item.records, key=lambda record: record.hour_index)
            records = [cls.record_to_response(record) for record in ordered]

        return WorksheetItemResponse(
            id=item.id,
            worker_id=item.worker_id,
            product_id=item.product_id,
            process_id=item.process_id,
            target_output_per_hour=item.target_output_per_hour,
            records=records,
        )

    @classmethod
    def worksheet_to_response(cls, worksheet: Worksheet) -> WorksheetResponse:
        items = None
        if _is_loaded(worksheet, "items"):
            items = [cls.item_to_response(item) for item in worksheet.items]

        return WorksheetResponse(
            id=worksheet.id,
            work_date=worksheet.work_date,
            group_id=worksheet.group_id,
            shift_type=worksheet.shift_type,
            status=worksheet.status,
            total_workers=worksheet.total_workers,
            planned_output_per_hour=worksheet.planned_output_per_hour,
            product_id=worksheet.product_id,
            process_id=worksheet.process_id,
            created_by=worksheet.created_by,
            items=items,
        )
