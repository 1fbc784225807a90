"""
Worksheet application service.

Owns the worksheet lifecycle: creation with seeded hour records, field
updates while ACTIVE, status transitions and read models. A worksheet is
created together with all of its items and hour records in one
transaction.
"""

from collections import defaultdict
from datetime import date
from uuid import UUID

from worksheet_tracker.core.observability import monitor_operation
from worksheet_tracker.domain.shared.exceptions import (
    ConflictError,
    DuplicateWorksheetError,
    NotFoundError,
    ValidationError,
)
from worksheet_tracker.domain.worksheet import shift_schedule
from worksheet_tracker.domain.worksheet.enums import (
    HourRecordStatus,
    ShiftType,
    WorksheetStatus,
)
from worksheet_tracker.domain.worksheet.targets import (
    group_target,
    individual_expected,
    round_half_up,
    summarize,
)
from worksheet_tracker.domain.worksheet.time_codec import to_wall_clock
from worksheet_tracker.infrastructure.database.models import (
    HourRecord,
    Worksheet,
    WorksheetItem,
)
from worksheet_tracker.infrastructure.database.repositories.base import (
    EntityAlreadyExistsError,
)
from worksheet_tracker.infrastructure.database.types import utc_now
from worksheet_tracker.infrastructure.database.unit_of_work import SqlModelUnitOfWork

from ..dtos.mappers import WorksheetDTOMapper
from ..dtos.worksheet_dtos import (
    BulkUpdateGroupWorksheetsRequest,
    CreateWorksheetRequest,
    HourSummary,
    UpdateWorksheetRequest,
    WorksheetItemResponse,
    WorksheetListResponse,
    WorksheetResponse,
    WorksheetSummaryResponse,
)
from .base_service import ApplicationServiceBase


def _seed_records(
    worksheet: Worksheet,
    item: WorksheetItem,
    slots: tuple[shift_schedule.HourSlot, ...],
) -> list[HourRecord]:
    """Create one hour record per slot with the worker's expected output."""
    return [
        HourRecord(
            worksheet=worksheet,
            item=item,
            hour_index=slot.hour_index,
            start_instant=slot.start_instant,
            end_instant=slot.end_instant,
            expected_output_total=round_half_up(
                individual_expected(item.target_output_per_hour, slot.duration_hours)
            ),
            actual_output_total=0,
            status=HourRecordStatus.PENDING,
            causes=[],
        )
        for slot in slots
    ]


def _record_hours(record: HourRecord) -> float:
    return (record.end_instant - record.start_instant).total_seconds() / 3600


class WorksheetService(ApplicationServiceBase):
    """Application service for worksheet lifecycle operations."""

    @monitor_operation("create_worksheet")
    def create_worksheet(
        self,
        request: CreateWorksheetRequest,
        created_by: str | None = None,
        allowed_group_ids: set[UUID] | None = None,
    ) -> WorksheetResponse:
        """
        Create a worksheet with one item per active member and seeded hour records.

        Raises:
            ValidationError: If no member is active
            NotFoundError: If the group is outside the caller's scope
            DuplicateWorksheetError: If the group already has a worksheet that day
        """
        active_members = [member for member in request.members if member.is_active]
        if not active_members:
            raise ValidationError(
                "members", 0, "at least one active member is required"
            )
        if allowed_group_ids is not None and request.group_id not in allowed_group_ids:
            raise NotFoundError("Group", request.group_id)

        slots = shift_schedule.generate(request.shift_type, request.work_date)
        planned = group_target(
            request.standard_output_per_hour,
            len(active_members),
            request.planned_output_per_hour,
        )

        with self.transaction() as uow:
            if uow.worksheets.get_by_date_and_group(request.work_date, request.group_id):
                raise DuplicateWorksheetError(request.work_date, request.group_id)

            worksheet = Worksheet(
                work_date=request.work_date,
                group_id=request.group_id,
                shift_type=request.shift_type,
                total_workers=len(active_members),
                status=WorksheetStatus.ACTIVE,
                planned_output_per_hour=planned,
                product_id=request.product_id,
                process_id=request.process_id,
                created_by=created_by,
            )

            for member in active_members:
                item = WorksheetItem(
                    worksheet=worksheet,
                    worker_id=member.worker_id,
                    product_id=member.product_id or request.product_id,
                    process_id=member.process_id or request.process_id,
                    target_output_per_hour=(
                        member.standard_output_per_hour
                        or request.standard_output_per_hour
                    ),
                )
                _seed_records(worksheet, item, slots)

            try:
                uow.worksheets.add(worksheet)
            except EntityAlreadyExistsError as e:
                raise DuplicateWorksheetError(
                    request.work_date, request.group_id
                ) from e

            self._logger.info(
                "Worksheet created",
                worksheet_id=str(worksheet.id),
                group_id=str(worksheet.group_id),
                work_date=worksheet.work_date.isoformat(),
                shift_type=worksheet.shift_type.value,
                total_workers=worksheet.total_workers,
                slot_count=len(slots),
                planned_output_per_hour=planned,
            )
            return WorksheetDTOMapper.worksheet_to_response(worksheet)

    def get_worksheet(
        self, worksheet_id: UUID, allowed_group_ids: set[UUID] | None = None
    ) -> WorksheetResponse:
        """Get a worksheet with items, hour records and causes."""
        with self.transaction() as uow:
            worksheet = uow.worksheets.get_with_graph(worksheet_id)
            if worksheet is None:
                raise NotFoundError("Worksheet", worksheet_id)
            self.ensure_in_scope(worksheet, allowed_group_ids)
            return WorksheetDTOMapper.worksheet_to_response(worksheet)

    def list_worksheets(
        self,
        group_id: UUID | None = None,
        work_date: date | None = None,
        status: WorksheetStatus | None = None,
        allowed_group_ids: set[UUID] | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> WorksheetListResponse:
        """
        List one page of worksheet headers; nested items are not loaded.

        `total` counts every matching worksheet, not just the returned page.
        """
        with self.transaction() as uow:
            worksheets = uow.worksheets.find(
                group_id=group_id,
                work_date=work_date,
                status=status,
                group_ids=allowed_group_ids,
                limit=limit,
                offset=offset,
            )
            total = uow.worksheets.count(
                group_id=group_id,
                work_date=work_date,
                status=status,
                group_ids=allowed_group_ids,
            )
            responses = [
                WorksheetDTOMapper.worksheet_to_response(worksheet)
                for worksheet in worksheets
            ]
            return WorksheetListResponse(worksheets=responses, total=total)

    @monitor_operation("update_worksheet")
    def update_worksheet(
        self,
        worksheet_id: UUID,
        request: UpdateWorksheetRequest,
        allowed_group_ids: set[UUID] | None = None,
    ) -> WorksheetResponse:
        """
        Update fields or status of an ACTIVE worksheet.

        Raises:
            NotFoundError: If the worksheet does not exist or is out of scope
            ConflictError: If the worksheet is not ACTIVE or the change is refused
        """
        with self.transaction() as uow:
            worksheet = self.get_worksheet_or_raise(uow, worksheet_id)
            self.ensure_in_scope(worksheet, allowed_group_ids)
            self._apply_update(uow, worksheet, request)
            return WorksheetDTOMapper.worksheet_to_response(worksheet)

    @monitor_operation("bulk_update_group_worksheets")
    def bulk_update_group_worksheets(
        self,
        group_id: UUID,
        request: BulkUpdateGroupWorksheetsRequest,
        allowed_group_ids: set[UUID] | None = None,
    ) -> WorksheetResponse:
        """
        Update a group's worksheet for a calendar day and every one of its items.

        Raises:
            NotFoundError: If the group has no worksheet on that day
            ConflictError: If the worksheet is not ACTIVE
        """
        with self.transaction() as uow:
            worksheet = uow.worksheets.get_by_date_and_group(request.work_date, group_id)
            if worksheet is None:
                raise NotFoundError(
                    "Worksheet",
                    f"{group_id}/{request.work_date.isoformat()}",
                )
            self.ensure_in_scope(worksheet, allowed_group_ids)
            self._apply_update(uow, worksheet, request.to_update())
            return WorksheetDTOMapper.worksheet_to_response(worksheet)

    def complete_worksheet(
        self, worksheet_id: UUID, allowed_group_ids: set[UUID] | None = None
    ) -> WorksheetResponse:
        return self.update_worksheet(
            worksheet_id,
            UpdateWorksheetRequest(status=WorksheetStatus.COMPLETED),
            allowed_group_ids,
        )

    def cancel_worksheet(
        self, worksheet_id: UUID, allowed_group_ids: set[UUID] | None = None
    ) -> WorksheetResponse:
        return self.update_worksheet(
            worksheet_id,
            UpdateWorksheetRequest(status=WorksheetStatus.CANCELLED),
            allowed_group_ids,
        )

    @monitor_operation("update_worker_target")
    def update_worker_target(
        self,
        item_id: UUID,
        target_output_per_hour: float,
        allowed_group_ids: set[UUID] | None = None,
    ) -> WorksheetItemResponse:
        """
        Change one worker's hourly target and re-seed the expected output of
        each of that worker's hour records.
        """
        if target_output_per_hour <= 0:
            raise ValidationError(
                "target_output_per_hour",
                target_output_per_hour,
                "must be a positive number",
            )

        with self.transaction() as uow:
            item = uow.items.get_by_id(item_id)
            if item is None:
                raise NotFoundError("WorksheetItem", item_id)
            worksheet = self.get_worksheet_or_raise(uow, item.worksheet_id)
            self.ensure_in_scope(worksheet, allowed_group_ids)
            self.ensure_active(worksheet)

            uow.items.apply_changes(
                item,
                {"target_output_per_hour": target_output_per_hour, "updated_at": utc_now()},
            )
            for record in item.records:
                record.expected_output_total = round_half_up(
                    individual_expected(target_output_per_hour, _record_hours(record))
                )
            uow.records.flush()

            self._logger.info(
                "Worker target updated",
                worksheet_id=str(worksheet.id),
                item_id=str(item.id),
                target_output_per_hour=target_output_per_hour,
            )
            return WorksheetDTOMapper.item_to_response(item)

    def get_worksheet_summary(
        self, worksheet_id: UUID, allowed_group_ids: set[UUID] | None = None
    ) -> WorksheetSummaryResponse:
        """Totals and efficiency for the whole shift and for every hour slot."""
        with self.transaction() as uow:
            worksheet = self.get_worksheet_or_raise(uow, worksheet_id)
            self.ensure_in_scope(worksheet, allowed_group_ids)
            records = uow.records.list_for_worksheet(worksheet_id)

            by_hour: dict[int, list[HourRecord]] = defaultdict(list)
            for record in records:
                by_hour[record.hour_index].append(record)

            hours = []
            for hour_index in sorted(by_hour):
                hour_records = by_hour[hour_index]
                totals = summarize(
                    (r.expected_output_total, r.actual_output_total)
                    for r in hour_records
                )
                hours.append(
                    HourSummary(
                        hour_index=hour_index,
                        start_time=to_wall_clock(hour_records[0].start_instant),
                        end_time=to_wall_clock(hour_records[0].end_instant),
                        expected_output=totals.expected,
                        actual_output=totals.actual,
                        variance=totals.variance,
                        efficiency=totals.efficiency,
                    )
                )

            shift_totals = summarize(
                (r.expected_output_total, r.actual_output_total) for r in records
            )
            nominal_hours = shift_schedule.nominal_shift_hours(worksheet.shift_type)
            return WorksheetSummaryResponse(
                worksheet_id=worksheet.id,
                work_date=worksheet.work_date,
                group_id=worksheet.group_id,
                shift_type=worksheet.shift_type,
                status=worksheet.status,
                total_workers=worksheet.total_workers,
                nominal_shift_hours=nominal_hours,
                planned_output_per_hour=worksheet.planned_output_per_hour,
                planned_shift_output=round_half_up(
                    worksheet.planned_output_per_hour * nominal_hours
                ),
                expected_output=shift_totals.expected,
                actual_output=shift_totals.actual,
                variance=shift_totals.variance,
                efficiency=shift_totals.efficiency,
                hours=hours,
            )

    def _apply_update(
        self,
        uow: SqlModelUnitOfWork,
        worksheet: Worksheet,
        request: UpdateWorksheetRequest,
    ) -> None:
        self.ensure_active(worksheet)

        changes = request.changes()
        if not changes:
            return

        target_status = changes.pop("status", None)
        if target_status is not None and target_status != worksheet.status:
            if not worksheet.status.can_transition_to(target_status):
                raise ConflictError(
                    f"Cannot change worksheet from {worksheet.status.value} "
                    f"to {target_status.value}",
                    {
                        "worksheet_id": str(worksheet.id),
                        "current_status": worksheet.status.value,
                        "attempted_status": target_status.value,
                    },
                )

        new_shift_type = changes.pop("shift_type", None)
        if new_shift_type is not None and new_shift_type != worksheet.shift_type:
            self._regenerate_records(uow, worksheet, new_shift_type)

        item_changes = {
            field: changes[field] for field in ("product_id", "process_id") if field in changes
        }
        if item_changes:
            for item in uow.items.list_for_worksheet(worksheet.id):
                uow.items.apply_changes(item, {**item_changes, "updated_at": utc_now()})

        if target_status is not None:
            changes["status"] = target_status
        changes["updated_at"] = utc_now()
        uow.worksheets.apply_changes(worksheet, changes)

        self._logger.info(
            "Worksheet updated",
            worksheet_id=str(worksheet.id),
            fields=sorted(key for key in changes if key != "updated_at"),
            status=worksheet.status.value,
        )

    def _regenerate_records(
        self,
        uow: SqlModelUnitOfWork,
        worksheet: Worksheet,
        shift_type: ShiftType,
    ) -> None:
        """
        Replace the hour record set for a new shift type.

        Refused once any output or cause has been recorded, since
        regeneration would discard it.
        """
        if uow.records.has_recorded_output(worksheet.id):
            raise ConflictError(
                "Cannot change the shift type after output has been recorded",
                {
                    "worksheet_id": str(worksheet.id),
                    "current_shift_type": worksheet.shift_type.value,
                    "attempted_shift_type": shift_type.value,
                },
            )

        removed = uow.records.delete_for_worksheet(worksheet.id)
        slots = shift_schedule.generate(shift_type, worksheet.work_date)
        created = []
        for item in uow.items.list_for_worksheet(worksheet.id):
            created.extend(_seed_records(worksheet, item, slots))
        uow.records.add_all(created)
        worksheet.shift_type = shift_type

        self._logger.info(
            "Hour records regenerated for new shift type",
            worksheet_id=str(worksheet.id),
            shift_type=shift_type.value,
            removed_records=removed,
            created_records=len(created),
        )
