"""
Worksheet-related Data Transfer Objects.

Request DTOs validate input shape before any transaction opens. Response
DTOs never carry raw instants: slot boundaries are rendered as "HH:MM:SS"
wall-clock text. Nested collections are optional and are only populated
when the caller loaded them.
"""

from datetime import date
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from worksheet_tracker.domain.worksheet.enums import (
    CauseType,
    HourRecordStatus,
    ShiftType,
    WorksheetStatus,
)


class WorksheetMemberInput(BaseModel):
    """One group member to assign on a new worksheet."""

    worker_id: UUID = Field(..., description="Worker reference from the catalog")
    product_id: UUID | None = Field(
        None, description="Product override; defaults to the worksheet product"
    )
    process_id: UUID | None = Field(
        None, description="Process override; defaults to the worksheet process"
    )
    standard_output_per_hour: float | None = Field(
        None,
        gt=0,
        description="Individual hourly target; defaults to the group standard rate",
    )
    is_active: bool = Field(True, description="Inactive members get no items")


class CreateWorksheetRequest(BaseModel):
    """DTO for creating a group worksheet for one calendar day."""

    work_date: date = Field(..., description="Calendar day of the shift")
    group_id: UUID = Field(..., description="Worker group reference")
    shift_type: ShiftType = Field(ShiftType.NORMAL_8H, description="Shift pattern")
    product_id: UUID | None = Field(None, description="Default product for members")
    process_id: UUID | None = Field(None, description="Default process for members")
    standard_output_per_hour: float = Field(
        ..., ge=0, description="Standard output per worker per hour"
    )
    planned_output_per_hour: int | None = Field(
        None, gt=0, description="Group target override per hour"
    )
    members: list[WorksheetMemberInput] = Field(..., min_length=1)

    @field_validator("members")
    @classmethod
    def validate_unique_workers(cls, v: list[WorksheetMemberInput]):
        """A worker can only appear once on a worksheet."""
        worker_ids = [member.worker_id for member in v]
        if len(worker_ids) != len(set(worker_ids)):
            raise ValueError("Each worker may only be listed once")
        return v

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "work_date": "2024-01-15",
                "group_id": "5f0c6a8e-3b1d-4c55-9a39-7f7d6b0b1c11",
                "shift_type": "NORMAL_8H",
                "standard_output_per_hour": 12.5,
                "members": [
                    {"worker_id": "0b9a5c2e-8d64-4d1f-9a3c-1e2f3a4b5c6d"},
                    {
                        "worker_id": "7c1d2e3f-4a5b-4c6d-8e9f-0a1b2c3d4e5f",
                        "standard_output_per_hour": 15,
                    },
                ],
            }
        }
    )


class UpdateWorksheetRequest(BaseModel):
    """DTO for updating an ACTIVE worksheet."""

    status: WorksheetStatus | None = None
    shift_type: ShiftType | None = None
    planned_output_per_hour: int | None = Field(None, gt=0)
    product_id: UUID | None = None
    process_id: UUID | None = None

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True, exclude_none=True)


class BulkUpdateGroupWorksheetsRequest(BaseModel):
    """DTO for updating a group's worksheet addressed by calendar day."""

    work_date: date
    shift_type: ShiftType | None = None
    planned_output_per_hour: int | None = Field(None, gt=0)
    product_id: UUID | None = None
    process_id: UUID | None = None

    def to_update(self) -> UpdateWorksheetRequest:
        return UpdateWorksheetRequest(
            **self.model_dump(exclude={"work_date"}, exclude_unset=True)
        )


class UpdateWorkerTargetRequest(BaseModel):
    target_output_per_hour: float = Field(..., gt=0)


class OutputEntry(BaseModel):
    """Actual output for one worker and hour slot."""

    record_id: UUID
    actual_output: int = Field(..., ge=0, description="Units produced in the hour")
    product_id: UUID | None = Field(None, description="Reassigns the worker's product")
    process_id: UUID | None = Field(None, description="Reassigns the worker's process")
    planned_output_override: int | None = Field(
        None, ge=0, description="Replaces the expected output of this hour"
    )
    note: str | None = Field(None, max_length=500)
    status: HourRecordStatus | None = None


class BatchOutputRequest(BaseModel):
    """DTO for submitting several output entries as one atomic batch."""

    worksheet_id: UUID | None = Field(
        None, description="When given, every record must belong to this worksheet"
    )
    entries: list[OutputEntry] = Field(..., min_length=1, max_length=2000)


class CauseInput(BaseModel):
    cause_type: CauseType
    delta: int = Field(..., description="Signed output impact in units")
    note: str | None = Field(None, max_length=500)


class UpsertCausesRequest(BaseModel):
    """Full replacement set of causes for an hour record."""

    causes: list[CauseInput] = Field(default_factory=list, max_length=50)


# Responses


class CauseEntryResponse(BaseModel):
    id: UUID
    cause_type: CauseType
    delta: int
    note: str | None = None


class HourRecordResponse(BaseModel):
    id: UUID
    item_id: UUID
    hour_index: int
    start_time: str | None = Field(None, description="Slot start, HH:MM:SS")
    end_time: str | None = Field(None, description="Slot end, HH:MM:SS")
    expected_output_total: int
    actual_output_total: int
    efficiency: float
    status: HourRecordStatus
    note: str | None = None
    causes: list[CauseEntryResponse] | None = None


class WorksheetItemResponse(BaseModel):
    id: UUID
    worker_id: UUID
    product_id: UUID | None = None
    process_id: UUID | None = None
    target_output_per_hour: float
    records: list[HourRecordResponse] | None = None


class WorksheetResponse(BaseModel):
    id: UUID
    work_date: date
    group_id: UUID
    shift_type: ShiftType
    status: WorksheetStatus
    total_workers: int
    planned_output_per_hour: int
    product_id: UUID | None = None
    process_id: UUID | None = None
    created_by: str | None = None
    items: list[WorksheetItemResponse] | None = None


class WorksheetListResponse(BaseModel):
    worksheets: list[WorksheetResponse]
    total: int


class BatchOutputResponse(BaseModel):
    updated_count: int
    records: list[HourRecordResponse]


class CauseListResponse(BaseModel):
    record_id: UUID
    causes: list[CauseEntryResponse]


class HourSummary(BaseModel):
    hour_index: int
    start_time: str | None = None
    end_time: str | None = None
    expected_output: int
    actual_output: int
    variance: int
    efficiency: float


class WorksheetSummaryResponse(BaseModel):
    """Shift totals and per-hour efficiency for a worksheet."""

    worksheet_id: UUID
    work_date: date
    group_id: UUID
    shift_type: ShiftType
    status: WorksheetStatus
    total_workers: int
    nominal_shift_hours: float
    planned_output_per_hour: int
    planned_shift_output: int
    expected_output: int
    actual_output: int
    variance: int
    efficiency: float
    hours: list[HourSummary]
