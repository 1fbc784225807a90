"""
SQLModel table definitions for worksheet entities.

A Worksheet owns its WorksheetItems (one per worker) and the HourRecords of
those items; each HourRecord owns its CauseEntries.
"""

from datetime import date, datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import CheckConstraint, UniqueConstraint
from sqlmodel import Field, Relationship, SQLModel

from worksheet_tracker.domain.worksheet.enums import (
    CauseType,
    HourRecordStatus,
    ShiftType,
    WorksheetStatus,
)

from .types import UTCDateTime, utc_now


# Base classes for shared fields
class TimestampedModel(SQLModel):
    """Base model with timestamp fields."""

    created_at: datetime = Field(default_factory=utc_now, sa_type=UTCDateTime)
    updated_at: datetime | None = Field(default=None, sa_type=UTCDateTime)


class IdentifiedModel(TimestampedModel):
    """Base model with UUID primary key and timestamps."""

    id: UUID = Field(default_factory=uuid4, primary_key=True)


# Worksheet tables
class WorksheetBase(SQLModel):
    work_date: date = Field(index=True)
    group_id: UUID = Field(index=True)
    shift_type: ShiftType = Field(default=ShiftType.NORMAL_8H)
    total_workers: int = Field(default=0, ge=0)
    status: WorksheetStatus = Field(default=WorksheetStatus.ACTIVE, index=True)
    planned_output_per_hour: int = Field(default=0, ge=0)
    product_id: UUID | None = None
    process_id: UUID | None = None
    created_by: str | None = Field(default=None, max_length=100)


class Worksheet(WorksheetBase, IdentifiedModel, table=True):
    """Worksheet table definition."""

    __tablename__ = "worksheets"
    __table_args__ = (
        UniqueConstraint("work_date", "group_id", name="uq_worksheets_date_group"),
    )

    # Relationships
    items: list["WorksheetItem"] = Relationship(
        back_populates="worksheet", cascade_delete=True
    )
    records: list["HourRecord"] = Relationship(back_populates="worksheet")


class WorksheetItemBase(SQLModel):
    worksheet_id: UUID = Field(foreign_key="worksheets.id", index=True)
    worker_id: UUID = Field(index=True)
    product_id: UUID | None = None
    process_id: UUID | None = None
    target_output_per_hour: float = Field(default=0, ge=0)


class WorksheetItem(WorksheetItemBase, IdentifiedModel, table=True):
    """One worker's assignment within a worksheet."""

    __tablename__ = "worksheet_items"
    __table_args__ = (
        UniqueConstraint("worksheet_id", "worker_id", name="uq_items_worksheet_worker"),
    )

    worksheet: Optional["Worksheet"] = Relationship(back_populates="items")
    records: list["HourRecord"] = Relationship(
        back_populates="item", cascade_delete=True
    )


class HourRecordBase(SQLModel):
    worksheet_id: UUID = Field(foreign_key="worksheets.id", index=True)
    item_id: UUID = Field(foreign_key="worksheet_items.id", index=True)
    hour_index: int = Field(ge=1)
    start_instant: datetime = Field(sa_type=UTCDateTime)
    end_instant: datetime = Field(sa_type=UTCDateTime)
    expected_output_total: int = Field(default=0, ge=0)
    actual_output_total: int = Field(default=0, ge=0)
    status: HourRecordStatus = Field(default=HourRecordStatus.PENDING)
    note: str | None = Field(default=None, max_length=500)
    updated_by: str | None = Field(default=None, max_length=100)


class HourRecord(HourRecordBase, IdentifiedModel, table=True):
    """Expected-versus-actual output for one worker and hour slot."""

    __tablename__ = "hour_records"
    __table_args__ = (
        UniqueConstraint("item_id", "hour_index", name="uq_records_item_hour"),
        CheckConstraint("start_instant < end_instant", name="ck_records_slot_order"),
    )

    worksheet: Optional["Worksheet"] = Relationship(back_populates="records")
    item: Optional["WorksheetItem"] = Relationship(back_populates="records")
    causes: list["CauseEntry"] = Relationship(
        back_populates="record", cascade_delete=True
    )


class CauseEntryBase(SQLModel):
    record_id: UUID = Field(foreign_key="hour_records.id", index=True)
    cause_type: CauseType
    delta: int
    note: str | None = Field(default=None, max_length=500)


class CauseEntry(CauseEntryBase, IdentifiedModel, table=True):
    """Variance explanation attached to an hour record."""

    __tablename__ = "cause_entries"

    record: Optional["HourRecord"] = Relationship(back_populates="causes")
