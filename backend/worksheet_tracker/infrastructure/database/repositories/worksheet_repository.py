"""
Worksheet aggregate repositories.

Read paths that feed API responses eager-load the nested graph so the
response mapper never triggers lazy loads after the session closes.
"""

from collections.abc import Iterable
from datetime import date
from uuid import UUID

from sqlalchemy import delete, func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import selectinload
from sqlmodel import select

from worksheet_tracker.domain.worksheet.enums import HourRecordStatus, WorksheetStatus

from ..models import CauseEntry, HourRecord, Worksheet, WorksheetItem
from .base import BaseRepository, DatabaseError


def _filter_worksheets(
    statement,
    group_id: UUID | None,
    work_date: date | None,
    status: WorksheetStatus | None,
    group_ids: Iterable[UUID] | None,
):
    if group_id is not None:
        statement = statement.where(Worksheet.group_id == group_id)
    if group_ids is not None:
        statement = statement.where(
            Worksheet.group_id.in_(list(group_ids))  # type: ignore[attr-defined]
        )
    if work_date is not None:
        statement = statement.where(Worksheet.work_date == work_date)
    if status is not None:
        statement = statement.where(Worksheet.status == status)
    return statement


class WorksheetRepository(BaseRepository[Worksheet]):
    @property
    def entity_class(self) -> type[Worksheet]:
        return Worksheet

    def get_by_date_and_group(self, work_date: date, group_id: UUID) -> Worksheet | None:
        """Find the worksheet for a group's calendar day."""
        try:
            statement = select(Worksheet).where(
                Worksheet.work_date == work_date, Worksheet.group_id == group_id
            )
            return self.session.exec(statement).first()
        except SQLAlchemyError as e:
            raise DatabaseError(
                f"Database error during get_by_date_and_group: {str(e)}"
            ) from e

    def get_with_graph(self, worksheet_id: UUID) -> Worksheet | None:
        """Load a worksheet with items, their hour records and causes."""
        try:
            statement = (
                select(Worksheet)
                .where(Worksheet.id == worksheet_id)
                .options(
                    selectinload(Worksheet.items)  # type: ignore[arg-type]
                    .selectinload(WorksheetItem.records)  # type: ignore[arg-type]
                    .selectinload(HourRecord.causes)  # type: ignore[arg-type]
                )
            )
            return self.session.exec(statement).first()
        except SQLAlchemyError as e:
            raise DatabaseError(f"Database error during get_with_graph: {str(e)}") from e

    def find(
        self,
        group_id: UUID | None = None,
        work_date: date | None = None,
        status: WorksheetStatus | None = None,
        group_ids: Iterable[UUID] | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[Worksheet]:
        """List worksheets matching the given filters, newest date first."""
        try:
            statement = _filter_worksheets(
                select(Worksheet), group_id, work_date, status, group_ids
            )
            statement = (
                statement.order_by(
                    Worksheet.work_date.desc(),  # type: ignore[attr-defined]
                    Worksheet.group_id,
                )
                .offset(offset)
                .limit(limit)
            )
            return list(self.session.exec(statement).all())
        except SQLAlchemyError as e:
            raise DatabaseError(f"Database error during find: {str(e)}") from e

    def count(
        self,
        group_id: UUID | None = None,
        work_date: date | None = None,
        status: WorksheetStatus | None = None,
        group_ids: Iterable[UUID] | None = None,
    ) -> int:
        """Count worksheets matching the same filters as find, ignoring paging."""
        try:
            statement = _filter_worksheets(
                select(func.count()).select_from(Worksheet),
                group_id,
                work_date,
                status,
                group_ids,
            )
            return self.session.exec(statement).one()
        except SQLAlchemyError as e:
            raise DatabaseError(f"Database error during count: {str(e)}") from e


class WorksheetItemRepository(BaseRepository[WorksheetItem]):
    @property
    def entity_class(self) -> type[WorksheetItem]:
        return WorksheetItem

    def list_for_worksheet(self, worksheet_id: UUID) -> list[WorksheetItem]:
        try:
            statement = select(WorksheetItem).where(
                WorksheetItem.worksheet_id == worksheet_id
            )
            return list(self.session.exec(statement).all())
        except SQLAlchemyError as e:
            raise DatabaseError(
                f"Database error during list_for_worksheet: {str(e)}"
            ) from e


class HourRecordRepository(BaseRepository[HourRecord]):
    @property
    def entity_class(self) -> type[HourRecord]:
        return HourRecord

    def get_many_with_context(self, record_ids: Iterable[UUID]) -> dict[UUID, HourRecord]:
        """Load records together with their owning worksheet and item."""
        ids = list(set(record_ids))
        if not ids:
            return {}
        try:
            statement = (
                select(HourRecord)
                .where(HourRecord.id.in_(ids))  # type: ignore[attr-defined]
                .options(
                    selectinload(HourRecord.worksheet),  # type: ignore[arg-type]
                    selectinload(HourRecord.item),  # type: ignore[arg-type]
                )
            )
            return {record.id: record for record in self.session.exec(statement)}
        except SQLAlchemyError as e:
            raise DatabaseError(
                f"Database error during get_many_with_context: {str(e)}"
            ) from e

    def list_for_worksheet(self, worksheet_id: UUID) -> list[HourRecord]:
        try:
            statement = (
                select(HourRecord)
                .where(HourRecord.worksheet_id == worksheet_id)
                .order_by(HourRecord.hour_index, HourRecord.item_id)
            )
            return list(self.session.exec(statement).all())
        except SQLAlchemyError as e:
            raise DatabaseError(
                f"Database error during list_for_worksheet: {str(e)}"
            ) from e

    def delete_for_worksheet(self, worksheet_id: UUID) -> int:
        """Delete every hour record (and its causes) of a worksheet."""
        self.flush()
        try:
            record_ids = select(HourRecord.id).where(
                HourRecord.worksheet_id == worksheet_id
            )
            self.session.execute(
                delete(CauseEntry).where(
                    CauseEntry.record_id.in_(record_ids)  # type: ignore[attr-defined]
                )
            )
            result = self.session.execute(
                delete(HourRecord).where(HourRecord.worksheet_id == worksheet_id)
            )
            self.session.expire_all()
            return result.rowcount
        except SQLAlchemyError as e:
            raise DatabaseError(
                f"Database error during delete_for_worksheet: {str(e)}"
            ) from e

    def has_recorded_output(self, worksheet_id: UUID) -> bool:
        """
        Check whether any record of the worksheet has been submitted or carries
        causes. A submitted record counts even when its output is zero.
        """
        try:
            with_output = select(HourRecord.id).where(
                HourRecord.worksheet_id == worksheet_id,
                or_(
                    HourRecord.actual_output_total > 0,
                    HourRecord.status != HourRecordStatus.PENDING,
                    HourRecord.updated_by.is_not(None),  # type: ignore[union-attr]
                    HourRecord.updated_at.is_not(None),  # type: ignore[union-attr]
                ),
            )
            if self.session.exec(with_output).first() is not None:
                return True
            with_causes = (
                select(CauseEntry.id)
                .join(HourRecord, CauseEntry.record_id == HourRecord.id)  # type: ignore[arg-type]
                .where(HourRecord.worksheet_id == worksheet_id)
            )
            return self.session.exec(with_causes).first() is not None
        except SQLAlchemyError as e:
            raise DatabaseError(
                f"Database error during has_recorded_output: {str(e)}"
            ) from e


class CauseEntryRepository(BaseRepository[CauseEntry]):
    @property
    def entity_class(self) -> type[CauseEntry]:
        return CauseEntry

    def list_for_record(self, record_id: UUID) -> list[CauseEntry]:
        try:
            statement = select(CauseEntry).where(CauseEntry.record_id == record_id)
            return list(self.session.exec(statement).all())
        except SQLAlchemyError as e:
            raise DatabaseError(f"Database error during list_for_record: {str(e)}") from e

    def replace_for_record(
        self, record_id: UUID, entries: Iterable[CauseEntry]
    ) -> list[CauseEntry]:
        """Delete every existing cause of a record and stage the new set."""
        try:
            self.session.execute(
                delete(CauseEntry).where(CauseEntry.record_id == record_id)
            )
        except SQLAlchemyError as e:
            raise DatabaseError(
                f"Database error during replace_for_record: {str(e)}"
            ) from e
        return self.add_all(entries)
