"""
Repair of malformed hour record time values.

Older writers stored slot boundaries as bare time-of-day text or as
instants anchored on 1970-01-01 instead of the worksheet date. The repair
job reads every record joined with its worksheet date in one query,
decides per row with a pure function whether and how to rewrite it, then
applies each rewrite as its own conditional update. Failures are collected
in the report so one bad row never stops the pass.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any

from sqlalchemy import Row, bindparam, text
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from worksheet_tracker.core.observability import RECORD_TIME_REPAIRS, get_logger
from worksheet_tracker.domain.worksheet.time_codec import (
    as_utc,
    fallback_time,
    to_instant,
    utc_instant,
)
from worksheet_tracker.infrastructure.database.types import UTCDateTime

logger = get_logger(__name__)

_SELECT_RECORD_TIMES = text(
    """
    SELECT hr.id AS record_id,
           hr.hour_index AS hour_index,
           hr.start_instant AS start_value,
           hr.end_instant AS end_value,
           ws.work_date AS work_date
    FROM hour_records hr
    JOIN worksheets ws ON ws.id = hr.worksheet_id
    ORDER BY ws.work_date, hr.hour_index
    """
)

_UPDATE_RECORD_TIMES = text(
    """
    UPDATE hour_records
    SET start_instant = :start_instant, end_instant = :end_instant
    WHERE id = :record_id
      AND start_instant = :old_start
      AND end_instant = :old_end
    """
).bindparams(
    bindparam("start_instant", type_=UTCDateTime),
    bindparam("end_instant", type_=UTCDateTime),
)


@dataclass(frozen=True)
class RecordTimeRow:
    """Raw stored values of one hour record and its worksheet date."""

    record_id: Any
    hour_index: int
    work_date: date
    start_value: Any
    end_value: Any


@dataclass(frozen=True)
class RecordTimeFix:
    record_id: Any
    start_instant: datetime
    end_instant: datetime


@dataclass
class RepairReport:
    scanned: int = 0
    fixed: int = 0
    skipped: int = 0
    failed: int = 0
    dry_run: bool = False
    errors: list[str] = field(default_factory=list)

    def record_failure(self, record_id: Any, message: str) -> None:
        self.failed += 1
        self.errors.append(f"{record_id}: {message}")


def _parse_work_date(value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def _repair_value(
    work_date: date, value: Any, hour_index: int, boundary: str
) -> datetime | None:
    """Return the corrected instant for a stored value, or None if it is valid."""
    instant = as_utc(value)
    if instant is not None:
        if instant.date() == work_date:
            return None
        # Right time of day anchored on the wrong date (1970 epoch rows)
        return utc_instant(work_date, instant.time())
    return to_instant(work_date, value, hour_index, boundary)  # type: ignore[arg-type]


def plan_repair(row: RecordTimeRow) -> RecordTimeFix | None:
    """
    Decide how to rewrite one record's slot boundaries.

    Returns None when both stored values are already instants on the
    worksheet date. A repaired pair that ends up out of order is replaced
    by the default slot for the record's hour index.
    """
    new_start = _repair_value(row.work_date, row.start_value, row.hour_index, "start")
    new_end = _repair_value(row.work_date, row.end_value, row.hour_index, "end")
    if new_start is None and new_end is None:
        return None

    start = new_start or as_utc(row.start_value)
    end = new_end or as_utc(row.end_value)
    if start is None or end is None or start >= end:
        start = utc_instant(row.work_date, fallback_time(row.hour_index, "start"))
        end = utc_instant(row.work_date, fallback_time(row.hour_index, "end"))

    return RecordTimeFix(record_id=row.record_id, start_instant=start, end_instant=end)


class RecordTimeRepairJob:
    """Rewrites malformed hour record boundaries onto their worksheet dates."""

    def __init__(self, session_factory: Callable[[], Session]):
        self._session_factory = session_factory

    def load_rows(self) -> list[Row]:
        """Read every record with its worksheet date, values exactly as stored."""
        with self._session_factory() as session:
            return list(session.execute(_SELECT_RECORD_TIMES))

    def run(self, dry_run: bool = False) -> RepairReport:
        """
        Scan every hour record and rewrite the malformed ones.

        Args:
            dry_run: Plan and count repairs without writing them

        Returns:
            Counts of fixed, skipped and failed records with error messages
        """
        report = RepairReport(dry_run=dry_run)
        rows = self.load_rows()
        logger.info("Record time repair started", record_count=len(rows), dry_run=dry_run)

        for row in rows:
            report.scanned += 1
            try:
                fix = plan_repair(
                    RecordTimeRow(
                        record_id=row.record_id,
                        hour_index=row.hour_index,
                        work_date=_parse_work_date(row.work_date),
                        start_value=row.start_value,
                        end_value=row.end_value,
                    )
                )
            except (TypeError, ValueError) as e:
                report.record_failure(row.record_id, str(e))
                RECORD_TIME_REPAIRS.labels(outcome="failed").inc()
                continue

            if fix is None:
                report.skipped += 1
                RECORD_TIME_REPAIRS.labels(outcome="skipped").inc()
                continue

            if dry_run:
                report.fixed += 1
                continue

            try:
                updated = self._apply(row, fix)
            except SQLAlchemyError as e:
                report.record_failure(row.record_id, str(e))
                RECORD_TIME_REPAIRS.labels(outcome="failed").inc()
                logger.warning(
                    "Record time repair failed", record_id=str(row.record_id), error=str(e)
                )
                continue

            if updated:
                report.fixed += 1
                RECORD_TIME_REPAIRS.labels(outcome="fixed").inc()
            else:
                # Row changed since it was read
                report.skipped += 1
                RECORD_TIME_REPAIRS.labels(outcome="skipped").inc()

        logger.info(
            "Record time repair finished",
            scanned=report.scanned,
            fixed=report.fixed,
            skipped=report.skipped,
            failed=report.failed,
            dry_run=dry_run,
        )
        return report

    def _apply(self, row: Row, fix: RecordTimeFix) -> bool:
        with self._session_factory() as session:
            result = session.execute(
                _UPDATE_RECORD_TIMES,
                {
                    "start_instant": fix.start_instant,
                    "end_instant": fix.end_instant,
                    "record_id": row.record_id,
                    "old_start": row.start_value,
                    "old_end": row.end_value,
                },
            )
            session.commit()
            return result.rowcount == 1
