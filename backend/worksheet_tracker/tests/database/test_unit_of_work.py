"""
Tests for the unit of work and the repositories it exposes.
"""

from datetime import timezone
from uuid import uuid4

import pytest

from worksheet_tracker.domain.worksheet.enums import CauseType, HourRecordStatus
from worksheet_tracker.infrastructure.database.models import CauseEntry, Worksheet
from worksheet_tracker.infrastructure.database.repositories import (
    DatabaseError,
    EntityAlreadyExistsError,
)
from worksheet_tracker.tests.conftest import WORK_DATE
from worksheet_tracker.tests.utils import records_for_hour


class TestTransactionBoundary:
    """Test commit, rollback and session lifetime."""

    def test_commits_when_block_completes(self, uow_manager):
        worksheet = Worksheet(work_date=WORK_DATE, group_id=uuid4())

        with uow_manager.transaction() as uow:
            uow.worksheets.add(worksheet)

        with uow_manager.transaction() as uow:
            assert uow.worksheets.get_by_id(worksheet.id) is not None

    def test_rolls_back_when_block_raises(self, uow_manager):
        worksheet = Worksheet(work_date=WORK_DATE, group_id=uuid4())

        with pytest.raises(RuntimeError):
            with uow_manager.transaction() as uow:
                uow.worksheets.add(worksheet)
                raise RuntimeError("boom")

        with uow_manager.transaction() as uow:
            assert uow.worksheets.get_by_id(worksheet.id) is None

    def test_session_closed_after_exit(self, uow_manager):
        uow = uow_manager.create_unit_of_work()
        with uow:
            assert uow.session is not None

        with pytest.raises(DatabaseError):
            uow.session

    def test_units_do_not_share_sessions(self, uow_manager):
        with uow_manager.transaction() as first:
            with uow_manager.transaction() as second:
                assert first.session is not second.session


class TestWorksheetPersistence:
    def test_timestamps_read_back_as_utc(self, uow_manager):
        worksheet = Worksheet(work_date=WORK_DATE, group_id=uuid4())
        with uow_manager.transaction() as uow:
            uow.worksheets.add(worksheet)

        with uow_manager.transaction() as uow:
            loaded = uow.worksheets.get_by_id(worksheet.id)
            assert loaded.created_at.tzinfo == timezone.utc
            assert loaded.created_at == worksheet.created_at

    def test_one_worksheet_per_group_and_date(self, uow_manager):
        """Test the (date, group) unique constraint surfaces as a repository error."""
        group_id = uuid4()

        with pytest.raises(EntityAlreadyExistsError):
            with uow_manager.transaction() as uow:
                uow.worksheets.add(Worksheet(work_date=WORK_DATE, group_id=group_id))
                uow.worksheets.add(Worksheet(work_date=WORK_DATE, group_id=group_id))

        with uow_manager.transaction() as uow:
            assert uow.worksheets.get_by_date_and_group(WORK_DATE, group_id) is None

    def test_find_filters_by_group_ids(self, uow_manager):
        kept, other = uuid4(), uuid4()
        with uow_manager.transaction() as uow:
            uow.worksheets.add(Worksheet(work_date=WORK_DATE, group_id=kept))
            uow.worksheets.add(Worksheet(work_date=WORK_DATE, group_id=other))

        with uow_manager.transaction() as uow:
            found = uow.worksheets.find(group_ids=[kept])

        assert [w.group_id for w in found] == [kept]


class TestHourRecordRepository:
    def test_records_ordered_by_hour(self, worksheet, uow_manager):
        with uow_manager.transaction() as uow:
            records = uow.records.list_for_worksheet(worksheet.id)

        assert len(records) == 21
        assert [r.hour_index for r in records] == sorted(r.hour_index for r in records)

    def test_has_recorded_output_sees_causes(self, worksheet, uow_manager):
        record_id = records_for_hour(worksheet, 1)[0].id

        with uow_manager.transaction() as uow:
            assert not uow.records.has_recorded_output(worksheet.id)
            uow.causes.add(CauseEntry(record_id=record_id, cause_type=CauseType.OTHER, delta=0))
            assert uow.records.has_recorded_output(worksheet.id)

    def test_has_recorded_output_sees_zero_output_submission(self, worksheet, uow_manager):
        record_id = records_for_hour(worksheet, 1)[0].id

        with uow_manager.transaction() as uow:
            record = uow.records.get_by_id(record_id)
            uow.records.apply_changes(record, {"status": HourRecordStatus.COMPLETED})
            assert record.actual_output_total == 0
            assert uow.records.has_recorded_output(worksheet.id)

    def test_delete_for_worksheet_removes_causes(self, worksheet, uow_manager):
        record_id = records_for_hour(worksheet, 1)[0].id
        with uow_manager.transaction() as uow:
            uow.causes.add(
                CauseEntry(record_id=record_id, cause_type=CauseType.QUALITY, delta=-1)
            )

        with uow_manager.transaction() as uow:
            deleted = uow.records.delete_for_worksheet(worksheet.id)

        assert deleted == 21
        with uow_manager.transaction() as uow:
            assert uow.records.list_for_worksheet(worksheet.id) == []
            assert uow.causes.list_for_record(record_id) == []
