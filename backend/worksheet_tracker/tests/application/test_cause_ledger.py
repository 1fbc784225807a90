"""Tests for full-replacement cause attribution."""

from uuid import uuid4

import pytest

from worksheet_tracker.application.dtos.worksheet_dtos import (
    CauseInput,
    UpsertCausesRequest,
)
from worksheet_tracker.domain.shared.exceptions import ConflictError, NotFoundError
from worksheet_tracker.domain.worksheet.enums import CauseType
from worksheet_tracker.tests.utils import records_for_hour


class TestUpsertCauses:
    """Test replacing the cause set of an hour record."""

    def test_attaches_causes(self, worksheet, cause_ledger):
        record = records_for_hour(worksheet, 2)[0]

        result = cause_ledger.upsert_causes(
            record.id,
            UpsertCausesRequest(
                causes=[
                    CauseInput(cause_type=CauseType.MATERIALS, delta=-3, note="late coil"),
                    CauseInput(cause_type=CauseType.MACHINERY, delta=-2),
                ]
            ),
        )

        assert result.record_id == record.id
        assert [(c.cause_type, c.delta) for c in result.causes] == [
            (CauseType.MATERIALS, -3),
            (CauseType.MACHINERY, -2),
        ]

    def test_second_upsert_replaces_first(self, worksheet, worksheet_service, cause_ledger):
        """Test causes never accumulate across upserts."""
        record = records_for_hour(worksheet, 2)[0]
        cause_ledger.upsert_causes(
            record.id,
            UpsertCausesRequest(
                causes=[
                    CauseInput(cause_type=CauseType.MATERIALS, delta=-3),
                    CauseInput(cause_type=CauseType.QUALITY, delta=-1),
                ]
            ),
        )

        cause_ledger.upsert_causes(
            record.id,
            UpsertCausesRequest(causes=[CauseInput(cause_type=CauseType.OTHER, delta=4)]),
        )

        listed = cause_ledger.list_causes(record.id)
        assert [(c.cause_type, c.delta) for c in listed.causes] == [(CauseType.OTHER, 4)]

        loaded = worksheet_service.get_worksheet(worksheet.id)
        loaded_record = next(
            r for item in loaded.items for r in item.records if r.id == record.id
        )
        assert len(loaded_record.causes) == 1

    def test_empty_list_clears_causes(self, worksheet, cause_ledger):
        record = records_for_hour(worksheet, 2)[0]
        cause_ledger.upsert_causes(
            record.id,
            UpsertCausesRequest(causes=[CauseInput(cause_type=CauseType.OTHER, delta=1)]),
        )

        cause_ledger.upsert_causes(record.id, UpsertCausesRequest(causes=[]))

        assert cause_ledger.list_causes(record.id).causes == []

    def test_deltas_not_checked_against_gap(self, worksheet, cause_ledger):
        """Test deltas are free-form and may exceed the output gap."""
        record = records_for_hour(worksheet, 2)[0]

        result = cause_ledger.upsert_causes(
            record.id,
            UpsertCausesRequest(
                causes=[CauseInput(cause_type=CauseType.TECHNOLOGY, delta=-500)]
            ),
        )

        assert result.causes[0].delta == -500

    def test_other_records_untouched(self, worksheet, cause_ledger):
        first, second = records_for_hour(worksheet, 2)[:2]
        cause_ledger.upsert_causes(
            first.id,
            UpsertCausesRequest(causes=[CauseInput(cause_type=CauseType.OTHER, delta=1)]),
        )
        cause_ledger.upsert_causes(
            second.id,
            UpsertCausesRequest(causes=[CauseInput(cause_type=CauseType.QUALITY, delta=2)]),
        )

        cause_ledger.upsert_causes(first.id, UpsertCausesRequest(causes=[]))

        assert len(cause_ledger.list_causes(second.id).causes) == 1

    def test_missing_record(self, cause_ledger):
        with pytest.raises(NotFoundError):
            cause_ledger.upsert_causes(uuid4(), UpsertCausesRequest(causes=[]))

    def test_out_of_scope_record(self, worksheet, cause_ledger):
        record = records_for_hour(worksheet, 2)[0]

        with pytest.raises(NotFoundError):
            cause_ledger.list_causes(record.id, allowed_group_ids={uuid4()})

    def test_completed_worksheet_rejects_causes(
        self, worksheet, worksheet_service, cause_ledger
    ):
        worksheet_service.complete_worksheet(worksheet.id)
        record = records_for_hour(worksheet, 2)[0]

        with pytest.raises(ConflictError):
            cause_ledger.upsert_causes(
                record.id,
                UpsertCausesRequest(causes=[CauseInput(cause_type=CauseType.OTHER, delta=1)]),
            )
