"""
Tests for shift schedule generation.

Covers slot tables per shift type, unpaid breaks, UTC anchoring and the
unknown shift type fallback.
"""

from datetime import date, time, timezone

import pytest
from hypothesis import given, strategies as st

from worksheet_tracker.domain.worksheet import shift_schedule
from worksheet_tracker.domain.worksheet.enums import ShiftType
from worksheet_tracker.domain.worksheet.shift_schedule import HourSlot, generate
from worksheet_tracker.domain.worksheet.time_codec import (
    FALLBACK_SLOT_TIMES,
    to_wall_clock,
)

WORK_DATE = date(2024, 1, 15)


class TestSlotCounts:
    """Test number of slots per shift type."""

    @pytest.mark.parametrize(
        ("shift_type", "expected"),
        [
            (ShiftType.NORMAL_8H, 7),
            (ShiftType.EXTENDED_9_5H, 10),
            (ShiftType.OVERTIME_11H, 11),
        ],
    )
    def test_slot_count_by_shift_type(self, shift_type, expected):
        """Test each shift type yields its fixed slot count."""
        assert len(generate(shift_type, WORK_DATE)) == expected
        assert shift_schedule.slot_count(shift_type) == expected

    def test_string_shift_type_accepted(self):
        """Test shift type can be passed as its string value."""
        assert len(generate("OVERTIME_11H", WORK_DATE)) == 11

    def test_unknown_shift_type_falls_back_to_normal(self):
        """Test an unrecognized shift type produces the 7-slot table."""
        slots = generate("NIGHT_12H", WORK_DATE)

        assert slots == generate(ShiftType.NORMAL_8H, WORK_DATE)


class TestSlotTimes:
    """Test wall-clock content of the slot tables."""

    def test_first_slot_starts_at_half_past_seven_utc(self):
        """Test the shift opens at 07:30 UTC on the worksheet date."""
        first = generate(ShiftType.NORMAL_8H, WORK_DATE)[0]

        assert first.hour_index == 1
        assert first.start_instant.tzinfo == timezone.utc
        assert to_wall_clock(first.start_instant) == "07:30:00"
        assert to_wall_clock(first.end_instant) == "08:30:00"

    def test_lunch_gap_between_slot_four_and_five(self):
        """Test the unpaid lunch hour is skipped."""
        slots = generate(ShiftType.NORMAL_8H, WORK_DATE)

        assert to_wall_clock(slots[3].end_instant) == "11:30:00"
        assert to_wall_clock(slots[4].start_instant) == "12:30:00"

    def test_extended_shift_has_half_hour_slot(self):
        """Test EXTENDED slot 9 runs 16:30-17:00."""
        slot = generate(ShiftType.EXTENDED_9_5H, WORK_DATE)[8]

        assert slot.hour_index == 9
        assert to_wall_clock(slot.start_instant) == "16:30:00"
        assert to_wall_clock(slot.end_instant) == "17:00:00"
        assert slot.duration_hours == 0.5

    def test_overtime_dinner_gap_between_slot_eight_and_nine(self):
        """Test OVERTIME skips 16:30-17:00 and ends at 20:00."""
        slots = generate(ShiftType.OVERTIME_11H, WORK_DATE)

        assert to_wall_clock(slots[7].end_instant) == "16:30:00"
        assert to_wall_clock(slots[8].start_instant) == "17:00:00"
        assert to_wall_clock(slots[-1].end_instant) == "20:00:00"

    def test_fallback_table_matches_overtime_slots(self):
        """Test the time parse fallback table mirrors the longest shift."""
        for slot in generate(ShiftType.OVERTIME_11H, WORK_DATE):
            assert FALLBACK_SLOT_TIMES[slot.hour_index] == (
                slot.start_instant.time(),
                slot.end_instant.time(),
            )

    def test_generation_is_deterministic(self):
        """Test identical inputs produce identical slots."""
        assert generate(ShiftType.EXTENDED_9_5H, WORK_DATE) == generate(
            ShiftType.EXTENDED_9_5H, WORK_DATE
        )

    def test_nominal_shift_hours(self):
        """Test paid hour figures used by reports."""
        assert shift_schedule.nominal_shift_hours(ShiftType.NORMAL_8H) == 8.0
        assert shift_schedule.nominal_shift_hours(ShiftType.EXTENDED_9_5H) == 9.5
        assert shift_schedule.nominal_shift_hours(ShiftType.OVERTIME_11H) == 11.0


class TestHourSlot:
    """Test HourSlot value object validation."""

    def test_rejects_inverted_slot(self):
        """Test a slot cannot end before it starts."""
        slot = generate(ShiftType.NORMAL_8H, WORK_DATE)[0]

        with pytest.raises(ValueError, match="before slot end"):
            HourSlot(
                hour_index=1,
                start_instant=slot.end_instant,
                end_instant=slot.start_instant,
            )

    def test_rejects_zero_index(self):
        slot = generate(ShiftType.NORMAL_8H, WORK_DATE)[0]

        with pytest.raises(ValueError, match="1 or greater"):
            HourSlot(
                hour_index=0,
                start_instant=slot.start_instant,
                end_instant=slot.end_instant,
            )


class TestScheduleProperties:
    """Property-based checks over every shift type and calendar date."""

    @given(
        shift_type=st.sampled_from(list(ShiftType)),
        work_date=st.dates(min_value=date(1970, 1, 1), max_value=date(2100, 12, 31)),
    )
    def test_slots_fall_on_date_with_contiguous_indexes(self, shift_type, work_date):
        """Test slots stay on the worksheet date in UTC and are numbered 1..N."""
        slots = generate(shift_type, work_date)

        assert [slot.hour_index for slot in slots] == list(range(1, len(slots) + 1))
        for slot in slots:
            assert slot.start_instant.astimezone(timezone.utc).date() == work_date
            assert slot.end_instant.astimezone(timezone.utc).date() == work_date
            assert slot.start_instant < slot.end_instant

        for earlier, later in zip(slots, slots[1:]):
            assert earlier.end_instant <= later.start_instant

    @given(work_date=st.dates(min_value=date(1970, 1, 1), max_value=date(2100, 12, 31)))
    def test_wall_clock_independent_of_date(self, work_date):
        """Test every date yields the same wall-clock table."""
        starts = [slot.start_instant.time() for slot in generate(ShiftType.NORMAL_8H, work_date)]

        assert starts[0] == time(7, 30)
        assert starts == [
            slot.start_instant.time()
            for slot in generate(ShiftType.NORMAL_8H, WORK_DATE)
        ]
