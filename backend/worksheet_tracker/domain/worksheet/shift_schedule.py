"""
Shift schedule generation.

Maps a shift type and calendar date to the ordered hour slots of that shift.
The wall-clock tables are fixed; every slot instant is built from UTC
components of the worksheet date.
"""

from dataclasses import dataclass
from datetime import date, datetime, time

from .enums import ShiftType
from .time_codec import utc_instant

_BASE_SLOTS: tuple[tuple[time, time], ...] = (
    (time(7, 30), time(8, 30)),
    (time(8, 30), time(9, 30)),
    (time(9, 30), time(10, 30)),
    (time(10, 30), time(11, 30)),
    # lunch 11:30-12:30
    (time(12, 30), time(13, 30)),
    (time(13, 30), time(14, 30)),
    (time(14, 30), time(15, 30)),
)

_EXTENDED_SLOTS = _BASE_SLOTS + (
    (time(15, 30), time(16, 30)),
    (time(16, 30), time(17, 0)),
    (time(17, 0), time(18, 0)),
)

_OVERTIME_SLOTS = _BASE_SLOTS + (
    (time(15, 30), time(16, 30)),
    # dinner 16:30-17:00
    (time(17, 0), time(18, 0)),
    (time(18, 0), time(19, 0)),
    (time(19, 0), time(20, 0)),
)

SHIFT_SLOT_TABLES: dict[ShiftType, tuple[tuple[time, time], ...]] = {
    ShiftType.NORMAL_8H: _BASE_SLOTS,
    ShiftType.EXTENDED_9_5H: _EXTENDED_SLOTS,
    ShiftType.OVERTIME_11H: _OVERTIME_SLOTS,
}

# Paid hours reported for each shift type
NOMINAL_SHIFT_HOURS: dict[ShiftType, float] = {
    ShiftType.NORMAL_8H: 8.0,
    ShiftType.EXTENDED_9_5H: 9.5,
    ShiftType.OVERTIME_11H: 11.0,
}


@dataclass(frozen=True)
class HourSlot:
    """One hour slot of a shift with absolute UTC boundaries."""

    hour_index: int
    start_instant: datetime
    end_instant: datetime

    def __post_init__(self) -> None:
        if self.hour_index < 1:
            raise ValueError("Hour index must be 1 or greater")
        if self.start_instant >= self.end_instant:
            raise ValueError("Slot start must be before slot end")

    @property
    def duration_hours(self) -> float:
        return (self.end_instant - self.start_instant).total_seconds() / 3600


def _resolve_shift_type(shift_type: ShiftType | str) -> ShiftType:
    try:
        return ShiftType(shift_type)
    except ValueError:
        return ShiftType.NORMAL_8H


def slot_count(shift_type: ShiftType | str) -> int:
    return len(SHIFT_SLOT_TABLES[_resolve_shift_type(shift_type)])


def nominal_shift_hours(shift_type: ShiftType | str) -> float:
    return NOMINAL_SHIFT_HOURS[_resolve_shift_type(shift_type)]


def generate(shift_type: ShiftType | str, work_date: date) -> tuple[HourSlot, ...]:
    """
    Build the ordered hour slots for a shift on a calendar date.

    Unrecognized shift types fall back to the NORMAL_8H table.

    Args:
        shift_type: Shift type (enum member or its string value)
        work_date: Calendar day the shift runs on

    Returns:
        Slots with hour indexes 1..N in order
    """
    table = SHIFT_SLOT_TABLES[_resolve_shift_type(shift_type)]
    return tuple(
        HourSlot(
            hour_index=index,
            start_instant=utc_instant(work_date, start),
            end_instant=utc_instant(work_date, end),
        )
        for index, (start, end) in enumerate(table, start=1)
    )
