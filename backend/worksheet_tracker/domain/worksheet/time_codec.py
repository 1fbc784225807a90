"""
Conversion between absolute instants and wall-clock time-of-day text.

Stored instants are always UTC. Wall-clock components are read and written
as UTC components, never as server-local time, so a slot generated as 07:30
on a given date renders as "07:30:00" regardless of the host timezone.
"""

import re
from datetime import date, datetime, time, timezone
from typing import Literal

from worksheet_tracker.core.observability import TIME_PARSE_FALLBACKS, get_logger
from worksheet_tracker.domain.shared.exceptions import TimeParseError

logger = get_logger(__name__)

Boundary = Literal["start", "end"]

_WALL_CLOCK = re.compile(r"^\s*(\d{1,2}):(\d{2})(?::(\d{2}))?\s*$")

# Default slot boundaries per hour index, following the OVERTIME_11H table.
FALLBACK_SLOT_TIMES: dict[int, tuple[time, time]] = {
    1: (time(7, 30), time(8, 30)),
    2: (time(8, 30), time(9, 30)),
    3: (time(9, 30), time(10, 30)),
    4: (time(10, 30), time(11, 30)),
    5: (time(12, 30), time(13, 30)),
    6: (time(13, 30), time(14, 30)),
    7: (time(14, 30), time(15, 30)),
    8: (time(15, 30), time(16, 30)),
    9: (time(17, 0), time(18, 0)),
    10: (time(18, 0), time(19, 0)),
    11: (time(19, 0), time(20, 0)),
}
DEFAULT_FALLBACK_TIMES = (time(8, 0), time(9, 0))


def utc_instant(work_date: date, clock: time) -> datetime:
    """Combine a calendar date with time-of-day components read as UTC."""
    return datetime(
        work_date.year,
        work_date.month,
        work_date.day,
        clock.hour,
        clock.minute,
        clock.second,
        tzinfo=timezone.utc,
    )


def as_utc(value: object) -> datetime | None:
    """
    Normalize a stored instant to an aware UTC datetime.

    Naive datetimes are taken to already hold UTC components. ISO-8601
    strings are accepted. Anything else yields None.
    """
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.strip())
        except ValueError:
            return None
    if not isinstance(value, datetime):
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_wall_clock(instant: object) -> str | None:
    """Render an instant as "HH:MM:SS" from its UTC components, or None."""
    normalized = as_utc(instant)
    if normalized is None:
        return None
    return normalized.strftime("%H:%M:%S")


def parse_wall_clock(text: object) -> time:
    """
    Parse "HH:MM" or "HH:MM:SS" text.

    Raises:
        TimeParseError: If the text is not a valid time of day
    """
    if not isinstance(text, str):
        raise TimeParseError(text)

    match = _WALL_CLOCK.match(text)
    if match is None:
        raise TimeParseError(text)

    hour, minute = int(match.group(1)), int(match.group(2))
    second = int(match.group(3)) if match.group(3) else 0
    if hour > 23 or minute > 59 or second > 59:
        raise TimeParseError(text)
    return time(hour, minute, second)


def fallback_time(hour_index: int | None, boundary: Boundary = "start") -> time:
    start, end = FALLBACK_SLOT_TIMES.get(hour_index or 0, DEFAULT_FALLBACK_TIMES)
    return start if boundary == "start" else end


def to_instant(
    work_date: date,
    text: object,
    hour_index: int | None = None,
    boundary: Boundary = "start",
) -> datetime:
    """
    Combine a calendar date with wall-clock text into a UTC instant.

    Unparseable text never fails the caller: the slot default for
    ``hour_index`` is used instead and the fallback is logged.
    """
    try:
        clock = parse_wall_clock(text)
    except TimeParseError as e:
        clock = fallback_time(hour_index, boundary)
        TIME_PARSE_FALLBACKS.labels(boundary=boundary).inc()
        logger.warning(
            "Wall-clock time unparseable, using fallback",
            value=str(e.value),
            hour_index=hour_index,
            boundary=boundary,
            fallback=clock.isoformat(),
        )
    return utc_instant(work_date, clock)
