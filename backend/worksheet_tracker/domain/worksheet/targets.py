"""
Output target and efficiency calculations.

Group targets scale the per-worker standard rate by head count. Individual
expectations scale each worker's own target by hours worked, so the sum of
individual expectations can legitimately differ from the group target when
workers carry different targets.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal


def round_half_up(value: float | Decimal) -> int:
    """Round to the nearest integer with halves rounded away from zero."""
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def group_target(
    standard_per_worker_per_hour: float,
    total_workers: int,
    override: int | None = None,
) -> int:
    """
    Compute the group output target per hour.

    A positive override always wins. Otherwise the per-worker standard is
    multiplied by the number of workers.
    """
    if override is not None and override > 0:
        return override
    return round_half_up(Decimal(str(standard_per_worker_per_hour)) * total_workers)


def individual_expected(individual_target: float, hours_worked: float) -> float:
    return individual_target * hours_worked


def efficiency(actual: float, expected: float) -> float:
    """Actual output as a percentage of expected output; 0 when nothing was expected."""
    if expected <= 0:
        return 0.0
    return actual * 100 / expected


@dataclass(frozen=True)
class OutputTotals:
    expected: int
    actual: int

    @property
    def variance(self) -> int:
        return self.actual - self.expected

    @property
    def efficiency(self) -> float:
        return round(efficiency(self.actual, self.expected), 2)


def summarize(pairs: Iterable[tuple[int, int]]) -> OutputTotals:
    """Total a collection of (expected, actual) output pairs."""
    expected_total = 0
    actual_total = 0
    for expected, actual in pairs:
        expected_total += expected
        actual_total += actual
    return OutputTotals(expected=expected_total, actual=actual_total)
