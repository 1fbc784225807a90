"""Domain enums for worksheets."""

from enum import Enum


class ShiftType(str, Enum):
    """Named daily work-duration pattern."""

    NORMAL_8H = "NORMAL_8H"
    EXTENDED_9_5H = "EXTENDED_9_5H"
    OVERTIME_11H = "OVERTIME_11H"


class WorksheetStatus(str, Enum):
    """Worksheet lifecycle status."""

    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"

    @property
    def is_terminal(self) -> bool:
        """Check if worksheet status is terminal (cannot transition further)."""
        return self in {WorksheetStatus.COMPLETED, WorksheetStatus.CANCELLED}

    @property
    def accepts_edits(self) -> bool:
        return self == WorksheetStatus.ACTIVE

    def can_transition_to(self, target_status: "WorksheetStatus") -> bool:
        """Check if worksheet can transition from current status to target status."""
        valid_transitions = {
            WorksheetStatus.ACTIVE: {
                WorksheetStatus.COMPLETED,
                WorksheetStatus.CANCELLED,
            },
            WorksheetStatus.COMPLETED: set(),  # Terminal state
            WorksheetStatus.CANCELLED: set(),  # Terminal state
        }
        return target_status in valid_transitions.get(self, set())


class HourRecordStatus(str, Enum):
    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"


class CauseType(str, Enum):
    """Category of an output variance explanation."""

    MATERIALS = "MATERIALS"
    TECHNOLOGY = "TECHNOLOGY"
    QUALITY = "QUALITY"
    MACHINERY = "MACHINERY"
    OTHER = "OTHER"
