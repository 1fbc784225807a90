"""Application services coordinating worksheet use cases."""

from .cause_ledger import CauseAttributionLedger
from .output_recorder import BatchOutputRecorder
from .worksheet_service import WorksheetService

__all__ = ["BatchOutputRecorder", "CauseAttributionLedger", "WorksheetService"]
