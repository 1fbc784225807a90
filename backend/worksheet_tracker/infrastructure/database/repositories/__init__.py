from .base import BaseRepository, DatabaseError, EntityAlreadyExistsError
from .worksheet_repository import (
    CauseEntryRepository,
    HourRecordRepository,
    WorksheetItemRepository,
    WorksheetRepository,
)

__all__ = [
    "BaseRepository",
    "CauseEntryRepository",
    "DatabaseError",
    "EntityAlreadyExistsError",
    "HourRecordRepository",
    "WorksheetItemRepository",
    "WorksheetRepository",
]
