from worksheet_tracker.application.dtos.worksheet_dtos import (
    HourRecordResponse,
    WorksheetResponse,
)


def all_records(worksheet: WorksheetResponse) -> list[HourRecordResponse]:
    """Flatten the hour records of every item of a worksheet response."""
    return [record for item in worksheet.items or [] for record in item.records or []]


def records_for_hour(
    worksheet: WorksheetResponse, hour_index: int
) -> list[HourRecordResponse]:
    return [record for record in all_records(worksheet) if record.hour_index == hour_index]
