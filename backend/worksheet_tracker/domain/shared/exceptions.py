"""
Domain Exceptions

Typed exceptions for worksheet business rules. Every exception carries an
ErrorType so the API layer can map it to a response without inspecting
messages.
"""

from enum import Enum
from uuid import UUID


class ErrorType(str, Enum):
    """Error type enumeration for discriminated unions."""

    VALIDATION = "validation"
    BUSINESS_RULE = "business_rule"
    RESOURCE_CONFLICT = "resource_conflict"
    NOT_FOUND = "not_found"
    REPOSITORY = "repository"


class DomainError(Exception):
    """Base class for all domain errors with type discrimination."""

    def __init__(
        self,
        message: str,
        error_type: ErrorType,
        details: dict[str, str | int | bool | None] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_type = error_type
        self.details = details or {}

    def to_dict(self) -> dict[str, str | dict[str, str | int | bool | None]]:
        """Convert error to dictionary for API responses."""
        return {
            "type": self.error_type.value,
            "message": self.message,
            "details": self.details,
        }


class ValidationError(DomainError):
    """Raised when input is malformed (bad reference, negative output, unknown enum)."""

    def __init__(
        self,
        field_name: str,
        value: str | int | float | bool | None,
        message: str,
        error_code: str | None = None,
        details: dict[str, str | int | bool | None] | None = None,
    ) -> None:
        self.field_name = field_name
        self.value = value
        self.error_code = error_code or "VALIDATION_ERROR"

        full_message = f"Validation failed for field '{field_name}': {message}"
        details = details or {}
        details.update(
            {
                "field": field_name,
                "value": str(value) if value is not None else None,
                "error_code": self.error_code,
            }
        )

        super().__init__(full_message, ErrorType.VALIDATION, details)


class NotFoundError(DomainError):
    """Raised when a referenced worksheet, record or member does not exist."""

    def __init__(
        self,
        entity_type: str,
        entity_id: UUID | str,
        message: str | None = None,
    ) -> None:
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(
            message or f"{entity_type} not found: {entity_id}",
            ErrorType.NOT_FOUND,
            {"entity_type": entity_type, "entity_id": str(entity_id)},
        )


class DuplicateError(DomainError):
    """Raised when an entity with the same natural key already exists."""

    def __init__(
        self, message: str, details: dict[str, str | int | bool | None] | None = None
    ) -> None:
        super().__init__(message, ErrorType.RESOURCE_CONFLICT, details)


class DuplicateWorksheetError(DuplicateError):
    """Raised when a worksheet already exists for a (date, group) pair."""

    def __init__(self, work_date, group_id: UUID) -> None:
        self.work_date = work_date
        self.group_id = group_id
        super().__init__(
            f"Worksheet already exists for group {group_id} on {work_date}",
            {"work_date": str(work_date), "group_id": str(group_id)},
        )


class ConflictError(DomainError):
    """Raised when an operation is not permitted in the current status."""

    def __init__(
        self, message: str, details: dict[str, str | int | bool | None] | None = None
    ) -> None:
        super().__init__(message, ErrorType.BUSINESS_RULE, details)


class WorksheetNotActiveError(ConflictError):
    """Raised when a worksheet that is no longer ACTIVE is modified."""

    def __init__(self, worksheet_id: UUID, status: str) -> None:
        self.worksheet_id = worksheet_id
        self.status = status
        super().__init__(
            f"Worksheet {worksheet_id} is {status} and can no longer be modified",
            {"worksheet_id": str(worksheet_id), "status": status},
        )


class TimeParseError(DomainError):
    """Raised internally when wall-clock text cannot be parsed."""

    def __init__(self, value: object) -> None:
        self.value = value
        super().__init__(
            f"Cannot parse wall-clock time: {value!r}",
            ErrorType.VALIDATION,
            {"value": str(value)},
        )
