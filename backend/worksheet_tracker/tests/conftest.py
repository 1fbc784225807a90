"""
Shared test fixtures.

Every test gets a fresh in-memory SQLite database with all tables created,
and services wired to a unit of work manager bound to that database.
"""

from collections.abc import Callable, Generator
from datetime import date
from uuid import UUID, uuid4

import pytest
from sqlalchemy import Engine
from sqlmodel import SQLModel

from worksheet_tracker.application.dtos.worksheet_dtos import (
    CreateWorksheetRequest,
    WorksheetMemberInput,
    WorksheetResponse,
)
from worksheet_tracker.application.services import (
    BatchOutputRecorder,
    CauseAttributionLedger,
    WorksheetService,
)
from worksheet_tracker.core.config import Settings
from worksheet_tracker.core.db import build_engine, build_session_factory, init_db
from worksheet_tracker.domain.worksheet.enums import ShiftType
from worksheet_tracker.infrastructure.database.unit_of_work import UnitOfWorkManager

WORK_DATE = date(2024, 1, 15)


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        DATABASE_URL="sqlite://",
        ENVIRONMENT="testing",
        LOG_FORMAT="console",
        LOG_LEVEL="WARNING",
    )


@pytest.fixture
def engine(test_settings: Settings) -> Generator[Engine, None, None]:
    engine = build_engine(test_settings)
    init_db(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine: Engine):
    return build_session_factory(engine)


@pytest.fixture
def uow_manager(session_factory) -> UnitOfWorkManager:
    return UnitOfWorkManager(session_factory)


@pytest.fixture
def worksheet_service(uow_manager: UnitOfWorkManager) -> WorksheetService:
    return WorksheetService(uow_manager)


@pytest.fixture
def output_recorder(uow_manager: UnitOfWorkManager) -> BatchOutputRecorder:
    return BatchOutputRecorder(uow_manager)


@pytest.fixture
def cause_ledger(uow_manager: UnitOfWorkManager) -> CauseAttributionLedger:
    return CauseAttributionLedger(uow_manager)


@pytest.fixture
def group_id() -> UUID:
    return uuid4()


@pytest.fixture
def make_create_request(group_id: UUID) -> Callable[..., CreateWorksheetRequest]:
    """Build a creation request for three active workers at 10 units/hour."""

    def _make(**overrides) -> CreateWorksheetRequest:
        fields = {
            "work_date": WORK_DATE,
            "group_id": group_id,
            "shift_type": ShiftType.NORMAL_8H,
            "product_id": uuid4(),
            "process_id": uuid4(),
            "standard_output_per_hour": 10,
            "members": [WorksheetMemberInput(worker_id=uuid4()) for _ in range(3)],
        }
        fields.update(overrides)
        return CreateWorksheetRequest(**fields)

    return _make


@pytest.fixture
def worksheet(
    worksheet_service: WorksheetService,
    make_create_request: Callable[..., CreateWorksheetRequest],
) -> WorksheetResponse:
    return worksheet_service.create_worksheet(make_create_request(), created_by="lead-1")
