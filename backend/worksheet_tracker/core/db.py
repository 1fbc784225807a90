from typing import Any

from sqlalchemy import Engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from worksheet_tracker.core.config import Settings

# make sure all SQLModel models are imported before creating tables
from worksheet_tracker.infrastructure.database import models  # noqa: F401

SessionFactory = sessionmaker[Session]


def build_engine(settings: Settings) -> Engine:
    """Create the engine for the configured database URL."""
    url = settings.DATABASE_URL
    engine_kwargs: dict[str, Any] = {"echo": settings.SQL_ECHO}

    if settings.is_sqlite:
        engine_kwargs["connect_args"] = {"check_same_thread": False}
        if url in ("sqlite://", "sqlite:///:memory:"):
            # A single shared connection keeps the in-memory database alive
            engine_kwargs["poolclass"] = StaticPool
    else:
        engine_kwargs.update(
            {
                "pool_pre_ping": True,  # Verify connections before use
                "pool_recycle": 3600,
                "pool_size": settings.DB_POOL_SIZE,
                "max_overflow": settings.DB_MAX_OVERFLOW,
            }
        )

    engine = create_engine(url, **engine_kwargs)

    if settings.is_sqlite:

        @event.listens_for(engine, "connect")
        def _enable_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


def build_session_factory(engine: Engine) -> SessionFactory:
    return sessionmaker(bind=engine, class_=Session, expire_on_commit=False)


def init_db(engine: Engine) -> None:
    # Tables should be created with migrations in deployed environments
    SQLModel.metadata.create_all(engine)


def dispose_engine(engine: Engine) -> None:
    engine.dispose()
