import time
import uuid
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.routing import APIRoute
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.middleware.base import BaseHTTPMiddleware

from worksheet_tracker.api.main import api_router
from worksheet_tracker.core.config import Settings, get_settings
from worksheet_tracker.core.db import (
    build_engine,
    build_session_factory,
    dispose_engine,
    init_db,
)
from worksheet_tracker.core.observability import (
    REQUEST_COUNT,
    REQUEST_DURATION,
    get_logger,
    initialize_observability,
    set_correlation_id,
    set_user_id,
)
from worksheet_tracker.infrastructure.database.unit_of_work import UnitOfWorkManager

logger = get_logger(__name__)


class ObservabilityMiddleware(BaseHTTPMiddleware):
    """Middleware for request observability and metrics collection."""

    async def dispatch(self, request: Request, call_next):
        correlation_id = request.headers.get("X-Correlation-ID") or str(uuid.uuid4())
        set_correlation_id(correlation_id)

        user_id = request.headers.get("X-User-ID", "")
        if user_id:
            set_user_id(user_id)

        start_time = time.perf_counter()
        method = request.method
        path = request.url.path

        try:
            response = await call_next(request)
        except Exception as e:
            duration = time.perf_counter() - start_time
            REQUEST_COUNT.labels(method=method, endpoint=path, status="500").inc()
            REQUEST_DURATION.labels(method=method, endpoint=path).observe(duration)
            logger.error(
                "Request failed",
                method=method,
                path=path,
                duration_seconds=duration,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise

        duration = time.perf_counter() - start_time
        REQUEST_COUNT.labels(
            method=method, endpoint=path, status=str(response.status_code)
        ).inc()
        REQUEST_DURATION.labels(method=method, endpoint=path).observe(duration)
        response.headers["X-Correlation-ID"] = correlation_id

        logger.info(
            "Request completed",
            method=method,
            path=path,
            status_code=response.status_code,
            duration_seconds=duration,
        )
        return response


def custom_generate_unique_id(route: APIRoute) -> str:
    return f"{route.tags[0]}-{route.name}"


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the application; the engine lives for the lifespan of the app."""
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        initialize_observability(settings)
        engine = build_engine(settings)
        if settings.is_sqlite or settings.ENVIRONMENT in ("local", "testing"):
            init_db(engine)
        app.state.uow_manager = UnitOfWorkManager(build_session_factory(engine))

        logger.info(
            "Application started successfully",
            project_name=settings.PROJECT_NAME,
            environment=settings.ENVIRONMENT,
            api_version=settings.API_V1_STR,
            metrics_enabled=settings.ENABLE_METRICS,
        )
        try:
            yield
        finally:
            logger.info("Shutting down application")
            dispose_engine(engine)

    app = FastAPI(
        title=settings.PROJECT_NAME,
        description=(
            "Hourly production output tracking for worker groups: shift "
            "worksheets, batch output recording and variance causes."
        ),
        version="1.0.0",
        openapi_url=f"{settings.API_V1_STR}/openapi.json",
        generate_unique_id_function=custom_generate_unique_id,
        lifespan=lifespan,
    )
    app.add_middleware(ObservabilityMiddleware)
    app.include_router(api_router, prefix=settings.API_V1_STR)

    if settings.ENABLE_METRICS:

        @app.get("/metrics", tags=["metrics"], include_in_schema=False)
        def metrics() -> Response:
            return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)

    return app


app = create_app()
