"""
Observability Infrastructure

Structured logging with correlation tracking and Prometheus metrics for
worksheet operations.
"""

import contextvars
import functools
import logging
import sys
import time
import uuid
from collections.abc import Callable
from typing import Any, TypeVar

import structlog
from prometheus_client import Counter, Histogram

from .config import Settings, get_settings

correlation_id_var: contextvars.ContextVar[str] = contextvars.ContextVar(
    "correlation_id", default=""
)
user_id_var: contextvars.ContextVar[str] = contextvars.ContextVar("user_id", default="")

F = TypeVar("F", bound=Callable[..., Any])

# Prometheus metrics
REQUEST_COUNT = Counter(
    "worksheet_http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"],
)

REQUEST_DURATION = Histogram(
    "worksheet_http_request_duration_seconds",
    "HTTP request duration",
    ["method", "endpoint"],
)

WORKSHEET_OPERATIONS = Counter(
    "worksheet_operations_total",
    "Total worksheet operations",
    ["operation_type", "status"],
)

WORKSHEET_OPERATION_DURATION = Histogram(
    "worksheet_operation_duration_seconds",
    "Worksheet operation duration",
    ["operation_type"],
)

OUTPUT_ENTRIES_RECORDED = Counter(
    "worksheet_output_entries_recorded_total",
    "Hour record output entries written by batch submissions",
)

TIME_PARSE_FALLBACKS = Counter(
    "worksheet_time_parse_fallbacks_total",
    "Wall-clock values that could not be parsed and used the fallback table",
    ["boundary"],
)

RECORD_TIME_REPAIRS = Counter(
    "worksheet_record_time_repairs_total",
    "Hour record time repair outcomes",
    ["outcome"],
)


class CorrelationIdProcessor:
    """Structlog processor to add correlation ID to all log entries."""

    def __call__(
        self, logger: Any, name: str, event_dict: dict[str, Any]
    ) -> dict[str, Any]:
        correlation_id = correlation_id_var.get("")
        user_id = user_id_var.get("")

        if correlation_id:
            event_dict["correlation_id"] = correlation_id
        if user_id:
            event_dict["user_id"] = user_id

        return event_dict


def setup_structured_logging(settings: Settings | None = None) -> None:
    """Configure structured logging with JSON output and correlation tracking."""
    settings = settings or get_settings()
    log_level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    processors = [
        structlog.contextvars.merge_contextvars,
        CorrelationIdProcessor(),
        structlog.processors.TimeStamper(fmt="ISO"),
        structlog.processors.add_log_level,
        structlog.stdlib.add_logger_name,
    ]

    if settings.LOG_FORMAT == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(
            structlog.dev.ConsoleRenderer(colors=settings.ENVIRONMENT == "local")
        )

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=log_level,
    )

    if settings.LOG_SQL:
        logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO)
    else:
        logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)


def set_correlation_id(correlation_id: str | None = None) -> str:
    """Set correlation ID for request tracking."""
    if correlation_id is None:
        correlation_id = str(uuid.uuid4())

    correlation_id_var.set(correlation_id)
    return correlation_id


def set_user_id(user_id: str) -> None:
    user_id_var.set(user_id)


def monitor_operation(operation_type: str):
    """Decorator recording duration and outcome of a worksheet operation."""

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            logger = get_logger(func.__module__)
            start_time = time.perf_counter()

            try:
                result = func(*args, **kwargs)
            except Exception as e:
                duration = time.perf_counter() - start_time
                WORKSHEET_OPERATIONS.labels(
                    operation_type=operation_type, status="error"
                ).inc()
                logger.warning(
                    "Operation failed",
                    operation=operation_type,
                    duration_seconds=duration,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                raise

            duration = time.perf_counter() - start_time
            WORKSHEET_OPERATIONS.labels(
                operation_type=operation_type, status="success"
            ).inc()
            WORKSHEET_OPERATION_DURATION.labels(operation_type=operation_type).observe(
                duration
            )
            logger.info(
                "Operation completed successfully",
                operation=operation_type,
                duration_seconds=duration,
            )
            return result

        return wrapper  # type: ignore[return-value]

    return decorator


def initialize_observability(settings: Settings | None = None) -> None:
    """Initialize logging and report the active configuration."""
    settings = settings or get_settings()
    setup_structured_logging(settings)

    logger = get_logger("observability")
    logger.info(
        "Observability system initialized",
        log_format=settings.LOG_FORMAT,
        metrics_enabled=settings.ENABLE_METRICS,
    )
