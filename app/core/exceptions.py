"""Custom exceptions and FastAPI exception handlers.

Implements RFC 7807 Problem Details for machine-readable error responses.
"""

from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError

from app.core.logging import get_logger
from app.core.problem_details import (
    ERROR_TYPES,
    ProblemDetailResponse,
    problem_response,
)

logger = get_logger(__name__)


# =============================================================================
# Exception Classes
# =============================================================================


class DairyLedgerError(Exception):
    """Base exception for DairyLedger application errors.

    Each exception type maps to an RFC 7807 problem type URI. ``details`` is
    logged but never rendered; ``errors`` and ``hint`` are client-facing.
    """

    error_type_uri: str = ERROR_TYPES["INTERNAL_ERROR"]

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        status_code: int = 500,
        details: dict[str, Any] | None = None,
        errors: list[dict[str, Any]] | None = None,
        hint: str | None = None,
    ) -> None:
        """Initialize application error.

        Args:
            message: Human-readable error message.
            code: Machine-readable error code.
            status_code: HTTP status code.
            details: Additional error context for logs.
            errors: Field-level errors for the client.
            hint: Remediation hint for the client.
        """
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        self.errors = errors
        self.hint = hint

    @property
    def title(self) -> str:
        """RFC 7807 title - short summary of problem type."""
        return self.code.replace("_", " ").title()


class InvalidDateFormatError(DairyLedgerError):
    """A date query parameter is not a valid YYYY-MM-DD calendar date."""

    error_type_uri: str = ERROR_TYPES["INVALID_DATE_FORMAT"]

    def __init__(self, parameter: str, value: str) -> None:
        super().__init__(
            message="Invalid date format. Use YYYY-MM-DD format",
            code="INVALID_DATE_FORMAT",
            status_code=400,
            details={"parameter": parameter, "value": value},
            errors=[
                {
                    "field": parameter,
                    "message": f"'{value}' is not a valid calendar date (YYYY-MM-DD)",
                    "type": "invalid_date_format",
                }
            ],
        )
        self.parameter = parameter


class InvalidDateRangeError(DairyLedgerError):
    """Start of the requested range falls after its end."""

    error_type_uri: str = ERROR_TYPES["INVALID_DATE_RANGE"]

    def __init__(self, message: str = "Start date must be before or equal to end date") -> None:
        super().__init__(
            message=message,
            code="INVALID_DATE_RANGE",
            status_code=400,
        )


class DataStoreUnavailableError(DairyLedgerError):
    """The data store could not be reached at all."""

    error_type_uri: str = ERROR_TYPES["DATA_STORE_UNAVAILABLE"]

    def __init__(
        self,
        message: str = "Database connection unavailable. "
        "Please check your database configuration.",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            code="DATA_STORE_UNAVAILABLE",
            status_code=503,
            details=details,
            hint="The dashboard requires database access to generate analytics. "
            "Please ensure your database is running and properly configured.",
        )


class AggregationFailedError(DairyLedgerError):
    """Any other failure while computing or assembling a report."""

    error_type_uri: str = ERROR_TYPES["AGGREGATION_FAILED"]

    def __init__(
        self,
        message: str = "Failed to generate dashboard report",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            code="AGGREGATION_FAILED",
            status_code=500,
            details=details,
        )


# =============================================================================
# Exception Handlers (RFC 7807)
# =============================================================================


async def dairyledger_exception_handler(
    _request: Request,
    exc: DairyLedgerError,
) -> ProblemDetailResponse:
    """Handle DairyLedgerError exceptions with RFC 7807 Problem Details.

    Args:
        _request: FastAPI request object.
        exc: The raised exception.

    Returns:
        RFC 7807 Problem Detail response.
    """
    log = logger.warning if exc.status_code < 500 else logger.error
    log(
        "app.error_handled",
        error=exc.message,
        error_type=type(exc).__name__,
        error_code=exc.code,
        status_code=exc.status_code,
        details=exc.details,
    )

    return problem_response(
        status=exc.status_code,
        title=exc.title,
        detail=exc.message,
        error_code=exc.code,
        errors=exc.errors,
        hint=exc.hint,
    )


async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError,
) -> ProblemDetailResponse:
    """Handle Pydantic validation errors with RFC 7807 Problem Details.

    Args:
        request: FastAPI request object.
        exc: Pydantic validation error.

    Returns:
        RFC 7807 Problem Detail response with field-level errors.
    """
    field_errors: list[dict[str, str]] = []
    for error in exc.errors():
        loc = error.get("loc", [])
        field_path = ".".join(str(part) for part in loc if part not in ("body", "query"))
        field_errors.append(
            {
                "field": field_path,
                "message": str(error.get("msg", "Validation failed")),
                "type": str(error.get("type", "unknown")),
            }
        )

    logger.warning(
        "app.validation_error",
        error_count=len(field_errors),
        path=str(request.url.path),
        fields=[e["field"] for e in field_errors],
    )

    return problem_response(
        status=422,
        title="Validation Error",
        detail=f"Request validation failed with {len(field_errors)} error(s). "
        "Check the 'errors' field for details.",
        error_code="VALIDATION_ERROR",
        errors=field_errors,
    )


async def unhandled_exception_handler(
    request: Request,
    exc: Exception,
) -> ProblemDetailResponse:
    """Handle unexpected exceptions with RFC 7807 Problem Details.

    Args:
        request: FastAPI request object.
        exc: The raised exception.

    Returns:
        RFC 7807 Problem Detail response.
    """
    logger.error(
        "app.unhandled_error",
        error=str(exc),
        error_type=type(exc).__name__,
        path=str(request.url.path),
        exc_info=True,
    )

    return problem_response(
        status=500,
        title="Internal Server Error",
        detail="An unexpected error occurred. Please try again later or "
        "contact support with the request_id.",
        error_code="INTERNAL_ERROR",
    )


# =============================================================================
# Handler Registration
# =============================================================================


def register_exception_handlers(app: FastAPI) -> None:
    """Register exception handlers with FastAPI app.

    Args:
        app: FastAPI application instance.
    """
    app.add_exception_handler(DairyLedgerError, dairyledger_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, validation_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, unhandled_exception_handler)
