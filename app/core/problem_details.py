"""RFC 7807 Problem Details for HTTP APIs.

Every error leaving the API is rendered as a problem document so dashboard
clients can branch on ``code`` instead of parsing messages.

Reference: https://datatracker.ietf.org/doc/html/rfc7807
"""

from typing import Any

from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from app.core.logging import request_id_ctx

# =============================================================================
# Error Type URIs
# =============================================================================

# Base URI for error types (relative URIs for portability)
ERROR_TYPE_BASE = "/errors"

ERROR_TYPES = {
    "NOT_FOUND": f"{ERROR_TYPE_BASE}/not-found",
    "VALIDATION_ERROR": f"{ERROR_TYPE_BASE}/validation",
    "INVALID_DATE_FORMAT": f"{ERROR_TYPE_BASE}/invalid-date-format",
    "INVALID_DATE_RANGE": f"{ERROR_TYPE_BASE}/invalid-date-range",
    "DATA_STORE_UNAVAILABLE": f"{ERROR_TYPE_BASE}/data-store-unavailable",
    "AGGREGATION_FAILED": f"{ERROR_TYPE_BASE}/aggregation-failed",
    "INTERNAL_ERROR": f"{ERROR_TYPE_BASE}/internal",
}


# =============================================================================
# Problem Detail Schema
# =============================================================================


class ProblemDetail(BaseModel):
    """RFC 7807 Problem Details for HTTP APIs.

    Attributes:
        type: URI identifying the error type (for categorization).
        title: Short human-readable summary of the problem.
        status: HTTP status code.
        detail: Human-readable explanation specific to this occurrence.
        instance: URI reference for this specific problem occurrence.
        errors: Optional field-level errors (e.g. which query parameter was bad).
        code: Stable machine-readable error code.
        hint: Optional operator-facing remediation hint.
        request_id: Request correlation ID (extension for tracing).
    """

    model_config = ConfigDict(extra="allow")  # Allow extensions per RFC 7807

    type: str = Field(
        default="about:blank",
        description="URI reference identifying the problem type.",
    )
    title: str = Field(
        ...,
        description="Short, human-readable summary of the problem type.",
    )
    status: int = Field(
        ...,
        ge=400,
        le=599,
        description="HTTP status code for this occurrence.",
    )
    detail: str | None = Field(
        None,
        description="Human-readable explanation specific to this occurrence.",
    )
    instance: str | None = Field(
        None,
        description="URI reference for this specific problem occurrence.",
    )
    # Extensions
    errors: list[dict[str, Any]] | None = Field(
        None,
        description="Field-level errors identifying the offending inputs.",
    )
    code: str | None = Field(
        None,
        description="Stable machine-readable error code.",
    )
    hint: str | None = Field(
        None,
        description="Suggested remediation for operators.",
    )
    request_id: str | None = Field(
        None,
        description="Request correlation ID. Include in support requests.",
    )


class ProblemDetailResponse(JSONResponse):
    """JSON response with RFC 7807 content type."""

    media_type = "application/problem+json"


# =============================================================================
# Helper Functions
# =============================================================================


def create_problem_detail(
    status: int,
    title: str,
    detail: str | None = None,
    error_code: str = "INTERNAL_ERROR",
    errors: list[dict[str, Any]] | None = None,
    hint: str | None = None,
) -> ProblemDetail:
    """Create a ProblemDetail instance with proper type URI and instance.

    Args:
        status: HTTP status code.
        title: Short problem summary.
        detail: Detailed explanation (optional).
        error_code: Internal error code for type URI lookup.
        errors: Field-level errors (optional).
        hint: Remediation hint (optional).

    Returns:
        Configured ProblemDetail instance.
    """
    request_id = request_id_ctx.get()

    return ProblemDetail(
        type=ERROR_TYPES.get(error_code, f"{ERROR_TYPE_BASE}/{error_code.lower()}"),
        title=title,
        status=status,
        detail=detail,
        instance=f"/requests/{request_id}" if request_id else None,
        errors=errors,
        code=error_code,
        hint=hint,
        request_id=request_id,
    )


def problem_response(
    status: int,
    title: str,
    detail: str | None = None,
    error_code: str = "INTERNAL_ERROR",
    errors: list[dict[str, Any]] | None = None,
    hint: str | None = None,
) -> ProblemDetailResponse:
    """Create a ProblemDetailResponse with proper content type.

    Args:
        status: HTTP status code.
        title: Short problem summary.
        detail: Detailed explanation (optional).
        error_code: Internal error code for type URI lookup.
        errors: Field-level errors (optional).
        hint: Remediation hint (optional).

    Returns:
        JSONResponse with problem+json content type.
    """
    problem = create_problem_detail(
        status=status,
        title=title,
        detail=detail,
        error_code=error_code,
        errors=errors,
        hint=hint,
    )

    return ProblemDetailResponse(
        status_code=status,
        content=problem.model_dump(exclude_none=True),
    )
