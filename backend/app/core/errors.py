"""Centralized error normalization for user-facing messages.

Every error surfaced to a caller must pass through this module to ensure:
- Consistent structure (user_message, error_category, retryable)
- No stack traces or secrets in user-facing output
- Detailed info logged for debugging
"""

import logging
from dataclasses import dataclass

from backend.app.core.logging import log_event
from backend.app.models.llm import (
    ModelsExhausted,
    ParseFailure,
    PlanError,
    QuotaExceeded,
    Unauthorized,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NormalizedError:
    """Standardized error representation for API responses."""

    user_message: str
    error_category: str
    retryable: bool
    http_status: int = 500


def normalize_plan_error(
    error: PlanError,
    *,
    correlation_id: str | None = None,
) -> NormalizedError:
    """Map a classified plan-generation error to a user-facing message."""
    if isinstance(error, ModelsExhausted):
        normalized = NormalizedError(
            user_message=(
                "None of the Gemini models are available with your API key. "
                "Please verify your API key and try again."
            ),
            error_category=error.kind,
            retryable=False,
            http_status=404,
        )
    elif isinstance(error, ParseFailure):
        normalized = NormalizedError(
            user_message=(
                "The AI response could not be parsed as a valid plan. "
                "Please try again. If the issue persists, try simplifying your "
                "requirements (e.g. shorter medical history or preferences)."
            ),
            error_category=error.kind,
            retryable=True,
            http_status=502,
        )
    elif isinstance(error, Unauthorized):
        normalized = NormalizedError(
            user_message="Invalid or missing Gemini API key. Check GEMINI_API_KEY and restart.",
            error_category=error.kind,
            retryable=False,
            http_status=401,
        )
    elif isinstance(error, QuotaExceeded):
        normalized = NormalizedError(
            user_message="You've exceeded your Gemini API quota. Please wait and retry.",
            error_category=error.kind,
            retryable=True,
            http_status=429,
        )
    else:
        normalized = NormalizedError(
            user_message="Unable to generate plan. Please try again.",
            error_category=error.kind,
            retryable=True,
            http_status=500,
        )

    log_event(
        logger, "warning", "plan_error_normalized",
        error_category=normalized.error_category,
        retryable=normalized.retryable,
        http_status=normalized.http_status,
        correlation_id=correlation_id or "N/A",
    )
    return normalized


def normalize_unknown_error(
    exc: Exception,
    *,
    operation: str,
    correlation_id: str | None = None,
) -> NormalizedError:
    """Normalize an unexpected error into a safe generic message."""
    log_event(
        logger, "exception", "unknown_error",
        operation=operation,
        error_category="unknown",
        correlation_id=correlation_id or "N/A",
        detail=f"{type(exc).__name__}: {exc}",
    )
    return NormalizedError(
        user_message="An unexpected error occurred. Please try again.",
        error_category="unknown",
        retryable=False,
        http_status=500,
    )
