"""Sequential fallback across candidate models for one generation call.

Candidates are tried strictly in catalog order.  The first call that returns
text wins and the remaining candidates are never invoked; there is no
parallel dispatch.
"""

import logging
import time
from collections.abc import Sequence

from backend.app.core.logging import (
    EVENT_LLM_CALL_FAILURE,
    EVENT_LLM_CALL_START,
    EVENT_LLM_CALL_SUCCESS,
    EVENT_MODELS_EXHAUSTED,
    log_event,
)
from backend.app.models.llm import (
    CandidateFailure,
    GenerationFailure,
    GenerationOutcome,
    GenerationRequest,
    GenerationSuccess,
    ModelCandidate,
    ModelsExhausted,
    ServiceErrorKind,
)
from backend.app.services.gemini_client import GenerationServiceError, TextGenerationService

logger = logging.getLogger(__name__)


async def attempt_generation(
    service: TextGenerationService,
    candidates: Sequence[ModelCandidate],
    request: GenerationRequest,
    *,
    correlation_id: str = "N/A",
) -> GenerationOutcome:
    """Try each candidate in order and return the first success.

    Only :class:`GenerationServiceError` moves on to the next candidate;
    anything else propagates to the caller.
    """
    failures: list[CandidateFailure] = []

    for candidate in candidates:
        log_event(
            logger, "info", EVENT_LLM_CALL_START,
            correlation_id=correlation_id,
            model=candidate.identifier,
            prompt_length=len(request.prompt_text),
        )
        start = time.monotonic()
        try:
            raw_text = await service.generate(candidate.identifier, request)
        except GenerationServiceError as exc:
            failures.append(
                CandidateFailure(
                    identifier=candidate.identifier,
                    message=exc.message,
                    kind=exc.kind,
                    model_unavailable=exc.model_unavailable,
                )
            )
            log_event(
                logger, "warning", EVENT_LLM_CALL_FAILURE,
                correlation_id=correlation_id,
                model=candidate.identifier,
                error_kind=exc.kind,
                detail=exc.message[:100],
            )
            continue

        latency_ms = int((time.monotonic() - start) * 1000)
        log_event(
            logger, "info", EVENT_LLM_CALL_SUCCESS,
            correlation_id=correlation_id,
            model=candidate.identifier,
            latency_ms=latency_ms,
            response_length=len(raw_text),
        )
        return GenerationSuccess(
            raw_text=raw_text,
            model_used=candidate.identifier,
            latency_ms=latency_ms,
        )

    last = failures[-1] if failures else None
    error = ModelsExhausted(
        tried=[f.identifier for f in failures],
        last_error=last.message if last else "No candidate models were available.",
        last_error_kind=last.kind if last else ServiceErrorKind.other,
    )
    log_event(
        logger, "error", EVENT_MODELS_EXHAUSTED,
        correlation_id=correlation_id,
        tried=len(error.tried),
        last_error_kind=error.last_error_kind,
    )
    return GenerationFailure(
        reason=f"All {len(failures)} candidate model(s) failed.",
        error=error,
        failures=failures,
    )
