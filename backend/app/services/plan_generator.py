"""End-to-end plan generation: catalog, bounded retries, sanitize, parse, repair.

The module exposes :func:`generate_plan` (the request lifecycle),
:func:`generate_motivation` and :func:`list_available_models`.

Lifecycle of :func:`generate_plan`::

    list candidates (once)
    for attempt in 1..N:
        generate   -> every model failed?      stop, surface the error
        sanitize
        parse      -> ok?                      return the plan
                   -> not the last attempt?    retry (no repair)
                   -> last attempt:            repair -> plan | ParseFailure

The prompt is identical on every attempt.
"""

from __future__ import annotations

import logging
import uuid

from pydantic import ValidationError

from backend.app.core.logging import (
    EVENT_PLAN_GENERATED,
    EVENT_PLAN_PARSE_FAILED,
    EVENT_PLAN_REPAIR_FAILED,
    EVENT_PLAN_REPAIR_STARTED,
    EVENT_PLAN_REPAIR_SUCCEEDED,
    log_event,
)
from backend.app.core.settings import settings
from backend.app.models.llm import (
    DiagnosticKind,
    GenerationFailure,
    GenerationRequest,
    ModelsExhausted,
    ParseDiagnostic,
    ParseFailure,
    PlanError,
    QuotaExceeded,
    RepairFailed,
    ServiceErrorKind,
    Unauthorized,
    UnknownError,
)
from backend.app.models.plan import GeneratedPlan, PlanDocument, UserProfile
from backend.app.services.gemini_client import TextGenerationService, get_generation_service
from backend.app.services.generation import attempt_generation
from backend.app.services.json_repair import JSONParseError, load_json, repair
from backend.app.services.model_catalog import discover_models, list_candidates
from backend.app.services.prompt_builder import build_motivation_prompt, build_plan_prompt
from backend.app.services.sanitizer import sanitize

logger = logging.getLogger(__name__)

PREVIEW_CHARS = 300
"""Bounded preview of failing text carried by :class:`ParseFailure`."""

DEFAULT_QUOTE = "Your journey to fitness starts today!"
MOTIVATION_FALLBACK_MODELS: tuple[str, ...] = ("gemini-1.5-flash", "gemini-pro")

PlanResult = GeneratedPlan | PlanError


class PlanParseError(ValueError):
    """The text is not a valid plan document."""

    def __init__(self, diagnostic: ParseDiagnostic) -> None:
        super().__init__(diagnostic.message)
        self.diagnostic = diagnostic


def parse_plan(text: str) -> PlanDocument:
    """Parse *text* and validate it against the plan shape."""
    try:
        data = load_json(text)
    except JSONParseError as exc:
        raise PlanParseError(exc.diagnostic) from exc

    try:
        return PlanDocument.model_validate(data)
    except ValidationError as exc:
        first = exc.errors()[0]
        location = ".".join(str(part) for part in first["loc"]) or "<root>"
        raise PlanParseError(
            ParseDiagnostic(
                message=f"Plan shape invalid at {location}: {first['msg']}",
                kind=DiagnosticKind.other,
            )
        ) from exc


def build_plan_request(prompt_text: str) -> GenerationRequest:
    return GenerationRequest(
        prompt_text=prompt_text,
        max_output_tokens=settings.plan_max_output_tokens,
        temperature=settings.plan_temperature,
        top_p=settings.plan_top_p,
        top_k=settings.plan_top_k,
    )


def _preview(text: str) -> str:
    return text[:PREVIEW_CHARS]


def classify_exhaustion(failure: GenerationFailure) -> PlanError:
    """Surface a credential or quota problem directly when every model hit it."""
    kinds = {f.kind for f in failure.failures}
    if kinds == {ServiceErrorKind.unauthorized}:
        return Unauthorized(message=failure.error.last_error)
    if kinds == {ServiceErrorKind.quota_exceeded}:
        return QuotaExceeded(message=failure.error.last_error)
    return failure.error


async def _run_attempts(
    profile: UserProfile,
    service: TextGenerationService,
    max_retries: int,
    correlation_id: str,
) -> PlanResult:
    candidates = await list_candidates(service)
    prompt_text, _ = build_plan_prompt(profile)
    request = build_plan_request(prompt_text)

    for attempt in range(1, max_retries + 1):
        is_last = attempt == max_retries
        outcome = await attempt_generation(
            service, candidates, request, correlation_id=correlation_id,
        )
        if isinstance(outcome, GenerationFailure):
            return classify_exhaustion(outcome)

        span = sanitize(outcome.raw_text)
        try:
            document = parse_plan(span)
        except PlanParseError as exc:
            diagnostic = exc.diagnostic
            log_event(
                logger, "warning", EVENT_PLAN_PARSE_FAILED,
                correlation_id=correlation_id,
                attempt=attempt,
                max_retries=max_retries,
                kind=diagnostic.kind,
                offset=diagnostic.offset,
                span_length=len(span),
            )
            if not is_last:
                continue

            log_event(
                logger, "info", EVENT_PLAN_REPAIR_STARTED,
                correlation_id=correlation_id, kind=diagnostic.kind,
            )
            repaired = repair(span, diagnostic, parse=parse_plan)
            if isinstance(repaired, RepairFailed):
                log_event(
                    logger, "error", EVENT_PLAN_REPAIR_FAILED,
                    correlation_id=correlation_id, span_length=len(span),
                )
                return ParseFailure(diagnostic=diagnostic, preview=_preview(span))

            log_event(
                logger, "info", EVENT_PLAN_REPAIR_SUCCEEDED,
                correlation_id=correlation_id, strategy=repaired.strategy,
            )
            document = parse_plan(repaired.text)

        log_event(
            logger, "info", EVENT_PLAN_GENERATED,
            correlation_id=correlation_id,
            model=outcome.model_used,
            attempt=attempt,
            workout_days=len(document.workout_plan),
        )
        return GeneratedPlan(
            workout_plan=document.workout_plan,
            diet_plan=document.diet_plan,
            tips=document.tips,
            user_data=profile,
            model_used=outcome.model_used,
        )

    # Unreachable: the last attempt always returns.
    raise AssertionError("retry loop exited without a result")


async def generate_plan(
    profile: UserProfile,
    *,
    service: TextGenerationService | None = None,
    max_retries: int | None = None,
) -> PlanResult:
    """Generate a validated plan for *profile*, or a classified error.

    If *service* is ``None`` the configured Gemini client is used; a missing
    credential yields :class:`Unauthorized` before any outbound call.
    """
    correlation_id = str(uuid.uuid4())
    retries = max_retries if max_retries is not None else settings.plan_max_retries
    if retries < 1:
        raise ValueError("max_retries must be at least 1")

    if service is None:
        service = get_generation_service()
    if service is None:
        return Unauthorized(message="GEMINI_API_KEY is not configured.")

    try:
        return await _run_attempts(profile, service, retries, correlation_id)
    except Exception as exc:
        logger.exception("plan generation failed: correlation_id=%s", correlation_id)
        return UnknownError(message=f"{type(exc).__name__}: {exc}")


async def generate_motivation(*, service: TextGenerationService | None = None) -> str:
    """Return a short motivational quote, or :data:`DEFAULT_QUOTE` on any failure."""
    if service is None:
        service = get_generation_service()
    if service is None:
        return DEFAULT_QUOTE

    request = GenerationRequest(
        prompt_text=build_motivation_prompt(),
        max_output_tokens=100,
        temperature=0.9,
        top_p=None,
        top_k=None,
    )
    try:
        candidates = await list_candidates(service, fallback=MOTIVATION_FALLBACK_MODELS)
        outcome = await attempt_generation(service, candidates, request)
    except Exception:
        logger.exception("motivation generation failed")
        return DEFAULT_QUOTE

    if isinstance(outcome, GenerationFailure):
        return DEFAULT_QUOTE
    quote = outcome.raw_text.strip()
    return quote or DEFAULT_QUOTE


async def list_available_models(*, service: TextGenerationService | None = None) -> list[str]:
    """Generation-capable models visible to the credential (unsorted, no fallback)."""
    if service is None:
        service = get_generation_service()
    if service is None:
        return []
    return await discover_models(service)
