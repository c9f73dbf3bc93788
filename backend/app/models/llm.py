"""Pydantic models for generation requests, outcomes and classified errors."""

from __future__ import annotations

from enum import StrEnum
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field


class ServiceErrorKind(StrEnum):
    """Failure classes reported by the text generation service."""

    unauthorized = "unauthorized"
    quota_exceeded = "quota_exceeded"
    model_not_found = "model_not_found"
    other = "other"


class DiagnosticKind(StrEnum):
    """Classification of a JSON parse failure."""

    incomplete_array_element = "incomplete_array_element"
    unterminated_string = "unterminated_string"
    other = "other"


# ---------------------------------------------------------------------------
# Catalog + request
# ---------------------------------------------------------------------------


class ModelCandidate(BaseModel):
    """One server-provided model identifier, ranked by catalog position."""

    model_config = ConfigDict(frozen=True)

    identifier: str
    rank: int = 0

    def __str__(self) -> str:
        return self.identifier


class ModelInfo(BaseModel):
    """Entry returned by the service's capability listing."""

    identifier: str
    supports_generation: bool = False
    display_name: str | None = None


class GenerationRequest(BaseModel):
    """Prompt plus output budget, shared by every candidate in one attempt."""

    model_config = ConfigDict(frozen=True)

    prompt_text: str
    max_output_tokens: int = 4096
    temperature: float = 0.7
    top_p: float | None = 0.8
    top_k: int | None = 40


# ---------------------------------------------------------------------------
# Generation outcome
# ---------------------------------------------------------------------------


class CandidateFailure(BaseModel):
    """Record of one candidate that failed during orchestration."""

    identifier: str
    message: str
    kind: ServiceErrorKind
    model_unavailable: bool


class GenerationSuccess(BaseModel):
    status: Literal["success"] = "success"
    raw_text: str
    model_used: str
    latency_ms: int = 0


class GenerationFailure(BaseModel):
    status: Literal["error"] = "error"
    reason: str
    error: ModelsExhausted
    failures: list[CandidateFailure] = Field(default_factory=list)


GenerationOutcome = GenerationSuccess | GenerationFailure
"""Result of one orchestration call across the candidate list."""


# ---------------------------------------------------------------------------
# Parsing + repair
# ---------------------------------------------------------------------------


class ParseDiagnostic(BaseModel):
    """Why a direct parse failed, and where."""

    message: str
    offset: int | None = None
    kind: DiagnosticKind = DiagnosticKind.other


class Repaired(BaseModel):
    status: Literal["repaired"] = "repaired"
    text: str
    strategy: str


class RepairFailed(BaseModel):
    status: Literal["failed"] = "failed"
    diagnostic: ParseDiagnostic


RepairOutcome = Repaired | RepairFailed


# ---------------------------------------------------------------------------
# Classified errors surfaced to the caller
# ---------------------------------------------------------------------------


class ModelsExhausted(BaseModel):
    kind: Literal["models_exhausted"] = "models_exhausted"
    tried: list[str]
    last_error: str
    last_error_kind: ServiceErrorKind = ServiceErrorKind.other


class ParseFailure(BaseModel):
    kind: Literal["parse_failure"] = "parse_failure"
    diagnostic: ParseDiagnostic
    preview: str


class Unauthorized(BaseModel):
    kind: Literal["unauthorized"] = "unauthorized"
    message: str = "The generation service rejected the configured API key."


class QuotaExceeded(BaseModel):
    kind: Literal["quota_exceeded"] = "quota_exceeded"
    message: str = "The generation service quota has been exceeded."


class UnknownError(BaseModel):
    kind: Literal["unknown"] = "unknown"
    message: str


PlanError = ModelsExhausted | ParseFailure | Unauthorized | QuotaExceeded | UnknownError

ClassifiedError = Annotated[PlanError, Field(discriminator="kind")]
"""Discriminated union of every failure the plan lifecycle can surface."""


GenerationFailure.model_rebuild()
