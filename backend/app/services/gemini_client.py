"""Text generation service abstraction and its Gemini REST implementation.

The module exposes:

- :class:`TextGenerationService` — the protocol the orchestration code talks to.
- :class:`GeminiClient` — ``httpx``-based implementation against the
  Generative Language REST API (``models`` listing + ``generateContent``).
- :class:`GenerationServiceError` — the single exception type raised by
  :meth:`TextGenerationService.generate`, carrying a :class:`ServiceErrorKind`.
- :func:`get_generation_service` — factory reading the configured credential.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol, runtime_checkable

import httpx

from backend.app.core.settings import settings
from backend.app.models.llm import GenerationRequest, ModelInfo, ServiceErrorKind

logger = logging.getLogger(__name__)

GENERATE_METHOD = "generateContent"

_QUOTA_MARKERS = (
    "quota",
    "rate limit",
    "too many requests",
    "resource_exhausted",
    "resource exhausted",
)
_AUTH_MARKERS = ("api key", "api_key_invalid", "unauthenticated", "permission")


class GenerationServiceError(Exception):
    """A generation call failed; ``kind`` says how."""

    def __init__(
        self,
        kind: ServiceErrorKind,
        message: str,
        *,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.status_code = status_code

    @property
    def model_unavailable(self) -> bool:
        """True for failures that trying the same model again will not fix."""
        return self.kind in (
            ServiceErrorKind.model_not_found,
            ServiceErrorKind.quota_exceeded,
            ServiceErrorKind.unauthorized,
        )


def classify_service_error(status_code: int | None, message: str) -> ServiceErrorKind:
    """Map an HTTP status (and, failing that, the message text) to a kind."""
    if status_code in (401, 403):
        return ServiceErrorKind.unauthorized
    if status_code == 429:
        return ServiceErrorKind.quota_exceeded
    if status_code == 404:
        return ServiceErrorKind.model_not_found

    text = message.lower()
    if any(marker in text for marker in _QUOTA_MARKERS):
        return ServiceErrorKind.quota_exceeded
    if "not found" in text:
        return ServiceErrorKind.model_not_found
    if any(marker in text for marker in _AUTH_MARKERS):
        return ServiceErrorKind.unauthorized
    return ServiceErrorKind.other


def strip_model_prefix(identifier: str) -> str:
    """``models/gemini-pro`` -> ``gemini-pro``."""
    return identifier.rsplit("/", 1)[-1].strip()


# ---------------------------------------------------------------------------
# Protocol
# ---------------------------------------------------------------------------


@runtime_checkable
class TextGenerationService(Protocol):
    """Minimal interface the plan pipeline needs from a generation backend."""

    async def list_models(self) -> list[ModelInfo]:
        """Return the models visible to the credential (empty on failure)."""
        ...

    async def generate(self, model: str, request: GenerationRequest) -> str:
        """Return raw text, or raise :class:`GenerationServiceError`."""
        ...


# ---------------------------------------------------------------------------
# Gemini REST client
# ---------------------------------------------------------------------------


class GeminiClient:
    """Calls the Generative Language REST API with ``httpx``.

    The credential travels in the ``x-goog-api-key`` header so request URLs
    are safe to log.  Pass *http_client* to share a connection pool (or to
    inject a mock transport in tests); otherwise a short-lived
    ``httpx.AsyncClient`` is opened per call.
    """

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str | None = None,
        timeout_seconds: float | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._api_key = api_key
        self._base_url = (base_url or settings.gemini_api_base).rstrip("/")
        self._timeout = float(
            timeout_seconds if timeout_seconds is not None else settings.llm_timeout_seconds
        )
        self._http_client = http_client

    def __repr__(self) -> str:
        return f"GeminiClient(base_url={self._base_url!r})"

    @property
    def _headers(self) -> dict[str, str]:
        return {"x-goog-api-key": self._api_key, "Content-Type": "application/json"}

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        if self._http_client is not None:
            return await self._http_client.request(
                method, url, headers=self._headers, timeout=self._timeout, **kwargs,
            )
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            return await client.request(method, url, headers=self._headers, **kwargs)

    async def list_models(self) -> list[ModelInfo]:
        url = f"{self._base_url}/models"
        try:
            resp = await self._request("GET", url, params={"pageSize": 1000})
        except httpx.HTTPError as exc:
            logger.warning("Model listing failed: %s", type(exc).__name__)
            return []

        if resp.status_code != 200:
            logger.warning("Model listing returned HTTP %d", resp.status_code)
            return []

        try:
            data = resp.json()
        except ValueError:
            logger.warning("Model listing returned a non-JSON body")
            return []

        models: list[ModelInfo] = []
        for entry in data.get("models") or []:
            name = strip_model_prefix(entry.get("name") or "")
            if not name:
                continue
            methods = entry.get("supportedGenerationMethods") or []
            models.append(
                ModelInfo(
                    identifier=name,
                    supports_generation=GENERATE_METHOD in methods,
                    display_name=entry.get("displayName"),
                )
            )
        return models

    async def generate(self, model: str, request: GenerationRequest) -> str:
        url = f"{self._base_url}/models/{strip_model_prefix(model)}:{GENERATE_METHOD}"
        generation_config: dict[str, object] = {
            "temperature": request.temperature,
            "maxOutputTokens": request.max_output_tokens,
        }
        if request.top_p is not None:
            generation_config["topP"] = request.top_p
        if request.top_k is not None:
            generation_config["topK"] = request.top_k
        body = {
            "contents": [{"role": "user", "parts": [{"text": request.prompt_text}]}],
            "generationConfig": generation_config,
        }

        try:
            resp = await self._request("POST", url, json=body)
        except httpx.TimeoutException as exc:
            raise GenerationServiceError(
                ServiceErrorKind.other, f"Request to {model} timed out.",
            ) from exc
        except httpx.HTTPError as exc:
            raise GenerationServiceError(
                ServiceErrorKind.other,
                f"Could not reach the generation service ({type(exc).__name__}).",
            ) from exc

        if resp.status_code != 200:
            message = _error_message(resp)
            raise GenerationServiceError(
                classify_service_error(resp.status_code, message),
                f"[{resp.status_code}] {message}",
                status_code=resp.status_code,
            )

        try:
            data = resp.json()
        except ValueError as exc:
            raise GenerationServiceError(
                ServiceErrorKind.other, "Generation service returned a non-JSON body.",
            ) from exc

        candidates = data.get("candidates") or []
        if not candidates:
            reason = (data.get("promptFeedback") or {}).get("blockReason", "no candidates")
            raise GenerationServiceError(
                ServiceErrorKind.other, f"No output returned ({reason}).",
            )

        parts = (candidates[0].get("content") or {}).get("parts") or []
        # May be empty; parsing decides.
        return "".join(part.get("text", "") for part in parts)


def _error_message(resp: httpx.Response) -> str:
    try:
        payload = resp.json()
    except ValueError:
        return resp.text[:200] or resp.reason_phrase
    error = payload.get("error") if isinstance(payload, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])[:200]
    return resp.reason_phrase


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


def get_generation_service(*, api_key: str | None = None) -> GeminiClient | None:
    """Return a client for the configured credential, or ``None`` if unset."""
    key = api_key if api_key is not None else settings.api_key
    if not key:
        logger.warning("No GEMINI_API_KEY configured — generation unavailable")
        return None
    return GeminiClient(api_key=key)
