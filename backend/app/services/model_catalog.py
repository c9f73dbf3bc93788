"""Discover and order the candidate models for one generation request.

Discovery never raises: transport failures, error statuses and empty
results all fall back to a static list of known-good identifiers.
"""

import logging
from collections.abc import Sequence

from backend.app.core.logging import EVENT_CATALOG_FALLBACK, EVENT_CATALOG_FETCHED, log_event
from backend.app.core.settings import settings
from backend.app.models.llm import ModelCandidate
from backend.app.services.gemini_client import TextGenerationService, strip_model_prefix

logger = logging.getLogger(__name__)

PREFERRED_TIER_MARKER = "flash"
"""Identifiers containing this substring are tried first."""


def prioritize(identifiers: Sequence[str]) -> list[str]:
    """Stable sort putting every ``flash`` identifier ahead of the rest."""
    return sorted(identifiers, key=lambda name: PREFERRED_TIER_MARKER not in name)


async def discover_models(service: TextGenerationService) -> list[str]:
    """Return generation-capable identifiers, namespace prefix stripped.

    Returns an empty list when the listing fails for any reason.
    """
    try:
        models = await service.list_models()
    except Exception as exc:
        log_event(
            logger, "warning", EVENT_CATALOG_FALLBACK,
            reason="listing_error", detail=type(exc).__name__,
        )
        return []

    names: list[str] = []
    for model in models:
        if not model.supports_generation:
            continue
        name = strip_model_prefix(model.identifier)
        if name and name not in names:
            names.append(name)
    return names


async def list_candidates(
    service: TextGenerationService,
    *,
    fallback: Sequence[str] | None = None,
) -> list[ModelCandidate]:
    """Return the ordered candidates to try for one request.

    A discovered list is re-ordered with :func:`prioritize`; the static
    *fallback* list (default ``settings.fallback_models``) is used as given.
    """
    names = await discover_models(service)
    if names:
        names = prioritize(names)
        log_event(logger, "info", EVENT_CATALOG_FETCHED, count=len(names), first=names[0])
    else:
        names = list(fallback if fallback is not None else settings.fallback_models)
        log_event(logger, "info", EVENT_CATALOG_FALLBACK, reason="empty", count=len(names))

    return [ModelCandidate(identifier=name, rank=rank) for rank, name in enumerate(names)]
