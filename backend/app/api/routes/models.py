"""GET /api/v1/models — which generation models the configured key can reach."""

from fastapi import APIRouter, Depends, HTTPException

from backend.app.api.deps import get_service
from backend.app.services.gemini_client import TextGenerationService
from backend.app.services.plan_generator import list_available_models

router = APIRouter()


@router.get("/api/v1/models")
async def available_models(
    service: TextGenerationService | None = Depends(get_service),
) -> dict[str, object]:
    if service is None:
        raise HTTPException(status_code=503, detail="GEMINI_API_KEY is not configured")

    models = await list_available_models(service=service)
    return {
        "available_models": models,
        "count": len(models),
        "recommendation": models[0] if models else None,
    }
