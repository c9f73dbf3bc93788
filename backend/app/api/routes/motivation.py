"""GET /api/v1/motivation — one short motivational quote (never fails)."""

from fastapi import APIRouter, Depends

from backend.app.api.deps import get_service
from backend.app.services.gemini_client import TextGenerationService
from backend.app.services.plan_generator import generate_motivation

router = APIRouter()


@router.get("/api/v1/motivation")
async def motivation(
    service: TextGenerationService | None = Depends(get_service),
) -> dict[str, str]:
    return {"quote": await generate_motivation(service=service)}
