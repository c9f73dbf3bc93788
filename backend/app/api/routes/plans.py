"""POST /api/v1/plans — generate a workout, diet and tips plan."""

import logging

from fastapi import APIRouter, Depends, HTTPException

from backend.app.api.deps import get_service
from backend.app.core.errors import normalize_plan_error
from backend.app.models.plan import GeneratedPlan, UserProfile
from backend.app.services.gemini_client import TextGenerationService
from backend.app.services.plan_generator import generate_plan

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/api/v1/plans", response_model=GeneratedPlan, response_model_exclude_none=True)
async def create_plan(
    profile: UserProfile,
    service: TextGenerationService | None = Depends(get_service),
) -> GeneratedPlan:
    """Generate a plan for *profile*; errors map to their normalized HTTP status."""
    result = await generate_plan(profile, service=service)
    if isinstance(result, GeneratedPlan):
        return result

    error = normalize_plan_error(result)
    raise HTTPException(
        status_code=error.http_status,
        detail={
            "message": error.user_message,
            "error_category": error.error_category,
            "retryable": error.retryable,
        },
    )
