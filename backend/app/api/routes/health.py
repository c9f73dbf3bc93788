"""GET /health — liveness plus configuration status."""

from fastapi import APIRouter

from backend.app.core.settings import settings

router = APIRouter()


@router.get("/health")
def health() -> dict[str, object]:
    return {"status": "ok", "llm_configured": settings.is_llm_configured}
