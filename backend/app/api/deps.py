"""FastAPI dependencies."""

from backend.app.services.gemini_client import GeminiClient, get_generation_service


def get_service() -> GeminiClient | None:
    """Configured generation client, or ``None`` when no key is set."""
    return get_generation_service()
