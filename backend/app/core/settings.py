"""Application settings loaded from environment / .env file.

Config precedence (highest to lowest):
    1. Environment variables
    2. ``.env`` file in project root
    3. Defaults defined in this module

Secrets (API keys) are never exposed in ``repr()``, ``str()``, or logs.
"""

from pathlib import Path

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Project root is three levels up from this file (backend/app/core/settings.py)
_PROJECT_ROOT = Path(__file__).resolve().parents[3]

DEFAULT_FALLBACK_MODELS: tuple[str, ...] = (
    "gemini-1.5-flash",
    "gemini-1.5-flash-latest",
    "gemini-pro",
    "gemini-1.0-pro",
    "gemini-1.5-pro",
    "gemini-1.5-pro-latest",
    "gemini-2.0-flash",
    "gemini-2.5-flash",
)
"""Known-good identifiers used when model discovery yields nothing."""


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(_PROJECT_ROOT / ".env"),
        env_file_encoding="utf-8",
    )

    api_host: str = "127.0.0.1"
    api_port: int = 8000
    debug: bool = False
    log_level: str = "INFO"

    # Generation service
    gemini_api_key: SecretStr | None = None
    gemini_api_base: str = "https://generativelanguage.googleapis.com/v1beta"
    llm_timeout_seconds: int = 30
    fallback_models: list[str] = Field(default_factory=lambda: list(DEFAULT_FALLBACK_MODELS))

    # Plan generation budget
    plan_max_retries: int = 2
    plan_max_output_tokens: int = 4096
    plan_temperature: float = 0.7
    plan_top_p: float = 0.8
    plan_top_k: int = 40

    @property
    def is_llm_configured(self) -> bool:
        """Return True if a generation credential is set."""
        return bool(self.gemini_api_key and self.gemini_api_key.get_secret_value())

    @property
    def api_key(self) -> str | None:
        """Plain credential value for outbound calls (never log this)."""
        if self.gemini_api_key is None:
            return None
        return self.gemini_api_key.get_secret_value() or None

    @field_validator("plan_max_retries")
    @classmethod
    def _validate_retries(cls, v: int) -> int:
        if v < 1:
            raise ValueError("plan_max_retries must be at least 1")
        return v

    @field_validator("fallback_models")
    @classmethod
    def _validate_fallback_models(cls, v: list[str]) -> list[str]:
        cleaned = [name.strip() for name in v if name and name.strip()]
        if not cleaned:
            raise ValueError("fallback_models must contain at least one identifier")
        return cleaned

    def safe_dump(self) -> dict[str, object]:
        """Return settings dict with secrets masked — safe for logging."""
        return {
            "api_host": self.api_host,
            "api_port": self.api_port,
            "debug": self.debug,
            "log_level": self.log_level,
            "gemini_api_base": self.gemini_api_base,
            "llm_timeout_seconds": self.llm_timeout_seconds,
            "fallback_models": len(self.fallback_models),
            "plan_max_retries": self.plan_max_retries,
            "plan_max_output_tokens": self.plan_max_output_tokens,
            "is_llm_configured": self.is_llm_configured,
        }


settings = Settings()
