"""Application settings and configuration."""

from functools import lru_cache

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings

from learnloop.models.generation import BackendId

# Load .env file if present
load_dotenv()


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Default provider
    ai_provider: str = Field(
        default="gemini",
        description="Backend used by the default provider (gemini, openai, anthropic)",
        validation_alias="AI_PROVIDER",
    )

    # Gemini
    gemini_api_key: str | None = Field(
        default=None,
        description="Google Gemini API key",
        validation_alias="GEMINI_API_KEY",
    )
    gemini_model: str | None = Field(
        default=None,
        description="Gemini model override for the default provider",
        validation_alias="GEMINI_MODEL",
    )

    # OpenAI
    openai_api_key: str | None = Field(
        default=None,
        description="OpenAI API key",
        validation_alias="OPENAI_API_KEY",
    )
    openai_model: str | None = Field(
        default=None,
        description="OpenAI model override for the default provider",
        validation_alias="OPENAI_MODEL",
    )

    # Anthropic
    anthropic_api_key: str | None = Field(
        default=None,
        description="Anthropic API key",
        validation_alias="ANTHROPIC_API_KEY",
    )
    anthropic_model: str | None = Field(
        default=None,
        description="Anthropic model override for the default provider",
        validation_alias="ANTHROPIC_MODEL",
    )

    # Generation Settings
    default_temperature: float = Field(
        default=0.7,
        ge=0.0,
        le=1.0,
        description="Sampling temperature used when a call does not set one",
        validation_alias="DEFAULT_TEMPERATURE",
    )

    # Fallback Settings
    min_quality_score: int = Field(
        default=6,
        ge=1,
        le=10,
        description="Minimum quality score (1-10) that stops the tier fallback",
        validation_alias="MIN_QUALITY_SCORE",
    )

    max_fallback_attempts: int = Field(
        default=5,
        ge=1,
        le=10,
        description="Maximum number of model tiers tried per generation",
        validation_alias="MAX_FALLBACK_ATTEMPTS",
    )

    # Storage
    store_path: str = Field(
        default="learnloop.json",
        description="JSON file the CLI uses to persist content between runs",
        validation_alias="STORE_PATH",
    )

    log_level: str = Field(
        default="INFO",
        description="Root log level for the CLI",
        validation_alias="LOG_LEVEL",
    )

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
    }

    def credentials(self) -> dict[BackendId, str | None]:
        """
        Get the API key configured for each backend.

        Returns:
            Mapping of backend to its key (None when not configured)
        """
        return {
            BackendId.GEMINI: self.gemini_api_key,
            BackendId.OPENAI: self.openai_api_key,
            BackendId.ANTHROPIC: self.anthropic_api_key,
        }

    def configured_model(self, backend: BackendId) -> str | None:
        """Get the configured model override for a backend, if any."""
        return {
            BackendId.GEMINI: self.gemini_model,
            BackendId.OPENAI: self.openai_model,
            BackendId.ANTHROPIC: self.anthropic_model,
        }[backend]

    def attempt_limit(self, requested: int) -> int:
        """Cap a caller's tier attempt count at MAX_FALLBACK_ATTEMPTS."""
        return min(requested, self.max_fallback_attempts)


# Loaded once and shared by the CLI and the provider factory
@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings object with loaded configuration
    """
    return Settings()
