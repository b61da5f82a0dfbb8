"""
Application settings and configuration management.

Uses pydantic-settings for environment variable loading.
"""

from functools import lru_cache

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "PrepWise"
    app_version: str = "0.1.0"
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 8000

    # LLM provider (OpenAI-compatible chat completions, Groq by default)
    llm_enabled: bool = True
    llm_base_url: str = "https://api.groq.com"
    llm_api_key: str = ""
    llm_chat_endpoint: str = "/openai/v1/chat/completions"
    llm_generation_model: str = "meta-llama/llama-4-scout-17b-16e-instruct"
    llm_evaluation_model: str = "meta-llama/llama-4-scout-17b-16e-instruct"
    llm_generation_temperature: float = 0.9  # Higher for question variety
    llm_evaluation_temperature: float = 0.3
    llm_generation_max_tokens: int = 8000
    llm_evaluation_max_tokens: int = 2000
    llm_timeout_seconds: float = 45.0

    # Langfuse observability
    langfuse_enabled: bool = False
    langfuse_public_key: str = ""
    langfuse_secret_key: str = ""
    langfuse_base_url: str = "https://cloud.langfuse.com"

    # Session timing
    session_time_limit_seconds: int = 3600  # 1 hour hard ceiling
    timer_poll_interval_seconds: float = 1.0

    # CORS - stored as comma-separated string in env
    # Uses validation_alias to read from CORS_ORIGINS env var
    cors_origins_str: str = Field(
        default="http://localhost:3000,http://localhost:5173",
        validation_alias="cors_origins"
    )

    @computed_field
    @property
    def cors_origins(self) -> list[str]:
        """Parse CORS origins from comma-separated string."""
        return [origin.strip() for origin in self.cors_origins_str.split(",") if origin.strip()]

    @property
    def llm_configured(self) -> bool:
        """Whether outbound AI calls should be attempted at all."""
        return self.llm_enabled and bool(self.llm_api_key)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
