"""Typed settings configuration - single source of truth."""

from functools import lru_cache

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Database (history of document briefings)
    database_url: str | None = None

    # Cache
    redis_url: str | None = None

    # UI client
    ui_backend_url: str = "http://localhost:8000"

    # Generation provider
    openai_api_key: SecretStr | None = None
    openai_model: str = "gpt-4o-mini"
    openai_vision_model: str = "gpt-4o-mini"
    generation_temperature: float = 0.3
    generation_max_tokens: int = 4000

    # Auth (Supabase)
    supabase_url: str = ""
    supabase_anon_key: SecretStr | None = None

    # OCR
    tesseract_cmd: str | None = None
    tesseract_lang_path: str | None = None
    ocr_default_lang: str = "eng"

    # Extraction
    vision_fallback_enabled: bool = True
    vision_max_pages: int = 5
    max_upload_bytes: int = 15 * 1024 * 1024

    # Rate limiting (requests per minute)
    generation_requests_per_min: int = 20


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
