"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")

_PLACEHOLDER_KEYS = {
    "placeholder_api_key",
    "your_api_key_here",
    "your_api_key",
    "undefined",
    "null",
}
_MIN_API_KEY_LENGTH = 20


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    gemini_api_key: str | None = None
    gemini_model: str = "gemini-2.5-flash-image"
    supabase_url: str | None = None
    supabase_anon_key: str | None = None
    local_store_path: str = ".ordo/store.json"
    max_local_spaces: int = 8
    splash_delay_seconds: float = 2.0
    upload_max_edge: int = 1024
    upload_quality: int = 80
    capture_max_edge: int = 1080
    capture_quality: int = 75
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )

    @property
    def uses_remote_backend(self) -> bool:
        """Return True when Supabase credentials are configured."""
        return bool(self.supabase_url and self.supabase_anon_key)


def is_api_key_usable(raw: str | None) -> bool:
    """Reject missing, placeholder, or obviously malformed API keys."""
    if raw is None:
        return False
    cleaned = raw.strip()
    if not cleaned or cleaned.lower() in _PLACEHOLDER_KEYS:
        return False
    if any(char.isspace() for char in cleaned):
        return False
    return len(cleaned) >= _MIN_API_KEY_LENGTH
