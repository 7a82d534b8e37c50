"""
Application configuration via pydantic-settings.

Loads values from .env file with sensible defaults for local development.
Use ``get_settings()`` to obtain the cached singleton instance.
"""

import logging
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """OratoriaFlow application settings loaded from environment / .env file.

    All settings can be overridden via environment variables or a `.env` file.
    Field names map directly to env var names (case-insensitive).

    Attributes:
        provider_order: Priority order used by the fallback orchestrator in
            ``auto`` mode. Remote providers first, on-device last.
        openai_api_key: Enables the OpenAI provider when non-empty.
        azure_speech_key: Enables the Azure provider (with endpoint and region).
        google_speech_key: Enables the Google provider when non-empty.
        database_url: Async SQLAlchemy connection string.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Silently ignore unrecognized env vars
    )

    # --- Analysis ---
    analysis_language: str = "pt-BR"
    provider_order: list[str] = ["openai", "azure", "google", "on_device"]
    provider_timeout_seconds: float = 30.0

    # OpenAI (Whisper transcription + chat-completion analysis)
    openai_api_key: str = ""
    openai_base_url: str = ""  # Empty = SDK default
    openai_transcription_model: str = "whisper-1"
    openai_analysis_model: str = "gpt-4"

    # Azure Speech Services
    azure_speech_endpoint: str = ""
    azure_speech_key: str = ""
    azure_speech_region: str = ""

    # Google Cloud Speech-to-Text
    google_speech_key: str = ""
    google_speech_endpoint: str = "https://speech.googleapis.com/v1/speech:recognize"

    # --- On-device STT ---
    # Local faster-whisper model used when remote providers are unavailable
    on_device_enabled: bool = True
    whisper_model: str = "base"  # Model size: tiny, base, small, medium, large-v3
    whisper_device: str = "cpu"
    whisper_compute_type: str = "int8"

    # --- Product ---
    free_weekly_limit: int = 3  # Practice sessions per trailing 7 days on the free tier

    # --- Application ---
    app_host: str = "0.0.0.0"  # Bind address for the FastAPI server
    app_port: int = 8000
    log_level: str = "INFO"  # Python logging level
    cors_origins: list[str] = [
        "http://localhost:8501",  # Streamlit
        "http://localhost:3000",  # Dev frontend
    ]

    # --- Storage ---
    database_url: str = "sqlite+aiosqlite:///data/oratoria.db"


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings singleton.

    Uses ``functools.lru_cache`` so the .env file is read only once.
    Subsequent calls return the same ``Settings`` instance.

    Returns:
        Settings: The application-wide configuration object.
    """
    return Settings()


def configure_logging(level: str | None = None) -> None:
    """Configure root logging once, using ``log_level`` from settings."""
    logging.basicConfig(
        level=(level or get_settings().log_level).upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
