"""Pydantic Settings configuration for VoiceStudio."""

from enum import Enum

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class SynthesisProvider(str, Enum):
    """Speech synthesis backend."""

    MOCK = "mock"
    GOOGLE = "google"
    EDGE = "edge"


class StorageBackend(str, Enum):
    """Object storage backend for generated audio."""

    LOCAL = "local"
    GCS = "gcs"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Database
    database_url: str = Field(
        default="sqlite:///./voice_studio.db",
        description="SQLAlchemy database URL",
    )
    seed_voices_on_startup: bool = Field(
        default=True,
        description="Seed the voice catalog at startup when it is empty",
    )

    # Quota
    generation_quota: int = Field(
        default=2,
        ge=1,
        le=1000,
        description="Maximum successful generations per session",
    )
    max_text_length: int = Field(
        default=5000,
        ge=1,
        le=100_000,
        description="Maximum input text length in characters",
    )
    session_ttl_hours: float = Field(
        default=24.0,
        gt=0.0,
        le=24.0 * 365,
        description="Session lifetime in hours",
    )

    # Synthesis
    synthesis_provider: SynthesisProvider = Field(
        default=SynthesisProvider.MOCK,
        description="Speech synthesis backend (mock, google, edge)",
    )
    google_tts_api_key: str = Field(default="", description="Google Cloud TTS API key")
    google_tts_base_url: str = Field(
        default="https://texttospeech.googleapis.com/v1",
        description="Google Cloud Text-to-Speech REST base URL",
    )
    edge_default_voice: str = Field(
        default="en-US-AriaNeural",
        description="Edge TTS voice used when no locale/gender match exists",
    )
    synthesis_timeout: float = Field(
        default=30.0,
        ge=0.1,
        le=600.0,
        description="Per-attempt synthesis deadline in seconds",
    )

    # Storage
    storage_backend: StorageBackend = Field(
        default=StorageBackend.LOCAL,
        description="Where generated audio is stored (local, gcs)",
    )
    storage_path: str = Field(default="./output", description="Local audio storage path")
    public_base_url: str = Field(
        default="http://localhost:8000",
        description="Base URL used to build links to locally stored audio",
    )
    gcs_bucket: str = Field(default="", description="Google Cloud Storage bucket name")
    gcs_credentials_file: str = Field(
        default="",
        description="Service account key file for GCS (empty = Application Default Credentials)",
    )
    gcs_base_url: str = Field(
        default="https://storage.googleapis.com",
        description="Google Cloud Storage base URL",
    )
    storage_timeout: float = Field(
        default=30.0,
        ge=0.1,
        le=600.0,
        description="Per-attempt upload deadline in seconds",
    )

    # Retry Configuration
    max_retries: int = Field(
        default=1,
        ge=0,
        le=5,
        description="Maximum retry attempts for synthesis and upload",
    )

    # Logging
    log_level: str = Field(default="INFO", description="Root log level")

    # Security
    api_key_enabled: bool = Field(
        default=False,
        description="Enable API key authentication",
    )
    api_key: str = Field(
        default="",
        description="API key for authentication (required if api_key_enabled=True)",
    )
    rate_limit_enabled: bool = Field(default=True, description="Enable per-client rate limiting")
    rate_limit_per_minute: int = Field(
        default=30,
        ge=1,
        le=1000,
        description="Maximum requests per minute per client",
    )
    cors_origins: list[str] = Field(
        default_factory=list,
        description="Allowed CORS origins (empty = no CORS)",
    )
