"""Pydantic schemas for API requests and responses."""

from datetime import datetime

from pydantic import BaseModel, Field

from core.constants import MAX_ROW_ID
from core.models import GenerationRecord, VoiceProfile

# Hard cap on request text; the configured generation limit is enforced by the orchestrator
MAX_REQUEST_TEXT_LENGTH = 100_000


class CreateSessionRequest(BaseModel):
    """Request body for session creation."""

    user_id: int = Field(
        ...,
        ge=1,
        le=MAX_ROW_ID,
        description="Authenticated user the session belongs to",
    )


class SessionTokenResponse(BaseModel):
    """Response from session creation."""

    token: str = Field(..., description="Opaque session token")
    expires_at: datetime = Field(..., description="Expiry timestamp (UTC)")


class SessionStatusResponse(BaseModel):
    """Quota state of a session."""

    generation_count: int = Field(..., description="Successful generations so far")
    remaining: int = Field(..., description="Generations left")
    can_generate: bool = Field(..., description="Whether another generation is allowed")
    expires_at: datetime = Field(..., description="Expiry timestamp (UTC)")


class GenerateRequest(BaseModel):
    """Request body for the generation endpoint."""

    session_token: str = Field(..., min_length=1, description="Session token")
    voice_profile_id: int = Field(..., ge=1, le=MAX_ROW_ID, description="Voice profile ID")
    text: str = Field(
        ...,
        max_length=MAX_REQUEST_TEXT_LENGTH,
        description="Text to convert to speech",
        examples=["Hello, this is a test."],
    )


class GenerateResponse(BaseModel):
    """Response from a successful generation."""

    success: bool = Field(True, description="Always true on success")
    audio_url: str = Field(..., description="Publicly fetchable audio URL")
    voice_profile: VoiceProfile = Field(..., description="Voice profile used")
    record_id: int = Field(..., description="Generation history record ID")


class VoiceListResponse(BaseModel):
    """Response listing all voice profiles."""

    voices: list[VoiceProfile] = Field(..., description="Available voice profiles")
    total: int = Field(..., description="Number of profiles")


class HistoryResponse(BaseModel):
    """Response listing a session's generation attempts."""

    records: list[GenerationRecord] = Field(..., description="Generation attempts, oldest first")
    total: int = Field(..., description="Number of records")


class ErrorDetail(BaseModel):
    """Machine-readable error."""

    kind: str = Field(..., description="Error kind, e.g. quota_exceeded")
    message: str = Field(..., description="Human-readable message")


class ErrorResponse(BaseModel):
    """Error envelope returned by every failing endpoint."""

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response from health check endpoint."""

    status: str = Field(..., description="Service health status")
    version: str = Field(..., description="API version")
    database: str = Field(..., description="Database reachability (ok, unavailable)")
    synthesis_provider: str = Field(..., description="Configured synthesis backend")
