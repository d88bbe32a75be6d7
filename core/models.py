"""Pydantic models for VoiceStudio domain entities."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class VoiceGender(str, Enum):
    """Gender presented by a voice profile."""

    MALE = "male"
    FEMALE = "female"
    NON_BINARY = "non-binary"


class GenerationStatus(str, Enum):
    """Status of a generation attempt."""

    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class VoiceProfile(BaseModel):
    """A named speech synthesis configuration offered to users."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: int = Field(..., description="Profile ID")
    name: str = Field(..., description="Display name")
    accent: str = Field(..., description="Accent/locale tag (US, UK, Australian, ...)")
    language_code: str = Field(..., description="BCP-47 language code, e.g. en-US")
    gender: VoiceGender = Field(..., description="Voice gender")
    voice_type: str = Field(..., description="Voice style (young, mature, professional, casual)")
    description: str | None = Field(None, description="Human-readable description")
    tts_voice_id: str = Field(..., description="External synthesis voice identifier")
    avatar_url: str = Field(..., description="Avatar image URL")


class VoiceSeed(BaseModel):
    """Catalog entry before it is assigned an ID."""

    name: str = Field(..., min_length=1, max_length=128, description="Display name")
    accent: str = Field(..., description="Accent/locale tag")
    language_code: str = Field(..., pattern=r"^[a-z]{2,3}-[A-Z]{2}$", description="BCP-47 code")
    gender: VoiceGender = Field(..., description="Voice gender")
    voice_type: str = Field(..., description="Voice style")
    description: str | None = Field(None, description="Human-readable description")
    tts_voice_id: str = Field(..., description="External synthesis voice identifier")
    avatar_url: str | None = Field(None, description="Avatar image URL")


class SessionToken(BaseModel):
    """A freshly issued session token."""

    token: str = Field(..., description="Opaque session token")
    expires_at: datetime = Field(..., description="Expiry timestamp (UTC)")


class SessionStatus(BaseModel):
    """Quota state of a live session."""

    session_id: int = Field(..., description="Session ID")
    user_id: int = Field(..., description="Owning user ID")
    generation_count: int = Field(..., ge=0, description="Successful generations so far")
    remaining: int = Field(..., ge=0, description="Generations left in this session")
    can_generate: bool = Field(..., description="Whether another generation is allowed")
    expires_at: datetime = Field(..., description="Expiry timestamp (UTC)")


class GenerationRecord(BaseModel):
    """Audit record of a single generation attempt."""

    model_config = ConfigDict(from_attributes=True)

    id: int = Field(..., description="Record ID")
    user_id: int = Field(..., description="Owning user ID")
    session_id: int = Field(..., description="Session the attempt belongs to")
    voice_profile_id: int = Field(..., description="Voice profile used")
    text: str = Field(..., description="Input text")
    audio_url: str | None = Field(None, description="Audio location once completed")
    status: GenerationStatus = Field(GenerationStatus.PENDING, description="Attempt status")
    duration: int | None = Field(None, description="Audio duration in seconds")
    error_message: str | None = Field(None, description="Failure reason")
    created_at: datetime = Field(..., description="Creation timestamp (UTC)")
    completed_at: datetime | None = Field(None, description="Finalization timestamp (UTC)")


class SynthesisRequest(BaseModel):
    """Input handed to a speech synthesis service."""

    text: str = Field(..., min_length=1, description="Text to speak")
    language_code: str = Field(..., description="BCP-47 language code")
    gender: VoiceGender = Field(..., description="Gender hint")
    voice_name: str | None = Field(None, description="Provider-specific voice name")


class SynthesizedAudio(BaseModel):
    """Encoded audio returned by a speech synthesis service."""

    content: bytes = Field(..., description="Encoded audio bytes")
    content_type: str = Field(..., description="MIME type of the audio")
    extension: str = Field(..., description="File extension without dot")
    duration_seconds: float | None = Field(None, ge=0.0, description="Audio length if known")


class AudioUpload(BaseModel):
    """Audio bound for object storage under a chosen name."""

    name: str = Field(..., min_length=1, description="Object name")
    audio: SynthesizedAudio = Field(..., description="Audio to store")


class StoredAudio(BaseModel):
    """Location of an uploaded audio object."""

    name: str = Field(..., description="Object name within the store")
    url: str = Field(..., description="Publicly fetchable URL")


class GenerationResult(BaseModel):
    """Outcome of a successful generation."""

    audio_url: str = Field(..., description="Publicly fetchable audio URL")
    voice_profile: VoiceProfile = Field(..., description="Voice profile used")
    record_id: int = Field(..., description="History record ID")
