"""Core domain logic for VoiceStudio."""

from core.exceptions import (
    InvalidInput,
    InvalidSession,
    ProfileNotFound,
    QuotaExceeded,
    SessionNotFound,
    StorageFailed,
    StorageUnavailable,
    SynthesisFailed,
    VoiceStudioError,
)
from core.models import (
    GenerationRecord,
    GenerationResult,
    GenerationStatus,
    SessionStatus,
    SessionToken,
    VoiceGender,
    VoiceProfile,
)

__all__ = [
    # Models
    "VoiceGender",
    "GenerationStatus",
    "VoiceProfile",
    "SessionToken",
    "SessionStatus",
    "GenerationRecord",
    "GenerationResult",
    # Exceptions
    "VoiceStudioError",
    "StorageUnavailable",
    "SessionNotFound",
    "InvalidSession",
    "QuotaExceeded",
    "ProfileNotFound",
    "InvalidInput",
    "SynthesisFailed",
    "StorageFailed",
]
