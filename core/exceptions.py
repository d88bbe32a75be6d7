"""Domain exceptions for VoiceStudio."""


class VoiceStudioError(Exception):
    """Base exception for all VoiceStudio errors."""

    kind = "internal_error"

    def __init__(self, message: str, *, context: dict | None = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}


class StorageUnavailable(VoiceStudioError):
    """Raised when the database cannot be reached."""

    kind = "storage_unavailable"


class SessionNotFound(VoiceStudioError):
    """Raised when a session token is unknown or its session has expired."""

    kind = "session_not_found"

    def __init__(self, message: str, *, token: str | None = None):
        super().__init__(message, context={"token": token})
        self.token = token


class InvalidSession(SessionNotFound):
    """Raised when a generation request carries an unusable session token."""

    kind = "invalid_session"


class QuotaExceeded(VoiceStudioError):
    """Raised when a session has no generations left."""

    kind = "quota_exceeded"

    def __init__(self, message: str, *, session_id: int | None = None, quota: int | None = None):
        super().__init__(message, context={"session_id": session_id, "quota": quota})
        self.session_id = session_id
        self.quota = quota


class ProfileNotFound(VoiceStudioError):
    """Raised when a voice profile id does not exist."""

    kind = "profile_not_found"

    def __init__(self, message: str, *, profile_id: int | None = None):
        super().__init__(message, context={"profile_id": profile_id})
        self.profile_id = profile_id


class InvalidInput(VoiceStudioError):
    """Raised when generation text is empty or too long."""

    kind = "invalid_input"

    def __init__(self, message: str, *, length: int | None = None):
        super().__init__(message, context={"length": length})
        self.length = length


class SynthesisFailed(VoiceStudioError):
    """Raised when the speech synthesis service fails or times out."""

    kind = "synthesis_failed"

    def __init__(self, message: str, *, attempts: int = 0):
        super().__init__(message, context={"attempts": attempts})
        self.attempts = attempts


class StorageFailed(VoiceStudioError):
    """Raised when uploading or deleting audio in object storage fails."""

    kind = "storage_failed"

    def __init__(self, message: str, *, attempts: int = 0):
        super().__init__(message, context={"attempts": attempts})
        self.attempts = attempts
