"""Persistence layer for VoiceStudio."""

from core.persistence.database import Database
from core.persistence.tables import (
    Base,
    GenerationHistoryRow,
    UserSessionRow,
    VoiceProfileRow,
    utcnow,
)

__all__ = [
    "Database",
    "Base",
    "VoiceProfileRow",
    "UserSessionRow",
    "GenerationHistoryRow",
    "utcnow",
]
