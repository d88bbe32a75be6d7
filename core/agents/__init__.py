"""Agent classes wrapping VoiceStudio's external services."""

from core.agents.audio_tts import TTSAgent
from core.agents.audio_upload import UploadAgent, object_name_for
from core.agents.base import BaseAgent

__all__ = [
    "BaseAgent",
    "TTSAgent",
    "UploadAgent",
    "object_name_for",
]
