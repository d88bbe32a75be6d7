"""Service implementations for VoiceStudio infrastructure."""

from core.services.storage import GCSObjectStorage, LocalObjectStorage
from core.services.tts import EdgeSynthesizer, GoogleCloudSynthesizer, MockSynthesizer

__all__ = [
    # TTS
    "MockSynthesizer",
    "GoogleCloudSynthesizer",
    "EdgeSynthesizer",
    # Storage
    "LocalObjectStorage",
    "GCSObjectStorage",
]
