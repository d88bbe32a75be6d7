"""Protocol interfaces for VoiceStudio services."""

from core.protocols.object_storage import IObjectStorage
from core.protocols.synthesizer import ISynthesizer

__all__ = [
    "ISynthesizer",
    "IObjectStorage",
]
