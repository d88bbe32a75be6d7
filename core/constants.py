"""Constants for provider field values, content types and object naming.

This module centralizes hardcoded string literals shared by the synthesis
and storage adapters so that provider-specific spellings live in one place.
"""

from typing import Final

from core.models import VoiceGender


class ContentTypes:
    """MIME types of the audio codecs produced by synthesis backends."""

    MP3: Final[str] = "audio/mpeg"
    WAV: Final[str] = "audio/wav"


class AudioExtensions:
    """File extensions matching ContentTypes."""

    MP3: Final[str] = "mp3"
    WAV: Final[str] = "wav"


# Prefix under which generated audio objects are stored
GENERATIONS_PREFIX: Final[str] = "generations"


# Google Cloud TTS "ssmlGender" values
SSML_GENDER_MAPPING: Final[dict[VoiceGender, str]] = {
    VoiceGender.MALE: "MALE",
    VoiceGender.FEMALE: "FEMALE",
    VoiceGender.NON_BINARY: "NEUTRAL",
}


# Edge TTS neural voices by (language code, gender)
EDGE_VOICE_MAPPING: Final[dict[tuple[str, VoiceGender], str]] = {
    ("en-US", VoiceGender.MALE): "en-US-GuyNeural",
    ("en-US", VoiceGender.FEMALE): "en-US-JennyNeural",
    ("en-GB", VoiceGender.MALE): "en-GB-RyanNeural",
    ("en-GB", VoiceGender.FEMALE): "en-GB-SoniaNeural",
    ("en-AU", VoiceGender.MALE): "en-AU-WilliamNeural",
    ("en-AU", VoiceGender.FEMALE): "en-AU-NatashaNeural",
    ("en-IN", VoiceGender.MALE): "en-IN-PrabhatNeural",
    ("en-IN", VoiceGender.FEMALE): "en-IN-NeerjaNeural",
}


# Largest value a 64-bit signed INTEGER column can hold
MAX_ROW_ID: Final[int] = 2**63 - 1
