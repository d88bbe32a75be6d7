"""Text-to-speech service implementations."""

import base64
import io
import logging
import wave
from typing import TYPE_CHECKING

import httpx

from core.constants import (
    EDGE_VOICE_MAPPING,
    SSML_GENDER_MAPPING,
    AudioExtensions,
    ContentTypes,
)
from core.exceptions import SynthesisFailed
from core.models import SynthesisRequest, SynthesizedAudio

if TYPE_CHECKING:
    from config.settings import Settings

logger = logging.getLogger(__name__)


class MockSynthesizer:
    """Mock synthesizer for offline development and tests.

    Produces silent WAV audio whose length follows the word count.
    """

    SAMPLE_RATE = 22050

    def __init__(self, settings: "Settings | None" = None):
        """Initialize the mock synthesizer.

        Args:
            settings: Optional settings (ignored in mock).
        """
        self.calls = 0

    async def synthesize(self, request: SynthesisRequest) -> SynthesizedAudio:
        """Generate silent audio for the text duration.

        Args:
            request: Text and voice parameters.

        Returns:
            Silent WAV audio.
        """
        self.calls += 1
        # Rough speaking rate: ~2.5 words/second
        word_count = len(request.text.split())
        duration_seconds = max(1.0, word_count / 2.5)

        logger.info(
            "Generating mock audio (%.1fs, %s) for: %s...",
            duration_seconds,
            request.language_code,
            request.text[:30],
        )
        return SynthesizedAudio(
            content=self._silent_wav(duration_seconds),
            content_type=ContentTypes.WAV,
            extension=AudioExtensions.WAV,
            duration_seconds=duration_seconds,
        )

    def _silent_wav(self, duration_seconds: float) -> bytes:
        """Encode silence as a 16-bit mono WAV file."""
        num_frames = int(self.SAMPLE_RATE * duration_seconds)
        buffer = io.BytesIO()
        with wave.open(buffer, "wb") as wav_file:
            wav_file.setnchannels(1)
            wav_file.setsampwidth(2)
            wav_file.setframerate(self.SAMPLE_RATE)
            wav_file.writeframes(b"\x00\x00" * num_frames)
        return buffer.getvalue()


class GoogleCloudSynthesizer:
    """Synthesizer backed by the Google Cloud Text-to-Speech REST API.

    Returns MP3 audio. Requires an API key.
    """

    def __init__(self, settings: "Settings", *, transport: httpx.AsyncBaseTransport | None = None):
        """Initialize the Google Cloud synthesizer.

        Args:
            settings: Application settings with API configuration.
            transport: Optional httpx transport override.

        Raises:
            SynthesisFailed: If no API key is configured.
        """
        if not settings.google_tts_api_key:
            raise SynthesisFailed("Google TTS API key not configured")

        self._api_key = settings.google_tts_api_key
        self._url = f"{settings.google_tts_base_url.rstrip('/')}/text:synthesize"
        self._timeout = settings.synthesis_timeout
        self._transport = transport

    async def synthesize(self, request: SynthesisRequest) -> SynthesizedAudio:
        """Synthesize MP3 audio through the REST API.

        Args:
            request: Text and voice parameters.

        Returns:
            MP3 audio.

        Raises:
            SynthesisFailed: If the API call fails or returns no audio.
        """
        voice: dict[str, str] = {
            "languageCode": request.language_code,
            "ssmlGender": SSML_GENDER_MAPPING[request.gender],
        }
        if request.voice_name:
            voice["name"] = request.voice_name

        payload = {
            "input": {"text": request.text},
            "voice": voice,
            "audioConfig": {"audioEncoding": "MP3"},
        }
        logger.debug("Requesting Google TTS voice %s", voice.get("name", voice["languageCode"]))

        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.post(self._url, params={"key": self._api_key}, json=payload)
        except httpx.HTTPError as e:
            raise SynthesisFailed(f"Google TTS request failed: {e}") from e

        if response.status_code != 200:
            raise SynthesisFailed(f"Google TTS API error: {self._error_message(response)}")

        try:
            encoded = response.json()["audioContent"]
            content = base64.b64decode(encoded)
        except (ValueError, KeyError, TypeError) as e:
            raise SynthesisFailed(f"Google TTS returned no audio content: {e}") from e

        if not content:
            raise SynthesisFailed("Google TTS returned empty audio content")

        logger.info("Google TTS produced %d bytes", len(content))
        return SynthesizedAudio(
            content=content,
            content_type=ContentTypes.MP3,
            extension=AudioExtensions.MP3,
        )

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        """Extract the API error message from a failed response."""
        try:
            return response.json().get("error", {}).get("message") or f"HTTP {response.status_code}"
        except ValueError:
            return response.text or f"HTTP {response.status_code}"


class EdgeSynthesizer:
    """Synthesizer using Microsoft Edge TTS (cloud-based).

    Requires internet connection. Free but subject to rate limits.
    """

    def __init__(self, settings: "Settings"):
        """Initialize the Edge TTS synthesizer.

        Args:
            settings: Application settings.
        """
        self._default_voice = settings.edge_default_voice

    def resolve_voice(self, request: SynthesisRequest) -> str:
        """Pick the Edge voice for a request.

        Edge voice names pass through; anything else is matched on language
        and gender, then falls back to the configured default.
        """
        if request.voice_name and request.voice_name.endswith("Neural"):
            return request.voice_name
        return EDGE_VOICE_MAPPING.get((request.language_code, request.gender), self._default_voice)

    async def synthesize(self, request: SynthesisRequest) -> SynthesizedAudio:
        """Synthesize MP3 audio with Edge TTS.

        Args:
            request: Text and voice parameters.

        Returns:
            MP3 audio.

        Raises:
            SynthesisFailed: If generation fails.
        """
        voice = self.resolve_voice(request)
        logger.info("Generating Edge TTS (%s) for: %s...", voice, request.text[:30])

        try:
            import edge_tts

            communicate = edge_tts.Communicate(request.text, voice)
            buffer = bytearray()
            async for chunk in communicate.stream():
                if chunk["type"] == "audio":
                    buffer.extend(chunk["data"])
        except ImportError as e:
            raise SynthesisFailed(
                "edge-tts library not available. Install with: pip install edge-tts"
            ) from e
        except Exception as e:
            raise SynthesisFailed(f"Edge TTS generation failed: {e}") from e

        if not buffer:
            raise SynthesisFailed(f"Edge TTS returned no audio for voice {voice}")

        return SynthesizedAudio(
            content=bytes(buffer),
            content_type=ContentTypes.MP3,
            extension=AudioExtensions.MP3,
        )
