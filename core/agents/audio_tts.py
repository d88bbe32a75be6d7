"""TTS audio synthesis agent."""

from core.exceptions import SynthesisFailed
from core.models import SynthesisRequest, SynthesizedAudio
from core.protocols.synthesizer import ISynthesizer

from .base import BaseAgent


class TTSAgent(BaseAgent[SynthesisRequest, SynthesizedAudio]):
    """Agent that turns text into audio through the injected synthesizer."""

    failure_error = SynthesisFailed

    def __init__(
        self,
        *,
        synthesizer: ISynthesizer,
        max_retries: int = 1,
        timeout: float | None = None,
    ):
        """Initialize the TTS agent.

        Args:
            synthesizer: Service for generating speech audio.
            max_retries: Maximum retry attempts.
            timeout: Seconds allowed per synthesis attempt.
        """
        super().__init__(max_retries=max_retries, timeout=timeout)
        self._synthesizer = synthesizer

    async def _execute(self, request: SynthesisRequest) -> SynthesizedAudio:
        """Synthesize the request.

        Raises:
            SynthesisFailed: If the service returns no audio.
        """
        self.logger.info(
            "Synthesizing %d chars with voice %s (%s)",
            len(request.text),
            request.voice_name or "-",
            request.language_code,
        )
        audio = await self._synthesizer.synthesize(request)
        if not audio.content:
            raise SynthesisFailed("Synthesizer returned empty audio")

        self.logger.info("Synthesized %d bytes of %s", len(audio.content), audio.content_type)
        return audio
