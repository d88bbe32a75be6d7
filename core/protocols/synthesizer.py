"""Protocol for speech synthesizer interface."""

from typing import Protocol

from core.models import SynthesisRequest, SynthesizedAudio


class ISynthesizer(Protocol):
    """Interface for Text-to-Speech synthesis services."""

    async def synthesize(self, request: SynthesisRequest) -> SynthesizedAudio:
        """Convert text to encoded audio.

        Args:
            request: Text plus the voice parameters of the chosen profile.

        Returns:
            The encoded audio and its content type.

        Raises:
            SynthesisFailed: If the service rejects or fails the request.
        """
        ...
