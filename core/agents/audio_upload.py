"""Audio upload agent."""

import time
import uuid

from core.constants import GENERATIONS_PREFIX
from core.exceptions import StorageFailed
from core.models import AudioUpload, StoredAudio
from core.protocols.object_storage import IObjectStorage

from .base import BaseAgent


def object_name_for(extension: str) -> str:
    """Build a unique, timestamp-addressed object name.

    Args:
        extension: File extension without dot.

    Returns:
        Name of the form ``generations/<epoch_ms>_<random hex>.<extension>``.
    """
    return f"{GENERATIONS_PREFIX}/{int(time.time() * 1000)}_{uuid.uuid4().hex[:12]}.{extension}"


class UploadAgent(BaseAgent[AudioUpload, StoredAudio]):
    """Agent that publishes synthesized audio to object storage."""

    failure_error = StorageFailed

    def __init__(
        self,
        *,
        storage: IObjectStorage,
        max_retries: int = 1,
        timeout: float | None = None,
    ):
        """Initialize the upload agent.

        Args:
            storage: Object store receiving the audio.
            max_retries: Maximum retry attempts.
            timeout: Seconds allowed per upload attempt.
        """
        super().__init__(max_retries=max_retries, timeout=timeout)
        self._storage = storage

    async def _execute(self, upload: AudioUpload) -> StoredAudio:
        """Upload the audio under its object name."""
        url = await self._storage.put(upload.name, upload.audio.content, upload.audio.content_type)
        self.logger.info("Uploaded %s -> %s", upload.name, url)
        return StoredAudio(name=upload.name, url=url)

    async def discard(self, name: str) -> None:
        """Best-effort removal of an object whose generation was abandoned."""
        try:
            await self._storage.delete(name)
        except StorageFailed as e:
            self.logger.warning("Could not delete orphaned object %s: %s", name, e)
