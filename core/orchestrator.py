"""Generation orchestrator for quota-bound speech synthesis."""

import asyncio
import logging
from typing import TYPE_CHECKING

from core.agents.audio_upload import object_name_for
from core.exceptions import InvalidInput, InvalidSession, QuotaExceeded, SessionNotFound, StorageUnavailable
from core.models import (
    AudioUpload,
    GenerationRecord,
    GenerationResult,
    SessionStatus,
    StoredAudio,
    SynthesisRequest,
    VoiceProfile,
)

if TYPE_CHECKING:
    from core.agents.audio_tts import TTSAgent
    from core.agents.audio_upload import UploadAgent
    from core.catalog import VoiceCatalog
    from core.history import GenerationHistoryLog
    from core.persistence.database import Database
    from core.sessions import SessionManager


class GenerationOrchestrator:
    """Orchestrates a single text-to-speech generation.

    Stages:
    1. Session resolution and quota pre-check
    2. Voice profile lookup and text validation
    3. Synthesis (TTS agent)
    4. Upload (upload agent)
    5. Quota charge and history completion in one transaction

    The session counter is charged only in stage 5, by the conditional
    increment, so a failed or abandoned generation never consumes quota.
    Requests rejected before stage 3 leave no history; later failures leave
    a ``failed`` record.

    Database work runs in worker threads so that queries never block the
    event loop while other generations await their collaborators.
    """

    def __init__(
        self,
        *,
        database: "Database",
        catalog: "VoiceCatalog",
        sessions: "SessionManager",
        history: "GenerationHistoryLog",
        tts_agent: "TTSAgent",
        upload_agent: "UploadAgent",
        max_text_length: int = 5000,
    ):
        """Initialize the orchestrator with its collaborators.

        Args:
            database: Database shared by sessions and history.
            catalog: Voice profile catalog.
            sessions: Session manager owning the quota counters.
            history: Generation history log.
            tts_agent: Agent wrapping the speech synthesizer.
            upload_agent: Agent wrapping the object store.
            max_text_length: Maximum input text length in characters.
        """
        self._db = database
        self._catalog = catalog
        self._sessions = sessions
        self._history = history
        self._tts_agent = tts_agent
        self._upload_agent = upload_agent
        self._max_text_length = max_text_length
        self._logger = logging.getLogger(self.__class__.__name__)

    @property
    def max_text_length(self) -> int:
        return self._max_text_length

    def validate_text(self, text: str) -> None:
        """Check that text is non-blank and within the length limit.

        Raises:
            InvalidInput: If the text is empty or too long.
        """
        if not text or not text.strip():
            raise InvalidInput("Text must not be empty", length=len(text or ""))
        if len(text) > self._max_text_length:
            raise InvalidInput(
                f"Text exceeds maximum length of {self._max_text_length} characters "
                f"(got {len(text)})",
                length=len(text),
            )

    def resolve_session(self, token: str) -> SessionStatus:
        """Resolve a token for generation.

        Raises:
            InvalidSession: If the token is unknown or expired.
        """
        try:
            return self._sessions.get_session(token)
        except SessionNotFound as e:
            raise InvalidSession("Invalid session", token=token) from e

    def session_history(self, token: str) -> list[GenerationRecord]:
        """List the generation attempts made with a session.

        Raises:
            SessionNotFound: If the token is unknown or expired.
        """
        status = self._sessions.get_session(token)
        return self._history.list_for_session(status.session_id)

    async def generate(self, token: str, voice_profile_id: int, text: str) -> GenerationResult:
        """Generate speech for text with a voice profile, charging the session.

        Args:
            token: Session token.
            voice_profile_id: Voice profile to speak with.
            text: Text to synthesize.

        Returns:
            The audio location and the profile used.

        Raises:
            InvalidSession: If the token is unknown or expired.
            QuotaExceeded: If the session has no generations left.
            ProfileNotFound: If the voice profile does not exist.
            InvalidInput: If the text is empty or too long.
            SynthesisFailed: If synthesis fails or times out.
            StorageFailed: If the upload fails or times out.
            StorageUnavailable: If the database is unreachable.
        """
        status = await asyncio.to_thread(self.resolve_session, token)
        if not status.can_generate:
            self._logger.info("Session %d denied: quota of %d reached", status.session_id, self._sessions.quota)
            raise QuotaExceeded(
                "Generation limit reached",
                session_id=status.session_id,
                quota=self._sessions.quota,
            )

        profile = await asyncio.to_thread(self._catalog.get_profile, voice_profile_id)
        self.validate_text(text)

        record_id = await asyncio.to_thread(
            self._history.open_record,
            user_id=status.user_id,
            session_id=status.session_id,
            voice_profile_id=profile.id,
            text=text,
        )
        self._logger.info(
            "Generation %d started: session %d, voice %s",
            record_id,
            status.session_id,
            profile.name,
        )

        stored: StoredAudio | None = None
        try:
            audio = await self._tts_agent.run(self._synthesis_request(profile, text))
            stored = await self._upload_agent.run(
                AudioUpload(name=object_name_for(audio.extension), audio=audio)
            )
        except (Exception, asyncio.CancelledError) as e:
            await self._abandon(record_id, stored, e)
            raise

        duration = round(audio.duration_seconds) if audio.duration_seconds is not None else None
        commit = asyncio.ensure_future(
            asyncio.to_thread(self._commit, status.session_id, record_id, stored.url, duration)
        )
        try:
            await asyncio.shield(commit)
        except asyncio.CancelledError:
            # The transaction runs to completion in its thread; only undo it if it failed
            await asyncio.wait({commit})
            if commit.exception() is not None:
                await self._abandon(record_id, stored, commit.exception())
            raise
        except Exception as e:
            await self._abandon(record_id, stored, e)
            raise

        self._logger.info("Generation %d completed: %s", record_id, stored.url)
        return GenerationResult(audio_url=stored.url, voice_profile=profile, record_id=record_id)

    @staticmethod
    def _synthesis_request(profile: VoiceProfile, text: str) -> SynthesisRequest:
        return SynthesisRequest(
            text=text,
            language_code=profile.language_code,
            gender=profile.gender,
            voice_name=profile.tts_voice_id or None,
        )

    def _commit(self, session_id: int, record_id: int, audio_url: str, duration: int | None) -> None:
        """Charge the session and complete the record atomically.

        Raises:
            QuotaExceeded: If a concurrent request took the last slot.
        """
        with self._db.session() as db_session:
            if not self._sessions.increment_counter(session_id, db_session=db_session):
                raise QuotaExceeded(
                    "Generation limit reached",
                    session_id=session_id,
                    quota=self._sessions.quota,
                )
            self._history.complete(record_id, audio_url=audio_url, duration=duration, db_session=db_session)

    async def _abandon(self, record_id: int, stored: StoredAudio | None, error: BaseException) -> None:
        """Delete uploaded audio, if any, and mark the record failed."""
        if stored is not None:
            await self._upload_agent.discard(stored.name)
        await asyncio.to_thread(self._record_failure, record_id, error)

    def _record_failure(self, record_id: int, error: BaseException) -> None:
        message = str(error) or type(error).__name__
        self._logger.warning("Generation %d failed: %s", record_id, message)
        try:
            self._history.fail(record_id, message)
        except StorageUnavailable as e:
            self._logger.error("Could not mark generation %d failed: %s", record_id, e)
