"""Integration tests for the generation orchestrator.

These run the full path against a temporary SQLite database and local
object storage, with synthesis replaced by in-process fakes.
"""

import asyncio
import threading
from unittest.mock import AsyncMock

import pytest

from core.agents.audio_tts import TTSAgent
from core.agents.audio_upload import UploadAgent
from core.catalog import VoiceCatalog
from core.exceptions import (
    InvalidInput,
    InvalidSession,
    ProfileNotFound,
    QuotaExceeded,
    StorageFailed,
    SynthesisFailed,
)
from core.history import GenerationHistoryLog
from core.models import GenerationStatus, SynthesisRequest, SynthesizedAudio
from core.orchestrator import GenerationOrchestrator
from core.persistence.database import Database
from core.services.storage import LocalObjectStorage
from core.services.tts import MockSynthesizer
from core.sessions import SessionManager


class YieldingSynthesizer(MockSynthesizer):
    """Mock synthesizer that yields to the event loop before answering."""

    async def synthesize(self, request: SynthesisRequest) -> SynthesizedAudio:
        await asyncio.sleep(0)
        return await super().synthesize(request)


class SlowSynthesizer(MockSynthesizer):
    """Mock synthesizer that never answers within a short deadline."""

    async def synthesize(self, request: SynthesisRequest) -> SynthesizedAudio:
        await asyncio.sleep(5)
        return await super().synthesize(request)


class SlotStealingSynthesizer(MockSynthesizer):
    """Consumes the session's last slot while synthesis is in flight."""

    def __init__(self, sessions: SessionManager, session_id: int):
        super().__init__()
        self._sessions = sessions
        self._session_id = session_id

    async def synthesize(self, request: SynthesisRequest) -> SynthesizedAudio:
        assert self._sessions.increment_counter(self._session_id)
        return await super().synthesize(request)


def build_orchestrator(
    database: Database,
    catalog: VoiceCatalog,
    sessions: SessionManager,
    history: GenerationHistoryLog,
    *,
    synthesizer,
    storage,
    timeout: float = 5.0,
) -> GenerationOrchestrator:
    return GenerationOrchestrator(
        database=database,
        catalog=catalog,
        sessions=sessions,
        history=history,
        tts_agent=TTSAgent(synthesizer=synthesizer, max_retries=0, timeout=timeout),
        upload_agent=UploadAgent(storage=storage, max_retries=0, timeout=timeout),
        max_text_length=500,
    )


def stored_files(storage: LocalObjectStorage) -> list[str]:
    return sorted(p.name for p in storage.root.rglob("*") if p.is_file())


@pytest.fixture
def token(sessions: SessionManager) -> str:
    """Issue a fresh session token."""
    return sessions.create_session(user_id=42).token


@pytest.fixture
def profile_id(catalog: VoiceCatalog) -> int:
    """ID of the first seeded voice profile."""
    return catalog.list_profiles()[0].id


class TestGenerationFlow:
    """End-to-end quota behavior of a session."""

    @pytest.mark.asyncio
    async def test_two_generations_then_quota_exceeded(
        self,
        orchestrator: GenerationOrchestrator,
        sessions: SessionManager,
        history: GenerationHistoryLog,
        synthesizer: MockSynthesizer,
        storage: LocalObjectStorage,
        token: str,
        profile_id: int,
    ) -> None:
        """Test a session producing two clips and then being refused."""
        first = await orchestrator.generate(token, profile_id, "Hello world")
        assert sessions.get_session(token).remaining == 1

        second = await orchestrator.generate(token, profile_id, "Second clip")
        status = sessions.get_session(token)
        assert status.generation_count == 2
        assert status.can_generate is False

        with pytest.raises(QuotaExceeded):
            await orchestrator.generate(token, profile_id, "Third clip")

        assert synthesizer.calls == 2
        assert first.audio_url != second.audio_url
        assert first.audio_url.startswith("http://testserver/audio/generations/")
        assert first.voice_profile.id == profile_id
        assert len(stored_files(storage)) == 2

        records = history.list_for_session(status.session_id)
        assert [r.status for r in records] == [GenerationStatus.COMPLETED] * 2
        assert [r.audio_url for r in records] == [first.audio_url, second.audio_url]
        assert records[0].id == first.record_id
        assert records[0].user_id == 42
        assert records[0].duration == 1

    @pytest.mark.asyncio
    async def test_session_history(
        self, orchestrator: GenerationOrchestrator, token: str, profile_id: int
    ) -> None:
        result = await orchestrator.generate(token, profile_id, "Hello world")

        records = orchestrator.session_history(token)
        assert [r.id for r in records] == [result.record_id]


class TestRejectedRequests:
    """Requests refused before synthesis leave no trace."""

    @pytest.mark.asyncio
    async def test_unknown_token(
        self, orchestrator: GenerationOrchestrator, synthesizer: MockSynthesizer, profile_id: int
    ) -> None:
        with pytest.raises(InvalidSession):
            await orchestrator.generate("bogus-token", profile_id, "Hello")
        assert synthesizer.calls == 0

    @pytest.mark.asyncio
    async def test_unknown_profile(
        self,
        orchestrator: GenerationOrchestrator,
        sessions: SessionManager,
        history: GenerationHistoryLog,
        synthesizer: MockSynthesizer,
        token: str,
    ) -> None:
        with pytest.raises(ProfileNotFound):
            await orchestrator.generate(token, 9999, "Hello")

        status = sessions.get_session(token)
        assert status.generation_count == 0
        assert history.list_for_session(status.session_id) == []
        assert synthesizer.calls == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize("text", ["", "   \n\t", "x" * 501])
    async def test_invalid_text(
        self,
        orchestrator: GenerationOrchestrator,
        sessions: SessionManager,
        history: GenerationHistoryLog,
        synthesizer: MockSynthesizer,
        token: str,
        profile_id: int,
        text: str,
    ) -> None:
        with pytest.raises(InvalidInput):
            await orchestrator.generate(token, profile_id, text)

        status = sessions.get_session(token)
        assert status.generation_count == 0
        assert history.list_for_session(status.session_id) == []
        assert synthesizer.calls == 0

    @pytest.mark.asyncio
    async def test_text_at_limit_accepted(
        self, orchestrator: GenerationOrchestrator, token: str, profile_id: int
    ) -> None:
        result = await orchestrator.generate(token, profile_id, "x" * 500)
        assert result.audio_url

    @pytest.mark.asyncio
    async def test_exhausted_session_never_calls_synthesizer(
        self,
        orchestrator: GenerationOrchestrator,
        sessions: SessionManager,
        synthesizer: MockSynthesizer,
        token: str,
        profile_id: int,
    ) -> None:
        session_id = sessions.get_session(token).session_id
        sessions.increment_counter(session_id)
        sessions.increment_counter(session_id)

        with pytest.raises(QuotaExceeded) as exc_info:
            await orchestrator.generate(token, profile_id, "Hello")
        assert exc_info.value.quota == 2
        assert synthesizer.calls == 0


class TestFailedGenerations:
    """Failures after validation are recorded and never charged."""

    @pytest.mark.asyncio
    async def test_synthesis_failure(
        self,
        database: Database,
        catalog: VoiceCatalog,
        sessions: SessionManager,
        history: GenerationHistoryLog,
        storage: LocalObjectStorage,
        token: str,
        profile_id: int,
    ) -> None:
        synthesizer = AsyncMock()
        synthesizer.synthesize.side_effect = RuntimeError("voice service down")
        orchestrator = build_orchestrator(
            database, catalog, sessions, history, synthesizer=synthesizer, storage=storage
        )

        with pytest.raises(SynthesisFailed):
            await orchestrator.generate(token, profile_id, "Hello")

        status = sessions.get_session(token)
        assert status.generation_count == 0
        (record,) = history.list_for_session(status.session_id)
        assert record.status == GenerationStatus.FAILED
        assert "voice service down" in record.error_message
        assert stored_files(storage) == []

    @pytest.mark.asyncio
    async def test_synthesis_timeout(
        self,
        database: Database,
        catalog: VoiceCatalog,
        sessions: SessionManager,
        history: GenerationHistoryLog,
        storage: LocalObjectStorage,
        token: str,
        profile_id: int,
    ) -> None:
        orchestrator = build_orchestrator(
            database, catalog, sessions, history,
            synthesizer=SlowSynthesizer(), storage=storage, timeout=0.05,
        )

        with pytest.raises(SynthesisFailed):
            await orchestrator.generate(token, profile_id, "Hello")

        status = sessions.get_session(token)
        assert status.generation_count == 0
        (record,) = history.list_for_session(status.session_id)
        assert record.status == GenerationStatus.FAILED

    @pytest.mark.asyncio
    async def test_upload_failure(
        self,
        database: Database,
        catalog: VoiceCatalog,
        sessions: SessionManager,
        history: GenerationHistoryLog,
        token: str,
        profile_id: int,
    ) -> None:
        storage = AsyncMock()
        storage.put.side_effect = StorageFailed("bucket unreachable")
        orchestrator = build_orchestrator(
            database, catalog, sessions, history, synthesizer=MockSynthesizer(), storage=storage
        )

        with pytest.raises(StorageFailed):
            await orchestrator.generate(token, profile_id, "Hello")

        status = sessions.get_session(token)
        assert status.generation_count == 0
        (record,) = history.list_for_session(status.session_id)
        assert record.status == GenerationStatus.FAILED
        assert record.audio_url is None
        storage.delete.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_losing_the_last_slot_discards_audio(
        self,
        database: Database,
        catalog: VoiceCatalog,
        sessions: SessionManager,
        history: GenerationHistoryLog,
        storage: LocalObjectStorage,
        token: str,
        profile_id: int,
    ) -> None:
        """Test a request whose slot is taken between pre-check and commit."""
        session_id = sessions.get_session(token).session_id
        sessions.increment_counter(session_id)
        orchestrator = build_orchestrator(
            database, catalog, sessions, history,
            synthesizer=SlotStealingSynthesizer(sessions, session_id), storage=storage,
        )

        with pytest.raises(QuotaExceeded):
            await orchestrator.generate(token, profile_id, "Hello")

        assert sessions.get_session(token).generation_count == 2
        (record,) = history.list_for_session(session_id)
        assert record.status == GenerationStatus.FAILED
        assert record.audio_url is None
        assert stored_files(storage) == []


class TestConcurrentGenerations:
    """Concurrent requests on one session."""

    @pytest.mark.asyncio
    async def test_concurrent_requests_never_exceed_quota(
        self,
        database: Database,
        catalog: VoiceCatalog,
        sessions: SessionManager,
        history: GenerationHistoryLog,
        storage: LocalObjectStorage,
        token: str,
        profile_id: int,
    ) -> None:
        orchestrator = build_orchestrator(
            database, catalog, sessions, history, synthesizer=YieldingSynthesizer(), storage=storage
        )

        results = await asyncio.gather(
            *(orchestrator.generate(token, profile_id, f"Clip {i}") for i in range(6)),
            return_exceptions=True,
        )

        successes = [r for r in results if not isinstance(r, BaseException)]
        failures = [r for r in results if isinstance(r, BaseException)]
        assert len(successes) == 2
        assert all(isinstance(f, QuotaExceeded) for f in failures)

        status = sessions.get_session(token)
        assert status.generation_count == 2
        completed = [
            r for r in history.list_for_session(status.session_id)
            if r.status == GenerationStatus.COMPLETED
        ]
        assert sorted(r.audio_url for r in completed) == sorted(s.audio_url for s in successes)
        assert len(stored_files(storage)) == 2

    @pytest.mark.asyncio
    async def test_database_work_leaves_event_loop_thread(
        self,
        orchestrator: GenerationOrchestrator,
        sessions: SessionManager,
        history: GenerationHistoryLog,
        token: str,
        profile_id: int,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """Test that queries run off the thread driving the event loop."""
        threads: list[int] = []

        def recording(method):
            def wrapper(*args, **kwargs):
                threads.append(threading.get_ident())
                return method(*args, **kwargs)

            return wrapper

        monkeypatch.setattr(sessions, "get_session", recording(sessions.get_session))
        monkeypatch.setattr(history, "open_record", recording(history.open_record))
        monkeypatch.setattr(sessions, "increment_counter", recording(sessions.increment_counter))

        await orchestrator.generate(token, profile_id, "Hello world")

        assert len(threads) == 3
        assert threading.get_ident() not in threads
