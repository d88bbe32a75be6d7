"""Pytest configuration and shared fixtures."""

from collections.abc import Iterator
from pathlib import Path

import pytest

from config.settings import Settings, StorageBackend, SynthesisProvider
from config.voice_loader import load_seed_voices
from core.agents.audio_tts import TTSAgent
from core.agents.audio_upload import UploadAgent
from core.catalog import VoiceCatalog
from core.history import GenerationHistoryLog
from core.orchestrator import GenerationOrchestrator
from core.persistence.database import Database
from core.services.storage import LocalObjectStorage
from core.services.tts import MockSynthesizer
from core.sessions import SessionManager


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    """Provide test settings backed by temp paths."""
    return Settings(
        database_url=f"sqlite:///{tmp_path / 'voice_studio.db'}",
        storage_path=str(tmp_path / "output"),
        public_base_url="http://testserver",
        synthesis_provider=SynthesisProvider.MOCK,
        storage_backend=StorageBackend.LOCAL,
        generation_quota=2,
        max_text_length=500,
        max_retries=0,
        synthesis_timeout=5.0,
        storage_timeout=5.0,
        rate_limit_enabled=False,
    )


@pytest.fixture
def database(test_settings: Settings) -> Iterator[Database]:
    """Provide a fresh database with all tables created."""
    db = Database(test_settings.database_url)
    db.create_all()
    yield db
    db.close()


@pytest.fixture
def catalog(database: Database) -> VoiceCatalog:
    """Provide a catalog seeded with the bundled voices."""
    voice_catalog = VoiceCatalog(database)
    voice_catalog.seed(load_seed_voices())
    return voice_catalog


@pytest.fixture
def sessions(database: Database, test_settings: Settings) -> SessionManager:
    """Provide a session manager with the test quota."""
    return SessionManager(database, quota=test_settings.generation_quota)


@pytest.fixture
def history(database: Database) -> GenerationHistoryLog:
    """Provide a generation history log."""
    return GenerationHistoryLog(database)


@pytest.fixture
def synthesizer() -> MockSynthesizer:
    """Provide a mock synthesizer that counts its calls."""
    return MockSynthesizer()


@pytest.fixture
def storage(test_settings: Settings) -> LocalObjectStorage:
    """Provide local object storage under the temp directory."""
    return LocalObjectStorage(test_settings)


@pytest.fixture
def orchestrator(
    database: Database,
    catalog: VoiceCatalog,
    sessions: SessionManager,
    history: GenerationHistoryLog,
    synthesizer: MockSynthesizer,
    storage: LocalObjectStorage,
    test_settings: Settings,
) -> GenerationOrchestrator:
    """Provide an orchestrator wired to the mock synthesizer and local storage."""
    return GenerationOrchestrator(
        database=database,
        catalog=catalog,
        sessions=sessions,
        history=history,
        tts_agent=TTSAgent(synthesizer=synthesizer, max_retries=0, timeout=5.0),
        upload_agent=UploadAgent(storage=storage, max_retries=0, timeout=5.0),
        max_text_length=test_settings.max_text_length,
    )
