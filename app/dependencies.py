"""Dependency injection for FastAPI application."""

import logging
from dataclasses import dataclass
from datetime import timedelta
from functools import lru_cache
from typing import TYPE_CHECKING

from fastapi import Depends, Request

from config.settings import Settings, StorageBackend, SynthesisProvider
from config.voice_loader import load_seed_voices
from core.agents.audio_tts import TTSAgent
from core.agents.audio_upload import UploadAgent
from core.catalog import VoiceCatalog
from core.exceptions import StorageUnavailable
from core.history import GenerationHistoryLog
from core.orchestrator import GenerationOrchestrator
from core.persistence.database import Database
from core.services.storage import GCSObjectStorage, LocalObjectStorage
from core.services.tts import EdgeSynthesizer, GoogleCloudSynthesizer, MockSynthesizer
from core.sessions import SessionManager

if TYPE_CHECKING:
    from core.protocols.object_storage import IObjectStorage
    from core.protocols.synthesizer import ISynthesizer

logger = logging.getLogger(__name__)


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Returns:
        Application settings loaded from environment.
    """
    return Settings()


def _create_synthesizer(settings: Settings) -> "ISynthesizer":
    """Create the synthesizer selected in settings.

    Args:
        settings: Application settings.

    Returns:
        Configured synthesizer instance.
    """
    provider = settings.synthesis_provider
    if provider == SynthesisProvider.GOOGLE:
        logger.info("Using GoogleCloudSynthesizer")
        return GoogleCloudSynthesizer(settings)
    if provider == SynthesisProvider.EDGE:
        logger.info("Using EdgeSynthesizer")
        return EdgeSynthesizer(settings)

    logger.info("Using MockSynthesizer")
    return MockSynthesizer(settings)


def _create_storage(settings: Settings) -> "IObjectStorage":
    """Create the object store selected in settings.

    Args:
        settings: Application settings.

    Returns:
        Configured object storage instance.
    """
    if settings.storage_backend == StorageBackend.GCS:
        logger.info("Using GCSObjectStorage (bucket %s)", settings.gcs_bucket)
        return GCSObjectStorage(settings)

    logger.info("Using LocalObjectStorage at %s", settings.storage_path)
    return LocalObjectStorage(settings)


def _prepare_database(database: Database, catalog: VoiceCatalog, settings: Settings) -> None:
    """Create tables and seed the catalog, tolerating an unreachable database."""
    try:
        database.create_all()
        if settings.seed_voices_on_startup:
            catalog.seed(load_seed_voices())
    except StorageUnavailable as e:
        logger.warning("Database not available at startup, running degraded: %s", e)


@dataclass
class ServiceContainer:
    """Application-wide components, built at startup and closed at shutdown."""

    settings: Settings
    database: Database
    catalog: VoiceCatalog
    sessions: SessionManager
    history: GenerationHistoryLog
    storage: "IObjectStorage"
    orchestrator: GenerationOrchestrator

    def close(self) -> None:
        self.database.close()


def create_container(
    settings: Settings | None = None,
    *,
    synthesizer: "ISynthesizer | None" = None,
    storage: "IObjectStorage | None" = None,
) -> ServiceContainer:
    """Create all components with injected dependencies.

    Args:
        settings: Optional settings override.
        synthesizer: Optional synthesizer override.
        storage: Optional object storage override.

    Returns:
        Wired service container.
    """
    settings = settings or get_settings()

    database = Database(settings.database_url)
    catalog = VoiceCatalog(database)
    sessions = SessionManager(
        database,
        quota=settings.generation_quota,
        ttl=timedelta(hours=settings.session_ttl_hours),
    )
    history = GenerationHistoryLog(database)
    _prepare_database(database, catalog, settings)

    synthesizer = synthesizer or _create_synthesizer(settings)
    storage = storage or _create_storage(settings)

    tts_agent = TTSAgent(
        synthesizer=synthesizer,
        max_retries=settings.max_retries,
        timeout=settings.synthesis_timeout,
    )
    upload_agent = UploadAgent(
        storage=storage,
        max_retries=settings.max_retries,
        timeout=settings.storage_timeout,
    )
    orchestrator = GenerationOrchestrator(
        database=database,
        catalog=catalog,
        sessions=sessions,
        history=history,
        tts_agent=tts_agent,
        upload_agent=upload_agent,
        max_text_length=settings.max_text_length,
    )
    logger.info(
        "Services ready: quota=%d, max_text_length=%d",
        settings.generation_quota,
        settings.max_text_length,
    )

    return ServiceContainer(
        settings=settings,
        database=database,
        catalog=catalog,
        sessions=sessions,
        history=history,
        storage=storage,
        orchestrator=orchestrator,
    )


def get_container(request: Request) -> ServiceContainer:
    """Get the container built by the application lifespan."""
    return request.app.state.container


def get_catalog(container: ServiceContainer = Depends(get_container)) -> VoiceCatalog:
    return container.catalog


def get_sessions(container: ServiceContainer = Depends(get_container)) -> SessionManager:
    return container.sessions


def get_orchestrator(container: ServiceContainer = Depends(get_container)) -> GenerationOrchestrator:
    return container.orchestrator
