"""FastAPI application main module."""

import logging
import mimetypes
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, HTTPException, Path, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.dependencies import (
    ServiceContainer,
    create_container,
    get_catalog,
    get_container,
    get_orchestrator,
    get_sessions,
    get_settings,
)
from app.schemas import (
    CreateSessionRequest,
    ErrorResponse,
    GenerateRequest,
    GenerateResponse,
    HealthResponse,
    HistoryResponse,
    SessionStatusResponse,
    SessionTokenResponse,
    VoiceListResponse,
)
from app.security import setup_rate_limiter, verify_api_key
from config.settings import Settings
from core.catalog import VoiceCatalog
from core.constants import MAX_ROW_ID
from core.exceptions import StorageFailed, VoiceStudioError
from core.models import VoiceProfile
from core.orchestrator import GenerationOrchestrator
from core.services.storage import LocalObjectStorage
from core.sessions import SessionManager

logger = logging.getLogger(__name__)

API_VERSION = "0.1.0"

# HTTP status for each domain error kind
ERROR_STATUS: dict[str, int] = {
    "storage_unavailable": status.HTTP_503_SERVICE_UNAVAILABLE,
    "session_not_found": status.HTTP_404_NOT_FOUND,
    "invalid_session": status.HTTP_404_NOT_FOUND,
    "quota_exceeded": status.HTTP_429_TOO_MANY_REQUESTS,
    "profile_not_found": status.HTTP_404_NOT_FOUND,
    "invalid_input": 422,
    "synthesis_failed": status.HTTP_502_BAD_GATEWAY,
    "storage_failed": status.HTTP_502_BAD_GATEWAY,
}

# Error kind for each framework-level HTTP status
HTTP_ERROR_KINDS: dict[int, str] = {
    status.HTTP_401_UNAUTHORIZED: "unauthorized",
    status.HTTP_403_FORBIDDEN: "forbidden",
    status.HTTP_404_NOT_FOUND: "not_found",
    status.HTTP_405_METHOD_NOT_ALLOWED: "method_not_allowed",
}

_ERROR_RESPONSES = {
    code: {"model": ErrorResponse}
    for code in (401, 403, 404, 422, 429, 502, 503)
}


def _error_response(
    kind: str,
    message: str,
    status_code: int,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": {"kind": kind, "message": message}},
        headers=headers,
    )


def create_app(
    settings: Settings | None = None,
    *,
    synthesizer=None,
    storage=None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Optional settings override.
        synthesizer: Optional synthesizer override (tests, embedding).
        storage: Optional object storage override.

    Returns:
        Configured application. Components are built when the lifespan
        starts and closed when it ends.
    """
    settings = settings or get_settings()

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan handler for startup and shutdown."""
        logger.info("Starting VoiceStudio API")
        logger.info("Synthesis Provider: %s", settings.synthesis_provider.value)
        logger.info("Storage Backend: %s", settings.storage_backend.value)
        logger.info("API Key Auth: %s", "enabled" if settings.api_key_enabled else "disabled")

        app.state.container = create_container(settings, synthesizer=synthesizer, storage=storage)

        yield

        logger.info("Shutting down VoiceStudio API")
        app.state.container.close()

    app = FastAPI(
        title="VoiceStudio",
        description="Text-to-speech generation with per-session quotas",
        version=API_VERSION,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.settings = settings

    setup_rate_limiter(app, settings)

    if settings.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )
        logger.info("CORS enabled for origins: %s", settings.cors_origins)

    _register_exception_handlers(app)
    _register_routes(app)
    return app


def _register_exception_handlers(app: FastAPI) -> None:
    """Route every failure through the common error envelope."""

    @app.exception_handler(VoiceStudioError)
    async def domain_exception_handler(request: Request, exc: VoiceStudioError) -> JSONResponse:
        """Translate domain errors into typed error responses."""
        status_code = ERROR_STATUS.get(exc.kind, status.HTTP_500_INTERNAL_SERVER_ERROR)
        logger.info("%s %s -> %s: %s", request.method, request.url.path, exc.kind, exc.message)
        return _error_response(exc.kind, exc.message, status_code)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        """Report malformed requests with the common error envelope."""
        errors = exc.errors()
        message = "; ".join(
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in errors
        )
        return _error_response("invalid_input", message or "Invalid request", 422)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        """Wrap framework HTTP errors (auth, unknown routes) in the error envelope."""
        kind = HTTP_ERROR_KINDS.get(exc.status_code, "http_error")
        return _error_response(kind, str(exc.detail), exc.status_code, headers=exc.headers)

    @app.exception_handler(RateLimitExceeded)
    def rate_limit_exception_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
        """Report a client over its request rate, distinct from quota exhaustion."""
        logger.warning("Rate limit exceeded for %s: %s", request.client, exc.detail)
        return _error_response(
            "rate_limited",
            f"Rate limit exceeded: {exc.detail}",
            status.HTTP_429_TOO_MANY_REQUESTS,
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Handle unexpected exceptions."""
        logger.exception("Unhandled exception: %s", exc)
        return _error_response("internal_error", "An unexpected error occurred", 500)


def _register_routes(app: FastAPI) -> None:
    """Register the API endpoints directly on the application.

    Handlers that only touch the database are plain functions so FastAPI
    runs them in its threadpool.
    """

    @app.get("/", include_in_schema=False)
    async def root():
        """Root endpoint pointing at the docs."""
        return {"message": "VoiceStudio API", "docs": "/docs"}

    @app.get("/health", response_model=HealthResponse, tags=["System"])
    def health_check(container: ServiceContainer = Depends(get_container)) -> HealthResponse:
        """Check API health status.

        Reports the database as unavailable instead of failing.
        """
        return HealthResponse(
            status="healthy",
            version=API_VERSION,
            database="ok" if container.database.ping() else "unavailable",
            synthesis_provider=container.settings.synthesis_provider.value,
        )

    @app.get("/voices", response_model=VoiceListResponse, tags=["Voices"])
    def list_voices(catalog: VoiceCatalog = Depends(get_catalog)) -> VoiceListResponse:
        """List all voice profiles.

        Returns an empty list while the database is unreachable.
        """
        voices = catalog.list_profiles()
        return VoiceListResponse(voices=voices, total=len(voices))

    @app.get(
        "/voices/{profile_id}",
        response_model=VoiceProfile,
        responses=_ERROR_RESPONSES,
        tags=["Voices"],
    )
    def get_voice(
        profile_id: int = Path(..., ge=1, le=MAX_ROW_ID),
        catalog: VoiceCatalog = Depends(get_catalog),
    ) -> VoiceProfile:
        """Get one voice profile."""
        return catalog.get_profile(profile_id)

    @app.post(
        "/sessions",
        response_model=SessionTokenResponse,
        status_code=status.HTTP_201_CREATED,
        responses=_ERROR_RESPONSES,
        tags=["Sessions"],
    )
    def create_session(
        request: CreateSessionRequest,
        sessions: SessionManager = Depends(get_sessions),
        _api_key: str = Depends(verify_api_key),
    ) -> SessionTokenResponse:
        """Open a quota-tracked session for an authenticated user.

        Args:
            request: Body carrying the user ID.
            sessions: Session manager (injected).
            _api_key: Validated API key (injected).

        Returns:
            The session token and its expiry.
        """
        issued = sessions.create_session(request.user_id)
        return SessionTokenResponse(token=issued.token, expires_at=issued.expires_at)

    @app.get(
        "/sessions/{token}",
        response_model=SessionStatusResponse,
        responses=_ERROR_RESPONSES,
        tags=["Sessions"],
    )
    def get_session_status(
        token: str,
        sessions: SessionManager = Depends(get_sessions),
    ) -> SessionStatusResponse:
        """Get the remaining quota of a session."""
        session_status = sessions.get_session(token)
        return SessionStatusResponse(
            generation_count=session_status.generation_count,
            remaining=session_status.remaining,
            can_generate=session_status.can_generate,
            expires_at=session_status.expires_at,
        )

    @app.get(
        "/sessions/{token}/history",
        response_model=HistoryResponse,
        responses=_ERROR_RESPONSES,
        tags=["Sessions"],
    )
    def get_session_history(
        token: str,
        orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
    ) -> HistoryResponse:
        """List the generation attempts made with a session."""
        records = orchestrator.session_history(token)
        return HistoryResponse(records=records, total=len(records))

    @app.post(
        "/generate",
        response_model=GenerateResponse,
        responses=_ERROR_RESPONSES,
        tags=["Generation"],
    )
    async def generate(
        request: GenerateRequest,
        orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
        _api_key: str = Depends(verify_api_key),
    ) -> GenerateResponse:
        """Generate speech with a voice profile, consuming one session generation.

        Args:
            request: Session token, voice profile and text.
            orchestrator: Generation orchestrator (injected).
            _api_key: Validated API key (injected).

        Returns:
            Audio location and the voice profile used.
        """
        logger.info(
            "Received generation request: voice %d, %d chars",
            request.voice_profile_id,
            len(request.text),
        )
        result = await orchestrator.generate(request.session_token, request.voice_profile_id, request.text)
        return GenerateResponse(
            audio_url=result.audio_url,
            voice_profile=result.voice_profile,
            record_id=result.record_id,
        )

    @app.get("/audio/{name:path}", responses=_ERROR_RESPONSES, tags=["Generation"])
    async def download_audio(
        name: str,
        container: ServiceContainer = Depends(get_container),
    ) -> FileResponse:
        """Download locally stored audio.

        Raises:
            HTTPException: If local storage is not in use or the file is missing.
        """
        storage = container.storage
        if not isinstance(storage, LocalObjectStorage):
            raise HTTPException(status_code=404, detail="Audio is not served by this API")

        try:
            path = storage.resolve(name)
        except StorageFailed:
            raise HTTPException(status_code=404, detail=f"Audio not found: {name}") from None
        if not path.is_file():
            raise HTTPException(status_code=404, detail=f"Audio not found: {name}")

        media_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
        return FileResponse(path=path, media_type=media_type, filename=path.name)


app = create_app()
