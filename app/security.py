"""Security middleware and dependencies for VoiceStudio API."""

import logging

from fastapi import FastAPI, HTTPException, Request, Security, status
from fastapi.security import APIKeyHeader
from slowapi import Limiter
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

from config.settings import Settings

logger = logging.getLogger(__name__)

# API Key header configuration
API_KEY_HEADER = APIKeyHeader(name="X-API-Key", auto_error=False)


async def verify_api_key(
    request: Request,
    api_key: str | None = Security(API_KEY_HEADER),
) -> str:
    """Verify the API key from request header.

    If API key authentication is disabled, returns "anonymous".
    Otherwise, validates the provided key against the configured key.

    Args:
        request: The incoming request.
        api_key: The API key from the X-API-Key header.

    Returns:
        The validated API key or "anonymous" if auth is disabled.

    Raises:
        HTTPException: If API key is missing or invalid.
    """
    settings: Settings = request.app.state.settings

    if not settings.api_key_enabled:
        return "anonymous"

    if not api_key:
        logger.warning("API key missing in request")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="API key is required. Provide X-API-Key header.",
            headers={"WWW-Authenticate": "ApiKey"},
        )

    if api_key != settings.api_key:
        logger.warning("Invalid API key attempt")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid API key",
        )

    logger.debug("API key validated successfully")
    return api_key


def create_rate_limiter(settings: Settings) -> Limiter:
    """Create the per-client request rate limiter.

    Args:
        settings: Application settings.

    Returns:
        Configured Limiter instance.
    """
    return Limiter(
        key_func=get_remote_address,
        default_limits=[f"{settings.rate_limit_per_minute}/minute"],
        enabled=settings.rate_limit_enabled,
    )


def setup_rate_limiter(app: FastAPI, settings: Settings) -> None:
    """Configure rate limiter on the FastAPI app.

    The middleware applies the default limit to routes registered directly
    on the app; ``RateLimitExceeded`` is rendered by the app's error handlers.

    Args:
        app: The FastAPI application instance.
        settings: Application settings.
    """
    app.state.limiter = create_rate_limiter(settings)
    app.add_middleware(SlowAPIMiddleware)
    if settings.rate_limit_enabled:
        logger.info("Rate limiting enabled: %d/minute", settings.rate_limit_per_minute)
