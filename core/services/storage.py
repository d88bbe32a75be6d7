"""Object storage implementations for generated audio."""

import asyncio
import logging
from pathlib import Path
from typing import TYPE_CHECKING
from urllib.parse import quote

import google.auth
import httpx
from google.auth.credentials import Credentials
from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request as AuthRequest
from google.oauth2 import service_account

from core.exceptions import StorageFailed

if TYPE_CHECKING:
    from config.settings import Settings

logger = logging.getLogger(__name__)

# URL path under which the API serves locally stored audio
LOCAL_AUDIO_ROUTE = "/audio"

# OAuth scope for object uploads and deletes
GCS_SCOPES = ("https://www.googleapis.com/auth/devstorage.read_write",)


class LocalObjectStorage:
    """Stores audio on the local filesystem.

    Objects are served back by the API's ``/audio/{name}`` route, so the
    returned URLs are only reachable while that API is running.
    """

    def __init__(self, settings: "Settings"):
        """Initialize local storage.

        Args:
            settings: Application settings.
        """
        self._root = Path(settings.storage_path).resolve()
        self._root.mkdir(parents=True, exist_ok=True)
        self._base_url = settings.public_base_url.rstrip("/")

    @property
    def root(self) -> Path:
        return self._root

    def resolve(self, name: str) -> Path:
        """Map an object name to a path inside the storage root.

        Raises:
            StorageFailed: If the name escapes the storage root.
        """
        path = (self._root / name).resolve()
        if not path.is_relative_to(self._root) or path == self._root:
            raise StorageFailed(f"Invalid object name: {name}")
        return path

    async def put(self, name: str, content: bytes, content_type: str) -> str:
        """Write an object to disk and return its URL."""
        path = self.resolve(name)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            await asyncio.to_thread(path.write_bytes, content)
        except OSError as e:
            raise StorageFailed(f"Failed to write {name}: {e}") from e

        logger.info("Stored %s (%d bytes, %s)", path, len(content), content_type)
        return f"{self._base_url}{LOCAL_AUDIO_ROUTE}/{quote(name)}"

    async def delete(self, name: str) -> None:
        """Remove an object from disk."""
        path = self.resolve(name)
        try:
            await asyncio.to_thread(path.unlink, missing_ok=True)
        except OSError as e:
            raise StorageFailed(f"Failed to delete {name}: {e}") from e
        logger.debug("Deleted %s", path)


def load_gcs_credentials(settings: "Settings") -> Credentials:
    """Load self-refreshing credentials for Cloud Storage.

    Uses the service account key file from settings when one is set, and
    Application Default Credentials otherwise.

    Raises:
        StorageFailed: If no usable credentials are found.
    """
    try:
        if settings.gcs_credentials_file:
            return service_account.Credentials.from_service_account_file(
                settings.gcs_credentials_file,
                scopes=GCS_SCOPES,
            )
        credentials, _ = google.auth.default(scopes=GCS_SCOPES)
        return credentials
    except (GoogleAuthError, OSError, ValueError) as e:
        raise StorageFailed(f"GCS credentials not available: {e}") from e


class GCSObjectStorage:
    """Stores audio as public-read objects in a Google Cloud Storage bucket.

    Access tokens are short-lived; they are refreshed from the credentials
    whenever they are missing or expired.
    """

    def __init__(
        self,
        settings: "Settings",
        *,
        credentials: Credentials | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize GCS storage.

        Args:
            settings: Application settings with bucket configuration.
            credentials: Optional credentials override.
            transport: Optional httpx transport override.

        Raises:
            StorageFailed: If the bucket or credentials are missing.
        """
        if not settings.gcs_bucket:
            raise StorageFailed("GCS bucket not configured")

        self._bucket = settings.gcs_bucket
        self._base_url = settings.gcs_base_url.rstrip("/")
        self._credentials = credentials or load_gcs_credentials(settings)
        self._refresh_lock = asyncio.Lock()
        self._timeout = settings.storage_timeout
        self._transport = transport

    def public_url(self, name: str) -> str:
        return f"{self._base_url}/{self._bucket}/{quote(name)}"

    async def _auth_headers(self) -> dict[str, str]:
        """Return a bearer header, refreshing the access token first if needed."""
        async with self._refresh_lock:
            if not self._credentials.valid:
                try:
                    await asyncio.to_thread(self._credentials.refresh, AuthRequest())
                except GoogleAuthError as e:
                    raise StorageFailed(f"GCS credential refresh failed: {e}") from e
                logger.debug("Refreshed GCS access token")
        return {"Authorization": f"Bearer {self._credentials.token}"}

    async def put(self, name: str, content: bytes, content_type: str) -> str:
        """Upload an object with a public-read ACL and return its URL."""
        url = f"{self._base_url}/upload/storage/v1/b/{self._bucket}/o"
        params = {"uploadType": "media", "name": name, "predefinedAcl": "publicRead"}
        headers = {**await self._auth_headers(), "Content-Type": content_type}

        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.post(url, params=params, content=content, headers=headers)
                response.raise_for_status()
        except httpx.HTTPError as e:
            raise StorageFailed(f"GCS upload of {name} failed: {e}") from e

        logger.info("Uploaded gs://%s/%s (%d bytes)", self._bucket, name, len(content))
        return self.public_url(name)

    async def delete(self, name: str) -> None:
        """Delete an object; a missing object is not an error."""
        url = f"{self._base_url}/storage/v1/b/{self._bucket}/o/{quote(name, safe='')}"
        headers = await self._auth_headers()
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.delete(url, headers=headers)
                if response.status_code != 404:
                    response.raise_for_status()
        except httpx.HTTPError as e:
            raise StorageFailed(f"GCS delete of {name} failed: {e}") from e
