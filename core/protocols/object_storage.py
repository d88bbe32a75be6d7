"""Protocol for object storage interface."""

from typing import Protocol


class IObjectStorage(Protocol):
    """Interface for stores that publish generated audio."""

    async def put(self, name: str, content: bytes, content_type: str) -> str:
        """Store an object and make it publicly readable.

        Args:
            name: Object name, unique within the store.
            content: Object bytes.
            content_type: MIME type of the content.

        Returns:
            Publicly fetchable URL of the object.

        Raises:
            StorageFailed: If the upload fails.
        """
        ...

    async def delete(self, name: str) -> None:
        """Remove an object. Missing objects are ignored.

        Raises:
            StorageFailed: If the store rejects the deletion.
        """
        ...
