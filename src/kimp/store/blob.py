"""Blob store interface and implementations.

The store holds whole JSON objects: every write replaces the object.
``get`` returns None for an object that does not exist; any other failure
raises StoreReadError so callers can tell "no history yet" apart from
"store unavailable".
"""

from abc import ABC, abstractmethod

import httpx

from kimp.config import StoreSettings
from kimp.exceptions import StoreReadError, StoreWriteError
from kimp.logging import get_logger

logger = get_logger(__name__)


class BlobStore(ABC):
    """Abstract key -> bytes object store."""

    @abstractmethod
    async def get(self, key: str) -> bytes | None:
        """Return the object's bytes, or None if it does not exist."""
        ...

    @abstractmethod
    async def put(self, key: str, data: bytes, content_type: str = "application/json") -> None:
        """Create or replace the object."""
        ...

    async def close(self) -> None:
        """Release underlying resources."""
        return None


class SupabaseBlobStore(BlobStore):
    """Supabase Storage bucket accessed over its REST API with httpx."""

    def __init__(self, settings: StoreSettings, client: httpx.AsyncClient | None = None) -> None:
        self._settings = settings
        self._base_url = settings.url.rstrip("/")
        self._client = client or httpx.AsyncClient(timeout=settings.timeout)

    def _public_url(self, key: str) -> str:
        return f"{self._base_url}/storage/v1/object/public/{self._settings.bucket}/{key}"

    def _upload_url(self, key: str) -> str:
        return f"{self._base_url}/storage/v1/object/{self._settings.bucket}/{key}"

    async def get(self, key: str) -> bytes | None:
        api_key = self._settings.api_key.get_secret_value()
        try:
            response = await self._client.get(self._public_url(key), headers={"apikey": api_key})
        except httpx.HTTPError as e:
            raise StoreReadError(f"Failed to read {key}: {e}") from e

        if response.status_code == 404:
            logger.info("blob_not_found", key=key)
            return None
        if response.is_error:
            raise StoreReadError(f"Failed to read {key}: HTTP {response.status_code}")
        return response.content

    async def put(self, key: str, data: bytes, content_type: str = "application/json") -> None:
        api_key = self._settings.api_key.get_secret_value()
        headers = {
            "Content-Type": content_type,
            "apikey": api_key,
            "Authorization": f"Bearer {api_key}",
            "x-upsert": "true",
        }
        try:
            response = await self._client.put(self._upload_url(key), content=data, headers=headers)
        except httpx.HTTPError as e:
            raise StoreWriteError(f"Failed to write {key}: {e}") from e

        if response.is_error:
            logger.error(
                "blob_upload_failed",
                key=key,
                status=response.status_code,
                body=response.text[:500],
            )
            raise StoreWriteError(f"Failed to write {key}: HTTP {response.status_code}")
        logger.debug("blob_written", key=key, size=len(data))

    async def close(self) -> None:
        await self._client.aclose()


class MemoryBlobStore(BlobStore):
    """Process-local store for local runs and tests."""

    def __init__(self, initial: dict[str, bytes] | None = None) -> None:
        self._objects: dict[str, bytes] = dict(initial or {})

    async def get(self, key: str) -> bytes | None:
        return self._objects.get(key)

    async def put(self, key: str, data: bytes, content_type: str = "application/json") -> None:
        self._objects[key] = data

    @property
    def objects(self) -> dict[str, bytes]:
        return self._objects


def create_blob_store(settings: StoreSettings) -> BlobStore:
    """Build the configured blob store backend."""
    if settings.backend == "memory":
        return MemoryBlobStore()
    return SupabaseBlobStore(settings)
