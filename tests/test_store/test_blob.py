"""Tests for the blob store backends.

The Supabase backend is exercised against httpx.MockTransport so no
network calls are made.
"""

import httpx
import pytest
from pydantic import SecretStr

from kimp.config import StoreSettings
from kimp.exceptions import StoreReadError, StoreWriteError
from kimp.store.blob import MemoryBlobStore, SupabaseBlobStore, create_blob_store


def _settings() -> StoreSettings:
    return StoreSettings(
        backend="supabase",
        url="https://project.supabase.co/",
        api_key=SecretStr("service-key"),
        bucket="rate-history",
    )


def _store(handler) -> SupabaseBlobStore:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return SupabaseBlobStore(_settings(), client=client)


class TestSupabaseBlobStore:
    """Tests for SupabaseBlobStore."""

    @pytest.mark.asyncio
    async def test_get_reads_public_object(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, content=b'{"2024-01-01": 1350.0}')

        store = _store(handler)
        data = await store.get("rate-history.json")
        await store.close()

        assert data == b'{"2024-01-01": 1350.0}'
        assert str(seen[0].url) == (
            "https://project.supabase.co/storage/v1/object/public/rate-history/rate-history.json"
        )
        assert seen[0].headers["apikey"] == "service-key"

    @pytest.mark.asyncio
    async def test_get_missing_object_returns_none(self) -> None:
        store = _store(lambda request: httpx.Response(404, json={"error": "not found"}))
        assert await store.get("missing.json") is None

    @pytest.mark.asyncio
    async def test_get_server_error_raises(self) -> None:
        store = _store(lambda request: httpx.Response(500, text="boom"))
        with pytest.raises(StoreReadError):
            await store.get("rate-history.json")

    @pytest.mark.asyncio
    async def test_get_transport_error_raises(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("unreachable", request=request)

        store = _store(handler)
        with pytest.raises(StoreReadError):
            await store.get("rate-history.json")

    @pytest.mark.asyncio
    async def test_put_upserts_with_auth_headers(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"Key": "rate-history/rate-history.json"})

        store = _store(handler)
        await store.put("rate-history.json", b"{}")

        request = seen[0]
        assert request.method == "PUT"
        assert str(request.url) == (
            "https://project.supabase.co/storage/v1/object/rate-history/rate-history.json"
        )
        assert request.headers["authorization"] == "Bearer service-key"
        assert request.headers["x-upsert"] == "true"
        assert request.headers["content-type"] == "application/json"
        assert request.content == b"{}"

    @pytest.mark.asyncio
    async def test_put_error_raises(self) -> None:
        store = _store(lambda request: httpx.Response(403, json={"error": "denied"}))
        with pytest.raises(StoreWriteError):
            await store.put("rate-history.json", b"{}")


class TestMemoryBlobStore:
    """Tests for MemoryBlobStore."""

    @pytest.mark.asyncio
    async def test_put_replaces_object(self) -> None:
        store = MemoryBlobStore({"a.json": b"1"})

        await store.put("a.json", b"2")

        assert await store.get("a.json") == b"2"
        assert await store.get("b.json") is None


def test_create_blob_store_selects_backend() -> None:
    assert isinstance(create_blob_store(StoreSettings(backend="memory")), MemoryBlobStore)
    assert isinstance(create_blob_store(_settings()), SupabaseBlobStore)
