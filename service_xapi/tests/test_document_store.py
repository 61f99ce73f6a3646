"""
Unit tests for the Redis document store.
"""

import json

import pytest
from unittest.mock import AsyncMock, MagicMock, patch
from redis.exceptions import ConnectionError as RedisConnectionError

from shared.circuit_breaker import CircuitBreakerOpenError
from shared.errors import StoreUnavailableError
from service_xapi.app.storage.document_store import DocumentStore


class TestDocumentStore:
    """Test cases for DocumentStore."""

    @pytest.fixture
    def store(self):
        return DocumentStore("redis://localhost:6379/0", failure_threshold=2)

    @pytest.fixture
    def mock_redis(self, store):
        with patch.object(store, "_get_redis", new_callable=AsyncMock) as mock_get_redis:
            client = AsyncMock()
            mock_get_redis.return_value = client
            yield client

    @pytest.mark.asyncio
    async def test_find_one_decodes_fields(self, store, mock_redis):
        mock_redis.hgetall.return_value = {
            "data": json.dumps({"bio": "x"}),
            "timestamp": "1700000000.5",
        }

        document = await store.find_one("x_cache", "profile_alice")

        assert document == {"data": {"bio": "x"}, "timestamp": 1700000000.5}
        mock_redis.hgetall.assert_awaited_once_with("x-api:x_cache:profile_alice")

    @pytest.mark.asyncio
    async def test_find_one_missing(self, store, mock_redis):
        mock_redis.hgetall.return_value = {}

        assert await store.find_one("cookies", "alice") is None

    @pytest.mark.asyncio
    async def test_find_one_undecodable(self, store, mock_redis):
        mock_redis.hgetall.return_value = {"data": "{not json"}

        assert await store.find_one("cookies", "alice") is None

    @pytest.mark.asyncio
    async def test_upsert_encodes_fields(self, store, mock_redis):
        await store.upsert("cookies", "alice", {"cookies": [{"key": "a"}], "updatedAt": "2024-01-01"})

        mock_redis.hset.assert_awaited_once_with(
            "x-api:cookies:alice",
            mapping={"cookies": '[{"key": "a"}]', "updatedAt": '"2024-01-01"'},
        )

    @pytest.mark.asyncio
    async def test_backend_error_wrapped(self, store, mock_redis):
        mock_redis.hgetall.side_effect = RedisConnectionError("refused")

        with pytest.raises(StoreUnavailableError) as exc_info:
            await store.find_one("cookies", "alice")

        assert exc_info.value.status_code == 503
        assert exc_info.value.details == {"operation": "find"}

    @pytest.mark.asyncio
    async def test_circuit_opens_after_threshold(self, store, mock_redis):
        mock_redis.hgetall.side_effect = RedisConnectionError("refused")

        for _ in range(2):
            with pytest.raises(StoreUnavailableError):
                await store.find_one("cookies", "alice")

        with pytest.raises(CircuitBreakerOpenError):
            await store.find_one("cookies", "alice")

        assert mock_redis.hgetall.await_count == 2

    @pytest.mark.asyncio
    async def test_ping(self, store, mock_redis):
        mock_redis.ping.return_value = True
        assert await store.ping() is True

        mock_redis.ping.side_effect = RedisConnectionError("refused")
        assert await store.ping() is False

    @pytest.mark.asyncio
    async def test_connection_is_lazy_and_reused(self):
        store = DocumentStore("redis://cache:6379/1", connect_timeout=1.5, socket_timeout=3.0)
        client = MagicMock()
        client.aclose = AsyncMock()

        with patch("service_xapi.app.storage.document_store.redis.from_url", return_value=client) as from_url:
            assert from_url.call_count == 0
            first = await store._get_redis()
            second = await store._get_redis()

        assert first is second is client
        from_url.assert_called_once_with(
            "redis://cache:6379/1",
            encoding="utf-8",
            decode_responses=True,
            socket_connect_timeout=1.5,
            socket_timeout=3.0,
            health_check_interval=30,
        )

        await store.close()
        client.aclose.assert_awaited_once()
