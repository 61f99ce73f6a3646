"""
Unit tests for the persisted session store.
"""

from datetime import datetime, timezone

import pytest

from shared.errors import StoreUnavailableError
from shared.test_helpers import InMemoryDocumentStore, TestDataFactory
from service_xapi.app.storage.session_store import SessionStore

FIXED_NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


class TestSessionStore:
    """Test cases for SessionStore."""

    @pytest.fixture
    def document_store(self):
        return InMemoryDocumentStore()

    @pytest.fixture
    def store(self, document_store):
        return SessionStore(document_store, clock=lambda: FIXED_NOW)

    @pytest.mark.asyncio
    async def test_put_then_get(self, store):
        jar = TestDataFactory.create_cookie_jar()

        await store.put("alice", jar)
        record = await store.get("alice")

        assert record.identity == "alice"
        assert record.cookies == jar
        assert record.updated_at == FIXED_NOW

    @pytest.mark.asyncio
    async def test_document_layout(self, store, document_store):
        await store.put("alice", TestDataFactory.create_cookie_jar())

        document = document_store.documents[("cookies", "alice")]
        assert document["updatedAt"] == "2024-05-01T12:00:00+00:00"
        assert document["cookies"][0]["key"] == "auth_token"
        assert document["cookies"][0]["httpOnly"] is True

    @pytest.mark.asyncio
    async def test_put_overwrites(self, store):
        await store.put("alice", TestDataFactory.create_cookie_jar(token="one"))
        await store.put("alice", TestDataFactory.create_cookie_jar(token="two"))

        record = await store.get("alice")

        assert record.cookies[0].value == "two"

    @pytest.mark.asyncio
    async def test_get_missing(self, store):
        assert await store.get("nobody") is None

    @pytest.mark.asyncio
    async def test_get_degrades_when_unavailable(self, store, document_store):
        await store.put("alice", TestDataFactory.create_cookie_jar())
        document_store.available = False

        assert await store.get("alice") is None

    @pytest.mark.asyncio
    async def test_put_raises_when_unavailable(self, store, document_store):
        document_store.available = False

        with pytest.raises(StoreUnavailableError):
            await store.put("alice", TestDataFactory.create_cookie_jar())

    @pytest.mark.asyncio
    async def test_malformed_jar_is_a_miss(self, store, document_store):
        await document_store.upsert("cookies", "alice", {"cookies": [{"value": "no-key"}]})

        assert await store.get("alice") is None

    @pytest.mark.asyncio
    async def test_malformed_timestamp_keeps_cookies(self, store, document_store):
        jar = TestDataFactory.create_cookie_jar()
        await store.put("alice", jar)
        await document_store.upsert("cookies", "alice", {"updatedAt": "yesterday-ish"})

        record = await store.get("alice")

        assert record.cookies == jar
        assert record.updated_at is None
