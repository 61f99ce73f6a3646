"""
Integration tests for session resolution across service restarts.

Runs the full HTTP app in-process against the in-memory document store, so a
"restart" is a second service instance sharing the same store.
"""

import pytest
from fastapi.testclient import TestClient

from shared.test_helpers import FakeClientFactory, InMemoryDocumentStore, TestDataFactory
from service_xapi.app.main import XApiService


class TestSessionFlow:
    """End-to-end session lifecycle."""

    @pytest.fixture
    def document_store(self):
        return InMemoryDocumentStore()

    @pytest.fixture
    def factory(self):
        return FakeClientFactory(valid_tokens=("fresh-token",))

    def start(self, factory, document_store):
        service = XApiService(client_factory=factory, document_store=document_store)
        return service, TestClient(service.app)

    def test_login_once_then_reuse_after_restart(self, factory, document_store):
        credentials = TestDataFactory.create_request_body()

        _, first = self.start(factory, document_store)
        assert first.post("/api/login", json=credentials).status_code == 200
        assert first.post("/api/timeline", json=credentials).status_code == 200
        assert factory.login_count == 1

        restarted, second = self.start(factory, document_store)
        response = second.post("/api/tweets/u1", json=credentials)

        assert response.status_code == 200
        assert factory.login_count == 1
        assert restarted.cookie_memo.get("alice")[0].value == "fresh-token"

    def test_profile_cached_across_restart(self, factory, document_store):
        credentials = TestDataFactory.create_request_body()

        _, first = self.start(factory, document_store)
        profile = first.post("/api/login", json=credentials).json()

        _, second = self.start(factory, document_store)
        again = second.post("/api/login", json=credentials).json()

        assert again == profile
        assert len(factory.clients) == 1

    def test_store_outage_still_serves_requests(self, factory, document_store):
        document_store.available = False
        credentials = TestDataFactory.create_request_body()

        service, client = self.start(factory, document_store)
        response = client.post("/api/search", json=dict(credentials, query="python"))

        assert response.status_code == 200
        assert len(response.json()["tweets"]) == 10
        assert service.registry.get("alice") is not None
        assert client.get("/health").status_code == 503
