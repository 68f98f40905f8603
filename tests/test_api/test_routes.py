"""Tests for the HTTP and WebSocket API."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from newsforge.ai.errors import ProviderError
from newsforge.ai.registry import ProviderRegistry
from newsforge.ai.schemas import AIModel, AIResponse
from newsforge.api import dependencies
from newsforge.api.app import create_app
from newsforge.api.routes import ws_progress
from newsforge.ingestion.errors import NetworkError
from newsforge.ingestion.registry import AdapterRegistry
from newsforge.ingestion.schemas import SourceKind
from newsforge.progress.broadcaster import ProgressBroadcaster
from newsforge.services.fetch_coordinator import FetchCoordinator
from newsforge.sources.service import SourcesService
from newsforge.storage.database import StorageError


@pytest.fixture
def provider():
    """A single stub provider registered as 'stub'."""
    stub = MagicMock()
    stub.id = "stub"
    stub.is_available = AsyncMock(return_value=True)
    stub.get_models = AsyncMock(
        return_value=[AIModel(id="stub-1", name="Stub One", provider_id="stub")]
    )
    stub.generate = AsyncMock(
        return_value=AIResponse(content="generated", model="stub-1")
    )
    return stub


@pytest.fixture
def app(monkeypatch, memory_store, stub_adapter, draft, provider):
    monkeypatch.setenv("STORAGE_BACKEND", "memory")
    monkeypatch.delenv("API_KEYS", raising=False)

    adapters = AdapterRegistry(
        [
            stub_adapter(SourceKind.FEED, items=[draft("One"), draft("Two")]),
            stub_adapter(SourceKind.MAILBOX, error=NetworkError("Gmail unreachable")),
        ]
    )
    providers = ProviderRegistry([provider], default_provider_id="stub", metrics=MagicMock())

    async def coordinator():
        return FetchCoordinator(
            adapters=adapters,
            sources=memory_store,
            runs=memory_store,
            items=memory_store,
            metrics=MagicMock(),
        )

    async def store():
        return memory_store

    async def sources_service():
        return SourcesService(memory_store)

    application = create_app()
    application.dependency_overrides.update(
        {
            dependencies.get_fetch_coordinator: coordinator,
            dependencies.get_run_store: store,
            dependencies.get_item_store: store,
            dependencies.get_sources_service: sources_service,
            dependencies.get_adapter_registry: lambda: adapters,
            dependencies.get_provider_registry: lambda: providers,
        }
    )
    return application


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)


class TestHealth:
    def test_healthy_with_memory_backend(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["storage_backend"] == "memory"
        assert set(data["adapters"]) == {"feed", "mailbox"}
        assert data["providers"] == {"stub": True}

    def test_degraded_without_available_provider(self, client, provider):
        provider.is_available.return_value = False
        assert client.get("/health").json()["status"] == "degraded"

    def test_request_id_echoed(self, client):
        response = client.get("/health", headers={"X-Request-ID": "req-42"})
        assert response.headers["X-Request-ID"] == "req-42"


class TestAuth:
    def test_missing_key(self, client, monkeypatch):
        monkeypatch.setenv("API_KEYS", "k1,k2")
        dependencies.get_settings.cache_clear()

        response = client.get("/sources", params={"user_id": 1})

        assert response.status_code == 401
        assert "Missing API key" in response.json()["detail"]

    def test_invalid_and_valid_key(self, client, monkeypatch):
        monkeypatch.setenv("API_KEYS", "k1,k2")
        dependencies.get_settings.cache_clear()

        bad = client.get("/sources", params={"user_id": 1}, headers={"X-API-KEY": "nope"})
        good = client.get("/sources", params={"user_id": 1}, headers={"X-API-KEY": "k2"})

        assert bad.status_code == 401
        assert good.status_code == 200


class TestSources:
    def test_create_and_list(self, client):
        created = client.post(
            "/sources",
            json={"user_id": 1, "name": "Blog", "kind": "feed", "config": {"url": "https://x/feed"}},
        )

        assert created.status_code == 201
        assert created.json()["kind"] == "feed"

        listing = client.get("/sources", params={"user_id": 1}).json()
        assert listing["total"] == 1
        assert listing["sources"][0]["name"] == "Blog"

    def test_invalid_config(self, client):
        response = client.post(
            "/sources", json={"user_id": 1, "name": "Blog", "kind": "feed", "config": {}}
        )
        assert response.status_code == 422

    def test_duplicate_video(self, client):
        body = {
            "user_id": 1,
            "name": "Clip",
            "kind": "video",
            "config": {"url": "https://youtu.be/dQw4w9WgXcQ", "videoId": "dQw4w9WgXcQ"},
        }
        assert client.post("/sources", json=body).status_code == 201

        response = client.post("/sources", json=body)

        assert response.status_code == 409
        assert response.json()["detail"] == "This video has already been added as a source."

    def test_toggle_and_delete(self, client):
        source_id = client.post(
            "/sources",
            json={"user_id": 1, "name": "Papers", "kind": "paper-index-b", "config": {}},
        ).json()["id"]

        assert client.patch(f"/sources/{source_id}", json={"is_active": False}).status_code == 200
        assert client.get("/sources", params={"user_id": 1, "active_only": True}).json()["total"] == 0
        assert client.delete(f"/sources/{source_id}").status_code == 204
        assert client.delete(f"/sources/{source_id}").status_code == 404
        assert client.patch(f"/sources/{source_id}", json={"is_active": True}).status_code == 404


class TestRuns:
    def _seed(self, client):
        client.post(
            "/sources",
            json={"user_id": 1, "name": "A", "kind": "feed", "config": {"url": "https://a/feed"}},
        )
        client.post(
            "/sources",
            json={"user_id": 1, "name": "B", "kind": "mailbox", "config": {"filters": {}}},
        )

    def test_fetch_run(self, client):
        self._seed(client)

        response = client.post("/runs/fetch", json={"user_id": 1})

        assert response.status_code == 200
        data = response.json()
        assert (data["total_sources"], data["successful_sources"], data["failed_sources"]) == (2, 1, 1)
        assert data["total_items"] == 2
        assert data["errors"][0]["source_name"] == "B"
        assert data["errors"][0]["error_kind"] == "network"

    def test_run_and_items(self, client):
        self._seed(client)
        run_id = client.post("/runs/fetch", json={"user_id": 1}).json()["run_id"]

        run = client.get(f"/runs/{run_id}").json()
        items = client.get(f"/runs/{run_id}/items").json()

        assert run["status"] == "completed"
        assert run["stats"]["total_items"] == 2
        assert [i["title"] for i in items["items"]] == ["One", "Two"]
        assert items["total"] == 2

    def test_zero_sources(self, client):
        data = client.post("/runs/fetch", json={"user_id": 9}).json()
        assert (data["total_sources"], data["errors"]) == (0, [])

    def test_missing_run(self, client):
        assert client.get("/runs/999").status_code == 404
        assert client.get("/runs/999/items").status_code == 404

    def test_storage_failure_is_503(self, app, client):
        coordinator = MagicMock()
        coordinator.run_fetch_for_all_sources = AsyncMock(side_effect=StorageError("db down"))

        async def broken():
            return coordinator

        app.dependency_overrides[dependencies.get_fetch_coordinator] = broken

        response = client.post("/runs/fetch", json={"user_id": 1})

        assert response.status_code == 503

    def test_invalid_user(self, client):
        assert client.post("/runs/fetch", json={"user_id": 0}).status_code == 422


class TestAI:
    def test_models(self, client):
        data = client.get("/ai/models").json()
        assert data["total"] == 1
        assert data["models"][0]["id"] == "stub-1"

    def test_generate(self, client, provider):
        response = client.post(
            "/ai/generate", json={"model_id": "stub-1", "prompt": "hello", "json": True}
        )

        assert response.status_code == 200
        assert response.json()["content"] == "generated"
        options = provider.generate.call_args.args[0]
        assert options.json_mode is True
        assert options.prompt == "hello"

    def test_provider_not_found(self, app, client):
        empty = ProviderRegistry([], metrics=MagicMock())
        app.dependency_overrides[dependencies.get_provider_registry] = lambda: empty

        response = client.post("/ai/generate", json={"model_id": "x", "prompt": "p"})

        assert response.status_code == 404
        assert "No AI provider available" in response.json()["detail"]

    def test_provider_failure_is_502(self, client, provider):
        provider.generate.side_effect = ProviderError("stub", "quota exceeded")

        response = client.post("/ai/generate", json={"model_id": "stub-1", "prompt": "p"})

        assert response.status_code == 502
        assert response.json()["detail"] == "stub: quota exceeded"


class TestProgressWebSocket:
    def test_rejects_bad_key(self, client, monkeypatch):
        monkeypatch.setenv("API_KEYS", "k1")
        dependencies.get_settings.cache_clear()

        with pytest.raises(WebSocketDisconnect) as exc_info:
            with client.websocket_connect("/ws/progress?api_key=wrong"):
                pass

        assert exc_info.value.code == 1008

    def test_ping_pong(self, client, monkeypatch):
        broadcaster = ProgressBroadcaster()
        monkeypatch.setattr(ws_progress, "get_progress_broadcaster", lambda: broadcaster)

        with client.websocket_connect("/ws/progress") as ws:
            ws.send_json({"type": "ping"})
            assert ws.receive_json() == {"type": "pong"}
            assert broadcaster.subscriber_count == 1

    def test_max_subscribers(self, client, monkeypatch):
        broadcaster = ProgressBroadcaster(max_subscribers=0)
        monkeypatch.setattr(ws_progress, "get_progress_broadcaster", lambda: broadcaster)

        with pytest.raises(WebSocketDisconnect) as exc_info:
            with client.websocket_connect("/ws/progress"):
                pass

        assert exc_info.value.code == 1008
