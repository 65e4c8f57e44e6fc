"""Tests for the HTTP API using FastAPI's TestClient and the fake backend."""

import pytest
from fastapi.testclient import TestClient

from tonebridge.api.server import create_app
from tonebridge.core.models import Device, SampleFormat
from tonebridge.utils.config import ConfigManager


@pytest.fixture
def config_manager(tmp_path):
    config_manager = ConfigManager(config_path=str(tmp_path / "missing.yaml"), environ={})
    config_manager.load_config()
    return config_manager


@pytest.fixture
def client(manager, config_manager):
    app = create_app(manager=manager, config_manager=config_manager)
    with TestClient(app) as test_client:
        yield test_client


class TestRoot:
    def test_root(self, client):
        resp = client.get("/")
        assert resp.status_code == 200
        assert resp.json()["message"] == "ToneBridge API"
        assert resp.json()["status"] == "running"


class TestDevices:
    def test_list_devices(self, client):
        resp = client.get("/api/devices")
        assert resp.status_code == 200
        data = resp.json()["data"]
        assert [d["name"] for d in data["capture"]] == ["Mic"]
        assert [d["name"] for d in data["render"]] == ["Speakers"]

    def test_backend_unavailable_is_503(self, client, backend):
        backend.unavailable = True
        resp = client.get("/api/devices")
        assert resp.status_code == 503
        body = resp.json()
        assert body["success"] is False
        assert body["error"] == "BackendUnavailable"


class TestRoutes:
    def test_create_list_and_stop(self, client):
        resp = client.post("/api/route", json={"capture_id": 1, "render_id": 2})
        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        assert body["data"]["id"] == 0
        assert body["data"]["capture_device"] == "Mic"
        assert body["data"]["render_device"] == "Speakers"

        routes = client.get("/api/routes").json()["data"]
        assert len(routes) == 1

        resp = client.post("/api/route/0/stop")
        assert resp.status_code == 200
        assert client.get("/api/routes").json()["data"] == []

    def test_stop_unknown_route_is_404(self, client):
        resp = client.post("/api/route/7/stop")
        assert resp.status_code == 404
        assert resp.json() == {"success": False, "message": "Route not found"}

    def test_unknown_device_is_404(self, client):
        resp = client.post("/api/route", json={"capture_id": 999, "render_id": 2})
        assert resp.status_code == 404
        body = resp.json()
        assert body["error"] == "DeviceNotFound"
        assert body["device_id"] == 999
        assert client.get("/api/routes").json()["data"] == []

    def test_render_unsupported_is_400(self, client):
        resp = client.post("/api/route", json={"capture_id": 1, "render_id": 1})
        assert resp.status_code == 400
        assert resp.json()["error"] == "RenderUnsupported"
        assert resp.json()["device_name"] == "Mic"

    def test_no_loopback_proxy_is_400(self, client):
        resp = client.post("/api/route", json={"capture_id": 2, "render_id": 2})
        assert resp.status_code == 400
        assert resp.json()["error"] == "NoLoopbackProxy"

    def test_stream_open_failure_is_409(self, client, backend):
        backend.rejected_formats = {SampleFormat.INT24, SampleFormat.INT16}
        resp = client.post("/api/route", json={"capture_id": 1, "render_id": 2})
        assert resp.status_code == 409
        assert resp.json()["error"] == "StreamOpenFailed"

    @pytest.mark.parametrize("body", [
        {"capture_id": -1, "render_id": 2},
        {"capture_id": "mic", "render_id": 2},
        {"render_id": 2},
    ])
    def test_invalid_body_is_rejected(self, client, body):
        resp = client.post("/api/route", json=body)
        assert resp.status_code == 422

    def test_stop_all(self, client):
        client.post("/api/route", json={"capture_id": 1, "render_id": 2})
        client.post("/api/route", json={"capture_id": 1, "render_id": 2})

        resp = client.post("/api/stop")
        assert resp.status_code == 200
        assert resp.json()["data"] == {"stopped_count": 2}
        assert resp.json()["message"] == "Stopped 2 audio route(s)"

        assert client.post("/api/stop").json()["data"] == {"stopped_count": 0}


def test_status(client):
    client.post("/api/route", json={"capture_id": 1, "render_id": 2})
    data = client.get("/api/status").json()["data"]
    assert data["routes_count"] == 1
    assert data["routes"][0]["render_device"] == "Speakers"
    assert data["uptime_sec"] >= 0
    assert data["pid"] > 0


def test_lifespan_shutdown_stops_routes(manager, backend, config_manager):
    app = create_app(manager=manager, config_manager=config_manager)
    with TestClient(app) as client:
        client.post("/api/route", json={"capture_id": 1, "render_id": 2})
        assert len(manager.list_active_routes()) == 1

    assert manager.list_active_routes() == []
    assert all(stream.closed for stream in backend.streams)


def test_lifespan_builds_manager_from_config(monkeypatch, config_manager):
    from tests.fakes import FakeBackend
    from tonebridge.core.routing import RouteManager

    backend = FakeBackend([Device(1, "Mic", "ALSA", 1, 0, 16000.0)])
    monkeypatch.setattr(
        ConfigManager, "build_route_manager",
        lambda self, backend_=None: RouteManager(backend)
    )
    app = create_app(config_manager=config_manager)
    assert app.state.manager is None
    with TestClient(app) as client:
        assert client.get("/").json()["status"] == "running"
        assert app.state.manager.backend is backend
