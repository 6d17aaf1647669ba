"""
tests/test_web.py — Tests for the FastAPI bridge using fastapi.testclient.
"""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from glasspane import web
from glasspane.core.config import config_from_dict
from glasspane.resource.levels import ThermalLevel
from glasspane.resource.sources import MemoryReading
from glasspane.service import OverlayCore


class _PlentyOfMemory:
    def read(self) -> MemoryReading:
        return MemoryReading(8 * 1024 ** 3, 512 * 1024 ** 2, False)


class _CoolDevice:
    def read_level(self) -> ThermalLevel:
        return ThermalLevel.NORMAL


@pytest.fixture()
def core() -> OverlayCore:
    c = OverlayCore(
        config_from_dict({"web": {"heartbeat_s": 60.0}}),
        memory_source=_PlentyOfMemory(),
        thermal_source=_CoolDevice(),
    )
    web._wire_core(c)
    yield c
    web._core = None
    web._loop = None


@pytest.fixture()
def client(core: OverlayCore) -> TestClient:
    with TestClient(web.app) as c:
        yield c


class TestNotReady:

    def test_health_without_core(self) -> None:
        web._core = None
        resp = TestClient(web.app).get("/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "core_not_ready"

    def test_state_without_core(self) -> None:
        web._core = None
        assert TestClient(web.app).get("/state").status_code == 503


class TestRoutes:

    def test_health(self, client: TestClient) -> None:
        body = client.get("/health").json()
        assert body["status"] == "ok"
        assert body["tier"] == "FULL"

    def test_state(self, client: TestClient) -> None:
        body = client.get("/state").json()
        assert body["tier"] == "FULL"
        assert body["gesture"]["edge"] == "NONE"
        assert body["telemetry"]["thermal"] == "NORMAL"

    def test_pointer_dismiss_and_settle(self, client: TestClient, core: OverlayCore) -> None:
        client.post("/pointer", json={"x": 10, "y": 500, "pressed": True})
        client.post("/pointer", json={"x": 40, "y": 500, "pressed": True})
        body = client.post("/pointer", json={"x": 100, "y": 500, "pressed": False}).json()
        assert body["gesture"]["dismiss_triggered"] is True
        body = client.post("/settle").json()
        assert body["gesture"]["dismiss_triggered"] is False
        assert core.dismiss_count == 1

    def test_pointer_requires_coordinates(self, client: TestClient) -> None:
        assert client.post("/pointer", json={"pressed": True}).status_code == 400

    def test_back_progress_and_cancel(self, client: TestClient) -> None:
        body = client.post("/back", json={"event": "progress", "edge": "right", "progress": 0.4}).json()
        assert body["gesture"]["edge"] == "RIGHT"
        assert body["gesture"]["progress"] == pytest.approx(0.4)
        body = client.post("/back", json={"event": "cancelled"}).json()
        assert body["gesture"]["edge"] == "NONE"

    def test_back_completed(self, client: TestClient) -> None:
        client.post("/back", json={"event": "progress", "edge": "BOTTOM", "progress": 0.2})
        body = client.post("/back", json={"event": "completed"}).json()
        assert body["gesture"]["dismiss_triggered"] is True

    def test_back_bad_requests(self, client: TestClient) -> None:
        assert client.post("/back", json={"event": "wiggle"}).status_code == 400
        assert client.post("/back", json={"edge": "TOP", "progress": 0.1}).status_code == 400

    def test_thermal_by_name_and_code(self, client: TestClient) -> None:
        body = client.post("/thermal", json={"level": "severe"}).json()
        assert body["telemetry"]["tier"] == "LIGHT"
        body = client.post("/thermal", json={"level": 6}).json()
        assert body["telemetry"]["thermal"] == "SHUTDOWN"
        assert client.post("/thermal", json={"level": "toasty"}).status_code == 400

    def test_thermal_push_outlives_next_poll(self, client: TestClient, core: OverlayCore) -> None:
        client.post("/thermal", json={"level": "SEVERE"})
        core.sampler.sample_once()
        body = client.get("/state").json()
        assert body["telemetry"]["thermal"] == "SEVERE"
        assert body["tier"] == "LIGHT"

    def test_trim(self, client: TestClient) -> None:
        body = client.post("/trim", json={"level": 20}).json()
        assert body["ignored"] is True
        body = client.post("/trim", json={"level": 60}).json()
        assert body["telemetry"]["memory"] == "LOW"
        assert client.post("/trim", json={"level": "high"}).status_code == 400

    def test_low_memory(self, client: TestClient) -> None:
        body = client.post("/low-memory").json()
        assert body["telemetry"]["tier"] == "MINIMAL"


class TestWebSocket:

    def test_snapshot_on_connect(self, client: TestClient) -> None:
        with client.websocket_connect("/ws") as ws:
            msg = ws.receive_json()
        assert msg["type"] == "snapshot"
        assert msg["tier"] == "FULL"

    def test_tier_change_is_pushed(self, client: TestClient) -> None:
        with client.websocket_connect("/ws") as ws:
            ws.receive_json()
            client.post("/thermal", json={"level": "SEVERE"})
            types = {ws.receive_json()["type"] for _ in range(2)}
        assert types == {"tier", "telemetry"}

    def test_client_pointer_message(self, client: TestClient, core: OverlayCore) -> None:
        with client.websocket_connect("/ws") as ws:
            ws.receive_json()
            ws.send_json({"action": "pointer", "x": 10, "y": 500, "pressed": True})
            msg = ws.receive_json()
        assert msg["type"] == "gesture"
        assert msg["edge"] == "LEFT"

    def test_health_counts_clients_under_lock(self, client: TestClient) -> None:
        with client.websocket_connect("/ws") as ws:
            ws.receive_json()
            lock = MagicMock()
            with patch.object(web, "_clients_lock", lock):
                body = client.get("/health").json()
        assert body["clients"] == 1
        lock.__enter__.assert_called_once()
