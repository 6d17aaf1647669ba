"""
glasspane/web.py — FastAPI bridge for GlassPane.

Lets a presentation layer (a browser, or a native shell talking HTTP) drive
the gesture pipeline, push platform telemetry, and follow tier and gesture
changes live over a WebSocket at /ws.

REST endpoints
--------------
GET  /health     JSON health check
GET  /state      Current tier, telemetry and gesture snapshot
POST /pointer    Raw pointer sample        {"x": 12, "y": 400, "pressed": true}
POST /back       Native back event         {"event": "progress", "edge": "LEFT", "progress": 0.4}
                                           {"event": "completed"} | {"event": "cancelled"}
POST /settle     Exit animation finished   {}
POST /thermal    Thermal push              {"level": "SEVERE"} or {"level": 3}
POST /trim       Trim-memory push          {"level": 60}
POST /low-memory Low-memory callback       {}

WebSocket
---------
ws://<host>:<port>/ws

Messages pushed by server (JSON):
  {"type": "snapshot",  ...}                       ← once, on connect
  {"type": "tier",      "tier": "LIGHT", "from": "FULL", ...}
  {"type": "telemetry", "thermal": "SEVERE", "memory": "NORMAL", ...}
  {"type": "gesture",   "edge": "LEFT", "progress": 0.42, ...}
  {"type": "dismiss",   "count": 3}
  {"type": "tick",      "timestamp_ms": ...}       ← heartbeat
"""

from __future__ import annotations

import asyncio
import json
import threading
import time
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional, Set

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.responses import JSONResponse

from glasspane import __version__
from glasspane.core.logger import get_logger
from glasspane.gestures.back import BackEvent
from glasspane.gestures.types import GestureEdge
from glasspane.resource.levels import ThermalLevel
from glasspane.service import (
    ON_DISMISS,
    ON_GESTURE_PROGRESS,
    ON_TELEMETRY,
    ON_TIER_CHANGED,
    OverlayCore,
)

_log = get_logger()

# ── Shared state ──────────────────────────────────────────────────────────────
_core: Optional[OverlayCore] = None
_connected_clients: Set[WebSocket] = set()
_clients_lock = threading.Lock()
_heartbeat_s: float = 1.0

# asyncio event loop running in the uvicorn thread
_loop: Optional[asyncio.AbstractEventLoop] = None


# ── WebSocket helpers ─────────────────────────────────────────────────────────

def _push(msg: Dict[str, Any]) -> None:
    """Thread-safe push of a JSON message to every connected WebSocket client."""
    if _loop is None or _loop.is_closed():
        return
    asyncio.run_coroutine_threadsafe(_broadcast(msg), _loop)


async def _broadcast(msg: Dict[str, Any]) -> None:
    text = json.dumps(msg)
    with _clients_lock:
        clients = list(_connected_clients)
    dead: List[WebSocket] = []
    for ws in clients:
        try:
            await ws.send_text(text)
        except Exception:  # noqa: BLE001
            dead.append(ws)
    if dead:
        with _clients_lock:
            for ws in dead:
                _connected_clients.discard(ws)


# ── EventBus → WebSocket bridge ───────────────────────────────────────────────

def _wire_core(core: OverlayCore) -> None:
    """Register EventBus callbacks so the core feeds the WS stream."""
    global _core, _heartbeat_s
    _core = core
    _heartbeat_s = core.config.web.heartbeat_s

    core.subscribe(ON_TIER_CHANGED, lambda d: _push({"type": "tier", **d}))
    core.subscribe(ON_TELEMETRY, lambda d: _push({"type": "telemetry", **d}))
    core.subscribe(ON_GESTURE_PROGRESS, lambda d: _push({"type": "gesture", **d}))
    core.subscribe(ON_DISMISS, lambda d: _push({"type": "dismiss", **d}))

    _log.info("web", "core_wired", {})


def _not_ready() -> JSONResponse:
    return JSONResponse({"error": "core not ready"}, status_code=503)


def _bad_request(message: str) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=400)


# ── Heartbeat ─────────────────────────────────────────────────────────────────

async def _heartbeat() -> None:
    """Push a tick message periodically so the client can detect disconnects."""
    while True:
        await asyncio.sleep(_heartbeat_s)
        tier = _core.tier.name if _core is not None else None
        _push({"type": "tick", "timestamp_ms": round(time.time() * 1000), "tier": tier})


# ── App lifecycle ─────────────────────────────────────────────────────────────

@asynccontextmanager
async def _lifespan(app: FastAPI):
    global _loop
    _loop = asyncio.get_running_loop()
    heartbeat = asyncio.create_task(_heartbeat())
    _log.info("web", "startup", {})
    yield
    heartbeat.cancel()
    _loop = None
    _log.info("web", "shutdown", {})


# ── FastAPI app ───────────────────────────────────────────────────────────────
app = FastAPI(title="GlassPane", version=__version__, lifespan=_lifespan)


# ── Routes ────────────────────────────────────────────────────────────────────

@app.get("/health")
async def health() -> JSONResponse:
    core_ok = _core is not None
    with _clients_lock:
        clients = len(_connected_clients)
    return JSONResponse({
        "status": "ok" if core_ok else "core_not_ready",
        "tier": _core.tier.name if core_ok else None,
        "clients": clients,
    })


@app.get("/state")
async def state() -> JSONResponse:
    if _core is None:
        return _not_ready()
    return JSONResponse(_core.snapshot())


@app.post("/pointer")
async def pointer(body: Dict[str, Any] = {}) -> JSONResponse:
    if _core is None:
        return _not_ready()
    try:
        x = float(body["x"])
        y = float(body["y"])
    except (KeyError, TypeError, ValueError):
        return _bad_request("pointer requires numeric 'x' and 'y'")
    progress = _core.pointer.on_pointer(x, y, bool(body.get("pressed", False)))
    return JSONResponse({"ok": True, "gesture": progress.to_dict()})


@app.post("/back")
async def back(body: Dict[str, Any] = {}) -> JSONResponse:
    if _core is None:
        return _not_ready()
    event = str(body.get("event", "progress")).lower()
    if event == "progress":
        try:
            edge = GestureEdge(str(body.get("edge", "LEFT")).upper())
            value = float(body.get("progress", 0.0))
        except (TypeError, ValueError):
            return _bad_request("back progress requires a valid 'edge' and numeric 'progress'")
        progress = _core.back.on_progress(BackEvent(edge, value))
    elif event == "completed":
        progress = _core.back.on_completed()
    elif event == "cancelled":
        progress = _core.back.on_cancelled()
    else:
        return _bad_request(f"unknown back event {event!r}")
    return JSONResponse({"ok": True, "gesture": progress.to_dict()})


@app.post("/settle")
async def settle() -> JSONResponse:
    if _core is None:
        return _not_ready()
    progress = _core.machine.settle()
    return JSONResponse({"ok": True, "gesture": progress.to_dict()})


@app.post("/thermal")
async def thermal(body: Dict[str, Any] = {}) -> JSONResponse:
    if _core is None:
        return _not_ready()
    level = body.get("level")
    if isinstance(level, int) and not isinstance(level, bool):
        snapshot = _core.sampler.on_platform_thermal_status(level)
    elif isinstance(level, str) and level.upper() in ThermalLevel.__members__:
        snapshot = _core.sampler.on_thermal_changed(ThermalLevel[level.upper()])
    else:
        return _bad_request("thermal requires 'level' as a status code or level name")
    return JSONResponse({"ok": True, "telemetry": snapshot.to_dict()})


@app.post("/trim")
async def trim(body: Dict[str, Any] = {}) -> JSONResponse:
    if _core is None:
        return _not_ready()
    level = body.get("level")
    if not isinstance(level, int) or isinstance(level, bool):
        return _bad_request("trim requires an integer 'level'")
    snapshot = _core.sampler.on_trim_memory(level)
    return JSONResponse({
        "ok": True,
        "ignored": snapshot is None,
        "telemetry": snapshot.to_dict() if snapshot is not None else None,
    })


@app.post("/low-memory")
async def low_memory() -> JSONResponse:
    if _core is None:
        return _not_ready()
    snapshot = _core.sampler.on_low_memory()
    return JSONResponse({"ok": True, "telemetry": snapshot.to_dict()})


@app.websocket("/ws")
async def websocket_endpoint(ws: WebSocket) -> None:
    await ws.accept()
    with _clients_lock:
        _connected_clients.add(ws)
        total = len(_connected_clients)

    # Send current snapshot on connect
    snapshot = _core.snapshot() if _core is not None else {}
    await ws.send_text(json.dumps({"type": "snapshot", **snapshot}))
    _log.info("web", "ws_connected", {"total": total})

    try:
        while True:
            msg = await ws.receive_text()
            try:
                data = json.loads(msg)
            except json.JSONDecodeError:
                _log.warn("web", "ws_bad_message", {"length": len(msg)})
                continue
            _handle_client_msg(data)
    except WebSocketDisconnect:
        pass
    finally:
        with _clients_lock:
            _connected_clients.discard(ws)
            total = len(_connected_clients)
        _log.info("web", "ws_disconnected", {"total": total})


def _handle_client_msg(data: Dict[str, Any]) -> None:
    """Handle incoming WS messages from the client (pointer / settle)."""
    if _core is None or not isinstance(data, dict):
        return
    action = data.get("action")
    if action == "pointer":
        try:
            _core.pointer.on_pointer(
                float(data["x"]), float(data["y"]), bool(data.get("pressed", False))
            )
        except (KeyError, TypeError, ValueError) as exc:
            _log.warn("web", "ws_bad_pointer", {"error": str(exc)})
    elif action == "settle":
        _core.machine.settle()


# ── Public launcher ───────────────────────────────────────────────────────────

def start_web_server(
    core: OverlayCore,
    host: str = "127.0.0.1",
    port: int = 7860,
) -> None:
    """
    Wire *core* to the WS bridge and start uvicorn in the current thread.

    Blocking — telemetry sampling runs on its own thread started by
    :meth:`OverlayCore.start`.

    Args:
        core: Fully initialised :class:`~glasspane.service.OverlayCore`.
        host: Bind address.
        port: TCP port.
    """
    _wire_core(core)

    import uvicorn  # type: ignore
    config = uvicorn.Config(
        app,
        host=host,
        port=port,
        log_level="warning",
        access_log=False,
    )
    server = uvicorn.Server(config)
    _log.info("web", "server_start", {"host": host, "port": port})
    server.run()
