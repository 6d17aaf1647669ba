"""
glasspane/service.py — OverlayCore: wires the resource and gesture pipelines.

Builds every subsystem from a :class:`~glasspane.core.config.GlassPaneConfig`
in dependency order and exposes one EventBus so the web bridge and the CLI
can follow tier, telemetry and gesture changes without holding references
to internal modules::

    psutil sources ─► TelemetrySampler ─► TierController ─► ON_TIER_CHANGED
    pointer / back ─► adapters ─► DismissGestureMachine ─► ON_GESTURE_PROGRESS
"""

from __future__ import annotations

import time
from collections import defaultdict
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from glasspane.core.config import GlassPaneConfig, load_config
from glasspane.core.logger import get_logger
from glasspane.gestures.back import BackGestureAdapter
from glasspane.gestures.machine import Action, DismissGestureMachine, Phase
from glasspane.gestures.pointer import PointerGestureAdapter
from glasspane.gestures.types import GestureProgress
from glasspane.resource.controller import TierController
from glasspane.resource.levels import FeatureTier
from glasspane.resource.sampler import TelemetrySampler, TelemetrySnapshot
from glasspane.resource.sources import (
    MemorySource,
    PsutilMemorySource,
    PsutilThermalSource,
    ThermalSource,
)

_log = get_logger()

# ── EventBus event-name constants ─────────────────────────────────────────────

ON_TIER_CHANGED     = "ON_TIER_CHANGED"
"""Fired when the stabilised feature tier changes."""

ON_TELEMETRY        = "ON_TELEMETRY"
"""Fired when the (thermal, memory, tier) snapshot changes."""

ON_GESTURE_PROGRESS = "ON_GESTURE_PROGRESS"
"""Fired on every change of the published gesture progress."""

ON_DISMISS          = "ON_DISMISS"
"""Fired once per dismissed session, after the exit animation settled."""


class OverlayCore:
    """
    Owns the tier controller, telemetry sampler, dismiss machine and adapters.

    Args:
        config: Loaded configuration; defaults are used when omitted.
        memory_source: Override for the psutil memory source.
        thermal_source: Override for the psutil thermal source. Pass a source
            explicitly to test without real sensors.

    Example::

        core = OverlayCore(load_config())
        core.subscribe(ON_TIER_CHANGED, lambda d: print(d["tier"]))
        core.start()
        ...
        core.stop()
    """

    def __init__(
        self,
        config: Optional[GlassPaneConfig] = None,
        memory_source: Optional[MemorySource] = None,
        thermal_source: Optional[ThermalSource] = None,
    ) -> None:
        self.config = config or GlassPaneConfig()

        # ── EventBus ──────────────────────────────────────────────────────
        self._subscribers: Dict[str, List[Callable[[Dict[str, Any]], None]]] = (
            defaultdict(list)
        )

        # ── 1. Tier controller ────────────────────────────────────────────
        _t = time.perf_counter()
        self.tier_controller = TierController(
            upgrade_threshold=self.config.tier.upgrade_threshold,
            initial_tier=FeatureTier.from_name(self.config.tier.initial_tier),
            on_change=self._on_tier_changed,
        )
        _log.perf("service", "init_tier_controller",
                  (time.perf_counter() - _t) * 1_000.0, {})

        # ── 2. Telemetry sources + sampler ────────────────────────────────
        _t = time.perf_counter()
        if memory_source is None:
            memory_source = PsutilMemorySource(self.config.telemetry)
        if thermal_source is None and self.config.thermal.enabled:
            thermal_source = PsutilThermalSource(self.config.thermal)
        self.sampler = TelemetrySampler(
            self.tier_controller,
            config=self.config.telemetry,
            memory_source=memory_source,
            thermal_source=thermal_source,
        )
        self.sampler.snapshots.subscribe(self._on_snapshot)
        _log.perf("service", "init_sampler",
                  (time.perf_counter() - _t) * 1_000.0, {})

        # ── 3. Gesture machine + adapters ─────────────────────────────────
        _t = time.perf_counter()
        self.machine = DismissGestureMachine(
            config=self.config.gesture,
            on_dismiss=self._on_dismiss,
            on_transition=self._on_gesture_transition,
        )
        self.machine.progress.subscribe(self._on_gesture_progress)
        self.pointer = PointerGestureAdapter(self.machine, self.config.gesture)
        self.back = BackGestureAdapter(self.machine, self.config.gesture)
        _log.perf("service", "init_gestures",
                  (time.perf_counter() - _t) * 1_000.0, {})

        self._dismiss_count: int = 0

        _log.bind(tier=self.tier_controller.current_tier.name, phase=self.machine.phase.value)
        _log.info("service", "core_ready", {
            "initial_tier": self.tier_controller.current_tier.name,
            "upgrade_threshold": self.config.tier.upgrade_threshold,
            "viewport_width": self.config.gesture.viewport_width,
        })

    @classmethod
    def from_config_file(cls, config_path: Path | str | None = None) -> "OverlayCore":
        """Load configuration (see :func:`load_config`) and build the core."""
        return cls(load_config(config_path))

    # ── EventBus ──────────────────────────────────────────────────────────────

    def subscribe(self, event: str, callback: Callable[[Dict[str, Any]], None]) -> None:
        """
        Register *callback* to receive payloads whenever *event* is published.

        Callbacks run synchronously on the producer's thread; exceptions are
        caught and logged so a failing callback never disrupts the others.

        Args:
            event:    One of the ``ON_*`` module-level constants.
            callback: Callable ``(data: dict) → None``.
        """
        self._subscribers[event].append(callback)
        _log.info("service", "event_subscribed", {"event": event})

    def publish(self, event: str, data: Dict[str, Any]) -> None:
        """Dispatch *event* to all registered callbacks with payload *data*."""
        for cb in self._subscribers.get(event, []):
            try:
                cb(data)
            except Exception as exc:  # noqa: BLE001
                _log.error("service", "event_callback_error", {
                    "event": event,
                    "error": str(exc),
                })

    # ── Lifecycle ─────────────────────────────────────────────────────────────

    def start(self) -> None:
        """Start periodic telemetry sampling."""
        if not self.sampler.is_running:
            self.sampler.start()
        _log.info("service", "started", {})

    def stop(self) -> None:
        """Stop sampling and flush the event log. Safe to call twice."""
        self.sampler.stop()
        _log.info("service", "stopped", {"dismissals": self._dismiss_count})
        _log.flush()

    # ── Read accessors ────────────────────────────────────────────────────────

    @property
    def tier(self) -> FeatureTier:
        return self.tier_controller.current_tier

    @property
    def telemetry(self) -> TelemetrySnapshot:
        return self.sampler.snapshots.value

    @property
    def gesture(self) -> GestureProgress:
        return self.machine.progress.value

    @property
    def dismiss_count(self) -> int:
        return self._dismiss_count

    def snapshot(self) -> Dict[str, Any]:
        """JSON-safe view of the current tier, telemetry and gesture state."""
        tier = self.tier
        return {
            "tier": tier.name,
            "capabilities": tier.capabilities(),
            "telemetry": self.telemetry.to_dict(),
            "gesture": self.gesture.to_dict(),
            "phase": self.machine.phase.value,
            "dismiss_count": self._dismiss_count,
        }

    # ── Internal callbacks ────────────────────────────────────────────────────

    def _on_tier_changed(self, old: FeatureTier, new: FeatureTier) -> None:
        _log.bind(tier=new.name)
        self.publish(ON_TIER_CHANGED, {
            "from": old.name,
            "tier": new.name,
            "level": new.level,
            "capabilities": new.capabilities(),
        })

    def _on_snapshot(self, snapshot: TelemetrySnapshot) -> None:
        self.publish(ON_TELEMETRY, snapshot.to_dict())

    def _on_gesture_progress(self, progress: GestureProgress) -> None:
        self.publish(ON_GESTURE_PROGRESS, progress.to_dict())

    def _on_gesture_transition(self, from_phase: Phase, to_phase: Phase, action: Action) -> None:
        _log.bind(phase=to_phase.value)
        if action in (Action.LOCK, Action.EXIT, Action.SNAP_BACK):
            _log.info("gesture", action.value, {
                "from": from_phase.value,
                "to": to_phase.value,
                "edge": self.machine.progress.value.edge.value,
            })

    def _on_dismiss(self) -> None:
        self._dismiss_count += 1
        _log.info("gesture", "dismissed", {"count": self._dismiss_count})
        self.publish(ON_DISMISS, {"count": self._dismiss_count})
