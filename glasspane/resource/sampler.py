"""
glasspane/resource/sampler.py — Periodic + push-driven telemetry sampling.

TelemetrySampler owns the latest (thermal, memory) pair. Two kinds of writer
update it: the 1-second polling thread and asynchronous platform pushes
(thermal change, trim-memory, low-memory). Both go through one lock and feed
the same :class:`~glasspane.resource.controller.TierController`, so the
controller's upgrade counter only ever sees serialised samples.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from typing import Optional

from glasspane.core.channel import LatestValue
from glasspane.core.config import TelemetryConfig
from glasspane.core.logger import get_logger
from glasspane.resource.classifier import classify_memory, classify_tier
from glasspane.resource.controller import TierController
from glasspane.resource.levels import FeatureTier, MemoryPressureLevel, ThermalLevel
from glasspane.resource.sources import MemoryReading, MemorySource, ThermalSource

_log = get_logger()


@dataclass(frozen=True)
class TelemetrySnapshot:
    """
    One best-effort view of device pressure.

    Attributes:
        thermal: Latest thermal level.
        memory: Latest memory pressure level.
        ideal_tier: Classifier output for this pair (before hysteresis).
        tier: Stabilised tier after the controller applied this sample.
        timestamp: Monotonic time of the sample (ignored for equality).
    """

    thermal: ThermalLevel
    memory: MemoryPressureLevel
    ideal_tier: FeatureTier
    tier: FeatureTier
    timestamp: float = field(default_factory=time.monotonic, compare=False)

    def to_dict(self) -> dict:
        """Return a JSON-serialisable representation."""
        return {
            "thermal": self.thermal.name,
            "memory": self.memory.name,
            "ideal_tier": self.ideal_tier.name,
            "tier": self.tier.name,
            "tier_level": self.tier.level,
        }


class TelemetrySampler:
    """
    Converts telemetry into tier-controller samples.

    Missing sources are not errors: with no memory source the memory channel
    stays NORMAL, with no thermal source the thermal channel only changes
    through :meth:`on_thermal_changed` pushes.

    Listeners on :attr:`snapshots` or on the controller's tier cell run while
    the sampler lock is held and must not call back into the sampler.

    Args:
        controller: Tier controller fed on every update.
        config: Sampling period and memory factors.
        memory_source: Provider of periodic :class:`MemoryReading` values.
        thermal_source: Polled provider of :class:`ThermalLevel`; polled once
            per period and treated as a push when its level changes.
    """

    def __init__(
        self,
        controller: TierController,
        config: Optional[TelemetryConfig] = None,
        memory_source: Optional[MemorySource] = None,
        thermal_source: Optional[ThermalSource] = None,
    ) -> None:
        self._controller = controller
        self._config = config or TelemetryConfig()
        self._memory_source = memory_source
        self._thermal_source = thermal_source

        self._lock = threading.Lock()
        self._thermal = ThermalLevel.NORMAL
        self._memory = MemoryPressureLevel.NORMAL
        # Last reading of the polled thermal source, kept apart from pushes
        self._last_polled = ThermalLevel.NORMAL
        self._samples: int = 0

        self._running = False
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

        initial_ideal = classify_tier(self._thermal, self._memory)
        self.snapshots: LatestValue[TelemetrySnapshot] = LatestValue(
            TelemetrySnapshot(
                thermal=self._thermal,
                memory=self._memory,
                ideal_tier=initial_ideal,
                tier=controller.current_tier,
            ),
            name="telemetry",
        )

        _log.info("telemetry", "init", {
            "period_s": self._config.period_s,
            "memory_source": type(memory_source).__name__ if memory_source else None,
            "thermal_source": type(thermal_source).__name__ if thermal_source else None,
        })

    # ──────────────────────────────────────────
    # Lifecycle
    # ──────────────────────────────────────────

    def start(self) -> None:
        """
        Start the periodic sampling thread.

        Raises:
            RuntimeError: If the sampler is already running.
        """
        if self._running:
            raise RuntimeError("TelemetrySampler is already running")
        self._running = True
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._loop,
            name="glasspane-telemetry",
            daemon=True,
        )
        self._thread.start()
        _log.info("telemetry", "started", {})

    def stop(self) -> None:
        """Stop the sampling thread and wait for it to exit."""
        if not self._running:
            return
        self._running = False
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=self._config.period_s * 2 + 1.0)
            self._thread = None
        _log.info("telemetry", "stopped", {"samples": self._samples})

    @property
    def is_running(self) -> bool:
        return self._running

    # ──────────────────────────────────────────
    # Writers
    # ──────────────────────────────────────────

    def sample_once(self) -> TelemetrySnapshot:
        """
        Run one polling period synchronously.

        Reads memory (and polled thermal, if a source is present) and applies
        the result to the tier controller. A polled thermal reading only
        replaces the current level when it differs from the previous poll,
        so pushed levels survive unchanged polls.

        Returns:
            The snapshot published for this period.
        """
        t0 = time.perf_counter()
        memory = self._read_memory()
        thermal = self._read_thermal()

        with self._lock:
            self._memory = memory
            if thermal is not None and thermal != self._last_polled:
                _log.info("telemetry", "thermal_polled_change", {
                    "from": self._thermal.name,
                    "to": thermal.name,
                })
                self._last_polled = thermal
                self._thermal = thermal
            self._samples += 1
            snapshot = self._apply_locked()

        _log.perf("telemetry", "sample_done", (time.perf_counter() - t0) * 1000.0, {
            "thermal": snapshot.thermal.name,
            "memory": snapshot.memory.name,
            "tier": snapshot.tier.name,
        })
        return snapshot

    def on_thermal_changed(self, level: ThermalLevel) -> TelemetrySnapshot:
        """Asynchronous thermal push from the platform."""
        with self._lock:
            if level != self._thermal:
                _log.info("telemetry", "thermal_changed", {
                    "from": self._thermal.name,
                    "to": level.name,
                })
            self._thermal = level
            return self._apply_locked()

    def on_platform_thermal_status(self, status: int) -> TelemetrySnapshot:
        """Thermal push carrying a raw platform status code (0–6)."""
        return self.on_thermal_changed(ThermalLevel.from_platform_status(status))

    def on_trim_memory(self, level: int) -> Optional[TelemetrySnapshot]:
        """
        Coarse memory-pressure push from the platform.

        Args:
            level: Trim level (see :class:`~glasspane.resource.levels.TrimLevel`).

        Returns:
            The new snapshot, or None if the level carries no pressure signal.
        """
        pressure = MemoryPressureLevel.from_trim_level(level)
        if pressure is None:
            _log.info("telemetry", "trim_ignored", {"level": level})
            return None
        with self._lock:
            _log.info("telemetry", "trim_memory", {"level": level, "memory": pressure.name})
            self._memory = pressure
            return self._apply_locked()

    def on_low_memory(self) -> TelemetrySnapshot:
        """Platform low-memory callback — forces CRITICAL pressure."""
        with self._lock:
            _log.warn("telemetry", "low_memory", {})
            self._memory = MemoryPressureLevel.CRITICAL
            return self._apply_locked()

    # ──────────────────────────────────────────
    # Internal helpers
    # ──────────────────────────────────────────

    def _apply_locked(self) -> TelemetrySnapshot:
        """Classify, apply to the controller and publish. Lock must be held."""
        ideal = classify_tier(self._thermal, self._memory)
        tier = self._controller.apply(ideal)
        snapshot = TelemetrySnapshot(
            thermal=self._thermal,
            memory=self._memory,
            ideal_tier=ideal,
            tier=tier,
        )
        self.snapshots.publish(snapshot)
        return snapshot

    def _read_memory(self) -> MemoryPressureLevel:
        """Poll the memory source; unavailable or failing sources read NORMAL."""
        if self._memory_source is None:
            return MemoryPressureLevel.NORMAL
        try:
            reading: MemoryReading = self._memory_source.read()
        except Exception as exc:  # noqa: BLE001
            _log.warn("telemetry", "memory_read_error", {"error": str(exc)})
            return MemoryPressureLevel.NORMAL
        return classify_memory(
            reading.available_bytes,
            reading.threshold_bytes,
            reading.low_memory,
            low_factor=self._config.low_factor,
            moderate_factor=self._config.moderate_factor,
        )

    def _read_thermal(self) -> Optional[ThermalLevel]:
        """Poll the thermal source; None means "no polled source"."""
        if self._thermal_source is None:
            return None
        try:
            return self._thermal_source.read_level()
        except Exception as exc:  # noqa: BLE001
            _log.warn("telemetry", "thermal_read_error", {"error": str(exc)})
            return ThermalLevel.NORMAL

    def _loop(self) -> None:
        """Sampling loop: one period every ``period_s`` until stopped."""
        while not self._stop_event.is_set():
            try:
                self.sample_once()
            except Exception as exc:  # noqa: BLE001
                _log.error("telemetry", "sample_error", {"error": str(exc)})
            self._stop_event.wait(self._config.period_s)
