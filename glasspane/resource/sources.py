"""
glasspane/resource/sources.py — Telemetry providers backed by psutil.

Sources are duck-typed: anything with ``read()`` returning a
:class:`MemoryReading` is a memory source, anything with ``read_level()``
returning a :class:`ThermalLevel` is a thermal source.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable

import psutil

from glasspane.core.config import TelemetryConfig, ThermalConfig
from glasspane.resource.levels import ThermalLevel

# ──────────────────────────────────────────────────────────────
# Source protocols (duck-typed)
# ──────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class MemoryReading:
    """
    One periodic memory observation.

    Attributes:
        available_bytes: Memory currently available to new allocations.
        threshold_bytes: Device low-memory threshold.
        low_memory: Platform-reported "low memory" flag.
    """

    available_bytes: int
    threshold_bytes: int
    low_memory: bool


@runtime_checkable
class MemorySource(Protocol):
    """Minimal interface required of any memory provider."""

    def read(self) -> MemoryReading:
        """Return the latest memory reading."""
        ...


@runtime_checkable
class ThermalSource(Protocol):
    """Minimal interface required of any polled thermal provider."""

    def read_level(self) -> ThermalLevel:
        """Return the current thermal level."""
        ...


# ──────────────────────────────────────────────────────────────
# psutil implementations
# ──────────────────────────────────────────────────────────────


class PsutilMemorySource:
    """
    Reads available system memory via :func:`psutil.virtual_memory`.

    psutil has no notion of a kernel low-memory threshold, so the threshold
    comes from configuration; ``low_memory`` is raised once available
    memory falls to or below it.

    Args:
        config: Telemetry configuration holding ``memory_threshold_bytes``.
    """

    def __init__(self, config: TelemetryConfig) -> None:
        self._threshold = config.memory_threshold_bytes

    def read(self) -> MemoryReading:
        available = int(psutil.virtual_memory().available)
        return MemoryReading(
            available_bytes=available,
            threshold_bytes=self._threshold,
            low_memory=available <= self._threshold,
        )


def level_for_temperature(celsius: float, config: ThermalConfig) -> ThermalLevel:
    """
    Map a temperature to a thermal level using configured boundaries.

    Args:
        celsius: Sensor reading.
        config: Boundary temperatures; each is the inclusive lower bound
            of its level.

    Returns:
        The matching :class:`ThermalLevel`.
    """
    if celsius >= config.shutdown_c:
        return ThermalLevel.SHUTDOWN
    if celsius >= config.critical_c:
        return ThermalLevel.CRITICAL
    if celsius >= config.severe_c:
        return ThermalLevel.SEVERE
    if celsius >= config.serious_c:
        return ThermalLevel.SERIOUS
    if celsius >= config.moderate_c:
        return ThermalLevel.MODERATE
    return ThermalLevel.NORMAL


class PsutilThermalSource:
    """
    Polls :func:`psutil.sensors_temperatures` and reports the hottest sensor.

    ``sensors_temperatures`` only exists on Linux and FreeBSD; elsewhere,
    and whenever no sensor reports, the level is NORMAL.

    Args:
        config: Thermal boundary configuration.
    """

    def __init__(self, config: ThermalConfig) -> None:
        self._config = config

    @property
    def supported(self) -> bool:
        """True if this platform exposes temperature sensors through psutil."""
        return hasattr(psutil, "sensors_temperatures")

    def hottest_celsius(self) -> float | None:
        """Return the highest current sensor temperature, or None."""
        if not self.supported:
            return None
        temps = psutil.sensors_temperatures() or {}
        readings = [
            entry.current
            for entries in temps.values()
            for entry in entries
            if entry.current is not None
        ]
        return max(readings) if readings else None

    def read_level(self) -> ThermalLevel:
        hottest = self.hottest_celsius()
        if hottest is None:
            return ThermalLevel.NORMAL
        return level_for_temperature(hottest, self._config)
