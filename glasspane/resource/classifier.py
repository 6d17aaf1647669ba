"""
glasspane/resource/classifier.py — (thermal, memory) → ideal feature tier.

Pure functions, no state. Thermal pressure dominates memory pressure.
"""

from __future__ import annotations

from glasspane.resource.levels import FeatureTier, MemoryPressureLevel, ThermalLevel


def classify_tier(thermal: ThermalLevel, memory: MemoryPressureLevel) -> FeatureTier:
    """
    Return the richest tier the device can currently afford.

    Args:
        thermal: Latest thermal level.
        memory: Latest memory pressure level.

    Returns:
        The ideal :class:`FeatureTier` for this reading, before hysteresis.
    """
    if thermal == ThermalLevel.SHUTDOWN or memory == MemoryPressureLevel.CRITICAL:
        return FeatureTier.MINIMAL
    if thermal == ThermalLevel.CRITICAL:
        return FeatureTier.MINIMAL
    if thermal == ThermalLevel.SEVERE or memory == MemoryPressureLevel.LOW:
        return FeatureTier.LIGHT
    if thermal == ThermalLevel.SERIOUS:
        return FeatureTier.MEDIUM
    if thermal == ThermalLevel.MODERATE or memory == MemoryPressureLevel.MODERATE:
        return FeatureTier.HIGH
    return FeatureTier.FULL


def classify_memory(
    available_bytes: int,
    threshold_bytes: int,
    low_memory: bool,
    low_factor: float = 1.5,
    moderate_factor: float = 2.5,
) -> MemoryPressureLevel:
    """
    Derive memory pressure from available memory against a device threshold.

    The platform "low memory" flag overrides everything to CRITICAL.

    Args:
        available_bytes: Currently available memory.
        threshold_bytes: Device low-memory threshold.
        low_memory: Platform-reported low-memory flag.
        low_factor: Multiple of the threshold below which pressure is LOW.
        moderate_factor: Multiple below which pressure is MODERATE.

    Returns:
        The :class:`MemoryPressureLevel` for this reading.
    """
    if low_memory:
        return MemoryPressureLevel.CRITICAL
    if available_bytes < threshold_bytes * low_factor:
        return MemoryPressureLevel.LOW
    if available_bytes < threshold_bytes * moderate_factor:
        return MemoryPressureLevel.MODERATE
    return MemoryPressureLevel.NORMAL
