"""
glasspane.resource — Device telemetry sampling and feature-tier selection.

TelemetrySampler feeds (thermal, memory) snapshots into the pure tier
classifier; TierController filters the ideal tier with upgrade hysteresis.
"""

from glasspane.resource.classifier import classify_tier
from glasspane.resource.controller import TierController, TierControllerState
from glasspane.resource.levels import FeatureTier, MemoryPressureLevel, ThermalLevel
from glasspane.resource.sampler import TelemetrySampler, TelemetrySnapshot

__all__ = [
    "FeatureTier",
    "MemoryPressureLevel",
    "TelemetrySampler",
    "TelemetrySnapshot",
    "ThermalLevel",
    "TierController",
    "TierControllerState",
    "classify_tier",
]
