"""
glasspane/resource/levels.py — Ordered telemetry levels and feature tiers.

ThermalLevel and MemoryPressureLevel are the classifier inputs; FeatureTier
is its output. All three are IntEnums so ordering comparisons are explicit
and total.
"""

from __future__ import annotations

from enum import IntEnum
from typing import Optional


# ──────────────────────────────────────────────────────────────
# Thermal
# ──────────────────────────────────────────────────────────────

class ThermalLevel(IntEnum):
    """Device thermal state, monotonically worsening."""

    NORMAL = 0
    MODERATE = 1
    SERIOUS = 2
    SEVERE = 3
    CRITICAL = 4
    SHUTDOWN = 5

    @classmethod
    def from_platform_status(cls, status: int) -> "ThermalLevel":
        """
        Map a platform thermal status code (0–6) to a ThermalLevel.

        Codes: 0 none, 1 light, 2 moderate, 3 severe, 4 critical,
        5 emergency, 6 shutdown. The platform's "severe" is our SERIOUS,
        its "critical" our SEVERE, its "emergency" our CRITICAL.
        Unknown codes map to NORMAL.

        Args:
            status: Raw platform status code.

        Returns:
            The matching :class:`ThermalLevel`.
        """
        return _PLATFORM_THERMAL.get(status, cls.NORMAL)


_PLATFORM_THERMAL: dict[int, ThermalLevel] = {
    0: ThermalLevel.NORMAL,
    1: ThermalLevel.NORMAL,
    2: ThermalLevel.MODERATE,
    3: ThermalLevel.SERIOUS,
    4: ThermalLevel.SEVERE,
    5: ThermalLevel.CRITICAL,
    6: ThermalLevel.SHUTDOWN,
}


# ──────────────────────────────────────────────────────────────
# Memory
# ──────────────────────────────────────────────────────────────

class TrimLevel(IntEnum):
    """Coarse trim-memory levels reported by the host platform."""

    RUNNING_MODERATE = 5
    RUNNING_LOW = 10
    RUNNING_CRITICAL = 15
    UI_HIDDEN = 20
    BACKGROUND = 40
    MODERATE = 60
    COMPLETE = 80


class MemoryPressureLevel(IntEnum):
    """Memory pressure, monotonically worsening."""

    NORMAL = 0
    MODERATE = 1
    LOW = 2
    CRITICAL = 3

    @classmethod
    def from_trim_level(cls, level: int) -> Optional["MemoryPressureLevel"]:
        """
        Map a trim-memory level to a pressure level.

        Args:
            level: Raw trim level (see :class:`TrimLevel`).

        Returns:
            The pressure level, or None for levels that carry no pressure
            signal (e.g. UI_HIDDEN).
        """
        return _TRIM_PRESSURE.get(level)


_TRIM_PRESSURE: dict[int, MemoryPressureLevel] = {
    TrimLevel.RUNNING_CRITICAL: MemoryPressureLevel.CRITICAL,
    TrimLevel.COMPLETE: MemoryPressureLevel.CRITICAL,
    TrimLevel.RUNNING_LOW: MemoryPressureLevel.LOW,
    TrimLevel.MODERATE: MemoryPressureLevel.LOW,
    TrimLevel.RUNNING_MODERATE: MemoryPressureLevel.MODERATE,
    TrimLevel.BACKGROUND: MemoryPressureLevel.MODERATE,
}


# ──────────────────────────────────────────────────────────────
# Feature tiers
# ──────────────────────────────────────────────────────────────

class FeatureTier(IntEnum):
    """
    Discrete visual-capability level for the panel, 0 (bare) to 4 (full).

    - FULL: blur, animated glow, spring physics
    - HIGH: animated glow, spring physics, no blur
    - MEDIUM: static glow border, spring physics
    - LIGHT: static border, simple easing
    - MINIMAL: no effects, instant transitions
    """

    MINIMAL = 0
    LIGHT = 1
    MEDIUM = 2
    HIGH = 3
    FULL = 4

    @property
    def level(self) -> int:
        """Integer capability level in [0, 4]."""
        return int(self)

    @property
    def has_blur(self) -> bool:
        return self.level == FeatureTier.FULL.level

    @property
    def has_animated_glow(self) -> bool:
        return self.level >= FeatureTier.HIGH.level

    @property
    def has_static_glow(self) -> bool:
        return self.level >= FeatureTier.MEDIUM.level

    @property
    def has_spring_physics(self) -> bool:
        return self.level >= FeatureTier.MEDIUM.level

    @property
    def has_any_effects(self) -> bool:
        return self.level >= FeatureTier.LIGHT.level

    def upgrade(self) -> "FeatureTier":
        """Next tier up; FULL saturates."""
        return _UPGRADE[self]

    def degrade(self) -> "FeatureTier":
        """Next tier down; MINIMAL saturates."""
        return _DEGRADE[self]

    def capabilities(self) -> dict[str, bool]:
        """Return every capability flag as a plain dict (for serialisation)."""
        return {
            "blur": self.has_blur,
            "animated_glow": self.has_animated_glow,
            "static_glow": self.has_static_glow,
            "spring_physics": self.has_spring_physics,
            "any_effects": self.has_any_effects,
        }

    @classmethod
    def from_level(cls, level: int) -> "FeatureTier":
        """Return the tier for *level*; unknown levels map to MINIMAL."""
        try:
            return cls(level)
        except ValueError:
            return cls.MINIMAL

    @classmethod
    def from_name(cls, name: str) -> "FeatureTier":
        """Return the tier named *name* (case-insensitive)."""
        return cls[name.upper()]


# Next-level tables, one entry per tier; ends saturate
_UPGRADE: dict[FeatureTier, FeatureTier] = {
    FeatureTier.MINIMAL: FeatureTier.LIGHT,
    FeatureTier.LIGHT: FeatureTier.MEDIUM,
    FeatureTier.MEDIUM: FeatureTier.HIGH,
    FeatureTier.HIGH: FeatureTier.FULL,
    FeatureTier.FULL: FeatureTier.FULL,
}

_DEGRADE: dict[FeatureTier, FeatureTier] = {
    FeatureTier.FULL: FeatureTier.HIGH,
    FeatureTier.HIGH: FeatureTier.MEDIUM,
    FeatureTier.MEDIUM: FeatureTier.LIGHT,
    FeatureTier.LIGHT: FeatureTier.MINIMAL,
    FeatureTier.MINIMAL: FeatureTier.MINIMAL,
}
