"""
glasspane/core/config.py — Typed configuration loader for GlassPane.

Loads config/glasspane.yaml and validates all values into typed dataclasses.
All downstream modules import from this module; never read YAML directly.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

logger = logging.getLogger(__name__)

# Tier names accepted for ``tier.initial_tier`` (mirrors FeatureTier members)
_TIER_NAMES: tuple[str, ...] = ("MINIMAL", "LIGHT", "MEDIUM", "HIGH", "FULL")


# ──────────────────────────────────────────────
# Dataclass hierarchy — mirrors glasspane.yaml
# ──────────────────────────────────────────────


@dataclass(frozen=True)
class TelemetryConfig:
    """Periodic sampler and memory-pressure tuning."""

    period_s: float = 1.0
    memory_threshold_bytes: int = 536_870_912
    low_factor: float = 1.5
    moderate_factor: float = 2.5


@dataclass(frozen=True)
class ThermalConfig:
    """Sensor temperature (°C) boundaries for each thermal level."""

    enabled: bool = True
    moderate_c: float = 60.0
    serious_c: float = 70.0
    severe_c: float = 80.0
    critical_c: float = 90.0
    shutdown_c: float = 100.0


@dataclass(frozen=True)
class TierConfig:
    """Tier hysteresis parameters."""

    upgrade_threshold: int = 5
    initial_tier: str = "FULL"


@dataclass(frozen=True)
class GestureConfig:
    """Swipe-to-dismiss geometry. Distances are in pixels unless noted."""

    viewport_width: float = 1080.0
    density: float = 1.0
    edge_zone_dp: float = 40.0
    commit_distance_px: float = 20.0
    commit_ratio: float = 1.5
    max_drag_px: float = 300.0
    dismiss_fraction: float = 0.25

    @property
    def edge_zone_px(self) -> float:
        """Edge zone converted from density-independent units to pixels."""
        return self.edge_zone_dp * self.density

    @property
    def dismiss_distance_px(self) -> float:
        """Edge-axis distance past which a release dismisses the panel."""
        return self.max_drag_px * self.dismiss_fraction


@dataclass(frozen=True)
class WebConfig:
    """Web bridge server configuration."""

    host: str = "127.0.0.1"
    port: int = 7860
    heartbeat_s: float = 1.0


@dataclass(frozen=True)
class LoggingConfig:
    """Event log settings: minimum level (DEBUG, INFO, WARN, ERROR) and directory."""

    level: str = "INFO"
    log_dir: Optional[str] = None


@dataclass(frozen=True)
class GlassPaneConfig:
    """Root configuration object — single source of truth for all settings."""

    telemetry: TelemetryConfig = field(default_factory=TelemetryConfig)
    thermal: ThermalConfig = field(default_factory=ThermalConfig)
    tier: TierConfig = field(default_factory=TierConfig)
    gesture: GestureConfig = field(default_factory=GestureConfig)
    web: WebConfig = field(default_factory=WebConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


# ──────────────────────────────────────────────
# Loader
# ──────────────────────────────────────────────


def _resolve_path(config_path: Path | str | None) -> Path | None:
    """
    Resolve which YAML file (if any) should be loaded.

    Args:
        config_path: Explicit path, or None to search.

    Returns:
        Path of the config file, or None if defaults should be used.

    Raises:
        FileNotFoundError: If an explicit or env-provided path does not exist.
    """
    if config_path is not None:
        resolved = Path(config_path)
        if not resolved.exists():
            raise FileNotFoundError(f"Config file not found: {resolved}")
        return resolved

    if "GLASSPANE_CONFIG" in os.environ:
        resolved = Path(os.environ["GLASSPANE_CONFIG"])
        if not resolved.exists():
            raise FileNotFoundError(
                f"GLASSPANE_CONFIG points to missing file: {resolved}"
            )
        return resolved

    here = Path(__file__).resolve()
    for parent in [here.parent.parent.parent, Path.cwd()]:
        candidate = parent / "config" / "glasspane.yaml"
        if candidate.exists():
            return candidate
    return None


def load_config(config_path: Path | str | None = None) -> GlassPaneConfig:
    """
    Load, validate, and return a GlassPaneConfig from a YAML file.

    The search order for the config file is:
    1. *config_path* argument (if provided)
    2. GLASSPANE_CONFIG environment variable
    3. ``config/glasspane.yaml`` relative to the project root
    4. Built-in defaults (no file required)

    Args:
        config_path: Optional path to a ``glasspane.yaml`` file.

    Returns:
        A fully populated and frozen :class:`GlassPaneConfig` instance.

    Raises:
        ValueError: If a YAML field has an invalid type or value.
        FileNotFoundError: If *config_path* is explicitly given but does not exist.
    """
    resolved_path = _resolve_path(config_path)

    raw: dict = {}
    if resolved_path is not None:
        logger.info("Loading config from: %s", resolved_path)
        with resolved_path.open("r", encoding="utf-8") as fh:
            loaded = yaml.safe_load(fh) or {}
        if not isinstance(loaded, dict):
            raise ValueError(f"Config file must be a YAML mapping, got: {type(loaded)}")
        raw = loaded
    else:
        logger.info("No config file found — using built-in defaults")

    return config_from_dict(raw)


def config_from_dict(raw: dict) -> GlassPaneConfig:
    """
    Build a validated :class:`GlassPaneConfig` from a plain mapping.

    Missing sections and keys fall back to defaults.

    Args:
        raw: Mapping shaped like ``glasspane.yaml``.

    Returns:
        A frozen, validated config.

    Raises:
        ValueError: On unknown keys, bad types or out-of-range values.
    """
    try:
        config = GlassPaneConfig(
            telemetry=TelemetryConfig(**(raw.get("telemetry") or {})),
            thermal=ThermalConfig(**(raw.get("thermal") or {})),
            tier=TierConfig(**(raw.get("tier") or {})),
            gesture=GestureConfig(**(raw.get("gesture") or {})),
            web=WebConfig(**(raw.get("web") or {})),
            logging=LoggingConfig(**(raw.get("logging") or {})),
        )
    except TypeError as exc:
        raise ValueError(f"Invalid config value: {exc}") from exc

    _validate_config(config)
    logger.debug("Config loaded: %s", config)
    return config


def _validate_config(config: GlassPaneConfig) -> None:
    """
    Validate cross-field constraints on the loaded configuration.

    Raises:
        ValueError: If any configured value violates a hard constraint.
    """
    tel = config.telemetry
    if tel.period_s <= 0:
        raise ValueError(f"telemetry.period_s must be positive, got {tel.period_s}")
    if tel.memory_threshold_bytes < 0:
        raise ValueError(
            f"telemetry.memory_threshold_bytes must be ≥0, got {tel.memory_threshold_bytes}"
        )
    if not (0.0 < tel.low_factor <= tel.moderate_factor):
        raise ValueError(
            "telemetry factors must satisfy 0 < low_factor ≤ moderate_factor, "
            f"got {tel.low_factor} / {tel.moderate_factor}"
        )

    th = config.thermal
    bounds = [th.moderate_c, th.serious_c, th.severe_c, th.critical_c, th.shutdown_c]
    if bounds != sorted(bounds):
        raise ValueError(f"thermal thresholds must be non-decreasing, got {bounds}")

    tier = config.tier
    if tier.upgrade_threshold < 1:
        raise ValueError(
            f"tier.upgrade_threshold must be ≥1, got {tier.upgrade_threshold}"
        )
    if tier.initial_tier.upper() not in _TIER_NAMES:
        raise ValueError(
            f"tier.initial_tier must be one of {_TIER_NAMES}, got '{tier.initial_tier}'"
        )

    g = config.gesture
    if g.viewport_width <= 0 or g.density <= 0:
        raise ValueError(
            f"gesture.viewport_width and gesture.density must be positive, "
            f"got {g.viewport_width} / {g.density}"
        )
    if g.edge_zone_dp < 0 or g.commit_distance_px < 0:
        raise ValueError("gesture.edge_zone_dp and gesture.commit_distance_px must be ≥0")
    if g.commit_ratio < 1.0:
        raise ValueError(f"gesture.commit_ratio must be ≥1, got {g.commit_ratio}")
    if g.max_drag_px <= 0:
        raise ValueError(f"gesture.max_drag_px must be positive, got {g.max_drag_px}")
    if not (0.0 < g.dismiss_fraction <= 1.0):
        raise ValueError(
            f"gesture.dismiss_fraction must be in (0, 1], got {g.dismiss_fraction}"
        )

    if not (0 < config.web.port < 65536):
        raise ValueError(f"web.port must be a valid TCP port, got {config.web.port}")
    if config.logging.level.upper() not in {"DEBUG", "INFO", "WARNING", "WARN", "ERROR"}:
        raise ValueError(f"logging.level is not a known level: '{config.logging.level}'")
