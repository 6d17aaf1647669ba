"""
glasspane/resource/controller.py — Hysteresis filter over the ideal tier.

Degradation is applied on the very next sample; recovery needs a sustained
run of better samples and then climbs a single tier per run. Thread-safe:
every write goes through :meth:`TierController.apply` under one lock.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional

from glasspane.core.channel import LatestValue
from glasspane.core.logger import get_logger
from glasspane.resource.levels import FeatureTier

_log = get_logger()

# Maximum number of tier-change records kept in history
_MAX_HISTORY = 50


@dataclass(frozen=True)
class TierControllerState:
    """
    Immutable snapshot of the controller's internal state.

    Attributes:
        current_tier: The stabilised tier consumers should render with.
        stable_upgrade_count: Consecutive samples whose ideal tier was above
            ``current_tier`` since the last reset of the counter.
        last_ideal_tier: The most recent ideal tier fed to the controller.
    """

    current_tier: FeatureTier
    stable_upgrade_count: int
    last_ideal_tier: FeatureTier


class TierController:
    """
    Stateful hysteresis filter: ideal tier stream → stabilised tier stream.

    Args:
        upgrade_threshold: Consecutive "better" samples needed before the
            current tier climbs one level.
        initial_tier: Tier reported before any sample is applied.
        on_change: Optional callback ``(old_tier, new_tier)`` fired after
            every change of the stabilised tier.
    """

    def __init__(
        self,
        upgrade_threshold: int = 5,
        initial_tier: FeatureTier = FeatureTier.FULL,
        on_change: Optional[Callable[[FeatureTier, FeatureTier], None]] = None,
    ) -> None:
        self._threshold = upgrade_threshold
        self._initial = initial_tier
        self._lock = threading.Lock()
        self._current: FeatureTier = initial_tier
        self._count: int = 0
        self._last_ideal: FeatureTier = initial_tier
        self._history: list[dict] = []
        self._on_change = on_change
        self.tier = LatestValue(initial_tier, name="tier")

    # ──────────────────────────────────────────
    # Public API
    # ──────────────────────────────────────────

    @property
    def current_tier(self) -> FeatureTier:
        """Return the current stabilised tier (thread-safe read)."""
        with self._lock:
            return self._current

    @property
    def state(self) -> TierControllerState:
        """Return an immutable snapshot of the controller state."""
        with self._lock:
            return TierControllerState(
                current_tier=self._current,
                stable_upgrade_count=self._count,
                last_ideal_tier=self._last_ideal,
            )

    def apply(self, ideal: FeatureTier) -> FeatureTier:
        """
        Feed one ideal-tier sample through the hysteresis filter.

        Args:
            ideal: Tier the classifier picked for the latest telemetry.

        Returns:
            The stabilised tier after this sample.
        """
        with self._lock:
            old = self._current
            self._last_ideal = ideal

            if ideal.level < old.level:
                self._count = 0
                new = ideal
            elif ideal.level > old.level:
                self._count += 1
                if self._count >= self._threshold:
                    self._count = 0
                    new = old.upgrade()
                else:
                    new = old
            else:
                self._count = 0
                new = old

            self._current = new
            if new is not old:
                self._record(old, new, ideal)

        if new is not old:
            _log.info("tier", "tier_changed", {
                "from": old.name,
                "to": new.name,
                "ideal": ideal.name,
            })
            if self._on_change is not None:
                try:
                    self._on_change(old, new)
                except Exception as exc:  # noqa: BLE001
                    _log.warn("tier", "on_change_error", {"error": str(exc)})

        self.tier.publish(new)
        return new

    def reset(self) -> None:
        """Return to the initial tier with a cleared counter."""
        with self._lock:
            self._current = self._initial
            self._count = 0
            self._last_ideal = self._initial
        _log.info("tier", "reset", {"tier": self._initial.name})
        self.tier.publish(self._initial)

    def get_history(self) -> list[dict]:
        """
        Return a copy of the last (up to 50) tier-change records.

        Each record has keys ``from``, ``to``, ``ideal`` and ``timestamp``.
        """
        with self._lock:
            return list(self._history)

    # ──────────────────────────────────────────
    # Internal helpers
    # ──────────────────────────────────────────

    def _record(self, old: FeatureTier, new: FeatureTier, ideal: FeatureTier) -> None:
        """Append a change record. Called with ``self._lock`` held."""
        self._history.append({
            "from": old.name,
            "to": new.name,
            "ideal": ideal.name,
            "timestamp": time.time(),
        })
        if len(self._history) > _MAX_HISTORY:
            self._history.pop(0)

    def __repr__(self) -> str:
        s = self.state
        return (
            f"TierController(tier={s.current_tier.name}, "
            f"count={s.stable_upgrade_count}/{self._threshold}, "
            f"ideal={s.last_ideal_tier.name})"
        )
