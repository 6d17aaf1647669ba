"""
glasspane/gestures/pointer.py — Raw pointer stream → normalised gesture input.

The adapter owns the per-session geometry: it classifies the pointer-down
position into a provisional edge, accumulates per-step deltas, runs the
commit classifier and computes progress against the current edge, which stays
provisional until the commit locks it. The shared
:class:`~glasspane.gestures.machine.DismissGestureMachine` only ever sees
:class:`~glasspane.gestures.types.GestureInput` values.

A platform cancellation of the pointer stream ends the session like a release:
the drag distance still decides between dismiss and snap-back.
"""

from __future__ import annotations

import logging
from typing import Optional

from glasspane.core.config import GestureConfig
from glasspane.gestures.accumulator import DragAccumulator
from glasspane.gestures.commit import CommitClassifier
from glasspane.gestures.dismiss import compute_progress
from glasspane.gestures.edge import classify_edge
from glasspane.gestures.machine import DismissGestureMachine
from glasspane.gestures.types import (
    GestureInput,
    GestureProgress,
    InputKind,
    TerminalKind,
)

logger = logging.getLogger(__name__)


class PointerGestureAdapter:
    """
    Feeds a pointer (touch / mouse) stream into the dismiss machine.

    Example::

        adapter = PointerGestureAdapter(machine, GestureConfig())
        adapter.down(10, 500)
        adapter.move_by(30, 0)
        adapter.move_by(60, 0)
        adapter.release()

    Args:
        machine: Shared dismiss state machine.
        config: Viewport and threshold geometry.
    """

    def __init__(self, machine: DismissGestureMachine, config: Optional[GestureConfig] = None) -> None:
        self._machine = machine
        self._config = config or GestureConfig()
        self._accumulator = DragAccumulator()
        self._classifier = CommitClassifier(
            commit_distance=self._config.commit_distance_px,
            commit_ratio=self._config.commit_ratio,
        )
        self._session_id: Optional[int] = None
        self._pressed = False
        self._last: tuple[float, float] = (0.0, 0.0)

    @property
    def pressed(self) -> bool:
        return self._pressed

    # ──────────────────────────────────────────
    # Raw stream entry point
    # ──────────────────────────────────────────

    def on_pointer(self, x: float, y: float, pressed: bool) -> GestureProgress:
        """
        Process one raw pointer sample.

        A pressed sample after an unpressed one starts a session, consecutive
        pressed samples are drag steps, and an unpressed sample after a
        pressed one moves to the final position and releases.

        Args:
            x: Pointer x in pixels.
            y: Pointer y in pixels.
            pressed: Whether the pointer is down.

        Returns:
            The machine's progress after the sample.
        """
        if pressed and not self._pressed:
            return self.down(x, y)
        if pressed:
            return self.move_to(x, y)
        if self._pressed:
            if (x, y) != self._last:
                self.move_to(x, y)
            return self.release()
        return self._machine.progress.value

    # ──────────────────────────────────────────
    # Discrete steps
    # ──────────────────────────────────────────

    def down(self, x: float, y: float) -> GestureProgress:
        """Pointer-down at (x, y): start a new session."""
        edge = classify_edge(x, self._config.viewport_width, self._config.edge_zone_px)
        self._accumulator.reset()
        self._classifier.begin(edge)
        self._session_id = self._machine.open_session()
        self._pressed = True
        self._last = (x, y)
        logger.debug("Pointer down at (%.1f, %.1f): provisional edge %s", x, y, edge.value)
        return self._machine.handle(GestureInput(InputKind.BEGIN, self._session_id, edge=edge))

    def move_to(self, x: float, y: float) -> GestureProgress:
        """Drag to absolute position (x, y)."""
        lx, ly = self._last
        return self.move_by(x - lx, y - ly)

    def move_by(self, dx: float, dy: float) -> GestureProgress:
        """
        One drag step of (dx, dy) pixels.

        Order per step: accumulate, evaluate commit, clamp to the locked edge,
        then compute progress. Before the commit, progress follows the
        provisional edge over the raw offset; a NONE commit reads 0.
        """
        if not self._pressed or self._session_id is None:
            return self._machine.progress.value

        lx, ly = self._last
        self._last = (lx + dx, ly + dy)

        was_committed = self._classifier.state.is_committed
        self._accumulator.add(dx, dy)
        verdict = self._classifier.update(self._accumulator.offset)
        if verdict.state.is_committed and not was_committed:
            self._accumulator.lock(verdict.edge)

        progress = compute_progress(verdict.edge, self._accumulator.offset, self._config.max_drag_px)
        return self._machine.handle(GestureInput(
            InputKind.MOVE,
            self._session_id,
            edge=verdict.edge,
            offset=self._accumulator.offset,
            progress=progress,
            commit=verdict.state,
        ))

    def release(self) -> GestureProgress:
        """Pointer lifted: the machine decides dismiss, snap-back or reset."""
        return self._end(TerminalKind.RELEASED)

    def cancel(self) -> GestureProgress:
        """Pointer stream cancelled by the platform; decided like a release."""
        logger.debug("Pointer stream cancelled; deciding from drag distance")
        return self._end(TerminalKind.RELEASED)

    def _end(self, terminal: TerminalKind) -> GestureProgress:
        if not self._pressed or self._session_id is None:
            return self._machine.progress.value
        session_id = self._session_id
        self._pressed = False
        self._session_id = None
        self._accumulator.reset()
        return self._machine.handle(GestureInput(InputKind.END, session_id, terminal=terminal))
