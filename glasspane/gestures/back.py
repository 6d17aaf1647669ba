"""
glasspane/gestures/back.py — Native predictive-back events → gesture input.

The platform reports a stream of ``(edge, progress)`` events that ends either
normally (the back gesture completed) or by cancellation. The edge is fixed by
the first event of a stream; the platform has already decided the gesture is
a back gesture, so the session is committed immediately.

Two ways to drive it:

* Callback style — :meth:`BackGestureAdapter.on_progress`,
  :meth:`~BackGestureAdapter.on_completed`,
  :meth:`~BackGestureAdapter.on_cancelled`.
* Stream style — ``await adapter.collect(events)`` on an async iterator; a
  normal end is a completion, :class:`asyncio.CancelledError` a cancellation.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import AsyncIterator, Optional

from glasspane.core.config import GestureConfig
from glasspane.gestures.dismiss import clamp_progress
from glasspane.gestures.machine import DismissGestureMachine
from glasspane.gestures.types import (
    CommitState,
    GestureEdge,
    GestureInput,
    GestureProgress,
    InputKind,
    Offset,
    TerminalKind,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BackEvent:
    """One native back-progress event."""

    edge: GestureEdge
    progress: float


def synthesize_offset(edge: GestureEdge, progress: float, max_drag: float) -> Offset:
    """Offset equivalent to *progress* along the dismiss direction of *edge*."""
    distance = progress * max_drag
    if edge is GestureEdge.RIGHT:
        return Offset(-distance, 0.0)
    if edge is GestureEdge.BOTTOM:
        return Offset(0.0, distance)
    return Offset(distance, 0.0)


class BackGestureAdapter:
    """
    Feeds native back events into the dismiss machine.

    Progress is passed through as reported (clamped to [0, 1]); no edge
    classification or commit evaluation is performed.

    Args:
        machine: Shared dismiss state machine.
        config: Gesture geometry; ``max_drag_px`` scales the synthesised offset.
    """

    def __init__(self, machine: DismissGestureMachine, config: Optional[GestureConfig] = None) -> None:
        self._machine = machine
        self._config = config or GestureConfig()
        self._session_id: Optional[int] = None
        self._edge = GestureEdge.NONE

    @property
    def active(self) -> bool:
        return self._session_id is not None

    def on_progress(self, event: BackEvent) -> GestureProgress:
        """
        Handle one progress event, opening a session on the first one.

        Args:
            event: Native back event; its edge is only read on the first event.

        Returns:
            The machine's progress after the event.
        """
        if self._session_id is None:
            self._open(event.edge)
        progress = clamp_progress(event.progress)
        return self._machine.handle(GestureInput(
            InputKind.MOVE,
            self._session_id,
            edge=self._edge,
            offset=synthesize_offset(self._edge, progress, self._config.max_drag_px),
            progress=progress,
            commit=CommitState.COMMITTED_EDGE,
        ))

    def on_completed(self) -> GestureProgress:
        """The platform committed the back gesture: dismiss the panel."""
        if self._session_id is None:
            # completion without any progress event still dismisses
            self._open(GestureEdge.LEFT)
            self._machine.handle(GestureInput(
                InputKind.MOVE,
                self._session_id,
                edge=self._edge,
                commit=CommitState.COMMITTED_EDGE,
            ))
        return self._end(TerminalKind.COMPLETED)

    def on_cancelled(self) -> GestureProgress:
        """The platform abandoned the back gesture: snap back."""
        if self._session_id is None:
            return self._machine.progress.value
        return self._end(TerminalKind.CANCELLED)

    async def collect(self, events: AsyncIterator[BackEvent]) -> bool:
        """
        Consume one back-gesture stream.

        Args:
            events: Async iterator of :class:`BackEvent`.

        Returns:
            True when the stream ended normally (completed).

        Raises:
            asyncio.CancelledError: Re-raised after the session is cancelled.
        """
        try:
            async for event in events:
                self.on_progress(event)
        except asyncio.CancelledError:
            logger.debug("Back gesture stream cancelled")
            self.on_cancelled()
            raise
        self.on_completed()
        return True

    # ──────────────────────────────────────────
    # Internal helpers
    # ──────────────────────────────────────────

    def _open(self, edge: GestureEdge) -> None:
        # Only LEFT / RIGHT / BOTTOM are meaningful; anything else maps to LEFT
        self._edge = edge if edge in (GestureEdge.RIGHT, GestureEdge.BOTTOM) else GestureEdge.LEFT
        self._session_id = self._machine.open_session()
        logger.debug("Back gesture started on %s", self._edge.value)
        self._machine.handle(GestureInput(InputKind.BEGIN, self._session_id, edge=self._edge))

    def _end(self, terminal: TerminalKind) -> GestureProgress:
        session_id = self._session_id
        self._session_id = None
        self._edge = GestureEdge.NONE
        return self._machine.handle(GestureInput(InputKind.END, session_id, terminal=terminal))
