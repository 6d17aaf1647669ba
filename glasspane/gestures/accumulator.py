"""
glasspane/gestures/accumulator.py — Running drag offset with per-edge clamp.

Before commit the offset is the raw sum of deltas. Once an edge is locked the
stored offset is clamped after every step so its sign always agrees with the
edge (LEFT ⇒ x ≥ 0, RIGHT ⇒ x ≤ 0, BOTTOM ⇒ y ≥ 0).
"""

from __future__ import annotations

from glasspane.gestures.types import ZERO, GestureEdge, Offset


def clamp_to_edge(offset: Offset, edge: GestureEdge) -> Offset:
    """Clamp *offset* so its sign is consistent with *edge*."""
    if edge is GestureEdge.LEFT:
        return Offset(max(offset.x, 0.0), offset.y)
    if edge is GestureEdge.RIGHT:
        return Offset(min(offset.x, 0.0), offset.y)
    if edge is GestureEdge.BOTTOM:
        return Offset(offset.x, max(offset.y, 0.0))
    return offset


class DragAccumulator:
    """Accumulates per-step pointer deltas into a running offset."""

    def __init__(self) -> None:
        self._offset: Offset = ZERO
        self._locked: GestureEdge = GestureEdge.NONE

    @property
    def offset(self) -> Offset:
        return self._offset

    @property
    def locked_edge(self) -> GestureEdge:
        return self._locked

    def reset(self) -> None:
        """Zero the offset and release any edge lock."""
        self._offset = ZERO
        self._locked = GestureEdge.NONE

    def add(self, dx: float, dy: float) -> Offset:
        """
        Add one pointer delta.

        Args:
            dx: Horizontal movement since the previous step.
            dy: Vertical movement since the previous step.

        Returns:
            The (clamped, if locked) offset after the step.
        """
        self._offset = clamp_to_edge(self._offset + Offset(dx, dy), self._locked)
        return self._offset

    def lock(self, edge: GestureEdge) -> Offset:
        """
        Lock the accumulator to *edge* and clamp the current offset.

        Locking to NONE (a non-dismiss gesture) leaves the offset unclamped.
        """
        self._locked = edge
        self._offset = clamp_to_edge(self._offset, edge)
        return self._offset
