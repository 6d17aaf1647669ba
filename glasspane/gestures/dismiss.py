"""
glasspane/gestures/dismiss.py — Progress and release decisions.

Progress is the edge-axis offset as a fraction of the maximum drag, measured
in the direction that dismisses the panel. On release a committed edge
gesture dismisses once it passes ``dismiss_fraction`` of the maximum drag.
"""

from __future__ import annotations

from enum import Enum

from glasspane.gestures.types import CommitState, GestureEdge, Offset


class ReleaseOutcome(Enum):
    """What a pointer release resolves to."""

    RESET = "RESET"            # never committed, or committed to NONE
    SNAP_BACK = "SNAP_BACK"    # committed to an edge, not far enough
    DISMISS = "DISMISS"        # committed to an edge, past the threshold


def relevant_offset(edge: GestureEdge, offset: Offset) -> float:
    """
    Signed distance travelled in the dismiss direction of *edge*.

    LEFT uses +x, RIGHT uses −x, BOTTOM uses +y; NONE is always 0.
    """
    if edge is GestureEdge.LEFT:
        return offset.x
    if edge is GestureEdge.RIGHT:
        return -offset.x
    if edge is GestureEdge.BOTTOM:
        return offset.y
    return 0.0


def clamp_progress(value: float) -> float:
    """Clamp a raw progress value into [0, 1]."""
    return min(max(value, 0.0), 1.0)


def compute_progress(edge: GestureEdge, offset: Offset, max_drag: float = 300.0) -> float:
    """
    Raw dismiss progress for a locked edge.

    Args:
        edge: Locked edge; NONE yields 0.
        offset: Current drag offset.
        max_drag: Offset magnitude that corresponds to progress 1.0.

    Returns:
        Progress in [0, 1].
    """
    if edge is GestureEdge.NONE:
        return 0.0
    return clamp_progress(relevant_offset(edge, offset) / max_drag)


def decide_release(
    commit_state: CommitState,
    edge: GestureEdge,
    offset: Offset,
    max_drag: float = 300.0,
    dismiss_fraction: float = 0.25,
) -> ReleaseOutcome:
    """
    Decide what a pointer release does.

    Args:
        commit_state: Commit state of the session at release.
        edge: Locked edge (ignored unless committed to an edge).
        offset: Final drag offset.
        max_drag: Maximum drag distance.
        dismiss_fraction: Fraction of ``max_drag`` that must be exceeded.

    Returns:
        RESET, SNAP_BACK or DISMISS.
    """
    if commit_state is not CommitState.COMMITTED_EDGE or edge is GestureEdge.NONE:
        return ReleaseOutcome.RESET
    if relevant_offset(edge, offset) > max_drag * dismiss_fraction:
        return ReleaseOutcome.DISMISS
    return ReleaseOutcome.SNAP_BACK
