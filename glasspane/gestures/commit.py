"""
glasspane/gestures/commit.py — Decides when a drag becomes an edge-locked gesture.

A drag starts UNDETERMINED with a provisional edge from the edge classifier.
Each step is evaluated by :func:`evaluate_commit` until the drag commits to an
edge (possibly redirected to BOTTOM) or to NONE. Committed states are terminal
for the session.
"""

from __future__ import annotations

import logging

from glasspane.gestures.types import CommitState, CommitVerdict, GestureEdge, Offset

logger = logging.getLogger(__name__)


# Direction each side edge must be dragged in to count as a dismiss
_SIDE_DIRECTION: dict[GestureEdge, float] = {
    GestureEdge.LEFT: 1.0,
    GestureEdge.RIGHT: -1.0,
}


def evaluate_commit(
    edge: GestureEdge,
    offset: Offset,
    commit_distance: float = 20.0,
    commit_ratio: float = 1.5,
) -> CommitVerdict:
    """
    Evaluate one drag step of an UNDETERMINED gesture.

    Side edges (LEFT / RIGHT): once horizontal travel passes
    ``commit_distance`` and dominates vertical travel by ``commit_ratio``,
    commit to the side edge if the drag points away from it, otherwise commit
    to NONE. If vertical travel dominates instead, redirect to BOTTOM.

    BOTTOM: commit once the drag moves down past ``commit_distance``.

    Args:
        edge: Provisional edge.
        offset: Raw accumulated offset.
        commit_distance: Minimum travel before a commit is considered.
        commit_ratio: Required horizontal/vertical dominance for side edges.

    Returns:
        The :class:`CommitVerdict` for this step.
    """
    if edge in _SIDE_DIRECTION:
        h = abs(offset.x)
        v = abs(offset.y)
        if h > commit_distance:
            if h > v * commit_ratio:
                if offset.x * _SIDE_DIRECTION[edge] > 0:
                    return CommitVerdict(CommitState.COMMITTED_EDGE, edge)
                return CommitVerdict(CommitState.COMMITTED_NONE, GestureEdge.NONE)
            if v > h:
                return CommitVerdict(CommitState.COMMITTED_EDGE, GestureEdge.BOTTOM)
    elif edge is GestureEdge.BOTTOM:
        if offset.y > commit_distance:
            return CommitVerdict(CommitState.COMMITTED_EDGE, GestureEdge.BOTTOM)

    return CommitVerdict(CommitState.UNDETERMINED, edge)


class CommitClassifier:
    """
    Per-session commit state holder.

    Args:
        commit_distance: Minimum travel in pixels before committing.
        commit_ratio: Horizontal/vertical dominance for side-edge commits.
    """

    def __init__(self, commit_distance: float = 20.0, commit_ratio: float = 1.5) -> None:
        self._distance = commit_distance
        self._ratio = commit_ratio
        self._verdict = CommitVerdict(CommitState.UNDETERMINED, GestureEdge.NONE)

    @property
    def verdict(self) -> CommitVerdict:
        return self._verdict

    @property
    def state(self) -> CommitState:
        return self._verdict.state

    def begin(self, provisional_edge: GestureEdge) -> CommitVerdict:
        """Start a new session on *provisional_edge*."""
        self._verdict = CommitVerdict(CommitState.UNDETERMINED, provisional_edge)
        return self._verdict

    def update(self, offset: Offset) -> CommitVerdict:
        """
        Evaluate one drag step.

        Once committed, the verdict no longer changes until :meth:`begin`.

        Args:
            offset: Raw accumulated offset of the current session.

        Returns:
            The verdict after this step.
        """
        if self._verdict.state.is_committed:
            return self._verdict

        verdict = evaluate_commit(self._verdict.edge, offset, self._distance, self._ratio)
        if verdict.state.is_committed:
            logger.debug(
                "Gesture committed: %s (provisional %s, offset=(%.1f, %.1f))",
                verdict.edge.value, self._verdict.edge.value, offset.x, offset.y,
            )
        self._verdict = verdict
        return verdict
