"""
glasspane/gestures/types.py — Shared gesture data types.

Edges, commit states, the live session record, the normalised input both
adapters produce, and the progress value published to the presentation layer.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum


class GestureEdge(Enum):
    """Edge a dismiss gesture is locked to."""

    NONE = "NONE"
    LEFT = "LEFT"
    RIGHT = "RIGHT"
    BOTTOM = "BOTTOM"


class CommitState(Enum):
    """Commit classification of the current drag."""

    UNDETERMINED = "UNDETERMINED"
    COMMITTED_EDGE = "COMMITTED_EDGE"
    COMMITTED_NONE = "COMMITTED_NONE"

    @property
    def is_committed(self) -> bool:
        return self is not CommitState.UNDETERMINED


@dataclass(frozen=True)
class Offset:
    """A 2-D drag offset in pixels."""

    x: float = 0.0
    y: float = 0.0

    def __add__(self, other: "Offset") -> "Offset":
        return Offset(self.x + other.x, self.y + other.y)


ZERO = Offset()


@dataclass(frozen=True)
class CommitVerdict:
    """
    Result of one commit-classifier evaluation.

    Attributes:
        state: Commit state after the evaluation.
        edge: Edge the gesture is (provisionally or finally) bound to.
            NONE when ``state`` is COMMITTED_NONE.
    """

    state: CommitState
    edge: GestureEdge


class InputKind(Enum):
    """Kinds of normalised gesture input."""

    BEGIN = "BEGIN"
    MOVE = "MOVE"
    END = "END"
    SETTLED = "SETTLED"


class TerminalKind(Enum):
    """How a gesture session ends."""

    NONE = "NONE"
    RELEASED = "RELEASED"      # pointer lifted; dismiss decided from offset
    COMPLETED = "COMPLETED"    # native back gesture completed
    CANCELLED = "CANCELLED"    # gesture cancelled by the source


@dataclass(frozen=True)
class GestureInput:
    """
    Source-independent gesture event fed to the shared state machine.

    Attributes:
        kind: BEGIN / MOVE / END / SETTLED.
        session_id: Session the event belongs to; stale ids are dropped.
        edge: Edge reported by the source (provisional before commit).
        offset: Current drag offset (synthesised for native back events).
        progress: Raw progress in [0, 1].
        commit: Commit state reported by the source.
        terminal: How the session ends (END events only).
    """

    kind: InputKind
    session_id: int
    edge: GestureEdge = GestureEdge.NONE
    offset: Offset = ZERO
    progress: float = 0.0
    commit: CommitState = CommitState.UNDETERMINED
    terminal: TerminalKind = TerminalKind.NONE


@dataclass
class GestureSession:
    """
    The single live gesture session.

    Created on pointer-down (or the first native back event) and reset to
    neutral on release or cancellation.
    """

    session_id: int = 0
    edge: GestureEdge = GestureEdge.NONE
    offset: Offset = ZERO
    commit_state: CommitState = CommitState.UNDETERMINED
    progress: float = 0.0
    dragging: bool = False
    exiting: bool = False

    @property
    def committed(self) -> bool:
        return self.commit_state.is_committed

    def neutral(self) -> "GestureSession":
        """Return a neutral copy keeping only the session id."""
        return GestureSession(session_id=self.session_id)

    def copy(self) -> "GestureSession":
        return replace(self)


@dataclass(frozen=True)
class GestureProgress:
    """
    Value published to the presentation layer on every session change.

    Attributes:
        edge: Edge of the current session (NONE when neutral).
        progress: Raw dismiss progress in [0, 1]; 1.0 while exiting.
        committed: Whether the session is committed.
        dismiss_triggered: Whether a dismiss is in flight.
        session_id: Session the value belongs to.
    """

    edge: GestureEdge = GestureEdge.NONE
    progress: float = 0.0
    committed: bool = False
    dismiss_triggered: bool = False
    session_id: int = field(default=0, compare=False)

    def to_dict(self) -> dict:
        """Return a JSON-serialisable representation."""
        return {
            "edge": self.edge.value,
            "progress": round(self.progress, 4),
            "committed": self.committed,
            "dismiss_triggered": self.dismiss_triggered,
            "session_id": self.session_id,
        }
