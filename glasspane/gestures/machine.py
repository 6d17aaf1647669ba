"""
glasspane/gestures/machine.py — Shared swipe-to-dismiss state machine.

Both input adapters feed normalised :class:`GestureInput` events into one
DismissGestureMachine. Each event is reduced to a :class:`Trigger`, and the
explicit table :data:`_TRANSITIONS` maps ``(phase, trigger)`` to
``(action, next_phase)``. Pairs missing from the table are ignored, which is
how late events for a finished session, a second terminal event, or a settle
with nothing exiting are absorbed.
"""

from __future__ import annotations

import logging
import threading
import time
from enum import Enum
from typing import Callable, Optional

from glasspane.core.channel import LatestValue
from glasspane.core.config import GestureConfig
from glasspane.gestures.dismiss import ReleaseOutcome, clamp_progress, decide_release
from glasspane.gestures.types import (
    CommitState,
    GestureEdge,
    GestureInput,
    GestureProgress,
    GestureSession,
    InputKind,
    TerminalKind,
)

logger = logging.getLogger(__name__)


class Phase(Enum):
    """Lifecycle phase of the live session."""

    IDLE = "IDLE"
    TRACKING = "TRACKING"      # dragging, not yet committed
    COMMITTED = "COMMITTED"    # locked to a dismiss edge
    IGNORED = "IGNORED"        # committed to NONE, not a dismiss gesture
    EXITING = "EXITING"        # dismiss triggered, waiting for settle


class Trigger(Enum):
    """Reduced form of an input event, as seen by the transition table."""

    DOWN = "DOWN"
    DRAG = "DRAG"
    COMMIT_EDGE = "COMMIT_EDGE"
    COMMIT_NONE = "COMMIT_NONE"
    RELEASE_DISMISS = "RELEASE_DISMISS"
    RELEASE_SNAP_BACK = "RELEASE_SNAP_BACK"
    RELEASE_RESET = "RELEASE_RESET"
    COMPLETE = "COMPLETE"
    CANCEL = "CANCEL"
    SETTLE = "SETTLE"


class Action(Enum):
    """Session mutation performed on a transition."""

    BEGIN = "begin"
    TRACK = "track"
    LOCK = "lock"
    RESET = "reset"
    SNAP_BACK = "snap_back"
    EXIT = "exit"
    FINISH = "finish"


# ──────────────────────────────────────────────────────────────
# Transition table — single source of truth
# ──────────────────────────────────────────────────────────────

_TRANSITIONS: dict[tuple[Phase, Trigger], tuple[Action, Phase]] = {
    (Phase.IDLE, Trigger.DOWN): (Action.BEGIN, Phase.TRACKING),

    (Phase.TRACKING, Trigger.DOWN): (Action.BEGIN, Phase.TRACKING),
    (Phase.TRACKING, Trigger.DRAG): (Action.TRACK, Phase.TRACKING),
    (Phase.TRACKING, Trigger.COMMIT_EDGE): (Action.LOCK, Phase.COMMITTED),
    (Phase.TRACKING, Trigger.COMMIT_NONE): (Action.LOCK, Phase.IGNORED),
    (Phase.TRACKING, Trigger.RELEASE_RESET): (Action.RESET, Phase.IDLE),
    (Phase.TRACKING, Trigger.COMPLETE): (Action.RESET, Phase.IDLE),
    (Phase.TRACKING, Trigger.CANCEL): (Action.RESET, Phase.IDLE),

    (Phase.COMMITTED, Trigger.DOWN): (Action.BEGIN, Phase.TRACKING),
    (Phase.COMMITTED, Trigger.DRAG): (Action.TRACK, Phase.COMMITTED),
    (Phase.COMMITTED, Trigger.RELEASE_DISMISS): (Action.EXIT, Phase.EXITING),
    (Phase.COMMITTED, Trigger.RELEASE_SNAP_BACK): (Action.SNAP_BACK, Phase.IDLE),
    (Phase.COMMITTED, Trigger.COMPLETE): (Action.EXIT, Phase.EXITING),
    (Phase.COMMITTED, Trigger.CANCEL): (Action.SNAP_BACK, Phase.IDLE),

    (Phase.IGNORED, Trigger.DOWN): (Action.BEGIN, Phase.TRACKING),
    (Phase.IGNORED, Trigger.DRAG): (Action.TRACK, Phase.IGNORED),
    (Phase.IGNORED, Trigger.RELEASE_RESET): (Action.RESET, Phase.IDLE),
    (Phase.IGNORED, Trigger.COMPLETE): (Action.RESET, Phase.IDLE),
    (Phase.IGNORED, Trigger.CANCEL): (Action.RESET, Phase.IDLE),

    (Phase.EXITING, Trigger.DOWN): (Action.BEGIN, Phase.TRACKING),
    (Phase.EXITING, Trigger.SETTLE): (Action.FINISH, Phase.IDLE),
}

# Maximum number of transition records kept in history
_MAX_HISTORY = 50

TransitionCallback = Callable[[Phase, Phase, Action], None]


class DismissGestureMachine:
    """
    Owns the single live :class:`GestureSession` and publishes its progress.

    Args:
        config: Gesture geometry (max drag and dismiss fraction are used to
            decide pointer releases).
        on_dismiss: Called exactly once per dismissed session, when the
            presentation layer reports the exit animation has settled.
        on_transition: Optional callback ``(from_phase, to_phase, action)``
            invoked after every applied transition.
    """

    def __init__(
        self,
        config: Optional[GestureConfig] = None,
        on_dismiss: Optional[Callable[[], None]] = None,
        on_transition: Optional[TransitionCallback] = None,
    ) -> None:
        self._config = config or GestureConfig()
        self._on_dismiss = on_dismiss
        self._on_transition = on_transition
        self._lock = threading.Lock()
        self._phase = Phase.IDLE
        self._session = GestureSession()
        self._last_session_id = 0
        self._history: list[dict] = []
        self.progress: LatestValue[GestureProgress] = LatestValue(
            GestureProgress(), name="gesture"
        )

    # ──────────────────────────────────────────
    # Public API
    # ──────────────────────────────────────────

    @property
    def phase(self) -> Phase:
        with self._lock:
            return self._phase

    @property
    def session(self) -> GestureSession:
        """Return a copy of the live session."""
        with self._lock:
            return self._session.copy()

    def open_session(self) -> int:
        """Allocate the id for a new session; pass it with the BEGIN input."""
        with self._lock:
            self._last_session_id += 1
            return self._last_session_id

    def handle(self, event: GestureInput) -> GestureProgress:
        """
        Apply one normalised input event.

        Args:
            event: Event produced by an input adapter.

        Returns:
            The progress value after the event (unchanged if ignored).
        """
        dismissed = False
        with self._lock:
            if not self._accepts(event):
                logger.debug(
                    "Dropped %s for stale session %d (live %d)",
                    event.kind.value, event.session_id, self._session.session_id,
                )
                return self._snapshot()

            trigger = self._reduce(event)
            entry = _TRANSITIONS.get((self._phase, trigger))
            if entry is None:
                logger.debug("Ignored %s in phase %s", trigger.value, self._phase.value)
                return self._snapshot()

            action, next_phase = entry
            from_phase = self._phase
            getattr(self, f"_do_{action.value}")(event)
            self._phase = next_phase
            self._record(from_phase, next_phase, trigger, action)
            dismissed = action is Action.FINISH
            result = self._snapshot()

        logger.debug(
            "Gesture: %s --%s/%s--> %s",
            from_phase.value, trigger.value, action.value, next_phase.value,
        )
        self.progress.publish(result)

        if self._on_transition is not None:
            try:
                self._on_transition(from_phase, next_phase, action)
            except Exception as exc:  # noqa: BLE001
                logger.warning("Gesture transition callback raised: %s", exc)

        if dismissed and self._on_dismiss is not None:
            try:
                self._on_dismiss()
            except Exception as exc:  # noqa: BLE001
                logger.warning("Dismiss callback raised: %s", exc)
        return result

    def settle(self) -> GestureProgress:
        """Report that the presentation layer finished the exit animation."""
        with self._lock:
            session_id = self._session.session_id
        return self.handle(GestureInput(InputKind.SETTLED, session_id))

    def reset(self) -> None:
        """
        Force the machine back to IDLE with a neutral session.

        Bypasses the transition table; any pending dismiss is abandoned.
        """
        with self._lock:
            from_phase = self._phase
            self._session = self._session.neutral()
            self._phase = Phase.IDLE
            self._record(from_phase, Phase.IDLE, None, Action.RESET)
            result = self._snapshot()
        logger.warning("Gesture: RESET from %s → IDLE", from_phase.value)
        self.progress.publish(result)

    def get_history(self) -> list[dict]:
        """
        Return a copy of the last (up to 50) transition records.

        Each record has keys ``from``, ``to``, ``trigger``, ``action``,
        ``session_id`` and ``timestamp``.
        """
        with self._lock:
            return list(self._history)

    # ──────────────────────────────────────────
    # Event reduction
    # ──────────────────────────────────────────

    def _accepts(self, event: GestureInput) -> bool:
        """BEGIN must carry a newer id; everything else the live id."""
        if event.kind is InputKind.BEGIN:
            return event.session_id > self._session.session_id
        return event.session_id == self._session.session_id

    def _reduce(self, event: GestureInput) -> Trigger:
        """Map an input event onto a table trigger for the current session."""
        if event.kind is InputKind.BEGIN:
            return Trigger.DOWN
        if event.kind is InputKind.SETTLED:
            return Trigger.SETTLE
        if event.kind is InputKind.MOVE:
            if not self._session.committed:
                if event.commit is CommitState.COMMITTED_EDGE:
                    return Trigger.COMMIT_EDGE
                if event.commit is CommitState.COMMITTED_NONE:
                    return Trigger.COMMIT_NONE
            return Trigger.DRAG

        if event.terminal is TerminalKind.COMPLETED:
            return Trigger.COMPLETE
        if event.terminal is TerminalKind.CANCELLED:
            return Trigger.CANCEL
        outcome = decide_release(
            self._session.commit_state,
            self._session.edge,
            self._session.offset,
            max_drag=self._config.max_drag_px,
            dismiss_fraction=self._config.dismiss_fraction,
        )
        return {
            ReleaseOutcome.DISMISS: Trigger.RELEASE_DISMISS,
            ReleaseOutcome.SNAP_BACK: Trigger.RELEASE_SNAP_BACK,
            ReleaseOutcome.RESET: Trigger.RELEASE_RESET,
        }[outcome]

    # ──────────────────────────────────────────
    # Actions — called with self._lock held
    # ──────────────────────────────────────────

    def _do_begin(self, event: GestureInput) -> None:
        self._session = GestureSession(
            session_id=event.session_id,
            edge=event.edge,
            dragging=True,
        )

    def _do_track(self, event: GestureInput) -> None:
        s = self._session
        s.offset = event.offset
        if s.commit_state is CommitState.COMMITTED_NONE:
            return
        if not s.committed:
            s.edge = event.edge
        s.progress = clamp_progress(event.progress)

    def _do_lock(self, event: GestureInput) -> None:
        s = self._session
        s.commit_state = event.commit
        s.edge = event.edge if event.commit is CommitState.COMMITTED_EDGE else GestureEdge.NONE
        s.offset = event.offset
        s.progress = clamp_progress(event.progress) if s.edge is not GestureEdge.NONE else 0.0

    def _do_reset(self, event: GestureInput) -> None:
        self._session = self._session.neutral()

    def _do_snap_back(self, event: GestureInput) -> None:
        self._session = self._session.neutral()

    def _do_exit(self, event: GestureInput) -> None:
        s = self._session
        s.exiting = True
        s.dragging = False
        s.progress = 1.0

    def _do_finish(self, event: GestureInput) -> None:
        self._session = self._session.neutral()

    # ──────────────────────────────────────────
    # Internal helpers
    # ──────────────────────────────────────────

    def _snapshot(self) -> GestureProgress:
        s = self._session
        return GestureProgress(
            edge=s.edge,
            progress=s.progress,
            committed=s.committed,
            dismiss_triggered=s.exiting,
            session_id=s.session_id,
        )

    def _record(
        self,
        from_phase: Phase,
        to_phase: Phase,
        trigger: Optional[Trigger],
        action: Action,
    ) -> None:
        self._history.append({
            "from": from_phase.value,
            "to": to_phase.value,
            "trigger": trigger.value if trigger else "RESET",
            "action": action.value,
            "session_id": self._session.session_id,
            "timestamp": time.time(),
        })
        if len(self._history) > _MAX_HISTORY:
            self._history.pop(0)

    def __repr__(self) -> str:
        with self._lock:
            s = self._session
            return (
                f"DismissGestureMachine(phase={self._phase.value}, "
                f"session={s.session_id}, edge={s.edge.value}, "
                f"progress={s.progress:.2f})"
            )
