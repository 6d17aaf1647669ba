"""
glasspane.gestures — Multi-edge swipe-to-dismiss recognition.

Pointer drags and native back-gesture events are normalised by two adapters
into one input shape and fed to the shared :class:`DismissGestureMachine`.
"""

from glasspane.gestures.back import BackEvent, BackGestureAdapter
from glasspane.gestures.machine import DismissGestureMachine
from glasspane.gestures.pointer import PointerGestureAdapter
from glasspane.gestures.types import CommitState, GestureEdge, GestureProgress, GestureSession

__all__ = [
    "BackEvent",
    "BackGestureAdapter",
    "CommitState",
    "DismissGestureMachine",
    "GestureEdge",
    "GestureProgress",
    "GestureSession",
    "PointerGestureAdapter",
]
