"""
glasspane/gestures/edge.py — Pointer-down position → provisional edge.
"""

from __future__ import annotations

from glasspane.gestures.types import GestureEdge


def classify_edge(x: float, viewport_width: float, edge_zone: float) -> GestureEdge:
    """
    Classify where a pointer-down landed.

    The result is provisional: the commit classifier may still redirect a
    side-edge drag to BOTTOM before the gesture commits.

    Args:
        x: Horizontal pointer position in pixels.
        viewport_width: Viewport width in pixels.
        edge_zone: Width of each side edge zone in pixels.

    Returns:
        LEFT inside the left zone, RIGHT inside the right zone, else BOTTOM.
    """
    if x < edge_zone:
        return GestureEdge.LEFT
    if x > viewport_width - edge_zone:
        return GestureEdge.RIGHT
    return GestureEdge.BOTTOM
