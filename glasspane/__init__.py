"""
GlassPane — adaptive floating-panel core.

Live thermal / memory telemetry → stabilised feature tier, and raw pointer or
native back-gesture input → edge-locked swipe-to-dismiss progress.
"""

__version__ = "1.0.0"
__author__ = "GlassPane Team"
