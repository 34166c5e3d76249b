"""
PitchSync

Live substitution scheduling for youth and amateur football: builds a
rotation plan that equalizes playing time, detects due substitutions and full
time from stored timer state, applies confirmed substitutions safely and
mirrors the session to a remote record for background push notifications.
"""
from .utils import APP_TITLE, fmt_mmss, now_ts

__version__ = "1.0.0"
__author__ = "PitchSync Development Team"

__all__ = ["APP_TITLE", "fmt_mmss", "now_ts", "__version__"]
