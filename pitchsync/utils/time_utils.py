"""
Utility functions for the PitchSync live game engine.

This module contains common time helpers used throughout the application.
"""
import time


def fmt_mmss(seconds: int) -> str:
    """
    Format seconds as MM:SS string.

    Args:
        seconds: Number of seconds to format

    Returns:
        Formatted time string in MM:SS format

    Example:
        >>> fmt_mmss(90)
        '01:30'
        >>> fmt_mmss(3661)
        '61:01'
    """
    seconds = max(0, int(seconds))
    m = seconds // 60
    s = seconds % 60
    return f"{m:02d}:{s:02d}"


def now_ts() -> float:
    """
    Get current timestamp in epoch seconds.

    Returns:
        Current time as floating point epoch seconds
    """
    return time.time()


def ts_to_ms(ts: float) -> int:
    """Convert epoch seconds to the epoch milliseconds used in stored records."""
    return int(round(ts * 1000))


def ms_to_ts(ms) -> float:
    """Convert stored epoch milliseconds back to epoch seconds."""
    return float(ms or 0) / 1000.0
