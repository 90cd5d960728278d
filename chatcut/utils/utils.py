"""
Utility functions for ChatCut.
"""


def format_time(seconds: float) -> str:
    """Format time in MM:SS format."""
    minutes = int(seconds // 60)
    secs = int(seconds % 60)
    return f"{minutes:02d}:{secs:02d}"


def format_time_detailed(seconds: float) -> str:
    """Format time in MM:SS.mmm format for precise display."""
    minutes = int(seconds // 60)
    secs = int(seconds % 60)
    millis = int((seconds % 1) * 1000)
    return f"{minutes:02d}:{secs:02d}.{millis:03d}"


def format_ruler_label(seconds: float) -> str:
    """Format a ruler tick label as m:ss (minutes unpadded)."""
    minutes = int(seconds // 60)
    secs = int(seconds % 60)
    return f"{minutes}:{secs:02d}"


def clamp(value: float, low: float, high: float) -> float:
    """Clamp value into [low, high]."""
    return max(low, min(value, high))
