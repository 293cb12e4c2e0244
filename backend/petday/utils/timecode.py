"""Timecode helpers.

Annotation timestamps arrive as ``M:SS`` / ``MM:SS`` text (occasionally
``H:MM:SS`` or bare seconds). All arithmetic happens in float seconds.
"""
import math
from typing import Any, Optional


def parse_timestamp(value: Any) -> Optional[float]:
    """
    Parse an annotation timestamp into seconds.
    
    Returns None for missing or malformed values instead of raising,
    so callers can skip the offending annotation.
    """
    if value is None or isinstance(value, bool):
        return None
    
    if isinstance(value, (int, float)):
        seconds = float(value)
    else:
        text = str(value).strip()
        if not text:
            return None
        
        parts = text.split(":")
        if len(parts) > 3:
            return None
        
        try:
            numbers = [float(p) for p in parts]
        except ValueError:
            return None
        
        if any(n < 0 for n in numbers):
            return None
        
        seconds = 0.0
        for n in numbers:
            seconds = seconds * 60 + n
    
    if not math.isfinite(seconds) or seconds < 0:
        return None
    return seconds


def format_timestamp(seconds: float) -> str:
    """Format seconds as ``M:SS`` (minutes are not wrapped into hours)."""
    total = max(0.0, float(seconds))
    minutes = int(total // 60)
    secs = int(total % 60)
    return f"{minutes}:{secs:02d}"


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives."""
    return int(math.floor(value + 0.5))


def clamp(value: float, lo: float, hi: float) -> float:
    return min(hi, max(lo, value))
