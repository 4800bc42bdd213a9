"""
Time formatting helpers for chapter timestamps.
"""

import re

_MMSS_RE = re.compile(r"^(\d{2,}):([0-5]\d)$")


def format_time(seconds: float) -> str:
    """Format seconds as MM:SS. Minutes are not wrapped into hours."""
    total = int(seconds)
    minutes = total // 60
    secs = total % 60
    return f"{minutes:02d}:{secs:02d}"


def parse_time(stamp: str) -> int:
    """Parse an MM:SS stamp back into whole seconds."""
    m = _MMSS_RE.match(stamp.strip())
    if not m:
        raise ValueError(f"Not an MM:SS timestamp: {stamp!r}")
    return int(m.group(1)) * 60 + int(m.group(2))
