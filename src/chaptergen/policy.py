"""
Chapter count policy: how many chapters a video of a given length should get.
"""

import math
from collections.abc import Sequence

from .models import ChapterCountBand, TopicGroup

# (upper bound in minutes, inclusive) -> band; first matching row wins
_BREAKPOINTS: tuple[tuple[float, ChapterCountBand], ...] = (
    (15, ChapterCountBand(3, 5)),
    (30, ChapterCountBand(5, 8)),
    (60, ChapterCountBand(8, 12)),
    (120, ChapterCountBand(12, 20)),
)
_LONGEST = ChapterCountBand(15, 30)


def chapter_count_band(duration_seconds: float) -> ChapterCountBand:
    """Map total duration in seconds to the allowed chapter count band."""
    minutes = duration_seconds / 60
    for limit, band in _BREAKPOINTS:
        if minutes <= limit:
            return band
    return _LONGEST


def total_duration(groups: Sequence[TopicGroup]) -> int:
    """End of the last segment of the last group, rounded up to a whole second."""
    if not groups:
        return 0
    return math.ceil(groups[-1].end)
