"""
Group reduction: merge adjacent topic groups until the chapter count fits.
"""

import logging
from collections.abc import Sequence

from .models import TopicGroup

logger = logging.getLogger("chaptergen")


def _closest_pair(groups: list[TopicGroup]) -> int:
    """Index i of the adjacent pair (i, i+1) with the smallest start-time gap."""
    best_index = 0
    best_gap = float("inf")
    for i in range(len(groups) - 1):
        gap = groups[i + 1].start - groups[i].start
        if gap < best_gap:
            best_gap = gap
            best_index = i
    return best_index


def reduce_groups(groups: Sequence[TopicGroup], max_chapters: int) -> list[TopicGroup]:
    """
    Greedily merge nearest-neighbour groups until at most max_chapters remain.

    Never goes below one group and never splits. The merged group keeps the
    earlier group's start. The caller's groups are left untouched.
    """
    reduced = [
        TopicGroup(start=g.start, texts=list(g.texts), segments=list(g.segments)) for g in groups
    ]
    limit = max(1, max_chapters)

    while len(reduced) > limit:
        i = _closest_pair(reduced)
        left, right = reduced[i], reduced[i + 1]
        left.texts.extend(right.texts)
        left.segments.extend(right.segments)
        del reduced[i + 1]

    if len(reduced) < len(groups):
        logger.debug(f"Reduced {len(groups)} topic groups to {len(reduced)}")
    return reduced
