"""
Topic segmentation: split a flat transcript into topic groups.

A new group starts on a long pause between segments or when a segment
contains a discourse marker from the active cue list.
"""

import logging
import re
from collections.abc import Iterable, Sequence

from .errors import InvalidInput
from .models import TopicGroup, TranscriptSegment

logger = logging.getLogger("chaptergen")

DEFAULT_GAP_THRESHOLD = 5.0  # seconds of silence that always start a new topic
DEFAULT_LANGUAGE = "ja"

# Discourse markers meaning "next / by the way / in conclusion / importantly / finally"
BUILTIN_CUES: dict[str, tuple[str, ...]] = {
    "ja": (
        "では",
        "それでは",
        "次に",
        "ところで",
        "さて",
        "ということで",
        "まとめ",
        "結論",
        "重要な",
        "ポイント",
        "注意点",
        "最後に",
    ),
    "en": (
        "next",
        "moving on",
        "move on",
        "by the way",
        "in conclusion",
        "to conclude",
        "to sum up",
        "in summary",
        "importantly",
        "the key point",
        "finally",
        "lastly",
    ),
}

_WORDLIKE_RE = re.compile(r"^[\w' ]+$", re.ASCII)


class CueList:
    """A language's set of topic-transition phrases, matched case-insensitively."""

    def __init__(self, phrases: Iterable[str], language: str | None = None):
        self.phrases = tuple(p.strip() for p in phrases if p and p.strip())
        self.language = language
        parts = []
        for phrase in self.phrases:
            escaped = re.escape(phrase)
            # Space-delimited scripts match whole words; CJK phrases match anywhere.
            if _WORDLIKE_RE.match(phrase):
                escaped = rf"\b{escaped}\b"
            parts.append(escaped)
        self._pattern = re.compile("|".join(parts), re.IGNORECASE) if parts else None

    @classmethod
    def for_language(cls, language: str | None) -> "CueList":
        """Built-in cues for a language code; unknown codes use the default language."""
        code = (language or DEFAULT_LANGUAGE).lower().split("-")[0]
        if code not in BUILTIN_CUES:
            logger.debug(f"No built-in cues for {language!r}, using {DEFAULT_LANGUAGE!r}")
            code = DEFAULT_LANGUAGE
        return cls(BUILTIN_CUES[code], language=code)

    def matches(self, text: str) -> bool:
        if self._pattern is None:
            return False
        return self._pattern.search(text) is not None

    def __len__(self) -> int:
        return len(self.phrases)

    def __repr__(self) -> str:
        return f"CueList(language={self.language!r}, phrases={len(self.phrases)})"


def segment_topics(
    segments: Sequence[TranscriptSegment],
    cues: CueList | None = None,
    *,
    gap_threshold: float = DEFAULT_GAP_THRESHOLD,
) -> list[TopicGroup]:
    """
    Group ordered segments into topics.

    Every input segment ends up in exactly one group, in the original order.
    """
    if not segments:
        raise InvalidInput("Cannot segment an empty transcript")
    if cues is None:
        cues = CueList.for_language(DEFAULT_LANGUAGE)

    groups: list[TopicGroup] = []
    current = TopicGroup.seed(segments[0])

    for i in range(1, len(segments)):
        seg = segments[i]
        gap = seg.start - segments[i - 1].end
        long_gap = gap > gap_threshold
        if long_gap or cues.matches(seg.text):
            groups.append(current)
            current = TopicGroup.seed(seg)
        else:
            current.add(seg)

    groups.append(current)
    logger.debug(f"Segmented {len(segments)} segments into {len(groups)} topic groups")
    return groups
