"""
Data models for the chapter pipeline.
"""

from dataclasses import dataclass, field

from .errors import InvalidInput


@dataclass(frozen=True)
class TranscriptSegment:
    """A single transcribed segment with timing and text."""

    text: str
    start: float  # seconds
    end: float  # seconds

    @classmethod
    def from_dict(cls, raw: object) -> "TranscriptSegment":
        """Validate one {text, start, end} mapping from a transcript collaborator."""
        if not isinstance(raw, dict):
            raise InvalidInput(f"Transcript segment must be a mapping, got {type(raw).__name__}")
        try:
            text = str(raw["text"]).strip()
            start = float(raw["start"])
            end = float(raw["end"])
        except KeyError as e:
            raise InvalidInput(f"Transcript segment is missing field {e.args[0]!r}") from None
        except (TypeError, ValueError) as e:
            raise InvalidInput(f"Transcript segment has a non-numeric time: {e}") from None
        if not text:
            raise InvalidInput("Transcript segment text is empty")
        if start < 0:
            raise InvalidInput(f"Transcript segment starts before zero: {start}")
        if end < start:
            raise InvalidInput(f"Transcript segment ends before it starts: {start} > {end}")
        return cls(text=text, start=start, end=end)


def coerce_segments(raw_segments: object) -> list[TranscriptSegment]:
    """Turn an untyped list of segment mappings into validated segments."""
    if not isinstance(raw_segments, list):
        raise InvalidInput("Transcript must be a list of segments")
    if not raw_segments:
        raise InvalidInput("Transcript contains no segments")
    return [
        s if isinstance(s, TranscriptSegment) else TranscriptSegment.from_dict(s)
        for s in raw_segments
    ]


@dataclass
class TopicGroup:
    """A contiguous run of segments judged to belong to one topic."""

    start: float
    texts: list[str] = field(default_factory=list)
    segments: list[TranscriptSegment] = field(default_factory=list)

    @classmethod
    def seed(cls, segment: TranscriptSegment) -> "TopicGroup":
        return cls(start=segment.start, texts=[segment.text], segments=[segment])

    def add(self, segment: TranscriptSegment) -> None:
        self.texts.append(segment.text)
        self.segments.append(segment)

    @property
    def end(self) -> float:
        return self.segments[-1].end


@dataclass(frozen=True)
class ChapterCountBand:
    """Allowed [min, max] chapter count for a given duration."""

    min: int
    max: int


@dataclass(frozen=True)
class ChapterRequest:
    """A submitted chaptering request: where the transcript lives and its language."""

    url: str
    language: str = "auto"


@dataclass(frozen=True)
class ChapterLine:
    """One "MM:SS title" chapter entry."""

    start_time: str  # MM:SS format
    title: str

    def __str__(self) -> str:
        return f"{self.start_time} {self.title}"
