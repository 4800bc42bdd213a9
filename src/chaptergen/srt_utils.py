"""
SRT and JSON transcript readers.
"""

import json
import logging
import re
from pathlib import Path

from .errors import InvalidInput
from .models import TranscriptSegment, coerce_segments

logger = logging.getLogger("chaptergen")

_CUE_RE = re.compile(r"(\d\d:\d\d:\d\d[,.]\d\d\d)\s+--\>\s+(\d\d:\d\d:\d\d[,.]\d\d\d)")


def _parse_ts(ts: str) -> float:
    h, m, rest = ts.replace(".", ",").split(":")
    s, ms = rest.split(",")
    return int(h) * 3600 + int(m) * 60 + int(s) + int(ms) / 1000.0


def parse_srt_text(raw: str) -> list[TranscriptSegment]:
    """Parse SRT content into segments, skipping cues without text."""
    blocks = re.split(r"\n\s*\n", raw.strip(), flags=re.M)
    out: list[TranscriptSegment] = []
    for b in blocks:
        lines = [ln for ln in b.splitlines() if ln.strip()]
        if lines and re.match(r"^\d+$", lines[0].strip()):
            lines = lines[1:]
        if not lines:
            continue
        m = _CUE_RE.match(lines[0].strip())
        if not m:
            continue
        text = " ".join(ln.strip() for ln in lines[1:])
        if not text:
            continue
        out.append(
            TranscriptSegment.from_dict(
                {"text": text, "start": _parse_ts(m.group(1)), "end": _parse_ts(m.group(2))}
            )
        )
    return out


def parse_srt(path: str | Path) -> list[TranscriptSegment]:
    """Parse SRT file into segments."""
    with open(path, encoding="utf-8") as f:
        return parse_srt_text(f.read())


def read_segments_json(path: str | Path) -> list[TranscriptSegment]:
    """Read a JSON list of {text, start, end} objects."""
    with open(path, encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise InvalidInput(f"Transcript JSON is not valid: {e}") from None
    if isinstance(data, dict) and "segments" in data:
        data = data["segments"]
    return coerce_segments(data)


def read_transcript(path: str | Path) -> list[TranscriptSegment]:
    """Load a local transcript, choosing the reader by file extension."""
    path = Path(path)
    if not path.exists():
        raise InvalidInput(f"Transcript file not found: {path}")
    if path.suffix.lower() == ".srt":
        segments = parse_srt(path)
    elif path.suffix.lower() == ".json":
        segments = read_segments_json(path)
    else:
        raise InvalidInput(f"Unsupported transcript format: {path.suffix or path.name}")
    if not segments:
        raise InvalidInput(f"Transcript file has no segments: {path}")
    logger.info(f"Loaded {len(segments)} segments from {path}")
    return segments
