"""
Chapter prompt building and response parsing.

Turns reduced topic groups into a digest for the labeling oracle and checks
what comes back.
"""

import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass

from .errors import EmptyLabelResponse, MalformedLabelResponse
from .models import ChapterCountBand, ChapterLine, TopicGroup
from .timeutils import format_time, parse_time

logger = logging.getLogger("chaptergen")

SUMMARY_CHARS = 100
ELLIPSIS = "..."

_LINE_RE = re.compile(r"^(\d{2,}:[0-5]\d)\s+(\S.*)$")

LANGUAGE_NAMES = {
    "ja": "Japanese",
    "en": "English",
    "de": "German",
    "fr": "French",
    "es": "Spanish",
    "it": "Italian",
    "pt": "Portuguese",
    "ru": "Russian",
    "ko": "Korean",
    "zh": "Chinese",
}


@dataclass(frozen=True)
class LabelRequest:
    """Everything the labeling oracle needs for one transcript."""

    system: str
    user: str
    band: ChapterCountBand
    duration: int  # seconds


def summarize_group(group: TopicGroup) -> str:
    """One digest line: start stamp plus the first 100 characters of the group's text."""
    summary = " ".join(group.texts)[:SUMMARY_CHARS] + ELLIPSIS
    return f"{format_time(group.start)} {summary}"


def build_digest(groups: Sequence[TopicGroup]) -> str:
    """Digest of all groups, one line per group."""
    return "\n".join(summarize_group(g) for g in groups)


def build_label_request(
    groups: Sequence[TopicGroup],
    band: ChapterCountBand,
    duration: int,
    language: str | None = None,
) -> LabelRequest:
    """Render the system instructions and user prompt for the oracle."""
    total = format_time(duration)
    title_language = LANGUAGE_NAMES.get((language or "").lower().split("-")[0])
    language_rule = (
        f"Write the chapter titles in {title_language}."
        if title_language
        else "Write the chapter titles in the language of the transcript."
    )

    system = (
        "You are an expert at creating video chapters. "
        "From the given transcript, create chapters that follow both the timing and the content. "
        'Always answer with lines in the format "MM:SS Chapter title" and start at 00:00. '
        f"Never go past the total running time ({total}). "
        "Place chapters at natural topic changes, using the segment times as reference."
    )

    user = f"""Detect the important topic changes in the transcript below and create {band.min} to {band.max} chapters.
The total running time of the video is {total}.

Transcript (time and content):
{build_digest(groups)}

Rules:
1. Output each chapter on its own line as "MM:SS Chapter title", nothing else
2. The first chapter must be 00:00
3. No chapter time may exceed {total}
4. Put chapters only at major topic shifts; ignore minor ones
5. Summarize each section into a short, descriptive title
6. Output between {band.min} and {band.max} chapters
7. {language_rule}

Example:
00:00 Introduction
01:30 The main theme
03:45 A worked example"""

    return LabelRequest(system=system, user=user, band=band, duration=duration)


def parse_chapter_lines(text: str) -> list[ChapterLine]:
    """Split oracle text into ChapterLine entries. Raises on any malformed line."""
    chapters: list[ChapterLine] = []
    for raw in text.splitlines():
        line = raw.strip()
        if not line:
            continue
        m = _LINE_RE.match(line)
        if not m:
            raise MalformedLabelResponse(f"Not a chapter line: {line!r}", line=line)
        chapters.append(ChapterLine(start_time=m.group(1), title=m.group(2).strip()))
    return chapters


def validate_chapter_lines(
    chapters: Sequence[ChapterLine],
    duration: int | None = None,
    max_chapters: int | None = None,
) -> None:
    """
    Check the first stamp is 00:00 and stamps never go backwards or past duration.

    Only the upper chapter count is enforced: short transcripts can reduce to
    fewer topic groups than the band minimum.
    """
    if not chapters:
        raise MalformedLabelResponse("Response contains no chapter lines")
    if max_chapters is not None and len(chapters) > max_chapters:
        raise MalformedLabelResponse(
            f"Response has {len(chapters)} chapters, at most {max_chapters} allowed"
        )
    if parse_time(chapters[0].start_time) != 0:
        raise MalformedLabelResponse(
            f"First chapter must start at 00:00, got {chapters[0].start_time}",
            line=str(chapters[0]),
        )
    previous = 0
    for chapter in chapters:
        seconds = parse_time(chapter.start_time)
        if seconds < previous:
            raise MalformedLabelResponse(
                f"Chapter times go backwards at {chapter.start_time}", line=str(chapter)
            )
        if duration is not None and seconds > duration:
            raise MalformedLabelResponse(
                f"Chapter {chapter.start_time} is past the end ({format_time(duration)})",
                line=str(chapter),
            )
        previous = seconds


def parse_label_response(
    text: str | None,
    duration: int | None = None,
    *,
    strict: bool = False,
    max_chapters: int | None = None,
) -> str:
    """
    Accept the oracle's answer as the final chapter text.

    Empty answers always fail. With strict=True the text must also be a clean
    list of "MM:SS title" lines, at most max_chapters of them.
    """
    if text is None or not text.strip():
        raise EmptyLabelResponse()
    result = text.strip()
    if strict:
        chapters = parse_chapter_lines(result)
        validate_chapter_lines(chapters, duration, max_chapters)
        logger.debug(f"Oracle returned {len(chapters)} valid chapter lines")
    return result
