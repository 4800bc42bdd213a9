"""
Tests for chapter prompt building and response parsing.
"""

import pytest

from chaptergen.errors import EmptyLabelResponse, MalformedLabelResponse
from chaptergen.models import ChapterCountBand, ChapterLine, TopicGroup, TranscriptSegment
from chaptergen.prompt import (
    build_digest,
    build_label_request,
    parse_chapter_lines,
    parse_label_response,
    summarize_group,
)
from chaptergen.segmenter import CueList, segment_topics


def test_digest_for_scenario(scenario_segments):
    groups = segment_topics(scenario_segments, CueList.for_language("en"))
    lines = build_digest(groups).split("\n")

    assert len(lines) == 3
    assert lines[0] == "00:00 Hello everyone..."
    assert lines[1].startswith("00:08 Now let's move on")
    assert lines[2] == "00:13 In conclusion, thanks..."


def test_summary_is_truncated_to_100_chars():
    seg1 = TranscriptSegment(text="a" * 80, start=65.0, end=70.0)
    seg2 = TranscriptSegment(text="b" * 80, start=70.0, end=75.0)
    group = TopicGroup.seed(seg1)
    group.add(seg2)

    line = summarize_group(group)

    assert line == "01:05 " + "a" * 80 + " " + "b" * 19 + "..."


def test_label_request_carries_constraints(scenario_segments):
    groups = segment_topics(scenario_segments, CueList.for_language("en"))
    request = build_label_request(groups, ChapterCountBand(3, 5), 15, "en")

    assert request.band == ChapterCountBand(3, 5)
    assert request.duration == 15
    assert "3 to 5 chapters" in request.user
    assert "00:15" in request.user
    assert "00:15" in request.system
    assert "00:08 Now let's move on" in request.user
    assert "in English" in request.user


def test_label_request_without_known_language():
    groups = [TopicGroup.seed(TranscriptSegment(text="x", start=0, end=1))]
    request = build_label_request(groups, ChapterCountBand(3, 5), 1, None)
    assert "language of the transcript" in request.user


def test_empty_response_fails():
    with pytest.raises(EmptyLabelResponse):
        parse_label_response("")
    with pytest.raises(EmptyLabelResponse):
        parse_label_response("   \n ")
    with pytest.raises(EmptyLabelResponse):
        parse_label_response(None)


def test_lenient_parse_returns_text_verbatim():
    assert parse_label_response("  Some prose answer\n") == "Some prose answer"


def test_strict_parse_accepts_clean_lines():
    text = "00:00 Intro\n\n01:30 Main theme\n03:45 Example\n"
    assert parse_label_response(text, 300, strict=True) == "00:00 Intro\n\n01:30 Main theme\n03:45 Example"


@pytest.mark.parametrize(
    "text",
    [
        "Here are your chapters:\n00:00 Intro",
        "00:10 Late start\n01:00 Next",
        "00:00 Intro\n02:00 Two\n01:00 Backwards",
        "00:00 Intro\n09:00 Past the end",
    ],
)
def test_strict_parse_rejects_bad_lines(text):
    with pytest.raises(MalformedLabelResponse):
        parse_label_response(text, 300, strict=True)


def test_parse_chapter_lines():
    chapters = parse_chapter_lines("00:00 Intro\n61:01 Long video part")
    assert chapters == [
        ChapterLine(start_time="00:00", title="Intro"),
        ChapterLine(start_time="61:01", title="Long video part"),
    ]
    assert str(chapters[1]) == "61:01 Long video part"


def test_strict_parse_caps_chapter_count():
    text = "00:00 A\n00:10 B\n00:20 C\n00:30 D"

    assert parse_label_response(text, 300, strict=True, max_chapters=4) == text
    with pytest.raises(MalformedLabelResponse, match="at most 3"):
        parse_label_response(text, 300, strict=True, max_chapters=3)
    # fewer lines than requested is fine
    assert parse_label_response("00:00 Only", 300, strict=True, max_chapters=3) == "00:00 Only"
