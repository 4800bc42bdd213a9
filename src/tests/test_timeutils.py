"""
Tests for time formatting.
"""

import pytest

from chaptergen.timeutils import format_time, parse_time


def test_format_time():
    """Test MM:SS formatting without hour wrap."""
    assert format_time(0) == "00:00"
    assert format_time(125) == "02:05"
    assert format_time(3661) == "61:01"
    assert format_time(59.99) == "00:59"


def test_parse_time():
    assert parse_time("00:00") == 0
    assert parse_time("02:05") == 125
    assert parse_time("61:01") == 3661

    with pytest.raises(ValueError):
        parse_time("1:2:3")
    with pytest.raises(ValueError):
        parse_time("00:75")
