"""
Shared fixtures for the chaptergen tests.
"""

import pytest

from chaptergen.models import TranscriptSegment
from fakes import FakeClock


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def scenario_segments():
    """Three segments: a long pause before the second, a cue phrase in the third."""
    return [
        TranscriptSegment(text="Hello everyone", start=0.0, end=2.0),
        TranscriptSegment(text="Now let's move on to the next topic", start=8.0, end=12.0),
        TranscriptSegment(text="In conclusion, thanks", start=13.0, end=15.0),
    ]
