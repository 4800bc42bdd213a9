"""
Tests for the command-line interface.
"""

import asyncio
import json

import pytest

from chaptergen import cli
from chaptergen.cli import main_async, parse_args
from chaptergen.errors import CollaboratorFailure
from chaptergen.jobstore import FileJobStore, JobStatus
from fakes import FakeOracle, FakeSource

YOUTUBE_URL = "https://youtu.be/dQw4w9WgXcQ"
CHAPTERS = "00:00 Welcome\n00:08 The next topic\n00:13 Wrap-up"


def test_parse_args():
    args = parse_args(["-v", "youtube", "https://youtu.be/dQw4w9WgXcQ", "--language", "en"])

    assert args.verbose
    assert args.command == "youtube"
    assert args.language == "en"
    assert args.max_polls == 300


def test_file_dry_run_prints_digest(tmp_path, capsys):
    transcript = tmp_path / "talk.json"
    transcript.write_text(
        json.dumps(
            [
                {"text": "Hello everyone", "start": 0, "end": 2},
                {"text": "Now let's move on to the next topic", "start": 8, "end": 12},
                {"text": "In conclusion, thanks", "start": 13, "end": 15},
            ]
        ),
        encoding="utf-8",
    )

    code = asyncio.run(main_async(["file", str(transcript), "--language", "en", "--dry-run"]))
    out = capsys.readouterr().out.splitlines()

    assert code == 0
    assert out[0] == "# 3 segments, 3 topic groups -> 3"
    assert out[1] == "# chapters: 3-5"
    assert out[2].startswith("00:00 Hello everyone")
    assert out[3].startswith("00:08 ")
    assert out[4].startswith("00:13 ")


def test_file_with_missing_transcript_fails(tmp_path):
    code = asyncio.run(main_async(["file", str(tmp_path / "nope.json"), "--dry-run"]))
    assert code == 1


def test_jobs_lists_persisted_jobs(tmp_path, monkeypatch, capsys):
    jobs_dir = tmp_path / "jobs"
    store = FileJobStore(jobs_dir)
    store.update("job-aaa", status=JobStatus.PROCESSING)
    store.mark_error("job-aaa", "no captions")
    monkeypatch.setenv("CHAPTERGEN_JOBS_DIR", str(jobs_dir))

    code = asyncio.run(main_async(["jobs"]))
    out = capsys.readouterr().out

    assert code == 0
    assert "job-aaa" in out
    assert "error" in out
    assert "no captions" in out


@pytest.fixture
def youtube_fakes(monkeypatch):
    """Swap the caption API and the model client for in-memory fakes."""
    monkeypatch.delenv("CHAPTERGEN_JOBS_DIR", raising=False)
    monkeypatch.setenv("CHAPTERGEN_LANGUAGE", "en")

    def install(source):
        monkeypatch.setattr(cli, "CaptionApiSource", lambda *args, **kwargs: source)
        monkeypatch.setattr(cli, "make_oracle", lambda settings: FakeOracle(CHAPTERS))

    return install


def test_youtube_prints_chapters(youtube_fakes, scenario_segments, capsys):
    source = FakeSource(scenario_segments)
    youtube_fakes(source)

    code = asyncio.run(main_async(["youtube", YOUTUBE_URL, "--poll-interval", "0.01"]))

    assert code == 0
    assert capsys.readouterr().out.strip() == CHAPTERS
    assert source.requests[0].url == YOUTUBE_URL


def test_youtube_reports_job_error(youtube_fakes, capsys):
    youtube_fakes(FakeSource(error=CollaboratorFailure("caption API", "no captions")))

    code = asyncio.run(main_async(["youtube", YOUTUBE_URL, "--poll-interval", "0.01"]))

    assert code == 1
    assert "Error: caption API failed: no captions" in capsys.readouterr().err


def test_youtube_rejects_non_youtube_url(youtube_fakes):
    youtube_fakes(FakeSource())

    code = asyncio.run(main_async(["youtube", "https://vimeo.com/123"]))

    assert code == 1
