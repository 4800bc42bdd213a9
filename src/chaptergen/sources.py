"""
Transcript sources: where time-aligned segments come from.
"""

import asyncio
import logging
import re
from typing import Protocol

import httpx

from .errors import CollaboratorFailure, InvalidInput
from .models import ChapterRequest, TranscriptSegment, coerce_segments
from .segmenter import DEFAULT_LANGUAGE
from .srt_utils import read_transcript

logger = logging.getLogger("chaptergen")

DEFAULT_CAPTION_HOST = "youtube-transcript3.p.rapidapi.com"

_VIDEO_ID_RE = re.compile(r"^.*(youtu\.be/|v/|u/\w/|embed/|watch\?v=|&v=)([^#&?]*).*")


def is_valid_youtube_url(url: str | None) -> bool:
    if not url:
        return False
    return "youtube.com/" in url or "youtu.be/" in url


def extract_video_id(url: str) -> str | None:
    """Return the 11-character video id from a YouTube URL, or None."""
    m = _VIDEO_ID_RE.match(url or "")
    if m and len(m.group(2)) == 11:
        return m.group(2)
    return None


class TranscriptSource(Protocol):
    """Supplies an ordered, non-empty transcript for a request."""

    async def fetch(self, request: ChapterRequest) -> list[TranscriptSegment]: ...


class CaptionApiSource:
    """Fetches existing caption tracks from the RapidAPI YouTube transcript service."""

    def __init__(
        self,
        http: httpx.AsyncClient,
        api_key: str | None,
        host: str = DEFAULT_CAPTION_HOST,
        *,
        default_language: str = DEFAULT_LANGUAGE,
    ):
        self.http = http
        self.api_key = api_key
        self.host = host
        self.default_language = default_language

    async def fetch(self, request: ChapterRequest) -> list[TranscriptSegment]:
        video_id = extract_video_id(request.url)
        if not video_id:
            raise InvalidInput(f"Invalid YouTube URL: {request.url}")
        if not self.api_key:
            raise CollaboratorFailure("transcript source", "RAPIDAPI_KEY is not set")

        lang = self.default_language if request.language == "auto" else request.language
        logger.info(f"Fetching captions for {video_id} (lang={lang})")
        try:
            resp = await self.http.get(
                f"https://{self.host}/api/transcript",
                params={"videoId": video_id, "lang": lang},
                headers={"X-RapidAPI-Key": self.api_key, "X-RapidAPI-Host": self.host},
            )
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPStatusError as e:
            raise CollaboratorFailure(
                "transcript source", f"HTTP {e.response.status_code} from caption API"
            ) from e
        except httpx.HTTPError as e:
            raise CollaboratorFailure("transcript source", str(e) or type(e).__name__) from e
        except ValueError as e:
            raise CollaboratorFailure("transcript source", f"invalid JSON: {e}") from e

        items = data.get("transcript") if isinstance(data, dict) else None
        if not items:
            raise CollaboratorFailure("transcript source", "no transcript in caption API response")
        return self._to_segments(items)

    @staticmethod
    def _to_segments(items: list) -> list[TranscriptSegment]:
        raw = []
        for item in items:
            if not isinstance(item, dict):
                raise InvalidInput("Caption item must be a mapping")
            text = str(item.get("text") or "").strip()
            if not text:
                continue
            try:
                start = float(item["offset"])
                end = start + float(item["duration"])
            except (KeyError, TypeError, ValueError) as e:
                raise InvalidInput(f"Caption item has bad timing: {e}") from None
            raw.append({"text": text, "start": start, "end": end})
        return coerce_segments(raw)


class FileSource:
    """Reads a local JSON or SRT transcript; the request URL is the file path."""

    async def fetch(self, request: ChapterRequest) -> list[TranscriptSegment]:
        return await asyncio.to_thread(read_transcript, request.url)
