"""
Asynchronous chaptering pipeline.

submit() records a job and runs it as a background task:
transcript fetch -> segmentation -> reduction -> oracle -> stored result.
Any failure inside a job ends in the job's error state; nothing is raised
to the caller that polls it.
"""

import asyncio
import logging
import secrets
import string
from collections.abc import Callable, Sequence

from .config import Settings
from .errors import (
    ChapterGenError,
    CollaboratorFailure,
    InvalidInput,
    JobNotFound,
    MalformedLabelResponse,
)
from .jobstore import Job, JobStatus, JobStore
from .models import ChapterRequest, TranscriptSegment
from .oracle import LabelingOracle
from .policy import chapter_count_band, total_duration
from .prompt import LabelRequest, build_label_request, parse_label_response
from .reducer import reduce_groups
from .segmenter import CueList, segment_topics
from .sources import TranscriptSource, is_valid_youtube_url

logger = logging.getLogger("chaptergen")

PROGRESS_SUBMITTED = 0
PROGRESS_DOWNLOADING = 10
PROGRESS_GENERATING = 80

_ID_ALPHABET = string.ascii_lowercase + string.digits


def generate_job_id() -> str:
    return "job-" + "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))


class ChapterPipeline:
    def __init__(
        self,
        store: JobStore,
        source: TranscriptSource,
        oracle: LabelingOracle,
        settings: Settings | None = None,
        *,
        url_validator: Callable[[str], bool] | None = is_valid_youtube_url,
    ):
        self.store = store
        self.source = source
        self.oracle = oracle
        self.settings = settings or Settings()
        self.url_validator = url_validator
        self._tasks: dict[str, asyncio.Task] = {}

    # ── Job control ───────────────────────────────────────────────────

    async def submit(self, request: ChapterRequest) -> str:
        """Register a job and start processing it in the background."""
        if not request.url or (self.url_validator and not self.url_validator(request.url)):
            raise InvalidInput(f"Invalid URL: {request.url!r}")

        job_id = generate_job_id()
        self.store.update(job_id, status=JobStatus.PROCESSING, progress=PROGRESS_SUBMITTED)
        logger.info(f"Submitted job {job_id} for {request.url}")

        task = asyncio.create_task(self.run(job_id, request), name=f"chaptergen:{job_id}")
        self._tasks[job_id] = task
        task.add_done_callback(lambda _t: self._tasks.pop(job_id, None))
        return job_id

    def cancel(self, job_id: str) -> bool:
        """Cancel a running job. Returns False if it is not running."""
        task = self._tasks.get(job_id)
        if task is None or task.done():
            return False
        return task.cancel()

    async def wait(self, job_id: str) -> None:
        task = self._tasks.get(job_id)
        if task is not None:
            await asyncio.gather(task, return_exceptions=True)

    def running(self) -> list[str]:
        return [job_id for job_id, task in self._tasks.items() if not task.done()]

    # ── Processing ────────────────────────────────────────────────────

    async def run(self, job_id: str, request: ChapterRequest) -> None:
        """Process one job; every failure is recorded on the job, not raised."""
        try:
            self.store.update(job_id, status=JobStatus.DOWNLOADING, progress=PROGRESS_DOWNLOADING)
            segments = await self._fetch(request)

            self.store.update(job_id, status=JobStatus.GENERATING, progress=PROGRESS_GENERATING)
            chapters = await self.generate_chapters(segments, request.language)

            self.store.store_result(job_id, chapters)
        except asyncio.CancelledError:
            self._fail(job_id, "Job was cancelled")
            raise
        except ChapterGenError as e:
            self._fail(job_id, str(e))
        except Exception as e:
            logger.exception(f"Unexpected error processing job {job_id}")
            self._fail(job_id, str(e) or type(e).__name__)

    def _fail(self, job_id: str, message: str) -> None:
        try:
            self.store.mark_error(job_id, message)
        except JobNotFound:
            logger.warning(f"Job {job_id} was evicted before its error could be recorded")

    async def _fetch(self, request: ChapterRequest) -> list[TranscriptSegment]:
        try:
            segments = await self.source.fetch(request)
        except ChapterGenError:
            raise
        except Exception as e:
            raise CollaboratorFailure("transcript source", str(e) or type(e).__name__) from e
        if not segments:
            raise InvalidInput("Transcript source returned no segments")
        return segments

    async def _ask(self, label_request: LabelRequest) -> str:
        try:
            return await self.oracle.complete(label_request)
        except ChapterGenError:
            raise
        except Exception as e:
            raise CollaboratorFailure("labeling oracle", str(e) or type(e).__name__) from e

    async def generate_chapters(
        self, segments: Sequence[TranscriptSegment], language: str | None = None
    ) -> str:
        """Segment, reduce and label a transcript. Returns the chapter text."""
        if not language or language == "auto":
            language = self.settings.language
        groups = segment_topics(
            segments, CueList.for_language(language), gap_threshold=self.settings.gap_threshold
        )
        duration = total_duration(groups)
        band = chapter_count_band(duration)
        reduced = reduce_groups(groups, band.max)
        logger.info(
            f"Transcript {duration}s: {len(groups)} topic groups -> {len(reduced)} "
            f"(band {band.min}-{band.max})"
        )

        label_request = build_label_request(reduced, band, duration, language)
        strict = self.settings.strict_lines
        retries = self.settings.label_retries
        text = await self._ask(label_request)
        for attempt in range(1, retries + 1):
            try:
                return parse_label_response(text, duration, strict=strict, max_chapters=band.max)
            except MalformedLabelResponse as e:
                logger.warning(f"Oracle response rejected ({e}); retrying ({attempt}/{retries})")
                text = await self._ask(label_request)
        return parse_label_response(text, duration, strict=strict, max_chapters=band.max)


async def poll(
    store: JobStore,
    job_id: str,
    *,
    interval: float = 1.0,
    max_attempts: int = 300,
    on_update: Callable[[Job], None] | None = None,
) -> Job:
    """
    Poll a job until it reaches done or error.

    Raises JobNotFound if the job is unknown or expires while polling, and
    TimeoutError after max_attempts polls.
    """
    for _ in range(max_attempts):
        job = store.get(job_id)
        if job is None:
            raise JobNotFound(job_id)
        if on_update is not None:
            on_update(job)
        if job.status.is_terminal:
            return job
        await asyncio.sleep(interval)
    raise TimeoutError(f"Job {job_id} did not finish after {max_attempts} polls")
