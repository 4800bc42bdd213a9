"""
Command-line interface for the chapter generator.
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

import httpx
from openai import AsyncOpenAI
from tqdm import tqdm

from .config import Settings, load_settings
from .errors import ChapterGenError
from .jobstore import FileJobStore, JobStatus, JobStore, run_eviction
from .models import ChapterRequest
from .oracle import OpenAIOracle
from .pipeline import ChapterPipeline, poll
from .policy import chapter_count_band, total_duration
from .prompt import build_digest
from .reducer import reduce_groups
from .segmenter import CueList, segment_topics
from .sources import CaptionApiSource, FileSource
from .srt_utils import read_transcript

logger = logging.getLogger("chaptergen")


def setup_logging(verbose: bool = False) -> None:
    """Setup logging configuration."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    ap = argparse.ArgumentParser(description="Generate topic chapters from speech transcripts")
    ap.add_argument("--env-file", default=None, help="Read settings from this .env file")
    ap.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")
    sub = ap.add_subparsers(dest="command", required=True)

    p_file = sub.add_parser("file", help="Chapters for a local JSON or SRT transcript")
    p_file.add_argument("path", help="Transcript file (.json list of {text,start,end} or .srt)")
    p_file.add_argument("--language", default=None, help="Cue/title language, e.g. ja or en")
    p_file.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the chapter band and segment digest instead of calling the model",
    )

    p_yt = sub.add_parser("youtube", help="Chapters for a YouTube video's caption track")
    p_yt.add_argument("url")
    p_yt.add_argument("--language", default="auto", help="Caption language ('auto' = default)")
    p_yt.add_argument("--poll-interval", type=float, default=1.0)
    p_yt.add_argument("--max-polls", type=int, default=300)

    p_jobs = sub.add_parser("jobs", help="List jobs kept in CHAPTERGEN_JOBS_DIR")
    p_jobs.add_argument("--evict", action="store_true", help="Drop expired jobs first")

    return ap.parse_args(argv)


def make_store(settings: Settings) -> JobStore:
    if settings.jobs_dir is not None:
        return FileJobStore(settings.jobs_dir)
    return JobStore()


def make_oracle(settings: Settings) -> OpenAIOracle:
    if not settings.openai_api_key:
        raise RuntimeError("OPENAI_API_KEY is not set. Put it in .env or environment.")
    client = AsyncOpenAI(api_key=settings.openai_api_key)
    return OpenAIOracle(
        client, settings.model, temperature=settings.temperature, max_tokens=settings.max_tokens
    )


async def run_file(args: argparse.Namespace, settings: Settings) -> int:
    segments = read_transcript(args.path)
    language = args.language or settings.language

    if args.dry_run:
        groups = segment_topics(
            segments, CueList.for_language(language), gap_threshold=settings.gap_threshold
        )
        duration = total_duration(groups)
        band = chapter_count_band(duration)
        reduced = reduce_groups(groups, band.max)
        print(f"# {len(segments)} segments, {len(groups)} topic groups -> {len(reduced)}")
        print(f"# chapters: {band.min}-{band.max}")
        print(build_digest(reduced))
        return 0

    pipeline = ChapterPipeline(JobStore(), FileSource(), make_oracle(settings), settings)
    print(await pipeline.generate_chapters(segments, language))
    return 0


async def run_youtube(args: argparse.Namespace, settings: Settings) -> int:
    store = make_store(settings)
    evictor = asyncio.create_task(run_eviction(store, settings.evict_interval, settings.retention))
    try:
        async with httpx.AsyncClient(timeout=30.0) as http:
            source = CaptionApiSource(
                http,
                settings.rapidapi_key,
                settings.rapidapi_host,
                default_language=settings.language,
            )
            pipeline = ChapterPipeline(store, source, make_oracle(settings), settings)
            job_id = await pipeline.submit(ChapterRequest(url=args.url, language=args.language))

            with tqdm(total=100, desc=job_id, unit="%") as bar:

                def show(job):
                    bar.set_postfix_str(job.status.value)
                    bar.update(job.progress - bar.n)

                job = await poll(
                    store,
                    job_id,
                    interval=args.poll_interval,
                    max_attempts=args.max_polls,
                    on_update=show,
                )
            await pipeline.wait(job_id)
    finally:
        evictor.cancel()
        await asyncio.gather(evictor, return_exceptions=True)

    if job.status is JobStatus.ERROR:
        print(f"Error: {job.error}", file=sys.stderr)
        return 1
    print(job.result)
    return 0


def run_jobs(args: argparse.Namespace, settings: Settings) -> int:
    if settings.jobs_dir is None:
        print("CHAPTERGEN_JOBS_DIR is not set; no persisted jobs to list.", file=sys.stderr)
        return 1
    store = FileJobStore(settings.jobs_dir)
    if args.evict:
        store.evict(settings.retention)
    for job in sorted(store.list(), key=lambda j: j.to_dict().get("createdAt", "")):
        line = f"{job.job_id}  {job.status.value:<12} {job.progress:>3}%"
        if job.error:
            line += f"  {job.error}"
        print(line)
    return 0


async def main_async(argv: list[str] | None = None) -> int:
    """Main async CLI entry point."""
    args = parse_args(argv)
    env_file = Path(args.env_file) if args.env_file else None
    settings = load_settings(env_file)
    setup_logging(args.verbose)

    try:
        if args.command == "file":
            return await run_file(args, settings)
        if args.command == "youtube":
            return await run_youtube(args, settings)
        return run_jobs(args, settings)
    except (ChapterGenError, RuntimeError, TimeoutError) as e:
        logger.error(str(e))
        return 1


def main() -> None:
    """Main CLI entry point."""
    sys.exit(asyncio.run(main_async()))


if __name__ == "__main__":
    main()
