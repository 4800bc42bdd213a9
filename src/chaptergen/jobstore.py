"""
Job lifecycle store.

Tracks every in-flight chaptering job: its stage, progress, result and error.
Pipeline stages write through update(); pollers read through get(). Each
call takes the store lock, so a single update is atomic against the whole
record while separate updates interleave field by field (last writer wins).
"""

import asyncio
import json
import logging
import os
import threading
from collections.abc import Callable
from dataclasses import dataclass, fields, replace
from datetime import datetime, timedelta, timezone
from enum import Enum
from pathlib import Path

from .errors import InvalidInput, JobNotFound

logger = logging.getLogger("chaptergen")

DEFAULT_RETENTION = timedelta(hours=24)
DEFAULT_EVICT_INTERVAL = timedelta(hours=12)


class JobStatus(str, Enum):
    WAITING = "waiting"
    PROCESSING = "processing"
    DOWNLOADING = "downloading"
    TRANSCRIBING = "transcribing"
    GENERATING = "generating"
    DONE = "done"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset({JobStatus.DONE, JobStatus.ERROR})


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _from_iso(value: str | None) -> datetime | None:
    """Parse an ISO timestamp; naive values and a trailing Z are read as UTC."""
    if not value:
        return None
    if not isinstance(value, str):
        raise ValueError(f"Timestamp must be a string, not {type(value).__name__}")
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass
class Job:
    """One tracked chaptering request."""

    job_id: str
    status: JobStatus = JobStatus.WAITING
    progress: int = 0
    result: str | None = None
    error: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    completed_at: datetime | None = None

    @property
    def last_modified(self) -> datetime | None:
        return self.updated_at or self.created_at

    def to_dict(self) -> dict:
        """JSON-serialisable record; optional fields are omitted when unset."""
        data = {
            "jobId": self.job_id,
            "status": self.status.value,
            "progress": self.progress,
            "result": self.result,
            "error": self.error,
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
            "completedAt": _iso(self.completed_at),
        }
        return {k: v for k, v in data.items() if v is not None}

    @classmethod
    def from_dict(cls, data: dict) -> "Job":
        if not isinstance(data, dict):
            raise ValueError(f"Job record must be an object, not {type(data).__name__}")
        return cls(
            job_id=data["jobId"],
            status=JobStatus(data.get("status") or JobStatus.WAITING.value),
            progress=int(data.get("progress") or 0),
            result=data.get("result"),
            error=data.get("error"),
            created_at=_from_iso(data.get("createdAt")),
            updated_at=_from_iso(data.get("updatedAt")),
            completed_at=_from_iso(data.get("completedAt")),
        )


_UPDATABLE = frozenset(f.name for f in fields(Job)) - {"job_id", "updated_at"}


class JobStore:
    """In-memory job store. Construct one per application (or per test)."""

    def __init__(self, clock: Callable[[], datetime] = utcnow):
        self._clock = clock
        self._jobs: dict[str, Job] = {}
        self._lock = threading.RLock()

    # ── Persistence hooks (no-ops in memory) ───────────────────────────

    def _persist(self, job: Job) -> None:
        pass

    def _remove(self, job_id: str) -> None:
        pass

    # ── Operations ────────────────────────────────────────────────────

    def update(self, job_id: str, **changes) -> Job:
        """Create the job if needed, then shallow-merge changes over it."""
        unknown = set(changes) - _UPDATABLE
        if unknown:
            raise TypeError(f"Unknown job fields: {', '.join(sorted(unknown))}")
        if "status" in changes:
            changes["status"] = JobStatus(changes["status"])
        if "progress" in changes:
            changes["progress"] = min(100, max(0, int(changes["progress"])))

        with self._lock:
            now = self._clock()
            current = self._jobs.get(job_id)
            if current is None:
                current = Job(job_id=job_id, created_at=now)
                logger.debug(f"Created job {job_id}")
            updated = replace(current, **changes, updated_at=now)
            self._persist(updated)
            self._jobs[job_id] = updated
            logger.debug(f"Job {job_id} -> {updated.status.value} ({updated.progress}%)")
            return replace(updated)

    def get(self, job_id: str) -> Job | None:
        """Current record, or None when the job is unknown or has expired."""
        with self._lock:
            job = self._jobs.get(job_id)
            return replace(job) if job is not None else None

    def _complete(self, job_id: str, **changes) -> Job:
        with self._lock:
            if job_id not in self._jobs:
                raise JobNotFound(job_id)
            now = self._clock()
            return self.update(job_id, completed_at=now, **changes)

    def store_result(self, job_id: str, result: str) -> Job:
        job = self._complete(job_id, status=JobStatus.DONE, progress=100, result=result)
        logger.info(f"Job {job_id} done")
        return job

    def mark_error(self, job_id: str, message: str) -> Job:
        job = self._complete(job_id, status=JobStatus.ERROR, error=message)
        logger.error(f"Job {job_id} failed: {message}")
        return job

    def list(self) -> list[Job]:
        """Snapshot of every retained job."""
        with self._lock:
            return [replace(job) for job in self._jobs.values()]

    def evict(self, max_age: timedelta = DEFAULT_RETENTION) -> int:
        """Drop jobs last modified more than max_age ago. Returns how many were dropped."""
        with self._lock:
            cutoff = self._clock() - max_age
            stale = [
                job_id
                for job_id, job in self._jobs.items()
                if job.last_modified is not None and job.last_modified < cutoff
            ]
            for job_id in stale:
                del self._jobs[job_id]
                self._remove(job_id)
        if stale:
            logger.info(f"Evicted {len(stale)} expired jobs")
        return len(stale)

    def __len__(self) -> int:
        with self._lock:
            return len(self._jobs)

    def __contains__(self, job_id: str) -> bool:
        with self._lock:
            return job_id in self._jobs


class FileJobStore(JobStore):
    """Job store that also writes one JSON file per job, so jobs survive restarts."""

    def __init__(self, directory: str | Path, clock: Callable[[], datetime] = utcnow):
        super().__init__(clock)
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)
        self._load()

    def _path(self, job_id: str) -> Path:
        if not job_id or "/" in job_id or "\\" in job_id or job_id.startswith("."):
            raise InvalidInput(f"Job id is not usable as a file name: {job_id!r}")
        return self.directory / f"{job_id}.json"

    def _load(self) -> None:
        for path in sorted(self.directory.glob("*.json")):
            try:
                job = Job.from_dict(json.loads(path.read_text(encoding="utf-8")))
            except (OSError, ValueError, KeyError, TypeError) as e:
                logger.warning(f"Skipping unreadable job file {path.name}: {e}")
                continue
            self._jobs[job.job_id] = job
        if self._jobs:
            logger.info(f"Loaded {len(self._jobs)} jobs from {self.directory}")

    def _persist(self, job: Job) -> None:
        path = self._path(job.job_id)
        tmp = path.with_suffix(".json.tmp")
        tmp.write_text(json.dumps(job.to_dict(), ensure_ascii=False, indent=2), encoding="utf-8")
        os.replace(tmp, path)

    def _remove(self, job_id: str) -> None:
        self._path(job_id).unlink(missing_ok=True)


async def run_eviction(
    store: JobStore,
    interval: timedelta = DEFAULT_EVICT_INTERVAL,
    max_age: timedelta = DEFAULT_RETENTION,
) -> None:
    """Evict once now, then every interval. Cancel the task to stop it."""
    while True:
        try:
            store.evict(max_age)
        except Exception:
            logger.exception("Job eviction failed")
        await asyncio.sleep(interval.total_seconds())
