"""
Settings loaded from the environment (and an optional .env file).
"""

import os
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path

from dotenv import load_dotenv

from .segmenter import DEFAULT_GAP_THRESHOLD, DEFAULT_LANGUAGE
from .sources import DEFAULT_CAPTION_HOST

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def _float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


def _int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


def _bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ValueError(f"{name} must be true or false, got {raw!r}")


@dataclass(frozen=True)
class Settings:
    openai_api_key: str | None = None
    model: str = "gpt-4o-mini"
    temperature: float = 0.7
    max_tokens: int = 500
    rapidapi_key: str | None = None
    rapidapi_host: str = DEFAULT_CAPTION_HOST
    gap_threshold: float = DEFAULT_GAP_THRESHOLD
    language: str = DEFAULT_LANGUAGE
    jobs_dir: Path | None = None
    retention: timedelta = timedelta(hours=24)
    evict_interval: timedelta = timedelta(hours=12)
    strict_lines: bool = True
    label_retries: int = 1


def load_settings(env_file: str | Path | None = None) -> Settings:
    """Load settings, reading env_file (or the nearest .env) first."""
    if env_file is not None:
        load_dotenv(env_file)
    else:
        load_dotenv()

    jobs_dir = os.getenv("CHAPTERGEN_JOBS_DIR")
    return Settings(
        openai_api_key=os.getenv("OPENAI_API_KEY"),
        model=os.getenv("CHAPTERGEN_MODEL", "gpt-4o-mini"),
        temperature=_float("CHAPTERGEN_TEMPERATURE", 0.7),
        max_tokens=_int("CHAPTERGEN_MAX_TOKENS", 500),
        rapidapi_key=os.getenv("RAPIDAPI_KEY"),
        rapidapi_host=os.getenv("RAPIDAPI_HOST", DEFAULT_CAPTION_HOST),
        gap_threshold=_float("CHAPTERGEN_GAP_THRESHOLD", DEFAULT_GAP_THRESHOLD),
        language=os.getenv("CHAPTERGEN_LANGUAGE", DEFAULT_LANGUAGE),
        jobs_dir=Path(jobs_dir) if jobs_dir else None,
        retention=timedelta(hours=_float("CHAPTERGEN_RETENTION_HOURS", 24)),
        evict_interval=timedelta(hours=_float("CHAPTERGEN_EVICT_INTERVAL_HOURS", 12)),
        strict_lines=_bool("CHAPTERGEN_STRICT_LINES", True),
        label_retries=max(0, _int("CHAPTERGEN_LABEL_RETRIES", 1)),
    )
