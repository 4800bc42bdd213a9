"""
Tests for environment-driven settings.
"""

from datetime import timedelta
from pathlib import Path

import pytest

from chaptergen.config import Settings, load_settings

_VARS = (
    "OPENAI_API_KEY",
    "CHAPTERGEN_MODEL",
    "CHAPTERGEN_TEMPERATURE",
    "CHAPTERGEN_MAX_TOKENS",
    "RAPIDAPI_KEY",
    "RAPIDAPI_HOST",
    "CHAPTERGEN_GAP_THRESHOLD",
    "CHAPTERGEN_LANGUAGE",
    "CHAPTERGEN_JOBS_DIR",
    "CHAPTERGEN_RETENTION_HOURS",
    "CHAPTERGEN_EVICT_INTERVAL_HOURS",
    "CHAPTERGEN_STRICT_LINES",
    "CHAPTERGEN_LABEL_RETRIES",
)


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    # setenv first so teardown removes anything load_dotenv writes
    for name in _VARS:
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    return tmp_path / "none.env"


def test_defaults(clean_env):
    settings = load_settings(clean_env)

    assert settings == Settings()
    assert settings.jobs_dir is None
    assert settings.retention == timedelta(hours=24)
    assert settings.evict_interval == timedelta(hours=12)
    assert settings.strict_lines is True


def test_environment_overrides(clean_env, monkeypatch, tmp_path):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    monkeypatch.setenv("CHAPTERGEN_GAP_THRESHOLD", "3.5")
    monkeypatch.setenv("CHAPTERGEN_LANGUAGE", "en")
    monkeypatch.setenv("CHAPTERGEN_JOBS_DIR", str(tmp_path / "jobs"))
    monkeypatch.setenv("CHAPTERGEN_RETENTION_HOURS", "1.5")
    monkeypatch.setenv("CHAPTERGEN_STRICT_LINES", "no")
    monkeypatch.setenv("CHAPTERGEN_LABEL_RETRIES", "-2")

    settings = load_settings(clean_env)

    assert settings.openai_api_key == "sk-test"
    assert settings.gap_threshold == 3.5
    assert settings.language == "en"
    assert settings.jobs_dir == Path(tmp_path / "jobs")
    assert settings.retention == timedelta(minutes=90)
    assert settings.strict_lines is False
    assert settings.label_retries == 0


def test_env_file_is_read(clean_env, tmp_path):
    env_file = tmp_path / ".env"
    env_file.write_text("CHAPTERGEN_MODEL=gpt-test\nCHAPTERGEN_MAX_TOKENS=800\n", encoding="utf-8")

    settings = load_settings(env_file)

    assert settings.model == "gpt-test"
    assert settings.max_tokens == 800


@pytest.mark.parametrize(
    "name, value",
    [
        ("CHAPTERGEN_TEMPERATURE", "warm"),
        ("CHAPTERGEN_MAX_TOKENS", "1.5"),
        ("CHAPTERGEN_STRICT_LINES", "maybe"),
    ],
)
def test_malformed_values_name_the_variable(clean_env, monkeypatch, name, value):
    monkeypatch.setenv(name, value)
    with pytest.raises(ValueError, match=name):
        load_settings(clean_env)
