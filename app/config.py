"""
app/config.py

Application-level configuration helpers.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from app.trawling.config import DEFAULT_MARKETPLACES_PATH, DEFAULT_SYNONYMS_PATH
from app.trawling.fetcher import DEFAULT_USER_AGENT
from db.config import load_env_files


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    """
    Ensure project `.env` files are loaded once before reading app settings.
    """

    load_env_files()


def _get_int_env(name: str, default: int) -> int:
    """
    Read an integer from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError:
        return default


def _get_float_env(name: str, default: float) -> float:
    """
    Read a float from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return float(raw_value)
    except ValueError:
        return default


def _get_str_env(name: str, default: str) -> str:
    """
    Read a string from environment variables with fallback.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return default
    stripped = value.strip()
    return stripped if stripped else default


@dataclass(frozen=True)
class TrawlSettings:
    """
    Per-deployment defaults for trawl runs. Request parameters override
    the run-shaping values; the rest are fixed for the process.
    """

    concurrency: int = 4
    fetch_timeout_ms: int = 10000
    fetch_max_retries: int = 1
    fetch_backoff_initial_ms: int = 400
    fetch_backoff_multiplier: float = 2.0
    image_fetch_timeout_ms: int = 8000
    render_delay_ms: int = 1000
    navigation_timeout_max_ms: int = 20000
    deadline_ms: int = 180000
    deadline_skip_render_ms: int = 90000
    max_images_per_site: int = 20
    max_gap_words: int = 30
    user_agent: str = DEFAULT_USER_AGENT
    synonyms_path: str = DEFAULT_SYNONYMS_PATH
    marketplaces_path: str = DEFAULT_MARKETPLACES_PATH


@dataclass(frozen=True)
class UploadSettings:
    """
    Storage location for uploaded reference images.
    """

    uploads_dir: str = "data/uploads"
    public_prefix: str = "/uploads"


@lru_cache(maxsize=1)
def get_trawl_settings() -> TrawlSettings:
    """
    Return cached trawl settings from environment variables.
    """

    return TrawlSettings(
        concurrency=max(1, _get_int_env("TRAWL_CONCURRENCY", 4)),
        fetch_timeout_ms=max(1000, _get_int_env("TRAWL_FETCH_TIMEOUT_MS", 10000)),
        fetch_max_retries=max(0, _get_int_env("TRAWL_FETCH_MAX_RETRIES", 1)),
        fetch_backoff_initial_ms=max(0, _get_int_env("TRAWL_FETCH_BACKOFF_INITIAL_MS", 400)),
        fetch_backoff_multiplier=max(1.0, _get_float_env("TRAWL_FETCH_BACKOFF_MULTIPLIER", 2.0)),
        image_fetch_timeout_ms=max(1000, _get_int_env("TRAWL_IMAGE_FETCH_TIMEOUT_MS", 8000)),
        render_delay_ms=max(0, _get_int_env("TRAWL_RENDER_DELAY_MS", 1000)),
        navigation_timeout_max_ms=max(5000, _get_int_env("TRAWL_NAVIGATION_TIMEOUT_MAX_MS", 20000)),
        deadline_ms=max(3000, _get_int_env("TRAWL_DEADLINE_MS", 180000)),
        deadline_skip_render_ms=max(3000, _get_int_env("TRAWL_DEADLINE_SKIP_RENDER_MS", 90000)),
        max_images_per_site=max(1, _get_int_env("TRAWL_MAX_IMAGES_PER_SITE", 20)),
        max_gap_words=max(1, _get_int_env("TRAWL_MAX_GAP_WORDS", 30)),
        user_agent=_get_str_env("TRAWL_USER_AGENT", DEFAULT_USER_AGENT),
        synonyms_path=_get_str_env("TRAWL_SYNONYMS_PATH", DEFAULT_SYNONYMS_PATH),
        marketplaces_path=_get_str_env("TRAWL_MARKETPLACES_PATH", DEFAULT_MARKETPLACES_PATH),
    )


@lru_cache(maxsize=1)
def get_upload_settings() -> UploadSettings:
    """
    Return cached upload storage settings from environment variables.
    """

    return UploadSettings(
        uploads_dir=_get_str_env("TRAWL_UPLOADS_DIR", "data/uploads"),
    )
