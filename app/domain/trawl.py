"""
app/domain/trawl.py

Domain models for one trawl run.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

IMAGE_KEYWORD = "IMAGE"


@dataclass(frozen=True)
class Competitor:
    """
    One competitor page to scan. Identity is `url`.
    """

    name: str
    url: str


@dataclass(frozen=True)
class StoredImageRecord:
    """
    Reference image fingerprint, read-only to the trawl engine.
    """

    url: str
    filename: str
    fingerprint: str


@dataclass(frozen=True)
class MatchResult:
    """
    One keyword or image hit for one site.
    """

    company: str
    keyword: str
    url: str
    context: str | None = None


class SiteStatus(str, Enum):
    SUCCESS = "success"
    PARTIAL = "partial"
    FAILED = "failed"


@dataclass(frozen=True)
class SiteOutcome:
    """
    Per-site processing outcome. Failures are recorded here instead of aborting the run.
    """

    company: str
    url: str
    status: SiteStatus
    results: tuple[MatchResult, ...] = ()
    rendered: bool = False
    errors: tuple[str, ...] = ()


@dataclass(frozen=True)
class RunMetadata:
    elapsed_ms: int
    sites_processed: int
    pages_rendered: int
    deadline_ms: int
    fetch_timeout_ms: int
    concurrency: int
    sites_failed: int = 0
    deadline_reached: bool = False


@dataclass(frozen=True)
class TrawlRunResult:
    results: list[MatchResult]
    meta: RunMetadata
    outcomes: list[SiteOutcome] = field(default_factory=list)
