"""
app/services/trawl_service.py

Service orchestration for trawl runs: collaborator reads, option clamping,
and the info / self-test diagnostics.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from functools import lru_cache

import requests
from sqlalchemy.orm import Session

from app.config import TrawlSettings, get_trawl_settings
from app.domain.trawl import Competitor, StoredImageRecord, TrawlRunResult
from app.trawling.config import TrawlRunOptions, load_marketplace_shapes, load_synonym_table
from app.trawling.engine import TrawlEngine, select_keywords
from app.trawling.extractors import ExtractorRegistry
from app.trawling.logging_utils import log_event
from app.trawling.selftest import SelfTestCase, run_self_test
from db.repositories import (
    CompetitorRepository,
    KeywordRepository,
    RecordStoreError,
    ReferenceImageRepository,
)

logger = logging.getLogger(__name__)

INFO_COMPETITOR_SAMPLE = 3
INFO_KEYWORD_SAMPLE = 5


@dataclass(frozen=True)
class TrawlRequestParams:
    """
    Raw per-request overrides; None means "use the configured default".
    """

    include_images: bool = False
    skip_render: bool = False
    max_sites: int | None = None
    max_images: int | None = None
    concurrency: int | None = None
    render_delay_ms: int | None = None
    fetch_timeout_ms: int | None = None
    deadline_ms: int | None = None
    idx: int | None = None
    limit_keywords: int | None = None


@dataclass(frozen=True)
class TrawlInputs:
    competitors: list[Competitor]
    keywords: list[str]
    stored_images: list[StoredImageRecord]


@dataclass(frozen=True)
class TrawlInfo:
    competitors_count: int
    keywords_count: int
    first_competitors: list[Competitor]
    sample_keywords: list[str]


def build_run_options(params: TrawlRequestParams, settings: TrawlSettings) -> TrawlRunOptions:
    """
    Merge request overrides with settings, clamping each knob to its floor.
    """

    default_deadline = settings.deadline_skip_render_ms if params.skip_render else settings.deadline_ms
    return TrawlRunOptions(
        include_images=params.include_images,
        skip_render=params.skip_render,
        max_sites=params.max_sites if params.max_sites and params.max_sites > 0 else None,
        max_images_per_site=params.max_images if params.max_images and params.max_images > 0 else settings.max_images_per_site,
        concurrency=max(1, params.concurrency or settings.concurrency),
        render_delay_ms=max(0, _or_default(params.render_delay_ms, settings.render_delay_ms)),
        fetch_timeout_ms=max(1000, params.fetch_timeout_ms or settings.fetch_timeout_ms),
        deadline_ms=max(3000, params.deadline_ms or default_deadline),
        site_index=params.idx,
        limit_keywords=params.limit_keywords if params.limit_keywords and params.limit_keywords > 0 else None,
        fetch_max_retries=settings.fetch_max_retries,
        fetch_backoff_initial_ms=settings.fetch_backoff_initial_ms,
        fetch_backoff_multiplier=settings.fetch_backoff_multiplier,
        image_fetch_timeout_ms=settings.image_fetch_timeout_ms,
        navigation_timeout_max_ms=settings.navigation_timeout_max_ms,
        max_gap_words=settings.max_gap_words,
        user_agent=settings.user_agent,
    )


def _or_default(value: int | None, default: int) -> int:
    return default if value is None else value


class TrawlService:
    """
    Reads collaborator stores and runs the trawl engine for one request.
    """

    def __init__(
        self,
        settings: TrawlSettings | None = None,
        engine_factory: Callable[[requests.Session], TrawlEngine] | None = None,
    ) -> None:
        self._settings = settings or get_trawl_settings()
        self._engine_factory = engine_factory or self._default_engine

    @property
    def settings(self) -> TrawlSettings:
        return self._settings

    def load_inputs(self, *, db: Session, include_images: bool = True) -> TrawlInputs:
        """
        Read every collaborator store; an unreadable store counts as empty.
        """

        competitors = self._read(
            "competitors",
            lambda: [
                Competitor(name=row.name, url=row.url)
                for row in CompetitorRepository(db).list_all()
            ],
        )
        keywords = self._read("keywords", lambda: KeywordRepository(db).list_phrases())
        stored_images: list[StoredImageRecord] = []
        if include_images:
            stored_images = self._read(
                "reference_images",
                lambda: [
                    StoredImageRecord(url=row.url, filename=row.filename, fingerprint=row.fingerprint)
                    for row in ReferenceImageRepository(db).list_all()
                ],
            )
        return TrawlInputs(competitors=competitors, keywords=keywords, stored_images=stored_images)

    def info(self, *, db: Session, limit_keywords: int | None = None) -> TrawlInfo:
        """
        Store counts and samples, with the keyword list cut the way a run would cut it.
        """

        inputs = self.load_inputs(db=db, include_images=False)
        keywords = select_keywords(inputs.keywords, limit_keywords)
        return TrawlInfo(
            competitors_count=len(inputs.competitors),
            keywords_count=len(keywords),
            first_competitors=inputs.competitors[:INFO_COMPETITOR_SAMPLE],
            sample_keywords=keywords[:INFO_KEYWORD_SAMPLE],
        )

    def self_test(self) -> list[SelfTestCase]:
        return run_self_test(
            max_gap_words=self._settings.max_gap_words,
            synonyms=load_synonym_table(self._settings.synonyms_path),
        )

    def build_options(self, params: TrawlRequestParams) -> TrawlRunOptions:
        return build_run_options(params, self._settings)

    async def run(self, *, inputs: TrawlInputs, options: TrawlRunOptions) -> TrawlRunResult:
        """
        Crawl with already-loaded inputs; no database session is held meanwhile.
        """

        with requests.Session() as session:
            engine = self._engine_factory(session)
            return await engine.run(
                competitors=inputs.competitors,
                keywords=inputs.keywords,
                stored_images=inputs.stored_images,
                options=options,
            )

    def _default_engine(self, session: requests.Session) -> TrawlEngine:
        return TrawlEngine(
            session=session,
            extractors=ExtractorRegistry(load_marketplace_shapes(self._settings.marketplaces_path)),
            synonyms=load_synonym_table(self._settings.synonyms_path),
        )

    @staticmethod
    def _read(store: str, reader: Callable[[], list]) -> list:
        try:
            return reader()
        except RecordStoreError as exc:
            log_event(
                logger,
                logging.WARNING,
                "collaborator_read_failed",
                store=store,
                error=str(exc),
            )
            return []


@lru_cache(maxsize=1)
def get_trawl_service() -> TrawlService:
    """
    Build and cache the trawl service.
    """

    return TrawlService()
