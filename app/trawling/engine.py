"""
Trawl orchestration: batched, deadline-bounded processing of competitor pages.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field

import requests
from bs4 import BeautifulSoup

from app.domain.trawl import (
    Competitor,
    MatchResult,
    RunMetadata,
    SiteOutcome,
    SiteStatus,
    StoredImageRecord,
    TrawlRunResult,
)
from app.trawling.config import load_synonym_table
from app.trawling.config.models import TrawlRunOptions
from app.trawling.extractors.registry import ExtractorRegistry
from app.trawling.fetcher import FetchError, Sleeper, build_headers, fetch_with_retry
from app.trawling.images import ImageFingerprintMatcher
from app.trawling.logging_utils import elapsed_ms, log_event
from app.trawling.matching import MatcherSet
from app.trawling.rendering import BrowserLauncher, BrowserSession, RenderFallbackEngine

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


@dataclass
class _RunState:
    started_at: float
    options: TrawlRunOptions
    matcher_set: MatcherSet
    headers: dict[str, str]
    stored_images: tuple[StoredImageRecord, ...]
    renderer: RenderFallbackEngine
    image_matcher: ImageFingerprintMatcher | None
    results: list[MatchResult] = field(default_factory=list)
    outcomes: list[SiteOutcome] = field(default_factory=list)
    sites_processed: int = 0
    pages_rendered: int = 0


class TrawlEngine:
    """
    Runs one trawl over a list of competitor pages.

    Sites are processed in batches of `options.concurrency`; the run deadline
    is checked only between batches, so an in-flight batch always finishes.
    A site's failure is recorded in its `SiteOutcome` and never aborts the run.
    """

    def __init__(
        self,
        *,
        session: requests.Session | None = None,
        extractors: ExtractorRegistry | None = None,
        synonyms: Mapping[str, Sequence[str]] | None = None,
        browser_launcher: BrowserLauncher | None = None,
        clock: Clock = time.monotonic,
        sleep: Sleeper = asyncio.sleep,
    ) -> None:
        self._session = session or requests.Session()
        self._extractors = extractors or ExtractorRegistry()
        self._synonyms = load_synonym_table() if synonyms is None else synonyms
        self._browser_launcher = browser_launcher
        self._clock = clock
        self._sleep = sleep

    async def run(
        self,
        *,
        competitors: Sequence[Competitor],
        keywords: Sequence[str],
        stored_images: Sequence[StoredImageRecord] = (),
        options: TrawlRunOptions | None = None,
    ) -> TrawlRunResult:
        options = options or TrawlRunOptions()
        started_at = self._clock()
        matcher_set = MatcherSet.from_phrases(
            select_keywords(keywords, options.limit_keywords),
            max_gap_words=options.max_gap_words,
            synonyms=self._synonyms,
        )
        sites = select_sites(competitors, options)
        concurrency = max(1, options.concurrency)
        deadline_reached = False

        log_event(
            logger,
            logging.INFO,
            "trawl_run_started",
            sites=len(sites),
            keywords=len(matcher_set),
            stored_images=len(stored_images),
            include_images=options.include_images,
            skip_render=options.skip_render,
            concurrency=concurrency,
            deadline_ms=options.deadline_ms,
        )

        async with BrowserSession(self._browser_launcher) as browser:
            state = _RunState(
                started_at=started_at,
                options=options,
                matcher_set=matcher_set,
                headers=build_headers(options.user_agent, options.extra_headers),
                stored_images=tuple(stored_images),
                renderer=RenderFallbackEngine(
                    browser=browser,
                    matcher_set=matcher_set,
                    extractors=self._extractors,
                    render_delay_ms=options.render_delay_ms,
                    navigation_timeout_ms=options.navigation_timeout_ms,
                    sleep=self._sleep,
                ),
                image_matcher=self._image_matcher(options) if options.include_images else None,
            )

            for batch_start in range(0, len(sites), concurrency):
                if self._elapsed_ms(state) > options.deadline_ms:
                    deadline_reached = True
                    log_event(
                        logger,
                        logging.WARNING,
                        "trawl_deadline_reached",
                        elapsed_ms=self._elapsed_ms(state),
                        deadline_ms=options.deadline_ms,
                        sites_skipped=len(sites) - batch_start,
                    )
                    break
                batch = sites[batch_start : batch_start + concurrency]
                log_event(
                    logger,
                    logging.DEBUG,
                    "trawl_batch_dispatched",
                    batch_start=batch_start,
                    batch_size=len(batch),
                )
                await asyncio.gather(*(self._process_site(state, site) for site in batch))

        meta = RunMetadata(
            elapsed_ms=self._elapsed_ms(state),
            sites_processed=state.sites_processed,
            pages_rendered=state.pages_rendered,
            deadline_ms=options.deadline_ms,
            fetch_timeout_ms=options.fetch_timeout_ms,
            concurrency=concurrency,
            sites_failed=sum(1 for outcome in state.outcomes if outcome.status is SiteStatus.FAILED),
            deadline_reached=deadline_reached,
        )
        log_event(
            logger,
            logging.INFO,
            "trawl_run_completed",
            results=len(state.results),
            elapsed_ms=meta.elapsed_ms,
            sites_processed=meta.sites_processed,
            sites_failed=meta.sites_failed,
            pages_rendered=meta.pages_rendered,
            deadline_reached=meta.deadline_reached,
        )
        return TrawlRunResult(results=state.results, meta=meta, outcomes=state.outcomes)

    async def _process_site(self, state: _RunState, site: Competitor) -> None:
        results: list[MatchResult] = []
        errors: list[str] = []
        rendered = False
        fetched = False
        try:
            html = await self._fetch_page(state, site, errors)
            fetched = html is not None
            soup = BeautifulSoup(html, "html.parser") if html is not None else None

            if soup is not None:
                page_text = soup.get_text(" ")
                results.extend(
                    state.matcher_set.match_text(company=site.name, url=site.url, text=page_text)
                )
                results.extend(self._match_listings(state, site, soup, errors))

            outcome = await state.renderer.maybe_render(
                site,
                already_matched=bool(results),
                rendering_allowed=not state.options.skip_render,
                deadline_remaining_ms=state.options.deadline_ms - self._elapsed_ms(state),
            )
            if outcome.rendered:
                rendered = True
                state.pages_rendered += 1
                results.extend(outcome.results)
            elif outcome.error:
                errors.append(f"render: {outcome.error}")

            if soup is not None and state.image_matcher is not None:
                results.extend(
                    await state.image_matcher.match_images(
                        company=site.name,
                        html=soup,
                        page_url=site.url,
                        stored=state.stored_images,
                        max_images=state.options.max_images_per_site,
                    )
                )
        except Exception as exc:
            errors.append(repr(exc))
            log_event(
                logger,
                logging.ERROR,
                "site_failed",
                company=site.name,
                url=site.url,
                error=repr(exc),
            )
        finally:
            state.sites_processed += 1
            state.results.extend(results)
            outcome_record = SiteOutcome(
                company=site.name,
                url=site.url,
                status=_site_status(fetched=fetched, rendered=rendered, errors=errors),
                results=tuple(results),
                rendered=rendered,
                errors=tuple(errors),
            )
            state.outcomes.append(outcome_record)
            log_event(
                logger,
                logging.INFO,
                "site_processed",
                company=site.name,
                url=site.url,
                status=outcome_record.status.value,
                matches=len(results),
                rendered=rendered,
                errors=len(errors) or None,
            )

    async def _fetch_page(self, state: _RunState, site: Competitor, errors: list[str]) -> str | None:
        options = state.options
        try:
            response = await fetch_with_retry(
                self._session,
                site.url,
                timeout_seconds=options.fetch_timeout_ms / 1000,
                max_retries=options.fetch_max_retries,
                backoff_initial_seconds=options.fetch_backoff_initial_ms / 1000,
                backoff_multiplier=options.fetch_backoff_multiplier,
                headers=state.headers,
                sleep=self._sleep,
            )
        except FetchError as exc:
            errors.append(f"fetch: {exc}")
            log_event(
                logger,
                logging.WARNING,
                "site_fetch_failed",
                company=site.name,
                url=site.url,
                attempts=exc.attempts,
                error=repr(exc.cause),
            )
            return None

        if not response.ok:
            errors.append(f"fetch: HTTP {response.status_code}")
            log_event(
                logger,
                logging.WARNING,
                "site_fetch_failed",
                company=site.name,
                url=site.url,
                status_code=response.status_code,
            )
            return None
        return response.text

    def _match_listings(
        self,
        state: _RunState,
        site: Competitor,
        soup: BeautifulSoup,
        errors: list[str],
    ) -> list[MatchResult]:
        results: list[MatchResult] = []
        for extractor in self._extractors.detect(site.url):
            try:
                items = extractor.extract(soup, site.url)
            except Exception as exc:
                errors.append(f"extract[{extractor.name}]: {exc!r}")
                log_event(
                    logger,
                    logging.WARNING,
                    "listing_extraction_failed",
                    company=site.name,
                    url=site.url,
                    marketplace=extractor.name,
                    error=repr(exc),
                )
                continue
            results.extend(state.matcher_set.match_listings(company=site.name, items=items))
        return results

    def _image_matcher(self, options: TrawlRunOptions) -> ImageFingerprintMatcher:
        return ImageFingerprintMatcher(
            session=self._session,
            timeout_seconds=options.effective_image_timeout_ms / 1000,
            headers=build_headers(options.user_agent, options.extra_headers),
        )

    def _elapsed_ms(self, state: _RunState) -> int:
        return elapsed_ms(state.started_at, self._clock())


def select_keywords(keywords: Sequence[str], limit: int | None) -> list[str]:
    cleaned = [keyword.strip() for keyword in keywords if keyword and keyword.strip()]
    if limit is not None and limit > 0:
        return cleaned[:limit]
    return cleaned


def select_sites(competitors: Sequence[Competitor], options: TrawlRunOptions) -> list[Competitor]:
    """
    The single indexed competitor when `site_index` is in range, else the first `max_sites`.
    """

    if options.site_index is not None and 0 <= options.site_index < len(competitors):
        return [competitors[options.site_index]]
    if options.max_sites is not None and options.max_sites > 0:
        return list(competitors[: options.max_sites])
    return list(competitors)


def _site_status(*, fetched: bool, rendered: bool, errors: Sequence[str]) -> SiteStatus:
    if not errors:
        return SiteStatus.SUCCESS
    if fetched or rendered:
        return SiteStatus.PARTIAL
    return SiteStatus.FAILED
