"""
Headless-browser render fallback for pages whose content needs client-side scripts.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any, Protocol

from bs4 import BeautifulSoup

from app.domain.trawl import Competitor, MatchResult
from app.trawling.extractors.registry import ExtractorRegistry
from app.trawling.logging_utils import log_event
from app.trawling.matching import MatcherSet

logger = logging.getLogger(__name__)

CHROMIUM_ARGS = ["--no-sandbox", "--disable-setuid-sandbox"]


class BrowserHandle(Protocol):
    async def new_page(self) -> Any: ...

    async def close(self) -> None: ...


BrowserLauncher = Callable[[], Awaitable[BrowserHandle]]
Sleeper = Callable[[float], Awaitable[None]]


class _PlaywrightBrowser:
    def __init__(self, playwright: Any, browser: Any) -> None:
        self._playwright = playwright
        self._browser = browser

    async def new_page(self) -> Any:
        return await self._browser.new_page()

    async def close(self) -> None:
        try:
            await self._browser.close()
        finally:
            await self._playwright.stop()


async def launch_chromium() -> BrowserHandle:
    from playwright.async_api import async_playwright

    playwright = await async_playwright().start()
    try:
        browser = await playwright.chromium.launch(headless=True, args=CHROMIUM_ARGS)
    except Exception:
        await playwright.stop()
        raise
    return _PlaywrightBrowser(playwright, browser)


class BrowserSession:
    """
    Run-scoped owner of at most one headless browser.

    The browser is launched on first use, shared by every render task of the
    run, and closed exactly once when the session exits.
    """

    def __init__(self, launcher: BrowserLauncher | None = None) -> None:
        self._launcher = launcher or launch_chromium
        self._browser: BrowserHandle | None = None
        self._lock = asyncio.Lock()
        self._closed = False

    @property
    def launched(self) -> bool:
        return self._browser is not None

    async def __aenter__(self) -> "BrowserSession":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def new_page(self) -> Any:
        browser = await self._ensure_browser()
        return await browser.new_page()

    async def close(self) -> None:
        async with self._lock:
            if self._closed:
                return
            self._closed = True
            browser, self._browser = self._browser, None
        if browser is None:
            return
        try:
            await browser.close()
        except Exception as exc:
            log_event(logger, logging.WARNING, "browser_close_failed", error=repr(exc))
            return
        log_event(logger, logging.INFO, "browser_closed")

    async def _ensure_browser(self) -> BrowserHandle:
        async with self._lock:
            if self._closed:
                raise RuntimeError("Browser session is already closed.")
            if self._browser is None:
                self._browser = await self._launcher()
                log_event(logger, logging.INFO, "browser_launched")
            return self._browser


@dataclass(frozen=True)
class RenderOutcome:
    attempted: bool
    rendered: bool = False
    results: list[MatchResult] = field(default_factory=list)
    error: str | None = None


class RenderFallbackEngine:
    """
    Decides whether a site needs rendering and, if so, matches the rendered page.
    """

    def __init__(
        self,
        *,
        browser: BrowserSession,
        matcher_set: MatcherSet,
        extractors: ExtractorRegistry,
        render_delay_ms: int,
        navigation_timeout_ms: int,
        sleep: Sleeper = asyncio.sleep,
    ) -> None:
        self._browser = browser
        self._matcher_set = matcher_set
        self._extractors = extractors
        self._render_delay_ms = max(0, render_delay_ms)
        self._navigation_timeout_ms = navigation_timeout_ms
        self._sleep = sleep

    def should_render(
        self,
        site: Competitor,
        *,
        already_matched: bool,
        rendering_allowed: bool,
        deadline_remaining_ms: int,
    ) -> bool:
        if already_matched or deadline_remaining_ms <= 0:
            return False
        return rendering_allowed or self._extractors.is_render_always(site.url)

    async def maybe_render(
        self,
        site: Competitor,
        *,
        already_matched: bool,
        rendering_allowed: bool,
        deadline_remaining_ms: int,
    ) -> RenderOutcome:
        if not self.should_render(
            site,
            already_matched=already_matched,
            rendering_allowed=rendering_allowed,
            deadline_remaining_ms=deadline_remaining_ms,
        ):
            return RenderOutcome(attempted=False)

        log_event(logger, logging.INFO, "render_started", company=site.name, url=site.url)
        page = None
        try:
            page = await self._browser.new_page()
            results = await self._render_and_match(page, site)
        except Exception as exc:
            log_event(
                logger,
                logging.WARNING,
                "render_failed",
                company=site.name,
                url=site.url,
                error=repr(exc),
            )
            return RenderOutcome(attempted=True, error=repr(exc))
        finally:
            if page is not None:
                await _close_page(page)
        return RenderOutcome(attempted=True, rendered=True, results=results)

    async def _render_and_match(self, page: Any, site: Competitor) -> list[MatchResult]:
        page.set_default_navigation_timeout(self._navigation_timeout_ms)
        page.set_default_timeout(self._navigation_timeout_ms)
        await page.goto(site.url, wait_until="domcontentloaded")
        if self._render_delay_ms:
            await self._sleep(self._render_delay_ms / 1000)

        body_text = await page.inner_text("body")
        results = self._matcher_set.match_text(company=site.name, url=site.url, text=body_text)

        extractors = self._extractors.detect(site.url)
        if not extractors:
            return results
        try:
            soup = BeautifulSoup(await page.content(), "html.parser")
        except Exception as exc:
            self._log_extraction_failure(site, None, exc)
            return results
        for extractor in extractors:
            try:
                items = extractor.extract_rendered(soup, site.url)
            except Exception as exc:
                self._log_extraction_failure(site, extractor.name, exc)
                continue
            results.extend(self._matcher_set.match_listings(company=site.name, items=items))
        return results

    @staticmethod
    def _log_extraction_failure(site: Competitor, marketplace: str | None, exc: Exception) -> None:
        log_event(
            logger,
            logging.WARNING,
            "rendered_extraction_failed",
            company=site.name,
            url=site.url,
            marketplace=marketplace,
            error=repr(exc),
        )


async def _close_page(page: Any) -> None:
    try:
        await page.close()
    except Exception as exc:
        log_event(logger, logging.DEBUG, "render_page_close_failed", error=repr(exc))
