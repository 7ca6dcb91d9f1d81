"""
In-page image fingerprinting against stored reference fingerprints.
"""

from __future__ import annotations

import hashlib
import logging
import re
from collections.abc import Mapping, Sequence

import requests
from bs4 import BeautifulSoup

from app.domain.trawl import IMAGE_KEYWORD, MatchResult, StoredImageRecord
from app.trawling.extractors.base import resolve_href
from app.trawling.fetcher import FetchError, build_headers, fetch_with_retry
from app.trawling.logging_utils import log_event

logger = logging.getLogger(__name__)

IMAGE_SOURCE_ATTRIBUTES = ("src", "data-src")
_TEMPLATE_MARKERS = ("${", "{{")
_FETCHABLE_SOURCE = re.compile(r"^(?:https?://|/)", flags=re.IGNORECASE)


def fingerprint_bytes(content: bytes) -> str:
    """
    Fixed-digest content hash used for both reference uploads and page images.
    """

    return hashlib.sha1(content).hexdigest()


def collect_image_urls(soup: BeautifulSoup, page_url: str, max_images: int) -> list[str]:
    """
    Absolute, deduplicated image URLs referenced by `<img>` tags, capped at `max_images`.
    """

    urls: list[str] = []
    seen: set[str] = set()
    for image in soup.find_all("img"):
        for attribute in IMAGE_SOURCE_ATTRIBUTES:
            raw = image.get(attribute)
            if not isinstance(raw, str):
                continue
            candidate = raw.strip()
            if any(marker in candidate for marker in _TEMPLATE_MARKERS):
                continue
            if not _FETCHABLE_SOURCE.match(candidate):
                continue
            resolved = resolve_href(candidate, page_url)
            if resolved is None or resolved in seen:
                continue
            seen.add(resolved)
            urls.append(resolved)
            if len(urls) >= max_images:
                return urls
    return urls


class ImageFingerprintMatcher:
    """
    Fetches page images and compares their digest with stored fingerprints.
    """

    def __init__(
        self,
        *,
        session: requests.Session,
        timeout_seconds: float,
        headers: Mapping[str, str] | None = None,
    ) -> None:
        self._session = session
        self._timeout_seconds = timeout_seconds
        self._headers = dict(headers) if headers is not None else build_headers()

    async def match_images(
        self,
        *,
        company: str,
        html: str | BeautifulSoup,
        page_url: str,
        stored: Sequence[StoredImageRecord],
        max_images: int,
    ) -> list[MatchResult]:
        if not stored or max_images <= 0:
            return []

        soup = html if isinstance(html, BeautifulSoup) else BeautifulSoup(html, "html.parser")
        results: list[MatchResult] = []
        for image_url in collect_image_urls(soup, page_url, max_images):
            digest = await self._fingerprint(image_url)
            if digest is None:
                continue
            for record in stored:
                if record.fingerprint == digest:
                    results.append(
                        MatchResult(company=company, keyword=IMAGE_KEYWORD, url=image_url)
                    )
        return results

    async def _fingerprint(self, image_url: str) -> str | None:
        try:
            response = await fetch_with_retry(
                self._session,
                image_url,
                timeout_seconds=self._timeout_seconds,
                max_retries=0,
                headers=self._headers,
            )
        except FetchError as exc:
            log_event(
                logger,
                logging.DEBUG,
                "image_fetch_failed",
                image_url=image_url,
                error=str(exc),
            )
            return None
        if not response.ok:
            log_event(
                logger,
                logging.DEBUG,
                "image_fetch_failed",
                image_url=image_url,
                status_code=response.status_code,
            )
            return None
        return fingerprint_bytes(response.content)
