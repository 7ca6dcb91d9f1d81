"""
Base abstraction for marketplace listing extractors.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from urllib.parse import urljoin, urlsplit

from bs4 import BeautifulSoup, Tag

from app.trawling.config.models import MarketplaceShape

_WHITESPACE = re.compile(r"\s+")
_SKIPPED_HREF_PREFIXES = ("javascript:", "mailto:", "tel:", "#", "data:")


@dataclass(frozen=True)
class ListingItem:
    """
    One product/result entry pulled out of a search-results page.
    """

    href: str
    title: str
    card_text: str


class MarketplaceExtractor(ABC):
    """
    Detects one marketplace search-page shape by URL and pulls listings out of it.
    """

    def __init__(self, shape: MarketplaceShape) -> None:
        self.shape = shape

    @property
    def name(self) -> str:
        return self.shape.name

    @property
    def render_always(self) -> bool:
        return self.shape.render_always

    def detect(self, url: str) -> bool:
        try:
            parts = urlsplit(url)
        except ValueError:
            return False
        host = (parts.hostname or "").lower()
        if not host or not self.shape.host_pattern.search(host):
            return False
        return any(signature.matches(parts) for signature in self.shape.signatures)

    @abstractmethod
    def extract(self, soup: BeautifulSoup, page_url: str) -> list[ListingItem]:
        """
        Extract listings from statically fetched markup.
        """

    def extract_rendered(self, soup: BeautifulSoup, page_url: str) -> list[ListingItem]:
        """
        Extract listings from a browser-rendered DOM snapshot.

        Each configured selector yields either an anchor or an element nested
        in one; the title is the anchor's accessible name or its text.
        """

        items: list[ListingItem] = []
        for selector in self.shape.rendered_selectors:
            for node in soup.select(selector):
                anchor = node if node.name == "a" else node.find_parent("a")
                if anchor is None:
                    continue
                href = resolve_href(anchor.get("href"), page_url)
                if href is None:
                    continue
                title = accessible_name(anchor) or flatten_text(anchor)
                if title:
                    items.append(ListingItem(href=href, title=title, card_text=title))
        return dedupe_listings(items)

    def matches_product_link(self, href: str) -> bool:
        return any(pattern.search(href) for pattern in self.shape.link_patterns)

    def first_title(self, node: Tag) -> str:
        for selector in self.shape.title_selectors:
            found = node.select_one(selector)
            if found is None:
                continue
            text = flatten_text(found)
            if text:
                return text
        return ""


def resolve_href(raw: object, page_url: str) -> str | None:
    """
    Resolve `raw` against the page URL; anything unresolvable or non-http is dropped.
    """

    if not isinstance(raw, str):
        return None
    candidate = raw.strip()
    if not candidate or candidate.lower().startswith(_SKIPPED_HREF_PREFIXES):
        return None
    try:
        resolved = urljoin(page_url, candidate)
        scheme = urlsplit(resolved).scheme.lower()
    except ValueError:
        return None
    if scheme not in {"http", "https"}:
        return None
    return resolved


def flatten_text(node: Tag) -> str:
    return _WHITESPACE.sub(" ", node.get_text(" ", strip=True)).strip()


def accessible_name(node: Tag) -> str:
    for attribute in ("aria-label", "title"):
        value = node.get(attribute)
        if isinstance(value, str) and value.strip():
            return _WHITESPACE.sub(" ", value).strip()
    return ""


def dedupe_listings(items: list[ListingItem]) -> list[ListingItem]:
    seen: set[tuple[str, str]] = set()
    deduped: list[ListingItem] = []
    for item in items:
        key = (item.href, item.title)
        if key in seen:
            continue
        seen.add(key)
        deduped.append(item)
    return deduped
