"""
Trawl configuration models.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from urllib.parse import SplitResult


@dataclass(frozen=True)
class UrlSignature:
    """
    Path and/or query-string test identifying a search/listing page.

    Every pattern that is set must match for the signature to match.
    """

    path: re.Pattern[str] | None = None
    query: re.Pattern[str] | None = None

    def matches(self, parts: SplitResult) -> bool:
        if self.path is None and self.query is None:
            return False
        if self.path is not None and not self.path.search(parts.path):
            return False
        if self.query is not None and not self.query.search(parts.query):
            return False
        return True


@dataclass(frozen=True)
class MarketplaceShape:
    """
    One known marketplace search-results page shape.
    """

    name: str
    kind: str
    host_pattern: re.Pattern[str]
    signatures: tuple[UrlSignature, ...]
    link_patterns: tuple[re.Pattern[str], ...]
    card_selector: str | None = None
    preferred_link_selector: str | None = None
    title_selectors: tuple[str, ...] = ()
    render_always: bool = False
    rendered_selectors: tuple[str, ...] = ()
    extractor_class: str | None = None


@dataclass(frozen=True)
class TrawlRunOptions:
    """
    Effective knobs for one trawl run after request overrides and clamping.
    """

    include_images: bool = False
    skip_render: bool = False
    max_sites: int | None = None
    max_images_per_site: int = 20
    concurrency: int = 4
    render_delay_ms: int = 1000
    fetch_timeout_ms: int = 10000
    deadline_ms: int = 180000
    site_index: int | None = None
    limit_keywords: int | None = None
    fetch_max_retries: int = 1
    fetch_backoff_initial_ms: int = 400
    fetch_backoff_multiplier: float = 2.0
    image_fetch_timeout_ms: int = 8000
    navigation_timeout_max_ms: int = 20000
    max_gap_words: int = 30
    user_agent: str | None = None
    extra_headers: dict[str, str] = field(default_factory=dict)

    @property
    def navigation_timeout_ms(self) -> int:
        return min(self.navigation_timeout_max_ms, max(5000, self.fetch_timeout_ms))

    @property
    def effective_image_timeout_ms(self) -> int:
        return min(self.image_fetch_timeout_ms, self.fetch_timeout_ms)
