"""
Data-driven extractors for the two listing layouts marketplaces use.
"""

from __future__ import annotations

from bs4 import BeautifulSoup, Tag

from app.trawling.extractors.base import (
    ListingItem,
    MarketplaceExtractor,
    accessible_name,
    dedupe_listings,
    flatten_text,
    resolve_href,
)


class CardListingExtractor(MarketplaceExtractor):
    """
    Listings are container elements (cards) holding a product link and a title.

    Used for pages such as eBay and Amazon search results where the title
    lives beside, not inside, the product anchor.
    """

    def extract(self, soup: BeautifulSoup, page_url: str) -> list[ListingItem]:
        if not self.shape.card_selector:
            return []

        items: list[ListingItem] = []
        for card in soup.select(self.shape.card_selector):
            href = self._product_link(card, page_url)
            if href is None:
                continue
            title = self.first_title(card)
            card_text = flatten_text(card)
            if title or card_text:
                items.append(ListingItem(href=href, title=title, card_text=card_text))
        return dedupe_listings(items)

    def _product_link(self, card: Tag, page_url: str) -> str | None:
        if self.shape.preferred_link_selector:
            preferred = card.select_one(self.shape.preferred_link_selector)
            if preferred is not None:
                href = resolve_href(preferred.get("href"), page_url)
                if href is not None:
                    return href

        anchors = card.find_all("a", href=True)
        # Patterns are tried in priority order, e.g. /dp/ before /gp/.
        for pattern in self.shape.link_patterns:
            for anchor in anchors:
                href = resolve_href(anchor.get("href"), page_url)
                if href is not None and pattern.search(href):
                    return href
        return None


class AnchorListingExtractor(MarketplaceExtractor):
    """
    Listings are the product anchors themselves.
    """

    def extract(self, soup: BeautifulSoup, page_url: str) -> list[ListingItem]:
        items: list[ListingItem] = []
        for anchor in soup.find_all("a", href=True):
            href = resolve_href(anchor.get("href"), page_url)
            if href is None or not self.matches_product_link(href):
                continue
            card_text = flatten_text(anchor)
            title = self.first_title(anchor) or accessible_name(anchor) or card_text
            if title or card_text:
                items.append(ListingItem(href=href, title=title, card_text=card_text))
        return dedupe_listings(items)
