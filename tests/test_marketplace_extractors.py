"""
tests/test_marketplace_extractors.py

Unit tests for marketplace detection and listing extraction.

Coverage
--------
- URL shape detection (positives and negatives)
- Card layouts (eBay, Amazon) and anchor layouts (Etsy)
- Rendered-DOM extraction for render-always marketplaces
- Listing matching points at the listing's own link
- Registry construction from shape config, including custom classes
"""

from __future__ import annotations

import json
import re
from pathlib import Path

import pytest
from bs4 import BeautifulSoup

from app.trawling.config import load_marketplace_shapes
from app.trawling.config.models import MarketplaceShape, UrlSignature
from app.trawling.extractors import AnchorListingExtractor, ExtractorRegistry
from app.trawling.extractors.base import resolve_href
from app.trawling.matching import MatcherSet

EBAY_URL = "https://www.ebay.com/sch/i.html?_nkw=shilajit"
AMAZON_URL = "https://www.amazon.com/s?k=shilajit"
ETSY_URL = "https://www.etsy.com/search?q=shilajit"
WALMART_URL = "https://www.walmart.com/search?q=shilajit"

EBAY_HTML = """
<html><body><ul>
  <li class="s-item">
    <a class="s-item__link" href="https://www.ebay.com/itm/111"><span>view</span></a>
    <h3 class="s-item__title">Pure Shilajit Resin 30g</h3>
  </li>
  <li class="s-item">
    <a class="s-item__link" href="https://www.ebay.com/itm/222"><span>view</span></a>
    <h3 class="s-item__title">Ashwagandha Capsules</h3>
  </li>
</ul></body></html>
"""

AMAZON_HTML = """
<html><body>
  <div class="s-result-item">
    <a href="/gp/slredirect/abc">sponsored</a>
    <h2><a href="/Shilajit-Resin/dp/B00X"><span>Himalayan Shilajit Resin</span></a></h2>
  </div>
  <div class="s-result-item"><span>No product link here</span></div>
</body></html>
"""

ETSY_HTML = """
<html><body>
  <a href="/listing/123/gold-shilajit"><h3>Gold Shilajit Paste</h3></a>
  <a href="/listing/456/spoon"><h3 class="v2-listing-card__title">Brass Scoop</h3></a>
  <a href="/shop/someone">Shop home</a>
  <a href="javascript:void(0)">/listing/ trap</a>
</body></html>
"""

WALMART_RENDERED_HTML = """
<html><body>
  <a href="/ip/987" aria-label="Shilajit Gummies 60ct"><img src="/x.png"></a>
  <a href="/browse/other">Other</a>
  <a href="/ip/654"><div data-item-id="654">Violet Glass Jar</div></a>
</body></html>
"""


@pytest.fixture(scope="module")
def registry() -> ExtractorRegistry:
    return ExtractorRegistry()


def _soup(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "html.parser")


def _only(registry: ExtractorRegistry, url: str):
    detected = registry.detect(url)
    assert len(detected) == 1
    return detected[0]


# ---------------------------------------------------------------------------
# Detection
# ---------------------------------------------------------------------------


class TestDetection:
    @pytest.mark.parametrize(
        ("url", "expected"),
        [
            (EBAY_URL, "ebay"),
            (AMAZON_URL, "amazon"),
            ("https://www.amazon.co.uk/s?i=aps&k=resin", "amazon"),
            (ETSY_URL, "etsy"),
            (WALMART_URL, "walmart"),
            ("https://www.walgreens.com/search/results.jsp?Ntt=shilajit", "walgreens"),
            ("https://www.cvs.com/search?searchTerm=shilajit", "cvs"),
            ("https://www.target.com/s?searchTerm=shilajit", "target"),
            ("https://www.bestbuy.com/site/searchpage.jsp?st=jar", "bestbuy"),
            ("https://www.google.com/search?q=shilajit&tbm=shop", "google_shopping"),
        ],
    )
    def test_known_search_pages(self, registry: ExtractorRegistry, url: str, expected: str) -> None:
        assert [extractor.name for extractor in registry.detect(url)] == [expected]

    @pytest.mark.parametrize(
        "url",
        [
            "https://www.ebay.com/itm/111",
            "https://example.com/s?k=shilajit",
            "https://www.google.com/search?q=shilajit",
            "https://brand.example/products/shilajit",
            "not a url",
        ],
    )
    def test_ordinary_pages_are_not_marketplaces(self, registry: ExtractorRegistry, url: str) -> None:
        assert registry.detect(url) == []

    def test_render_always_marketplaces(self, registry: ExtractorRegistry) -> None:
        assert registry.is_render_always(WALMART_URL)
        assert not registry.is_render_always(EBAY_URL)
        assert not registry.is_render_always("https://brand.example/")


# ---------------------------------------------------------------------------
# Static extraction
# ---------------------------------------------------------------------------


class TestCardExtraction:
    def test_ebay_listings(self, registry: ExtractorRegistry) -> None:
        items = _only(registry, EBAY_URL).extract(_soup(EBAY_HTML), EBAY_URL)

        assert [(item.href, item.title) for item in items] == [
            ("https://www.ebay.com/itm/111", "Pure Shilajit Resin 30g"),
            ("https://www.ebay.com/itm/222", "Ashwagandha Capsules"),
        ]

    def test_ebay_listing_match_points_at_listing(self, registry: ExtractorRegistry) -> None:
        items = _only(registry, EBAY_URL).extract(_soup(EBAY_HTML), EBAY_URL)
        matcher_set = MatcherSet.from_phrases(["shilajit resin"])

        results = matcher_set.match_listings(company="Rival", items=items)

        assert len(results) == 1
        assert results[0].url == "https://www.ebay.com/itm/111"
        assert results[0].context == "Pure Shilajit Resin 30g"

    def test_amazon_prefers_product_detail_link(self, registry: ExtractorRegistry) -> None:
        items = _only(registry, AMAZON_URL).extract(_soup(AMAZON_HTML), AMAZON_URL)

        assert len(items) == 1
        assert items[0].href == "https://www.amazon.com/Shilajit-Resin/dp/B00X"
        assert items[0].title == "Himalayan Shilajit Resin"


class TestAnchorExtraction:
    def test_etsy_listing_anchors(self, registry: ExtractorRegistry) -> None:
        items = _only(registry, ETSY_URL).extract(_soup(ETSY_HTML), ETSY_URL)

        assert [(item.href, item.title) for item in items] == [
            ("https://www.etsy.com/listing/123/gold-shilajit", "Gold Shilajit Paste"),
            ("https://www.etsy.com/listing/456/spoon", "Brass Scoop"),
        ]

    def test_synonyms_apply_to_listings(self, registry: ExtractorRegistry) -> None:
        items = _only(registry, ETSY_URL).extract(_soup(ETSY_HTML), ETSY_URL)
        matcher_set = MatcherSet.from_phrases(["shilajit resin", "brass spoon"])

        results = matcher_set.match_listings(company="Rival", items=items)

        assert sorted((result.keyword, result.url) for result in results) == [
            ("brass spoon", "https://www.etsy.com/listing/456/spoon"),
            ("shilajit resin", "https://www.etsy.com/listing/123/gold-shilajit"),
        ]


class TestRenderedExtraction:
    def test_walmart_rendered_selectors(self, registry: ExtractorRegistry) -> None:
        items = _only(registry, WALMART_URL).extract_rendered(_soup(WALMART_RENDERED_HTML), WALMART_URL)

        assert [(item.href, item.title) for item in items] == [
            ("https://www.walmart.com/ip/987", "Shilajit Gummies 60ct"),
            ("https://www.walmart.com/ip/654", "Violet Glass Jar"),
        ]


class TestResolveHref:
    @pytest.mark.parametrize("raw", [None, "", "   ", "#top", "javascript:void(0)", "mailto:a@b.c", "ftp://x/y"])
    def test_unusable_hrefs_are_dropped(self, raw) -> None:
        assert resolve_href(raw, "https://shop.example/search") is None

    def test_relative_href_is_resolved(self) -> None:
        assert resolve_href("/p/1", "https://shop.example/search?q=x") == "https://shop.example/p/1"


# ---------------------------------------------------------------------------
# Registry construction
# ---------------------------------------------------------------------------


def _shape(**overrides) -> MarketplaceShape:
    values = {
        "name": "custom",
        "kind": "anchor",
        "host_pattern": re.compile(r"shop\.example$"),
        "signatures": (UrlSignature(path=re.compile("/find")),),
        "link_patterns": (re.compile("/item/"),),
    }
    values.update(overrides)
    return MarketplaceShape(**values)


class TestRegistry:
    def test_default_config_has_nine_marketplaces(self) -> None:
        names = [shape.name for shape in load_marketplace_shapes()]
        assert names == [
            "ebay",
            "amazon",
            "etsy",
            "walmart",
            "walgreens",
            "cvs",
            "target",
            "bestbuy",
            "google_shopping",
        ]

    def test_custom_shape_is_detected(self) -> None:
        registry = ExtractorRegistry(shapes=[_shape()])
        assert [extractor.name for extractor in registry.detect("https://shop.example/find?q=1")] == ["custom"]

    def test_dynamic_extractor_class(self) -> None:
        shape = _shape(extractor_class="app.trawling.extractors.marketplaces:AnchorListingExtractor")
        (extractor,) = ExtractorRegistry(shapes=[shape]).extractors
        assert isinstance(extractor, AnchorListingExtractor)

    @pytest.mark.parametrize(
        "path",
        [
            "app.trawling.extractors.marketplaces.AnchorListingExtractor",
            "app.trawling.extractors.marketplaces:Missing",
            "app.trawling.extractors.base:resolve_href",
        ],
    )
    def test_bad_extractor_class_is_rejected(self, path: str) -> None:
        with pytest.raises(ValueError):
            ExtractorRegistry(shapes=[_shape(extractor_class=path)])

    def test_unknown_kind_is_rejected(self) -> None:
        with pytest.raises(ValueError, match="Unknown extractor kind"):
            ExtractorRegistry(shapes=[_shape(kind="grid")])

    def test_loader_rejects_invalid_pattern(self, tmp_path: Path) -> None:
        config = tmp_path / "marketplaces.json"
        config.write_text(
            json.dumps({"marketplaces": [{"name": "bad", "host": "(", "signatures": []}]}),
            encoding="utf-8",
        )
        with pytest.raises(ValueError, match="Invalid pattern"):
            load_marketplace_shapes(str(config))
