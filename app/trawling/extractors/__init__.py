"""
Marketplace extractor exports.
"""

from app.trawling.extractors.base import ListingItem, MarketplaceExtractor
from app.trawling.extractors.marketplaces import AnchorListingExtractor, CardListingExtractor
from app.trawling.extractors.registry import ExtractorRegistry

__all__ = [
    "AnchorListingExtractor",
    "CardListingExtractor",
    "ExtractorRegistry",
    "ListingItem",
    "MarketplaceExtractor",
]
