"""
Config helpers for trawling.
"""

from app.trawling.config.loader import (
    DEFAULT_MARKETPLACES_PATH,
    DEFAULT_SYNONYMS_PATH,
    load_marketplace_shapes,
    load_synonym_table,
)
from app.trawling.config.models import MarketplaceShape, TrawlRunOptions, UrlSignature

__all__ = [
    "DEFAULT_MARKETPLACES_PATH",
    "DEFAULT_SYNONYMS_PATH",
    "MarketplaceShape",
    "TrawlRunOptions",
    "UrlSignature",
    "load_marketplace_shapes",
    "load_synonym_table",
]
