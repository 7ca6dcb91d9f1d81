"""
app/domain package marker.
"""

from app.domain.trawl import (
    IMAGE_KEYWORD,
    Competitor,
    MatchResult,
    RunMetadata,
    SiteOutcome,
    SiteStatus,
    StoredImageRecord,
    TrawlRunResult,
)

__all__ = [
    "IMAGE_KEYWORD",
    "Competitor",
    "MatchResult",
    "RunMetadata",
    "SiteOutcome",
    "SiteStatus",
    "StoredImageRecord",
    "TrawlRunResult",
]
