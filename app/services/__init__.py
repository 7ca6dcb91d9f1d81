"""
app/services package marker.
"""

from app.services.record_seed_service import CSVSeedError, RecordSeedService, SeedSummary
from app.services.reference_image_service import (
    ImageUrlError,
    ReferenceImageService,
    get_reference_image_service,
)
from app.services.trawl_service import (
    TrawlRequestParams,
    TrawlService,
    build_run_options,
    get_trawl_service,
)

__all__ = [
    "CSVSeedError",
    "RecordSeedService",
    "SeedSummary",
    "ImageUrlError",
    "ReferenceImageService",
    "get_reference_image_service",
    "TrawlRequestParams",
    "TrawlService",
    "build_run_options",
    "get_trawl_service",
]
