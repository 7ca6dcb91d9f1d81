"""
app/schemas package marker.
"""

from app.schemas.records import (
    CompetitorPayload,
    DeleteFolderRequest,
    ImageUrlRequest,
    KeywordPayload,
    RecordDeletedResponse,
    RecordsWrittenResponse,
    ReferenceImageResponse,
)
from app.schemas.trawl import (
    MatchResultResponse,
    RunMetadataResponse,
    SelfTestCaseResponse,
    SelfTestResponse,
    TrawlErrorResponse,
    TrawlInfoResponse,
    TrawlResponse,
)

__all__ = [
    "CompetitorPayload",
    "DeleteFolderRequest",
    "ImageUrlRequest",
    "KeywordPayload",
    "MatchResultResponse",
    "RecordDeletedResponse",
    "RecordsWrittenResponse",
    "ReferenceImageResponse",
    "RunMetadataResponse",
    "SelfTestCaseResponse",
    "SelfTestResponse",
    "TrawlErrorResponse",
    "TrawlInfoResponse",
    "TrawlResponse",
]
