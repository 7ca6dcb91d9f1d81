"""
app/schemas/trawl.py

Response schemas for trawl runs. Field names are camelCase on the wire.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.domain.trawl import MatchResult, RunMetadata
from app.schemas.records import CompetitorPayload


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class MatchResultResponse(CamelModel):
    company: str
    keyword: str
    url: str
    context: str | None = None

    @classmethod
    def from_domain(cls, result: MatchResult) -> "MatchResultResponse":
        return cls(
            company=result.company,
            keyword=result.keyword,
            url=result.url,
            context=result.context,
        )


class RunMetadataResponse(CamelModel):
    elapsed_ms: int = Field(..., ge=0)
    sites_processed: int = Field(..., ge=0)
    pages_rendered: int = Field(..., ge=0)
    deadline_ms: int
    fetch_timeout_ms: int
    concurrency: int = Field(..., ge=1)
    sites_failed: int = Field(default=0, ge=0)
    deadline_reached: bool = False

    @classmethod
    def from_domain(cls, meta: RunMetadata) -> "RunMetadataResponse":
        return cls(
            elapsed_ms=meta.elapsed_ms,
            sites_processed=meta.sites_processed,
            pages_rendered=meta.pages_rendered,
            deadline_ms=meta.deadline_ms,
            fetch_timeout_ms=meta.fetch_timeout_ms,
            concurrency=meta.concurrency,
            sites_failed=meta.sites_failed,
            deadline_reached=meta.deadline_reached,
        )


class TrawlResponse(CamelModel):
    """
    Trawl results. `meta` is absent for a dry run.
    """

    results: list[MatchResultResponse] = Field(default_factory=list)
    meta: RunMetadataResponse | None = None


class SelfTestCaseResponse(CamelModel):
    kw: str
    match: bool
    expected: bool
    passed: bool


class SelfTestResponse(CamelModel):
    sentence: str
    results: list[SelfTestCaseResponse]


class TrawlInfoResponse(CamelModel):
    competitors_count: int = Field(..., ge=0)
    keywords_count: int = Field(..., ge=0)
    first_competitors: list[CompetitorPayload]
    sample_keywords: list[str]


class TrawlErrorResponse(CamelModel):
    error: str
    details: str | None = None
