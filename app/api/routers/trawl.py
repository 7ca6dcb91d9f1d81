"""
app/api/routers/trawl.py

Trawl endpoint: full runs plus dry-run, self-test and info diagnostics.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from contextlib import closing

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.api.dependencies import get_session_factory
from app.schemas.records import CompetitorPayload
from app.schemas.trawl import (
    MatchResultResponse,
    RunMetadataResponse,
    SelfTestCaseResponse,
    SelfTestResponse,
    TrawlErrorResponse,
    TrawlInfoResponse,
    TrawlResponse,
)
from app.services.trawl_service import TrawlRequestParams, TrawlService, get_trawl_service
from app.trawling.logging_utils import log_event
from app.trawling.selftest import SELF_TEST_SENTENCE

logger = logging.getLogger(__name__)

router = APIRouter(tags=["trawl"])

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _flag(raw: str | None) -> bool:
    return raw is not None and raw.strip().lower() in _TRUE_VALUES


def _int_param(raw: str | None) -> int | None:
    """
    Lenient integer parsing; anything unparseable means "not provided".
    """

    if raw is None or not raw.strip():
        return None
    try:
        return int(float(raw))
    except (ValueError, OverflowError):
        return None


def _json(model: BaseModel, status_code: int = status.HTTP_200_OK) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=model.model_dump(mode="json", by_alias=True, exclude_none=True),
    )


@router.get("/trawl", response_model=TrawlResponse)
async def trawl(
    dry: str | None = Query(default=None, description="1 returns an empty result set without work"),
    selftest: str | None = Query(default=None, description="1 runs the offline matcher self-test"),
    info: str | None = Query(default=None, description="1 returns store counts and samples only"),
    include_images: str | None = Query(default=None, alias="includeImages"),
    skip_render: str | None = Query(default=None, alias="skipRender"),
    max_sites: str | None = Query(default=None, alias="maxSites"),
    max_images: str | None = Query(default=None, alias="maxImages"),
    concurrency: str | None = Query(default=None),
    render_delay_ms: str | None = Query(default=None, alias="renderDelayMs"),
    fetch_timeout_ms: str | None = Query(default=None, alias="fetchTimeoutMs"),
    deadline_ms: str | None = Query(default=None, alias="deadlineMs"),
    idx: str | None = Query(default=None, description="Process only the competitor at this index"),
    limit_keywords: str | None = Query(default=None, alias="limitKeywords"),
    session_factory: Callable[[], Session] = Depends(get_session_factory),
    trawl_service: TrawlService = Depends(get_trawl_service),
) -> JSONResponse:
    """
    Scan competitor pages for keyword phrases and, optionally, reference images.
    """

    try:
        if _flag(dry):
            return _json(TrawlResponse(results=[]))

        if _flag(selftest):
            cases = trawl_service.self_test()
            return _json(
                SelfTestResponse(
                    sentence=SELF_TEST_SENTENCE,
                    results=[
                        SelfTestCaseResponse(
                            kw=case.keyword,
                            match=case.matched,
                            expected=case.expected,
                            passed=case.passed,
                        )
                        for case in cases
                    ],
                )
            )

        params = TrawlRequestParams(
            include_images=_flag(include_images),
            skip_render=_flag(skip_render),
            max_sites=_int_param(max_sites),
            max_images=_int_param(max_images),
            concurrency=_int_param(concurrency),
            render_delay_ms=_int_param(render_delay_ms),
            fetch_timeout_ms=_int_param(fetch_timeout_ms),
            deadline_ms=_int_param(deadline_ms),
            idx=_int_param(idx),
            limit_keywords=_int_param(limit_keywords),
        )

        if _flag(info):
            with closing(session_factory()) as db:
                summary = trawl_service.info(db=db, limit_keywords=params.limit_keywords)
            return _json(
                TrawlInfoResponse(
                    competitors_count=summary.competitors_count,
                    keywords_count=summary.keywords_count,
                    first_competitors=[
                        CompetitorPayload(name=competitor.name, url=competitor.url)
                        for competitor in summary.first_competitors
                    ],
                    sample_keywords=summary.sample_keywords,
                )
            )

        options = trawl_service.build_options(params)
        with closing(session_factory()) as db:
            inputs = trawl_service.load_inputs(db=db, include_images=options.include_images)
        run = await trawl_service.run(inputs=inputs, options=options)

        return _json(
            TrawlResponse(
                results=[MatchResultResponse.from_domain(result) for result in run.results],
                meta=RunMetadataResponse.from_domain(run.meta),
            )
        )
    except Exception as exc:
        log_event(logger, logging.ERROR, "trawl_request_failed", error=repr(exc))
        return _json(
            TrawlErrorResponse(error="Failed to trawl", details=str(exc)),
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )
