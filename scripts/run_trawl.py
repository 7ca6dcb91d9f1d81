"""
Run a trawl from CLI and print the JSON payload the API would return.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os

from app.schemas.trawl import MatchResultResponse, RunMetadataResponse, TrawlResponse
from app.services.trawl_service import TrawlRequestParams, TrawlService
from db.session import SessionLocal, dispose_engine


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Scan competitor pages for keyword and image matches.")
    parser.add_argument("--include-images", action="store_true", help="Fingerprint page images.")
    parser.add_argument("--skip-render", action="store_true", help="Only render render-always marketplaces.")
    parser.add_argument("--max-sites", type=int, default=None, help="Process at most this many competitors.")
    parser.add_argument("--max-images", type=int, default=None, help="Images fingerprinted per site.")
    parser.add_argument("--concurrency", type=int, default=None, help="Sites per batch.")
    parser.add_argument("--render-delay-ms", type=int, default=None, help="Settle delay after navigation.")
    parser.add_argument("--fetch-timeout-ms", type=int, default=None, help="Per-request timeout.")
    parser.add_argument("--deadline-ms", type=int, default=None, help="Run deadline checked between batches.")
    parser.add_argument("--idx", type=int, default=None, help="Process only the competitor at this index.")
    parser.add_argument("--limit-keywords", type=int, default=None, help="Use only the first N keywords.")
    return parser


def main() -> int:
    args = _build_parser().parse_args()
    logging.basicConfig(
        level=getattr(logging, os.getenv("LOG_LEVEL", "INFO").strip().upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    params = TrawlRequestParams(
        include_images=args.include_images,
        skip_render=args.skip_render,
        max_sites=args.max_sites,
        max_images=args.max_images,
        concurrency=args.concurrency,
        render_delay_ms=args.render_delay_ms,
        fetch_timeout_ms=args.fetch_timeout_ms,
        deadline_ms=args.deadline_ms,
        idx=args.idx,
        limit_keywords=args.limit_keywords,
    )

    service = TrawlService()
    options = service.build_options(params)
    try:
        with SessionLocal() as db:
            inputs = service.load_inputs(db=db, include_images=options.include_images)
    finally:
        dispose_engine()
    run = asyncio.run(service.run(inputs=inputs, options=options))

    payload = TrawlResponse(
        results=[MatchResultResponse.from_domain(result) for result in run.results],
        meta=RunMetadataResponse.from_domain(run.meta),
    )
    print(json.dumps(payload.model_dump(mode="json", by_alias=True, exclude_none=True), indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
