"""
Seed the competitor and keyword stores from CSV files.
"""

from __future__ import annotations

import argparse
import json
from dataclasses import asdict
from pathlib import Path

from app.services.record_seed_service import RecordSeedService
from db.session import SessionLocal, dispose_engine


def main() -> int:
    parser = argparse.ArgumentParser(description="Populate record stores from CSV files.")
    parser.add_argument("--competitors", type=Path, default=None, help="CSV with name,URL columns.")
    parser.add_argument("--keywords", type=Path, default=None, help="CSV with keyword,patent columns.")
    parser.add_argument(
        "--force",
        action="store_true",
        help="Replace existing rows instead of seeding only empty stores.",
    )
    args = parser.parse_args()
    if args.competitors is None and args.keywords is None:
        parser.error("Provide --competitors and/or --keywords.")

    service = RecordSeedService()
    summaries = []
    try:
        with SessionLocal() as db:
            if args.competitors is not None:
                summaries.append(
                    service.seed_competitors(
                        db=db,
                        text=args.competitors.read_text(encoding="utf-8"),
                        force=args.force,
                    )
                )
            if args.keywords is not None:
                summaries.append(
                    service.seed_keywords(
                        db=db,
                        text=args.keywords.read_text(encoding="utf-8"),
                        force=args.force,
                    )
                )
    finally:
        dispose_engine()

    print(json.dumps([asdict(summary) for summary in summaries], indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
