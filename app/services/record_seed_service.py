"""
app/services/record_seed_service.py

CSV seeding for the competitor and keyword stores.

Competitor files carry `name,URL` headers and keyword files carry
`keyword,patent` headers; header matching is case-insensitive. A store is
only seeded while it is empty unless `force` is set, in which case its
contents are replaced.
"""

from __future__ import annotations

import csv
import io
import logging
from dataclasses import dataclass

from sqlalchemy.orm import Session

from app.trawling.logging_utils import log_event
from db.repositories import CompetitorInput, CompetitorRepository, KeywordInput, KeywordRepository

logger = logging.getLogger(__name__)


class CSVSeedError(ValueError):
    """Raised when a seed file is missing required columns or is not valid CSV."""


@dataclass(frozen=True)
class SeedSummary:
    store: str
    rows_read: int
    rows_written: int
    skipped_existing: bool = False


def _read_rows(text: str, required: tuple[str, ...]) -> list[dict[str, str]]:
    """
    Parse CSV text into rows keyed by lower-cased header, dropping blank lines.
    """

    try:
        reader = csv.DictReader(io.StringIO(text.lstrip("\ufeff"), newline=""))
        headers = {(name or "").strip().lower(): name for name in (reader.fieldnames or [])}
        missing = [column for column in required if column not in headers]
        if missing:
            raise CSVSeedError(f"CSV is missing required column(s): {', '.join(missing)}.")

        rows: list[dict[str, str]] = []
        for raw_row in reader:
            row = {
                key: (raw_row.get(original) or "").strip()
                for key, original in headers.items()
                if original is not None
            }
            if any(row.values()):
                rows.append(row)
        return rows
    except csv.Error as exc:
        raise CSVSeedError(f"Invalid CSV format: {exc}") from exc


def parse_competitors_csv(text: str) -> list[CompetitorInput]:
    """
    Competitors from `name,URL` CSV text; rows without a URL are skipped and
    repeated URLs keep their first occurrence.
    """

    seen: set[str] = set()
    competitors: list[CompetitorInput] = []
    for row in _read_rows(text, ("name", "url")):
        url = row.get("url", "")
        if not url or url in seen:
            continue
        seen.add(url)
        competitors.append(CompetitorInput(name=row.get("name") or url, url=url))
    return competitors


def parse_keywords_csv(text: str) -> list[KeywordInput]:
    keywords: list[KeywordInput] = []
    for row in _read_rows(text, ("keyword",)):
        keyword = row.get("keyword", "")
        if not keyword:
            continue
        keywords.append(KeywordInput(keyword=keyword, patent=row.get("patent") or None))
    return keywords


class RecordSeedService:
    """
    Populates record stores from CSV text.
    """

    def seed_competitors(self, *, db: Session, text: str, force: bool = False) -> SeedSummary:
        records = parse_competitors_csv(text)
        repository = CompetitorRepository(db)
        if not force and repository.list_all():
            return self._skipped("competitors", len(records))
        written = repository.replace_all(records)
        return self._written("competitors", len(records), written)

    def seed_keywords(self, *, db: Session, text: str, force: bool = False) -> SeedSummary:
        records = parse_keywords_csv(text)
        repository = KeywordRepository(db)
        if not force and repository.list_all():
            return self._skipped("keywords", len(records))
        written = repository.replace_all(records)
        return self._written("keywords", len(records), written)

    @staticmethod
    def _skipped(store: str, rows_read: int) -> SeedSummary:
        log_event(logger, logging.INFO, "record_seed_skipped", store=store, reason="store_not_empty")
        return SeedSummary(store=store, rows_read=rows_read, rows_written=0, skipped_existing=True)

    @staticmethod
    def _written(store: str, rows_read: int, rows_written: int) -> SeedSummary:
        log_event(logger, logging.INFO, "record_seed_completed", store=store, rows_written=rows_written)
        return SeedSummary(store=store, rows_read=rows_read, rows_written=rows_written)
