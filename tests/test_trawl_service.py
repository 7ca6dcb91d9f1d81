"""
tests/test_trawl_service.py

Service tests for collaborator reads and trawl runs over an in-memory store.

Coverage
--------
- An unreadable store counts as empty and is logged, the others still load
- A run completes when one store is unreadable
- info counts keywords after limitKeywords
"""

from __future__ import annotations

import asyncio
import json
import logging

import pytest
from sqlalchemy.orm import Session

from app.config import TrawlSettings
from app.services.trawl_service import TrawlRequestParams, TrawlService
from app.trawling.engine import TrawlEngine
from db.repositories import (
    CompetitorInput,
    CompetitorRepository,
    KeywordInput,
    KeywordRepository,
    RecordStoreError,
    ReferenceImageRepository,
)
from conftest import FakeLauncher, FakeResponse, FakeSession, ManualClock, RecordingSleep

RESIN_PAGE = "<html><body>Premium Shilajit Resin 30g</body></html>"


def _failing_read(message: str):
    def read(self):
        raise RecordStoreError(message)

    return read


def _read_failures(caplog: pytest.LogCaptureFixture) -> list[dict]:
    events = [json.loads(record.getMessage()) for record in caplog.records]
    return [event for event in events if event["event"] == "collaborator_read_failed"]


@pytest.fixture()
def service(fake_launcher: FakeLauncher) -> TrawlService:
    http = FakeSession({"http://fixture/a": FakeResponse(200, RESIN_PAGE)})
    return TrawlService(
        settings=TrawlSettings(render_delay_ms=0),
        engine_factory=lambda _session: TrawlEngine(
            session=http,
            browser_launcher=fake_launcher,
            clock=ManualClock(),
            sleep=RecordingSleep(),
        ),
    )


@pytest.fixture()
def seeded(db_session: Session) -> None:
    CompetitorRepository(db_session).replace_all([CompetitorInput(name="A", url="http://fixture/a")])
    KeywordRepository(db_session).replace_all(
        [
            KeywordInput(keyword="shilajit resin", patent="US-123"),
            KeywordInput(keyword="humic extract"),
            KeywordInput(keyword="fulvic drops"),
        ]
    )


# ---------------------------------------------------------------------------
# Collaborator reads
# ---------------------------------------------------------------------------


class TestLoadInputs:
    def test_unreadable_image_store_is_empty(
        self,
        service: TrawlService,
        db_session: Session,
        seeded: None,
        monkeypatch: pytest.MonkeyPatch,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        monkeypatch.setattr(
            ReferenceImageRepository, "list_all", _failing_read("Failed to read reference images.")
        )

        with caplog.at_level(logging.WARNING, logger="app.services.trawl_service"):
            inputs = service.load_inputs(db=db_session, include_images=True)

        assert inputs.stored_images == []
        assert [competitor.name for competitor in inputs.competitors] == ["A"]
        assert inputs.keywords == ["shilajit resin", "humic extract", "fulvic drops"]
        assert _read_failures(caplog) == [
            {
                "event": "collaborator_read_failed",
                "store": "reference_images",
                "error": "Failed to read reference images.",
            }
        ]

    def test_unreadable_competitor_store_is_empty(
        self,
        service: TrawlService,
        db_session: Session,
        seeded: None,
        monkeypatch: pytest.MonkeyPatch,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        monkeypatch.setattr(CompetitorRepository, "list_all", _failing_read("Failed to read competitors."))

        with caplog.at_level(logging.WARNING, logger="app.services.trawl_service"):
            inputs = service.load_inputs(db=db_session, include_images=True)

        assert inputs.competitors == []
        assert len(inputs.keywords) == 3
        assert [event["store"] for event in _read_failures(caplog)] == ["competitors"]


# ---------------------------------------------------------------------------
# Runs
# ---------------------------------------------------------------------------


class TestRun:
    def test_run_completes_without_image_store(
        self,
        service: TrawlService,
        db_session: Session,
        seeded: None,
        monkeypatch: pytest.MonkeyPatch,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        monkeypatch.setattr(
            ReferenceImageRepository, "list_all", _failing_read("Failed to read reference images.")
        )
        options = service.build_options(TrawlRequestParams(include_images=True, skip_render=True))

        with caplog.at_level(logging.WARNING, logger="app.services.trawl_service"):
            inputs = service.load_inputs(db=db_session, include_images=options.include_images)
            result = asyncio.run(service.run(inputs=inputs, options=options))

        assert [(match.company, match.keyword) for match in result.results] == [("A", "shilajit resin")]
        assert result.meta.sites_processed == 1
        assert [event["store"] for event in _read_failures(caplog)] == ["reference_images"]


# ---------------------------------------------------------------------------
# Info
# ---------------------------------------------------------------------------


class TestInfo:
    def test_limit_keywords_applies_before_counting(
        self, service: TrawlService, db_session: Session, seeded: None
    ) -> None:
        summary = service.info(db=db_session, limit_keywords=2)

        assert summary.keywords_count == 2
        assert summary.sample_keywords == ["shilajit resin", "humic extract"]
        assert summary.competitors_count == 1

    def test_no_limit(self, service: TrawlService, db_session: Session, seeded: None) -> None:
        summary = service.info(db=db_session)

        assert summary.keywords_count == 3
