"""
tests/test_trawl_router.py

HTTP tests for GET /trawl.

Coverage
--------
- dry and selftest answer without touching the record stores
- info returns counts and samples
- full runs read the stores and return camelCase results with metadata
- lenient query parsing and option clamping reach the engine
- info applies limitKeywords before counting
- the database session is released before the crawl starts
- failures return the 500 error shape
"""

from __future__ import annotations

from collections.abc import Callable

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from app.api.dependencies import get_session_factory
from app.api.routers import trawl_router
from app.config import TrawlSettings
from app.services.trawl_service import TrawlService, get_trawl_service
from app.trawling.engine import TrawlEngine
from db.repositories import CompetitorInput, CompetitorRepository, KeywordInput, KeywordRepository
from conftest import FakeLauncher, FakeResponse, FakeSession, ManualClock, RecordingSleep

RESIN_PAGE = "<html><body>Premium Shilajit Resin 30g</body></html>"


class RecordingEngine(TrawlEngine):
    """Engine over fakes that remembers the options of its last run."""

    last_options = None

    async def run(self, **kwargs):
        RecordingEngine.last_options = kwargs.get("options")
        return await super().run(**kwargs)


@pytest.fixture()
def fake_http() -> FakeSession:
    return FakeSession({"http://fixture/a": FakeResponse(200, RESIN_PAGE)})


@pytest.fixture()
def trawl_service(fake_http: FakeSession, fake_launcher: FakeLauncher) -> TrawlService:
    return TrawlService(
        settings=TrawlSettings(render_delay_ms=0),
        engine_factory=lambda _session: RecordingEngine(
            session=fake_http,
            browser_launcher=fake_launcher,
            clock=ManualClock(),
            sleep=RecordingSleep(),
        ),
    )


@pytest.fixture()
def client(session_factory: Callable[[], Session], trawl_service: TrawlService) -> TestClient:
    app = FastAPI()
    app.include_router(trawl_router)
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_trawl_service] = lambda: trawl_service
    return TestClient(app)


@pytest.fixture()
def seeded(db_session: Session) -> None:
    CompetitorRepository(db_session).replace_all(
        [
            CompetitorInput(name="A", url="http://fixture/a"),
            CompetitorInput(name="B", url="http://fixture/b"),
            CompetitorInput(name="C", url="http://fixture/c"),
            CompetitorInput(name="D", url="http://fixture/d"),
        ]
    )
    KeywordRepository(db_session).replace_all(
        [KeywordInput(keyword=f"phrase {index}") for index in range(6)]
        + [KeywordInput(keyword="shilajit resin", patent="US-123")]
    )


# ---------------------------------------------------------------------------
# Diagnostics
# ---------------------------------------------------------------------------


class TestDiagnostics:
    def test_dry_run(self, client: TestClient) -> None:
        response = client.get("/trawl", params={"dry": "1"})

        assert response.status_code == 200
        assert response.json() == {"results": []}

    def test_selftest(self, client: TestClient) -> None:
        response = client.get("/trawl", params={"selftest": "true"})

        assert response.status_code == 200
        body = response.json()
        assert body["sentence"] == "our shilajit resin is very pure and includes pure gold"
        assert [case["kw"] for case in body["results"]] == [
            "gold shilajit",
            "shilajit gold",
            "pure gold",
            "gold resin shilajit",
            "goldfinch",
        ]
        assert all(case["passed"] for case in body["results"])
        assert body["results"][-1] == {"kw": "goldfinch", "match": False, "expected": False, "passed": True}

    def test_info(self, client: TestClient, seeded: None) -> None:
        response = client.get("/trawl", params={"info": "1"})

        assert response.status_code == 200
        body = response.json()
        assert body["competitorsCount"] == 4
        assert body["keywordsCount"] == 7
        assert body["firstCompetitors"] == [
            {"name": "A", "URL": "http://fixture/a"},
            {"name": "B", "URL": "http://fixture/b"},
            {"name": "C", "URL": "http://fixture/c"},
        ]
        assert body["sampleKeywords"] == [f"phrase {index}" for index in range(5)]

    def test_info_with_empty_stores(self, client: TestClient) -> None:
        body = client.get("/trawl", params={"info": "1"}).json()

        assert body["competitorsCount"] == 0
        assert body["firstCompetitors"] == []


# ---------------------------------------------------------------------------
# Runs
# ---------------------------------------------------------------------------


class TestRun:
    def test_single_site_run(self, client: TestClient, seeded: None) -> None:
        response = client.get("/trawl", params={"idx": "0", "skipRender": "1"})

        assert response.status_code == 200
        body = response.json()
        assert len(body["results"]) == 1
        assert body["results"][0]["company"] == "A"
        assert body["results"][0]["keyword"] == "shilajit resin"
        assert body["results"][0]["url"] == "http://fixture/a"
        meta = body["meta"]
        assert meta["sitesProcessed"] == 1
        assert meta["pagesRendered"] == 0
        assert meta["deadlineMs"] == 90000
        assert meta["deadlineReached"] is False
        assert set(meta) >= {"elapsedMs", "fetchTimeoutMs", "concurrency", "sitesFailed"}

    def test_unreachable_sites_are_reported_not_raised(self, client: TestClient, seeded: None) -> None:
        response = client.get("/trawl", params={"skipRender": "yes", "fetchTimeoutMs": "1000"})

        assert response.status_code == 200
        meta = response.json()["meta"]
        assert meta["sitesProcessed"] == 4
        assert meta["sitesFailed"] == 3

    def test_options_are_clamped(self, client: TestClient, seeded: None) -> None:
        client.get(
            "/trawl",
            params={
                "idx": "0",
                "skipRender": "1",
                "concurrency": "0",
                "fetchTimeoutMs": "5",
                "deadlineMs": "10",
                "renderDelayMs": "-50",
                "maxImages": "abc",
                "limitKeywords": "2",
            },
        )

        options = RecordingEngine.last_options
        assert options.concurrency == 4
        assert options.fetch_timeout_ms == 1000
        assert options.deadline_ms == 3000
        assert options.render_delay_ms == 0
        assert options.max_images_per_site == 20
        assert options.limit_keywords == 2
        assert options.site_index == 0

    def test_failure_returns_error_shape(self, client: TestClient, trawl_service: TrawlService) -> None:
        def broken_factory(_session):
            raise RuntimeError("browser unavailable")

        trawl_service._engine_factory = broken_factory

        response = client.get("/trawl")

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to trawl", "details": "browser unavailable"}


# ---------------------------------------------------------------------------
# Query parsing
# ---------------------------------------------------------------------------


class TestQueryParsing:
    @pytest.mark.parametrize("raw", ["inf", "-inf", "1e999", "nan", "abc", " "])
    def test_unparseable_numbers_are_ignored(self, client: TestClient, seeded: None, raw: str) -> None:
        response = client.get("/trawl", params={"info": "1", "maxSites": raw, "limitKeywords": raw})

        assert response.status_code == 200
        assert response.json()["keywordsCount"] == 7

    def test_overflowing_number_falls_back_to_default(self, client: TestClient, seeded: None) -> None:
        response = client.get(
            "/trawl",
            params={"idx": "0", "skipRender": "1", "maxSites": "1e999", "deadlineMs": "inf"},
        )

        assert response.status_code == 200
        options = RecordingEngine.last_options
        assert options.max_sites is None
        assert options.deadline_ms == 90000

    def test_info_honours_limit_keywords(self, client: TestClient, seeded: None) -> None:
        body = client.get("/trawl", params={"info": "1", "limitKeywords": "2"}).json()

        assert body["keywordsCount"] == 2
        assert body["sampleKeywords"] == ["phrase 0", "phrase 1"]


# ---------------------------------------------------------------------------
# Database session lifetime
# ---------------------------------------------------------------------------


class SessionTracker:
    """Session factory wrapper that records which sessions are still open."""

    def __init__(self, factory: Callable[[], Session]) -> None:
        self._factory = factory
        self.opened = 0
        self.open_sessions = 0

    def __call__(self) -> Session:
        session = self._factory()
        original_close = session.close
        self.opened += 1
        self.open_sessions += 1

        def close() -> None:
            self.open_sessions -= 1
            original_close()

        session.close = close
        return session


class TestSessionLifetime:
    def test_database_session_is_closed_before_crawling(
        self,
        session_factory: Callable[[], Session],
        fake_http: FakeSession,
        fake_launcher: FakeLauncher,
        seeded: None,
    ) -> None:
        tracker = SessionTracker(session_factory)
        open_during_run: list[int] = []

        class ObservingEngine(TrawlEngine):
            async def run(self, **kwargs):
                open_during_run.append(tracker.open_sessions)
                return await super().run(**kwargs)

        service = TrawlService(
            settings=TrawlSettings(render_delay_ms=0),
            engine_factory=lambda _session: ObservingEngine(
                session=fake_http,
                browser_launcher=fake_launcher,
                clock=ManualClock(),
                sleep=RecordingSleep(),
            ),
        )
        app = FastAPI()
        app.include_router(trawl_router)
        app.dependency_overrides[get_session_factory] = lambda: tracker
        app.dependency_overrides[get_trawl_service] = lambda: service

        response = TestClient(app).get("/trawl", params={"idx": "0", "skipRender": "1"})

        assert response.status_code == 200
        assert len(response.json()["results"]) == 1
        assert tracker.opened == 1
        assert open_during_run == [0]
        assert tracker.open_sessions == 0
