"""
tests/conftest.py

Shared fakes for trawl tests: an in-memory HTTP session, a scripted headless
browser, a manual clock and an in-memory record store. No test touches the
network, a real browser or PostgreSQL.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Mapping
from typing import Any

import pytest
import requests
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

import db.models  # noqa: F401 registers the record-store tables
from db.base import Base


class FakeResponse:
    def __init__(
        self,
        status_code: int = 200,
        text: str = "",
        content: bytes | None = None,
    ) -> None:
        self.status_code = status_code
        self.text = text
        self.content = content if content is not None else text.encode("utf-8")

    @property
    def ok(self) -> bool:
        return self.status_code < 400


Outcome = FakeResponse | BaseException | Callable[[], FakeResponse]


class FakeSession:
    """
    Stand-in for `requests.Session`.

    Each URL maps to one outcome or a list consumed one per call (the last
    entry repeats). Unknown URLs raise a connection error.
    """

    def __init__(self, routes: Mapping[str, Outcome | list[Outcome]] | None = None) -> None:
        self._routes: dict[str, list[Outcome]] = {}
        for url, outcome in (routes or {}).items():
            self.route(url, outcome)
        self.calls: list[dict[str, Any]] = []
        self._lock = threading.Lock()

    def route(self, url: str, outcome: Outcome | list[Outcome]) -> None:
        self._routes[url] = list(outcome) if isinstance(outcome, list) else [outcome]

    def calls_to(self, url: str) -> int:
        return sum(1 for call in self.calls if call["url"] == url)

    def get(self, url: str, **kwargs: Any) -> FakeResponse:
        with self._lock:
            self.calls.append({"url": url, **kwargs})
            outcomes = self._routes.get(url)
            if not outcomes:
                raise requests.ConnectionError(f"no route for {url}")
            outcome = outcomes.pop(0) if len(outcomes) > 1 else outcomes[0]
        if isinstance(outcome, BaseException):
            raise outcome
        if callable(outcome):
            return outcome()
        return outcome


class FakePage:
    def __init__(self, browser: "FakeBrowser") -> None:
        self._browser = browser
        self.url: str | None = None
        self.navigation_timeout: int | None = None
        self.default_timeout: int | None = None
        self.closed = False

    def set_default_navigation_timeout(self, timeout: int) -> None:
        self.navigation_timeout = timeout

    def set_default_timeout(self, timeout: int) -> None:
        self.default_timeout = timeout

    async def goto(self, url: str, wait_until: str | None = None) -> None:
        self.url = url
        failure = self._browser.navigation_failures.get(url)
        if failure is not None:
            raise failure

    async def inner_text(self, selector: str) -> str:
        return self._browser.pages.get(self.url or "", {}).get("text", "")

    async def content(self) -> str:
        failure = self._browser.content_failures.get(self.url or "")
        if failure is not None:
            raise failure
        return self._browser.pages.get(self.url or "", {}).get("html", "<html><body></body></html>")

    async def close(self) -> None:
        self.closed = True


class FakeBrowser:
    def __init__(self) -> None:
        self.pages: dict[str, dict[str, str]] = {}
        self.navigation_failures: dict[str, BaseException] = {}
        self.content_failures: dict[str, BaseException] = {}
        self.close_error: BaseException | None = None
        self.opened: list[FakePage] = []
        self.close_calls = 0

    async def new_page(self) -> FakePage:
        page = FakePage(self)
        self.opened.append(page)
        return page

    async def close(self) -> None:
        self.close_calls += 1
        if self.close_error is not None:
            raise self.close_error


class FakeLauncher:
    """
    Async browser launcher that always hands out the same `FakeBrowser`.
    """

    def __init__(self, browser: FakeBrowser | None = None) -> None:
        self.browser = browser or FakeBrowser()
        self.launches = 0

    async def __call__(self) -> FakeBrowser:
        self.launches += 1
        return self.browser


class ManualClock:
    """
    Monotonic clock that only moves when a test advances it.
    """

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingSleep:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture()
def fake_session() -> FakeSession:
    return FakeSession()


@pytest.fixture()
def fake_launcher() -> FakeLauncher:
    return FakeLauncher()


@pytest.fixture()
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture()
def manual_clock() -> ManualClock:
    return ManualClock()


@pytest.fixture()
def session_factory() -> Callable[[], Session]:
    """
    Sessions over one in-memory SQLite database shared for the whole test.
    """

    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    factory = sessionmaker(bind=engine, class_=Session, autoflush=False, expire_on_commit=False)
    yield factory
    engine.dispose()


@pytest.fixture()
def db_session(session_factory: Callable[[], Session]) -> Session:
    session = session_factory()
    yield session
    session.close()
