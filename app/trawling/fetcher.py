"""
Bounded-timeout page fetcher with exponential-backoff retry.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Mapping

import requests

from app.trawling.logging_utils import log_event

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0 Safari/537.36"
)
DEFAULT_HEADERS: dict[str, str] = {
    "User-Agent": DEFAULT_USER_AGENT,
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,image/webp,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
    "Connection": "keep-alive",
}

Sleeper = Callable[[float], Awaitable[None]]


class FetchError(Exception):
    """
    Raised when every attempt to fetch a URL ended in a network-level error.
    """

    def __init__(self, url: str, attempts: int, cause: BaseException) -> None:
        super().__init__(f"Failed to fetch {url} after {attempts} attempt(s): {cause!r}")
        self.url = url
        self.attempts = attempts
        self.cause = cause


def build_headers(
    user_agent: str | None = None,
    extra: Mapping[str, str] | None = None,
) -> dict[str, str]:
    headers = dict(DEFAULT_HEADERS)
    if user_agent:
        headers["User-Agent"] = user_agent
    if extra:
        headers.update(extra)
    return headers


async def fetch_with_retry(
    session: requests.Session,
    url: str,
    *,
    timeout_seconds: float,
    max_retries: int = 1,
    backoff_initial_seconds: float = 0.4,
    backoff_multiplier: float = 2.0,
    headers: Mapping[str, str] | None = None,
    sleep: Sleeper = asyncio.sleep,
) -> requests.Response:
    """
    Fetch `url`, retrying non-success responses and network errors.

    Each attempt is bounded by `timeout_seconds`. Between attempts the
    coroutine sleeps for a backoff that starts at `backoff_initial_seconds`
    and is multiplied after every failure. Once retries are exhausted the
    final response is returned even when unsuccessful, and a final error is
    raised as `FetchError`.
    """

    request_headers = dict(headers) if headers is not None else build_headers()
    backoff_seconds = backoff_initial_seconds
    attempts = max(0, max_retries) + 1

    for attempt in range(1, attempts + 1):
        is_last = attempt == attempts
        try:
            response = await _get_once(session, url, request_headers, timeout_seconds)
        except (requests.RequestException, asyncio.TimeoutError) as exc:
            if is_last:
                raise FetchError(url, attempt, exc) from exc
            log_event(
                logger,
                logging.DEBUG,
                "fetch_attempt_failed",
                url=url,
                attempt=attempt,
                error=repr(exc),
                backoff_seconds=backoff_seconds,
            )
        else:
            if response.ok or is_last:
                return response
            log_event(
                logger,
                logging.DEBUG,
                "fetch_attempt_unsuccessful",
                url=url,
                attempt=attempt,
                status_code=response.status_code,
                backoff_seconds=backoff_seconds,
            )

        await sleep(backoff_seconds)
        backoff_seconds *= backoff_multiplier

    raise AssertionError("unreachable")


async def _get_once(
    session: requests.Session,
    url: str,
    headers: Mapping[str, str],
    timeout_seconds: float,
) -> requests.Response:
    # requests only bounds connect/read gaps; wait_for bounds the whole attempt.
    return await asyncio.wait_for(
        asyncio.to_thread(
            session.get,
            url,
            headers=dict(headers),
            timeout=timeout_seconds,
            allow_redirects=True,
        ),
        timeout=timeout_seconds,
    )
