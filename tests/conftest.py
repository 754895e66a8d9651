"""
Shared pytest fixtures: a controllable clock, a scripted fetcher and the
sample feed used throughout the tests.
"""
import asyncio

import pytest

from core.errors import FetchFailure
from core.models import FeedItem, FeedSnapshot
from core.service import FeedService

FEED_URL = "https://feeds.example.test/rss"


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeFetcher:
    """Returns (or raises) the scripted outcomes in order; the last one repeats.

    If `gate` is set, each call waits on it before answering, which keeps a
    fetch "in flight" for as long as the test wants.
    """

    def __init__(self, *outcomes, gate: asyncio.Event = None):
        self.outcomes = list(outcomes)
        self.gate = gate
        self.calls = 0
        self.urls = []

    async def __call__(self, url):
        self.calls += 1
        self.urls.append(url)
        if self.gate is not None:
            await self.gate.wait()
        index = min(self.calls, len(self.outcomes)) - 1
        outcome = self.outcomes[index]
        if isinstance(outcome, BaseException):
            raise outcome
        return list(outcome)


@pytest.fixture
def sample_items():
    return [
        FeedItem(title="Rust 2.0", link="https://example.test/rust",
                 content_snippet="release notes", pub_date="Mon, 01 Jan 2024 12:00:00 GMT"),
        FeedItem(title="Go tools", link="https://example.test/go",
                 content_snippet="update", pub_date="Sun, 31 Dec 2023 09:30:00 GMT"),
    ]


@pytest.fixture
def sample_snapshot(sample_items):
    return FeedSnapshot(items=tuple(sample_items), captured_at=1000.0)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def failure():
    return FetchFailure(FEED_URL, "connection refused")


@pytest.fixture
def make_service(clock):
    def _make(fetcher, ttl=300):
        return FeedService(FEED_URL, fetcher, ttl=ttl, clock=clock)
    return _make
