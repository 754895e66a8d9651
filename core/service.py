# =============================================================================
# core/service.py  —  FeedService (the one cache handle)
# =============================================================================
#
# The MCP tools never touch module-level state.  main.py builds exactly one
# FeedService at startup and hands it to the tool server; everything the
# tools need (refresh, read, query) goes through it.
# =============================================================================

import functools
import time
from typing import Callable, Optional

from core.cache import CacheStore
from core.config import Settings
from core.feed import fetch_feed
from core.models import CacheState, QueryResult
from core import query
from core.refresh import Fetcher, RefreshCoordinator


class FeedService:
    """Cache + refresh coordinator + query engine for a single feed."""

    def __init__(
        self,
        source_url: str,
        fetcher: Fetcher,
        ttl: float,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.source_url = source_url
        self.store = CacheStore(clock=clock)
        self.coordinator = RefreshCoordinator(
            self.store, fetcher, source_url, ttl=ttl, clock=clock,
        )
        self._clock = clock

    @classmethod
    def from_settings(cls, settings: Settings) -> "FeedService":
        fetcher = functools.partial(fetch_feed, timeout=settings.fetch_timeout_seconds)
        return cls(settings.rss_url, fetcher, ttl=settings.ttl_seconds)

    async def ensure_fresh(self) -> None:
        await self.coordinator.ensure_fresh()

    def state(self) -> CacheState:
        return self.store.read()

    def snapshot_age(self) -> Optional[float]:
        """Seconds since the last successful fetch, or None."""
        last = self.store.read().last_success_at
        if last is None:
            return None
        return self._clock() - last

    def latest(self, limit: Optional[int] = None) -> QueryResult:
        return query.latest(self.store.read().snapshot, limit)

    def search(self, keyword: str, limit: Optional[int] = None) -> QueryResult:
        return query.search(self.store.read().snapshot, keyword, limit)
