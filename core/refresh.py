# =============================================================================
# core/refresh.py  —  Refresh Coordinator
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Decides when the feed must be fetched again and makes sure only ONE
#   caller does the fetching, no matter how many tool calls arrive at once.
#
# THE POLICY:
#   A refresh is due when nothing was ever fetched, or the snapshot is at
#   least `ttl` seconds old.  When it's due:
#     - the first caller to claim the in-flight flag becomes the LEADER and
#       performs the fetch;
#     - everyone else carries on with the snapshot that already exists
#       (possibly stale, possibly none at all).  Nobody waits on the leader.
#
#   A failed fetch is logged and recorded on the cache, never raised.  Stale
#   data is acceptable; only "never fetched anything" is an error, and that
#   is reported by the query engine, not here.
#
# THE GATE:
#   Checking "is it due?" and claiming the flag happen under one lock.  With
#   two separate steps, a leader could commit between a second caller's
#   check and its claim, and that caller would fetch again for nothing.
# =============================================================================

import asyncio
import logging
import threading
import time
from typing import Awaitable, Callable, Sequence

from core.cache import CacheStore
from core.models import FeedItem, FeedSnapshot

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 5 * 60

# The fetcher takes a feed URL and returns items newest-first, or raises.
Fetcher = Callable[[str], Awaitable[Sequence[FeedItem]]]


class RefreshCoordinator:
    def __init__(
        self,
        store: CacheStore,
        fetcher: Fetcher,
        source_url: str,
        ttl: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        if ttl < 0:
            raise ValueError(f"ttl must be >= 0, got {ttl}")
        self.store = store
        self.source_url = source_url
        self.ttl = ttl
        self._fetcher = fetcher
        self._clock = clock
        self._gate = threading.Lock()

    def _claim_leadership(self) -> bool:
        with self._gate:
            now = self._clock()
            if not self.store.read().is_due(now, self.ttl):
                return False
            return self.store.mark_started(now)

    async def ensure_fresh(self) -> None:
        """Refresh the cache if due.  Never raises a fetch error."""
        if not self._claim_leadership():
            return

        logger.info("Refreshing feed %s", self.source_url)
        try:
            # A lazy result may still fail while being materialised.
            items = tuple(await self._fetcher(self.source_url))
        except asyncio.CancelledError:
            self.store.mark_failed()
            raise
        except Exception as exc:
            self.store.mark_failed(exc)
            logger.warning("RSS fetch failed for %s: %s", self.source_url, exc)
            return

        snapshot = FeedSnapshot(items=items, captured_at=self._clock())
        if self.store.commit(snapshot):
            logger.info("Cached %d items from %s", len(snapshot), self.source_url)
