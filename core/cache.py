# =============================================================================
# core/cache.py  —  Cache Store
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Holds the single source of truth for the feed cache: the latest
#   successful snapshot, when it was captured, and whether a refresh is
#   currently running.
#
# ATOMICITY:
#   Every operation takes the same lock and swaps in a new immutable
#   CacheState.  Readers get whichever state was current when they asked,
#   never a mix of two.  The lock is a threading.Lock, so the store stays
#   correct when tool calls are handled on real threads, not only coroutines.
#
#   Only the RefreshCoordinator writes here.  The store does no I/O and
#   raises nothing of its own.
# =============================================================================

import logging
import threading
import time
from dataclasses import replace
from typing import Callable, Optional

from core.models import CacheState, FeedSnapshot

logger = logging.getLogger(__name__)


class CacheStore:
    """Process-wide container for the feed snapshot and refresh bookkeeping."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._lock = threading.Lock()
        self._state = CacheState()

    def read(self) -> CacheState:
        with self._lock:
            return self._state

    def mark_started(self, now: Optional[float] = None) -> bool:
        """Flag a refresh as in flight.

        Returns False, and changes nothing, when another refresh already
        holds the flag.
        """
        with self._lock:
            if self._state.refresh_in_flight:
                return False
            self._state = replace(
                self._state,
                refresh_in_flight=True,
                last_attempt_at=self._clock() if now is None else now,
            )
            return True

    def commit(self, snapshot: FeedSnapshot) -> bool:
        """Install a freshly fetched snapshot and clear the in-flight flag.

        A snapshot captured before the one already held is discarded so
        last_success_at never goes backwards.  A snapshot with the same
        captured_at as the current one is kept: only one fetch is ever in
        flight, so it is the later result of the two.  Returns whether it
        was kept.
        """
        with self._lock:
            current = self._state.last_success_at
            if current is not None and snapshot.captured_at < current:
                logger.warning(
                    "Discarding stale snapshot captured at %.3f (current %.3f)",
                    snapshot.captured_at, current,
                )
                self._state = replace(self._state, refresh_in_flight=False)
                return False
            self._state = replace(
                self._state,
                snapshot=snapshot,
                last_success_at=snapshot.captured_at,
                refresh_in_flight=False,
                last_error=None,
            )
            return True

    def mark_failed(self, error: Optional[BaseException] = None) -> None:
        """Clear the in-flight flag, keep whatever snapshot exists."""
        with self._lock:
            self._state = replace(
                self._state,
                refresh_in_flight=False,
                last_error=str(error) if error is not None else self._state.last_error,
            )
