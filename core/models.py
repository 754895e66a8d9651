# =============================================================================
# core/models.py  —  Data Models (the "nouns" of the system)
# =============================================================================
#
# These dataclasses define the shape of every piece of information that flows
# between the fetcher, the cache, the query engine and the MCP tools.
#
# All of them are frozen.  A FeedSnapshot is replaced wholesale on every
# successful refresh and never edited in place, so readers holding an old
# snapshot keep seeing a consistent list of items.
# =============================================================================

from dataclasses import dataclass
from typing import Optional

from core.errors import FeedUnavailable


# -----------------------------------------------------------------------------
# FeedItem — one entry of the RSS/Atom feed
# -----------------------------------------------------------------------------
# Identity is positional within its snapshot.  Feeds do not reliably carry
# stable IDs, so nothing here pretends to have one.
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class FeedItem:
    """A single feed entry, as delivered by the fetcher."""

    title: Optional[str] = None
    link: Optional[str] = None
    content_snippet: Optional[str] = None  # Plain-text excerpt (HTML stripped)
    content: Optional[str] = None          # Full body, may contain markup
    pub_date: Optional[str] = None         # Raw date string from the feed

    @property
    def summary_text(self) -> str:
        """Excerpt if present, else full content, else empty string."""
        return self.content_snippet or self.content or ""


# -----------------------------------------------------------------------------
# FeedSnapshot — everything one successful fetch produced
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class FeedSnapshot:
    """Ordered items (newest first, as the feed delivers them) plus capture time."""

    items: tuple[FeedItem, ...]
    captured_at: float

    def __len__(self) -> int:
        return len(self.items)


# -----------------------------------------------------------------------------
# CacheState — a read-only view of the cache at one instant
# -----------------------------------------------------------------------------
# CacheStore.read() hands out a fresh CacheState every time, so a caller never
# observes a half-applied commit.
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class CacheState:
    snapshot: Optional[FeedSnapshot] = None
    last_success_at: Optional[float] = None
    refresh_in_flight: bool = False
    last_attempt_at: Optional[float] = None
    last_error: Optional[str] = None

    def is_due(self, now: float, ttl: float) -> bool:
        """True when no fetch ever succeeded or the snapshot is at least ttl old."""
        if self.last_success_at is None:
            return True
        return now - self.last_success_at >= ttl


# -----------------------------------------------------------------------------
# QueryResult — what the query engine returns
# -----------------------------------------------------------------------------
# "Zero matches" and "feed never reachable" are different answers:
#   - available=True,  items=()   → the feed has nothing matching
#   - available=False, items=None → no snapshot has ever been captured
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class QueryResult:
    items: Optional[tuple[FeedItem, ...]]

    @property
    def available(self) -> bool:
        return self.items is not None

    @classmethod
    def unavailable(cls) -> "QueryResult":
        return cls(items=None)

    def unwrap(self) -> tuple[FeedItem, ...]:
        """Return the items, or raise FeedUnavailable if there is no snapshot."""
        if self.items is None:
            raise FeedUnavailable(
                "Feed unavailable: no snapshot has been fetched yet. "
                "A refresh will be retried on the next call."
            )
        return self.items
