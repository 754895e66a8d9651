# =============================================================================
# core/query.py  —  Query Engine
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Answers "what's newest?" and "what mentions X?" against one snapshot.
#
# Both functions are pure: same snapshot + same arguments → same result.
# They never re-sort; the feed already delivers items newest-first, and the
# tools promise that order back to the caller.
#
# RESULT-SIZE LIMITS:
#   Every result is bounded.  An MCP client should never receive an entire
#   feed dump because it forgot to pass a limit.
# =============================================================================

from typing import Optional

from core.errors import InvalidArgument
from core.models import FeedItem, FeedSnapshot, QueryResult

DEFAULT_LATEST_LIMIT = 5
DEFAULT_SEARCH_LIMIT = 10


def clamp_limit(limit: Optional[int], default: int) -> int:
    if limit is None:
        return default
    if isinstance(limit, bool) or not isinstance(limit, int):
        raise InvalidArgument(f"limit must be an integer, got {limit!r}")
    return max(limit, 0)


def latest(snapshot: Optional[FeedSnapshot], limit: Optional[int] = None) -> QueryResult:
    """Return the first `limit` items of the snapshot, in feed order.

    Args:
        snapshot: The current snapshot, or None if nothing was ever fetched.
        limit: Maximum number of items (default 5).  Negative values count
               as 0; values past the end return the whole snapshot.

    Returns:
        A QueryResult.  It is unavailable only when `snapshot` is None.
    """
    count = clamp_limit(limit, DEFAULT_LATEST_LIMIT)
    if snapshot is None:
        return QueryResult.unavailable()
    return QueryResult(items=snapshot.items[:count])


def matches(item: FeedItem, needle: str) -> bool:
    """Case-insensitive substring test on title and summary text.

    `needle` must already be lowercased.
    """
    if item.title and needle in item.title.lower():
        return True
    return needle in item.summary_text.lower()


def search(
    snapshot: Optional[FeedSnapshot],
    keyword: str,
    limit: Optional[int] = None,
) -> QueryResult:
    """Return items whose title or summary contains `keyword`, ignoring case.

    An empty keyword matches every item.  Matches keep snapshot order and
    are truncated to `limit` (default 10).

    Raises:
        InvalidArgument: if `keyword` is missing or not a string.
    """
    if not isinstance(keyword, str):
        raise InvalidArgument("keyword is required and must be a string")
    count = clamp_limit(limit, DEFAULT_SEARCH_LIMIT)
    if snapshot is None:
        return QueryResult.unavailable()

    needle = keyword.lower()
    found = []
    for item in snapshot.items:
        if len(found) >= count:
            break
        if matches(item, needle):
            found.append(item)
    return QueryResult(items=tuple(found))
