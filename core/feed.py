# =============================================================================
# core/feed.py  —  Feed Fetcher
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Downloads an RSS/Atom feed and turns it into a list of FeedItem objects,
#   newest-first as the publisher orders them.
#
# HOW IT WORKS:
#   1. urllib.request downloads the raw bytes (with a timeout)
#   2. feedparser parses them (RSS 0.9x/1.0/2.0 and Atom all look the same
#      afterwards)
#   3. Each entry is mapped onto FeedItem.  The summary is stripped of HTML
#      to give the plain-text snippet; full content keeps its markup.
#
#   Download + parse are blocking, so fetch_feed() runs them in a worker
#   thread.  Other tool calls keep reading the existing snapshot meanwhile.
#
# FAILURE:
#   Anything that goes wrong becomes a FetchFailure.  The refresh
#   coordinator decides what to do with it.
# =============================================================================

import asyncio
import html
import logging
import re
import urllib.error
import urllib.request

import feedparser

from core.errors import FetchFailure
from core.models import FeedItem

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 10.0
USER_AGENT = "rss-mcp/1.0"

_TAG_RE = re.compile(r"<[^>]+>")
_SPACE_RE = re.compile(r"\s+")


def strip_html(markup: str) -> str:
    """Drop tags, decode entities and collapse whitespace."""
    text = html.unescape(_TAG_RE.sub(" ", markup))
    return _SPACE_RE.sub(" ", text).strip()


def _download(url: str, timeout: float) -> bytes:
    req = urllib.request.Request(url, headers={"User-Agent": USER_AGENT})
    try:
        with urllib.request.urlopen(req, timeout=timeout) as response:
            return response.read()
    except (urllib.error.URLError, OSError, ValueError) as e:
        raise FetchFailure(url, str(e)) from e


def _entry_to_item(entry) -> FeedItem:
    summary = entry.get("summary")

    # Atom <content> and RSS <content:encoded> both land in entry.content.
    content = None
    for block in entry.get("content") or []:
        value = block.get("value")
        if value:
            content = value
            break
    if content is None:
        content = summary

    return FeedItem(
        title=entry.get("title"),
        link=entry.get("link"),
        content_snippet=strip_html(summary) if summary else None,
        content=content,
        pub_date=entry.get("published") or entry.get("updated"),
    )


def parse_feed(url: str, raw: bytes) -> list[FeedItem]:
    """Parse downloaded feed bytes into items.

    feedparser never raises on bad input; it sets `bozo` instead.  A bozo
    feed that still produced entries is accepted (most real feeds have some
    small defect).  One that produced nothing is a failure, as is a document
    feedparser could not recognise as any feed format.
    """
    parsed = feedparser.parse(raw)
    if not parsed.entries and (parsed.bozo or not parsed.get("version")):
        reason = parsed.get("bozo_exception") or "malformed feed"
        raise FetchFailure(url, str(reason))
    return [_entry_to_item(entry) for entry in parsed.entries]


def fetch_feed_sync(url: str, timeout: float = DEFAULT_TIMEOUT_SECONDS) -> list[FeedItem]:
    items = parse_feed(url, _download(url, timeout))
    logger.debug("Parsed %d entries from %s", len(items), url)
    return items


async def fetch_feed(url: str, timeout: float = DEFAULT_TIMEOUT_SECONDS) -> list[FeedItem]:
    """Download and parse `url` without blocking the event loop.

    Raises:
        FetchFailure: on network errors or an unparseable feed.
    """
    return await asyncio.to_thread(fetch_feed_sync, url, timeout)
