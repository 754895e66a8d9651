# =============================================================================
# tools/mcp_server.py  —  FastMCP Tool Server
# =============================================================================
#
# WHAT THIS FILE DOES:
#   Defines the MCP tools clients can call.  Each tool is a thin wrapper
#   around the FeedService from core/: it validates input, makes sure the
#   cache is fresh enough, runs the query, and shapes the result.
#
# HOW IT WORKS (the flow):
#   1. A client calls a tool by name over MCP (e.g., "search_items")
#   2. FastMCP routes the call to the decorated function below
#   3. The function asks the FeedService to refresh if due (never blocks on
#      someone else's refresh), then queries the current snapshot
#   4. Items are shaped into {title, link, summary, pubDate} and returned
#      as JSON text
#
# TOOLS:
#   - get_latest_items  → the newest N items (default 5)
#   - search_items      → keyword match on title/summary (default 10)
#   Both are read-only and safe to retry.
#
# ERRORS:
#   Bad arguments and "feed never fetched" come back to the client as a
#   ToolError.  A failed refresh is NOT an error here: the tools keep
#   serving the last good snapshot.
# =============================================================================

import json
import logging
import sys
from typing import Optional

from fastmcp import FastMCP
from fastmcp.exceptions import ToolError
from starlette.requests import Request
from starlette.responses import PlainTextResponse

from core.errors import FeedUnavailable, InvalidArgument
from core.models import FeedItem
from core.query import DEFAULT_LATEST_LIMIT, DEFAULT_SEARCH_LIMIT, clamp_limit
from core.service import FeedService

SERVER_NAME = "rss-mcp"

# =============================================================================
# Logging Setup
# =============================================================================
# Logs go to STDERR.  With the stdio transport, STDOUT carries the MCP JSON
# messages and any stray log line would corrupt them.
#
# ANSI colours in the terminal:
#     - CYAN for incoming requests (tool name + parameters)
#     - GREEN for response JSON
#     - YELLOW for intermediate status/progress messages
# =============================================================================

_CYAN = "\033[36m"     # Requests (tool calls with params)
_GREEN = "\033[32m"    # Responses (JSON output)
_YELLOW = "\033[33m"   # Status/progress messages
_RESET = "\033[0m"     # Reset to default terminal color

logger = logging.getLogger("rss_mcp")


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s [MCP] %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )


def _log_request(tool_name: str, **params) -> None:
    """Log an incoming tool call with its parameters in CYAN."""
    param_str = ", ".join(f"{k}={v!r}" for k, v in params.items())
    logger.info(f"{_CYAN}{tool_name} called with: {param_str}{_RESET}")


def _log_status(message: str) -> None:
    """Log an intermediate status message in YELLOW."""
    logger.info(f"{_YELLOW}  → {message}{_RESET}")


def _log_response(tool_name: str, payload: str) -> str:
    """Log the tool response in GREEN, then return it."""
    compact = json.dumps(json.loads(payload), separators=(",", ":"))
    logger.info(f"{_GREEN}  ← {tool_name} response: {compact}{_RESET}")
    return payload


# =============================================================================
# Output shaping
# =============================================================================
# The field names here are the public contract of both tools.  summary is
# derived at this point (snippet → content → ""), never stored.
# =============================================================================
def shape_item(item: FeedItem) -> dict:
    return {
        "title": item.title,
        "link": item.link,
        "summary": item.summary_text,
        "pubDate": item.pub_date,
    }


def _render(items) -> str:
    return json.dumps([shape_item(item) for item in items], indent=2, ensure_ascii=False)


def _tool_error(tool_name: str, exc: Exception) -> ToolError:
    _log_status(f"{tool_name} failed: {exc}")
    return ToolError(str(exc))


# =============================================================================
# Server factory
# =============================================================================
# The FeedService is passed in rather than imported as a global.  main.py
# creates one for the process; tests create one per test with a fake fetcher.
# =============================================================================
def build_server(service: FeedService, name: str = SERVER_NAME) -> FastMCP:
    mcp = FastMCP(name)

    # -------------------------------------------------------------------------
    # TOOL 1: get_latest_items
    # -------------------------------------------------------------------------
    @mcp.tool()
    async def get_latest_items(limit: int = DEFAULT_LATEST_LIMIT) -> str:
        """Return the most recent items from the RSS feed.

        Args:
            limit: Maximum number of items to return (default 5).

        Returns:
            A JSON array, newest first, of objects with fields
            title, link, summary and pubDate.  Fails with an error if the
            feed has never been fetched successfully.
        """
        _log_request("get_latest_items", limit=limit)
        try:
            clamp_limit(limit, DEFAULT_LATEST_LIMIT)
            await service.ensure_fresh()
            items = service.latest(limit).unwrap()
        except (InvalidArgument, FeedUnavailable) as exc:
            raise _tool_error("get_latest_items", exc) from exc

        _log_status(f"Returning {len(items)} items")
        return _log_response("get_latest_items", _render(items))

    # -------------------------------------------------------------------------
    # TOOL 2: search_items
    # -------------------------------------------------------------------------
    @mcp.tool()
    async def search_items(keyword: str, limit: int = DEFAULT_SEARCH_LIMIT) -> str:
        """Search items by keyword in title or summary.

        Args:
            keyword: Case-insensitive keyword.  An empty string matches
                     every item.
            limit: Maximum number of items to return (default 10).

        Returns:
            A JSON array, newest first, of matching items with fields
            title, link, summary and pubDate.  An empty array means nothing
            matched.  Fails with an error if the feed has never been
            fetched successfully.
        """
        _log_request("search_items", keyword=keyword, limit=limit)
        try:
            if not isinstance(keyword, str):
                raise InvalidArgument("keyword is required and must be a string")
            clamp_limit(limit, DEFAULT_SEARCH_LIMIT)
            await service.ensure_fresh()
            items = service.search(keyword, limit).unwrap()
        except (InvalidArgument, FeedUnavailable) as exc:
            raise _tool_error("search_items", exc) from exc

        _log_status(f"{len(items)} items matched {keyword!r}")
        return _log_response("search_items", _render(items))

    # -------------------------------------------------------------------------
    # Plain HTTP status page (only served by the SSE/HTTP transports)
    # -------------------------------------------------------------------------
    @mcp.custom_route("/", methods=["GET"])
    async def index(request: Request) -> PlainTextResponse:
        return PlainTextResponse(describe(service))

    return mcp


def describe(service: FeedService) -> str:
    state = service.state()
    lines = [f"RSS MCP server running. Feed: {service.source_url}"]
    if state.snapshot is None:
        lines.append("No snapshot fetched yet.")
    else:
        age: Optional[float] = service.snapshot_age()
        lines.append(f"Cached items: {len(state.snapshot)} (age {age:.0f}s)")
    if state.refresh_in_flight:
        lines.append("Refresh in progress.")
    if state.last_error:
        lines.append(f"Last refresh error: {state.last_error}")
    return "\n".join(lines)
