# =============================================================================
# main.py  —  Entry Point for the RSS MCP server
# =============================================================================
#
# HOW TO RUN:
#   uv run python main.py          (or the installed `rss-mcp` command)
#
# WHAT HAPPENS:
#   1. Loads .env into the environment (RSS_URL, PORT, FEED_TTL_SECONDS, ...)
#   2. Builds the Settings and the single FeedService for this process
#   3. Builds the FastMCP server around that service (tools/mcp_server.py)
#   4. Serves MCP over SSE at http://HOST:PORT/sse  (or stdio if
#      MCP_TRANSPORT=stdio)
#
# The feed is NOT fetched at startup.  The first tool call triggers the
# first refresh; until that succeeds, tools answer "Feed unavailable".
# =============================================================================

import logging

from dotenv import load_dotenv

from core.config import load_settings
from core.service import FeedService
from tools.mcp_server import build_server, configure_logging


def main() -> None:
    # .env must be loaded before load_settings() reads os.environ.
    load_dotenv()
    settings = load_settings()
    configure_logging(settings.log_level)

    service = FeedService.from_settings(settings)
    mcp = build_server(service)

    log = logging.getLogger("rss_mcp")
    log.info(f"Feed: {settings.rss_url} (refresh every {settings.ttl_seconds:g}s)")

    if settings.transport == "stdio":
        mcp.run(transport="stdio")
    else:
        log.info(f"Listening on {settings.host}:{settings.port}")
        mcp.run(transport="sse", host=settings.host, port=settings.port)


# =============================================================================
# Script entry point
# =============================================================================
if __name__ == "__main__":
    main()
