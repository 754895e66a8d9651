# =============================================================================
# tools/__init__.py
# =============================================================================
# This package contains the FastMCP tool wrappers.
#
# ARCHITECTURAL ROLE:
#   tools/ is the translation layer between MCP and core/:
#     1. Receives a tool call with JSON arguments
#     2. Rejects bad arguments before touching the cache
#     3. Calls the FeedService (refresh if due, then query)
#     4. Shapes items into the public {title, link, summary, pubDate} form
#
# WHAT TOOLS DO NOT DO:
#   - They do NOT fetch or parse feeds (core/feed.py)
#   - They do NOT decide when to refresh (core/refresh.py)
#   - They do NOT hold state; the FeedService is passed in
# =============================================================================
