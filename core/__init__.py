# =============================================================================
# core/__init__.py
# =============================================================================
# This package contains ALL the feed logic: models, cache, refresh policy,
# query engine and the fetcher.
#
# ARCHITECTURAL RULE:
#   Nothing in this package imports FastMCP or any transport code.  The
#   cache, refresh and query modules can be driven from a bare asyncio loop
#   with a fake fetcher and no network at all, which is how the tests use
#   them.
# =============================================================================
