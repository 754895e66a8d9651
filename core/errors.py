# =============================================================================
# core/errors.py  —  Error taxonomy
# =============================================================================
#
#   FetchFailure     transient; absorbed by the refresh coordinator and
#                    recorded on the cache state.  Never reaches a tool caller.
#   FeedUnavailable  no snapshot exists when a query runs.  Surfaced to the
#                    caller as a tool error; the server keeps running.
#   InvalidArgument  malformed tool input.  Surfaced before the cache is touched.
# =============================================================================


class FeedError(Exception):
    """Base class for every error raised by the feed core."""


class FetchFailure(FeedError):
    """The feed could not be downloaded or parsed."""

    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"Failed to fetch feed {url}: {reason}")


class FeedUnavailable(FeedError):
    """No feed snapshot has ever been captured."""


class InvalidArgument(FeedError):
    """A tool was called with arguments it cannot accept."""
