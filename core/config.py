# =============================================================================
# core/config.py  —  Runtime settings
# =============================================================================
#
# Everything configurable comes from environment variables (a .env file is
# loaded into the environment by main.py before this runs):
#
#   RSS_URL                feed to serve        (default: Hacker News front page)
#   HOST / PORT            SSE listen address   (default: 0.0.0.0:3000)
#   FEED_TTL_SECONDS       max snapshot age     (default: 300)
#   FETCH_TIMEOUT_SECONDS  socket timeout       (default: 10)
#   LOG_LEVEL              logging level        (default: INFO)
#   MCP_TRANSPORT          "sse" or "stdio"     (default: sse)
# =============================================================================

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from core.feed import DEFAULT_TIMEOUT_SECONDS
from core.refresh import DEFAULT_TTL_SECONDS

DEFAULT_RSS_URL = "https://hnrss.org/frontpage"
_TRANSPORTS = ("sse", "stdio")


@dataclass(frozen=True)
class Settings:
    rss_url: str = DEFAULT_RSS_URL
    host: str = "0.0.0.0"
    port: int = 3000
    ttl_seconds: float = DEFAULT_TTL_SECONDS
    fetch_timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    log_level: str = "INFO"
    transport: str = "sse"


def _number(env: Mapping[str, str], name: str, default, cast):
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = cast(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None
    if value < 0:
        raise ValueError(f"{name} must be >= 0, got {raw!r}")
    return value


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    """Build Settings from the environment.

    Raises:
        ValueError: if a numeric variable does not parse or the transport
                    is unknown.
    """
    if env is None:
        env = os.environ

    transport = env.get("MCP_TRANSPORT", "sse").lower()
    if transport not in _TRANSPORTS:
        raise ValueError(f"MCP_TRANSPORT must be one of {_TRANSPORTS}, got {transport!r}")

    return Settings(
        rss_url=env.get("RSS_URL") or DEFAULT_RSS_URL,
        host=env.get("HOST") or "0.0.0.0",
        port=_number(env, "PORT", 3000, int),
        ttl_seconds=_number(env, "FEED_TTL_SECONDS", DEFAULT_TTL_SECONDS, float),
        fetch_timeout_seconds=_number(env, "FETCH_TIMEOUT_SECONDS", DEFAULT_TIMEOUT_SECONDS, float),
        log_level=(env.get("LOG_LEVEL") or "INFO").upper(),
        transport=transport,
    )
