# ABOUTME: HTTP client construction for metadata provider API calls.
# ABOUTME: Builds the shared httpx.AsyncClient with timeout, User-Agent, and injectable transport.

from typing import Any

import httpx

DEFAULT_USER_AGENT = "bookscout/0.1.0"
DEFAULT_TIMEOUT = 20.0


def create_http_client(
    *,
    timeout: float = DEFAULT_TIMEOUT,
    user_agent: str = DEFAULT_USER_AGENT,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Create the async client shared by every provider.

    The timeout applies to each attempt individually, so a stuck provider
    fails over to the retry executor instead of stalling the search.
    The caller owns the client and is responsible for closing it.
    """
    client_kwargs: dict[str, Any] = {
        "headers": {"User-Agent": user_agent},
        "timeout": timeout,
        "follow_redirects": True,
    }
    if transport is not None:
        client_kwargs["transport"] = transport
    return httpx.AsyncClient(**client_kwargs)
