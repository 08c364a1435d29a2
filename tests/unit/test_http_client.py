# ABOUTME: Unit tests for the shared HTTP client factory.
# ABOUTME: Verifies headers, timeout, redirect handling, and transport injection.

import httpx

from bookscout.acquisition.http import DEFAULT_TIMEOUT, create_http_client


class TestCreateHttpClient:
    """Tests for create_http_client."""

    def test_user_agent_header(self) -> None:
        """Requests carry the bookscout User-Agent header."""
        client = create_http_client()
        assert "bookscout/" in client.headers["user-agent"]

    def test_custom_user_agent(self) -> None:
        client = create_http_client(user_agent="my-library/2.0")
        assert client.headers["user-agent"] == "my-library/2.0"

    def test_default_timeout(self) -> None:
        """Each request is bounded by the default timeout."""
        client = create_http_client()
        assert client.timeout.read == DEFAULT_TIMEOUT

    def test_custom_timeout(self) -> None:
        client = create_http_client(timeout=5.0)
        assert client.timeout.connect == 5.0

    def test_follows_redirects(self) -> None:
        client = create_http_client()
        assert client.follow_redirects is True

    async def test_injected_transport_serves_requests(self) -> None:
        """An injected transport answers instead of the network."""
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"ok": True}))
        async with create_http_client(transport=transport) as client:
            response = await client.get("https://example.com/api")
        assert response.json() == {"ok": True}
