"""Unit tests for the httpx based transport."""

import httpx
import pytest
import respx

from osclient.config.settings import settings
from osclient.core.errors import TransportError
from osclient.core.models import BaseRequest
from osclient.search.transport import HttpxTransport


@pytest.fixture(autouse=True)
def no_backoff(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(settings, "retry_backoff_factor", 0)


class TestHttpxTransport:
    """Tests for sending requests."""

    @pytest.mark.asyncio
    @respx.mock
    async def test_get(self) -> None:
        route = respx.get("http://example.com/search?q=cat").mock(
            return_value=httpx.Response(200, text="<feed/>", headers={"Content-Type": "application/atom+xml"})
        )

        async with HttpxTransport() as transport:
            response = await transport.send(BaseRequest(url="http://example.com/search?q=cat"))

        assert route.called
        assert response.status_code == 200
        assert response.text == "<feed/>"
        assert response.headers["content-type"] == "application/atom+xml"
        assert route.calls.last.request.headers["User-Agent"] == settings.user_agent

    @pytest.mark.asyncio
    @respx.mock
    async def test_urlencoded_post(self) -> None:
        route = respx.post("http://example.com/search").mock(return_value=httpx.Response(200, text="ok"))
        request = BaseRequest(
            method="POST",
            url="http://example.com/search",
            headers={"Content-Type": "application/x-www-form-urlencoded"},
            body="q=search%20terms&start=1",
        )

        async with HttpxTransport() as transport:
            await transport.send(request)

        sent = route.calls.last.request
        assert sent.content == b"q=search%20terms&start=1"
        assert sent.headers["Content-Type"] == "application/x-www-form-urlencoded"

    @pytest.mark.asyncio
    @respx.mock
    async def test_multipart_post(self) -> None:
        route = respx.post("http://example.com/search").mock(return_value=httpx.Response(200, text="ok"))
        request = BaseRequest(method="POST", url="http://example.com/search", multipart=[("q", "water"), ("count", "10")])

        async with HttpxTransport() as transport:
            await transport.send(request)

        sent = route.calls.last.request
        assert sent.headers["Content-Type"].startswith("multipart/form-data; boundary=")
        content = sent.read()
        assert b'name="q"' in content
        assert b"water" in content

    @pytest.mark.asyncio
    @respx.mock
    async def test_error_status_returned(self) -> None:
        route = respx.get("http://example.com/").mock(return_value=httpx.Response(500, text="oops"))

        async with HttpxTransport() as transport:
            response = await transport.send(BaseRequest(url="http://example.com/"))

        assert response.status_code == 500
        assert route.call_count == 1


class TestRetries:
    """Connection failures are retried, then reported as TransportError."""

    @pytest.mark.asyncio
    @respx.mock
    async def test_retry_then_success(self) -> None:
        route = respx.get("http://example.com/").mock(
            side_effect=[httpx.ConnectError("refused"), httpx.Response(200, text="ok")]
        )

        async with HttpxTransport(max_retries=3) as transport:
            response = await transport.send(BaseRequest(url="http://example.com/"))

        assert response.text == "ok"
        assert route.call_count == 2

    @pytest.mark.asyncio
    @respx.mock
    async def test_retries_exhausted(self) -> None:
        route = respx.get("http://example.com/").mock(side_effect=httpx.ConnectTimeout("timeout"))

        async with HttpxTransport(max_retries=2) as transport:
            with pytest.raises(TransportError, match="Failed to fetch http://example.com/"):
                await transport.send(BaseRequest(url="http://example.com/"))

        assert route.call_count == 2


class TestClientOwnership:
    @pytest.mark.asyncio
    async def test_owned_client_closed(self) -> None:
        transport = HttpxTransport()

        await transport.close()

        assert transport.client.is_closed

    @pytest.mark.asyncio
    async def test_external_client_left_open(self) -> None:
        client = httpx.AsyncClient()
        transport = HttpxTransport(client=client)

        await transport.close()

        assert not client.is_closed
        await client.aclose()
