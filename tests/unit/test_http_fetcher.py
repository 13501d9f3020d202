import asyncio

import httpx
import pytest

from mypi.core.config import settings
from mypi.core.errors import Aborted, NetworkError, TooManyRedirects
from mypi.fetch.http_fetcher import DEFAULT_ACCEPT, fetch_content
from conftest import RecordingTransport


def redirect_chain(length, final_body="done"):
    """/hop/0 -> /hop/1 -> ... -> /hop/<length>, which answers 200"""

    def handler(request):
        hop = int(request.url.path.rsplit("/", 1)[-1])
        if hop < length:
            return httpx.Response(302, headers={"Location": f"/hop/{hop + 1}"})
        return httpx.Response(200, text=final_body, headers={"Content-Type": "text/plain"})

    return RecordingTransport(handler)


class TestRedirects:
    """Manual redirect following with a hop budget"""

    @pytest.mark.parametrize("length", [0, 1, 3, 5])
    def test_chain_within_budget(self, length):
        transport = redirect_chain(length)
        result = asyncio.run(fetch_content("https://example.com/hop/0", max_redirects=5, transport=transport))
        assert result.status_code == 200
        assert result.body == "done"
        assert result.content_type == "text/plain"
        assert len(transport.requests) == length + 1
        assert transport.requests[-1].url == f"https://example.com/hop/{length}"

    def test_chain_longer_than_budget(self):
        transport = redirect_chain(6)
        with pytest.raises(TooManyRedirects):
            asyncio.run(fetch_content("https://example.com/hop/0", max_redirects=5, transport=transport))
        # the budget is spent before the 7th request is sent
        assert len(transport.requests) == 6

    def test_negative_budget_fails_immediately(self):
        transport = redirect_chain(0)
        with pytest.raises(TooManyRedirects):
            asyncio.run(fetch_content("https://example.com/hop/0", max_redirects=-1, transport=transport))
        assert transport.requests == []

    def test_absolute_cross_host_redirect(self):
        def handler(request):
            if request.url.host == "old.example.com":
                return httpx.Response(301, headers={"Location": "https://new.example.com/page?x=1"})
            return httpx.Response(200, text="moved")

        transport = RecordingTransport(handler)
        result = asyncio.run(fetch_content("https://old.example.com/page", transport=transport))
        assert result.body == "moved"
        assert str(transport.requests[-1].url) == "https://new.example.com/page?x=1"

    def test_redirect_without_location_is_returned(self):
        transport = RecordingTransport(lambda request: httpx.Response(304, text=""))
        result = asyncio.run(fetch_content("https://example.com/", transport=transport))
        assert result.status_code == 304


class TestRequest:
    """Headers, status handling and transport errors"""

    def test_default_headers(self):
        transport = RecordingTransport(lambda request: httpx.Response(200, text="ok"))
        asyncio.run(fetch_content("https://example.com/", transport=transport))
        sent = transport.requests[0]
        assert sent.method == "GET"
        assert sent.headers["user-agent"] == settings.USER_AGENT
        assert sent.headers["accept"] == DEFAULT_ACCEPT

    def test_caller_headers_win(self):
        transport = RecordingTransport(lambda request: httpx.Response(200, text="ok"))
        asyncio.run(fetch_content(
            "https://example.com/",
            headers={"accept": "text/plain", "X-Trace": "1"},
            transport=transport,
        ))
        sent = transport.requests[0]
        assert sent.headers.get_list("accept") == ["text/plain"]
        assert sent.headers["x-trace"] == "1"

    def test_error_status_is_returned_not_raised(self):
        transport = RecordingTransport(
            lambda request: httpx.Response(403, text="Access denied", headers={"Content-Type": "text/html"})
        )
        result = asyncio.run(fetch_content("https://example.com/", transport=transport))
        assert result.status_code == 403
        assert result.body == "Access denied"
        assert not result.ok

    def test_missing_content_type(self):
        transport = RecordingTransport(lambda request: httpx.Response(200, content=b"raw"))
        result = asyncio.run(fetch_content("https://example.com/", transport=transport))
        assert result.content_type == ""

    def test_transport_error_wrapped(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(NetworkError, match="connection refused"):
            asyncio.run(fetch_content("https://example.com/", transport=httpx.MockTransport(handler)))


class TestCancellation:
    """Cooperative cancellation through the host's token"""

    def test_already_cancelled_sends_nothing(self):
        transport = RecordingTransport(lambda request: httpx.Response(200, text="ok"))

        async def scenario():
            token = asyncio.Event()
            token.set()
            await fetch_content("https://example.com/", cancellation=token, transport=transport)

        with pytest.raises(Aborted, match="Request aborted"):
            asyncio.run(scenario())
        assert transport.requests == []

    def test_cancelled_while_in_flight(self):
        async def slow(request):
            await asyncio.sleep(10)
            return httpx.Response(200, text="too late")

        async def scenario():
            token = asyncio.Event()
            asyncio.get_running_loop().call_later(0.05, token.set)
            await fetch_content("https://example.com/", cancellation=token, transport=httpx.MockTransport(slow))

        with pytest.raises(Aborted):
            asyncio.run(scenario())

    def test_plain_token_without_wait(self):
        """Tokens exposing only is_set() are honoured before sending"""

        class Flag:
            def __init__(self, value):
                self.value = value

            def is_set(self):
                return self.value

        transport = RecordingTransport(lambda request: httpx.Response(200, text="ok"))
        result = asyncio.run(fetch_content("https://example.com/", cancellation=Flag(False), transport=transport))
        assert result.body == "ok"
        with pytest.raises(Aborted):
            asyncio.run(fetch_content("https://example.com/", cancellation=Flag(True), transport=transport))
        assert len(transport.requests) == 1
