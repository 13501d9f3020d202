import asyncio
import logging
from typing import Mapping, Optional

import httpx

from mypi.core.config import settings
from mypi.core.errors import Aborted, NetworkError, TooManyRedirects
from mypi.fetch.base import CancellationToken, FetchResult

logger = logging.getLogger(__name__)

DEFAULT_ACCEPT = (
    "text/html,application/xhtml+xml,application/xml;q=0.9,"
    "text/plain;q=0.8,application/json,*/*;q=0.5"
)


def build_headers(overrides: Optional[Mapping[str, str]] = None) -> httpx.Headers:
    """Default request headers with caller values taking precedence."""
    headers = httpx.Headers({
        "User-Agent": settings.USER_AGENT,
        "Accept": DEFAULT_ACCEPT,
    })
    if overrides:
        headers.update(overrides)
    return headers


def ensure_not_cancelled(cancellation: Optional[CancellationToken]) -> None:
    if cancellation is not None and cancellation.is_set():
        raise Aborted()


async def send_cancellable(
    client: httpx.AsyncClient,
    request: httpx.Request,
    cancellation: Optional[CancellationToken] = None,
) -> httpx.Response:
    """
    Send a request, aborting it if the cancellation token fires first.

    Tokens without a wait() coroutine are only checked before sending.
    """
    ensure_not_cancelled(cancellation)
    wait = getattr(cancellation, "wait", None)
    if wait is None:
        return await client.send(request)

    send_task = asyncio.ensure_future(client.send(request))
    cancel_task = asyncio.ensure_future(wait())
    try:
        done, _ = await asyncio.wait(
            {send_task, cancel_task}, return_when=asyncio.FIRST_COMPLETED
        )
    finally:
        pending = [t for t in (send_task, cancel_task) if not t.done()]
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)

    if send_task in done:
        return send_task.result()
    raise Aborted()


async def fetch_content(
    url: str,
    headers: Optional[Mapping[str, str]] = None,
    cancellation: Optional[CancellationToken] = None,
    max_redirects: int = settings.MAX_REDIRECTS,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FetchResult:
    """
    GET a URL, following up to max_redirects redirects by hand.

    Non-2xx responses are returned rather than raised so the caller can
    inspect challenge and error pages.

    Raises:
        Aborted: the cancellation token is (or becomes) set
        TooManyRedirects: the redirect budget ran out
        NetworkError: the transport failed
    """
    if max_redirects < 0:
        raise TooManyRedirects(url)
    ensure_not_cancelled(cancellation)

    remaining = max_redirects
    current = url
    try:
        async with httpx.AsyncClient(
            headers=build_headers(headers),
            follow_redirects=False,
            timeout=settings.REQUEST_TIMEOUT,
            transport=transport,
        ) as client:
            while True:
                response = await send_cancellable(
                    client, client.build_request("GET", current), cancellation
                )
                location = response.headers.get("location")
                if 300 <= response.status_code < 400 and location:
                    if remaining <= 0:
                        raise TooManyRedirects(current)
                    target = str(response.url.join(location))
                    logger.debug("Redirect %s %s -> %s", response.status_code, current, target)
                    current = target
                    remaining -= 1
                    continue

                return FetchResult(
                    body=response.text,
                    content_type=response.headers.get("content-type", ""),
                    status_code=response.status_code or 0,
                )
    except (httpx.TransportError, httpx.InvalidURL) as e:
        raise NetworkError(str(e) or type(e).__name__) from e
