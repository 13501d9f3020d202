"""
Smart URL fetching with cascading fallbacks.

    LOCAL_FETCH -> CLASSIFY -> PASSTHROUGH | PAYLOAD_EXTRACT | ARTICLE_EXTRACT
                -> EMBEDDED_PAYLOAD_EXTRACT -> PROXY_FETCH -> PROXY_CLASSIFY

Every path ends in exactly one of RETURN or ERROR_RETURN.
"""

import asyncio
import logging
from contextlib import closing
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Dict, FrozenSet, Optional

from mypi.core.config import settings
from mypi.core.errors import BlockedError, UpstreamStatusError
from mypi.fetch.article import extract_article
from mypi.fetch.base import CancellationToken, FetchResult
from mypi.fetch.challenge import is_blocked
from mypi.fetch.http_fetcher import fetch_content
from mypi.fetch.rsc import extract_payload, iter_embedded_payloads

logger = logging.getLogger(__name__)

PASSTHROUGH_TYPES = ("application/json", "text/plain", "text/markdown")
RSC_TYPE = "text/x-component"
HTML_TYPE = "text/html"


class FetchState(Enum):
    LOCAL_FETCH = "local_fetch"
    CLASSIFY = "classify"
    PASSTHROUGH = "passthrough"
    PAYLOAD_EXTRACT = "payload_extract"
    ARTICLE_EXTRACT = "article_extract"
    EMBEDDED_PAYLOAD_EXTRACT = "embedded_payload_extract"
    PROXY_FETCH = "proxy_fetch"
    PROXY_CLASSIFY = "proxy_classify"
    RETURN = "return"
    ERROR_RETURN = "error_return"


TERMINAL_STATES = frozenset({FetchState.RETURN, FetchState.ERROR_RETURN})

TRANSITIONS: Dict[FetchState, FrozenSet[FetchState]] = {
    FetchState.LOCAL_FETCH: frozenset({FetchState.CLASSIFY}),
    FetchState.CLASSIFY: frozenset({
        FetchState.PASSTHROUGH,
        FetchState.PAYLOAD_EXTRACT,
        FetchState.ARTICLE_EXTRACT,
        FetchState.PROXY_FETCH,
    }),
    FetchState.PASSTHROUGH: frozenset({FetchState.RETURN}),
    FetchState.PAYLOAD_EXTRACT: frozenset({
        FetchState.RETURN,
        FetchState.ARTICLE_EXTRACT,
        FetchState.PROXY_FETCH,
    }),
    FetchState.ARTICLE_EXTRACT: frozenset({
        FetchState.RETURN,
        FetchState.EMBEDDED_PAYLOAD_EXTRACT,
    }),
    FetchState.EMBEDDED_PAYLOAD_EXTRACT: frozenset({
        FetchState.RETURN,
        FetchState.PROXY_FETCH,
    }),
    FetchState.PROXY_FETCH: frozenset({FetchState.PROXY_CLASSIFY}),
    FetchState.PROXY_CLASSIFY: frozenset({FetchState.RETURN, FetchState.ERROR_RETURN}),
}


@dataclass(frozen=True)
class FetchOutcome:
    url: str
    text: str
    is_error: bool = False
    strategy: str = ""
    status_code: int = 0
    content_type: str = ""

    def details(self) -> dict:
        return {
            "url": self.url,
            "strategy": self.strategy,
            "status_code": self.status_code,
            "content_type": self.content_type,
        }


def proxy_url(url: str) -> str:
    return f"{settings.READER_PROXY_URL}{url}"


def error_message(error: Exception) -> str:
    return (
        f"Error fetching URL: {error}\n\n"
        f'Please try using the "{settings.FALLBACK_TOOL}" tool to access this page.'
    )


def best_embedded_payload(html: str, min_chars: int) -> Optional[str]:
    """First RSC payload inlined in a <script> that yields more than min_chars."""
    with closing(iter_embedded_payloads(html)) as payloads:
        for payload in payloads:
            text = extract_payload(payload)
            if len(text) > min_chars:
                return text
    return None


Fetcher = Callable[..., Awaitable[FetchResult]]


class FetchPipeline:
    """One fetch_url invocation. Not reusable across URLs."""

    def __init__(
        self,
        url: str,
        cancellation: Optional[CancellationToken] = None,
        fetcher: Optional[Fetcher] = None,
    ):
        self.url = url
        self.cancellation = cancellation
        self._fetch = fetcher or fetch_content
        self._local: Optional[FetchResult] = None
        self._proxy: Optional[FetchResult] = None
        self._outcome: Optional[FetchOutcome] = None
        self._handlers = {
            FetchState.LOCAL_FETCH: self._local_fetch,
            FetchState.CLASSIFY: self._classify,
            FetchState.PASSTHROUGH: self._passthrough,
            FetchState.PAYLOAD_EXTRACT: self._payload_extract,
            FetchState.ARTICLE_EXTRACT: self._article_extract,
            FetchState.EMBEDDED_PAYLOAD_EXTRACT: self._embedded_payload_extract,
            FetchState.PROXY_FETCH: self._proxy_fetch,
            FetchState.PROXY_CLASSIFY: self._proxy_classify,
        }

    async def run(self) -> FetchOutcome:
        state = FetchState.LOCAL_FETCH
        try:
            while state not in TERMINAL_STATES:
                next_state = await self._handlers[state]()
                if next_state not in TRANSITIONS[state]:
                    raise RuntimeError(f"Illegal fetch transition {state.name} -> {next_state.name}")
                logger.debug("fetch %s: %s -> %s", self.url, state.name, next_state.name)
                state = next_state
        except Exception as e:
            logger.debug("fetch %s failed in %s: %s", self.url, state.name, e)
            self._outcome = FetchOutcome(url=self.url, text=error_message(e), is_error=True, strategy="error")

        return self._outcome

    def _finish(self, text: str, strategy: str, source: FetchResult) -> FetchState:
        self._outcome = FetchOutcome(
            url=self.url,
            text=text,
            strategy=strategy,
            status_code=source.status_code,
            content_type=source.content_type,
        )
        return FetchState.RETURN

    def _fail(self, error: Exception, source: FetchResult) -> FetchState:
        self._outcome = FetchOutcome(
            url=self.url,
            text=str(error),
            is_error=True,
            strategy="proxy",
            status_code=source.status_code,
            content_type=source.content_type,
        )
        return FetchState.ERROR_RETURN

    async def _local_fetch(self) -> FetchState:
        self._local = await self._fetch(self.url, {}, self.cancellation)
        return FetchState.CLASSIFY

    async def _classify(self) -> FetchState:
        local = self._local
        if is_blocked(local.status_code, local.body):
            logger.info("Blocked fetching %s (status %s), using reader proxy", self.url, local.status_code)
            return FetchState.PROXY_FETCH
        if not local.ok:
            return FetchState.PROXY_FETCH

        content_type = local.content_type.lower()
        if any(t in content_type for t in PASSTHROUGH_TYPES):
            return FetchState.PASSTHROUGH
        if RSC_TYPE in content_type:
            return FetchState.PAYLOAD_EXTRACT
        if HTML_TYPE in content_type:
            return FetchState.ARTICLE_EXTRACT
        return FetchState.PROXY_FETCH

    async def _passthrough(self) -> FetchState:
        return self._finish(self._local.body, "passthrough", self._local)

    async def _payload_extract(self) -> FetchState:
        text = await asyncio.to_thread(extract_payload, self._local.body)
        if len(text) > settings.MIN_PAYLOAD_CHARS:
            return self._finish(text, "rsc", self._local)
        if HTML_TYPE in self._local.content_type.lower():
            return FetchState.ARTICLE_EXTRACT
        return FetchState.PROXY_FETCH

    async def _article_extract(self) -> FetchState:
        outcome = await asyncio.to_thread(extract_article, self._local.body, self.url)
        if outcome.is_text:
            return self._finish(outcome.content, "readability", self._local)
        logger.debug("No article in %s: %s", self.url, outcome.reason)
        return FetchState.EMBEDDED_PAYLOAD_EXTRACT

    async def _embedded_payload_extract(self) -> FetchState:
        text = await asyncio.to_thread(best_embedded_payload, self._local.body, settings.MIN_PAYLOAD_CHARS)
        if text is not None:
            return self._finish(text, "embedded_rsc", self._local)
        return FetchState.PROXY_FETCH

    async def _proxy_fetch(self) -> FetchState:
        # Fresh redirect budget, default headers only
        self._proxy = await self._fetch(proxy_url(self.url), {}, self.cancellation)
        return FetchState.PROXY_CLASSIFY

    async def _proxy_classify(self) -> FetchState:
        proxy = self._proxy
        if not proxy.ok:
            return self._fail(
                UpstreamStatusError(
                    proxy.status_code,
                    "Failed to fetch content via local parser and Jina Reader "
                    f"(Status: {proxy.status_code}).\n"
                    f'Please use the "{settings.FALLBACK_TOOL}" tool.',
                ),
                proxy,
            )
        if is_blocked(proxy.status_code, proxy.body):
            return self._fail(
                BlockedError(
                    "Unable to fetch content due to access restrictions (Jina Reader also blocked).\n"
                    f'Please use the "{settings.FALLBACK_TOOL}" tool to access this page.'
                ),
                proxy,
            )
        return self._finish(proxy.body, "proxy", proxy)


async def fetch_url(url: str, cancellation: Optional[CancellationToken] = None) -> FetchOutcome:
    """Run the full fallback chain for one URL. Never raises on fetch errors."""
    return await FetchPipeline(url, cancellation).run()
