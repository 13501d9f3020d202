"""Extension: web_search

Search the web through a SearXNG instance configured in mypi.toml and
return a trimmed-down JSON view of the results.
"""

import base64
import json
import logging
from typing import Any, Dict, List, Mapping, Optional, Tuple

import httpx

from mypi.core.config import SearxngConfig, load_searxng_config, settings
from mypi.core.errors import ConfigError, MypiError, SearchError
from mypi.extensions.base import ExtensionAPI, ProgressCallback, ToolDefinition
from mypi.fetch.base import CancellationToken
from mypi.fetch.http_fetcher import send_cancellable
from mypi.schemas import (
    Answer,
    Infobox,
    InfoboxUrl,
    SearchResponse,
    SearchResult,
    ToolResult,
    WebSearchParams,
)

logger = logging.getLogger(__name__)

NAME = "web_search"
DEFAULT_LIMIT = 10
MAX_SUGGESTIONS = 8


def build_search_request(config: SearxngConfig, params: WebSearchParams) -> httpx.Request:
    if not config.base_url:
        raise ConfigError("Error: SearXNG base URL is not configured. Please check mypi.toml.")

    query: Dict[str, str] = {"q": params.query, "format": "json"}
    if params.categories:
        query["categories"] = params.categories
    if params.language:
        query["language"] = params.language
    if params.time_range:
        query["time_range"] = params.time_range

    headers = {"Accept": "application/json", "User-Agent": settings.USER_AGENT}
    if config.auth_type == "basic" and config.username and config.password:
        credentials = base64.b64encode(f"{config.username}:{config.password}".encode()).decode()
        headers["Authorization"] = f"Basic {credentials}"
    elif config.auth_type == "bearer" and config.token:
        headers["Authorization"] = f"Bearer {config.token}"

    try:
        url = httpx.URL(config.base_url).join("search")
    except httpx.InvalidURL as e:
        raise ConfigError(f"Error: invalid SearXNG base URL {config.base_url!r}: {e}") from e
    return httpx.Request("GET", url, params=query, headers=headers)


def _mappings(items: Any) -> List[Mapping[str, Any]]:
    return [item for item in items or [] if isinstance(item, Mapping)]


def _answer(entry: Any) -> Optional[Answer]:
    # Older SearXNG releases send answers as bare strings
    if isinstance(entry, str):
        return Answer(answer=entry)
    if isinstance(entry, Mapping):
        return Answer(answer=entry.get("answer"), url=entry.get("url"), title=entry.get("title") or "Answer")
    return None


def reshape_response(data: Mapping[str, Any], limit: Optional[int]) -> SearchResponse:
    """Keep the fields an agent needs from a raw SearXNG JSON response."""
    answers = [a for a in map(_answer, data.get("answers") or []) if a is not None]
    infoboxes = [
        Infobox(
            title=i.get("infobox") or "Infobox",
            content=i.get("content"),
            attributes=[f"{attr.get('label')}: {attr.get('value')}" for attr in _mappings(i.get("attributes"))],
            urls=[InfoboxUrl(title=u.get("title"), url=u.get("url")) for u in _mappings(i.get("urls"))],
        )
        for i in _mappings(data.get("infoboxes"))
    ]
    suggestions = list(data.get("suggestions") or [])[:MAX_SUGGESTIONS]
    results = [
        SearchResult(
            title=r.get("title"),
            url=r.get("url"),
            content=r.get("content"),
            publishedDate=r.get("publishedDate"),
            engine=r.get("engine"),
            score=r.get("score"),
        )
        for r in _mappings(data.get("results"))[: limit or DEFAULT_LIMIT]
    ]

    return SearchResponse(
        query=data.get("query"),
        answers=answers or None,
        infoboxes=infoboxes or None,
        results=results,
        suggestions=suggestions or None,
    )


async def search(
    config: SearxngConfig,
    params: WebSearchParams,
    cancellation: Optional[CancellationToken] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Tuple[SearchResponse, Any]:
    """Run one query. Returns the reshaped response and number_of_results."""
    request = build_search_request(config, params)

    try:
        async with httpx.AsyncClient(timeout=settings.REQUEST_TIMEOUT, transport=transport) as client:
            response = await send_cancellable(client, request, cancellation)
    except httpx.TransportError as e:
        raise SearchError(f"Request failed: {e}") from e

    if not 200 <= response.status_code < 300:
        raise SearchError(f"SearXNG request failed with status code {response.status_code}: {response.text}")

    try:
        data = response.json()
        return reshape_response(data, params.limit), data.get("number_of_results")
    except (ValueError, AttributeError, TypeError) as e:
        raise SearchError(f"Failed to parse SearXNG response: {e}") from e


def make_execute(config: SearxngConfig):
    async def execute(
        tool_call_id: str,
        params: WebSearchParams,
        cancellation: Optional[CancellationToken] = None,
        on_update: Optional[ProgressCallback] = None,
        ctx: Optional[Mapping[str, Any]] = None,
    ) -> ToolResult:
        try:
            result, number_of_results = await search(config, params, cancellation)
        except MypiError as e:
            logger.warning("web_search %r failed: %s", params.query, e)
            return ToolResult.from_text(str(e), is_error=True, details={})

        payload = result.model_dump(exclude_none=True)
        return ToolResult.from_text(
            json.dumps(payload, indent=2, ensure_ascii=False),
            details={"query": result.query, "number_of_results": number_of_results, **payload},
        )

    return execute


def register(api: ExtensionAPI, config: Optional[SearxngConfig] = None) -> None:
    # Configuration is read once, when the extension is loaded
    config = config or load_searxng_config()
    api.register_tool(ToolDefinition(
        name=NAME,
        label="Web Search (SearXNG)",
        description=(
            "Search the web using a SearXNG instance. "
            "Returns search results with titles, URLs, and snippets."
        ),
        parameters=WebSearchParams,
        execute=make_execute(config),
    ))
