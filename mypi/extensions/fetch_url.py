"""Extension: fetch_url

Fetch a URL and convert it to Markdown, falling back through RSC parsing,
readability and finally a remote reader proxy.
"""

from typing import Any, Mapping, Optional

from mypi.extensions.base import ExtensionAPI, ProgressCallback, ToolDefinition
from mypi.fetch.base import CancellationToken
from mypi.fetch.pipeline import fetch_url
from mypi.schemas import FetchUrlParams, ToolResult

NAME = "fetch_url"


async def execute(
    tool_call_id: str,
    params: FetchUrlParams,
    cancellation: Optional[CancellationToken] = None,
    on_update: Optional[ProgressCallback] = None,
    ctx: Optional[Mapping[str, Any]] = None,
) -> ToolResult:
    outcome = await fetch_url(params.url, cancellation)
    return ToolResult.from_text(outcome.text, is_error=outcome.is_error, details=outcome.details())


def register(api: ExtensionAPI) -> None:
    api.register_tool(ToolDefinition(
        name=NAME,
        label="Fetch URL (Smart)",
        description=(
            "Fetch a URL and convert it to Markdown. Tries local HTML parsing (Readability), "
            "then RSC parsing, then falls back to Jina Reader. Returns the content directly."
        ),
        parameters=FetchUrlParams,
        execute=execute,
    ))
