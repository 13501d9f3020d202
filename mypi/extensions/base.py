"""
Tool plugin contract.

An extension module exposes ``register(api)`` and calls ``api.register_tool``
for every tool it provides. Hosts invoke tools through ``ExtensionAPI.invoke``.
"""

import importlib
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Mapping, Optional, Type

from pydantic import BaseModel

from mypi.fetch.base import CancellationToken
from mypi.schemas import ToolResult

ProgressCallback = Callable[[ToolResult], None]
ToolExecute = Callable[
    [str, Any, Optional[CancellationToken], Optional[ProgressCallback], Optional[Mapping[str, Any]]],
    Awaitable[ToolResult],
]

DEFAULT_EXTENSIONS = (
    "mypi.extensions.searxng_search",
    "mypi.extensions.fetch_url",
)


@dataclass(frozen=True)
class ToolDefinition:
    name: str
    label: str
    description: str
    parameters: Type[BaseModel]
    execute: ToolExecute

    def describe(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "label": self.label,
            "description": self.description,
            "parameters": self.parameters.model_json_schema(),
        }


class UnknownToolError(KeyError):
    pass


class ExtensionAPI:
    def __init__(self):
        self._tools: Dict[str, ToolDefinition] = {}

    def register_tool(self, tool: ToolDefinition) -> None:
        if tool.name in self._tools:
            raise ValueError(f"Tool {tool.name!r} is already registered")
        self._tools[tool.name] = tool

    def get_tool(self, name: str) -> ToolDefinition:
        try:
            return self._tools[name]
        except KeyError:
            raise UnknownToolError(name) from None

    def list_tools(self) -> List[ToolDefinition]:
        return list(self._tools.values())

    async def invoke(
        self,
        name: str,
        tool_call_id: str,
        params: Mapping[str, Any],
        cancellation: Optional[CancellationToken] = None,
        on_update: Optional[ProgressCallback] = None,
        ctx: Optional[Mapping[str, Any]] = None,
    ) -> ToolResult:
        """
        Validate params against the tool's schema and execute it.

        Raises UnknownToolError or pydantic.ValidationError before the tool
        runs. Tool failures come back as results with isError set.
        """
        tool = self.get_tool(name)
        validated = tool.parameters.model_validate(params)
        return await tool.execute(tool_call_id, validated, cancellation, on_update, ctx)


def load_extensions(api: ExtensionAPI, modules: Iterable[str] = DEFAULT_EXTENSIONS) -> ExtensionAPI:
    for module_name in modules:
        importlib.import_module(module_name).register(api)
    return api
