import uuid
from typing import Any, Dict

from fastapi import APIRouter, Body, HTTPException, Request, status
from pydantic import ValidationError

from mypi.extensions.base import ExtensionAPI, UnknownToolError
from mypi.schemas import ToolResult

router = APIRouter()

def get_extension_api(request: Request) -> ExtensionAPI:
    return request.app.state.extensions

@router.get("/tools")
async def list_tools(request: Request):
    """List registered tools with their parameter schemas"""
    api = get_extension_api(request)
    return {"tools": [tool.describe() for tool in api.list_tools()]}

@router.post("/tools/{name}", response_model=ToolResult, response_model_exclude_none=True)
async def invoke_tool(name: str, request: Request, params: Dict[str, Any] = Body(...)):
    """
    Execute a tool.

    Tool-level failures (blocked pages, search errors) come back as 200 with
    isError set; only unknown tools and invalid parameters are HTTP errors.
    """
    api = get_extension_api(request)
    try:
        return await api.invoke(name, f"http-{uuid.uuid4().hex}", params)
    except UnknownToolError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Unknown tool: {name}"
        )
    except ValidationError as e:
        raise HTTPException(
            status_code=422,
            detail=e.errors(include_url=False, include_context=False)
        )

@router.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "service": "mypi tools"}
