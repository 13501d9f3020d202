from pydantic import BaseModel, Field
from typing import Any, Dict, List, Literal, Optional

class TextContent(BaseModel):
    type: Literal["text"] = "text"
    text: str

class ToolResult(BaseModel):
    content: List[TextContent]
    isError: Optional[bool] = Field(None, description="Set when the tool failed")
    details: Optional[Dict[str, Any]] = None

    @classmethod
    def from_text(cls, text: str, is_error: bool = False, details: Optional[Dict[str, Any]] = None) -> "ToolResult":
        return cls(
            content=[TextContent(text=text)],
            isError=True if is_error else None,
            details=details,
        )

    @property
    def text(self) -> str:
        return "\n".join(part.text for part in self.content)

class FetchUrlParams(BaseModel):
    url: str = Field(description="The URL to fetch")

class WebSearchParams(BaseModel):
    query: str = Field(description="The search query")
    categories: Optional[str] = Field(
        None, description="Comma-separated list of categories (e.g., general, news, science)"
    )
    language: Optional[str] = Field(None, description="Search language (e.g., en-US, de-DE)")
    time_range: Optional[Literal["day", "week", "month", "year"]] = Field(
        None, description="Time range for results"
    )
    limit: Optional[int] = Field(None, description="Number of results to return (default: 10)")

class Answer(BaseModel):
    answer: Optional[str] = None
    url: Optional[str] = None
    title: str = "Answer"

class InfoboxUrl(BaseModel):
    title: Optional[str] = None
    url: Optional[str] = None

class Infobox(BaseModel):
    title: str = "Infobox"
    content: Optional[str] = None
    attributes: List[str] = Field(default_factory=list, description="'label: value' pairs")
    urls: List[InfoboxUrl] = Field(default_factory=list)

class SearchResult(BaseModel):
    title: Optional[str] = None
    url: Optional[str] = None
    content: Optional[str] = None
    publishedDate: Optional[str] = None
    engine: Optional[str] = None
    score: Optional[float] = None

class SearchResponse(BaseModel):
    query: Optional[str] = None
    answers: Optional[List[Answer]] = None
    infoboxes: Optional[List[Infobox]] = None
    results: List[SearchResult] = Field(default_factory=list)
    suggestions: Optional[List[str]] = None
