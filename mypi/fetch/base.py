from dataclasses import dataclass
from enum import Enum
from typing import Protocol


@dataclass(frozen=True)
class FetchResult:
    body: str
    content_type: str
    status_code: int  # 0 when the transport gave no status

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


class CancellationToken(Protocol):
    """Host-owned liveness signal. asyncio.Event satisfies it."""

    def is_set(self) -> bool:
        ...


class OutcomeKind(str, Enum):
    TEXT = "text"
    NOT_APPLICABLE = "not_applicable"
    FAILED = "failed"


@dataclass(frozen=True)
class ExtractionOutcome:
    """Result of one extraction strategy. Only TEXT carries content."""

    kind: OutcomeKind
    content: str = ""
    reason: str = ""

    @classmethod
    def text(cls, content: str) -> "ExtractionOutcome":
        return cls(OutcomeKind.TEXT, content=content)

    @classmethod
    def not_applicable(cls, reason: str = "") -> "ExtractionOutcome":
        return cls(OutcomeKind.NOT_APPLICABLE, reason=reason)

    @classmethod
    def failed(cls, reason: str) -> "ExtractionOutcome":
        return cls(OutcomeKind.FAILED, reason=reason)

    @property
    def is_text(self) -> bool:
        return self.kind is OutcomeKind.TEXT
