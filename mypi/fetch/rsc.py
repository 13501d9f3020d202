"""
React Server Component (RSC) payload parsing.

The flight format streams rows of ``<index>:<value>`` where the value is
usually JSON. The grammar is not stable across framework versions, so the
parser here does not rebuild the component tree. It only recovers the
human-readable strings scattered through the rows, in the order they appear.
"""

import json
import re
from typing import Any, Iterator, List

from bs4 import BeautifulSoup

# Next.js app router inlines flight rows into the page with this call
EMBEDDED_PAYLOAD_MARKER = "self.__next_f.push"

MIN_FRAGMENT_CHARS = 20

_ROW_RE = re.compile(r"^(\d+):(.+)$")
_QUOTED_RE = re.compile(r'"((?:[^"\\]|\\.)*)"')
_PUSH_RE = re.compile(
    r'self\.__next_f\.push\(\[\s*\d+\s*,\s*("(?:[^"\\]|\\.)*")\s*\]\)'
)

_INVALID = object()


def _parse_json(text: str) -> Any:
    try:
        return json.loads(text)
    except (ValueError, RecursionError):
        return _INVALID


def _is_text(value: Any, excluded_prefixes: str = "$@") -> bool:
    # $ and @ start internal references ("$L1", "@2"), never prose
    return (
        isinstance(value, str)
        and len(value) > MIN_FRAGMENT_CHARS
        and not value.startswith(tuple(excluded_prefixes))
    )


def _fragments_from_row(payload: str) -> List[str]:
    parsed = _parse_json(payload)

    if parsed is _INVALID:
        # Row is not valid JSON (truncated, or a non-JSON row type); salvage
        # any string literals it contains
        found = []
        for match in _QUOTED_RE.finditer(payload):
            literal = _parse_json(match.group(0))
            if _is_text(literal):
                found.append(literal)
        return found

    if isinstance(parsed, str):
        return [parsed] if _is_text(parsed) else []

    if isinstance(parsed, list):
        return [item for item in parsed if _is_text(item, "$@[")]

    return []


def extract_payload(raw: str) -> str:
    """
    Pull readable text out of an RSC payload.

    Never raises: rows that do not parse are skipped or salvaged. Returns the
    kept fragments separated by blank lines, possibly an empty string.
    """
    extracted: List[str] = []

    for line in raw.split("\n"):
        trimmed = line.strip()
        if not trimmed or trimmed.startswith("#"):
            continue

        row = _ROW_RE.match(trimmed)
        if not row:
            continue

        # The row index is only used to recognise a row; fragments keep
        # encounter order
        extracted.extend(_fragments_from_row(row.group(2)))

    return "\n\n".join(extracted)


def unwrap_pushed_chunks(script_text: str) -> str:
    """Concatenate the string chunks passed to self.__next_f.push([n, "..."])."""
    chunks = []
    for match in _PUSH_RE.finditer(script_text):
        chunk = _parse_json(match.group(1))
        if isinstance(chunk, str):
            chunks.append(chunk)
    return "".join(chunks)


def iter_embedded_payloads(html: str) -> Iterator[str]:
    """
    Yield candidate RSC payloads found in inline <script> elements.

    For each script carrying the embedded-payload marker the raw script text
    comes first, followed by the unwrapped pushed chunks when there are any.
    """
    soup = BeautifulSoup(html, "html.parser")
    try:
        for script in soup.find_all("script"):
            text = str(script.string or script.get_text())
            if not text or EMBEDDED_PAYLOAD_MARKER not in text:
                continue
            yield text
            unwrapped = unwrap_pushed_chunks(text)
            if unwrapped:
                yield unwrapped
    finally:
        soup.decompose()
