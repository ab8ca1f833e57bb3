"""
JSON envelope extraction from model text.

Models are told to "return ONLY valid JSON" and still wrap it in prose or
markdown fences. Take the span from the first '{' to the last '}' and parse
only that. Never raises — callers get an Envelope with either data or an
error string.
"""

import json
from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class Envelope:
    data: Optional[dict] = None
    error: Optional[str] = None
    raw_span: str = field(default="", repr=False)

    @property
    def ok(self) -> bool:
        return self.data is not None


def extract_json_object(text) -> Envelope:
    """Parse the outermost {...} span of a free-form reply."""
    if not text or not str(text).strip():
        return Envelope(error="empty text")

    text = str(text)
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end == -1 or end < start:
        return Envelope(error="no JSON object found")

    span = text[start:end + 1]
    try:
        parsed = json.loads(span)
    except json.JSONDecodeError as e:
        return Envelope(error=f"invalid JSON: {e.msg}", raw_span=span)

    if not isinstance(parsed, dict):
        return Envelope(error="JSON is not an object", raw_span=span)

    return Envelope(data=parsed, raw_span=span)
