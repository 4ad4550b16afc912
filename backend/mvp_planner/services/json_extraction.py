"""Extract a JSON object from free-text generative-model output.

Models wrap their JSON in prose, in fenced code blocks, and sometimes leave
trailing commas behind. Every generation goes through ``extract_json`` so the
heuristic lives in one place.

Strategy, first match wins:
  a. a fenced ```json block
  b. the greedy span from the first ``{`` to the last ``}``
  c. the whole reply

The candidate is trimmed and trailing commas before ``}`` / ``]`` are removed
before parsing.
"""

from __future__ import annotations

import json
import re
from typing import Any

_FENCED_JSON_RE = re.compile(r"```json\s*\n([\s\S]*?)\n\s*```")
_BRACED_SPAN_RE = re.compile(r"(\{[\s\S]*\})")
_TRAILING_COMMA_RE = re.compile(r",\s*([}\]])")


class JSONExtractionError(ValueError):
    """Raised when no parseable JSON can be recovered from model output."""


def extract_json_text(raw: str) -> str:
    """Return the repaired JSON candidate string (not yet parsed)."""
    text = (raw or "").lstrip("\ufeff")

    match = _FENCED_JSON_RE.search(text) or _BRACED_SPAN_RE.search(text)
    candidate = match.group(1) if match else text

    return strip_trailing_commas(candidate.strip())


def strip_trailing_commas(text: str) -> str:
    return _TRAILING_COMMA_RE.sub(r"\1", text)


def extract_json(raw: str) -> Any:
    """Parse the JSON embedded in ``raw``.

    Raises
    ------
    JSONExtractionError
        If the reply is empty or the candidate is not valid JSON.
    """
    if not raw or not raw.strip():
        raise JSONExtractionError("Model returned an empty response")

    candidate = extract_json_text(raw)
    try:
        return json.loads(candidate)
    except json.JSONDecodeError as exc:
        raise JSONExtractionError(f"Model response is not valid JSON: {exc}") from exc
