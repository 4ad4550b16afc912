"""Mermaid diagram sanitization and the deterministic fallback payload."""

from __future__ import annotations

import re
from typing import Any, Dict, Optional

DIAGRAM_KEYS = ("userFlowDiagram", "dataFlowDiagram", "systemArchitectureDiagram")

DEFAULT_HEADER = "flowchart LR"
EMPTY_DIAGRAM = "flowchart LR\n  A[Error] --> B[No diagram available]"
MISSING_EXPLANATION = "Explanation not available."

FALLBACK_DIAGRAMS = {
    "userFlowDiagram": "flowchart LR\n  A[Start] --> B[User Action] --> C[Result]",
    "dataFlowDiagram": "flowchart LR\n  A[Data Source] --> B[Processing] --> C[Storage]",
    "systemArchitectureDiagram": "flowchart LR\n  A[Frontend] --> B[API] --> C[Database]",
}
FALLBACK_EXPLANATION_PREFIX = (
    "Basic diagram structure. The actual diagram generation encountered an error: "
)

_OPEN_FENCE_RE = re.compile(r"```mermaid\n?")
_CLOSE_FENCE_RE = re.compile(r"\n?```")


def sanitize_diagram(diagram: Optional[Any]) -> str:
    """Return a renderable Mermaid flowchart string.

    Total and idempotent: the result is never empty and always starts with
    ``flowchart``; feeding it back in returns it unchanged.
    """
    if not isinstance(diagram, str):
        return EMPTY_DIAGRAM

    cleaned = _CLOSE_FENCE_RE.sub("", _OPEN_FENCE_RE.sub("", diagram)).strip()
    if not cleaned:
        return EMPTY_DIAGRAM

    if not cleaned.startswith("flowchart"):
        cleaned = f"{DEFAULT_HEADER}\n{cleaned}"
    return cleaned


def sanitize_diagram_set(parsed: Any) -> Dict[str, str]:
    """Sanitize the three diagrams of a parsed model reply independently."""
    source = parsed if isinstance(parsed, dict) else {}
    result = {key: sanitize_diagram(source.get(key)) for key in DIAGRAM_KEYS}
    explanation = source.get("explanation")
    result["explanation"] = explanation if isinstance(explanation, str) and explanation.strip() else MISSING_EXPLANATION
    return result


def fallback_diagram_set(error_message: str) -> Dict[str, str]:
    """Placeholder diagrams returned when generation fails for any reason."""
    payload = dict(FALLBACK_DIAGRAMS)
    payload["explanation"] = FALLBACK_EXPLANATION_PREFIX + (error_message or "Unknown error occurred")
    return payload
