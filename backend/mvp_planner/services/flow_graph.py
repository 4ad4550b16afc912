from __future__ import annotations

from typing import Any, Dict


def remove_node(graph: Dict[str, Any], node_id: str) -> Dict[str, Any]:
    """Return a new graph without ``node_id`` and without its incident edges.

    Raises ``KeyError`` when the node does not exist.
    """
    nodes = list(graph.get("nodes") or [])
    edges = list(graph.get("edges") or [])
    if not any(n.get("id") == node_id for n in nodes):
        raise KeyError(node_id)

    return {
        "nodes": [n for n in nodes if n.get("id") != node_id],
        "edges": [e for e in edges if e.get("source") != node_id and e.get("target") != node_id],
    }


def node_count(graph: Dict[str, Any]) -> int:
    return len((graph or {}).get("nodes") or [])
