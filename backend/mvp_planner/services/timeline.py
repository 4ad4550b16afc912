"""Milestone ordering.

``order`` is zero-based and contiguous and always matches the milestone's
position in the list sorted by order.
"""

from __future__ import annotations

from typing import Any, List, Sequence


def _sorted(milestones: Sequence[Any]) -> List[Any]:
    return sorted(milestones, key=lambda m: m.order)


def renumber(milestones: Sequence[Any]) -> List[Any]:
    ordered = _sorted(milestones)
    for i, milestone in enumerate(ordered):
        milestone.order = i
    return ordered


def move_milestone(milestones: Sequence[Any], index: int, direction: str) -> List[Any]:
    """Swap the milestone at ``index`` with its neighbour in ``direction``.

    Moving the first one up or the last one down changes nothing.
    """
    ordered = renumber(milestones)
    if not 0 <= index < len(ordered):
        raise IndexError(f"Milestone index {index} out of range")
    if direction not in ("up", "down"):
        raise ValueError(f"Unknown direction: {direction}")

    neighbour = index - 1 if direction == "up" else index + 1
    if not 0 <= neighbour < len(ordered):
        return ordered

    a, b = ordered[index], ordered[neighbour]
    a.order, b.order = b.order, a.order
    return _sorted(ordered)


def remove_milestone(milestones: Sequence[Any], index: int) -> List[Any]:
    """Remove the milestone at ``index`` and renumber the rest from 0."""
    ordered = _sorted(milestones)
    if not 0 <= index < len(ordered):
        raise IndexError(f"Milestone index {index} out of range")
    del ordered[index]
    return renumber(ordered)
