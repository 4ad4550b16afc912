"""Competitive-analysis grid operations.

Rows are ``CompetitiveFeature`` records. Column ``-1`` is "your MVP"; column
``k >= 0`` is the k-th competitor of the project in creation order. Cells are
keyed by competitor id, so deleting a competitor never shifts other columns.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional, Sequence

YOUR_MVP_COLUMN = -1


def toggle_cell(feature: Any, column: int, competitor_ids: Sequence[str]) -> None:
    """Flip exactly one cell of ``feature``.

    The mapping is replaced rather than mutated so JSON columns register the
    change.

    Raises
    ------
    ValueError
        If ``column`` is neither -1 nor a valid competitor index.
    """
    if column == YOUR_MVP_COLUMN:
        feature.your_mvp = not feature.your_mvp
        return

    if column < 0 or column >= len(competitor_ids):
        raise ValueError(f"Column {column} is out of range for {len(competitor_ids)} competitors")

    key = str(competitor_ids[column])
    cells: Dict[str, bool] = dict(feature.competitors_has_feature or {})
    cells[key] = not cells.get(key, False)
    feature.competitors_has_feature = cells


def remove_competitor_key(features: Iterable[Any], competitor_id: str) -> int:
    """Drop ``competitor_id`` from every row. Returns how many rows changed."""
    key = str(competitor_id)
    changed = 0
    for feature in features:
        cells = feature.competitors_has_feature or {}
        if key in cells:
            feature.competitors_has_feature = {k: v for k, v in cells.items() if k != key}
            changed += 1
    return changed



def unknown_competitor_keys(cells: Optional[Dict[str, bool]], competitor_ids: Iterable[str]) -> List[str]:
    """Keys of ``cells`` that are not ids of the given competitors, sorted."""
    known = {str(cid) for cid in competitor_ids}
    return sorted(k for k in (cells or {}) if k not in known)
