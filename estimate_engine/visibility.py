"""
Deletion-aware views of the estimate tree.

Deleted ids live in a side set; nothing here mutates stored nodes. Views are
built from shallow copies whose ``children`` lists are filtered, so leaves in
a view are the same objects as in the stored tree.
"""

from __future__ import annotations

from dataclasses import replace
from typing import AbstractSet, Iterable, List, Optional, Set

from .models import CostCodeNode, Division

OTHER_COSTS_ID = "other-costs"
OTHER_COSTS_NUMBER = "OTHER"
OTHER_COSTS_NAME = "OTHER COSTS"


def prune_node(node: CostCodeNode, deleted_ids: AbstractSet[str]) -> Optional[CostCodeNode]:
    if node.id in deleted_ids:
        return None
    if not node.children:
        return node
    children = [c for c in (prune_node(child, deleted_ids) for child in node.children) if c]
    return replace(node, children=children)


def filter_divisions(divisions: Iterable[Division], deleted_ids: AbstractSet[str]) -> List[Division]:
    """All divisions with at least one visible cost code, excluded ones included."""
    visible = []
    for division in divisions:
        cost_codes = [
            c for c in (prune_node(code, deleted_ids) for code in division.cost_codes or []) if c
        ]
        if cost_codes:
            visible.append(replace(division, cost_codes=cost_codes))
    return visible


def visible_divisions(divisions: Iterable[Division], deleted_ids: AbstractSet[str]) -> List[Division]:
    """Divisions that count toward the main totals."""
    return [d for d in filter_divisions(divisions, deleted_ids) if not d.exclude_from_main_totals]


def other_cost_divisions(divisions: Iterable[Division], deleted_ids: AbstractSet[str]) -> List[Division]:
    return [d for d in filter_divisions(divisions, deleted_ids) if d.exclude_from_main_totals]


def other_costs_division(
    divisions: Iterable[Division], deleted_ids: AbstractSet[str]
) -> Optional[Division]:
    """Pseudo division collecting every visible excluded division's cost codes."""
    excluded = other_cost_divisions(divisions, deleted_ids)
    if not excluded:
        return None
    cost_codes: List[CostCodeNode] = []
    for division in excluded:
        cost_codes.extend(division.cost_codes or [])
    return Division(
        id=OTHER_COSTS_ID,
        number=OTHER_COSTS_NUMBER,
        name=OTHER_COSTS_NAME,
        order=max(d.order for d in excluded) + 1,
        exclude_from_main_totals=True,
        cost_codes=cost_codes,
    )


def delete_node(deleted_ids: Set[str], node_id: str) -> None:
    deleted_ids.add(node_id)


def restore_node(deleted_ids: Set[str], node_id: str) -> None:
    deleted_ids.discard(node_id)
