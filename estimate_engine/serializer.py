"""
Flat line-item serialization.

Only leaves of the visible tree are emitted; an aggregator never appears in
the output. Reloading goes through the hierarchy populator, which takes the
tree shape from the catalog.
"""

from __future__ import annotations

from dataclasses import replace
from typing import AbstractSet, Any, Dict, Iterable, List, Mapping

from .coerce import as_amount, round_money
from .contingency import labor_contingency, material_contingency
from .hierarchy import from_line_items
from .models import CostCodeNode, Division, LineItem
from .visibility import filter_divisions

__all__ = [
    "from_line_items",
    "line_items_from_records",
    "line_items_to_records",
    "to_line_items",
]


def _line_item(
    node: CostCodeNode,
    division: Division,
    parent_id,
    is_sub: bool,
    default_percent: float,
) -> LineItem:
    labor = as_amount(node.labor_amount)
    material = as_amount(node.material_amount)
    contingency = labor_contingency(node, default_percent) + material_contingency(node, default_percent)
    return LineItem(
        cost_code_id=node.id,
        cost_code_number=node.number,
        cost_code_name=node.name,
        division_id=division.id,
        division_name=division.name,
        parent_cost_code_id=parent_id,
        description=node.description,
        is_sub_cost_code=is_sub,
        estimation_type=node.estimation_type,
        labor_amount=round_money(labor),
        labor_amount_per_room=node.labor_amount_per_room,
        rooms_count=node.rooms_count,
        labor_amount_per_area=node.labor_amount_per_area,
        area_count=node.area_count,
        material_estimation_type=node.material_estimation_type,
        material_amount=round_money(material),
        material_items=[replace(item, extra=dict(item.extra)) for item in node.material_items],
        contingency_enabled=node.contingency_enabled,
        contingency_percentage=node.contingency_percentage,
        contingency_amount=round_money(contingency),
        total_amount=round_money(labor + material),
    )


def _emit(node, division, parent_id, depth, default_percent, out: List[LineItem]) -> None:
    if node.is_leaf:
        out.append(_line_item(node, division, parent_id, depth > 0, default_percent))
        return
    for child in node.children:
        _emit(child, division, node.id, depth + 1, default_percent, out)


def to_line_items(
    divisions: Iterable[Division],
    deleted_ids: AbstractSet[str],
    default_percent: float = 0.0,
) -> List[LineItem]:
    """One line item per visible leaf, main and excluded divisions alike."""
    items: List[LineItem] = []
    for division in filter_divisions(divisions, deleted_ids):
        for cost_code in division.cost_codes or []:
            _emit(cost_code, division, None, 0, default_percent, items)
    return items


def line_items_to_records(items: Iterable[LineItem]) -> List[Dict[str, Any]]:
    return [item.to_dict() for item in items]


def line_items_from_records(records: Iterable[Mapping[str, Any]]) -> List[LineItem]:
    """Parse saved records, skipping ones with no cost code reference."""
    return [LineItem.from_dict(r) for r in records if r.get("cost_code_id") or r.get("cost_code_uuid")]
