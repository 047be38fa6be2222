"""
Labor and material estimation strategies.

Each strategy validates its inputs before touching the node, so a rejected
application leaves the node exactly as it was. Amounts are kept at full
precision; rounding happens when totals are emitted.
"""

from __future__ import annotations

from typing import Any, Iterable, List, Optional

from .coerce import as_amount, as_count
from .models import CostCodeNode, EstimationType, MaterialEstimationType, MaterialItem


class EstimationError(ValueError):
    """Raised when an estimate cannot be applied to a node."""


def _require_rate(value: Any, label: str) -> float:
    rate = as_count(value)
    if rate is None:
        rate = 0.0
    if rate < 0:
        raise EstimationError(f"{label} cannot be negative (got {rate})")
    return rate


def _require_divisor(value: Any, label: str) -> float:
    count = as_count(value)
    if count is None or count <= 0:
        raise EstimationError(f"Project {label} must be greater than zero (got {value!r})")
    return count


def _clear_unit_labor(node: CostCodeNode) -> None:
    node.labor_amount_per_room = None
    node.rooms_count = None
    node.labor_amount_per_area = None
    node.area_count = None


def apply_manual(node: CostCodeNode, labor: Any, material: Optional[Any] = None) -> CostCodeNode:
    """
    Set labor (and optionally material) directly.

    Passing ``material=None`` leaves the material side untouched; a value
    switches material back to a manual amount and drops any item rows.
    """
    labor_amount = _require_rate(labor, "Labor amount")
    material_amount = None if material is None else _require_rate(material, "Material amount")

    _clear_unit_labor(node)
    node.estimation_type = EstimationType.MANUAL
    node.labor_amount = labor_amount
    if material_amount is not None:
        node.material_estimation_type = MaterialEstimationType.MANUAL
        node.material_items = []
        node.material_amount = material_amount
    return node


def apply_material(node: CostCodeNode, material: Any) -> CostCodeNode:
    """Manual material amount; labor is left as it is."""
    material_amount = _require_rate(material, "Material amount")
    node.material_estimation_type = MaterialEstimationType.MANUAL
    node.material_items = []
    node.material_amount = material_amount
    return node


def apply_per_room(node: CostCodeNode, amount_per_room: Any, rooms_count: Any) -> CostCodeNode:
    rate = _require_rate(amount_per_room, "Labor amount per room")
    rooms = _require_divisor(rooms_count, "rooms count")

    _clear_unit_labor(node)
    node.estimation_type = EstimationType.PER_ROOM
    node.labor_amount_per_room = rate
    node.rooms_count = rooms
    node.labor_amount = rate * rooms
    return node


def apply_per_area(node: CostCodeNode, amount_per_area: Any, area_count: Any) -> CostCodeNode:
    rate = _require_rate(amount_per_area, "Labor amount per area")
    area = _require_divisor(area_count, "area")

    _clear_unit_labor(node)
    node.estimation_type = EstimationType.PER_AREA
    node.labor_amount_per_area = rate
    node.area_count = area
    node.labor_amount = rate * area
    return node


def apply_item_wise(node: CostCodeNode, items: Iterable[Any]) -> CostCodeNode:
    """Replace material rows; the labor estimation type is left alone."""
    rows: List[MaterialItem] = [
        item if isinstance(item, MaterialItem) else MaterialItem.from_dict(item) for item in items
    ]
    node.material_estimation_type = MaterialEstimationType.ITEM_WISE
    node.material_items = rows
    node.material_amount = sum(as_amount(row.line_total) for row in rows)
    return node


def recompute_labor(node: CostCodeNode) -> CostCodeNode:
    """Re-derive labor after a unit rate or count was edited in place."""
    if node.estimation_type is EstimationType.PER_ROOM:
        return apply_per_room(node, node.labor_amount_per_room, node.rooms_count)
    if node.estimation_type is EstimationType.PER_AREA:
        return apply_per_area(node, node.labor_amount_per_area, node.area_count)
    return node
