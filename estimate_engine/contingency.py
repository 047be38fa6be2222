"""
Contingency apportionment.

Contingency attaches exactly once, at the leaf where a dollar amount
originates. Aggregator nodes only sum their children; their own
``contingency_enabled`` / ``contingency_percentage`` are ignored.
"""

from __future__ import annotations

from typing import Any, Callable, Iterable, Tuple

from .coerce import as_amount, as_percentage
from .models import CostCodeNode, Division


def contingency_percent(enabled: bool, percentage: Any, default_percent: float) -> float:
    if not enabled:
        return 0.0
    override = as_percentage(percentage)
    if override is None:
        return as_amount(default_percent)
    return override


def effective_contingency_percent(node: CostCodeNode, default_percent: float) -> float:
    return contingency_percent(node.contingency_enabled, node.contingency_percentage, default_percent)


def _leaf_contingency(
    node: CostCodeNode,
    default_percent: float,
    amount: Callable[[CostCodeNode], float],
) -> float:
    if node.children:
        return sum(_leaf_contingency(child, default_percent, amount) for child in node.children)
    return amount(node) * effective_contingency_percent(node, default_percent) / 100.0


def labor_contingency(node: CostCodeNode, default_percent: float) -> float:
    return _leaf_contingency(node, default_percent, lambda n: as_amount(n.labor_amount))


def material_contingency(node: CostCodeNode, default_percent: float) -> float:
    return _leaf_contingency(node, default_percent, lambda n: as_amount(n.material_amount))


def division_contingency(division: Division, default_percent: float) -> Tuple[float, float]:
    """(labor, material) contingency summed over a division's top-level codes."""
    cost_codes = division.cost_codes or []
    return (
        sum(labor_contingency(code, default_percent) for code in cost_codes),
        sum(material_contingency(code, default_percent) for code in cost_codes),
    )


def total_contingency(divisions: Iterable[Division], default_percent: float) -> Tuple[float, float]:
    labor = material = 0.0
    for division in divisions:
        division_labor, division_material = division_contingency(division, default_percent)
        labor += division_labor
        material += division_material
    return labor, material
