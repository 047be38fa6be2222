"""
Explicit total recomputation for an estimate tree.

Callers invoke ``recompute_totals`` after each mutation; nothing is cached.
Sums accumulate at full precision in ``AmountTotals``; every emitted figure,
derived ones included, is rounded to cents once from those raw sums into a
``RoundedAmounts``. Contingency is always reported on top of the base
labor/material amounts, never folded into them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import AbstractSet, Any, Dict, Iterable, List, Optional

from .coerce import as_amount, round_money
from .contingency import contingency_percent, labor_contingency, material_contingency
from .models import CostCodeNode, Division, LineItem
from .visibility import OTHER_COSTS_ID, other_costs_division, visible_divisions


@dataclass
class RoundedAmounts:
    """Cent-rounded view of an ``AmountTotals``."""

    labor: float = 0.0
    material: float = 0.0
    labor_contingency: float = 0.0
    material_contingency: float = 0.0
    total: float = 0.0
    contingency: float = 0.0
    total_with_contingency: float = 0.0

    def __add__(self, other: "RoundedAmounts") -> "RoundedAmounts":
        # Sums of already emitted figures; re-quantize to drop float noise.
        return RoundedAmounts(
            labor=round_money(self.labor + other.labor),
            material=round_money(self.material + other.material),
            labor_contingency=round_money(self.labor_contingency + other.labor_contingency),
            material_contingency=round_money(self.material_contingency + other.material_contingency),
            total=round_money(self.total + other.total),
            contingency=round_money(self.contingency + other.contingency),
            total_with_contingency=round_money(self.total_with_contingency + other.total_with_contingency),
        )

    def to_dict(self) -> Dict[str, float]:
        return {
            "labor": self.labor,
            "material": self.material,
            "total": self.total,
            "labor_contingency": self.labor_contingency,
            "material_contingency": self.material_contingency,
            "contingency": self.contingency,
            "total_with_contingency": self.total_with_contingency,
        }


@dataclass
class AmountTotals:
    labor: float = 0.0
    material: float = 0.0
    labor_contingency: float = 0.0
    material_contingency: float = 0.0

    @property
    def total(self) -> float:
        return self.labor + self.material

    @property
    def contingency(self) -> float:
        return self.labor_contingency + self.material_contingency

    @property
    def total_with_contingency(self) -> float:
        return self.total + self.contingency

    def __add__(self, other: "AmountTotals") -> "AmountTotals":
        return AmountTotals(
            labor=self.labor + other.labor,
            material=self.material + other.material,
            labor_contingency=self.labor_contingency + other.labor_contingency,
            material_contingency=self.material_contingency + other.material_contingency,
        )

    def rounded(self) -> RoundedAmounts:
        return RoundedAmounts(
            labor=round_money(self.labor),
            material=round_money(self.material),
            labor_contingency=round_money(self.labor_contingency),
            material_contingency=round_money(self.material_contingency),
            total=round_money(self.total),
            contingency=round_money(self.contingency),
            total_with_contingency=round_money(self.total_with_contingency),
        )


def node_totals(node: CostCodeNode, default_percent: float) -> AmountTotals:
    """Unrounded totals for a node; aggregators sum their leaves only."""
    labor = material = 0.0
    for leaf in node.leaves():
        labor += as_amount(leaf.labor_amount)
        material += as_amount(leaf.material_amount)
    return AmountTotals(
        labor=labor,
        material=material,
        labor_contingency=labor_contingency(node, default_percent),
        material_contingency=material_contingency(node, default_percent),
    )


def _division_amounts(division: Division, default_percent: float) -> AmountTotals:
    amounts = AmountTotals()
    for cost_code in division.cost_codes or []:
        amounts = amounts + node_totals(cost_code, default_percent)
    return amounts


@dataclass
class DivisionTotals:
    division_id: str
    number: str
    name: str
    raw: AmountTotals

    @property
    def amounts(self) -> RoundedAmounts:
        return self.raw.rounded()

    @property
    def label(self) -> str:
        if self.division_id == OTHER_COSTS_ID:
            return self.name
        return f"{self.number} {self.name}".strip()

    def to_dict(self) -> Dict[str, Any]:
        record = {"division_id": self.division_id, "number": self.number, "name": self.name}
        record.update(self.amounts.to_dict())
        return record


@dataclass
class EstimateTotals:
    """
    Raw section sums plus their rounded views.

    ``overall`` is the sum of the rounded main and Other Costs figures, so the
    two emitted sections always add up to it to the cent.
    """

    divisions: List[DivisionTotals] = field(default_factory=list)
    main_raw: AmountTotals = field(default_factory=AmountTotals)
    other_costs: Optional[DivisionTotals] = None
    other_raw: AmountTotals = field(default_factory=AmountTotals)

    @property
    def main(self) -> RoundedAmounts:
        return self.main_raw.rounded()

    @property
    def other(self) -> RoundedAmounts:
        return self.other_raw.rounded()

    @property
    def overall(self) -> RoundedAmounts:
        return self.main + self.other

    @property
    def grand_total(self) -> float:
        return self.main.total

    @property
    def other_grand_total(self) -> float:
        return self.other.total


def recompute_totals(
    divisions: Iterable[Division],
    deleted_ids: AbstractSet[str],
    default_percent: float,
) -> EstimateTotals:
    divisions = list(divisions)
    main_raw = AmountTotals()
    division_totals = []
    for division in visible_divisions(divisions, deleted_ids):
        amounts = _division_amounts(division, default_percent)
        main_raw = main_raw + amounts
        division_totals.append(DivisionTotals(division.id, division.number, division.name, amounts))

    other_raw = AmountTotals()
    other_totals = None
    other = other_costs_division(divisions, deleted_ids)
    if other is not None:
        other_raw = _division_amounts(other, default_percent)
        other_totals = DivisionTotals(other.id, other.number, other.name, other_raw)

    return EstimateTotals(
        divisions=division_totals,
        main_raw=main_raw,
        other_costs=other_totals,
        other_raw=other_raw,
    )


# ----------------------------------------------------------- estimate summary
@dataclass
class EstimateSummary:
    base_total: float
    contingency_total: float
    total_amount: float
    tax_amount: float
    discount_amount: float
    final_amount: float


def summarize_estimate(
    line_items: Iterable[LineItem],
    default_percent: float,
    *,
    tax_amount: Any = 0.0,
    discount_amount: Any = 0.0,
) -> EstimateSummary:
    """
    Header amounts for a saved estimate.

    ``total_amount`` is the base of every line plus its contingency;
    ``final_amount`` adds tax and subtracts discount.
    """
    base = contingency = 0.0
    for item in line_items:
        line_base = as_amount(item.total_amount) or (
            as_amount(item.labor_amount) + as_amount(item.material_amount)
        )
        base += line_base
        percent = contingency_percent(
            item.contingency_enabled, item.contingency_percentage, default_percent
        )
        contingency += line_base * percent / 100.0
    tax = as_amount(tax_amount)
    discount = as_amount(discount_amount)
    total = base + contingency
    return EstimateSummary(
        base_total=round_money(base),
        contingency_total=round_money(contingency),
        total_amount=round_money(total),
        tax_amount=round_money(tax),
        discount_amount=round_money(discount),
        final_amount=round_money(total + tax - discount),
    )
