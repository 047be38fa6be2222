"""
Reporting utilities for presenting estimate line items and totals.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List

import pandas as pd

from .models import LineItem, MaterialItem, ProjectSettings
from .totals import DivisionTotals, EstimateTotals


LINE_ITEM_COLUMNS = [
    "division_name",
    "cost_code_number",
    "cost_code_name",
    "is_sub_cost_code",
    "estimation_type",
    "labor_amount",
    "material_amount",
    "total_amount",
    "contingency_amount",
]

MATERIAL_ITEM_COLUMNS = [
    "item_id",
    "sequence",
    "name",
    "unit_id",
    "unit_price",
    "quantity",
    "is_preferred",
]

_AMOUNT_COLUMNS = {
    "labor": ["Labor", "Labor Contingency"],
    "material": ["Material", "Material Contingency"],
    "total": ["Total", "Contingency", "Total w/ Contingency"],
}


def build_line_items_frame(items: Iterable[LineItem]) -> pd.DataFrame:
    rows = []
    for item in items:
        record = item.to_dict()
        rows.append({column: record[column] for column in LINE_ITEM_COLUMNS})
    return pd.DataFrame(rows, columns=LINE_ITEM_COLUMNS)


def build_material_items_frame(items: Iterable[MaterialItem]) -> pd.DataFrame:
    """
    Editable item-wise material rows. Line totals are left out so they are
    re-derived from price and quantity when the rows are applied back.
    """
    rows = []
    for item in items:
        record = item.to_dict()
        rows.append({column: record[column] for column in MATERIAL_ITEM_COLUMNS})
    return pd.DataFrame(rows, columns=MATERIAL_ITEM_COLUMNS)


def _division_row(division: DivisionTotals, section: str) -> Dict[str, Any]:
    amounts = division.amounts
    return {
        "Section": section,
        "Division": division.label,
        "Labor": amounts.labor,
        "Labor Contingency": amounts.labor_contingency,
        "Material": amounts.material,
        "Material Contingency": amounts.material_contingency,
        "Total": amounts.total,
        "Contingency": amounts.contingency,
        "Total w/ Contingency": amounts.total_with_contingency,
    }


def _columns_for(settings: ProjectSettings) -> List[str]:
    columns = ["Section", "Division"]
    for key in settings.visible_columns():
        columns.extend(_AMOUNT_COLUMNS[key])
    return columns


def build_division_breakdown(totals: EstimateTotals, settings: ProjectSettings) -> pd.DataFrame:
    """
    One row per visible main division, then the Other Costs row if any.
    Amount columns follow the project's labor/material/only-total flags.
    """
    rows = [_division_row(d, "Main") for d in totals.divisions]
    if totals.other_costs is not None:
        rows.append(_division_row(totals.other_costs, "Other Costs"))
    return pd.DataFrame(rows, columns=_columns_for(settings))


def build_estimate_report(totals: EstimateTotals, items: Iterable[LineItem], settings: ProjectSettings) -> Dict[str, Any]:
    items_df = build_line_items_frame(items)
    by_division = (
        items_df.groupby("division_name")["total_amount"].sum().to_dict() if not items_df.empty else {}
    )
    return {
        "divisions": build_division_breakdown(totals, settings),
        "line_items": items_df,
        "line_totals_by_division": {name: float(value) for name, value in by_division.items()},
        "grand_total": totals.main.to_dict(),
        "other_grand_total": totals.other.to_dict(),
        "overall": totals.overall.to_dict(),
    }
