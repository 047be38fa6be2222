"""
End-to-end estimate pipeline:

1. Build the cost-code tree from the catalog and overlay saved line items.
2. Recompute division, main and Other Costs totals.
3. Flatten the visible tree back to line items and summarize the header.
4. Persist the estimate, its line items, removed ids and diagnostics.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

from .data_tables import EstimateTables
from .models import Catalog, LineItem, ProjectSettings
from .session import EstimateSession
from .totals import EstimateSummary, EstimateTotals


@dataclass
class EstimateResult:
    estimate_id: str
    estimate_number: str
    store: EstimateTables
    session: EstimateSession
    totals: EstimateTotals
    summary: EstimateSummary
    line_items: List[LineItem]
    diagnostics: Dict[str, Any]

    def table(self, name: str):
        return self.store.fetch_dataframe(name)


def run_estimate(
    *,
    catalog: Catalog,
    settings: ProjectSettings,
    project_id: str,
    corporation_id: str,
    line_items: Iterable[LineItem] = (),
    deleted_ids: Iterable[str] = (),
    estimate_number: Optional[str] = None,
    estimate_date: Optional[str] = None,
    tax_amount: float = 0.0,
    discount_amount: float = 0.0,
    store: Optional[EstimateTables] = None,
    db_path: Optional[str] = None,
) -> EstimateResult:
    """
    Execute the full estimate pipeline and return an EstimateResult.
    """
    store = store or EstimateTables(db_path=db_path)
    session = EstimateSession.from_saved(catalog, settings, line_items, deleted_ids)

    totals = session.totals()
    emitted = session.line_items()
    summary = session.summary(tax_amount=tax_amount, discount_amount=discount_amount)

    record = store.create_estimate(
        project_id=project_id,
        corporation_id=corporation_id,
        estimate_number=estimate_number,
        estimate_date=estimate_date,
        removed_cost_code_ids=session.removed_ids(),
        amounts={
            "total_amount": summary.total_amount,
            "tax_amount": summary.tax_amount,
            "discount_amount": summary.discount_amount,
            "final_amount": summary.final_amount,
        },
    )
    store.replace_line_items(record.estimate_id, emitted)
    for level, entries in (("warning", session.diagnostics["warnings"]), ("error", session.diagnostics["errors"])):
        for entry in entries:
            store.add_diagnostic(
                record.estimate_id,
                level=level,
                message=entry["message"],
                detail=entry.get("detail"),
            )

    return EstimateResult(
        estimate_id=record.estimate_id,
        estimate_number=record.estimate_number,
        store=store,
        session=session,
        totals=totals,
        summary=summary,
        line_items=emitted,
        diagnostics=session.diagnostics,
    )


def reload_session(
    store: EstimateTables,
    estimate_id: str,
    catalog: Catalog,
    settings: ProjectSettings,
) -> EstimateSession:
    """Rebuild an editing session from a persisted estimate."""
    return EstimateSession.from_saved(
        catalog,
        settings,
        store.fetch_line_items(estimate_id),
        store.fetch_removed_ids(estimate_id),
    )
