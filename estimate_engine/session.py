"""
Estimate editing session.

Holds the state one editor works on: the populated tree, the deleted-id side
set, the applied-id set used for UI badges, and collected diagnostics. Every
operation runs to completion synchronously; totals are recomputed on demand.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional, Set

from . import estimation
from .coerce import as_percentage
from .hierarchy import (
    build_hierarchy,
    enrich_material_items,
    index_nodes,
    load_preferred_items,
    populate_hierarchy,
)
from .models import Catalog, CostCodeNode, Division, LineItem, MaterialItem, ProjectSettings
from .serializer import to_line_items
from .totals import EstimateSummary, EstimateTotals, recompute_totals, summarize_estimate
from .visibility import delete_node, other_costs_division, restore_node, visible_divisions

logger = logging.getLogger(__name__)


class EstimateSession:
    def __init__(
        self,
        catalog: Catalog,
        settings: Optional[ProjectSettings] = None,
        *,
        deleted_ids: Optional[Iterable[str]] = None,
    ):
        self.catalog = catalog
        self.settings = settings or ProjectSettings()
        self.divisions: List[Division] = build_hierarchy(catalog)
        self.deleted_ids: Set[str] = set(deleted_ids or [])
        self.applied_ids: Set[str] = set()
        self.diagnostics: Dict[str, Any] = {"warnings": [], "errors": []}
        self._index = index_nodes(self.divisions)

    @classmethod
    def from_saved(
        cls,
        catalog: Catalog,
        settings: Optional[ProjectSettings],
        line_items: Iterable[LineItem],
        deleted_ids: Optional[Iterable[str]] = None,
    ) -> "EstimateSession":
        session = cls(catalog, settings, deleted_ids=deleted_ids)
        session.load_line_items(line_items)
        return session

    # ------------------------------------------------------------------ loading
    def load_line_items(self, line_items: Iterable[LineItem]) -> List[str]:
        dropped = populate_hierarchy(
            self.divisions, line_items, warnings=self.diagnostics["warnings"]
        )
        for cost_code_id in dropped:
            self._warn("Line item references an unknown cost code", {"cost_code_id": cost_code_id})
        for node in self._index.values():
            config = self.catalog.configuration(node.id)
            node.material_items = enrich_material_items(node.material_items, config)
            if node.has_estimate():
                self.applied_ids.add(node.id)
        return dropped

    # ---------------------------------------------------------------- utilities
    def node(self, node_id: str) -> CostCodeNode:
        try:
            return self._index[node_id]
        except KeyError:
            raise KeyError(f"Unknown cost code {node_id!r}") from None

    def _warn(self, message: str, detail: Optional[Dict[str, Any]] = None) -> None:
        logger.debug("%s: %s", message, detail)
        self.diagnostics["warnings"].append({"message": message, "detail": detail or {}})

    def _mark_applied(self, node: CostCodeNode, explicit: bool) -> None:
        if explicit or node.has_estimate():
            self.applied_ids.add(node.id)
        else:
            self.applied_ids.discard(node.id)

    @property
    def default_contingency_percent(self) -> float:
        return self.settings.default_contingency_percent

    # --------------------------------------------------------------- estimating
    def apply_manual(self, node_id: str, labor: Any, material: Any = None, *, explicit: bool = False) -> CostCodeNode:
        node = estimation.apply_manual(self.node(node_id), labor, material)
        self._mark_applied(node, explicit)
        return node

    def apply_per_room(self, node_id: str, amount_per_room: Any, rooms_count: Any = None, *, explicit: bool = False) -> CostCodeNode:
        rooms = self.settings.rooms_count if rooms_count is None else rooms_count
        node = estimation.apply_per_room(self.node(node_id), amount_per_room, rooms)
        self._mark_applied(node, explicit)
        return node

    def apply_per_area(self, node_id: str, amount_per_area: Any, area_count: Any = None, *, explicit: bool = False) -> CostCodeNode:
        area = self.settings.area_count if area_count is None else area_count
        node = estimation.apply_per_area(self.node(node_id), amount_per_area, area)
        self._mark_applied(node, explicit)
        return node

    def apply_material(self, node_id: str, material: Any, *, explicit: bool = False) -> CostCodeNode:
        node = estimation.apply_material(self.node(node_id), material)
        self._mark_applied(node, explicit)
        return node

    def apply_item_wise(self, node_id: str, items: Iterable[Any], *, explicit: bool = False) -> CostCodeNode:
        node = estimation.apply_item_wise(self.node(node_id), items)
        self._mark_applied(node, explicit)
        return node

    def set_contingency(self, node_id: str, enabled: bool, percentage: Any = None) -> CostCodeNode:
        """Empty strings and non-numeric input defer to the project default."""
        node = self.node(node_id)
        node.contingency_enabled = bool(enabled)
        node.contingency_percentage = as_percentage(percentage)
        return node

    def default_material_items(self, node_id: str) -> List[MaterialItem]:
        """Rows to start an item-wise estimate from: saved rows, else preferred items."""
        node = self.node(node_id)
        if node.material_items:
            return list(node.material_items)
        return load_preferred_items(self.catalog.configuration(node_id))

    # ----------------------------------------------------------------- deletion
    def delete_node(self, node_id: str) -> None:
        self.node(node_id)
        delete_node(self.deleted_ids, node_id)

    def restore_node(self, node_id: str) -> None:
        restore_node(self.deleted_ids, node_id)

    # -------------------------------------------------------------------- views
    def visible_divisions(self) -> List[Division]:
        return visible_divisions(self.divisions, self.deleted_ids)

    def other_costs_division(self) -> Optional[Division]:
        return other_costs_division(self.divisions, self.deleted_ids)

    def totals(self) -> EstimateTotals:
        return recompute_totals(self.divisions, self.deleted_ids, self.default_contingency_percent)

    def line_items(self) -> List[LineItem]:
        return to_line_items(self.divisions, self.deleted_ids, self.default_contingency_percent)

    def removed_ids(self) -> List[str]:
        return sorted(self.deleted_ids)

    def summary(self, *, tax_amount: Any = 0.0, discount_amount: Any = 0.0) -> EstimateSummary:
        return summarize_estimate(
            self.line_items(),
            self.default_contingency_percent,
            tax_amount=tax_amount,
            discount_amount=discount_amount,
        )
