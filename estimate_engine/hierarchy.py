"""
Hierarchy builder and populator.

Builds the Division → cost code → sub-cost code → sub-sub-cost code tree from
the static catalog, then overlays persisted line items onto it by node id.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Dict, Iterable, List, Optional

from .coerce import as_amount, as_count
from .models import (
    Catalog,
    CostCodeConfiguration,
    CostCodeNode,
    Division,
    EstimationType,
    LineItem,
    MaterialItem,
)

logger = logging.getLogger(__name__)


def _sort_key(order: int, number: str):
    return (order, number)


def build_hierarchy(catalog: Catalog) -> List[Division]:
    """
    Nest active configurations under their parents and divisions.

    Every call returns fresh Division and node objects, so two sessions built
    from the same catalog never share state. Configurations whose parent is not
    active (or unknown) are skipped together with their subtree.
    """
    configs = [c for c in catalog.configurations if c.is_active]
    nodes: Dict[str, CostCodeNode] = {
        c.id: CostCodeNode(
            id=c.id,
            number=c.number,
            name=c.name,
            division_id=c.division_id,
            parent_id=c.parent_id,
        )
        for c in configs
    }
    ordering = {c.id: _sort_key(c.order, c.number) for c in configs}

    top_level: Dict[str, List[CostCodeNode]] = {}
    for config in configs:
        node = nodes[config.id]
        if config.parent_id is None:
            top_level.setdefault(str(config.division_id), []).append(node)
            continue
        parent = nodes.get(config.parent_id)
        if parent is None:
            logger.debug("Cost code %s skipped: parent %s not active", config.id, config.parent_id)
            continue
        parent.children.append(node)

    for node in nodes.values():
        node.children.sort(key=lambda child: ordering[child.id])

    divisions = []
    active = sorted(
        (d for d in catalog.divisions if d.is_active),
        key=lambda d: _sort_key(d.order, d.number),
    )
    for definition in active:
        cost_codes = sorted(top_level.get(definition.id, []), key=lambda n: ordering[n.id])
        for cost_code in cost_codes:
            for node in cost_code.walk():
                node.division_id = definition.id
        divisions.append(replace(definition, cost_codes=cost_codes))
    return divisions


def index_nodes(divisions: Iterable[Division]) -> Dict[str, CostCodeNode]:
    index: Dict[str, CostCodeNode] = {}
    for division in divisions:
        for node in division.iter_nodes():
            index[node.id] = node
    return index


def _overlay(node: CostCodeNode, item: LineItem) -> Optional[str]:
    """Copy persisted fields onto ``node``; returns a warning message if the
    stored labor derivation was unusable."""
    warning = None
    node.description = item.description or node.description
    node.material_amount = as_amount(item.material_amount)
    node.material_estimation_type = item.material_estimation_type
    node.material_items = [replace(mi, extra=dict(mi.extra)) for mi in item.material_items]
    node.contingency_enabled = item.contingency_enabled
    node.contingency_percentage = item.contingency_percentage

    node.estimation_type = EstimationType.MANUAL
    node.labor_amount = as_amount(item.labor_amount)
    node.labor_amount_per_room = node.rooms_count = None
    node.labor_amount_per_area = node.area_count = None

    if item.estimation_type is EstimationType.PER_ROOM:
        rate, count = as_count(item.labor_amount_per_room), as_count(item.rooms_count)
        if rate is not None and count is not None and count > 0:
            node.estimation_type = EstimationType.PER_ROOM
            node.labor_amount_per_room = rate
            node.rooms_count = count
            node.labor_amount = rate * count
        else:
            warning = "per-room line item without a usable rate or room count"
    elif item.estimation_type is EstimationType.PER_AREA:
        rate, count = as_count(item.labor_amount_per_area), as_count(item.area_count)
        if rate is not None and count is not None and count > 0:
            node.estimation_type = EstimationType.PER_AREA
            node.labor_amount_per_area = rate
            node.area_count = count
            node.labor_amount = rate * count
        else:
            warning = "per-area line item without a usable rate or area count"
    return warning


def populate_hierarchy(
    divisions: List[Division],
    line_items: Iterable[LineItem],
    *,
    warnings: Optional[List[Dict]] = None,
) -> List[str]:
    """
    Overlay persisted line items onto the tree, matching by node id.

    Nodes without a line item keep their defaults. Line items whose id is not
    in the active tree are dropped; their ids are returned so the caller can
    decide whether to report them.
    """
    index = index_nodes(divisions)
    dropped: List[str] = []
    for item in line_items:
        node = index.get(item.cost_code_id)
        if node is None:
            dropped.append(item.cost_code_id)
            continue
        message = _overlay(node, item)
        if message and warnings is not None:
            warnings.append({"message": message, "detail": {"cost_code_id": node.id}})
    return dropped


def from_line_items(catalog: Catalog, line_items: Iterable[LineItem]) -> List[Division]:
    """Rebuild an estimate tree from its catalog and saved line items."""
    divisions = build_hierarchy(catalog)
    dropped = populate_hierarchy(divisions, line_items)
    if dropped:
        logger.debug("Dropped %d line items with unknown cost codes", len(dropped))
    return divisions


# ------------------------------------------------------------ preferred items
def load_preferred_items(configuration: Optional[CostCodeConfiguration]) -> List[MaterialItem]:
    """Default item-wise material rows for a cost code, one per preferred item."""
    if configuration is None:
        return []
    items = []
    for preferred in configuration.preferred_items:
        unit_price = as_amount(preferred.get("unit_price"))
        items.append(
            MaterialItem(
                item_id=preferred.get("item_id") or preferred.get("uuid"),
                item_type=preferred.get("item_type") or preferred.get("item_type_uuid"),
                sequence=preferred.get("item_sequence") or preferred.get("sequence") or "",
                name=preferred.get("item_name") or preferred.get("name") or "",
                description=preferred.get("description") or "",
                model_number=preferred.get("model_number") or "",
                unit_price=unit_price,
                unit_id=preferred.get("unit_id") or preferred.get("unit_uuid"),
                quantity=1.0,
                line_total=unit_price,
                is_preferred=True,
            )
        )
    return items


def enrich_material_items(
    items: List[MaterialItem],
    configuration: Optional[CostCodeConfiguration],
) -> List[MaterialItem]:
    """
    Refresh saved items' sequence codes from the catalog's preferred items.

    Only ``sequence`` changes; prices, quantities and descriptions the user
    saved are kept. Items with no catalog match keep their own sequence.
    """
    if configuration is None or not configuration.preferred_items:
        return items
    sequences = {}
    for preferred in configuration.preferred_items:
        key = preferred.get("item_id") or preferred.get("uuid")
        sequence = preferred.get("item_sequence") or preferred.get("sequence")
        if key and sequence:
            sequences[key] = sequence
    return [
        replace(item, sequence=sequences[item.item_id]) if item.item_id in sequences else item
        for item in items
    ]
