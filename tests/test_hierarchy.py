"""
Hierarchy building and line-item population.
"""

from estimate_engine.catalog import load_catalog
from estimate_engine.hierarchy import (
    build_hierarchy,
    enrich_material_items,
    index_nodes,
    load_preferred_items,
    populate_hierarchy,
)
from estimate_engine.models import (
    CostCodeConfiguration,
    EstimationType,
    LineItem,
    MaterialItem,
)


def test_configurations_nest_under_parents_in_order(catalog):
    divisions = build_hierarchy(catalog)

    assert [d.id for d in divisions] == ["div-1", "div-2", "div-9"]
    assert [c.id for c in divisions[0].cost_codes] == ["cc-a", "cc-b"]

    finishes = divisions[2].cost_codes
    assert [c.id for c in finishes] == ["cc-p"]
    assert [c.id for c in finishes[0].children] == ["cc-p1", "cc-p2"]
    assert [c.id for c in finishes[0].children[0].children] == ["cc-p1a", "cc-p1b"]
    assert all(n.division_id == "div-9" for n in divisions[2].iter_nodes())


def test_inactive_configuration_drops_its_subtree(catalog):
    catalog.configurations.append(
        CostCodeConfiguration(id="cc-old", division_id="div-1", number="01 99 00", is_active=False)
    )
    catalog.configurations.append(
        CostCodeConfiguration(id="cc-old-1", division_id="div-1", parent_id="cc-old", number="01 99 10")
    )

    index = index_nodes(build_hierarchy(catalog))

    assert "cc-old" not in index
    assert "cc-old-1" not in index


def test_each_build_returns_independent_trees(catalog):
    first = build_hierarchy(catalog)
    second = build_hierarchy(catalog)

    index_nodes(first)["cc-a"].labor_amount = 500

    assert index_nodes(second)["cc-a"].labor_amount == 0.0
    assert catalog.divisions[0].cost_codes == []


def test_nodes_without_line_items_keep_defaults(catalog):
    divisions = build_hierarchy(catalog)
    populate_hierarchy(divisions, [LineItem(cost_code_id="cc-a", labor_amount=100)])
    node = index_nodes(divisions)["cc-b"]

    assert node.labor_amount == 0.0
    assert node.material_amount == 0.0
    assert node.estimation_type is EstimationType.MANUAL
    assert node.contingency_enabled is False
    assert node.contingency_percentage is None


def test_unknown_line_items_are_dropped_without_error(catalog):
    divisions = build_hierarchy(catalog)

    dropped = populate_hierarchy(
        divisions,
        [
            LineItem(cost_code_id="cc-a", labor_amount=100),
            LineItem(cost_code_id="retired-code", labor_amount=999),
        ],
    )

    assert dropped == ["retired-code"]
    assert index_nodes(divisions)["cc-a"].labor_amount == 100


def test_per_room_line_item_recomputes_labor(catalog):
    divisions = build_hierarchy(catalog)
    populate_hierarchy(
        divisions,
        [
            LineItem(
                cost_code_id="cc-a",
                estimation_type=EstimationType.PER_ROOM,
                labor_amount=1.0,
                labor_amount_per_room=25,
                rooms_count=5,
            )
        ],
    )
    node = index_nodes(divisions)["cc-a"]

    assert node.estimation_type is EstimationType.PER_ROOM
    assert node.labor_amount == 125
    assert node.labor_amount_per_area is None


def test_unusable_per_area_line_item_falls_back_to_manual(catalog):
    divisions = build_hierarchy(catalog)
    warnings = []
    populate_hierarchy(
        divisions,
        [LineItem(cost_code_id="cc-b", estimation_type=EstimationType.PER_AREA, labor_amount=80, area_count=0)],
        warnings=warnings,
    )
    node = index_nodes(divisions)["cc-b"]

    assert node.estimation_type is EstimationType.MANUAL
    assert node.labor_amount == 80
    assert warnings and warnings[0]["detail"]["cost_code_id"] == "cc-b"


def test_preferred_items_become_default_material_rows(catalog):
    items = load_preferred_items(catalog.configuration("cc-p2"))

    assert [i.sequence for i in items] == ["PT-101", "PT-102"]
    assert [i.name for i in items] == ["Interior Latex", "Primer"]
    assert all(i.is_preferred and i.quantity == 1.0 for i in items)
    assert items[0].line_total == 180
    assert load_preferred_items(None) == []


def test_enrich_refreshes_sequence_only(catalog):
    saved = [
        MaterialItem(item_id="item-1", sequence="OLD-1", name="Latex", description="Custom", unit_price=150, quantity=5, line_total=750, is_preferred=True),
        MaterialItem(item_id="custom", sequence="CUSTOM-SEQ", name="Custom Item", unit_price=100, quantity=1),
    ]

    enriched = enrich_material_items(saved, catalog.configuration("cc-p2"))

    assert enriched[0].sequence == "PT-101"
    assert enriched[0].description == "Custom"
    assert enriched[0].unit_price == 150
    assert enriched[0].quantity == 5
    assert enriched[0].line_total == 750
    assert enriched[1].sequence == "CUSTOM-SEQ"


def test_enrich_without_configuration_returns_items_unchanged():
    saved = [MaterialItem(item_id="item-1", sequence="OLD")]

    assert enrich_material_items(saved, None) is saved


def test_sample_catalog_loads_with_wire_names():
    catalog, settings = load_catalog()
    divisions = build_hierarchy(catalog)
    index = index_nodes(divisions)

    assert settings.rooms_count == 5
    assert settings.area_count == 1000
    assert settings.default_contingency_percent == 10
    assert [d.number for d in divisions] == ["01", "02", "09"]
    assert divisions[1].exclude_from_main_totals is True
    assert "cc-0999" not in index
    assert [c.id for c in index["cc-0920"].children] == ["cc-0921", "cc-0922"]
