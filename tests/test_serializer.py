"""
Flat line-item emission and reload.
"""

from estimate_engine.models import EstimationType, MaterialEstimationType
from estimate_engine.serializer import (
    from_line_items,
    line_items_from_records,
    line_items_to_records,
    to_line_items,
)
from estimate_engine.session import EstimateSession


def test_only_leaves_are_emitted(session):
    items = session.line_items()

    assert [i.cost_code_id for i in items] == ["cc-a", "cc-b", "cc-x", "cc-p1a", "cc-p1b", "cc-p2"]
    assert all(i.cost_code_id not in ("cc-p", "cc-p1") for i in items)


def test_sub_cost_codes_carry_parent_reference(session):
    by_id = {i.cost_code_id: i for i in session.line_items()}

    assert not by_id["cc-a"].is_sub_cost_code
    assert by_id["cc-a"].parent_cost_code_id is None
    assert by_id["cc-p1a"].is_sub_cost_code
    assert by_id["cc-p1a"].parent_cost_code_id == "cc-p1"
    assert by_id["cc-p2"].parent_cost_code_id == "cc-p"
    assert by_id["cc-p2"].division_name == "FINISHES"


def test_deleted_nodes_are_not_emitted(session):
    session.delete_node("cc-p1")

    ids = [i.cost_code_id for i in session.line_items()]

    assert "cc-p1a" not in ids
    assert "cc-p1b" not in ids
    assert "cc-p2" in ids


def test_parent_with_all_children_deleted_is_emitted_as_leaf(session):
    session.delete_node("cc-p1a")
    session.delete_node("cc-p1b")

    ids = [i.cost_code_id for i in session.line_items()]

    assert "cc-p1" in ids


def test_line_item_amounts(session):
    session.apply_manual("cc-a", 100, 50)
    session.set_contingency("cc-a", True, None)

    item = session.line_items()[0]

    assert item.labor_amount == 100
    assert item.material_amount == 50
    assert item.total_amount == 150
    assert item.contingency_amount == 15


def test_round_trip_preserves_leaf_fields(catalog, settings, session):
    session.apply_per_room("cc-a", 25)
    session.apply_item_wise("cc-a", [{"name": "Kit", "unit_price": 40, "quantity": 1}, {"line_total": 60}])
    session.apply_per_area("cc-p1a", 1.5)
    session.set_contingency("cc-p1a", True, 0)
    session.apply_manual("cc-x", 300, 20)
    session.set_contingency("cc-x", True, None)
    session.delete_node("cc-b")

    records = line_items_to_records(session.line_items())
    reloaded = EstimateSession.from_saved(
        catalog, settings, line_items_from_records(records), session.removed_ids()
    )

    assert line_items_to_records(reloaded.line_items()) == records
    node = reloaded.node("cc-a")
    assert node.estimation_type is EstimationType.PER_ROOM
    assert node.labor_amount == 125
    assert node.material_estimation_type is MaterialEstimationType.ITEM_WISE
    assert node.material_amount == 100
    assert reloaded.node("cc-p1a").contingency_percentage == 0
    assert reloaded.node("cc-x").contingency_percentage is None


def test_from_line_items_builds_tree_from_catalog(catalog, session):
    session.apply_manual("cc-p1b", 10, 0)

    divisions = from_line_items(catalog, session.line_items())

    finishes = divisions[2]
    assert [c.id for c in finishes.cost_codes] == ["cc-p"]
    p1b = next(n for n in finishes.iter_nodes() if n.id == "cc-p1b")
    assert p1b.labor_amount == 10


def test_records_without_cost_code_are_skipped():
    items = line_items_from_records([{"cost_code_uuid": "a", "labor_amount": "12"}, {"labor_amount": 5}])

    assert [i.cost_code_id for i in items] == ["a"]
    assert items[0].labor_amount == 12


def test_to_line_items_with_nothing_visible(session):
    deleted = {"cc-a", "cc-b", "cc-x", "cc-p"}

    assert to_line_items(session.divisions, deleted) == []
