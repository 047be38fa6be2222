"""
Leaf-only contingency apportionment.
"""

import pytest

from estimate_engine.contingency import (
    division_contingency,
    effective_contingency_percent,
    labor_contingency,
    material_contingency,
)
from estimate_engine.models import CostCodeNode, Division


def _parent(enabled: bool, percentage) -> CostCodeNode:
    return CostCodeNode(
        id="parent",
        labor_amount=1000,
        contingency_enabled=enabled,
        contingency_percentage=percentage,
        children=[
            CostCodeNode(id="off", labor_amount=100, contingency_enabled=False),
            CostCodeNode(id="on", labor_amount=200, contingency_enabled=True, contingency_percentage=5),
        ],
    )


@pytest.mark.parametrize("enabled,percentage", [(False, None), (True, None), (True, 50)])
@pytest.mark.parametrize("default", [0, 10, 25])
def test_parent_sums_leaf_contingency_only(enabled, percentage, default):
    parent = _parent(enabled, percentage)

    assert labor_contingency(parent, default) == pytest.approx(10.0)


def test_none_defers_to_project_default_but_zero_does_not():
    deferred = CostCodeNode(id="a", labor_amount=300, contingency_enabled=True, contingency_percentage=None)
    zero = CostCodeNode(id="b", labor_amount=300, contingency_enabled=True, contingency_percentage=0)

    assert labor_contingency(deferred, 10) == pytest.approx(30.0)
    assert labor_contingency(zero, 10) == 0.0
    assert effective_contingency_percent(deferred, 10) != effective_contingency_percent(zero, 10)


def test_disabled_contingency_is_zero_even_with_override():
    node = CostCodeNode(id="a", labor_amount=300, contingency_enabled=False, contingency_percentage=15)

    assert effective_contingency_percent(node, 10) == 0.0


def test_material_contingency_is_symmetric():
    node = CostCodeNode(id="a", labor_amount=100, material_amount=100, contingency_enabled=True, contingency_percentage=5)

    assert labor_contingency(node, 0) == pytest.approx(5.0)
    assert material_contingency(node, 0) == pytest.approx(5.0)


def test_nested_leaves_use_their_own_settings():
    root = CostCodeNode(
        id="root",
        children=[
            CostCodeNode(
                id="mid",
                contingency_enabled=True,
                contingency_percentage=90,
                children=[CostCodeNode(id="leaf", material_amount=400, contingency_enabled=True)],
            )
        ],
    )

    assert material_contingency(root, 10) == pytest.approx(40.0)


def test_division_contingency_sums_top_level_codes():
    division = Division(
        id="d",
        cost_codes=[
            CostCodeNode(id="a", labor_amount=100, contingency_enabled=False),
            CostCodeNode(id="b", labor_amount=200, contingency_enabled=True, contingency_percentage=5),
        ],
    )

    labor, material = division_contingency(division, 10)

    assert labor == 10.0
    assert material == 0.0
    assert division_contingency(Division(id="empty", cost_codes=None), 10) == (0, 0)
