import pytest

from estimate_engine.models import Catalog, CostCodeConfiguration, Division, ProjectSettings
from estimate_engine.session import EstimateSession


@pytest.fixture
def catalog() -> Catalog:
    """
    Three divisions; 02 is excluded from main totals and 09 carries a
    three-level subtree:

        09 00 00
        ├── 09 20 00
        │   ├── 09 21 00
        │   └── 09 22 00
        └── 09 90 00  (preferred items)
    """
    return Catalog(
        divisions=[
            Division(id="div-1", number="01", name="GENERAL REQUIREMENTS", order=1),
            Division(id="div-2", number="02", name="EXISTING CONDITIONS", order=2, exclude_from_main_totals=True),
            Division(id="div-9", number="09", name="FINISHES", order=3),
        ],
        configurations=[
            CostCodeConfiguration(id="cc-a", division_id="div-1", number="01 40 00", name="Quality Requirements", order=1),
            CostCodeConfiguration(id="cc-b", division_id="div-1", number="01 70 00", name="Execution and Closeout", order=2),
            CostCodeConfiguration(id="cc-x", division_id="div-2", number="02 80 00", name="Facility Remediation", order=1),
            CostCodeConfiguration(id="cc-p", division_id="div-9", number="09 00 00", name="Finishes", order=1),
            CostCodeConfiguration(id="cc-p1", division_id="div-9", parent_id="cc-p", number="09 20 00", name="Plaster and Gypsum Board", order=1),
            CostCodeConfiguration(id="cc-p1a", division_id="div-9", parent_id="cc-p1", number="09 21 00", name="Gypsum Board Assemblies", order=1),
            CostCodeConfiguration(id="cc-p1b", division_id="div-9", parent_id="cc-p1", number="09 22 00", name="Supports", order=2),
            CostCodeConfiguration(
                id="cc-p2",
                division_id="div-9",
                parent_id="cc-p",
                number="09 90 00",
                name="Painting and Coating",
                order=2,
                preferred_items=[
                    {"uuid": "item-1", "item_name": "Interior Latex", "item_sequence": "PT-101", "unit_price": 180, "unit_uuid": "uom-ea"},
                    {"uuid": "item-2", "item_name": "Primer", "item_sequence": "PT-102", "unit_price": 120, "unit_uuid": "uom-ea"},
                ],
            ),
        ],
    )


@pytest.fixture
def settings() -> ProjectSettings:
    return ProjectSettings(rooms_count=5, area_count=1000, default_contingency_percent=10)


@pytest.fixture
def session(catalog, settings) -> EstimateSession:
    return EstimateSession(catalog, settings)
