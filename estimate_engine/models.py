"""
Data model for cost-code estimates.

A single recursive node type covers cost codes, sub-cost codes and
sub-sub-cost codes; depth-specific rules are expressed as predicates over
``children``. Record conversion accepts both the Python field names and the
names used by the persisted estimate tables (``uuid``, ``cost_code_uuid``,
``labor_sq_ft_count`` ...).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Mapping, Optional

from .coerce import as_amount, as_count, as_percentage


def _first(data: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return default


class EstimationType(Enum):
    """How a node's labor amount was derived."""

    MANUAL = "manual"
    PER_ROOM = "per-room"
    PER_AREA = "per-area"

    @staticmethod
    def parse(value: Any) -> "EstimationType":
        if isinstance(value, EstimationType):
            return value
        text = str(value or "").strip().lower()
        if text in ("per-area", "per-sqft", "per_sqft", "per-sq-ft"):
            return EstimationType.PER_AREA
        if text in ("per-room", "per_room"):
            return EstimationType.PER_ROOM
        return EstimationType.MANUAL


class MaterialEstimationType(Enum):
    """How a node's material amount was derived (independent of labor)."""

    MANUAL = "manual"
    ITEM_WISE = "item-wise"

    @staticmethod
    def parse(value: Any) -> "MaterialEstimationType":
        if isinstance(value, MaterialEstimationType):
            return value
        text = str(value or "").strip().lower()
        if text in ("item-wise", "item_wise", "itemwise"):
            return MaterialEstimationType.ITEM_WISE
        return MaterialEstimationType.MANUAL


@dataclass
class MaterialItem:
    """One row of an item-wise material estimate."""

    name: str = ""
    item_id: Optional[str] = None
    item_type: Optional[str] = None
    sequence: str = ""
    description: str = ""
    model_number: str = ""
    unit_price: float = 0.0
    unit_id: Optional[str] = None
    quantity: float = 0.0
    line_total: Optional[float] = None
    is_preferred: bool = False
    extra: Dict[str, Any] = field(default_factory=dict)

    _KNOWN = {
        "name", "item_name", "item_id", "item_uuid", "item_type", "item_type_uuid",
        "sequence", "item_sequence", "description", "model_number", "unit_price",
        "unit_id", "unit_uuid", "quantity", "line_total", "total", "is_preferred",
    }

    def __post_init__(self) -> None:
        if self.line_total is None:
            self.line_total = as_amount(self.unit_price) * as_amount(self.quantity)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "MaterialItem":
        return cls(
            name=_first(data, "name", "item_name", default=""),
            item_id=_first(data, "item_id", "item_uuid"),
            item_type=_first(data, "item_type", "item_type_uuid"),
            sequence=_first(data, "sequence", "item_sequence", default=""),
            description=_first(data, "description", default=""),
            model_number=_first(data, "model_number", default=""),
            unit_price=as_amount(data.get("unit_price")),
            unit_id=_first(data, "unit_id", "unit_uuid"),
            quantity=as_amount(data.get("quantity")),
            line_total=as_count(_first(data, "line_total", "total")),
            is_preferred=bool(data.get("is_preferred", False)),
            extra={k: v for k, v in data.items() if k not in cls._KNOWN},
        )

    def to_dict(self) -> Dict[str, Any]:
        record = dict(self.extra)
        record.update(
            {
                "item_id": self.item_id,
                "item_type": self.item_type,
                "sequence": self.sequence,
                "name": self.name,
                "description": self.description,
                "model_number": self.model_number,
                "unit_price": self.unit_price,
                "unit_id": self.unit_id,
                "quantity": self.quantity,
                "line_total": self.line_total,
                "is_preferred": self.is_preferred,
            }
        )
        return record


@dataclass
class CostCodeNode:
    """
    A cost code at any depth of the hierarchy.

    Attributes:
        labor_amount_per_room / rooms_count: set only for per-room labor
        labor_amount_per_area / area_count: set only for per-area labor
        contingency_percentage: None defers to the project default; 0 is an
            explicit zero override
        children: sub-cost codes; a node with children is a pure aggregator
    """

    id: str
    number: str = ""
    name: str = ""
    division_id: Optional[str] = None
    parent_id: Optional[str] = None
    description: str = ""
    labor_amount: float = 0.0
    material_amount: float = 0.0
    estimation_type: EstimationType = EstimationType.MANUAL
    labor_amount_per_room: Optional[float] = None
    rooms_count: Optional[float] = None
    labor_amount_per_area: Optional[float] = None
    area_count: Optional[float] = None
    material_estimation_type: MaterialEstimationType = MaterialEstimationType.MANUAL
    material_items: List[MaterialItem] = field(default_factory=list)
    contingency_enabled: bool = False
    contingency_percentage: Optional[float] = None
    children: List["CostCodeNode"] = field(default_factory=list)

    @property
    def is_leaf(self) -> bool:
        return not self.children

    def walk(self) -> Iterator["CostCodeNode"]:
        """Depth-first traversal, self first."""
        yield self
        for child in self.children:
            yield from child.walk()

    def leaves(self) -> Iterator["CostCodeNode"]:
        for node in self.walk():
            if node.is_leaf:
                yield node

    def has_estimate(self) -> bool:
        return as_amount(self.labor_amount) > 0 or as_amount(self.material_amount) > 0


@dataclass
class Division:
    id: str
    number: str = ""
    name: str = ""
    order: int = 0
    exclude_from_main_totals: bool = False
    is_active: bool = True
    cost_codes: Optional[List[CostCodeNode]] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Division":
        division_id = _first(data, "id", "uuid")
        if not division_id:
            raise ValueError(f"Division record has no id: {dict(data)}")
        return cls(
            id=str(division_id),
            number=str(_first(data, "number", "division_number", default="")),
            name=str(_first(data, "name", "division_name", default="")),
            order=int(as_amount(_first(data, "order", "division_order", default=0))),
            exclude_from_main_totals=bool(
                _first(data, "exclude_from_main_totals", "exclude_in_estimates_and_reports", default=False)
            ),
            is_active=bool(data.get("is_active", True)),
        )

    def iter_nodes(self) -> Iterator[CostCodeNode]:
        for cost_code in self.cost_codes or []:
            yield from cost_code.walk()


@dataclass
class CostCodeConfiguration:
    """Catalog definition of a cost code; ``parent_id`` places it in the tree."""

    id: str
    division_id: Optional[str] = None
    number: str = ""
    name: str = ""
    parent_id: Optional[str] = None
    order: int = 0
    is_active: bool = True
    preferred_items: List[Dict[str, Any]] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CostCodeConfiguration":
        config_id = _first(data, "id", "uuid")
        if not config_id:
            raise ValueError(f"Cost code configuration has no id: {dict(data)}")
        parent = _first(data, "parent_id", "parent_cost_code_uuid")
        return cls(
            id=str(config_id),
            division_id=_first(data, "division_id", "division_uuid"),
            number=str(_first(data, "number", "cost_code_number", default="")),
            name=str(_first(data, "name", "cost_code_name", default="")),
            parent_id=str(parent) if parent else None,
            order=int(as_amount(data.get("order", 0))),
            is_active=bool(data.get("is_active", True)),
            preferred_items=list(data.get("preferred_items") or []),
        )


@dataclass
class Catalog:
    """Static per-corporation cost-code catalog."""

    divisions: List[Division] = field(default_factory=list)
    configurations: List[CostCodeConfiguration] = field(default_factory=list)

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Catalog":
        return cls(
            divisions=[Division.from_dict(d) for d in payload.get("divisions", [])],
            configurations=[
                CostCodeConfiguration.from_dict(c) for c in payload.get("configurations", [])
            ],
        )

    def configuration(self, config_id: str) -> Optional[CostCodeConfiguration]:
        for config in self.configurations:
            if config.id == config_id:
                return config
        return None


@dataclass
class ProjectSettings:
    enable_labor: bool = True
    enable_material: bool = True
    only_total: bool = False
    rooms_count: float = 0.0
    area_count: float = 0.0
    default_contingency_percent: float = 0.0

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "ProjectSettings":
        data = data or {}
        return cls(
            enable_labor=bool(data.get("enable_labor", True)),
            enable_material=bool(data.get("enable_material", True)),
            only_total=bool(data.get("only_total", False)),
            rooms_count=as_amount(_first(data, "rooms_count", "no_of_rooms")),
            area_count=as_amount(_first(data, "area_count", "area_sq_ft")),
            default_contingency_percent=as_amount(
                _first(data, "default_contingency_percent", "contingency_percentage")
            ),
        )

    def visible_columns(self) -> List[str]:
        """Amount columns shown for this project."""
        if self.only_total:
            return ["total"]
        columns = []
        if self.enable_labor:
            columns.append("labor")
        if self.enable_material:
            columns.append("material")
        columns.append("total")
        return columns


@dataclass
class LineItem:
    """Flat persisted record for one leaf of the estimate tree."""

    cost_code_id: str
    cost_code_number: str = ""
    cost_code_name: str = ""
    division_id: Optional[str] = None
    division_name: str = ""
    parent_cost_code_id: Optional[str] = None
    description: str = ""
    is_sub_cost_code: bool = False
    estimation_type: EstimationType = EstimationType.MANUAL
    labor_amount: float = 0.0
    labor_amount_per_room: Optional[float] = None
    rooms_count: Optional[float] = None
    labor_amount_per_area: Optional[float] = None
    area_count: Optional[float] = None
    material_estimation_type: MaterialEstimationType = MaterialEstimationType.MANUAL
    material_amount: float = 0.0
    material_items: List[MaterialItem] = field(default_factory=list)
    contingency_enabled: bool = False
    contingency_percentage: Optional[float] = None
    contingency_amount: float = 0.0
    total_amount: float = 0.0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "LineItem":
        cost_code_id = _first(data, "cost_code_id", "cost_code_uuid")
        if not cost_code_id:
            raise ValueError(f"Line item has no cost code id: {dict(data)}")
        metadata = data.get("metadata") or {}
        enabled = _first(data, "contingency_enabled", default=metadata.get("contingency_enabled", False))
        if "contingency_percentage" in data:
            percentage = data.get("contingency_percentage")
        else:
            percentage = metadata.get("contingency_percentage")
        return cls(
            cost_code_id=str(cost_code_id),
            cost_code_number=str(_first(data, "cost_code_number", default="")),
            cost_code_name=str(_first(data, "cost_code_name", default="")),
            division_id=_first(data, "division_id", "division_uuid"),
            division_name=str(_first(data, "division_name", default="")),
            parent_cost_code_id=_first(data, "parent_cost_code_id", "parent_cost_code_uuid"),
            description=str(_first(data, "description", default="")),
            is_sub_cost_code=bool(data.get("is_sub_cost_code", False)),
            estimation_type=EstimationType.parse(
                _first(data, "estimation_type", "labor_estimation_type")
            ),
            labor_amount=as_amount(data.get("labor_amount")),
            labor_amount_per_room=as_count(data.get("labor_amount_per_room")),
            rooms_count=as_count(_first(data, "rooms_count", "labor_rooms_count")),
            labor_amount_per_area=as_count(
                _first(data, "labor_amount_per_area", "labor_amount_per_sqft")
            ),
            area_count=as_count(_first(data, "area_count", "labor_sq_ft_count")),
            material_estimation_type=MaterialEstimationType.parse(
                data.get("material_estimation_type")
            ),
            material_amount=as_amount(data.get("material_amount")),
            material_items=[
                item if isinstance(item, MaterialItem) else MaterialItem.from_dict(item)
                for item in data.get("material_items") or []
            ],
            contingency_enabled=bool(enabled),
            contingency_percentage=as_percentage(percentage),
            contingency_amount=as_amount(data.get("contingency_amount")),
            total_amount=as_amount(data.get("total_amount")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "cost_code_id": self.cost_code_id,
            "cost_code_number": self.cost_code_number,
            "cost_code_name": self.cost_code_name,
            "division_id": self.division_id,
            "division_name": self.division_name,
            "parent_cost_code_id": self.parent_cost_code_id,
            "description": self.description,
            "is_sub_cost_code": self.is_sub_cost_code,
            "estimation_type": self.estimation_type.value,
            "labor_amount": self.labor_amount,
            "labor_amount_per_room": self.labor_amount_per_room,
            "rooms_count": self.rooms_count,
            "labor_amount_per_area": self.labor_amount_per_area,
            "area_count": self.area_count,
            "material_estimation_type": self.material_estimation_type.value,
            "material_amount": self.material_amount,
            "material_items": [item.to_dict() for item in self.material_items],
            "contingency_enabled": self.contingency_enabled,
            "contingency_percentage": self.contingency_percentage,
            "contingency_amount": self.contingency_amount,
            "total_amount": self.total_amount,
            "metadata": {
                "contingency_enabled": self.contingency_enabled,
                "contingency_percentage": self.contingency_percentage,
            },
        }
