"""Cost-code estimate aggregation."""

from .estimation import EstimationError
from .models import (
    Catalog,
    CostCodeConfiguration,
    CostCodeNode,
    Division,
    EstimationType,
    LineItem,
    MaterialEstimationType,
    MaterialItem,
    ProjectSettings,
)
from .session import EstimateSession

__all__ = [
    "Catalog",
    "CostCodeConfiguration",
    "CostCodeNode",
    "Division",
    "EstimateSession",
    "EstimationError",
    "EstimationType",
    "LineItem",
    "MaterialEstimationType",
    "MaterialItem",
    "ProjectSettings",
]
