"""Barndo Estimator - Domain Models."""

from .geometry import (
    RoofPitch,
    StructureDimensions,
    LeanTo,
    BuildingGeometry,
    ResolvedStructure,
    ResolvedLeanTo,
    ResolvedGeometry,
)
from .catalog import Category, CatalogItem, UnitType, FormulaType
from .line_item import LineItem, LineItemKey, FormulaResult, replace_owned
from .selection import (
    BuildingType,
    SelectableOption,
    SitePlanTier,
    MoistureBarrier,
    ConcreteThickness,
    Zone,
    EntryDoorType,
    WindowSelection,
    GarageDoorSelection,
    EntryDoorSelection,
    ZoneOptions,
    SelectionState,
)
from .snapshot import EstimateStatus, EstimateBreakdown, EstimateData, EstimateSnapshot

__all__ = [
    # Geometry
    "RoofPitch",
    "StructureDimensions",
    "LeanTo",
    "BuildingGeometry",
    "ResolvedStructure",
    "ResolvedLeanTo",
    "ResolvedGeometry",
    # Catalog
    "Category",
    "CatalogItem",
    "UnitType",
    "FormulaType",
    # Line items
    "LineItem",
    "LineItemKey",
    "FormulaResult",
    "replace_owned",
    # Selection
    "BuildingType",
    "SelectableOption",
    "SitePlanTier",
    "MoistureBarrier",
    "ConcreteThickness",
    "Zone",
    "EntryDoorType",
    "WindowSelection",
    "GarageDoorSelection",
    "EntryDoorSelection",
    "ZoneOptions",
    "SelectionState",
    # Snapshot
    "EstimateStatus",
    "EstimateBreakdown",
    "EstimateData",
    "EstimateSnapshot",
]
