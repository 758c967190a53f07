"""
Barndo Estimator - Estimate Snapshot Domain Model

Persisted estimate record with the full breakdown for later reconstruction.
"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from .geometry import BuildingGeometry
from .line_item import LineItem
from .selection import SelectionState


class EstimateStatus(str, Enum):
    DRAFT = "draft"
    SAVED = "saved"
    QUICK_WRITTEN = "quick_written"
    DETAILED_WRITTEN = "detailed_written"


@dataclass(frozen=True)
class EstimateBreakdown:
    """
    Opaque structured payload round-tripped through persistence.

    Holds the ordered line items plus the inputs that produced them.
    """

    items: tuple[LineItem, ...]
    selection: SelectionState
    geometry: BuildingGeometry | None = None
    totals: dict[str, float] = field(default_factory=dict)

    def __post_init__(self):
        if not isinstance(self.items, tuple):
            object.__setattr__(self, "items", tuple(self.items))

    def to_dict(self) -> dict[str, Any]:
        return {
            "items": [item.to_dict() for item in self.items],
            "selection": self.selection.to_dict(),
            "geometry": self.geometry.to_dict() if self.geometry else None,
            "totals": dict(self.totals),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "EstimateBreakdown":
        geometry = data.get("geometry")
        return cls(
            items=tuple(LineItem.from_dict(item) for item in data.get("items", [])),
            selection=SelectionState.from_dict(data.get("selection") or {}),
            geometry=BuildingGeometry.from_dict(geometry) if geometry else None,
            totals={k: float(v) for k, v in (data.get("totals") or {}).items()},
        )


@dataclass(frozen=True)
class EstimateData:
    """Fields sent to persistence when creating or updating an estimate."""

    building_type: str
    dimensions: str
    wall_height: float
    estimated_price: float
    description: str
    scope: str
    notes: str
    breakdown: EstimateBreakdown
    timeline: str = ""
    version_name: str | None = None
    status: EstimateStatus = EstimateStatus.SAVED

    def to_dict(self) -> dict[str, Any]:
        return {
            "building_type": self.building_type,
            "dimensions": self.dimensions,
            "wall_height": self.wall_height,
            "estimated_price": self.estimated_price,
            "description": self.description,
            "scope": self.scope,
            "timeline": self.timeline,
            "notes": self.notes,
            "detailed_breakdown": self.breakdown.to_dict(),
            "version_name": self.version_name,
            "status": self.status.value,
        }


@dataclass(frozen=True)
class EstimateSnapshot:
    """
    Persisted estimate.

    Never mutated after creation except through explicit update/new-version
    operations on the persistence side.
    """

    id: int
    lead_id: str
    building_type: str
    dimensions: str
    estimated_price: float
    description: str = ""
    scope: str = ""
    notes: str = ""
    timeline: str = ""
    wall_height: float = 0.0
    breakdown: EstimateBreakdown | None = None
    version_name: str | None = None
    status: EstimateStatus = EstimateStatus.SAVED
    lead_name: str = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def __post_init__(self):
        if self.estimated_price < 0:
            raise ValueError(f"Estimated price cannot be negative: {self.estimated_price}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "lead_id": self.lead_id,
            "lead_name": self.lead_name,
            "building_type": self.building_type,
            "dimensions": self.dimensions,
            "wall_height": self.wall_height,
            "estimated_price": self.estimated_price,
            "description": self.description,
            "scope": self.scope,
            "timeline": self.timeline,
            "notes": self.notes,
            "detailed_breakdown": self.breakdown.to_dict() if self.breakdown else None,
            "version_name": self.version_name,
            "status": self.status.value,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "EstimateSnapshot":
        """
        Create EstimateSnapshot from a persistence row.

        Args:
            data: Row dict (detailed_breakdown may be None for legacy rows)

        Returns:
            EstimateSnapshot instance
        """
        breakdown = data.get("detailed_breakdown")
        return cls(
            id=int(data["id"]),
            lead_id=str(data["lead_id"]),
            lead_name=data.get("lead_name") or "",
            building_type=data.get("building_type") or "",
            dimensions=data.get("dimensions") or "",
            wall_height=float(data.get("wall_height") or 0),
            estimated_price=float(data.get("estimated_price") or 0),
            description=data.get("description") or "",
            scope=data.get("scope") or "",
            timeline=data.get("timeline") or "",
            notes=data.get("notes") or "",
            breakdown=EstimateBreakdown.from_dict(breakdown) if breakdown else None,
            version_name=data.get("version_name"),
            status=EstimateStatus(data.get("status") or "saved"),
            created_at=data.get("created_at"),
            updated_at=data.get("updated_at"),
        )
