"""
Barndo Estimator - Pricing Catalog Domain Models

Read-only catalog entries supplied by the external pricing catalog.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)


class UnitType(str, Enum):
    """Unit a catalog price is quoted in."""

    EACH = "each"
    SQ_FT = "sq ft"
    WALL_SQ_FT = "wall sq ft"
    ROOF_SQ_FT = "roof sq ft"
    LINEAR_FT = "linear ft"
    PACKAGE = "package"

    @classmethod
    def parse(cls, value: "str | UnitType | None") -> "UnitType":
        """Parse unit type; unknown values fall back to EACH."""
        if isinstance(value, UnitType):
            return value
        normalized = (value or "").strip().lower()
        for unit in cls:
            if unit.value == normalized:
                return unit
        logger.warning(f"Unknown unit type '{value}', treating as 'each'")
        return cls.EACH


class FormulaType(str, Enum):
    """Quantity/price formulas a catalog item may declare."""

    BASE_BUILDING = "base_building"
    LEAN_TO = "lean_to"
    LEAN_TO_1 = "lean_to_1"
    LEAN_TO_2 = "lean_to_2"
    SCISSOR_TRUSS = "scissor_truss"
    GREENPOST = "greenpost"
    PERIMETER_INSULATION = "perimeter_insulation"
    ROOFING_MATERIAL = "roofing_material"
    SIDING = "siding"
    WALL_SQ_FT = "wall_sq_ft"
    INSIDE_WALL_SQ_FT = "inside_wall_sq_ft"
    LENGTH_TIMES_TWO = "length_times_two"
    POST_CALCULATION = "post_calculation"
    CONCRETE_SLAB = "concrete_slab"

    @classmethod
    def parse(cls, value: "str | FormulaType | None") -> "FormulaType | None":
        """Parse formula type; unknown or empty values mean 'no formula'."""
        if value is None or isinstance(value, FormulaType):
            return value
        try:
            return cls(value.strip().lower())
        except ValueError:
            logger.warning(f"Unknown formula type '{value}', ignoring formula")
            return None


@dataclass(frozen=True)
class Category:
    """Catalog category (e.g. 'Posts', 'Site Plans')."""

    id: str
    name: str
    description: str = ""
    sort_order: int = 0

    @classmethod
    def from_dict(cls, data: dict) -> "Category":
        return cls(
            id=str(data["id"]),
            name=data.get("name") or "",
            description=data.get("description") or "",
            sort_order=int(data.get("sort_order") or 0),
        )


@dataclass(frozen=True)
class CatalogItem:
    """
    Priced catalog entry.

    Owned by the pricing catalog; the engine never mutates it. `kind` is an
    optional machine-readable tag used before any name matching.
    """

    id: str
    name: str
    category: str
    base_price: float
    unit_type: UnitType = UnitType.EACH
    formula_type: FormulaType | None = None
    is_active: bool = True
    description: str = ""
    kind: str | None = None
    category_id: str | None = None
    sort_order: int = 0

    def __post_init__(self):
        if not self.id or not str(self.id).strip():
            raise ValueError("CatalogItem id cannot be empty")
        if not self.name or not self.name.strip():
            raise ValueError("CatalogItem name cannot be empty")
        if self.base_price < 0:
            raise ValueError(f"Base price cannot be negative: {self.base_price}")

    @property
    def has_formula(self) -> bool:
        return self.formula_type is not None

    def name_contains(self, *terms: str) -> bool:
        """Case-insensitive: name contains every term."""
        name = self.name.lower()
        return all(term.lower() in name for term in terms)

    def category_contains(self, term: str) -> bool:
        return term.lower() in self.category.lower()

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "base_price": self.base_price,
            "unit_type": self.unit_type.value,
            "formula_type": self.formula_type.value if self.formula_type else None,
            "is_active": self.is_active,
            "description": self.description,
            "kind": self.kind,
            "category_id": self.category_id,
            "sort_order": self.sort_order,
        }

    @classmethod
    def from_dict(cls, data: dict, categories: dict[str, str] | None = None) -> "CatalogItem":
        """
        Create CatalogItem from a catalog row.

        The category may be an embedded object ({"name": ...}), a plain name,
        or resolved through `categories` (category_id -> name).

        Args:
            data: Row dict
            categories: Optional category id -> name mapping

        Returns:
            CatalogItem instance
        """
        category = data.get("category")
        if isinstance(category, dict):
            category_name = category.get("name") or ""
        elif isinstance(category, str):
            category_name = category
        else:
            category_id = data.get("category_id")
            category_name = (categories or {}).get(str(category_id), "") if category_id is not None else ""

        formula_type = FormulaType.parse(data.get("formula_type"))
        if data.get("has_formula") is False:
            formula_type = None

        category_id = data.get("category_id")
        return cls(
            id=str(data["id"]),
            name=data["name"],
            category=category_name or "Uncategorized",
            base_price=float(data.get("base_price") or 0),
            unit_type=UnitType.parse(data.get("unit_type")),
            formula_type=formula_type,
            is_active=bool(data.get("is_active", True)),
            description=data.get("description") or "",
            kind=data.get("kind") or None,
            category_id=str(category_id) if category_id is not None else None,
            sort_order=int(data.get("sort_order") or 0),
        )
