"""
Barndo Estimator - Selection Domain Models

User choices that, together with geometry and the catalog, fully determine
an estimate.
"""
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any

from ..exceptions import ValidationError


class BuildingType(str, Enum):
    """Project types offered to customers."""

    BARNDOMINIUM = "barndominium"
    RESIDENTIAL_GARAGE = "residential_garage"
    COMMERCIAL = "commercial"

    @property
    def label(self) -> str:
        return _BUILDING_LABELS[self]

    @property
    def default_pitch(self) -> str:
        return "6/12" if self is BuildingType.BARNDOMINIUM else "4/12"

    @property
    def default_truss_spacing(self) -> int:
        return 2 if self is BuildingType.BARNDOMINIUM else 4

    @property
    def default_margin(self) -> float:
        return 25.0 if self is BuildingType.RESIDENTIAL_GARAGE else 20.0

    @property
    def secondary_label(self) -> str:
        """What the secondary structure is called for this building type."""
        return "Garage" if self is BuildingType.BARNDOMINIUM else "2nd Building"


_BUILDING_LABELS = {
    BuildingType.BARNDOMINIUM: "Barndominium",
    BuildingType.RESIDENTIAL_GARAGE: "Residential Garage",
    BuildingType.COMMERCIAL: "Commercial Building",
}


class SelectableOption(str, Enum):
    """Checkbox feature packages."""

    CONCRETE_PAD = "concrete_pad"
    ELECTRICAL = "electrical"
    PLUMBING = "plumbing"
    INSULATION = "insulation"
    FLOORING = "flooring"
    INTERIOR_FINISH = "interior_finish"
    HVAC = "hvac"
    METAL_ROOF = "metal_roof"
    WAINSCOTING = "wainscoting"
    GREENPOSTS = "greenposts"


class SitePlanTier(str, Enum):
    NONE = "none"
    STANDARD = "standard"
    LINES_AND_GRADE = "lines_and_grade"
    UPGRADED_LINES_AND_GRADE = "upgraded_lines_and_grade"

    @property
    def label(self) -> str:
        return {
            SitePlanTier.NONE: "No site plan",
            SitePlanTier.STANDARD: "Standard site plan",
            SitePlanTier.LINES_AND_GRADE: "Lines and grade plan",
            SitePlanTier.UPGRADED_LINES_AND_GRADE: "Upgraded lines and grade plan",
        }[self]


class MoistureBarrier(str, Enum):
    STANDARD = "standard"
    PREMIUM = "premium"


class ConcreteThickness(str, Enum):
    NONE = "none"
    FOUR = "4"
    FIVE = "5"
    SIX = "6"


class Zone(str, Enum):
    """Part of the property a feature lands in."""

    HOUSE = "house"
    GARAGE = "garage"
    LEAN_TO = "leanto"


class EntryDoorType(str, Enum):
    """Entry door configurations and how they are found in the catalog."""

    SOLID_3X68 = "3x68_solid"
    NINE_LITE_3X68 = "3x68_9lite"
    SOLID_6X68 = "6x68_solid"
    NINE_LITE_6X68 = "6x68_9lite"
    GLASS_SLIDING_6 = "6_glass_sliding"
    CUSTOM = "custom"

    @property
    def search_terms(self) -> tuple[str, ...]:
        return _ENTRY_DOOR_TERMS[self]

    @property
    def width_feet(self) -> int:
        """Nominal opening width: 6' doors and sliders, 3' otherwise."""
        if self in (EntryDoorType.SOLID_6X68, EntryDoorType.NINE_LITE_6X68, EntryDoorType.GLASS_SLIDING_6):
            return 6
        return 3


_ENTRY_DOOR_TERMS = {
    EntryDoorType.SOLID_3X68: ("3'x6'8\"", "solid", "entry"),
    EntryDoorType.NINE_LITE_3X68: ("3'x6'8\"", "9-lite", "entry"),
    EntryDoorType.SOLID_6X68: ("6'x6'8\"", "solid", "entry"),
    EntryDoorType.NINE_LITE_6X68: ("6'x6'8\"", "9-lite", "entry"),
    EntryDoorType.GLASS_SLIDING_6: ("6'", "glass", "sliding", "door"),
    EntryDoorType.CUSTOM: ("entry", "door"),
}


@dataclass(frozen=True)
class WindowSelection:
    id: str
    width: float
    height: float
    quantity: int = 1
    is_double: bool = False

    def __post_init__(self):
        if self.quantity < 0:
            raise ValueError(f"Window quantity cannot be negative: {self.quantity}")


@dataclass(frozen=True)
class GarageDoorSelection:
    """Configured garage door instance pointing at a chosen catalog item."""

    id: str
    catalog_item_id: str
    quantity: int = 1
    window_rows: int = 0
    opener_quantity: int = 0
    zone: Zone = Zone.HOUSE

    def __post_init__(self):
        if self.quantity < 0:
            raise ValueError(f"Garage door quantity cannot be negative: {self.quantity}")
        if self.window_rows < 0 or self.opener_quantity < 0:
            raise ValueError("Garage door add-on counts cannot be negative")


@dataclass(frozen=True)
class EntryDoorSelection:
    id: str
    door_type: EntryDoorType
    quantity: int = 1
    zone: Zone = Zone.HOUSE
    custom_description: str = ""

    def __post_init__(self):
        if self.quantity < 0:
            raise ValueError(f"Entry door quantity cannot be negative: {self.quantity}")


@dataclass(frozen=True)
class ZoneOptions:
    """
    Per-zone structural and foundation choices.

    Truss spacing, post sizing and moisture barrier only apply to the house
    and garage/second building; lean-tos use the foundation toggles.
    """

    concrete_thickness: ConcreteThickness = ConcreteThickness.NONE
    site_prep: bool = False
    perimeter_insulation: bool = False
    moisture_barrier: MoistureBarrier = MoistureBarrier.STANDARD
    truss_spacing: int = 4
    post_sizing: str = "3ply_2x6"

    def to_dict(self) -> dict[str, Any]:
        return {
            "concrete_thickness": self.concrete_thickness.value,
            "site_prep": self.site_prep,
            "perimeter_insulation": self.perimeter_insulation,
            "moisture_barrier": self.moisture_barrier.value,
            "truss_spacing": self.truss_spacing,
            "post_sizing": self.post_sizing,
        }

    @classmethod
    def from_dict(cls, data: dict | None) -> "ZoneOptions":
        data = data or {}
        return cls(
            concrete_thickness=ConcreteThickness(str(data.get("concrete_thickness", "none"))),
            site_prep=bool(data.get("site_prep", False)),
            perimeter_insulation=bool(data.get("perimeter_insulation", False)),
            moisture_barrier=MoistureBarrier(data.get("moisture_barrier", "standard")),
            truss_spacing=int(data.get("truss_spacing", 4)),
            post_sizing=data.get("post_sizing", "3ply_2x6"),
        )


@dataclass(frozen=True)
class SelectionState:
    """
    Everything the user has chosen for one estimate.

    Immutable: edits produce a new state via `with_changes`.
    """

    building_type: BuildingType = BuildingType.RESIDENTIAL_GARAGE
    selected_options: frozenset[SelectableOption] = field(default_factory=frozenset)
    windows: tuple[WindowSelection, ...] = field(default_factory=tuple)
    garage_doors: tuple[GarageDoorSelection, ...] = field(default_factory=tuple)
    entry_doors: tuple[EntryDoorSelection, ...] = field(default_factory=tuple)
    site_plan: SitePlanTier = SitePlanTier.NONE
    house: ZoneOptions = field(default_factory=ZoneOptions)
    garage: ZoneOptions = field(default_factory=ZoneOptions)
    lean_to: ZoneOptions = field(default_factory=ZoneOptions)
    margin_percentage: float = 20.0
    item_quantities: dict[str, float] = field(default_factory=dict)
    siding_gauge: str = "29"

    def __post_init__(self):
        if not (0 <= self.margin_percentage < 100):
            raise ValidationError(
                f"Margin must be in [0, 100), got {self.margin_percentage}",
                field_name="margin_percentage"
            )
        negative = {item_id: qty for item_id, qty in self.item_quantities.items() if qty < 0}
        if negative:
            raise ValidationError(
                f"Item quantities cannot be negative: {negative}",
                field_name="item_quantities"
            )
        if not isinstance(self.selected_options, frozenset):
            object.__setattr__(self, "selected_options", frozenset(self.selected_options))
        for name in ("windows", "garage_doors", "entry_doors"):
            value = getattr(self, name)
            if not isinstance(value, tuple):
                object.__setattr__(self, name, tuple(value))

    @classmethod
    def for_building_type(cls, building_type: BuildingType, **overrides: Any) -> "SelectionState":
        """Fresh selection with the building type's default spacing and margin."""
        spacing = building_type.default_truss_spacing
        defaults: dict[str, Any] = {
            "building_type": building_type,
            "margin_percentage": building_type.default_margin,
            "house": ZoneOptions(truss_spacing=spacing),
            "garage": ZoneOptions(),
        }
        defaults.update(overrides)
        return cls(**defaults)

    def with_changes(self, **changes: Any) -> "SelectionState":
        return replace(self, **changes)

    def with_option(self, option: SelectableOption, selected: bool = True) -> "SelectionState":
        options = set(self.selected_options)
        if selected:
            options.add(option)
        else:
            options.discard(option)
        return replace(self, selected_options=frozenset(options))

    def zone_options(self, zone: Zone) -> ZoneOptions:
        return {Zone.HOUSE: self.house, Zone.GARAGE: self.garage, Zone.LEAN_TO: self.lean_to}[zone]

    @property
    def total_windows(self) -> int:
        return sum(w.quantity for w in self.windows)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict (for JSON serialization)."""
        return {
            "building_type": self.building_type.value,
            "selected_options": sorted(o.value for o in self.selected_options),
            "windows": [
                {"id": w.id, "width": w.width, "height": w.height, "quantity": w.quantity, "is_double": w.is_double}
                for w in self.windows
            ],
            "garage_doors": [
                {
                    "id": d.id,
                    "catalog_item_id": d.catalog_item_id,
                    "quantity": d.quantity,
                    "window_rows": d.window_rows,
                    "opener_quantity": d.opener_quantity,
                    "zone": d.zone.value,
                }
                for d in self.garage_doors
            ],
            "entry_doors": [
                {
                    "id": d.id,
                    "door_type": d.door_type.value,
                    "quantity": d.quantity,
                    "zone": d.zone.value,
                    "custom_description": d.custom_description,
                }
                for d in self.entry_doors
            ],
            "site_plan": self.site_plan.value,
            "house": self.house.to_dict(),
            "garage": self.garage.to_dict(),
            "lean_to": self.lean_to.to_dict(),
            "margin_percentage": self.margin_percentage,
            "item_quantities": dict(self.item_quantities),
            "siding_gauge": self.siding_gauge,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SelectionState":
        """
        Create SelectionState from dict (from a saved breakdown).

        Raises:
            ValueError: If an enum value is unknown
        """
        return cls(
            building_type=BuildingType(data.get("building_type", "residential_garage")),
            selected_options=frozenset(SelectableOption(o) for o in data.get("selected_options", [])),
            windows=tuple(
                WindowSelection(
                    id=str(w["id"]),
                    width=float(w.get("width") or 0),
                    height=float(w.get("height") or 0),
                    quantity=int(w.get("quantity", 1)),
                    is_double=bool(w.get("is_double", False)),
                )
                for w in data.get("windows", [])
            ),
            garage_doors=tuple(
                GarageDoorSelection(
                    id=str(d["id"]),
                    catalog_item_id=str(d["catalog_item_id"]),
                    quantity=int(d.get("quantity", 1)),
                    window_rows=int(d.get("window_rows", 0)),
                    opener_quantity=int(d.get("opener_quantity", 0)),
                    zone=Zone(d.get("zone", "house")),
                )
                for d in data.get("garage_doors", [])
            ),
            entry_doors=tuple(
                EntryDoorSelection(
                    id=str(d["id"]),
                    door_type=EntryDoorType(d["door_type"]),
                    quantity=int(d.get("quantity", 1)),
                    zone=Zone(d.get("zone", "house")),
                    custom_description=d.get("custom_description", ""),
                )
                for d in data.get("entry_doors", [])
            ),
            site_plan=SitePlanTier(data.get("site_plan", "none")),
            house=ZoneOptions.from_dict(data.get("house")),
            garage=ZoneOptions.from_dict(data.get("garage")),
            lean_to=ZoneOptions.from_dict(data.get("lean_to")),
            margin_percentage=float(data.get("margin_percentage", 20.0)),
            item_quantities={str(k): float(v) for k, v in (data.get("item_quantities") or {}).items()},
            siding_gauge=str(data.get("siding_gauge", "29")),
        )
