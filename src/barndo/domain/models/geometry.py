"""
Barndo Estimator - Geometry Domain Models

Raw building dimensions and the measurements derived from them.
"""
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class RoofPitch:
    """
    Roof slope as rise over run.

    Example: "4/12" -> rise=4, run=12
    """

    rise: float
    run: float = 12.0

    @property
    def ratio(self) -> float:
        """Rise per unit of run (raises ZeroDivisionError when run is 0)."""
        return self.rise / self.run

    @property
    def label(self) -> str:
        """Display label, e.g. '4/12'."""
        return f"{_format_number(self.rise)}/{_format_number(self.run)}"

    @classmethod
    def parse(cls, value: "str | float | int | RoofPitch") -> "RoofPitch":
        """
        Parse pitch from '4/12', '4' or a number (rise over 12).

        Raises:
            ValueError: If value cannot be parsed
        """
        if isinstance(value, RoofPitch):
            return value
        if isinstance(value, (int, float)):
            return cls(rise=float(value))

        text = str(value).strip()
        if "/" in text:
            rise, _, run = text.partition("/")
            return cls(rise=float(rise), run=float(run))
        return cls(rise=float(text))


@dataclass(frozen=True)
class StructureDimensions:
    """
    Width/length/height (feet) and pitch of one building.

    Values are not validated here: partially entered dimensions are normal
    while a user is typing. The geometry resolver decides availability.
    """

    width: float
    length: float
    height: float
    pitch: RoofPitch = field(default_factory=lambda: RoofPitch(4))

    @property
    def is_valid(self) -> bool:
        """True when all dimensions are positive and the pitch run is non-zero."""
        return (
            self.width > 0
            and self.length > 0
            and self.height > 0
            and self.pitch.rise >= 0
            and self.pitch.run != 0
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "width": self.width,
            "length": self.length,
            "height": self.height,
            "pitch": self.pitch.label,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "StructureDimensions":
        return cls(
            width=float(data.get("width") or 0),
            length=float(data.get("length") or 0),
            height=float(data.get("height") or 0),
            pitch=RoofPitch.parse(data.get("pitch", "4/12")),
        )


@dataclass(frozen=True)
class LeanTo:
    """Single-slope structure attached to a side wall."""

    id: str
    width: float
    length: float
    height: float
    wraparound: bool = False
    quantity: int = 1

    def __post_init__(self):
        if not self.id or not str(self.id).strip():
            raise ValueError("LeanTo id cannot be empty")
        if self.quantity < 1:
            raise ValueError(f"LeanTo quantity must be >= 1, got {self.quantity}")

    @property
    def is_valid(self) -> bool:
        return self.width > 0 and self.length > 0 and self.height > 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "width": self.width,
            "length": self.length,
            "height": self.height,
            "wraparound": self.wraparound,
            "quantity": self.quantity,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "LeanTo":
        return cls(
            id=str(data["id"]),
            width=float(data.get("width") or 0),
            length=float(data.get("length") or 0),
            height=float(data.get("height") or 0),
            wraparound=bool(data.get("wraparound", False)),
            quantity=int(data.get("quantity", 1)),
        )


@dataclass(frozen=True)
class BuildingGeometry:
    """
    Raw geometry input for the whole property.

    Primary structure, optional secondary structure (garage or second
    building), lean-tos, and the barndominium second-floor area.
    """

    primary: StructureDimensions
    secondary: StructureDimensions | None = None
    lean_tos: tuple[LeanTo, ...] = field(default_factory=tuple)
    second_floor_sqft: float = 0.0

    def __post_init__(self):
        if not isinstance(self.lean_tos, tuple):
            object.__setattr__(self, "lean_tos", tuple(self.lean_tos))
        if self.second_floor_sqft < 0:
            raise ValueError(f"Second floor area cannot be negative: {self.second_floor_sqft}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "primary": self.primary.to_dict(),
            "secondary": self.secondary.to_dict() if self.secondary else None,
            "lean_tos": [lt.to_dict() for lt in self.lean_tos],
            "second_floor_sqft": self.second_floor_sqft,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "BuildingGeometry":
        secondary = data.get("secondary")
        return cls(
            primary=StructureDimensions.from_dict(data["primary"]),
            secondary=StructureDimensions.from_dict(secondary) if secondary else None,
            lean_tos=tuple(LeanTo.from_dict(lt) for lt in data.get("lean_tos", [])),
            second_floor_sqft=float(data.get("second_floor_sqft") or 0),
        )


@dataclass(frozen=True)
class ResolvedStructure:
    """Derived measurements of one structure. Never stored as truth."""

    width: float
    length: float
    height: float
    pitch: RoofPitch
    footprint: float
    roof_area: float
    wall_area: float
    perimeter: float
    gable_height: float
    gable_area: float

    def to_dict(self) -> dict[str, float]:
        return {
            "width": self.width,
            "length": self.length,
            "height": self.height,
            "pitch": self.pitch.label,
            "footprint": self.footprint,
            "roof_area": self.roof_area,
            "wall_area": self.wall_area,
            "perimeter": self.perimeter,
            "gable_height": self.gable_height,
            "gable_area": self.gable_area,
        }


@dataclass(frozen=True)
class ResolvedLeanTo:
    """Derived measurements of one lean-to (already multiplied by quantity)."""

    lean_to: LeanTo
    footprint: float
    perimeter: float


@dataclass(frozen=True)
class ResolvedGeometry:
    """
    Output of the geometry resolver.

    `primary`/`secondary` are None when the structure is absent or its
    dimensions are degenerate.
    """

    primary: ResolvedStructure | None
    secondary: ResolvedStructure | None = None
    lean_tos: tuple[ResolvedLeanTo, ...] = field(default_factory=tuple)
    second_floor_sqft: float = 0.0

    @property
    def total_roof_area(self) -> float | None:
        """Primary + secondary roof area, or None without a secondary structure."""
        if self.primary is None or self.secondary is None:
            return None
        return self.primary.roof_area + self.secondary.roof_area

    @property
    def total_perimeter(self) -> float | None:
        """Primary + secondary perimeter, or None without a secondary structure."""
        if self.primary is None or self.secondary is None:
            return None
        return self.primary.perimeter + self.secondary.perimeter

    @property
    def tallest_height(self) -> float:
        """Tallest wall height on the property (0 when nothing resolves)."""
        heights = [s.height for s in (self.primary, self.secondary) if s is not None]
        return max(heights, default=0.0)

    @property
    def lean_to_footprint(self) -> float:
        return sum(lt.footprint for lt in self.lean_tos)

    @property
    def lean_to_perimeter(self) -> float:
        return sum(lt.perimeter for lt in self.lean_tos)

    def to_dict(self) -> dict[str, Any]:
        return {
            "primary": self.primary.to_dict() if self.primary else None,
            "secondary": self.secondary.to_dict() if self.secondary else None,
            "total_roof_area": self.total_roof_area,
            "total_perimeter": self.total_perimeter,
            "lean_to_footprint": self.lean_to_footprint,
            "second_floor_sqft": self.second_floor_sqft,
        }


def _format_number(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)
