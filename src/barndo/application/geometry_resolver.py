"""
Barndo Estimator - Geometry Resolver

Derives roof area, wall area, perimeter and gable measurements from raw
building dimensions. Pure functions; degenerate input resolves to None.
"""
import logging
import math

from barndo.domain.exceptions import GeometryError
from barndo.domain.models import (
    BuildingGeometry,
    StructureDimensions,
    ResolvedStructure,
    ResolvedLeanTo,
    ResolvedGeometry,
)

logger = logging.getLogger(__name__)


def resolve_structure(dimensions: StructureDimensions | None) -> ResolvedStructure | None:
    """
    Resolve derived measurements for one structure.

    roof_area = w * l * sqrt(1 + (rise/run)^2)
    wall_area = 2*l*h + 2*w*h + 2*(0.5 * w * gable_height)
    gable_height = (w/2) * (rise/run)
    perimeter = 2 * (w + l)

    Args:
        dimensions: Raw structure dimensions (None = structure absent)

    Returns:
        ResolvedStructure, or None if any dimension is <= 0 or the run is 0
    """
    if dimensions is None:
        return None
    if not dimensions.is_valid:
        logger.debug(f"Geometry unavailable for {dimensions}")
        return None

    w, l, h = dimensions.width, dimensions.length, dimensions.height
    ratio = dimensions.pitch.ratio

    gable_height = (w / 2) * ratio
    gable_area = 2 * (0.5 * w * gable_height)
    roof_area = w * l * math.sqrt(1 + ratio ** 2)
    wall_area = 2 * l * h + 2 * w * h + gable_area
    perimeter = 2 * (w + l)

    values = (roof_area, wall_area, perimeter, gable_height)
    if not all(math.isfinite(v) for v in values):
        logger.warning(f"Non-finite geometry for {dimensions}, treating as unavailable")
        return None

    return ResolvedStructure(
        width=w,
        length=l,
        height=h,
        pitch=dimensions.pitch,
        footprint=w * l,
        roof_area=roof_area,
        wall_area=wall_area,
        perimeter=perimeter,
        gable_height=gable_height,
        gable_area=gable_area,
    )


def require_structure(dimensions: StructureDimensions | None, structure: str = "primary") -> ResolvedStructure:
    """
    Strict variant of resolve_structure.

    Raises:
        GeometryError: If the structure is missing or degenerate
    """
    resolved = resolve_structure(dimensions)
    if resolved is None:
        raise GeometryError(f"Geometry for the {structure} structure is unavailable", structure=structure)
    return resolved


def resolve_geometry(geometry: BuildingGeometry) -> ResolvedGeometry:
    """
    Resolve the whole property.

    Lean-tos with non-positive dimensions are skipped.

    Args:
        geometry: Raw property geometry

    Returns:
        ResolvedGeometry (structures may individually be None)
    """
    lean_tos = tuple(
        ResolvedLeanTo(
            lean_to=lt,
            footprint=lt.width * lt.length * lt.quantity,
            perimeter=2 * (lt.width + lt.length) * lt.quantity,
        )
        for lt in geometry.lean_tos
        if lt.is_valid
    )

    return ResolvedGeometry(
        primary=resolve_structure(geometry.primary),
        secondary=resolve_structure(geometry.secondary),
        lean_tos=lean_tos,
        second_floor_sqft=geometry.second_floor_sqft,
    )
