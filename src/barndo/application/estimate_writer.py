"""
Barndo Estimator - Estimate Writer

Customer-facing text for a saved estimate: description, scope, notes and
the dimensions string.
"""
import logging

from barndo.domain.models import (
    BuildingGeometry,
    BuildingType,
    ConcreteThickness,
    MoistureBarrier,
    SitePlanTier,
    SelectionState,
    StructureDimensions,
)

logger = logging.getLogger(__name__)

DEFAULT_TIMELINE = "90-120 days to completion from permit approval"
DEFAULT_COMPANY = "Titan Buildings"

POST_SIZING_LABELS = {
    "3ply_2x6": "3 Ply 2 x 6 GluLams",
    "3ply_2x8": "3 Ply 2 x 8 GluLams",
    "4ply_2x6": "4 Ply 2 x 6 GluLams",
    "4ply_2x8": "4 Ply 2 x 8 GluLams",
}

MOISTURE_BARRIER_TEXT = {
    MoistureBarrier.STANDARD: 'Standard 5/16" R-foil Reflective Moisture Barrier Insulation under Roof Steel',
    MoistureBarrier.PREMIUM: "Premium DripX Moisture Barrier Insulation under Roof Steel",
}


def _num(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else f"{value:g}"


def format_dimensions(dims: StructureDimensions) -> str:
    """W' x L' x H'"""
    return f"{_num(dims.width)}' x {_num(dims.length)}' x {_num(dims.height)}'"


def post_sizing_label(post_sizing: str) -> str:
    return POST_SIZING_LABELS.get(post_sizing, POST_SIZING_LABELS["3ply_2x6"])


def _uses_poured_footers(building_type: BuildingType) -> bool:
    return building_type in (BuildingType.COMMERCIAL, BuildingType.BARNDOMINIUM)


def _selected_concrete(selection: SelectionState) -> ConcreteThickness | None:
    for zone_options in (selection.house, selection.garage, selection.lean_to):
        if zone_options.concrete_thickness is not ConcreteThickness.NONE:
            return zone_options.concrete_thickness
    return None


class EstimateWriter:
    """Builds the text fields stored with an estimate."""

    def __init__(self, company_name: str = DEFAULT_COMPANY, timeline: str = DEFAULT_TIMELINE):
        self.company_name = company_name
        self.timeline = timeline

    def description(self, selection: SelectionState, geometry: BuildingGeometry) -> str:
        """
        Standard building features list.

        Args:
            selection: Current selection
            geometry: Raw geometry (primary dimensions are quoted)

        Returns:
            Multi-line description
        """
        company = self.company_name
        dims = geometry.primary
        house = selection.house
        footers = (
            "Concrete poured footers" if _uses_poured_footers(selection.building_type)
            else "160 lb. Sakrete @ 3500 p.s.i."
        )

        features = [
            f"Footers - {footers}",
            f"Posts - {post_sizing_label(house.post_sizing)} with Gable Posts Extended to Top of Truss",
            "Skirt Board- Foundation grade treated 2 x 8",
            "Carriers - 2 x 12 Yellow Pine #1 on Each Side of Post and/or Engineered Carriers as Specified in Plans",
            f"Trusses - {dims.pitch.label} Pitch Engineered Trusses, {house.truss_spacing}' o/c",
            "Side Girts and Roof Purlins - 2 x 4, 2' o/c",
            (
                f"Roof/Side Steel - {selection.siding_gauge} Gauge cold rolled metal ribbed panels using "
                "Sherwin Williams® coil coatings with galvalume paint protection. (40 Year Warranty)"
            ),
            "Vented Ridge - Vented Ridge Cap to cover the length of roof.",
            "Hurricane Ties- Simpson ties installed on each truss",
            "Overhang - 12\" Overhang on Eaves & Gables - Enclosed w/ Vinyl Soffit & Covered with Fascia",
            f"Moisture Barrier - {MOISTURE_BARRIER_TEXT[house.moisture_barrier]}",
            "Clean-Up - Trash and Extra Material Will Be Removed Upon Completion.",
            f"Drawings - CAD Drawings provided by {company}",
            f"Permit - {company} to file for permit, Cost invoiced Separate to customer.",
        ]

        header = (
            f"{company} will furnish the materials and perform the labor necessary for the completion "
            f"of a {selection.building_type.label} providing the following.\n\n"
            f"• {_num(dims.width)}'x{_num(dims.length)}'x{_num(dims.height)}' Pole Building - {company} will "
            "construct a building that will meet all local code requirements. The building will be "
            "constructed with the following standard features.\n\n"
            "Standard Building Features\n\n"
        )
        return header + "\n\n".join(f"✓ {feature}" for feature in features)

    def scope(self, selection: SelectionState, geometry: BuildingGeometry) -> str:
        """One-paragraph scope of work."""
        details = []
        if _uses_poured_footers(selection.building_type):
            details.append("Concrete poured footers (standard)")

        thickness = _selected_concrete(selection)
        if thickness is not None:
            details.append(
                'Excavate 4"-6" existing topsoil from inside the building footprint, haul in and compact '
                f'fill to grade. Pour {thickness.value}" 3500 psi fiber mesh reinforced smooth finish concrete '
                "floor inside building. Add 2' overhead door aprons and 4'x4' concrete pads at entry door "
                "locations. Concrete will be saw cut to control cracking"
            )

        house = selection.house
        details.append(f"Truss pitch: {geometry.primary.pitch.label}, {house.truss_spacing}' on center")
        details.append(f"Post sizing: {house.post_sizing.replace('_', ' ')}")
        details.append(MOISTURE_BARRIER_TEXT[house.moisture_barrier])

        gutter = 6 if selection.building_type is BuildingType.COMMERCIAL else 5
        details.append(f'{gutter}" seamless gutters and downspouts included')

        if selection.site_plan is not SitePlanTier.NONE:
            details.append(selection.site_plan.label)
        details.append(f"{self.company_name} to file for permit, Cost invoiced Separate to customer")

        return (
            f"Complete {selection.building_type.label.lower()} construction as specified. "
            + ". ".join(details)
        )

    def notes(self, selection: SelectionState, geometry: BuildingGeometry) -> str:
        garage_doors = sum(d.quantity for d in selection.garage_doors)
        entry_doors = sum(d.quantity for d in selection.entry_doors)
        lean_tos = sum(lt.quantity for lt in geometry.lean_tos)
        features = ", ".join(sorted(option.value.replace("_", " ") for option in selection.selected_options))

        notes = (
            "Enhanced estimate with detailed calculations. "
            f"Garage doors: {garage_doors}. Entry doors: {entry_doors}. Lean-tos: {lean_tos}."
        )
        if features:
            notes += f" Selected features: {features}."
        return notes
