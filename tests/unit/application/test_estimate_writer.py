"""
Unit tests for estimate text generation.
"""

from barndo.application.estimate_writer import EstimateWriter, format_dimensions, post_sizing_label
from barndo.domain.models import (
    BuildingGeometry,
    BuildingType,
    ConcreteThickness,
    EntryDoorSelection,
    EntryDoorType,
    GarageDoorSelection,
    LeanTo,
    MoistureBarrier,
    RoofPitch,
    SelectableOption,
    SelectionState,
    SitePlanTier,
    StructureDimensions,
    ZoneOptions,
)


class TestFormatting:
    """Test dimension and post label formatting"""

    def test_format_dimensions(self):
        assert format_dimensions(StructureDimensions(40, 60, 12)) == "40' x 60' x 12'"
        assert format_dimensions(StructureDimensions(40.5, 60, 12)) == "40.5' x 60' x 12'"

    def test_post_sizing_label(self):
        assert post_sizing_label("4ply_2x8") == "4 Ply 2 x 8 GluLams"
        assert post_sizing_label("unknown") == "3 Ply 2 x 6 GluLams"


class TestDescription:
    """Test the standard features description"""

    def test_includes_company_and_building(self, house_40x60):
        text = EstimateWriter().description(SelectionState(), house_40x60)

        assert text.startswith("Titan Buildings will furnish")
        assert "Residential Garage" in text
        assert "40'x60'x12' Pole Building" in text
        assert "✓ Footers - 160 lb. Sakrete @ 3500 p.s.i." in text
        assert "4/12 Pitch Engineered Trusses, 4' o/c" in text

    def test_barndominium_uses_poured_footers(self, house_40x60):
        selection = SelectionState.for_building_type(
            BuildingType.BARNDOMINIUM,
            house=ZoneOptions(truss_spacing=2, moisture_barrier=MoistureBarrier.PREMIUM),
        )
        text = EstimateWriter(company_name="Acme Barns").description(selection, house_40x60)

        assert "Concrete poured footers" in text
        assert "Premium DripX Moisture Barrier" in text
        assert "CAD Drawings provided by Acme Barns" in text


class TestScope:
    """Test the scope paragraph"""

    def test_concrete_and_site_plan(self):
        geometry = BuildingGeometry(primary=StructureDimensions(40, 60, 12, RoofPitch(6)))
        selection = SelectionState(
            house=ZoneOptions(concrete_thickness=ConcreteThickness.FIVE),
            site_plan=SitePlanTier.STANDARD,
        )
        scope = EstimateWriter().scope(selection, geometry)

        assert scope.startswith("Complete residential garage construction as specified. ")
        assert 'Pour 5" 3500 psi' in scope
        assert "Truss pitch: 6/12, 4' on center" in scope
        assert "Standard site plan" in scope
        assert '5" seamless gutters' in scope

    def test_commercial_gutters(self, house_40x60):
        scope = EstimateWriter().scope(SelectionState(building_type=BuildingType.COMMERCIAL), house_40x60)
        assert '6" seamless gutters' in scope
        assert "Concrete poured footers (standard)" in scope
        assert "Pour " not in scope


class TestNotes:
    """Test the notes line"""

    def test_counts_and_features(self):
        geometry = BuildingGeometry(
            primary=StructureDimensions(40, 60, 12),
            lean_tos=(LeanTo(id="a", width=12, length=60, height=10, quantity=2),),
        )
        selection = SelectionState(
            garage_doors=(GarageDoorSelection(id="g1", catalog_item_id="gd-10x10", quantity=2),),
            entry_doors=(EntryDoorSelection(id="e1", door_type=EntryDoorType.SOLID_3X68),),
            selected_options=frozenset({SelectableOption.METAL_ROOF, SelectableOption.ELECTRICAL}),
        )
        notes = EstimateWriter().notes(selection, geometry)

        assert notes == (
            "Enhanced estimate with detailed calculations. Garage doors: 2. Entry doors: 1. Lean-tos: 2."
            " Selected features: electrical, metal roof."
        )

    def test_no_features(self, house_40x60):
        notes = EstimateWriter().notes(SelectionState(), house_40x60)
        assert notes.endswith("Lean-tos: 0.")
