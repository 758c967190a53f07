"""
Unit tests for the formula evaluator.
"""

import math

import pytest

from barndo.application.formula_evaluator import (
    FormulaEvaluator,
    base_building_price_per_sqft,
    describe_formula,
    required_inputs,
)
from barndo.application.geometry_resolver import resolve_geometry
from barndo.domain.models import (
    BuildingGeometry,
    CatalogItem,
    FormulaType,
    LeanTo,
    RoofPitch,
    StructureDimensions,
    UnitType,
)
from barndo.domain.models.config import PricingConfig


def item(unit=UnitType.EACH, formula=None, price=10.0):
    return CatalogItem(id="i", name="Item", category="Test", base_price=price, unit_type=unit, formula_type=formula)


@pytest.fixture
def evaluator():
    return FormulaEvaluator()


@pytest.fixture
def geo():
    return resolve_geometry(BuildingGeometry(primary=StructureDimensions(40, 60, 12, RoofPitch(4))))


class TestBaseBuildingFormula:
    """Test the base-building polynomial"""

    def test_30x40x12_rise_4(self, evaluator):
        per_sqft = base_building_price_per_sqft(30, 40, 12, 4)
        assert per_sqft == pytest.approx(16.92047, abs=1e-4)

        structure = resolve_geometry(BuildingGeometry(primary=StructureDimensions(30, 40, 12, RoofPitch(4)))).primary
        result = evaluator.base_building(structure)

        assert result.quantity == 1200
        assert result.calculated_price == pytest.approx(per_sqft)
        assert result.total_price == pytest.approx(per_sqft * 1200)
        assert result.total_price == pytest.approx(20304.564, abs=0.01)

    def test_floored_at_zero(self, evaluator):
        """Very wide buildings drive the polynomial negative"""
        assert base_building_price_per_sqft(200, 40, 12, 4) < 0

        structure = resolve_geometry(BuildingGeometry(primary=StructureDimensions(200, 40, 12))).primary
        result = evaluator.base_building(structure)
        assert result.calculated_price == 0
        assert result.total_price == 0

    def test_custom_floor(self):
        evaluator = FormulaEvaluator(PricingConfig(base_price_floor=5.0))
        structure = resolve_geometry(BuildingGeometry(primary=StructureDimensions(200, 40, 12))).primary
        assert evaluator.base_building(structure).calculated_price == 5.0


class TestUnitDefaults:
    """Test quantities for items without a formula"""

    def test_each_defaults_to_one(self, evaluator, geo):
        result = evaluator.evaluate(item(UnitType.EACH, price=350), geo)
        assert result.quantity == 1
        assert result.total_price == 350

    def test_each_uses_explicit_quantity(self, evaluator, geo):
        assert evaluator.evaluate(item(UnitType.PACKAGE), geo, quantity=3).quantity == 3

    def test_sq_ft_uses_footprint(self, evaluator, geo):
        assert evaluator.evaluate(item(UnitType.SQ_FT), geo).quantity == 2400

    def test_wall_sq_ft_uses_wall_area(self, evaluator, geo):
        assert evaluator.evaluate(item(UnitType.WALL_SQ_FT), geo).quantity == pytest.approx(geo.primary.wall_area)

    def test_roof_sq_ft_uses_roof_area(self, evaluator, geo):
        assert evaluator.evaluate(item(UnitType.ROOF_SQ_FT), geo).quantity == pytest.approx(2529.82, abs=0.01)

    def test_linear_ft_uses_perimeter(self, evaluator, geo):
        assert evaluator.evaluate(item(UnitType.LINEAR_FT), geo).quantity == 200

    def test_area_units_need_primary(self, evaluator):
        geo = resolve_geometry(BuildingGeometry(primary=StructureDimensions(0, 60, 12)))
        assert evaluator.evaluate(item(UnitType.SQ_FT), geo) is None
        assert evaluator.evaluate(item(UnitType.EACH), geo).quantity == 1


class TestFormulaTable:
    """Test declared formula kinds"""

    def test_scissor_truss(self, evaluator, geo):
        result = evaluator.evaluate(item(formula=FormulaType.SCISSOR_TRUSS), geo)
        assert result.quantity == math.floor(60 / 4) + 1

    def test_greenpost_primary_perimeter(self, evaluator, geo):
        assert evaluator.evaluate(item(formula=FormulaType.GREENPOST), geo).quantity == math.ceil(200 / 7)

    def test_greenpost_total_perimeter(self, evaluator):
        geo = resolve_geometry(BuildingGeometry(
            primary=StructureDimensions(40, 60, 12),
            secondary=StructureDimensions(30, 30, 10),
        ))
        assert evaluator.evaluate(item(formula=FormulaType.GREENPOST), geo).quantity == math.ceil(320 / 7)

    def test_roofing_material_without_secondary(self, evaluator, geo):
        result = evaluator.evaluate(item(formula=FormulaType.ROOFING_MATERIAL), geo)
        assert result.quantity == pytest.approx(40 * 62 * math.sqrt(1 + (4 / 12) ** 2))

    def test_inside_wall(self, evaluator, geo):
        result = evaluator.evaluate(item(formula=FormulaType.INSIDE_WALL_SQ_FT), geo)
        assert result.quantity == pytest.approx(2 * 100 * 12 * 0.9)

    def test_length_times_two(self, evaluator, geo):
        assert evaluator.evaluate(item(formula=FormulaType.LENGTH_TIMES_TWO), geo).quantity == 120

    def test_siding(self, evaluator, geo):
        result = evaluator.evaluate(item(formula=FormulaType.SIDING), geo)
        assert result.quantity == math.ceil(((40 * 12) + (40 * 4) / 4) * ((60 * 12) * 1.1))

    def test_concrete_slab_with_door_pads(self, evaluator, geo):
        result = evaluator.evaluate(item(formula=FormulaType.CONCRETE_SLAB, price=6.5), geo, extra_sqft=88)
        assert result.quantity == pytest.approx((2400 + 88) * 1.05)
        assert result.total_price == pytest.approx((2400 + 88) * 1.05 * 6.5)

    def test_lean_to_n_missing_input(self, evaluator, geo):
        assert evaluator.evaluate(item(formula=FormulaType.LEAN_TO_2), geo) is None

    def test_lean_to_1(self, evaluator):
        geo = resolve_geometry(BuildingGeometry(
            primary=StructureDimensions(40, 60, 12),
            lean_tos=(LeanTo(id="a", width=12, length=60, height=10),),
        ))
        assert evaluator.evaluate(item(formula=FormulaType.LEAN_TO_1), geo).quantity == 120

    def test_results_are_pre_margin(self, evaluator, geo):
        result = evaluator.evaluate(item(UnitType.SQ_FT, price=4.0), geo)
        assert result.calculated_price == 4.0

    def test_formula_string_present(self, evaluator, geo):
        assert "×" in evaluator.evaluate(item(formula=FormulaType.WALL_SQ_FT), geo).formula

    def test_deterministic(self, evaluator, geo):
        first = evaluator.evaluate(item(formula=FormulaType.POST_CALCULATION), geo)
        assert evaluator.evaluate(item(formula=FormulaType.POST_CALCULATION), geo) == first


class TestFormulaMetadata:
    """Test required inputs and descriptions"""

    def test_required_inputs(self):
        assert required_inputs(FormulaType.SCISSOR_TRUSS) == ("length",)
        assert "pitch" in required_inputs(FormulaType.BASE_BUILDING)

    def test_describe(self):
        assert describe_formula(FormulaType.LENGTH_TIMES_TWO) == "Length x 2 x Base Price"
        assert describe_formula(None).startswith("Unit-type")
