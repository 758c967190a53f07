"""
Barndo Estimator - Formula Evaluator

Computes quantity and base (pre-margin) unit price for catalog items, either
from a declared formula type or from unit-type defaults.
"""
import logging
import math
from typing import Callable

from barndo.domain.models import (
    CatalogItem,
    FormulaResult,
    FormulaType,
    ResolvedGeometry,
    ResolvedStructure,
    UnitType,
)
from barndo.domain.models.config import PricingConfig
from .post_calculation import calculate_posts, display_post_size

logger = logging.getLogger(__name__)


FORMULA_REQUIRED_INPUTS: dict[FormulaType, tuple[str, ...]] = {
    FormulaType.BASE_BUILDING: ("width", "length", "height", "pitch"),
    FormulaType.LEAN_TO: ("width", "height"),
    FormulaType.LEAN_TO_1: ("lean_to_1_width", "lean_to_1_height"),
    FormulaType.LEAN_TO_2: ("lean_to_2_width", "lean_to_2_height"),
    FormulaType.SCISSOR_TRUSS: ("length",),
    FormulaType.GREENPOST: ("width", "length"),
    FormulaType.PERIMETER_INSULATION: ("width", "length"),
    FormulaType.ROOFING_MATERIAL: ("width", "length", "pitch"),
    FormulaType.SIDING: ("width", "length", "height", "pitch"),
    FormulaType.WALL_SQ_FT: ("width", "length", "height", "pitch"),
    FormulaType.INSIDE_WALL_SQ_FT: ("width", "length", "height"),
    FormulaType.LENGTH_TIMES_TWO: ("length",),
    FormulaType.POST_CALCULATION: ("width", "length", "height", "pitch"),
    FormulaType.CONCRETE_SLAB: ("width", "length", "concrete_thickness"),
}

FORMULA_DESCRIPTIONS: dict[FormulaType, str] = {
    FormulaType.BASE_BUILDING: "Base building polynomial $/sq ft x footprint",
    FormulaType.LEAN_TO: "Width x Height x Base Price",
    FormulaType.LEAN_TO_1: "Lean-To 1 Width x Height x Base Price",
    FormulaType.LEAN_TO_2: "Lean-To 2 Width x Height x Base Price",
    FormulaType.SCISSOR_TRUSS: "((Length / 4) + 1) x Base Price",
    FormulaType.GREENPOST: "(Perimeter / 7) rounded up x Base Price",
    FormulaType.PERIMETER_INSULATION: "Perimeter (linear ft) x Base Price",
    FormulaType.ROOFING_MATERIAL: "Width x (Length + 2) x pitch factor x Base Price",
    FormulaType.SIDING: "((W x H) + (W x P) / P) x ((L x H) x 1.1) x Base Price",
    FormulaType.WALL_SQ_FT: "Side walls + end walls + gable triangles x Base Price",
    FormulaType.INSIDE_WALL_SQ_FT: "2 x (W + L) x H x 0.9 x Base Price",
    FormulaType.LENGTH_TIMES_TWO: "Length x 2 x Base Price",
    FormulaType.POST_CALCULATION: "Total post linear feet x upgrade $/LF",
    FormulaType.CONCRETE_SLAB: "(W x L + door pads) x 1.05 x Base Price",
}


def base_building_price_per_sqft(width: float, length: float, height: float, rise: float) -> float:
    """
    Base-building shell price per square foot (unfloored).

    B2=width, B3=length, B4=height, B5=pitch rise (over 12).
    """
    b2, b3, b4, b5 = width, length, height, rise
    return (
        -108
        + 2.566461 * b2
        + 0.003432 * b3
        + 0.466366 * b4
        + 1675.96798 / b2
        + 189.909144 / b3
        - 0.003643 * b2 * b4
        - 0.001466 * b3 * b4
        + 0.672221 * (b5 - 4)
        - 6.56163 * (b5 - 4) / b2
        + 5.930883 * (b5 - 4) / b3
        + 0.000142 * b2 * b3
        - 0.018508 * b2 ** 2
        + 0.000051 * b3 ** 2
    )


def required_inputs(formula_type: FormulaType) -> tuple[str, ...]:
    return FORMULA_REQUIRED_INPUTS.get(formula_type, ())


def describe_formula(formula_type: FormulaType | None) -> str:
    if formula_type is None:
        return "Unit-type quantity x Base Price"
    return FORMULA_DESCRIPTIONS.get(formula_type, "Custom formula")


def _money(value: float) -> str:
    return f"${value:,.2f}"


def _num(value: float) -> str:
    return f"{value:g}"


class FormulaEvaluator:
    """
    Deterministic quantity/price evaluator.

    Every result is pre-margin: the caller applies the margin multiplier once.
    The same (item, geometry, inputs) always yields the same result.
    """

    def __init__(self, pricing: PricingConfig | None = None):
        """
        Initialize FormulaEvaluator.

        Args:
            pricing: Pricing constants (defaults if None)
        """
        self.pricing = pricing or PricingConfig()
        self._formulas: dict[FormulaType, Callable[..., FormulaResult | None]] = {
            FormulaType.BASE_BUILDING: self._base_building,
            FormulaType.LEAN_TO: self._lean_to,
            FormulaType.LEAN_TO_1: lambda item, geo, **kw: self._lean_to_n(item, geo, 0),
            FormulaType.LEAN_TO_2: lambda item, geo, **kw: self._lean_to_n(item, geo, 1),
            FormulaType.SCISSOR_TRUSS: self._scissor_truss,
            FormulaType.GREENPOST: self._greenpost,
            FormulaType.PERIMETER_INSULATION: self._perimeter_insulation,
            FormulaType.ROOFING_MATERIAL: self._roofing_material,
            FormulaType.SIDING: self._siding,
            FormulaType.WALL_SQ_FT: self._wall_sq_ft,
            FormulaType.INSIDE_WALL_SQ_FT: self._inside_wall_sq_ft,
            FormulaType.LENGTH_TIMES_TWO: self._length_times_two,
            FormulaType.POST_CALCULATION: self._post_calculation,
            FormulaType.CONCRETE_SLAB: self._concrete_slab,
        }

    # Public API

    def evaluate(
        self,
        item: CatalogItem,
        geometry: ResolvedGeometry,
        quantity: float | None = None,
        extra_sqft: float = 0.0
    ) -> FormulaResult | None:
        """
        Price a catalog item against resolved geometry.

        Items with a formula use it. Otherwise the unit type decides the
        quantity: sq ft -> footprint, wall sq ft -> wall area, roof sq ft ->
        roof area, linear ft -> perimeter, each/package -> explicit quantity
        or 1.

        Args:
            item: Catalog item
            geometry: Resolved property geometry
            quantity: Explicit quantity (used by each/package items)
            extra_sqft: Additional slab area for concrete_slab (door pads)

        Returns:
            FormulaResult with base prices, or None when required geometry is
            unavailable
        """
        if item.formula_type is not None:
            return self.evaluate_formula(item, geometry, extra_sqft=extra_sqft)
        return self.evaluate_unit_default(item, geometry, quantity)

    def evaluate_formula(
        self,
        item: CatalogItem,
        geometry: ResolvedGeometry,
        extra_sqft: float = 0.0
    ) -> FormulaResult | None:
        """Evaluate the item's declared formula (None if inputs are missing)."""
        if item.formula_type is None:
            return None
        formula = self._formulas.get(item.formula_type)
        if formula is None:
            logger.warning(f"No formula registered for {item.formula_type}")
            return None
        result = formula(item, geometry, extra_sqft=extra_sqft)
        if result is None:
            logger.debug(f"Formula {item.formula_type.value} skipped for '{item.name}' (missing inputs)")
        return result

    def evaluate_unit_default(
        self,
        item: CatalogItem,
        geometry: ResolvedGeometry,
        quantity: float | None = None
    ) -> FormulaResult | None:
        """Quantity from the unit type, priced at the item's base price."""
        primary = geometry.primary
        unit = item.unit_type

        if unit in (UnitType.EACH, UnitType.PACKAGE):
            qty = quantity if quantity is not None else 1
            label = f"{_num(qty)} {unit.value}"
        elif primary is None:
            return None
        elif unit is UnitType.SQ_FT:
            qty = primary.footprint
            label = f"{_num(primary.width)} × {_num(primary.length)}"
        elif unit is UnitType.WALL_SQ_FT:
            qty = primary.wall_area
            label = f"wall area {qty:.0f} sq ft"
        elif unit is UnitType.ROOF_SQ_FT:
            qty = primary.roof_area
            label = f"roof area {qty:.0f} sq ft"
        else:
            qty = primary.perimeter
            label = f"perimeter {qty:.0f} linear ft"

        return self._result(item.base_price, qty, f"{label} × {_money(item.base_price)}")

    def base_building(self, structure: ResolvedStructure) -> FormulaResult:
        """
        Base-building shell price for one structure (pre-margin).

        Price per sq ft is floored at the configured floor, then multiplied by
        the footprint.
        """
        per_sqft = base_building_price_per_sqft(
            structure.width, structure.length, structure.height, structure.pitch.rise
        )
        per_sqft = max(self.pricing.base_price_floor, per_sqft)
        return self._result(
            per_sqft,
            structure.footprint,
            f"{_num(structure.width)} × {_num(structure.length)} sq ft × {_money(per_sqft)}/sq ft"
        )

    # Formula implementations

    @staticmethod
    def _result(price: float, quantity: float, formula: str) -> FormulaResult:
        return FormulaResult(
            calculated_price=price,
            quantity=quantity,
            total_price=quantity * price,
            formula=formula,
        )

    def _base_building(self, item, geometry, **_) -> FormulaResult | None:
        if geometry.primary is None:
            return None
        return self.base_building(geometry.primary)

    def _lean_to(self, item, geometry, **_) -> FormulaResult | None:
        p = geometry.primary
        if p is None:
            return None
        qty = p.width * p.height
        return self._result(item.base_price, qty, f"{_num(p.width)} × {_num(p.height)} × {_money(item.base_price)}")

    def _lean_to_n(self, item, geometry, index: int) -> FormulaResult | None:
        if len(geometry.lean_tos) <= index:
            return None
        lt = geometry.lean_tos[index].lean_to
        qty = lt.width * lt.height
        return self._result(
            item.base_price, qty,
            f"Lean-To {index + 1}: {_num(lt.width)} × {_num(lt.height)} × {_money(item.base_price)}"
        )

    def _scissor_truss(self, item, geometry, **_) -> FormulaResult | None:
        p = geometry.primary
        if p is None:
            return None
        qty = math.floor(p.length / 4) + 1
        return self._result(item.base_price, qty, f"(({_num(p.length)} ÷ 4) + 1) × {_money(item.base_price)}")

    def _greenpost(self, item, geometry, **_) -> FormulaResult | None:
        total = geometry.total_perimeter
        if total:
            qty = math.ceil(total / 7)
            return self._result(
                item.base_price, qty,
                f"Total Perimeter {_num(total)} ÷ 7 = {qty} posts × {_money(item.base_price)}"
            )
        p = geometry.primary
        if p is None:
            return None
        qty = math.ceil(p.perimeter / 7)
        return self._result(item.base_price, qty, f"Perimeter {_num(p.perimeter)} ÷ 7 = {qty} posts × {_money(item.base_price)}")

    def _perimeter_insulation(self, item, geometry, **_) -> FormulaResult | None:
        total = geometry.total_perimeter
        if total:
            return self._result(
                item.base_price, total,
                f"Total Perimeter = {total:.0f} linear ft × {_money(item.base_price)}"
            )
        p = geometry.primary
        if p is None:
            return None
        return self._result(
            item.base_price, p.perimeter,
            f"({_num(p.width)} × 2 + {_num(p.length)} × 2) × {_money(item.base_price)}"
        )

    def _roofing_material(self, item, geometry, **_) -> FormulaResult | None:
        total = geometry.total_roof_area
        if total:
            return self._result(
                item.base_price, total,
                f"Total Roof Area = {total:.0f} sq ft × {_money(item.base_price)}"
            )
        p = geometry.primary
        if p is None or not p.pitch.rise:
            return None
        # 1' gable overhang each end
        qty = p.width * (p.length + 2) * math.sqrt(1 + (p.pitch.rise / 12) ** 2)
        return self._result(
            item.base_price, qty,
            f"{_num(p.width)}×({_num(p.length)}+2)×√(1+({_num(p.pitch.rise)}/12)²) = {qty:.0f} sq ft × {_money(item.base_price)}"
        )

    def _siding(self, item, geometry, **_) -> FormulaResult | None:
        p = geometry.primary
        if p is None or not p.pitch.rise:
            return None
        w, l, h, pitch = p.width, p.length, p.height, p.pitch.rise
        qty = math.ceil(((w * h) + (w * pitch) / pitch) * ((l * h) * 1.1))
        return self._result(
            item.base_price, qty,
            f"(({_num(w)} × {_num(h)}) + ({_num(w)} × {_num(pitch)}) ÷ {_num(pitch)}) × (({_num(l)} × {_num(h)}) × 1.1) × {_money(item.base_price)}"
        )

    def _wall_sq_ft(self, item, geometry, **_) -> FormulaResult | None:
        p = geometry.primary
        if p is None:
            return None
        return self._result(
            item.base_price, p.wall_area,
            f"2×({_num(p.length)}×{_num(p.height)}) + 2×({_num(p.width)}×{_num(p.height)}) + 2×(½×{_num(p.width)}×{p.gable_height:.1f}) = {p.wall_area:.0f} sq ft × {_money(item.base_price)}"
        )

    def _inside_wall_sq_ft(self, item, geometry, **_) -> FormulaResult | None:
        p = geometry.primary
        if p is None:
            return None
        # 10% allowance for openings
        qty = 2 * (p.width + p.length) * p.height * 0.9
        return self._result(
            item.base_price, qty,
            f"2×({_num(p.width)}+{_num(p.length)})×{_num(p.height)}×0.9 = {qty:.0f} sq ft × {_money(item.base_price)}"
        )

    def _length_times_two(self, item, geometry, **_) -> FormulaResult | None:
        p = geometry.primary
        if p is None:
            return None
        return self._result(item.base_price, p.length * 2, f"{_num(p.length)} × 2 × {_money(item.base_price)}")

    def _post_calculation(self, item, geometry, **_) -> FormulaResult | None:
        p = geometry.primary
        if p is None or not p.pitch.rise:
            return None
        posts = calculate_posts(p)
        return self._result(
            item.base_price, posts.all_post_total_lf,
            f"Post upgrade calculation: {display_post_size(posts.required_post_size)} for "
            f"{posts.all_post_total} posts ({posts.all_post_total_lf} LF) × {_money(item.base_price)}"
        )

    def _concrete_slab(self, item, geometry, extra_sqft: float = 0.0, **_) -> FormulaResult | None:
        p = geometry.primary
        if p is None:
            return None
        waste = self.pricing.concrete_waste_factor
        area = p.footprint + extra_sqft
        qty = area * waste
        return self._result(
            item.base_price, qty,
            f"({_num(p.footprint)} + {_num(extra_sqft)} door sq ft) × {waste} × {_money(item.base_price)}"
        )
