"""
Barndo Estimator - Line-Item Assembler

Maps selection state + resolved geometry + catalog onto a deduplicated list
of priced line items. Each feature owns a key prefix; re-assembling a
feature replaces everything under its prefix.
"""
import logging
from dataclasses import dataclass, fields
from enum import Enum
from typing import Callable, Iterable

from barndo.domain.models import (
    BuildingGeometry,
    BuildingType,
    CatalogItem,
    FormulaResult,
    LineItem,
    LineItemKey,
    MoistureBarrier,
    ResolvedGeometry,
    ResolvedStructure,
    SelectableOption,
    SelectionState,
    SitePlanTier,
    Zone,
    replace_owned,
)
from barndo.domain.models.config import PricingConfig
from .aggregator import margin_multiplier
from .catalog_matching import CatalogIndex, garage_door_height, garage_door_width, opener_price
from .formula_evaluator import FormulaEvaluator
from .geometry_resolver import resolve_geometry
from .post_calculation import calculate_posts, display_post_size, find_post_item

logger = logging.getLogger(__name__)


class Feature:
    """Owning-feature key prefixes, in display order."""

    BASE_BUILDING = "base_building"
    POST_UPGRADE = "post_upgrade"
    MOISTURE_BARRIER = "moisture_barrier"
    CONCRETE = "concrete"
    SITE_PREP = "site_prep"
    PERIMETER_INSULATION = "perimeter_insulation"
    SITE_PLAN = "site_plan"
    GARAGE_DOORS = "garage_doors"
    ENTRY_DOORS = "entry_doors"
    WINDOWS = "windows"
    LEAN_TOS = "lean_tos"
    OPTIONS = "options"

    ORDER = (
        BASE_BUILDING,
        POST_UPGRADE,
        MOISTURE_BARRIER,
        CONCRETE,
        SITE_PREP,
        PERIMETER_INSULATION,
        SITE_PLAN,
        GARAGE_DOORS,
        ENTRY_DOORS,
        WINDOWS,
        LEAN_TOS,
        OPTIONS,
    )


# Selection field -> features whose items depend on it
_SELECTION_DEPENDENCIES: dict[str, tuple[str, ...]] = {
    "building_type": Feature.ORDER,
    "margin_percentage": Feature.ORDER,
    "selected_options": (Feature.OPTIONS,),
    "windows": (Feature.WINDOWS,),
    "garage_doors": (Feature.GARAGE_DOORS, Feature.CONCRETE),
    "entry_doors": (Feature.ENTRY_DOORS, Feature.CONCRETE),
    "site_plan": (Feature.SITE_PLAN,),
    "house": (Feature.CONCRETE, Feature.SITE_PREP, Feature.PERIMETER_INSULATION, Feature.MOISTURE_BARRIER),
    "garage": (Feature.CONCRETE, Feature.SITE_PREP, Feature.PERIMETER_INSULATION, Feature.MOISTURE_BARRIER),
    "lean_to": (Feature.CONCRETE, Feature.SITE_PREP, Feature.PERIMETER_INSULATION),
    "item_quantities": (Feature.OPTIONS,),
    "siding_gauge": (),
}

BASE_BUILDING_CATEGORY = "Base Building"
POST_UPGRADE_CATEGORY = "Building Shell Addons"
SITE_PLAN_CATEGORY = "Site Plans"


class TrackType(str, Enum):
    STANDARD = "standard"
    HIGH_LIFT = "high_lift"
    LOW_HEADROOM = "low_headroom"


def track_type(tallest_height: float, door_height: float) -> TrackType:
    """
    Garage door track needed for the headroom above the door.

    More than 2' of headroom -> high lift; less than 2' -> low headroom;
    exactly 2' -> standard.
    """
    difference = tallest_height - door_height
    if difference > 2:
        return TrackType.HIGH_LIFT
    if difference < 2:
        return TrackType.LOW_HEADROOM
    return TrackType.STANDARD


def affected_features(before: SelectionState, after: SelectionState) -> set[str]:
    """Features whose items must be rebuilt after a selection change."""
    features: set[str] = set()
    for f in fields(SelectionState):
        if getattr(before, f.name) != getattr(after, f.name):
            features.update(_SELECTION_DEPENDENCIES.get(f.name, Feature.ORDER))
    if features:
        # option dedupe looks at every other feature's catalog ids
        features.add(Feature.OPTIONS)
    return features


def zone_label(zone: Zone, building_type: BuildingType) -> str:
    if zone is Zone.HOUSE:
        return "House" if building_type is BuildingType.BARNDOMINIUM else "Building"
    if zone is Zone.GARAGE:
        return building_type.secondary_label
    return "Lean-to"


@dataclass(frozen=True)
class _Context:
    selection: SelectionState
    geometry: ResolvedGeometry
    catalog: CatalogIndex
    multiplier: float

    @property
    def is_barndominium(self) -> bool:
        return self.selection.building_type is BuildingType.BARNDOMINIUM


class LineItemAssembler:
    """
    Line-item assembler.

    Coordinates:
    - Base building shell pricing per structure
    - Post upgrades, moisture barrier, concrete, site prep, perimeter insulation
    - Site plan tier
    - Garage doors, entry doors, windows, lean-tos
    - Checkbox options
    """

    def __init__(self, evaluator: FormulaEvaluator | None = None, pricing: PricingConfig | None = None):
        """
        Initialize LineItemAssembler.

        Args:
            evaluator: Formula evaluator (created from pricing if None)
            pricing: Pricing constants
        """
        self.pricing = pricing or (evaluator.pricing if evaluator else PricingConfig())
        self.evaluator = evaluator or FormulaEvaluator(self.pricing)
        self._builders: dict[str, Callable[[_Context, list[LineItem]], list[LineItem]]] = {
            Feature.BASE_BUILDING: self._base_building,
            Feature.POST_UPGRADE: self._post_upgrades,
            Feature.MOISTURE_BARRIER: self._moisture_barrier,
            Feature.CONCRETE: self._concrete,
            Feature.SITE_PREP: self._site_prep,
            Feature.PERIMETER_INSULATION: self._perimeter_insulation,
            Feature.SITE_PLAN: self._site_plan,
            Feature.GARAGE_DOORS: self._garage_doors,
            Feature.ENTRY_DOORS: self._entry_doors,
            Feature.WINDOWS: self._windows,
            Feature.LEAN_TOS: self._lean_tos,
            Feature.OPTIONS: self._options,
        }

    def assemble(
        self,
        selection: SelectionState,
        geometry: ResolvedGeometry,
        catalog: list[CatalogItem] | CatalogIndex
    ) -> list[LineItem]:
        """
        Build the complete line-item list.

        Args:
            selection: User selections
            geometry: Resolved property geometry
            catalog: Catalog items (or a prepared index)

        Returns:
            Line items in feature display order
        """
        return self.reassemble(Feature.ORDER, selection, geometry, catalog, existing=[])

    def reassemble(
        self,
        features: Iterable[str],
        selection: SelectionState,
        geometry: ResolvedGeometry,
        catalog: list[CatalogItem] | CatalogIndex,
        existing: list[LineItem]
    ) -> list[LineItem]:
        """
        Replace the items owned by `features`, leaving other items untouched.

        Features run in display order so option dedupe sees every other
        feature's items.

        Args:
            features: Feature prefixes to rebuild
            selection: User selections
            geometry: Resolved property geometry
            catalog: Catalog items (or a prepared index)
            existing: Current line items

        Returns:
            New line-item list
        """
        index = catalog if isinstance(catalog, CatalogIndex) else CatalogIndex(catalog)
        ctx = _Context(
            selection=selection,
            geometry=geometry,
            catalog=index,
            multiplier=margin_multiplier(selection.margin_percentage),
        )

        wanted = set(features)
        unknown = wanted - set(Feature.ORDER)
        if unknown:
            raise ValueError(f"Unknown features: {sorted(unknown)}")

        items = list(existing)
        for feature in Feature.ORDER:
            if feature not in wanted:
                continue
            others = [item for item in items if not item.key.owned_by(feature)]
            replacements = self._builders[feature](ctx, others)
            items = replace_owned(items, feature, replacements)
            logger.debug(f"Feature '{feature}' -> {len(replacements)} item(s)")
        return items

    # Helpers

    @staticmethod
    def _priced(
        ctx: _Context,
        key: LineItemKey,
        item: CatalogItem,
        result: FormulaResult,
        name: str | None = None,
        category: str | None = None,
        unit_type: str | None = None
    ) -> LineItem:
        return LineItem(
            key=key,
            category=category or item.category,
            name=name or item.name,
            quantity=result.quantity,
            unit_price=result.calculated_price * ctx.multiplier,
            unit_type=unit_type or item.unit_type.value,
            catalog_item_id=item.id,
            formula_result=result if item.has_formula else None,
        )

    @staticmethod
    def _structures(ctx: _Context) -> list[tuple[str, Zone, ResolvedStructure]]:
        structures = []
        if ctx.geometry.primary is not None:
            structures.append(("primary", Zone.HOUSE, ctx.geometry.primary))
        if ctx.geometry.secondary is not None:
            disc = "garage" if ctx.is_barndominium else "second_building"
            structures.append((disc, Zone.GARAGE, ctx.geometry.secondary))
        return structures

    # Feature builders

    def _base_building(self, ctx: _Context, _: list[LineItem]) -> list[LineItem]:
        items = []
        geo = ctx.geometry

        if geo.primary is not None:
            disc, label = ("first_floor", "First Floor") if ctx.is_barndominium else ("primary", "Primary Building")
            items.append(self._base_line(ctx, disc, f"{label} - Base Building Package", geo.primary))
        else:
            logger.info("Primary structure geometry unavailable, base building not priced")

        if geo.secondary is not None:
            disc, label = ("garage", "Garage") if ctx.is_barndominium else ("second", "Building 2")
            items.append(self._base_line(ctx, disc, f"{label} - Base Building Package", geo.secondary))

        if ctx.is_barndominium and geo.second_floor_sqft > 0:
            rate = self.pricing.second_floor_rate
            items.append(LineItem(
                key=LineItemKey(Feature.BASE_BUILDING, "second_floor"),
                category=BASE_BUILDING_CATEGORY,
                name=f"Second Floor (${rate:g}/sq ft)",
                quantity=geo.second_floor_sqft,
                unit_price=rate * ctx.multiplier,
                unit_type="sq ft",
                formula_result=FormulaResult(
                    calculated_price=rate,
                    quantity=geo.second_floor_sqft,
                    total_price=rate * geo.second_floor_sqft,
                    formula=f"{geo.second_floor_sqft:g} sq ft × ${rate:.2f}",
                ),
            ))
        return items

    def _base_line(self, ctx: _Context, disc: str, name: str, structure: ResolvedStructure) -> LineItem:
        result = self.evaluator.base_building(structure)
        return LineItem(
            key=LineItemKey(Feature.BASE_BUILDING, disc),
            category=BASE_BUILDING_CATEGORY,
            name=name,
            quantity=result.quantity,
            unit_price=result.calculated_price * ctx.multiplier,
            unit_type="sq ft",
            formula_result=result,
        )

    def _post_upgrades(self, ctx: _Context, _: list[LineItem]) -> list[LineItem]:
        items = []
        for disc, zone, structure in self._structures(ctx):
            posts = calculate_posts(structure)
            if not posts.is_upgrade:
                continue
            post_item = find_post_item(ctx.catalog.items, posts.required_post_size)
            if post_item is None:
                continue

            if zone is Zone.HOUSE:
                label = "Primary Building"
            else:
                label = "Garage" if ctx.is_barndominium else "Second Building"
            result = FormulaResult(
                calculated_price=post_item.base_price,
                quantity=posts.all_post_total_lf,
                total_price=post_item.base_price * posts.all_post_total_lf,
                formula=f"{posts.describe()}\n{posts.all_post_total_lf} LF × ${post_item.base_price:.2f}",
            )
            items.append(LineItem(
                key=LineItemKey(Feature.POST_UPGRADE, disc),
                category=POST_UPGRADE_CATEGORY,
                name=f"{label} - Post Upgrade to {display_post_size(posts.required_post_size)}",
                quantity=result.quantity,
                unit_price=result.calculated_price * ctx.multiplier,
                unit_type="linear ft",
                catalog_item_id=post_item.id,
                formula_result=result,
            ))
        return items

    def _moisture_barrier(self, ctx: _Context, _: list[LineItem]) -> list[LineItem]:
        premium = [
            (disc, zone, s) for disc, zone, s in self._structures(ctx)
            if ctx.selection.zone_options(zone).moisture_barrier is MoistureBarrier.PREMIUM
        ]
        if not premium:
            return []
        item = ctx.catalog.premium_moisture_barrier()
        if item is None:
            return []

        items = []
        for disc, zone, structure in premium:
            if zone is Zone.HOUSE:
                name = "Premium DripX Moisture Barrier Upgrade"
            else:
                label = "Garage" if ctx.is_barndominium else "Second Building"
                name = f"{label} - Premium DripX Moisture Barrier"
            result = FormulaResult(
                calculated_price=item.base_price,
                quantity=structure.roof_area,
                total_price=item.base_price * structure.roof_area,
                formula=f"Roof area {structure.roof_area:.0f} sq ft × ${item.base_price:.2f}",
            )
            items.append(self._priced(ctx, LineItemKey(Feature.MOISTURE_BARRIER, disc), item, result, name=name))
        return items

    def _zone_areas(self, ctx: _Context, zone: Zone) -> tuple[float, float] | None:
        """(footprint, perimeter) of a zone, or None if it is absent."""
        geo = ctx.geometry
        if zone is Zone.HOUSE:
            return (geo.primary.footprint, geo.primary.perimeter) if geo.primary else None
        if zone is Zone.GARAGE:
            return (geo.secondary.footprint, geo.secondary.perimeter) if geo.secondary else None
        if geo.lean_tos:
            return geo.lean_to_footprint, geo.lean_to_perimeter
        return None

    def door_pad_sqft(self, ctx: _Context, zone: Zone) -> float:
        """Extra slab for entry door pads and garage door aprons landing in a zone."""
        pricing = self.pricing
        sqft = 0.0
        for door in ctx.selection.entry_doors:
            if door.zone is zone:
                pad = (pricing.entry_door_concrete_sqft_6ft if door.door_type.width_feet == 6
                       else pricing.entry_door_concrete_sqft_3ft)
                sqft += pad * door.quantity
        for door in ctx.selection.garage_doors:
            item = self._installable_garage_door(ctx, door.catalog_item_id)
            if door.zone is zone and item is not None:
                width = garage_door_width(item.name)
                sqft += (width + pricing.garage_door_apron_extra_width) * pricing.garage_door_apron_depth * door.quantity
        return sqft

    def _concrete(self, ctx: _Context, _: list[LineItem]) -> list[LineItem]:
        items = []
        waste = self.pricing.concrete_waste_factor
        for zone in Zone:
            thickness = ctx.selection.zone_options(zone).concrete_thickness
            item = ctx.catalog.concrete(thickness)
            areas = self._zone_areas(ctx, zone)
            if item is None or areas is None:
                continue

            door_sqft = 0.0 if zone is Zone.LEAN_TO else self.door_pad_sqft(ctx, zone)
            area = areas[0] + door_sqft
            result = FormulaResult(
                calculated_price=item.base_price,
                quantity=area * waste,
                total_price=item.base_price * area * waste,
                formula=f"({areas[0]:g} + {door_sqft:g} door sq ft) × {waste} × ${item.base_price:.2f}",
            )
            items.append(self._priced(
                ctx,
                LineItemKey(Feature.CONCRETE, f"{zone.value}_{thickness.value}"),
                item,
                result,
                name=f'{thickness.value}" Concrete ({zone_label(zone, ctx.selection.building_type)})',
                category=item.category or "Concrete",
                unit_type="sq ft",
            ))
        return items

    def _site_prep(self, ctx: _Context, _: list[LineItem]) -> list[LineItem]:
        zones = [z for z in Zone if ctx.selection.zone_options(z).site_prep]
        item = ctx.catalog.site_prep() if zones else None
        if item is None:
            return []
        items = []
        for zone in zones:
            areas = self._zone_areas(ctx, zone)
            if areas is None:
                continue
            result = FormulaResult(item.base_price, areas[0], item.base_price * areas[0], f"{areas[0]:g} sq ft × ${item.base_price:.2f}")
            items.append(self._priced(
                ctx, LineItemKey(Feature.SITE_PREP, zone.value), item, result,
                name=f"{item.name} ({zone_label(zone, ctx.selection.building_type)})",
            ))
        return items

    def _perimeter_insulation(self, ctx: _Context, _: list[LineItem]) -> list[LineItem]:
        zones = [z for z in Zone if ctx.selection.zone_options(z).perimeter_insulation]
        item = ctx.catalog.perimeter_insulation() if zones else None
        if item is None:
            return []
        items = []
        for zone in zones:
            areas = self._zone_areas(ctx, zone)
            if areas is None:
                continue
            result = FormulaResult(item.base_price, areas[1], item.base_price * areas[1], f"{areas[1]:g} linear ft × ${item.base_price:.2f}")
            items.append(self._priced(
                ctx, LineItemKey(Feature.PERIMETER_INSULATION, zone.value), item, result,
                name=f"{item.name} ({zone_label(zone, ctx.selection.building_type)})",
            ))
        return items

    def _site_plan(self, ctx: _Context, _: list[LineItem]) -> list[LineItem]:
        tier = ctx.selection.site_plan
        if tier is SitePlanTier.NONE:
            return []
        item = ctx.catalog.site_plan(tier)
        if item is None:
            return []
        result = FormulaResult(item.base_price, 1, item.base_price, f"1 × ${item.base_price:.2f}")
        return [self._priced(
            ctx, LineItemKey(Feature.SITE_PLAN, tier.value), item, result,
            category=item.category or SITE_PLAN_CATEGORY,
        )]

    def _installable_garage_door(self, ctx: _Context, item_id: str, warn: bool = False) -> CatalogItem | None:
        """Catalog item for a garage door that fits under the walls, else None."""
        item = ctx.catalog.get(item_id)
        if item is None:
            if warn:
                logger.warning(f"Garage door catalog item {item_id} not found")
            return None
        tallest = ctx.geometry.tallest_height
        if garage_door_height(item.name) >= tallest:
            if warn:
                logger.warning(f"Garage door '{item.name}' does not fit under {tallest}' walls, skipped")
            return None
        return item

    def _garage_doors(self, ctx: _Context, _: list[LineItem]) -> list[LineItem]:
        # catalog id -> [quantity, window rows, openers], in first-seen order
        grouped: dict[str, list[int]] = {}
        for door in ctx.selection.garage_doors:
            totals = grouped.setdefault(door.catalog_item_id, [0, 0, 0])
            totals[0] += door.quantity
            totals[1] += door.window_rows
            totals[2] += door.opener_quantity

        pricing = self.pricing
        tallest = ctx.geometry.tallest_height
        items = []
        for item_id, (quantity, window_rows, openers) in grouped.items():
            item = self._installable_garage_door(ctx, item_id, warn=True)
            if item is None or quantity <= 0:
                continue
            door_height = garage_door_height(item.name)

            base_total = item.base_price * quantity
            name = item.name
            if window_rows:
                base_total += pricing.garage_door_window_row_price * window_rows
                name += f" + {window_rows} Row{'s' if window_rows > 1 else ''} of Windows"
            if openers:
                base_total += opener_price(item.name, pricing.default_opener_price) * openers
                name += f" + {openers} Opener{'s' if openers > 1 else ''}"

            track = track_type(tallest, door_height)
            if track is TrackType.HIGH_LIFT:
                base_total += pricing.high_lift_surcharge * quantity
                name += " + High Lift Track"
            elif track is TrackType.LOW_HEADROOM:
                base_total += pricing.low_headroom_surcharge * quantity
                name += " + Low Headroom Track"

            result = FormulaResult(
                calculated_price=base_total / quantity,
                quantity=quantity,
                total_price=base_total,
                formula=f"{quantity} × ${item.base_price:.2f} + add-ons = ${base_total:,.2f}",
            )
            items.append(self._priced(
                ctx, LineItemKey(Feature.GARAGE_DOORS, item.id), item, result, name=name, unit_type="each",
            ))
        return items

    def _entry_doors(self, ctx: _Context, _: list[LineItem]) -> list[LineItem]:
        grouped: dict[str, tuple[CatalogItem, int]] = {}
        for door in ctx.selection.entry_doors:
            if door.quantity <= 0:
                continue
            item = ctx.catalog.entry_door(door.door_type)
            if item is None:
                continue
            _, quantity = grouped.get(item.id, (item, 0))
            grouped[item.id] = (item, quantity + door.quantity)

        items = []
        for item, quantity in grouped.values():
            result = FormulaResult(item.base_price, quantity, item.base_price * quantity, f"{quantity} × ${item.base_price:.2f}")
            items.append(self._priced(ctx, LineItemKey(Feature.ENTRY_DOORS, item.id), item, result))
        return items

    def _counted(self, ctx: _Context, feature: str, candidates: list[CatalogItem], count: int) -> list[LineItem]:
        if count <= 0:
            return []
        items = []
        for item in candidates:
            result = self.evaluator.evaluate(item, ctx.geometry, quantity=count)
            if result is None:
                continue
            items.append(self._priced(ctx, LineItemKey(feature, item.id), item, result))
        return items

    def _windows(self, ctx: _Context, _: list[LineItem]) -> list[LineItem]:
        count = ctx.selection.total_windows
        return self._counted(ctx, Feature.WINDOWS, ctx.catalog.windows() if count else [], count)

    def _lean_tos(self, ctx: _Context, _: list[LineItem]) -> list[LineItem]:
        count = sum(lt.lean_to.quantity for lt in ctx.geometry.lean_tos)
        return self._counted(ctx, Feature.LEAN_TOS, ctx.catalog.lean_tos() if count else [], count)

    def _options(self, ctx: _Context, others: list[LineItem]) -> list[LineItem]:
        seen = {item.catalog_item_id for item in others if item.catalog_item_id}
        items = []
        for option in SelectableOption:
            if option not in ctx.selection.selected_options:
                continue
            for item in ctx.catalog.for_option(option):
                if item.id in seen:
                    continue
                quantity = ctx.selection.item_quantities.get(item.id)
                result = self.evaluator.evaluate(item, ctx.geometry, quantity=quantity)
                if result is None:
                    continue
                seen.add(item.id)
                items.append(self._priced(ctx, LineItemKey(Feature.OPTIONS, f"{option.value}/{item.id}"), item, result))
        return items


def recompute(
    selection: SelectionState,
    geometry: BuildingGeometry,
    catalog: list[CatalogItem],
    pricing: PricingConfig | None = None
) -> list[LineItem]:
    """
    Pure full recompute: geometry -> line items.

    Args:
        selection: User selections
        geometry: Raw property geometry
        catalog: Catalog items
        pricing: Pricing constants

    Returns:
        Complete line-item list
    """
    return LineItemAssembler(pricing=pricing).assemble(selection, resolve_geometry(geometry), catalog)
