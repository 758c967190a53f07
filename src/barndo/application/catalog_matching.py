"""
Barndo Estimator - Catalog Matching

Finds the catalog items a feature should price. Items tagged with an
explicit `kind` win; case-insensitive name/category matching is the legacy
fallback for untagged catalogs.
"""
import logging
import re
from typing import Callable

from barndo.domain.exceptions import CatalogLookupError
from barndo.domain.models import (
    CatalogItem,
    ConcreteThickness,
    EntryDoorType,
    SelectableOption,
    SitePlanTier,
)

logger = logging.getLogger(__name__)

ItemRule = Callable[[CatalogItem], bool]

_DOOR_SIZE = re.compile(r"(\d+)\s*x\s*(\d+)", re.IGNORECASE)
_DOOR_WIDTH = re.compile(r"(\d+)['\"]?\s*x\s*\d+|(\d+)'\s*wide|(\d+)\s*ft", re.IGNORECASE)

DEFAULT_GARAGE_DOOR_HEIGHT = 7
DEFAULT_GARAGE_DOOR_WIDTH = 8

OPENER_PRICE_TIERS: dict[str, float] = {
    **{size: 700.0 for size in ("8x7", "8x8", "9x7", "9x8", "9x9", "9x10")},
    **{size: 905.0 for size in ("10x7", "10x8", "10x9", "10x10", "12x7", "12x8")},
    **{size: 1200.0 for size in ("10x12", "12x9", "12x10", "14x7", "14x8", "14x10", "16x7", "16x8", "16x9")},
    **{size: 1400.0 for size in ("12x12", "14x12", "14x14", "14x16", "16x10", "16x12", "16x14", "16x16")},
}


OPTION_RULES: dict[SelectableOption, ItemRule] = {
    SelectableOption.CONCRETE_PAD: lambda i: (
        i.name_contains("concrete") or i.name_contains("foundation") or i.name_contains("slab")
    ),
    SelectableOption.ELECTRICAL: lambda i: i.category_contains("electric"),
    SelectableOption.PLUMBING: lambda i: i.category_contains("plumb"),
    SelectableOption.INSULATION: lambda i: i.name_contains("insulation"),
    SelectableOption.FLOORING: lambda i: i.category_contains("flooring"),
    SelectableOption.INTERIOR_FINISH: lambda i: (
        i.name_contains("drywall") or i.name_contains("paint") or i.name_contains("trim")
    ),
    SelectableOption.HVAC: lambda i: (
        i.category_contains("hvac") or i.name_contains("heating") or i.name_contains("cooling")
    ),
    SelectableOption.METAL_ROOF: lambda i: i.name_contains("roof", "metal"),
    SelectableOption.WAINSCOTING: lambda i: i.name_contains("wainscoting"),
    SelectableOption.GREENPOSTS: lambda i: i.name_contains("green", "post"),
}

SITE_PLAN_RULES: dict[SitePlanTier, ItemRule] = {
    SitePlanTier.STANDARD: lambda i: i.category_contains("site") and i.name_contains("standard", "site", "plan"),
    SitePlanTier.LINES_AND_GRADE: lambda i: (
        i.category_contains("site") and i.name_contains("lines", "grades") and not i.name_contains("upgraded")
    ),
    SitePlanTier.UPGRADED_LINES_AND_GRADE: lambda i: (
        i.category_contains("site") and i.name_contains("upgraded", "lines", "grades")
    ),
}


def parse_door_size(name: str) -> tuple[int, int] | None:
    """'10x7 Garage Door' -> (10, 7)."""
    match = _DOOR_SIZE.search(name)
    if not match:
        return None
    return int(match.group(1)), int(match.group(2))


def garage_door_height(name: str) -> int:
    """Door height in feet from its name (second number of WxH), default 7."""
    size = parse_door_size(name)
    return size[1] if size else DEFAULT_GARAGE_DOOR_HEIGHT


def garage_door_width(name: str) -> int:
    """Door width in feet from its name, default 8."""
    match = _DOOR_WIDTH.search(name)
    if match:
        width = next((int(g) for g in match.groups() if g), 0)
        if width:
            return width
    return DEFAULT_GARAGE_DOOR_WIDTH


def opener_price(name: str, default: float) -> float:
    """Opener price tier keyed by the door's WxH token."""
    size = parse_door_size(name)
    if size is None:
        return default
    return OPENER_PRICE_TIERS.get(f"{size[0]}x{size[1]}", default)


class CatalogIndex:
    """
    Feature-oriented lookups over a catalog snapshot.

    Only active items are considered. A lookup that finds nothing returns an
    empty list/None and logs; callers omit the feature.
    """

    def __init__(self, items: list[CatalogItem]):
        self.items = [item for item in items if item.is_active]
        self._by_id = {item.id: item for item in self.items}
        self._kinds = {item.kind for item in self.items if item.kind}

    def get(self, item_id: str) -> CatalogItem | None:
        return self._by_id.get(item_id)

    def require(self, item_id: str) -> CatalogItem:
        """
        Strict lookup by id.

        Raises:
            CatalogLookupError: If no active item has this id
        """
        item = self._by_id.get(item_id)
        if item is None:
            raise CatalogLookupError(f"No active catalog item with id {item_id}", source="catalog")
        return item

    def _match(self, kind: str, rule: ItemRule) -> list[CatalogItem]:
        if kind in self._kinds:
            return [item for item in self.items if item.kind == kind]
        matches = [item for item in self.items if not item.kind and rule(item)]
        if matches:
            logger.debug(f"Legacy name match for '{kind}': {[m.name for m in matches]}")
        return matches

    def _first(self, kind: str, rule: ItemRule) -> CatalogItem | None:
        matches = self._match(kind, rule)
        if not matches:
            logger.warning(f"No catalog item for '{kind}'")
            return None
        return matches[0]

    # Options

    def for_option(self, option: SelectableOption) -> list[CatalogItem]:
        matches = self._match(option.value, OPTION_RULES[option])
        if not matches:
            logger.warning(f"No catalog items for option '{option.value}'")
        return matches

    # Openings

    def windows(self) -> list[CatalogItem]:
        return self._match("window", lambda i: i.name_contains("window"))

    def lean_tos(self) -> list[CatalogItem]:
        return self._match("lean_to", lambda i: i.name_contains("lean") or i.name_contains("addition"))

    def entry_door(self, door_type: EntryDoorType) -> CatalogItem | None:
        terms = [t.lower() for t in door_type.search_terms]

        def rule(item: CatalogItem) -> bool:
            name, description = item.name.lower(), item.description.lower()
            return all(term in name or term in description for term in terms)

        if "entry_door" in self._kinds:
            tagged = [i for i in self.items if i.kind == "entry_door"]
            match = next((i for i in tagged if rule(i)), None)
        else:
            match = next((i for i in self.items if rule(i)), None)
        if match is None:
            logger.warning(f"No catalog item for entry door '{door_type.value}'")
        return match

    def selectable_garage_doors(self, tallest_height: float) -> list[CatalogItem]:
        """Garage doors that fit: parsed height below the tallest building height."""
        doors = self._match("garage_door", lambda i: i.name_contains("garage", "door"))
        return [door for door in doors if garage_door_height(door.name) < tallest_height]

    # Site work

    def site_plan(self, tier: SitePlanTier) -> CatalogItem | None:
        if tier is SitePlanTier.NONE:
            return None
        return self._first(f"site_plan_{tier.value}", SITE_PLAN_RULES[tier])

    def concrete(self, thickness: ConcreteThickness) -> CatalogItem | None:
        if thickness is ConcreteThickness.NONE:
            return None
        token = f'{thickness.value}"'

        if "concrete" in self._kinds:
            tagged = [i for i in self.items if i.kind == "concrete"]
            match = next((i for i in tagged if token in i.name), None)
        else:
            match = next((i for i in self.items if i.name_contains("concrete") and token in i.name), None)
        if match is None:
            logger.warning(f"No catalog item for {token} concrete")
        return match

    def site_prep(self) -> CatalogItem | None:
        return self._first("site_prep", lambda i: i.name_contains("site", "prep"))

    def perimeter_insulation(self) -> CatalogItem | None:
        return self._first("perimeter_insulation", lambda i: i.name_contains("perimeter", "insulation"))

    def premium_moisture_barrier(self) -> CatalogItem | None:
        return self._first(
            "moisture_barrier_premium",
            lambda i: i.name_contains("dripx") or i.name_contains("moisture", "premium")
        )
