"""
Shared fixtures: a realistic untagged pricing catalog and in-memory
collaborators for the estimate session.
"""

from datetime import datetime

import pytest

from barndo.domain.exceptions import NotFoundError
from barndo.domain.models import (
    BuildingGeometry,
    CatalogItem,
    Category,
    EstimateData,
    EstimateSnapshot,
    FormulaType,
    RoofPitch,
    StructureDimensions,
    UnitType,
)


def make_item(item_id, name, category, price, unit=UnitType.EACH, formula=None, **kwargs):
    return CatalogItem(
        id=item_id,
        name=name,
        category=category,
        base_price=price,
        unit_type=unit,
        formula_type=formula,
        **kwargs,
    )


CATEGORIES = [
    Category(id="1", name="Concrete", sort_order=1),
    Category(id="2", name="Site Work", sort_order=2),
    Category(id="3", name="Posts", sort_order=3),
    Category(id="4", name="Site Plans", sort_order=4),
    Category(id="5", name="Doors", sort_order=5),
    Category(id="6", name="Windows", sort_order=6),
    Category(id="7", name="Insulation", sort_order=7),
    Category(id="8", name="Electrical", sort_order=8),
    Category(id="9", name="Plumbing", sort_order=9),
    Category(id="10", name="Flooring", sort_order=10),
]


def build_catalog() -> list[CatalogItem]:
    return [
        make_item("c4", '4" Concrete Slab', "Concrete", 6.50, UnitType.SQ_FT),
        make_item("c5", '5" Concrete Slab', "Concrete", 7.25, UnitType.SQ_FT),
        make_item("c6", '6" Concrete Slab', "Concrete", 8.00, UnitType.SQ_FT),
        make_item("c4-old", 'Retired 4" Concrete Slab', "Concrete", 5.00, UnitType.SQ_FT, is_active=False),
        make_item("prep", "Site Prep", "Site Work", 1.50, UnitType.SQ_FT),
        make_item("perim", "Perimeter Insulation", "Insulation", 3.00, UnitType.LINEAR_FT),
        make_item("dripx", "Premium DripX Moisture Barrier", "Insulation", 0.75, UnitType.ROOF_SQ_FT),
        make_item("post-3x8", "3Ply 2x8", "Posts", 2.00, UnitType.LINEAR_FT),
        make_item("post-4x6", "4Ply 2x6", "Posts", 2.50, UnitType.LINEAR_FT),
        make_item("post-4x8", "4Ply 2x8", "Posts", 3.00, UnitType.LINEAR_FT),
        make_item("plan-std", "Standard Site Plan", "Site Plans", 500.00),
        make_item("plan-lg", "Lines and Grades Plan", "Site Plans", 900.00),
        make_item("plan-up", "Upgraded Lines and Grades Plan", "Site Plans", 1500.00),
        make_item("gd-10x10", "10x10 Garage Door", "Doors", 1200.00),
        make_item("gd-10x9", "10x9 Garage Door", "Doors", 1100.00),
        make_item("gd-12x14", "12x14 Garage Door", "Doors", 2600.00),
        make_item("ed-3-solid", "3'x6'8\" Solid Entry Door", "Doors", 650.00),
        make_item("ed-6-9lite", "6'x6'8\" 9-Lite Entry Door", "Doors", 1400.00),
        make_item("win", "3x4 Window", "Windows", 350.00),
        make_item("lean", "Lean-To Addition", "Lean-Tos", 12.00, UnitType.SQ_FT, FormulaType.LEAN_TO_1),
        make_item("elec", "Electrical Package", "Electrical", 4500.00, UnitType.PACKAGE),
        make_item("plumb", "Plumbing Rough-In", "Plumbing", 6000.00, UnitType.PACKAGE),
        make_item("floor", "Epoxy Floor Coating", "Flooring", 4.00, UnitType.SQ_FT),
        make_item("wainscot", "Wainscoting", "Exterior", 18.00, UnitType.LINEAR_FT),
        make_item("roof", "Metal Roof Upgrade", "Roofing", 1.25, UnitType.ROOF_SQ_FT),
        make_item("hvac", "HVAC Mini Split", "HVAC", 3800.00),
        make_item("greenpost", "Green Post Sleeves", "Foundation Addons", 45.00, UnitType.EACH, FormulaType.GREENPOST),
    ]


class InMemoryCatalog:
    """PricingCatalog backed by lists; counts fetches and can be told to fail."""

    def __init__(self, items=None, categories=None):
        self.items = list(items if items is not None else build_catalog())
        self.categories = list(categories if categories is not None else CATEGORIES)
        self.fail_with: Exception | None = None
        self.item_fetches = 0

    def list_categories(self):
        if self.fail_with:
            raise self.fail_with
        return list(self.categories)

    def list_items(self):
        if self.fail_with:
            raise self.fail_with
        self.item_fetches += 1
        return list(self.items)


class InMemoryEstimateStore:
    """EstimatePersistence keeping snapshots in a dict."""

    def __init__(self):
        self.rows: dict[int, dict] = {}
        self.next_id = 1
        self.fail_with: Exception | None = None

    def _check(self):
        if self.fail_with:
            raise self.fail_with

    def create_estimate(self, lead_ref, estimate_data: EstimateData) -> EstimateSnapshot:
        self._check()
        now = datetime(2024, 1, 1, 12, 0, self.next_id % 60)
        row = {
            **estimate_data.to_dict(),
            "id": self.next_id,
            "lead_id": str(lead_ref["id"]),
            "lead_name": lead_ref.get("name", ""),
            "created_at": now,
            "updated_at": now,
        }
        self.rows[self.next_id] = row
        self.next_id += 1
        return EstimateSnapshot.from_dict(row)

    def update_estimate(self, estimate_id, fields) -> EstimateSnapshot:
        self._check()
        if estimate_id not in self.rows:
            raise NotFoundError(f"Estimate {estimate_id} not found", entity_type="estimate", entity_id=estimate_id)
        self.rows[estimate_id].update(fields)
        return EstimateSnapshot.from_dict(self.rows[estimate_id])

    def delete_estimate(self, estimate_id) -> None:
        self._check()
        self.rows.pop(estimate_id, None)

    def list_estimates_for_lead(self, lead_ref) -> list[EstimateSnapshot]:
        self._check()
        lead_id = str(lead_ref["id"])
        rows = [row for row in self.rows.values() if row["lead_id"] == lead_id]
        return [EstimateSnapshot.from_dict(row) for row in sorted(rows, key=lambda r: r["id"])]


@pytest.fixture
def catalog_items():
    return build_catalog()


@pytest.fixture
def catalog():
    return InMemoryCatalog()


@pytest.fixture
def store():
    return InMemoryEstimateStore()


@pytest.fixture
def lead_ref():
    return {"id": "lead-42", "name": "Jordan Smith"}


@pytest.fixture
def house_40x60():
    """40' x 60' x 12' house at 4/12."""
    return BuildingGeometry(primary=StructureDimensions(40, 60, 12, RoofPitch(4)))
