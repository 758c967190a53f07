"""
Unit tests for the estimate session lifecycle.
"""

import time
from dataclasses import replace

import pytest

from barndo.application.estimate_session import EstimateSession, SessionState
from barndo.domain.exceptions import (
    CatalogError,
    CatalogLookupError,
    GeometryError,
    InvalidTransitionError,
    NotFoundError,
    PersistenceError,
    QueryError,
    ValidationError,
)
from barndo.domain.models import (
    BuildingGeometry,
    BuildingType,
    ConcreteThickness,
    EstimateSnapshot,
    SelectableOption,
    SitePlanTier,
    StructureDimensions,
    ZoneOptions,
)
from barndo.domain.models.config import SessionConfig


def ids(items):
    return sorted(item.id for item in items)


@pytest.fixture
def session(catalog, store, lead_ref, house_40x60):
    return EstimateSession(catalog=catalog, persistence=store, lead_ref=lead_ref, geometry=house_40x60)


class TestInitialState:
    """Test a fresh session"""

    def test_starts_idle_and_dirty(self, session):
        assert session.state is SessionState.IDLE
        assert session.is_dirty
        assert session.snapshot is None

    def test_default_selection_is_residential_garage(self, session):
        assert session.selection.building_type is BuildingType.RESIDENTIAL_GARAGE
        assert session.selection.margin_percentage == 25

    def test_first_read_computes(self, session):
        items = session.line_items
        assert "base_building:primary" in ids(items)
        assert session.recompute_count == 1
        assert not session.is_dirty


class TestCatalogLoading:
    """Test catalog snapshot handling"""

    def test_catalog_loaded_once(self, session, catalog):
        session.line_items
        session.update_selection(site_plan=SitePlanTier.STANDARD)
        session.line_items

        assert catalog.item_fetches == 1
        assert len(session.categories) == 10

    def test_load_failure_raises(self, session, catalog):
        catalog.fail_with = CatalogError("catalog offline")
        with pytest.raises(CatalogError):
            session.line_items

    def test_refresh_failure_keeps_previous_catalog(self, session, catalog):
        session.load_catalog()
        before = session.catalog_items

        catalog.fail_with = CatalogError("catalog offline")
        with pytest.raises(CatalogError):
            session.refresh_catalog()

        assert session.catalog_items == before
        assert "base_building:primary" in ids(session.line_items)

    def test_refresh_reprices(self, session, catalog):
        session.update_selection(site_plan=SitePlanTier.STANDARD, margin_percentage=20)
        assert {i.id: i for i in session.line_items}["site_plan:standard"].unit_price == pytest.approx(625)

        catalog.items = [replace(i, base_price=600.0) if i.id == "plan-std" else i for i in catalog.items]
        session.refresh_catalog()

        assert session.is_dirty
        assert {i.id: i for i in session.line_items}["site_plan:standard"].unit_price == pytest.approx(750)


class TestBatchedEdits:
    """Test edit coalescing"""

    def test_edits_batched_into_one_recompute(self, session):
        session.line_items
        session.update_selection(site_plan=SitePlanTier.STANDARD)
        session.set_option(SelectableOption.FLOORING)
        session.update_selection(house=ZoneOptions(concrete_thickness=ConcreteThickness.FOUR))

        assert session.recompute_count == 1
        assert session.state is SessionState.EDITING

        items = ids(session.line_items)
        assert session.recompute_count == 2
        assert {"site_plan:standard", "options:flooring/floor", "concrete:house_4"} <= set(items)

    def test_flush_without_changes_is_noop(self, session):
        session.flush()
        assert session.flush() is False
        assert session.recompute_count == 1

    def test_flush_if_due_waits_for_delay(self, catalog, store, lead_ref, house_40x60):
        session = EstimateSession(
            catalog, store, lead_ref, house_40x60, config=SessionConfig(recompute_delay_ms=50)
        )
        session.flush()

        before = time.monotonic()
        session.update_selection(site_plan=SitePlanTier.STANDARD)

        assert session.flush_if_due(now=before) is False
        assert session.is_dirty
        assert session.flush_if_due(now=before + 1.0) is True
        assert not session.is_dirty

    def test_invalid_edit_leaves_state(self, session):
        session.flush()
        with pytest.raises(ValidationError):
            session.update_selection(margin_percentage=100)

        assert session.selection.margin_percentage == 25
        assert session.state is SessionState.IDLE

    def test_negative_item_quantity_rejected(self, session):
        session.set_option(SelectableOption.ELECTRICAL)
        before = session.line_items

        with pytest.raises(ValidationError) as excinfo:
            session.update_selection(item_quantities={"elec": -5})

        assert excinfo.value.details["field_name"] == "item_quantities"
        assert session.selection.item_quantities == {}
        assert session.line_items == before
        assert session.totals.grand_total == pytest.approx(sum(i.total for i in before))

    def test_unchanged_edit_is_not_dirty(self, session):
        session.flush()
        session.update_selection(site_plan=SitePlanTier.NONE)
        assert not session.is_dirty

    def test_set_building_type_resets_defaults(self, session):
        session.set_building_type(BuildingType.BARNDOMINIUM)

        assert session.selection.margin_percentage == 20
        assert session.selection.house.truss_spacing == 2
        assert "base_building:first_floor" in ids(session.line_items)

    def test_geometry_update(self, session):
        session.flush()
        session.update_geometry(BuildingGeometry(primary=StructureDimensions(30, 40, 12)))

        assert session.is_dirty
        base = {i.id: i for i in session.line_items}["base_building:primary"]
        assert base.quantity == 1200


class TestTotals:
    """Test totals exposed by the session"""

    def test_totals_match_line_items(self, session):
        session.update_selection(site_plan=SitePlanTier.STANDARD, item_quantities={"hvac": 1})
        totals = session.totals

        assert totals.line_items_total == pytest.approx(sum(i.total for i in session.line_items))
        assert totals.selections_total == pytest.approx(3800 / 0.75)


class TestPersistence:
    """Test save, versions and written estimates"""

    def test_save_creates_then_updates(self, session, store):
        first = session.save()
        assert session.state is SessionState.SAVED
        assert first.id == 1

        session.update_selection(site_plan=SitePlanTier.STANDARD)
        second = session.save()

        assert second.id == 1
        assert len(store.rows) == 1
        assert store.rows[1]["estimated_price"] == pytest.approx(round(session.totals.grand_total, 2))

    def test_saved_fields(self, session, store):
        session.save()
        row = store.rows[1]

        assert row["dimensions"] == "40' x 60' x 12'"
        assert row["building_type"] == "residential_garage"
        assert row["status"] == "saved"
        assert row["timeline"] == "90-120 days to completion from permit approval"
        assert row["description"].startswith("Titan Buildings will furnish")
        assert "category:Base Building" in row["detailed_breakdown"]["totals"]

    def test_save_failure_keeps_state(self, session, store):
        session.update_selection(site_plan=SitePlanTier.STANDARD)
        store.fail_with = QueryError("connection reset")

        with pytest.raises(PersistenceError):
            session.save()

        assert session.state is SessionState.EDITING
        assert session.snapshot is None
        assert store.rows == {}

    def test_update_of_missing_row_fails(self, session, store):
        session.save()
        store.rows.clear()

        with pytest.raises(PersistenceError) as exc_info:
            session.save()
        assert isinstance(exc_info.value.__cause__, NotFoundError)

    def test_new_version(self, session, store):
        session.save()
        session.update_selection(site_plan=SitePlanTier.LINES_AND_GRADE)

        version = session.new_version()

        assert version.id == 2
        assert version.version_name == "Version 2"
        assert session.snapshot.id == 2
        assert session.state is SessionState.SAVED
        assert [v.id for v in session.versions()] == [1, 2]
        assert store.rows[1]["detailed_breakdown"]["selection"]["site_plan"] == "none"

    def test_write_before_save_rejected(self, session):
        with pytest.raises(InvalidTransitionError):
            session.write_quick()

    def test_write_quick_is_terminal(self, session, store):
        session.save()
        session.write_quick()

        assert session.state is SessionState.QUICK_WRITTEN
        assert store.rows[1]["status"] == "quick_written"

        with pytest.raises(InvalidTransitionError):
            session.update_selection(site_plan=SitePlanTier.STANDARD)
        with pytest.raises(InvalidTransitionError):
            session.set_option(SelectableOption.FLOORING)
        with pytest.raises(InvalidTransitionError):
            session.set_building_type(BuildingType.COMMERCIAL)
        with pytest.raises(InvalidTransitionError):
            session.remove_garage_door("door_1")
        with pytest.raises(InvalidTransitionError):
            session.save()
        with pytest.raises(InvalidTransitionError):
            session.write_detailed()

    def test_write_detailed(self, session, store):
        session.save()
        session.write_detailed()
        assert store.rows[1]["status"] == "detailed_written"

    def test_delete(self, session, store):
        session.save()
        session.delete()

        assert session.state is SessionState.IDLE
        assert session.snapshot is None
        assert store.rows == {}

    def test_delete_failure(self, session, store):
        session.save()
        store.fail_with = QueryError("locked")

        with pytest.raises(PersistenceError):
            session.delete()
        assert session.state is SessionState.SAVED


class TestCloseAndReopen:
    """Test discarding edits and reopening snapshots"""

    def test_close_restores_saved_estimate(self, session):
        session.save()
        saved_ids = ids(session.line_items)

        session.update_selection(site_plan=SitePlanTier.STANDARD)
        assert "site_plan:standard" in ids(session.line_items)

        session.close()

        assert session.state is SessionState.SAVED
        assert session.selection.site_plan is SitePlanTier.NONE
        assert ids(session.line_items) == saved_ids

    def test_close_unsaved_goes_idle(self, session):
        session.update_selection(site_plan=SitePlanTier.STANDARD)
        session.close()
        assert session.state is SessionState.IDLE

    def test_from_snapshot(self, session, catalog, store):
        session.update_selection(site_plan=SitePlanTier.STANDARD)
        snapshot = session.save()
        expected = {i.id: round(i.total, 2) for i in session.line_items}

        reopened = EstimateSession.from_snapshot(EstimateSnapshot.from_dict(store.rows[snapshot.id]), catalog, store)

        assert reopened.state is SessionState.SAVED
        assert reopened.lead_ref["id"] == "lead-42"
        assert reopened.selection.site_plan is SitePlanTier.STANDARD
        assert {i.id: round(i.total, 2) for i in reopened.line_items} == expected

    def test_from_snapshot_without_breakdown(self, catalog, store):
        legacy = EstimateSnapshot.from_dict({"id": 9, "lead_id": "lead-42", "estimated_price": 1000})
        with pytest.raises(ValueError):
            EstimateSession.from_snapshot(legacy, catalog, store)


class TestGarageDoorSelection:
    """Test adding doors from the selectable catalog"""

    def test_selectable_doors_fit_building(self, session):
        assert [d.id for d in session.selectable_garage_doors()] == ["gd-10x10", "gd-10x9"]

    def test_add_and_remove(self, session):
        first = session.add_garage_door("gd-10x10", opener_quantity=1)
        second = session.add_garage_door("gd-10x9")

        assert (first.id, second.id) == ("door_1", "door_2")
        assert "garage_doors:gd-10x9" in ids(session.line_items)

        session.remove_garage_door("door_2")
        assert "garage_doors:gd-10x9" not in ids(session.line_items)
        assert session.add_garage_door("gd-10x9").id == "door_2"

    def test_door_too_tall_rejected(self, session):
        with pytest.raises(ValidationError):
            session.add_garage_door("gd-12x14")
        assert session.selection.garage_doors == ()

    def test_unknown_door_rejected(self, session):
        with pytest.raises(CatalogLookupError):
            session.add_garage_door("gd-missing")

    def test_save_needs_primary_geometry(self, catalog, store, lead_ref):
        session = EstimateSession(catalog, store, lead_ref, BuildingGeometry(primary=StructureDimensions(0, 60, 12)))
        with pytest.raises(GeometryError):
            session.save()
        assert store.rows == {}
