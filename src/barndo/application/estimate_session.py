"""
Barndo Estimator - Estimate Session (Lifecycle Manager)

Owns one open estimate: selection, geometry, catalog snapshot and the live
line items. Edits are batched and recomputed by feature; saves go through
the persistence contract.

State machine:
    IDLE -> EDITING -> SAVED -> (EDITING | QUICK_WRITTEN | DETAILED_WRITTEN)

QUICK_WRITTEN and DETAILED_WRITTEN are terminal for the session.
"""
import logging
import time
from dataclasses import replace
from enum import Enum
from itertools import count
from typing import Any

from barndo.domain.exceptions import (
    DatabaseError,
    InvalidTransitionError,
    PersistenceError,
    StorageError,
    ValidationError,
)
from barndo.domain.interfaces import EstimatePersistence, PricingCatalog
from barndo.domain.models import (
    BuildingGeometry,
    BuildingType,
    CatalogItem,
    Category,
    EstimateBreakdown,
    EstimateData,
    EstimateSnapshot,
    EstimateStatus,
    GarageDoorSelection,
    LineItem,
    SelectableOption,
    SelectionState,
    Zone,
)
from barndo.domain.models.config import PricingConfig, SessionConfig
from .aggregator import EstimateTotals, calculate_totals
from .catalog_matching import CatalogIndex
from .estimate_writer import EstimateWriter, format_dimensions
from .geometry_resolver import require_structure, resolve_geometry
from .line_item_assembler import Feature, LineItemAssembler, affected_features

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    IDLE = "idle"
    EDITING = "editing"
    SAVED = "saved"
    QUICK_WRITTEN = "quick_written"
    DETAILED_WRITTEN = "detailed_written"

    @property
    def is_terminal(self) -> bool:
        return self in (SessionState.QUICK_WRITTEN, SessionState.DETAILED_WRITTEN)


_PERSISTENCE_ERRORS = (DatabaseError, StorageError)


class EstimateSession:
    """
    Lifecycle manager for one open estimate.

    Edits never recompute inline: they mark the affected features dirty and
    the next read (or an explicit `flush()`) runs a single recompute for the
    whole batch. Failed catalog loads and saves leave the current state
    untouched and raise.
    """

    def __init__(
        self,
        catalog: PricingCatalog,
        persistence: EstimatePersistence,
        lead_ref: dict[str, Any],
        geometry: BuildingGeometry,
        selection: SelectionState | None = None,
        pricing: PricingConfig | None = None,
        config: SessionConfig | None = None,
        snapshot: EstimateSnapshot | None = None
    ):
        """
        Initialize EstimateSession.

        Args:
            catalog: Pricing catalog source
            persistence: Estimate persistence
            lead_ref: Lead reference ({"id": ..., "name": ...})
            geometry: Initial property geometry
            selection: Initial selection (defaults to a residential garage)
            pricing: Pricing constants
            config: Session settings
            snapshot: Persisted estimate this session edits, if reopened
        """
        self.catalog = catalog
        self.persistence = persistence
        self.lead_ref = lead_ref
        self.config = config or SessionConfig()
        self.assembler = LineItemAssembler(pricing=pricing)
        self.writer = EstimateWriter(self.config.company_name, self.config.default_timeline)

        self._geometry = geometry
        self._selection = selection or SelectionState.for_building_type(BuildingType.RESIDENTIAL_GARAGE)
        self._snapshot = snapshot
        self._state = SessionState.SAVED if snapshot else SessionState.IDLE

        self._categories: list[Category] = []
        self._catalog_items: list[CatalogItem] = []
        self._index: CatalogIndex | None = None

        self._items: list[LineItem] = list(snapshot.breakdown.items) if snapshot and snapshot.breakdown else []
        self._dirty: set[str] = set(Feature.ORDER)
        self._last_edit: float | None = None
        self.recompute_count = 0

    @classmethod
    def from_snapshot(
        cls,
        snapshot: EstimateSnapshot,
        catalog: PricingCatalog,
        persistence: EstimatePersistence,
        lead_ref: dict[str, Any] | None = None,
        **kwargs: Any
    ) -> "EstimateSession":
        """
        Reopen a persisted estimate.

        Raises:
            ValueError: If the snapshot carries no geometry in its breakdown
        """
        breakdown = snapshot.breakdown
        if breakdown is None or breakdown.geometry is None:
            raise ValueError(f"Estimate {snapshot.id} has no reconstructable breakdown")
        return cls(
            catalog=catalog,
            persistence=persistence,
            lead_ref=lead_ref or {"id": snapshot.lead_id, "name": snapshot.lead_name},
            geometry=breakdown.geometry,
            selection=breakdown.selection,
            snapshot=snapshot,
            **kwargs,
        )

    # State

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def snapshot(self) -> EstimateSnapshot | None:
        return self._snapshot

    @property
    def selection(self) -> SelectionState:
        return self._selection

    @property
    def geometry(self) -> BuildingGeometry:
        return self._geometry

    @property
    def is_dirty(self) -> bool:
        return bool(self._dirty)

    @property
    def categories(self) -> list[Category]:
        return list(self._categories)

    @property
    def catalog_items(self) -> list[CatalogItem]:
        return list(self._catalog_items)

    @property
    def line_items(self) -> list[LineItem]:
        self.flush()
        return list(self._items)

    @property
    def totals(self) -> EstimateTotals:
        self.flush()
        by_id = {item.id: item for item in self._catalog_items}
        return calculate_totals(self._items, self._selection, by_id)

    # Catalog

    def load_catalog(self) -> None:
        """
        Load categories and items once per session.

        Raises:
            CatalogError: If the catalog cannot be loaded
        """
        if self._index is not None:
            return
        self._fetch_catalog()

    def refresh_catalog(self) -> None:
        """
        Re-fetch the catalog and schedule a full recompute.

        Raises:
            CatalogError: If the fetch fails (the previous catalog is kept)
        """
        self._fetch_catalog()
        self._mark_dirty(set(Feature.ORDER), transition=False)

    def _fetch_catalog(self) -> None:
        categories = self.catalog.list_categories()
        items = self.catalog.list_items()
        self._categories = list(categories)
        self._catalog_items = list(items)
        self._index = CatalogIndex(self._catalog_items)
        logger.info(f"✅ Catalog loaded: {len(self._categories)} categories, {len(self._catalog_items)} items")

    # Edits

    def _ensure_editable(self) -> None:
        if self._state.is_terminal:
            raise InvalidTransitionError(
                "Estimate has been written and can no longer be edited",
                from_state=self._state.value,
                to_state=SessionState.EDITING.value,
            )

    def _mark_dirty(self, features: set[str], transition: bool = True) -> None:
        if not features:
            return
        self._dirty |= features
        self._last_edit = time.monotonic()
        if transition:
            self._state = SessionState.EDITING

    def update_geometry(self, geometry: BuildingGeometry) -> None:
        """Replace the property geometry; every feature depends on it."""
        self._ensure_editable()
        if geometry == self._geometry:
            return
        self._geometry = geometry
        self._mark_dirty(set(Feature.ORDER))

    def update_selection(self, **changes: Any) -> SelectionState:
        """
        Apply selection field changes.

        Args:
            **changes: SelectionState fields to replace

        Returns:
            The new selection

        Raises:
            ValidationError: If the new selection is invalid (state unchanged)
            InvalidTransitionError: If the session is terminal
        """
        self._ensure_editable()
        updated = self._selection.with_changes(**changes)
        features = affected_features(self._selection, updated)
        self._selection = updated
        self._mark_dirty(features)
        return updated

    def set_option(self, option: SelectableOption, selected: bool = True) -> SelectionState:
        return self.update_selection(selected_options=self._selection.with_option(option, selected).selected_options)

    def set_building_type(self, building_type: BuildingType) -> SelectionState:
        """Switch building type and reset margin/spacing to that type's defaults."""
        return self.update_selection(
            building_type=building_type,
            margin_percentage=building_type.default_margin,
            house=replace(self._selection.house, truss_spacing=building_type.default_truss_spacing),
        )

    def selectable_garage_doors(self) -> list[CatalogItem]:
        """Garage doors that fit under the tallest wall of the current geometry."""
        self.load_catalog()
        return self._index.selectable_garage_doors(resolve_geometry(self._geometry).tallest_height)

    def add_garage_door(
        self,
        catalog_item_id: str,
        quantity: int = 1,
        window_rows: int = 0,
        opener_quantity: int = 0,
        zone: Zone = Zone.HOUSE
    ) -> GarageDoorSelection:
        """
        Add a configured garage door instance.

        Raises:
            CatalogLookupError: If the catalog has no active item with this id
            ValidationError: If the door does not fit the building
            InvalidTransitionError: If the session is terminal
        """
        self._ensure_editable()
        self.load_catalog()
        item = self._index.require(catalog_item_id)
        if item not in self.selectable_garage_doors():
            raise ValidationError(f"Garage door '{item.name}' does not fit this building", field_name="garage_doors")

        taken = {door.id for door in self._selection.garage_doors}
        door = GarageDoorSelection(
            id=next(f"door_{n}" for n in count(1) if f"door_{n}" not in taken),
            catalog_item_id=item.id,
            quantity=quantity,
            window_rows=window_rows,
            opener_quantity=opener_quantity,
            zone=zone,
        )
        self.update_selection(garage_doors=self._selection.garage_doors + (door,))
        return door

    def remove_garage_door(self, door_id: str) -> None:
        self.update_selection(
            garage_doors=tuple(d for d in self._selection.garage_doors if d.id != door_id)
        )

    # Recompute

    def flush(self) -> bool:
        """
        Run the pending recompute, if any.

        Returns:
            True if a recompute ran
        """
        if not self._dirty:
            return False
        if self._index is None:
            self.load_catalog()

        resolved = resolve_geometry(self._geometry)
        features = set(self._dirty)
        self._items = self.assembler.reassemble(
            features, self._selection, resolved, self._index, existing=self._items
        )
        self._dirty.clear()
        self.recompute_count += 1
        logger.debug(f"Recompute #{self.recompute_count}: {sorted(features)} -> {len(self._items)} items")
        return True

    def flush_if_due(self, now: float | None = None) -> bool:
        """Flush once the coalescing window since the last edit has passed."""
        if not self._dirty:
            return False
        now = time.monotonic() if now is None else now
        if self._last_edit is not None and (now - self._last_edit) * 1000 < self.config.recompute_delay_ms:
            return False
        return self.flush()

    # Persistence

    def estimate_data(self, status: EstimateStatus = EstimateStatus.SAVED, version_name: str | None = None) -> EstimateData:
        """
        Everything persisted for the current state.

        Raises:
            GeometryError: If the primary structure cannot be resolved
        """
        require_structure(self._geometry.primary)
        items = self.line_items
        totals = self.totals
        resolved = resolve_geometry(self._geometry)
        breakdown_totals = {**totals.to_dict(), **{f"category:{k}": v for k, v in totals.by_category.items()}}
        return EstimateData(
            building_type=self._selection.building_type.value,
            dimensions=format_dimensions(self._geometry.primary),
            wall_height=resolved.tallest_height,
            estimated_price=round(totals.grand_total, 2),
            description=self.writer.description(self._selection, self._geometry),
            scope=self.writer.scope(self._selection, self._geometry),
            notes=self.writer.notes(self._selection, self._geometry),
            timeline=self.writer.timeline,
            breakdown=EstimateBreakdown(
                items=tuple(items),
                selection=self._selection,
                geometry=self._geometry,
                totals=breakdown_totals,
            ),
            version_name=version_name if version_name is not None else (
                self._snapshot.version_name if self._snapshot else None
            ),
            status=status,
        )

    def save(self) -> EstimateSnapshot:
        """
        Persist the current estimate (create on first save, update after).

        Returns:
            Persisted snapshot

        Raises:
            InvalidTransitionError: If the session is terminal
            PersistenceError: If persistence fails (state unchanged)
        """
        self._ensure_editable()
        snapshot = self._persist(EstimateStatus.SAVED, operation="save")
        self._state = SessionState.SAVED
        logger.info(f"💾 Estimate {snapshot.id} saved (${snapshot.estimated_price:,.2f})")
        return snapshot

    def new_version(self, version_name: str | None = None) -> EstimateSnapshot:
        """
        Create a sibling snapshot for the same lead and continue editing it.

        Args:
            version_name: Name for the new version (default "Version N")

        Raises:
            PersistenceError: If listing or creating fails (state unchanged)
        """
        if version_name is None:
            existing = self.versions()
            version_name = f"Version {len(existing) + 1}"

        data = self.estimate_data(EstimateStatus.SAVED, version_name=version_name)
        try:
            snapshot = self.persistence.create_estimate(self.lead_ref, data)
        except _PERSISTENCE_ERRORS as e:
            logger.error(f"Failed to create estimate version: {e}", exc_info=True)
            raise PersistenceError(f"Failed to create new version: {e}", operation="new_version") from e

        self._snapshot = snapshot
        self._state = SessionState.SAVED
        logger.info(f"📄 Created '{version_name}' as estimate {snapshot.id}")
        return snapshot

    def versions(self) -> list[EstimateSnapshot]:
        """All persisted versions for this lead, oldest first."""
        try:
            return self.persistence.list_estimates_for_lead(self.lead_ref)
        except _PERSISTENCE_ERRORS as e:
            logger.error(f"Failed to list estimates: {e}", exc_info=True)
            raise PersistenceError(f"Failed to list estimates: {e}", operation="list") from e

    def write_quick(self) -> EstimateSnapshot:
        """Persist and hand off as a quick written estimate (terminal)."""
        return self._write(SessionState.QUICK_WRITTEN, EstimateStatus.QUICK_WRITTEN)

    def write_detailed(self) -> EstimateSnapshot:
        """Persist and hand off as a detailed written estimate (terminal)."""
        return self._write(SessionState.DETAILED_WRITTEN, EstimateStatus.DETAILED_WRITTEN)

    def _write(self, target: SessionState, status: EstimateStatus) -> EstimateSnapshot:
        if self._snapshot is None or self._state.is_terminal:
            raise InvalidTransitionError(
                f"Cannot write estimate from state '{self._state.value}'",
                from_state=self._state.value,
                to_state=target.value,
            )
        snapshot = self._persist(status, operation=target.value)
        self._state = target
        logger.info(f"📝 Estimate {snapshot.id} written ({target.value})")
        return snapshot

    def delete(self) -> None:
        """
        Delete the persisted estimate; the session returns to IDLE.

        Raises:
            PersistenceError: If the delete fails (state unchanged)
        """
        if self._snapshot is None:
            return
        try:
            self.persistence.delete_estimate(self._snapshot.id)
        except _PERSISTENCE_ERRORS as e:
            logger.error(f"Failed to delete estimate {self._snapshot.id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to delete estimate: {e}", operation="delete") from e
        logger.info(f"🗑️ Estimate {self._snapshot.id} deleted")
        self._snapshot = None
        self._state = SessionState.IDLE

    def _persist(self, status: EstimateStatus, operation: str) -> EstimateSnapshot:
        data = self.estimate_data(status)
        try:
            if self._snapshot is None:
                return self._remember(self.persistence.create_estimate(self.lead_ref, data))
            fields = data.to_dict()
            return self._remember(self.persistence.update_estimate(self._snapshot.id, fields))
        except _PERSISTENCE_ERRORS as e:
            logger.error(f"Failed to {operation} estimate: {e}", exc_info=True)
            raise PersistenceError(f"Failed to {operation} estimate: {e}", operation=operation) from e

    def _remember(self, snapshot: EstimateSnapshot) -> EstimateSnapshot:
        self._snapshot = snapshot
        return snapshot

    def close(self) -> None:
        """
        Drop unsaved edits.

        A persisted estimate is restored from its snapshot; persisted
        snapshots are never touched.
        """
        snapshot = self._snapshot
        if snapshot is not None and snapshot.breakdown is not None and snapshot.breakdown.geometry is not None:
            self._geometry = snapshot.breakdown.geometry
            self._selection = snapshot.breakdown.selection
            self._items = list(snapshot.breakdown.items)
            if not self._state.is_terminal:
                self._state = SessionState.SAVED
        else:
            self._items = []
            self._state = SessionState.IDLE if snapshot is None else self._state
        self._dirty = set(Feature.ORDER)
        self._last_edit = None
        logger.debug("Estimate session closed")
