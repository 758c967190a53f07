"""
Barndo Estimator - Margin & Total Aggregator

Margin gross-up and grand total calculation.
"""
import logging
from dataclasses import dataclass, field

from barndo.domain.exceptions import ValidationError
from barndo.domain.models import CatalogItem, LineItem, SelectionState

logger = logging.getLogger(__name__)


def margin_multiplier(margin_percentage: float) -> float:
    """
    Gross-up multiplier 1 / (1 - margin/100).

    A 20% margin turns a $80 cost into a $100 price.

    Raises:
        ValidationError: If margin is outside [0, 100)
    """
    if not (0 <= margin_percentage < 100):
        raise ValidationError(
            f"Margin must be in [0, 100), got {margin_percentage}",
            field_name="margin_percentage"
        )
    return 1 / (1 - margin_percentage / 100)


@dataclass(frozen=True)
class EstimateTotals:
    """Grand total and its parts."""

    line_items_total: float
    selections_total: float
    by_category: dict[str, float] = field(default_factory=dict)

    @property
    def grand_total(self) -> float:
        return self.line_items_total + self.selections_total

    def to_dict(self) -> dict[str, float]:
        return {
            "line_items_total": self.line_items_total,
            "selections_total": self.selections_total,
            "grand_total": self.grand_total,
        }


def category_subtotals(items: list[LineItem]) -> dict[str, float]:
    """Per-category subtotals in first-seen order."""
    subtotals: dict[str, float] = {}
    for item in items:
        subtotals[item.category] = subtotals.get(item.category, 0.0) + item.total
    return subtotals


def calculate_totals(
    items: list[LineItem],
    selection: SelectionState,
    catalog: dict[str, CatalogItem] | None = None
) -> EstimateTotals:
    """
    Sum the estimate.

    Every line item already carries its margin-applied unit price, so line
    totals are summed as-is. Quantity-keyed catalog selections that have not
    been materialised as a line item (by catalog id) are added once at
    base * quantity * multiplier. Premium upgrades exist only as line items,
    so nothing is added twice.

    Args:
        items: Live line items
        selection: Current selection (margin, item quantities)
        catalog: Catalog items by id for pricing quantity selections

    Returns:
        EstimateTotals
    """
    multiplier = margin_multiplier(selection.margin_percentage)
    line_items_total = sum(item.total for item in items)

    materialized = {item.catalog_item_id for item in items if item.catalog_item_id}
    selections_total = 0.0
    for item_id, quantity in selection.item_quantities.items():
        if quantity <= 0 or item_id in materialized:
            continue
        catalog_item = (catalog or {}).get(item_id)
        if catalog_item is None:
            logger.warning(f"Quantity selection for unknown catalog item {item_id} ignored")
            continue
        selections_total += catalog_item.base_price * quantity * multiplier

    return EstimateTotals(
        line_items_total=line_items_total,
        selections_total=selections_total,
        by_category=category_subtotals(items),
    )
