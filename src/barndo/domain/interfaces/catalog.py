"""
Barndo Estimator - Pricing Catalog Protocol Interface

Protocol-based interface for the external pricing catalog (PEP 544).
"""
from typing import Protocol

from ..models import Category, CatalogItem


class PricingCatalog(Protocol):
    """
    Protocol for pricing catalog implementations.

    Read-only from the engine's point of view. Sessions load both lists once
    and only re-fetch on an explicit refresh.
    """

    def list_categories(self) -> list[Category]:
        """
        List catalog categories.

        Returns:
            Categories ordered by sort order

        Raises:
            CatalogError: If the catalog cannot be read
        """
        ...

    def list_items(self) -> list[CatalogItem]:
        """
        List active catalog items.

        Returns:
            Items ordered by sort order, each with its category name resolved

        Raises:
            CatalogError: If the catalog cannot be read
        """
        ...
