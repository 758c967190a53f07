"""
Barndo Estimator - REST Pricing Catalog Client

Implementation of PricingCatalog protocol over a PostgREST-style HTTP API.
"""
import logging
from typing import Any

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ...domain.exceptions import CatalogError
from ...domain.models import CatalogItem, Category
from ...domain.models.config import CatalogConfig

logger = logging.getLogger(__name__)

RETRY_STATUS_CODES = (429, 500, 502, 503, 504)


def build_session(config: CatalogConfig) -> requests.Session:
    """requests.Session with retrying adapters and API key headers."""
    session = requests.Session()
    retries = Retry(total=config.max_retries, backoff_factor=0.5, status_forcelist=RETRY_STATUS_CODES)
    session.mount("http://", HTTPAdapter(max_retries=retries))
    session.mount("https://", HTTPAdapter(max_retries=retries))
    session.headers.update({"Accept": "application/json"})
    if config.api_key:
        session.headers.update({
            "apikey": config.api_key,
            "Authorization": f"Bearer {config.api_key}",
        })
    return session


class RestCatalogClient:
    """
    Pricing catalog client.

    Implements PricingCatalog protocol. Only active items are requested;
    both collections come back ordered by sort_order.
    """

    def __init__(self, config: CatalogConfig, session: requests.Session | None = None):
        """
        Initialize RestCatalogClient.

        Args:
            config: Catalog configuration
            session: HTTP session (built from config if None)
        """
        self.config = config
        self.base_url = config.url.rstrip("/")
        self.session = session or build_session(config)
        self._category_names: dict[str, str] | None = None

    def _get(self, table: str, params: dict[str, str]) -> list[dict[str, Any]]:
        url = f"{self.base_url}/{table}"
        try:
            response = self.session.get(url, params=params, timeout=self.config.timeout_seconds)
            response.raise_for_status()
            rows = response.json()
        except requests.RequestException as e:
            logger.error(f"Catalog request failed for {table}: {e}", exc_info=True)
            raise CatalogError(f"Failed to load {table}: {e}", source=url) from e
        except ValueError as e:
            logger.error(f"Catalog response for {table} is not JSON: {e}", exc_info=True)
            raise CatalogError(f"Invalid JSON from {table}", source=url) from e

        if not isinstance(rows, list):
            raise CatalogError(f"Expected a list from {table}, got {type(rows).__name__}", source=url)
        return rows

    def list_categories(self) -> list[Category]:
        """
        Load categories.

        Raises:
            CatalogError: If the request fails
        """
        rows = self._get(self.config.categories_table, {"select": "*", "order": "sort_order"})
        categories = [Category.from_dict(row) for row in rows]
        self._category_names = {c.id: c.name for c in categories}
        logger.debug(f"Loaded {len(categories)} categories")
        return categories

    def list_items(self) -> list[CatalogItem]:
        """
        Load active catalog items.

        Rows that fail validation are skipped with a warning.

        Raises:
            CatalogError: If the request fails
        """
        if self._category_names is None:
            self.list_categories()

        rows = self._get(
            self.config.items_table,
            {"select": "*", "is_active": "eq.true", "order": "sort_order"}
        )
        items = []
        for row in rows:
            try:
                items.append(CatalogItem.from_dict(row, self._category_names))
            except (KeyError, ValueError, TypeError) as e:
                logger.warning(f"Skipping invalid catalog row {row.get('id')}: {e}")
        logger.info(f"Loaded {len(items)} catalog items from {self.base_url}")
        return items
