"""
Barndo Estimator - Infrastructure Factory

Factory functions for dependency injection and easy setup.
"""
import logging
from typing import Any

from barndo.application.estimate_session import EstimateSession
from barndo.domain.exceptions import ConfigurationError
from barndo.domain.models import BuildingGeometry, EstimateSnapshot, SelectionState
from barndo.domain.models.config import AppConfig
from barndo.infrastructure.catalog.rest_catalog_client import RestCatalogClient
from barndo.infrastructure.database.postgres_client import PostgresEstimateStore

logger = logging.getLogger(__name__)


def create_estimate_store(config: AppConfig) -> PostgresEstimateStore:
    """
    Create PostgreSQL estimate store.

    Args:
        config: Application configuration

    Returns:
        PostgresEstimateStore instance
    """
    return PostgresEstimateStore(config.database)


def create_catalog_client(config: AppConfig) -> RestCatalogClient:
    """
    Create pricing catalog client.

    Args:
        config: Application configuration

    Returns:
        RestCatalogClient instance

    Raises:
        ConfigurationError: If no catalog URL is configured
    """
    if not config.catalog.url:
        raise ConfigurationError("Catalog URL is not configured", config_key="catalog.url")
    return RestCatalogClient(config.catalog)


def create_estimate_session(
    config: AppConfig,
    catalog: Any,
    persistence: Any,
    lead_ref: dict[str, Any],
    geometry: BuildingGeometry | None = None,
    selection: SelectionState | None = None,
    snapshot: EstimateSnapshot | None = None
) -> EstimateSession:
    """
    Create an estimate session wired to the given collaborators.

    Reopens `snapshot` when given; otherwise starts a new estimate from
    `geometry` and `selection`.

    Args:
        config: Application configuration
        catalog: PricingCatalog implementation
        persistence: EstimatePersistence implementation
        lead_ref: Lead reference ({"id": ..., "name": ...})
        geometry: Initial geometry for a new estimate
        selection: Initial selection for a new estimate
        snapshot: Persisted estimate to reopen

    Returns:
        EstimateSession instance

    Raises:
        ValueError: If neither geometry nor snapshot is given
    """
    if snapshot is not None:
        return EstimateSession.from_snapshot(
            snapshot, catalog, persistence, lead_ref,
            pricing=config.pricing, config=config.session,
        )
    if geometry is None:
        raise ValueError("A new estimate session needs geometry")
    return EstimateSession(
        catalog=catalog,
        persistence=persistence,
        lead_ref=lead_ref,
        geometry=geometry,
        selection=selection,
        pricing=config.pricing,
        config=config.session,
    )


def quick_setup(
    catalog_url: str = "http://localhost:54321/rest/v1",
    db_host: str = "localhost",
    init_schema: bool = True
) -> dict[str, Any]:
    """
    Quick setup with default configuration.

    Args:
        catalog_url: Pricing catalog REST URL
        db_host: Database host
        init_schema: Create the estimates table if missing

    Returns:
        Dict with initialized components:
        - config: AppConfig
        - db: PostgresEstimateStore
        - catalog: RestCatalogClient
    """
    from barndo.domain.models.config import CatalogConfig, DatabaseConfig

    config = AppConfig(
        database=DatabaseConfig(host=db_host),
        catalog=CatalogConfig(url=catalog_url)
    )

    db = create_estimate_store(config)
    if init_schema:
        db.init_schema()

    components = {
        'config': config,
        'db': db,
        'catalog': create_catalog_client(config),
    }

    logger.info("✅ Quick setup complete")
    return components
