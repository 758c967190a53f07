"""
Unit tests for configuration models.
"""

import pytest
from pydantic import ValidationError

from barndo.domain.models.config import (
    AppConfig,
    CatalogConfig,
    DatabaseConfig,
    PricingConfig,
    SessionConfig,
)


class TestDatabaseConfig:
    """Test database configuration"""

    def test_default_config(self):
        config = DatabaseConfig()
        assert config.port == 5432
        assert config.database == "barndo_estimator"
        assert config.pool_min_size == 1

    def test_invalid_port(self):
        """Port must be between 1 and 65535"""
        with pytest.raises(ValidationError):
            DatabaseConfig(port=0)

        with pytest.raises(ValidationError):
            DatabaseConfig(port=70000)

    def test_config_immutable(self):
        config = DatabaseConfig()
        with pytest.raises(Exception):  # Pydantic frozen
            config.host = "elsewhere"


class TestCatalogConfig:
    """Test pricing catalog configuration"""

    def test_default_tables(self):
        config = CatalogConfig()
        assert config.categories_table == "price_categories"
        assert config.items_table == "price_items"

    def test_trailing_slash_removed(self):
        config = CatalogConfig(url="https://catalog.example.com/rest/v1/")
        assert config.url == "https://catalog.example.com/rest/v1"

    def test_timeout_validation(self):
        """Timeout must be between 1 and 120"""
        with pytest.raises(ValidationError):
            CatalogConfig(timeout_seconds=0)

        with pytest.raises(ValidationError):
            CatalogConfig(timeout_seconds=500)


class TestPricingConfig:
    """Test engine pricing constants"""

    def test_defaults(self):
        config = PricingConfig()
        assert config.second_floor_rate == 7.0
        assert config.concrete_waste_factor == 1.05
        assert config.entry_door_concrete_sqft_3ft == 16
        assert config.entry_door_concrete_sqft_6ft == 32
        assert config.high_lift_surcharge == 250
        assert config.low_headroom_surcharge == 300
        assert config.base_price_floor == 0.0

    def test_waste_factor_below_one_rejected(self):
        with pytest.raises(ValidationError):
            PricingConfig(concrete_waste_factor=0.9)


class TestSessionConfig:
    """Test session configuration"""

    def test_defaults(self):
        config = SessionConfig()
        assert config.recompute_delay_ms == 50
        assert config.default_timeline == "90-120 days to completion from permit approval"

    def test_delay_bounds(self):
        with pytest.raises(ValidationError):
            SessionConfig(recompute_delay_ms=5000)


class TestAppConfig:
    """Test complete application configuration"""

    def test_default_sections(self):
        config = AppConfig()
        assert isinstance(config.database, DatabaseConfig)
        assert isinstance(config.catalog, CatalogConfig)
        assert isinstance(config.pricing, PricingConfig)
        assert isinstance(config.session, SessionConfig)

    def test_from_env(self):
        config = AppConfig.from_env({
            "DATABASE__HOST": "db.internal",
            "DATABASE__PORT": "6543",
            "CATALOG__URL": "https://prices.example.com/rest/v1/",
            "PRICING__SECOND_FLOOR_RATE": "8.5",
            "UNRELATED": "ignored",
        })
        assert config.database.host == "db.internal"
        assert config.database.port == 6543
        assert config.catalog.url == "https://prices.example.com/rest/v1"
        assert config.pricing.second_floor_rate == 8.5

    def test_from_env_invalid_value(self):
        with pytest.raises(ValidationError):
            AppConfig.from_env({"DATABASE__PORT": "not-a-port"})

    def test_for_testing(self):
        config = AppConfig.for_testing()
        assert config.database.database == "barndo_estimator_test"
        assert config.catalog.max_retries == 0
        assert config.session.recompute_delay_ms == 0
