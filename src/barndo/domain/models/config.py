"""
Barndo Estimator - Configuration Models (Pydantic v2)

Validated configuration classes for application settings.
"""
import os
from typing import Any

from pydantic import BaseModel, Field, ConfigDict, field_validator


class DatabaseConfig(BaseModel):
    """PostgreSQL database configuration."""

    model_config = ConfigDict(frozen=True)

    host: str = Field(default="estimator-postgres", description="Database host")
    port: int = Field(default=5432, ge=1, le=65535, description="Database port")
    database: str = Field(default="barndo_estimator", description="Database name")
    user: str = Field(default="estimator", description="Database user")
    password: str = Field(default="estimator_password", description="Database password")
    pool_min_size: int = Field(default=1, ge=1, description="Min connection pool size")
    pool_max_size: int = Field(default=10, ge=1, le=100, description="Max connection pool size")


class CatalogConfig(BaseModel):
    """Pricing catalog REST service configuration."""

    model_config = ConfigDict(frozen=True)

    url: str = Field(default="http://localhost:54321/rest/v1", description="REST endpoint base URL")
    api_key: str = Field(default="", description="API key sent as apikey/Bearer header")
    categories_table: str = Field(default="price_categories", description="Categories resource")
    items_table: str = Field(default="price_items", description="Catalog items resource")
    timeout_seconds: int = Field(default=30, ge=1, le=120, description="Request timeout")
    max_retries: int = Field(default=3, ge=0, le=10, description="Retries for transient HTTP errors")

    @field_validator("url")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")


class PricingConfig(BaseModel):
    """Engine pricing constants."""

    model_config = ConfigDict(frozen=True)

    second_floor_rate: float = Field(default=7.0, ge=0, description="Flat $/sq ft for a barndominium second floor")
    base_price_floor: float = Field(default=0.0, ge=0, description="Lower bound for base-building $/sq ft")
    concrete_waste_factor: float = Field(default=1.05, ge=1.0, le=2.0, description="Concrete waste multiplier")
    entry_door_concrete_sqft_3ft: float = Field(default=16.0, ge=0, description="Pad area for a 3' entry door")
    entry_door_concrete_sqft_6ft: float = Field(default=32.0, ge=0, description="Pad area for a 6' entry door")
    garage_door_apron_depth: float = Field(default=6.0, ge=0, description="Apron depth per garage door (ft)")
    garage_door_apron_extra_width: float = Field(default=2.0, ge=0, description="Apron width beyond the door (ft)")
    garage_door_window_row_price: float = Field(default=200.0, ge=0, description="Price per row of door windows")
    high_lift_surcharge: float = Field(default=250.0, ge=0, description="High lift track $/door")
    low_headroom_surcharge: float = Field(default=300.0, ge=0, description="Low headroom track $/door")
    default_opener_price: float = Field(default=905.0, ge=0, description="Opener price for unknown door sizes")


class SessionConfig(BaseModel):
    """Estimate session configuration."""

    model_config = ConfigDict(frozen=True)

    recompute_delay_ms: int = Field(default=50, ge=0, le=1000, description="Coalescing window for batched recomputes")
    default_timeline: str = Field(
        default="90-120 days to completion from permit approval",
        description="Timeline text written to saved estimates"
    )
    company_name: str = Field(default="Titan Buildings", description="Company name used in estimate text")


class AppConfig(BaseModel):
    """
    Complete application configuration.

    Can be loaded from SECTION__FIELD environment variables.
    """

    model_config = ConfigDict(frozen=True)

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    catalog: CatalogConfig = Field(default_factory=CatalogConfig)
    pricing: PricingConfig = Field(default_factory=PricingConfig)
    session: SessionConfig = Field(default_factory=SessionConfig)

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> "AppConfig":
        """
        Load configuration from environment variables.

        Environment variables:
        - DATABASE__HOST -> database.host
        - CATALOG__URL -> catalog.url
        - PRICING__SECOND_FLOOR_RATE -> pricing.second_floor_rate
        - etc.

        Args:
            environ: Mapping to read instead of os.environ

        Returns:
            AppConfig instance
        """
        environ = os.environ if environ is None else environ
        sections: dict[str, dict[str, Any]] = {}

        for key, value in environ.items():
            if "__" not in key:
                continue
            section, _, field_name = key.lower().partition("__")
            if section in cls.model_fields:
                sections.setdefault(section, {})[field_name] = value

        return cls(**sections)

    @classmethod
    def for_testing(cls) -> "AppConfig":
        """
        Create minimal configuration for testing.

        Returns:
            AppConfig with test-friendly defaults
        """
        return cls(
            database=DatabaseConfig(
                host="localhost",
                database="barndo_estimator_test",
                user="test_user",
                password="test_pass",
                pool_max_size=2
            ),
            catalog=CatalogConfig(
                url="http://localhost:54321/rest/v1",
                api_key="test-key",
                max_retries=0
            ),
            session=SessionConfig(recompute_delay_ms=0)
        )
