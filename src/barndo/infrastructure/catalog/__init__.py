"""Pricing catalog clients."""

from .rest_catalog_client import RestCatalogClient

__all__ = ["RestCatalogClient"]
