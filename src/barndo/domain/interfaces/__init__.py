"""Barndo Estimator - Domain Interfaces (Protocols)."""

from .catalog import PricingCatalog
from .persistence import EstimatePersistence

__all__ = [
    "PricingCatalog",
    "EstimatePersistence",
]
