"""PostgreSQL persistence."""

from .postgres_client import PostgresEstimateStore

__all__ = ["PostgresEstimateStore"]
