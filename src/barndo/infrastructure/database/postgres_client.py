"""
Barndo Estimator - PostgreSQL Estimate Store

Implementation of EstimatePersistence protocol using psycopg2.
"""
import json
import logging
from contextlib import contextmanager
from typing import Any, Generator

from psycopg2.extras import RealDictCursor
from psycopg2.pool import SimpleConnectionPool

from ...domain.exceptions import (
    ConnectionError as EstimatorConnectionError,
    DatabaseError,
    NotFoundError,
    QueryError,
    ValidationError,
)
from ...domain.models import EstimateData, EstimateSnapshot, EstimateStatus
from ...domain.models.config import DatabaseConfig

logger = logging.getLogger(__name__)

ESTIMATE_COLUMNS = """
    id, lead_id, lead_name, building_type, dimensions, wall_height,
    estimated_price, description, scope, timeline, notes,
    detailed_breakdown, version_name, status, created_at, updated_at
"""

# Columns update_estimate may touch
UPDATABLE_COLUMNS = frozenset({
    "building_type",
    "dimensions",
    "wall_height",
    "estimated_price",
    "description",
    "scope",
    "timeline",
    "notes",
    "detailed_breakdown",
    "version_name",
    "status",
})


class PostgresEstimateStore:
    """
    PostgreSQL estimate store.

    Implements EstimatePersistence protocol using psycopg2 with connection pooling.
    """

    def __init__(self, config: DatabaseConfig):
        """
        Initialize PostgreSQL store.

        Args:
            config: Database configuration

        Raises:
            ConnectionError: If connection pool creation fails
        """
        self.config = config
        try:
            self.pool = SimpleConnectionPool(
                config.pool_min_size,
                config.pool_max_size,
                host=config.host,
                port=config.port,
                database=config.database,
                user=config.user,
                password=config.password
            )
            logger.info(f"PostgreSQL connection pool created (min={config.pool_min_size}, max={config.pool_max_size})")
        except Exception as e:
            logger.error(f"Failed to create connection pool: {e}", exc_info=True)
            raise EstimatorConnectionError(f"Failed to connect to database: {e}", query=None) from e

    @contextmanager
    def get_connection(self) -> Generator[Any, None, None]:
        """
        Get database connection from pool (context manager).

        Yields:
            psycopg2 connection

        Raises:
            ConnectionError: If connection cannot be obtained
        """
        conn = None
        try:
            conn = self.pool.getconn()
            yield conn
        except Exception as e:
            logger.error(f"Connection error: {e}", exc_info=True)
            if conn:
                conn.rollback()
            raise EstimatorConnectionError(f"Database connection error: {e}", query=None) from e
        finally:
            if conn:
                self.pool.putconn(conn)

    def close(self) -> None:
        """Close all pooled connections."""
        self.pool.closeall()
        logger.info("PostgreSQL connection pool closed")

    def init_schema(self) -> bool:
        """
        Initialize database schema (tables, indexes).

        Returns:
            True if successful

        Raises:
            DatabaseError: If initialization fails
        """
        try:
            with self.get_connection() as conn:
                with conn.cursor() as cur:
                    cur.execute("""
                        CREATE TABLE IF NOT EXISTS estimates (
                            id SERIAL PRIMARY KEY,
                            lead_id VARCHAR(100) NOT NULL,
                            lead_name VARCHAR(300),
                            building_type VARCHAR(50) NOT NULL,
                            dimensions VARCHAR(100),
                            wall_height NUMERIC(8,2),
                            estimated_price NUMERIC(14,2) NOT NULL DEFAULT 0 CHECK (estimated_price >= 0),
                            description TEXT,
                            scope TEXT,
                            timeline TEXT,
                            notes TEXT,
                            detailed_breakdown JSONB,
                            version_name VARCHAR(200),
                            status VARCHAR(30) NOT NULL DEFAULT 'saved'
                                CHECK (status IN ('draft', 'saved', 'quick_written', 'detailed_written')),
                            created_at TIMESTAMP DEFAULT NOW(),
                            updated_at TIMESTAMP DEFAULT NOW()
                        )
                    """)

                    cur.execute("CREATE INDEX IF NOT EXISTS idx_estimates_lead ON estimates(lead_id)")
                    cur.execute("CREATE INDEX IF NOT EXISTS idx_estimates_created_at ON estimates(created_at)")

                    conn.commit()
                    logger.info("✅ Database schema initialized successfully")
                    return True

        except Exception as e:
            logger.error(f"Schema initialization failed: {e}", exc_info=True)
            raise DatabaseError(f"Failed to initialize schema: {e}", query=None) from e

    # Estimate operations

    def create_estimate(self, lead_ref: dict[str, Any], estimate_data: EstimateData) -> EstimateSnapshot:
        """Insert a new estimate for a lead."""
        lead_id = _lead_id(lead_ref)
        data = estimate_data.to_dict()
        try:
            with self.get_connection() as conn:
                with conn.cursor(cursor_factory=RealDictCursor) as cur:
                    cur.execute(f"""
                        INSERT INTO estimates (
                            lead_id, lead_name, building_type, dimensions, wall_height,
                            estimated_price, description, scope, timeline, notes,
                            detailed_breakdown, version_name, status
                        ) VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
                        RETURNING {ESTIMATE_COLUMNS}
                    """, (
                        lead_id, lead_ref.get("name") or "", data["building_type"], data["dimensions"],
                        data["wall_height"], data["estimated_price"], data["description"], data["scope"],
                        data["timeline"], data["notes"],
                        json.dumps(data["detailed_breakdown"], ensure_ascii=False),
                        data["version_name"], data["status"]
                    ))
                    row = cur.fetchone()
                    conn.commit()
                    logger.info(f"✅ Created estimate ID {row['id']} for lead {lead_id}")
                    return EstimateSnapshot.from_dict(row)

        except Exception as e:
            logger.error(f"Failed to create estimate: {e}", exc_info=True)
            raise QueryError(f"Failed to create estimate: {e}", query="INSERT INTO estimates") from e

    def update_estimate(self, estimate_id: int, fields: dict[str, Any]) -> EstimateSnapshot:
        """
        Update selected columns of an estimate.

        Raises:
            ValidationError: If a field is not an updatable column
            NotFoundError: If the estimate does not exist
            QueryError: If the update fails
        """
        unknown = set(fields) - UPDATABLE_COLUMNS
        if unknown:
            raise ValidationError(f"Cannot update estimate columns: {sorted(unknown)}", field_name="fields")
        if not fields:
            raise ValidationError("No fields to update", field_name="fields")

        columns = sorted(fields)
        values = [_column_value(column, fields[column]) for column in columns]
        assignments = ", ".join(f"{column} = %s" for column in columns)

        try:
            with self.get_connection() as conn:
                with conn.cursor(cursor_factory=RealDictCursor) as cur:
                    cur.execute(f"""
                        UPDATE estimates SET {assignments}, updated_at = NOW()
                        WHERE id = %s
                        RETURNING {ESTIMATE_COLUMNS}
                    """, (*values, estimate_id))
                    row = cur.fetchone()
                    conn.commit()

        except Exception as e:
            logger.error(f"Failed to update estimate {estimate_id}: {e}", exc_info=True)
            raise QueryError(f"Failed to update estimate: {e}", query="UPDATE estimates") from e

        if not row:
            raise NotFoundError(f"Estimate {estimate_id} not found", entity_type="estimate", entity_id=estimate_id)
        logger.info(f"✅ Updated estimate ID {estimate_id} ({', '.join(columns)})")
        return EstimateSnapshot.from_dict(row)

    def delete_estimate(self, estimate_id: int) -> None:
        """Delete estimate by ID."""
        try:
            with self.get_connection() as conn:
                with conn.cursor() as cur:
                    cur.execute("DELETE FROM estimates WHERE id = %s", (estimate_id,))
                    deleted = cur.rowcount > 0
                    conn.commit()

        except Exception as e:
            logger.error(f"Failed to delete estimate {estimate_id}: {e}", exc_info=True)
            raise QueryError(f"Failed to delete estimate: {e}", query="DELETE FROM estimates") from e

        if deleted:
            logger.info(f"✅ Deleted estimate ID {estimate_id}")
        else:
            logger.warning(f"Estimate {estimate_id} not found for delete")

    def get_estimate(self, estimate_id: int) -> EstimateSnapshot | None:
        """Get estimate by ID."""
        try:
            with self.get_connection() as conn:
                with conn.cursor(cursor_factory=RealDictCursor) as cur:
                    cur.execute(f"SELECT {ESTIMATE_COLUMNS} FROM estimates WHERE id = %s", (estimate_id,))
                    row = cur.fetchone()
                    return EstimateSnapshot.from_dict(row) if row else None

        except Exception as e:
            logger.error(f"Failed to get estimate {estimate_id}: {e}", exc_info=True)
            raise QueryError(f"Failed to get estimate: {e}", query="SELECT FROM estimates") from e

    def list_estimates_for_lead(self, lead_ref: dict[str, Any]) -> list[EstimateSnapshot]:
        """All estimates (versions) of a lead, oldest first."""
        lead_id = _lead_id(lead_ref)
        try:
            with self.get_connection() as conn:
                with conn.cursor(cursor_factory=RealDictCursor) as cur:
                    cur.execute(f"""
                        SELECT {ESTIMATE_COLUMNS}
                        FROM estimates
                        WHERE lead_id = %s
                        ORDER BY created_at ASC, id ASC
                    """, (lead_id,))
                    rows = cur.fetchall()
                    return [EstimateSnapshot.from_dict(row) for row in rows]

        except Exception as e:
            logger.error(f"Failed to list estimates for lead {lead_id}: {e}", exc_info=True)
            raise QueryError(f"Failed to list estimates: {e}", query="SELECT FROM estimates") from e


def _lead_id(lead_ref: dict[str, Any]) -> str:
    lead_id = lead_ref.get("id")
    if lead_id is None or str(lead_id) == "":
        raise ValidationError("Lead reference must include an id", field_name="lead_ref")
    return str(lead_id)


def _column_value(column: str, value: Any) -> Any:
    if column == "detailed_breakdown" and value is not None:
        return json.dumps(value, ensure_ascii=False)
    if column == "status" and isinstance(value, EstimateStatus):
        return value.value
    return value
