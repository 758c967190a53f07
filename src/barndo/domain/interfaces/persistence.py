"""
Barndo Estimator - Estimate Persistence Protocol Interface

Protocol-based interface for estimate storage (PEP 544).
"""
from typing import Any, Protocol

from ..models import EstimateData, EstimateSnapshot


class EstimatePersistence(Protocol):
    """
    Protocol for estimate persistence implementations.

    Provides create/update/delete/list for estimate snapshots keyed by lead.
    """

    def create_estimate(self, lead_ref: dict[str, Any], estimate_data: EstimateData) -> EstimateSnapshot:
        """
        Create a new estimate for a lead.

        Args:
            lead_ref: Lead reference ({"id": ..., "name": ...})
            estimate_data: Estimate fields including the detailed breakdown

        Returns:
            Persisted snapshot

        Raises:
            DatabaseError: If the insert fails
        """
        ...

    def update_estimate(self, estimate_id: int, fields: dict[str, Any]) -> EstimateSnapshot:
        """
        Update selected fields of an estimate.

        Args:
            estimate_id: Estimate ID
            fields: Column -> value mapping

        Returns:
            Updated snapshot

        Raises:
            NotFoundError: If the estimate does not exist
            DatabaseError: If the update fails
        """
        ...

    def delete_estimate(self, estimate_id: int) -> None:
        """
        Delete an estimate.

        Raises:
            DatabaseError: If the delete fails
        """
        ...

    def list_estimates_for_lead(self, lead_ref: dict[str, Any]) -> list[EstimateSnapshot]:
        """
        List all estimates (versions) of a lead, oldest first.

        Raises:
            DatabaseError: If the query fails
        """
        ...
