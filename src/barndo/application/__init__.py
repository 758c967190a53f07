"""Application layer - Estimate engine and lifecycle"""

from .geometry_resolver import require_structure, resolve_geometry, resolve_structure
from .formula_evaluator import FormulaEvaluator
from .line_item_assembler import Feature, LineItemAssembler, recompute
from .aggregator import EstimateTotals, calculate_totals, margin_multiplier
from .estimate_writer import EstimateWriter
from .estimate_session import EstimateSession, SessionState

__all__ = [
    "resolve_geometry",
    "resolve_structure",
    "require_structure",
    "FormulaEvaluator",
    "Feature",
    "LineItemAssembler",
    "recompute",
    "EstimateTotals",
    "calculate_totals",
    "margin_multiplier",
    "EstimateWriter",
    "EstimateSession",
    "SessionState",
]
