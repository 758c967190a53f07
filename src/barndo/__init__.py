"""Barndo Estimator - parametric pole-building estimate engine."""

__version__ = "1.0.0"
