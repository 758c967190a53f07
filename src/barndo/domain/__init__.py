"""Barndo Estimator - Domain Layer."""
