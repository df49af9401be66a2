"""
Core infrastructure for pymatrix.

Shared abstractions used by the storage engine and the decomposition
layer.

Key components:
    exceptions: Exception hierarchy
    validation: Input validators (import pymatrix.core.validation directly)
    precision: Machine constants per floating-point type
    tolerances: Tolerance tiers for comparisons and rank decisions
"""

from pymatrix.core.exceptions import (
    PyMatrixError,
    ValidationError,
    DimensionError,
    OutOfRangeError,
    NumericalError,
    SingularMatrixError,
    ConvergenceError,
)

__all__ = [
    "PyMatrixError",
    "ValidationError",
    "DimensionError",
    "OutOfRangeError",
    "NumericalError",
    "SingularMatrixError",
    "ConvergenceError",
]
