"""
Numerical precision constants and utilities.

Provides machine epsilon and the representable range of floating-point
types. The decomposition kernels use these to scale their inputs away
from overflow and underflow.
"""

import numpy as np


# Machine epsilon for float64
EPSILON_64: float = np.finfo(np.float64).eps  # ~2.22e-16

# Machine epsilon for float32
EPSILON_32: float = np.finfo(np.float32).eps  # ~1.19e-7


def working_dtype(dtype: np.dtype | type) -> np.dtype:
    """
    Floating-point type used when decomposing a matrix of ``dtype``.

    Floating types are kept as they are; integers and booleans are
    promoted to float64.
    """
    dtype = np.dtype(dtype)
    if np.issubdtype(dtype, np.floating):
        return dtype
    return np.dtype(np.float64)


def machine_epsilon(dtype: np.dtype | type = np.float64) -> float:
    """
    Get machine epsilon for a given dtype.

    Args:
        dtype: NumPy dtype or type

    Returns:
        Machine epsilon for the dtype
    """
    return float(np.finfo(working_dtype(dtype)).eps)


def smallest_normal(dtype: np.dtype | type = np.float64) -> float:
    """Smallest positive normal number of ``dtype``."""
    return float(np.finfo(working_dtype(dtype)).tiny)


def largest_value(dtype: np.dtype | type = np.float64) -> float:
    """Largest finite number of ``dtype``."""
    return float(np.finfo(working_dtype(dtype)).max)


def safe_scale_bounds(dtype: np.dtype | type = np.float64) -> tuple[float, float]:
    """
    Bounds for scaling factors that keep squared sums representable.

    Returns:
        (smallest_normal / eps, largest_value * eps)
    """
    eps = machine_epsilon(dtype)
    return smallest_normal(dtype) / eps, largest_value(dtype) * eps
