"""
Moore-Penrose pseudoinverse through the singular value decomposition.
"""

from typing import Any

import numpy as np

from pymatrix.core.exceptions import ValidationError
from pymatrix.core.precision import machine_epsilon
from pymatrix.core.tolerances import rank_tolerance
from pymatrix.linalg.svd import sv_decompose
from pymatrix.storage.matrix import Matrix


def pseudo_inverse(A: Any, rtol: float | None = None) -> Matrix:
    """
    Moore-Penrose pseudoinverse A+ = V diag(S+) U'.

    Singular values at or below the cutoff are treated as zero, so
    rank-deficient input gives the minimum-norm least squares inverse.

    Args:
        A: Matrix to invert (m x n)
        rtol: Relative cutoff; values <= rtol * max(S) are dropped. The
            default is max(m, n) * eps * max(S).

    Returns:
        n x m Matrix

    Raises:
        ValidationError: If rtol is negative or A is not a finite numeric
            matrix
        ConvergenceError: If the SVD does not converge
    """
    if rtol is not None and rtol < 0:
        raise ValidationError(f"rtol: must be non-negative, got {rtol}")
    svd = sv_decompose(A)
    U = svd.U.array()
    V = svd.V.array()
    values = svd.singular_values.array().ravel()
    m, n = U.shape[0], V.shape[0]
    if values.size == 0 or values[0] == 0:
        return Matrix(n, m, dtype=U.dtype)

    largest = float(values[0])
    if rtol is None:
        cutoff = rank_tolerance((m, n), machine_epsilon(values.dtype), largest)
    else:
        cutoff = rtol * largest
    inverted = np.zeros_like(values)
    keep = values > cutoff
    inverted[keep] = 1 / values[keep]
    return Matrix.from_array((V * inverted) @ U.T)
