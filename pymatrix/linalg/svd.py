"""
Singular value decomposition by two-sided Jacobi rotations.

A = U diag(S) V' with orthogonal U and V and non-negative, descending S.

Square input is diagonalized directly: every sweep visits all index pairs
(p, q) and zeroes W[p, q] and W[q, p] with the closed-form SVD of the 2 x 2
block at rows/columns p and q, rotating rows and columns of W and
accumulating the rotations into U and V. Sweeps repeat until none of the
off-diagonal pairs is large compared to its diagonal entries.

Rectangular input is first reduced to a square triangular factor with a
QR decomposition (of A' when A has more columns than rows).

Design principles:
    - Input is never modified; all work happens on copies
    - Convergence failure raises instead of returning partial results
    - Sign and ordering conventions are applied after convergence
"""

from dataclasses import dataclass
from typing import Any

import numpy as np
from numpy.typing import NDArray

from pymatrix.core.exceptions import ConvergenceError, ValidationError
from pymatrix.core.precision import machine_epsilon, smallest_normal
from pymatrix.core.validation import check_2d, check_array, check_finite
from pymatrix.linalg.qr import qr_compact, qr_unpack
from pymatrix.linalg.rotation import PlaneRotation, jacobi_rotation
from pymatrix.storage.matrix import Matrix

# Sweeps before sv_decompose() gives up
DEFAULT_MAX_SWEEPS = 100


@dataclass(frozen=True)
class SVDResult:
    """
    Result of singular value decomposition.

    Attributes:
        U: Left singular vectors as columns (m x k, or m x m with
            full_matrices)
        singular_values: 1 x k Matrix, descending, k = min(m, n)
        V: Right singular vectors as columns (n x k, or n x n with
            full_matrices)
        sweeps: Number of Jacobi sweeps performed
    """
    U: Matrix
    singular_values: Matrix
    V: Matrix
    sweeps: int


def two_by_two(block: NDArray[np.floating[Any]]) -> tuple[PlaneRotation, PlaneRotation]:
    """
    Closed-form SVD of a real 2 x 2 matrix.

    Returns rotations (L, R) such that L' B R is diagonal. A first
    rotation makes the block symmetric, a Jacobi rotation then
    diagonalizes it.
    """
    b00, b01 = float(block[0, 0]), float(block[0, 1])
    b10, b11 = float(block[1, 0]), float(block[1, 1])
    t = b00 + b11
    d = b01 - b10
    if d == 0:
        symmetrize = PlaneRotation(1.0, 0.0)
    elif t == 0:
        symmetrize = PlaneRotation(0.0, 1.0)
    else:
        u = d / t
        c = 1 / np.sqrt(1 + u * u)
        symmetrize = PlaneRotation(float(c), float(c * u))
    # S = G' B, symmetric
    c, s = symmetrize.c, symmetrize.s
    s00 = c * b00 - s * b10
    s01 = c * b01 - s * b11
    s11 = s * b01 + c * b11
    right = jacobi_rotation(s00, s01, s11)
    return symmetrize * right, right


def _jacobi_sweeps(
    W: NDArray[np.floating[Any]],
    U: NDArray[np.floating[Any]],
    V: NDArray[np.floating[Any]],
    max_sweeps: int,
) -> int:
    n = W.shape[0]
    precision = 2 * machine_epsilon(W.dtype)
    tiny = smallest_normal(W.dtype)
    sweeps = 0
    largest_off = 0.0
    while True:
        sweeps += 1
        rotated = False
        largest_off = 0.0
        for p in range(1, n):
            for q in range(p):
                off = max(abs(W[p, q]), abs(W[q, p]))
                threshold = max(precision * max(abs(W[p, p]), abs(W[q, q])), tiny)
                if off <= threshold:
                    continue
                rotated = True
                largest_off = max(largest_off, float(off))
                left, right = two_by_two(W[np.ix_((q, p), (q, p))])
                left.transpose().rotate_columns(W, q, p)
                right.rotate_rows(W, q, p)
                left.rotate_rows(U, q, p)
                right.rotate_rows(V, q, p)
                W[p, q] = 0
                W[q, p] = 0
        if not rotated:
            return sweeps
        if sweeps >= max_sweeps:
            raise ConvergenceError(
                f"Jacobi SVD did not converge in {max_sweeps} sweeps",
                iterations=sweeps,
                final_change=largest_off,
                reason='max_iterations',
                threshold=precision,
            )


def _finish(
    W: NDArray[np.floating[Any]],
    U: NDArray[np.floating[Any]],
    V: NDArray[np.floating[Any]],
) -> NDArray[np.floating[Any]]:
    # Positive singular values, signs absorbed into U; then descending order
    k = W.shape[0]
    values = np.diag(W).copy()
    negative = values < 0
    values[negative] = -values[negative]
    U[:, :k][:, negative] *= -1
    order = np.argsort(-values, kind='stable')
    values = values[order]
    U[:, :k] = U[:, :k][:, order]
    V[:, :k] = V[:, :k][:, order]
    return values


def _square_svd(
    A: NDArray[np.floating[Any]],
    max_sweeps: int,
) -> tuple[NDArray, NDArray, NDArray, int]:
    n = A.shape[0]
    W = np.array(A)
    U = np.eye(n, dtype=A.dtype)
    V = np.eye(n, dtype=A.dtype)
    sweeps = _jacobi_sweeps(W, U, V, max_sweeps)
    values = _finish(W, U, V)
    return U, values, V, sweeps


def _tall_svd(
    A: NDArray[np.floating[Any]],
    full_matrices: bool,
    max_sweeps: int,
) -> tuple[NDArray, NDArray, NDArray, int]:
    # A = Q R, R = Ur S V'  =>  A = (Q Ur) S V'
    m, n = A.shape
    qr = qr_unpack(qr_compact(A), 'full' if full_matrices else 'economy')
    Q = qr.Q.array()
    R = qr.R.array()[:n]
    Ur, values, V, sweeps = _square_svd(R, max_sweeps)
    U = np.array(Q)
    U[:, :n] = Q[:, :n] @ Ur
    return U, values, V, sweeps


def sv_decompose(
    A: Any,
    full_matrices: bool = False,
    max_sweeps: int = DEFAULT_MAX_SWEEPS,
) -> SVDResult:
    """
    Singular value decomposition A = U diag(S) V'.

    Args:
        A: Matrix to decompose (m x n); not modified. Integer input is
            decomposed in float64.
        full_matrices: If False, U is m x k and V is n x k (k = min(m, n));
            if True, U is m x m and V is n x n
        max_sweeps: Maximum number of Jacobi sweeps

    Returns:
        SVDResult with U, singular values (descending, non-negative), V and
        the number of sweeps

    Raises:
        ValidationError: If A is not numeric, contains NaN/Inf, or
            max_sweeps is not positive
        DimensionError: If A is not two-dimensional
        ConvergenceError: If the rotations do not converge within
            max_sweeps sweeps

    Examples:
        >>> result = sv_decompose(Matrix.from_rows([[3, 0], [4, 5]]))
        >>> result.singular_values.tolist()   # sqrt(45), sqrt(5)
    """
    if max_sweeps < 1:
        raise ValidationError(f"max_sweeps: must be positive, got {max_sweeps}")
    array = check_array(A, 'A')
    check_2d(array, 'A')
    check_finite(array, 'A')
    m, n = array.shape
    k = min(m, n)

    if k == 0:
        U = np.eye(m, m if full_matrices else 0, dtype=array.dtype)
        V = np.eye(n, n if full_matrices else 0, dtype=array.dtype)
        values = np.zeros(0, dtype=array.dtype)
        sweeps = 0
    elif m == n:
        U, values, V, sweeps = _square_svd(array, max_sweeps)
    elif m > n:
        U, values, V, sweeps = _tall_svd(array, full_matrices, max_sweeps)
    else:
        # A' = U' S V''  =>  A = V' S U''
        V, values, U, sweeps = _tall_svd(array.T, full_matrices, max_sweeps)

    return SVDResult(
        U=Matrix.from_array(U),
        singular_values=Matrix.from_array(values.reshape(1, -1)),
        V=Matrix.from_array(V),
        sweeps=sweeps,
    )
