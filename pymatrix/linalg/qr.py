"""
QR decomposition with Householder reflectors.

A = QR where Q is orthogonal and R upper triangular. The decomposition is
computed in place: afterwards the upper triangle of A holds R and the
part below the diagonal holds the reflector vectors (without their
implicit leading one); the reflector scaling factors are returned as tau.
qr_unpack() turns that compact form into explicit Q and R.

Large inputs are processed in column panels of BLOCK_SIZE. Each panel is
factorized column by column, and its reflectors are then applied to the
trailing columns at once through the compact WY form I + V T V'.

Used by the SVD to precondition rectangular input and by the least
squares, inversion and determinant helpers.
"""

from dataclasses import dataclass
from typing import Any, Literal

import numpy as np
from numpy.typing import NDArray

from pymatrix.core.exceptions import DimensionError, SingularMatrixError, ValidationError
from pymatrix.core.precision import machine_epsilon
from pymatrix.core.tolerances import rank_tolerance, select_tolerance
from pymatrix.core.validation import (
    check_2d,
    check_array,
    check_consistent_length,
    check_finite,
    check_square,
    writable_matrix,
)
from pymatrix.linalg.householder import (
    _householder,
    _reflect,
    explicit_reflectors,
    triangular_factor,
)
from pymatrix.storage.matrix import Matrix

# Columns per panel in the blocked algorithm
BLOCK_SIZE = 8

QRStyle = Literal['economy', 'full']


@dataclass(frozen=True)
class QRFactors:
    """
    Compact QR factors.

    Attributes:
        compact: R on and above the diagonal, reflectors below it
        tau: 1 x k reflector scaling factors, k = min(rows, columns)
    """
    compact: Matrix
    tau: Matrix


@dataclass(frozen=True)
class QRResult:
    """
    Result of QR decomposition.

    Attributes:
        Q: Orthogonal matrix (m x k for 'economy', m x m for 'full',
            where k = min(m, n))
        R: Upper triangular matrix (k x n for 'economy', m x n for 'full')
        rank: Numerical rank determined from the R diagonal
    """
    Q: Matrix
    R: Matrix
    rank: int


def _qr_unblocked(A: NDArray[np.floating[Any]], tau: NDArray[np.floating[Any]]) -> None:
    m, n = A.shape
    for j in range(min(m, n)):
        column = A[j:, j]
        t, beta = _householder(column)
        tau[j] = t
        _reflect(A[j:, j + 1:], column, t)
        column[0] = beta


def _qr_blocked(
    A: NDArray[np.floating[Any]],
    tau: NDArray[np.floating[Any]],
    block_size: int,
) -> None:
    m, n = A.shape
    k = min(m, n)
    for start in range(0, k, block_size):
        width = min(block_size, k - start)
        end = start + width
        panel = A[start:, start:end]
        _qr_unblocked(panel, tau[start:end])

        trailing = A[start:, end:]
        if trailing.shape[1] == 0:
            continue
        V = explicit_reflectors(panel, width)
        if trailing.shape[1] >= 2 * block_size or trailing.shape[0] >= 4 * block_size:
            # Q' A2 = (I + V T V')' A2
            T = triangular_factor(V, tau[start:end])
            trailing += V @ (T.T @ (V.T @ trailing))
        else:
            for i in range(width):
                _reflect(trailing[i:], V[i:, i], tau[start + i])


def qr_decompose_inplace(
    A: Any,
    block_size: int = BLOCK_SIZE,
    blocked: bool = True,
) -> Matrix:
    """
    QR-decompose ``A`` in place.

    Args:
        A: Writable floating-point Matrix (or ndarray), m x n
        block_size: Columns per panel in the blocked algorithm
        blocked: Use the blocked algorithm when the matrix is large
            enough; False always factorizes column by column

    Returns:
        1 x min(m, n) Matrix of reflector scaling factors

    Raises:
        ValidationError: If A is not writable or not floating-point, or
            block_size is not positive
    """
    if block_size < 1:
        raise ValidationError(f"block_size: must be positive, got {block_size}")
    target = writable_matrix(A, 'A')
    m, n = target.shape
    tau = np.zeros(min(m, n), dtype=target.dtype)
    if blocked and min(m, n) >= block_size:
        _qr_blocked(target, tau, block_size)
    else:
        _qr_unblocked(target, tau)
    return Matrix.from_array(tau.reshape(1, -1))


def qr_compact(
    A: Any,
    block_size: int = BLOCK_SIZE,
    blocked: bool = True,
) -> QRFactors:
    """
    Compact QR factors of a copy of ``A``; ``A`` is left untouched.

    Integer input is decomposed in float64.

    Raises:
        ValidationError: If A is not numeric or contains NaN/Inf
        DimensionError: If A is not two-dimensional
    """
    array = check_array(A, 'A')
    check_2d(array, 'A')
    check_finite(array, 'A')
    compact = Matrix.from_array(array)
    tau = qr_decompose_inplace(compact, block_size=block_size, blocked=blocked)
    return QRFactors(compact=compact, tau=tau)


def _rank(R: NDArray[np.floating[Any]], shape: tuple[int, int]) -> int:
    diag_R = np.abs(np.diag(R))
    if len(diag_R) == 0:
        return 0
    largest = float(diag_R.max())
    if largest == 0:
        return 0
    tol = rank_tolerance(shape, machine_epsilon(R.dtype), largest)
    return int(np.sum(diag_R > tol))


def qr_unpack(factors: QRFactors, style: QRStyle = 'economy') -> QRResult:
    """
    Explicit Q and R from compact factors.

    Args:
        factors: Output of qr_compact()
        style: 'economy' gives Q m x k and R k x n (k = min(m, n));
            'full' gives Q m x m and R m x n

    Returns:
        QRResult with Q, R, and numerical rank
    """
    if style not in ('economy', 'full'):
        raise ValidationError(f"style: must be 'economy' or 'full', got {style!r}")
    compact = factors.compact.array()
    tau = factors.tau.array().ravel()
    m, n = compact.shape
    k = min(m, n)
    q_columns = k if style == 'economy' else m

    # Q = H_0 ... H_(k-1) = I + V T V'; only its first q_columns are needed
    V = explicit_reflectors(compact, k)
    T = triangular_factor(V, tau[:k])
    Q = np.eye(m, q_columns, dtype=compact.dtype) + V @ (T @ V[:q_columns].T)

    R = np.triu(compact[:q_columns])
    return QRResult(
        Q=Matrix.from_array(Q),
        R=Matrix.from_array(R),
        rank=_rank(R, (m, n)),
    )


def qr_decompose(
    A: Any,
    style: QRStyle = 'economy',
    blocked: bool = True,
    block_size: int = BLOCK_SIZE,
) -> QRResult:
    """
    QR decomposition.

    Computes A = QR where Q is orthogonal and R is upper triangular.

    Args:
        A: Matrix to decompose (m x n); not modified
        style: 'economy' (Q is m x k, R is k x n where k = min(m, n))
               or 'full' (Q is m x m, R is m x n)
        blocked: Allow the blocked algorithm for large inputs
        block_size: Columns per panel in the blocked algorithm

    Returns:
        QRResult with Q, R, and numerical rank

    Examples:
        >>> result = qr_decompose(Matrix.from_rows([[3, 1], [4, 2]]))
        >>> result.Q @ result.R   # equals A up to rounding
    """
    return qr_unpack(qr_compact(A, block_size=block_size, blocked=blocked), style)


def qr_solve(A: Any, y: Any, check_rank: bool = True) -> Matrix:
    """
    Solve least squares via QR decomposition.

    Solves: min_b ||y - A b||^2 via QR decomposition of A.

    The solution is computed as:
        A = QR
        b = R^-1 Q'y

    Args:
        A: Design matrix (m x n), must have m >= n
        y: Right-hand side, vector (m,) or matrix (m x r)
        check_rank: If True, raise SingularMatrixError on rank-deficient A

    Returns:
        Solution as an n x 1 (vector y) or n x r Matrix

    Raises:
        DimensionError: If A has fewer rows than columns or y's length
            does not match
        SingularMatrixError: If A is rank-deficient and check_rank=True
    """
    from scipy.linalg import solve_triangular

    rhs = check_array(y, 'y')
    if rhs.ndim == 1:
        rhs = rhs.reshape(-1, 1)
    check_2d(rhs, 'y')
    result = qr_decompose(A, style='economy')
    m, n = result.Q.rows, result.R.columns
    if m < n:
        raise DimensionError(
            f"A: least squares needs at least as many rows as columns, got {m}x{n}; "
            f"use pseudo_inverse() for underdetermined systems"
        )
    check_consistent_length(result.Q.array(), rhs, names=('A', 'y'))

    if check_rank and result.rank < n:
        raise SingularMatrixError(
            f"A is rank-deficient: rank={result.rank}, expected={n}. "
            f"The columns of A are linearly dependent.",
            matrix_name='A',
            rank=result.rank,
            expected_rank=n
        )

    # Compute Q'y first, then solve the triangular system by back substitution
    Qty = result.Q.array().T @ rhs
    beta = solve_triangular(result.R.array()[:n, :n], Qty[:n], lower=False)
    return Matrix.from_array(beta)


def inverse(A: Any) -> Matrix:
    """
    Inverse of a square matrix through its QR decomposition.

    Raises:
        DimensionError: If A is not square
        SingularMatrixError: If A is numerically singular
    """
    from scipy.linalg import solve_triangular

    array = check_array(A, 'A')
    check_square(array, 'A')
    n = array.shape[0]
    if n == 0:
        return Matrix(0, 0, dtype=array.dtype)
    result = qr_decompose(array, style='economy')
    if result.rank < n:
        raise SingularMatrixError(
            f"A is singular: rank={result.rank}, expected={n}",
            matrix_name='A',
            rank=result.rank,
            expected_rank=n
        )
    return Matrix.from_array(solve_triangular(result.R.array(), result.Q.array().T, lower=False))


def determinant(A: Any) -> float:
    """
    Determinant of a square matrix through its QR decomposition.

    det(A) = det(Q) det(R). Every reflector with a non-zero tau is a
    reflection (determinant -1), and det(R) is the product of its diagonal.
    The determinant of a 0 x 0 matrix is 1.

    Raises:
        ValidationError: If A is not numeric or contains NaN/Inf
        DimensionError: If A is not square
    """
    array = check_array(A, 'A')
    check_square(array, 'A')
    factors = qr_compact(array)
    reflections = int(np.count_nonzero(factors.tau.array()))
    product = float(np.prod(np.diag(factors.compact.array())))
    return -product if reflections % 2 else product


def is_singular(A: Any, tolerance: float | None = None) -> bool:
    """
    True if ``A`` is square and its determinant is zero within ``tolerance``.

    Non-square matrices are never singular in this sense. The default
    tolerance is the absolute tolerance of the element type's tier.
    """
    array = check_array(A, 'A')
    check_2d(array, 'A')
    if array.shape[0] != array.shape[1]:
        return False
    if tolerance is None:
        tolerance = select_tolerance(array.dtype).atol
    return abs(determinant(array)) <= tolerance
