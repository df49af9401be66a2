"""
Bidiagonal reduction with two-sided Householder reflections.

A = Q B P where Q (m x m) and P (n x n) are orthogonal and B is
bidiagonal: upper bidiagonal when m >= n, lower bidiagonal when m < n.

The reduction alternates a left reflector, which clears a column below the
diagonal, with a right reflector, which clears a row to the right of the
superdiagonal (or the other way around for wide input). Both sets are
stored in the input itself:

    m >= n                       m < n
    ( d   e   u1  u1  u1 )      ( d   u1  u1  u1  u1  u1 )
    ( v1  d   e   u2  u2 )      ( e   d   u2  u2  u2  u2 )
    ( v1  v2  d   e   u3 )      ( v1  e   d   u3  u3  u3 )
    ( v1  v2  v3  d   e  )      ( v1  v2  e   d   u4  u4 )
    ( v1  v2  v3  v4  d  )      ( v1  v2  v3  e   d   u5 )
    ( v1  v2  v3  v4  v5 )

v are column reflectors (left), u row reflectors (right), d the main
diagonal and e the super/subdiagonal. Each reflector's leading one is
implicit and sits on the d or e entry it starts from.
"""

from dataclasses import dataclass
from typing import Any

import numpy as np
from numpy.typing import NDArray

from pymatrix.core.validation import check_2d, check_array, check_finite, writable_matrix
from pymatrix.linalg.householder import (
    _householder,
    _reflect,
    explicit_reflectors,
    unpack_reflectors,
)
from pymatrix.storage.matrix import Matrix


@dataclass(frozen=True)
class BidiagonalFactors:
    """
    Compact bidiagonal factors.

    Attributes:
        compact: B on its two diagonals, reflectors everywhere else
        tau_q: 1 x k scaling factors of the left reflectors
        tau_p: 1 x k scaling factors of the right reflectors
    """
    compact: Matrix
    tau_q: Matrix
    tau_p: Matrix


@dataclass(frozen=True)
class BidiagonalResult:
    """
    Result of bidiagonal decomposition, A = Q B P.

    Attributes:
        Q: m x m orthogonal matrix
        B: m x n bidiagonal matrix
        P: n x n orthogonal matrix
    """
    Q: Matrix
    B: Matrix
    P: Matrix


def _reduce_upper(A: NDArray[np.floating[Any]], tau_q: NDArray[Any], tau_p: NDArray[Any]) -> None:
    n = A.shape[1]
    for i in range(n):
        column = A[i:, i]
        tau_q[i], beta = _householder(column)
        if i == n - 1:
            column[0] = beta
            break
        _reflect(A[i:, i + 1:], column, tau_q[i])
        column[0] = beta

        row = A[i, i + 1:]
        tau_p[i], beta = _householder(row)
        _reflect(A[i + 1:, i + 1:].T, row, tau_p[i])
        row[0] = beta


def _reduce_lower(A: NDArray[np.floating[Any]], tau_q: NDArray[Any], tau_p: NDArray[Any]) -> None:
    m = A.shape[0]
    for i in range(m):
        row = A[i, i:]
        tau_p[i], beta = _householder(row)
        if i == m - 1:
            row[0] = beta
            break
        _reflect(A[i + 1:, i:].T, row, tau_p[i])
        row[0] = beta

        column = A[i + 1:, i]
        tau_q[i], beta = _householder(column)
        _reflect(A[i + 1:, i + 1:], column, tau_q[i])
        column[0] = beta


def bd_decompose_inplace(A: Any) -> tuple[Matrix, Matrix]:
    """
    Reduce ``A`` to bidiagonal form in place.

    Afterwards ``A`` holds B and both reflector sets in the compact layout
    described in the module docstring.

    Args:
        A: Writable floating-point Matrix (or ndarray), m x n

    Returns:
        (tau_q, tau_p), each a 1 x min(m, n) Matrix. The last factor of the
        shorter side is always zero.

    Raises:
        ValidationError: If A is not writable or not floating-point
    """
    target = writable_matrix(A, 'A')
    m, n = target.shape
    k = min(m, n)
    tau_q = np.zeros(k, dtype=target.dtype)
    tau_p = np.zeros(k, dtype=target.dtype)
    if m >= n:
        _reduce_upper(target, tau_q, tau_p)
    else:
        _reduce_lower(target, tau_q, tau_p)
    return Matrix.from_array(tau_q.reshape(1, -1)), Matrix.from_array(tau_p.reshape(1, -1))


def bd_compact(A: Any) -> BidiagonalFactors:
    """
    Compact bidiagonal factors of a copy of ``A``.

    Integer input is reduced in float64.

    Raises:
        ValidationError: If A is not numeric or contains NaN/Inf
        DimensionError: If A is not two-dimensional
    """
    array = check_array(A, 'A')
    check_2d(array, 'A')
    check_finite(array, 'A')
    compact = Matrix.from_array(array)
    tau_q, tau_p = bd_decompose_inplace(compact)
    return BidiagonalFactors(compact=compact, tau_q=tau_q, tau_p=tau_p)


def bd_unpack_q(factors: BidiagonalFactors) -> Matrix:
    """Left orthogonal factor Q (m x m) as I + V T V'."""
    compact = factors.compact.array()
    m, n = compact.shape
    if m >= n:
        V, diagonal = compact, 0
    else:
        # Left reflectors start below the diagonal
        V, diagonal = compact[:, :m], 1
    T = unpack_reflectors(V, factors.tau_q, direction='vertical', diagonal=diagonal).array()
    explicit = explicit_reflectors(V, T.shape[0], diagonal)
    return Matrix.from_array(np.eye(m, dtype=compact.dtype) + explicit @ T @ explicit.T)


def bd_unpack_p(factors: BidiagonalFactors) -> Matrix:
    """Right orthogonal factor P (n x n) as I + U' T' U."""
    compact = factors.compact.array()
    m, n = compact.shape
    if m >= n:
        # Right reflectors start right of the diagonal
        U, diagonal = compact[:n], 1
    else:
        U, diagonal = compact, 0
    T = unpack_reflectors(U, factors.tau_p, direction='horizontal', diagonal=diagonal).array()
    # Row reflectors of U are the columns of U'
    explicit = explicit_reflectors(U.T, T.shape[0], diagonal)
    return Matrix.from_array(np.eye(n, dtype=compact.dtype) + explicit @ T.T @ explicit.T)


def bd_unpack_b(factors: BidiagonalFactors) -> Matrix:
    """The bidiagonal matrix B, reflectors zeroed out."""
    compact = factors.compact.array()
    m, n = compact.shape
    if m >= n:
        B = np.triu(np.tril(compact, 1))
    else:
        B = np.tril(np.triu(compact, -1))
    return Matrix.from_array(B)


def bd_unpack_diagonals(factors: BidiagonalFactors) -> tuple[Matrix, Matrix]:
    """
    The two non-zero diagonals of B.

    Returns:
        (d, e): d is 1 x k with the main diagonal; e is 1 x (k - 1) with
        the superdiagonal (m >= n) or subdiagonal (m < n), k = min(m, n)
    """
    compact = factors.compact.array()
    m, n = compact.shape
    k = min(m, n)
    d = np.diagonal(compact)[:k]
    e = np.diagonal(compact, 1 if m >= n else -1)[:max(k - 1, 0)]
    return Matrix.from_array(d.reshape(1, -1)), Matrix.from_array(e.reshape(1, -1))


def bd_decompose(A: Any) -> BidiagonalResult:
    """
    Bidiagonal decomposition A = Q B P.

    Args:
        A: Matrix to decompose (m x n); not modified

    Returns:
        BidiagonalResult with Q (m x m), B (m x n) and P (n x n)

    Examples:
        >>> result = bd_decompose(Matrix.from_rows([[1, 2], [3, 4], [5, 6]]))
        >>> result.Q @ result.B @ result.P   # equals A up to rounding
    """
    factors = bd_compact(A)
    return BidiagonalResult(
        Q=bd_unpack_q(factors),
        B=bd_unpack_b(factors),
        P=bd_unpack_p(factors),
    )
