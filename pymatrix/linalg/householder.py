"""
Householder reflectors.

An elementary reflector H = I - tau * v * v' maps a vector x onto a
multiple of the first unit vector: H x = (beta, 0, ..., 0)'. The vector v
is stored with v[0] = 1, so only v[1:] and tau need to be kept. That is
how the QR decomposition stores its reflectors below the diagonal of R.

A product of k reflectors H_0 H_1 ... H_(k-1) can be written in the
compact WY form I + V T V', where V holds the reflectors as columns and
T is k x k upper triangular. Applying the product as two matrix products
is much faster than applying k rank-one updates one by one.

Design principles:
    - Reflectors are never formed as matrices
    - Construction is scaled so that squaring cannot overflow or underflow
    - In-place functions write through views of the caller's storage
"""

import math
from dataclasses import dataclass
from typing import Any, Literal

import numpy as np
from numpy.typing import NDArray

from pymatrix.core.exceptions import DimensionError, ValidationError
from pymatrix.core.precision import safe_scale_bounds
from pymatrix.core.validation import check_array, check_2d, writable_matrix, writable_vector
from pymatrix.storage.matrix import Matrix


@dataclass(frozen=True)
class HouseholderReflector:
    """
    Result of householder_transform().

    Attributes:
        v: Reflector vector with v[0] == 1. Aliases the transformed input.
        tau: Scaling factor of the reflector (0 means H = I)
        beta: First element of H x; all other elements are zero
    """
    v: NDArray[np.floating[Any]]
    tau: float
    beta: float


def _householder(x: NDArray[np.floating[Any]]) -> tuple[float, float]:
    """Turn ``x`` into a reflector vector in place. Returns (tau, beta)."""
    n = x.shape[0]
    if n == 0:
        return 0.0, 0.0
    alpha = float(x[0])
    if n == 1 or not np.any(x[1:]):
        # Already a multiple of e_1
        x[0] = 1
        return 0.0, alpha

    lower, upper = safe_scale_bounds(x.dtype)
    scale = min(max(float(np.max(np.abs(x))), lower), upper)
    x /= scale
    alpha = float(x[0])
    norm = float(np.linalg.norm(x[1:]))
    beta = -math.copysign(math.hypot(alpha, norm), alpha)
    tau = (beta - alpha) / beta
    x[1:] /= alpha - beta
    x[0] = 1
    return tau, beta * scale


def householder_transform(x: Any, n: int | None = None) -> HouseholderReflector:
    """
    Compute the Householder reflector that annihilates x[1:].

    ``x`` is overwritten by the reflector vector v (with v[0] = 1), so that
    (I - tau v v') x_original = (beta, 0, ..., 0)'.

    Args:
        x: Writable floating-point vector: 1-D ndarray, row or column
            Matrix, or a StridedIterator (its remaining elements)
        n: Use only the first n elements of x (default: all)

    Returns:
        HouseholderReflector(v, tau, beta). Empty input gives tau = beta
        = 0. If x[1:] is already zero, tau = 0 and beta = x[0].

    Raises:
        ValidationError: If x is not a writable floating-point vector or
            n is outside [0, len(x)]
    """
    vector = writable_vector(x, 'x')
    if n is not None:
        if not 0 <= n <= vector.shape[0]:
            raise ValidationError(f"n: must be in [0, {vector.shape[0]}], got {n}")
        vector = vector[:n]
    tau, beta = _householder(vector)
    return HouseholderReflector(v=vector, tau=tau, beta=beta)


def _reflect(A: NDArray[np.floating[Any]], v: NDArray[np.floating[Any]], tau: float) -> None:
    # A <- (I - tau v v') A
    if tau == 0 or A.size == 0:
        return
    w = v @ A
    A -= tau * np.outer(v, w)


def _check_reflector(A: NDArray[Any], v: NDArray[Any], length: int) -> None:
    if v.ndim != 1 or v.shape[0] != length:
        raise DimensionError(
            f"reflector of length {v.shape[0] if v.ndim == 1 else v.shape} "
            f"does not match a matrix dimension of {length}"
        )


def reflect_columns(A: Any, v: Any, tau: float) -> None:
    """
    Apply a reflector from the left: A <- H A.

    Every column of A is reflected; the reflector length must equal the
    number of rows.

    Raises:
        DimensionError: If v does not have A.rows elements
    """
    target = writable_matrix(A, 'A')
    vector = check_array(v, 'v').ravel()
    _check_reflector(target, vector, target.shape[0])
    _reflect(target, vector, tau)


def reflect_rows(A: Any, v: Any, tau: float) -> None:
    """
    Apply a reflector from the right: A <- A H'.

    Every row of A is reflected; the reflector length must equal the
    number of columns. Implemented as reflect_columns() on the
    transposed view.

    Raises:
        DimensionError: If v does not have A.columns elements
    """
    target = writable_matrix(A, 'A')
    vector = check_array(v, 'v').ravel()
    _check_reflector(target, vector, target.shape[1])
    _reflect(target.T, vector, tau)


def explicit_reflectors(
    compact: NDArray[np.floating[Any]],
    count: int,
    diagonal: int = 0,
) -> NDArray[np.floating[Any]]:
    """
    Reflector vectors stored as columns of ``compact``, made explicit.

    Column j holds reflector j from row j + diagonal on; that entry is
    taken to be one and everything above it zero.
    """
    V = np.tril(compact[:, :count], -diagonal).astype(compact.dtype, copy=True)
    if count:
        V[np.arange(count) + diagonal, np.arange(count)] = 1
    return V


def triangular_factor(
    V: NDArray[np.floating[Any]],
    tau: NDArray[np.floating[Any]],
) -> NDArray[np.floating[Any]]:
    """
    T such that H_0 ... H_(k-1) = I + V T V' for explicit column reflectors.

    Column j of T follows from the previous ones:
        T[j, j]  = -tau_j
        T[:j, j] = -tau_j * T[:j, :j] @ (V[:, :j]' v_j)
    """
    k = V.shape[1]
    gram = V.T @ V
    T = np.zeros((k, k), dtype=V.dtype)
    for j in range(k):
        T[j, j] = -tau[j]
        if j:
            T[:j, j] = -tau[j] * (T[:j, :j] @ gram[:j, j])
    return T


def unpack_reflectors(
    V: Any,
    tau: Any,
    direction: Literal['vertical', 'horizontal'] = 'vertical',
    diagonal: int = 0,
) -> Matrix:
    """
    Compact WY factor of a sequence of reflectors.

    With 'vertical', reflector j is column j of V starting on row
    j + diagonal, and the product of the reflectors is I + V T V'. With
    'horizontal', reflector j is row j of V starting on column
    j + diagonal, and the product is I + V' T V. In both cases the first
    entry of each reflector is taken to be one and the entries before it
    are ignored; V itself is not modified.

    Args:
        V: Reflectors in compact form (e.g. the output of
            qr_decompose_inplace())
        tau: Scaling factors, one per reflector
        direction: 'vertical' (columns) or 'horizontal' (rows)
        diagonal: Diagonal the reflectors start on (0 = main diagonal)

    Returns:
        k x k upper triangular Matrix T, where k is the number of
        reflectors: min(len(tau), columns, rows - diagonal) for
        'vertical', min(len(tau), rows, columns - diagonal) for
        'horizontal'

    Raises:
        ValidationError: If direction or diagonal is invalid
    """
    if direction not in ('vertical', 'horizontal'):
        raise ValidationError(f"direction: must be 'vertical' or 'horizontal', got {direction!r}")
    if diagonal < 0:
        raise ValidationError(f"diagonal: must be non-negative, got {diagonal}")
    compact = check_array(V, 'V')
    check_2d(compact, 'V')
    factors = check_array(tau, 'tau').ravel()
    if direction == 'horizontal':
        compact = compact.T
    k = max(min(factors.shape[0], compact.shape[1], compact.shape[0] - diagonal), 0)
    explicit = explicit_reflectors(compact, k, diagonal)
    return Matrix.from_array(triangular_factor(explicit, factors[:k]))
