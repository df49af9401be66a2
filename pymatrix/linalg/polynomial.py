"""
Least-squares polynomial fitting.
"""

import warnings
from typing import Any

import numpy as np

from pymatrix.core.exceptions import DimensionError, ValidationError
from pymatrix.core.validation import check_2d, check_array, check_finite
from pymatrix.linalg.pinv import pseudo_inverse
from pymatrix.storage.matrix import Matrix


def _fit(order: int, x: np.ndarray, z: np.ndarray) -> np.ndarray:
    # Rows of H are (1, x, x^2, ..., x^order)
    H = np.vander(x, order + 1, increasing=True)
    H_pinv = pseudo_inverse(H).array()
    # A Vandermonde matrix has full column rank iff enough x values differ
    if np.unique(x).size < order + 1:
        warnings.warn(
            f"polynomial fit of order {order} is rank-deficient: "
            f"the x coordinates do not have {order + 1} distinct values",
            RuntimeWarning,
        )
    return z @ H_pinv.T


def fit_polynomial(order: int, x: Any, y: Any = None) -> Matrix:
    """
    Fit polynomials to measurements in the least-squares sense.

    Two input forms are accepted:

    * ``y`` omitted: ``x`` is an N x 2 matrix of (x, y) points, and one
      polynomial is fitted.
    * ``y`` given: ``x`` and ``y`` are M x N matrices; row i holds the
      coordinates of the i-th measurement set, and one polynomial is
      fitted per row.

    Args:
        order: Polynomial order
        x: Coordinates (see above)
        y: Optional y coordinates

    Returns:
        M x (order + 1) Matrix (M = 1 in the first form). Column j holds the
        coefficient of x**j.

    Raises:
        ValidationError: If the number of measurements does not exceed
            the order
        DimensionError: If x and y shapes do not fit the forms above

    Warns:
        RuntimeWarning: If the least-squares problem is rank-deficient

    Examples:
        >>> # y = 2.5x^3 + 2x^2 - 8x + 0.5
        >>> coeffs = fit_polynomial(3, [[-1, 8], [0, 0.5], [1, -3], [2, 12.5]])
        >>> # coeffs is approximately [[0.5, -8.0, 2.0, 2.5]]
    """
    if order < 0:
        raise ValidationError(f"order: must be non-negative, got {order}")
    xs = check_array(x, 'x')
    check_2d(xs, 'x')
    check_finite(xs, 'x')

    if y is None:
        if xs.shape[1] != 2:
            raise DimensionError(f"x: expected N x 2 (x, y) points, got shape {xs.shape}")
        measurements = xs.shape[0]
    else:
        ys = check_array(y, 'y')
        check_2d(ys, 'y')
        check_finite(ys, 'y')
        if ys.shape != xs.shape:
            raise DimensionError(f"x and y shapes differ: {xs.shape} vs {ys.shape}")
        measurements = xs.shape[1]

    if measurements <= order:
        raise ValidationError(
            f"a polynomial of order {order} needs more than {order} measurements, "
            f"got {measurements}"
        )

    if y is None:
        coefficients = _fit(order, xs[:, 0], xs[:, 1].reshape(1, -1))
    else:
        coefficients = np.zeros((xs.shape[0], order + 1))
        for row in range(xs.shape[0]):
            coefficients[row] = _fit(order, xs[row], ys[row].reshape(1, -1))
    return Matrix.from_array(coefficients)
