"""
Principal component analysis on top of the SVD.

Samples are rows, variables are columns. The principal axes are the right
singular vectors of the (centered) data matrix, returned as the columns of
``components`` in order of decreasing variance.
"""

import warnings
from dataclasses import dataclass
from typing import Any

import numpy as np

from pymatrix.core.exceptions import ValidationError
from pymatrix.core.validation import check_2d, check_array, check_finite
from pymatrix.linalg.svd import sv_decompose
from pymatrix.storage.matrix import Matrix


@dataclass(frozen=True)
class PCAResult:
    """
    Result of principal_components().

    Attributes:
        components: n_variables x k Matrix, one principal axis per column
        singular_values: 1 x k Matrix, descending
        mean: 1 x n_variables Matrix subtracted before the decomposition
            (zeros if centering was disabled)
        explained_variance: 1 x k Matrix, singular_values**2 / (n_samples - 1)
    """
    components: Matrix
    singular_values: Matrix
    mean: Matrix
    explained_variance: Matrix

    @property
    def n_components(self) -> int:
        return self.components.columns


def principal_components(X: Any, center: bool = True) -> PCAResult:
    """
    Principal axes of a data set.

    Args:
        X: n_samples x n_variables data
        center: Subtract the column means first

    Returns:
        PCAResult; k = min(n_samples, n_variables)

    Raises:
        ValidationError: If X is not a finite numeric matrix
        DimensionError: If X is not two-dimensional

    Warns:
        RuntimeWarning: With fewer than two samples the variances are
            undefined and reported as zero
    """
    data = check_array(X, 'X')
    check_2d(data, 'X')
    check_finite(data, 'X')
    n_samples, n_variables = data.shape

    if center and n_samples > 0:
        mean = data.mean(axis=0)
    else:
        mean = np.zeros(n_variables, dtype=data.dtype)
    svd = sv_decompose(data - mean)
    values = svd.singular_values.array().ravel()

    if n_samples < 2:
        warnings.warn(
            f"PCA with {n_samples} sample(s): explained variance is undefined, reporting zeros",
            RuntimeWarning,
        )
        variance = np.zeros_like(values)
    else:
        variance = values ** 2 / (n_samples - 1)

    return PCAResult(
        components=svd.V,
        singular_values=svd.singular_values,
        mean=Matrix.from_array(mean.reshape(1, -1)),
        explained_variance=Matrix.from_array(variance.reshape(1, -1)),
    )


def pca_decorrelate(X: Any, n_components: int | None = None) -> Matrix:
    """
    Project centered data onto its leading principal axes.

    The columns of the result are uncorrelated.

    Args:
        X: n_samples x n_variables data
        n_components: Number of axes to keep (default: all)

    Returns:
        n_samples x n_components Matrix of scores

    Raises:
        ValidationError: If n_components is out of range
    """
    result = principal_components(X)
    if n_components is None:
        n_components = result.n_components
    if not 0 <= n_components <= result.n_components:
        raise ValidationError(
            f"n_components: must be in [0, {result.n_components}], got {n_components}"
        )
    data = check_array(X, 'X')
    centered = data - result.mean.array()
    return Matrix.from_array(centered @ result.components.array()[:, :n_components])
