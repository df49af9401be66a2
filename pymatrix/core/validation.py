"""
Input validation utilities for pymatrix.

These validators follow the "fail fast, fail loud" principle. They raise
immediately with clear error messages rather than silently correcting
or making assumptions about user intent.

Design principles:
    - No silent type coercion (except promotion of integers to float64)
    - Clear, actionable error messages with actual values
    - Each function validates ONE thing
    - Parameter names included in all error messages

Public decompositions accept a Matrix, a matrix view or any array-like;
check_array() turns all of them into a floating-point ndarray. In-place
kernels use writable_matrix()/writable_vector() instead, which hand out
views aliasing the caller's storage.
"""

from typing import Any

import numpy as np
from numpy.typing import ArrayLike, NDArray

from pymatrix.core.exceptions import DimensionError, ValidationError
from pymatrix.storage.iterators import StridedIterator
from pymatrix.storage.matrix import Matrix, operand_array


def check_array(
    array: ArrayLike,
    name: str,
) -> NDArray[np.floating[Any]]:
    """
    Validate and convert input to a floating-point numpy array.

    Accepts a Matrix, a matrix view or any array-like. Rejects inputs that
    result in object dtype (indicating mixed types or non-numeric data).

    Args:
        array: Input to validate
        name: Parameter name for error messages

    Returns:
        numpy.ndarray with floating dtype. Matrix input is returned as a
        read-only view when it already has a floating dtype.

    Raises:
        ValidationError: If input cannot be converted to numeric array
    """
    try:
        result = operand_array(array)
    except (ValueError, TypeError) as e:
        raise ValidationError(f"{name}: cannot convert to array: {e}") from e

    if result.dtype == object:
        raise ValidationError(
            f"{name}: converted to object dtype, indicating mixed types or non-numeric data"
        )

    if not (np.issubdtype(result.dtype, np.number) or result.dtype == np.bool_):
        raise ValidationError(
            f"{name}: non-numeric dtype {result.dtype}, expected numeric data"
        )

    if np.issubdtype(result.dtype, np.complexfloating):
        raise ValidationError(f"{name}: complex input is not supported")

    if not np.issubdtype(result.dtype, np.floating):
        result = result.astype(np.float64)

    return result


def check_finite(array: NDArray[np.floating[Any]], name: str) -> None:
    """
    Verify array contains no NaN or Inf values.

    Raises:
        ValidationError: If array contains non-finite values
    """
    if not np.all(np.isfinite(array)):
        n_nan = int(np.sum(np.isnan(array)))
        n_inf = int(np.sum(np.isinf(array)))
        raise ValidationError(
            f"{name}: contains non-finite values ({n_nan} NaN, {n_inf} Inf)"
        )


def check_ndim(array: NDArray[Any], ndim: int, name: str) -> None:
    """
    Verify array has exactly the specified number of dimensions.

    Raises:
        DimensionError: If array has wrong number of dimensions
    """
    if array.ndim != ndim:
        raise DimensionError(
            f"{name}: expected {ndim}D array, got {array.ndim}D with shape {array.shape}"
        )


def check_1d(array: NDArray[Any], name: str) -> None:
    check_ndim(array, 1, name)


def check_2d(array: NDArray[Any], name: str) -> None:
    check_ndim(array, 2, name)


def check_square(array: NDArray[Any], name: str) -> None:
    """
    Verify a 2-D array is square.

    Raises:
        DimensionError: If rows and columns differ
    """
    check_2d(array, name)
    if array.shape[0] != array.shape[1]:
        raise DimensionError(f"{name}: expected a square matrix, got shape {array.shape}")


def check_consistent_length(
    *arrays: NDArray[Any],
    names: tuple[str, ...]
) -> None:
    """
    Verify all arrays have the same length (first dimension).

    Raises:
        ValueError: If number of names doesn't match number of arrays
        DimensionError: If arrays have inconsistent lengths
    """
    if len(arrays) != len(names):
        raise ValueError(
            f"Number of arrays ({len(arrays)}) must match number of names ({len(names)})"
        )

    if len(arrays) < 2:
        return

    lengths = [arr.shape[0] for arr in arrays]
    if len(set(lengths)) > 1:
        details = ", ".join(f"{name}={length}" for name, length in zip(names, lengths))
        raise DimensionError(f"Inconsistent lengths: {details}")


def _check_writable_float(array: NDArray[Any], name: str) -> None:
    if not np.issubdtype(array.dtype, np.floating):
        raise ValidationError(
            f"{name}: in-place computation needs a floating-point matrix, got {array.dtype}"
        )
    if not array.flags.writeable:
        raise ValidationError(f"{name}: array is read-only")


def writable_matrix(target: Any, name: str) -> NDArray[np.floating[Any]]:
    """
    Writable 2-D view aliasing the storage of ``target``.

    Matrices (and windows) are detached first; ndarrays are used as they
    are; transposed views give the transpose of their matrix's storage.

    Raises:
        ValidationError: If the target is not a writable floating matrix
        DimensionError: If the target is not two-dimensional
    """
    if isinstance(target, np.ndarray):
        array = target
    elif callable(getattr(target, 'writable_array', None)):
        array = target.writable_array()
    else:
        raise ValidationError(
            f"{name}: expected a Matrix or a writable ndarray, got {type(target).__name__}"
        )
    check_2d(array, name)
    _check_writable_float(array, name)
    return array


def writable_vector(target: Any, name: str) -> NDArray[np.floating[Any]]:
    """
    Writable 1-D view aliasing ``target``.

    Accepts a 1-D ndarray, a StridedIterator over a writable row or
    column (its remaining elements), or a single-row/single-column Matrix.

    Raises:
        ValidationError: If the target is not a writable floating vector
        DimensionError: If a Matrix target is not a vector
    """
    if isinstance(target, StridedIterator):
        array = target.vector()
    elif isinstance(target, np.ndarray):
        array = target
    elif isinstance(target, Matrix):
        if target.rows == 1:
            array = target.writable_row(0)
        elif target.columns == 1:
            array = target.writable_column(0)
        else:
            raise DimensionError(f"{name}: expected a vector, got shape {target.shape}")
    else:
        raise ValidationError(
            f"{name}: expected a vector, got {type(target).__name__}"
        )
    check_1d(array, name)
    _check_writable_float(array, name)
    return array
