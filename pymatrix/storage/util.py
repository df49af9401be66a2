"""
Whole-matrix utilities: joining, tiling, flipping, sorting, centering,
border extension, approximate comparison and Matlab-style text
conversion.

Functions that return a new matrix never modify their inputs. flip(),
sort_rows() and subtract_mean() work in place and detach the matrix first.
Size mismatches raise DimensionError before anything is written.
"""

from __future__ import annotations

import re
from typing import Any

import numpy as np

from pymatrix.core.exceptions import DimensionError, ValidationError
from pymatrix.core.tolerances import select_tolerance
from pymatrix.storage.matrix import Matrix, operand_array

_DIRECTIONS = ('vertical', 'horizontal')
_FLIPS = ('vertical', 'horizontal', 'both')
_EXTEND_MODES = {
    'zeros': 'constant',
    'replicate': 'edge',
    'symmetric': 'symmetric',
    'periodic': 'wrap',
}


def _check_direction(direction: str, allowed: tuple[str, ...] = _DIRECTIONS) -> None:
    if direction not in allowed:
        raise ValidationError(f"direction: must be one of {allowed}, got {direction!r}")


def _matrix(value: Any) -> Matrix:
    if isinstance(value, Matrix):
        return value
    return Matrix.from_array(operand_array(value))


def concatenate(first: Any, second: Any, direction: str = 'vertical') -> Matrix:
    """
    Join two matrices.

    An empty operand is ignored and the other one is returned (sharing
    its storage, or copied if it is a window).

    Args:
        first: Top (vertical) or left (horizontal) matrix
        second: Bottom or right matrix
        direction: 'vertical' stacks rows, 'horizontal' stacks columns

    Raises:
        DimensionError: If the shared dimension differs
    """
    _check_direction(direction)
    first, second = _matrix(first), _matrix(second)
    if second.is_empty():
        return Matrix(first)
    if first.is_empty():
        return Matrix(second)
    axis = 0 if direction == 'vertical' else 1
    if first.shape[1 - axis] != second.shape[1 - axis]:
        raise DimensionError(
            f"cannot concatenate {first.rows}x{first.columns} and "
            f"{second.rows}x{second.columns} {direction}ly"
        )
    return Matrix.from_array(np.concatenate([first.array(), second.array()], axis=axis))


def replicate(matrix: Any, vertical: int, horizontal: int) -> Matrix:
    """Tile ``matrix`` ``vertical`` times downwards and ``horizontal`` times sideways."""
    if vertical < 0 or horizontal < 0:
        raise ValidationError(
            f"replication counts must be non-negative, got {vertical} and {horizontal}"
        )
    return Matrix.from_array(np.tile(_matrix(matrix).array(), (vertical, horizontal)))


def _flip_axes(directions: str) -> tuple[int, ...]:
    _check_direction(directions, _FLIPS)
    return {'vertical': (0,), 'horizontal': (1,), 'both': (0, 1)}[directions]


def flipped(matrix: Any, directions: str = 'vertical') -> Matrix:
    """
    Mirrored copy.

    'vertical' reverses the row order, 'horizontal' the column order,
    'both' rotates by 180 degrees.
    """
    return Matrix.from_array(np.flip(_matrix(matrix).array(), axis=_flip_axes(directions)))


def flip(matrix: Matrix, directions: str = 'vertical') -> None:
    """In-place version of flipped()."""
    axes = _flip_axes(directions)
    view = matrix.writable_array()
    view[...] = np.flip(view, axis=axes).copy()


def sort_rows(matrix: Matrix, column: int = 0, reverse: bool = False) -> None:
    """
    Reorder the rows of ``matrix`` in place by the values in ``column``.

    The sort is stable: rows with equal keys keep their order.
    """
    if matrix.is_empty():
        return
    if not -matrix.columns <= column < matrix.columns:
        raise ValidationError(
            f"column: {column} out of range for a matrix with {matrix.columns} columns"
        )
    keys = matrix.array()[:, column]
    if reverse:
        order = len(keys) - 1 - np.argsort(keys[::-1], kind='stable')[::-1]
    else:
        order = np.argsort(keys, kind='stable')
    view = matrix.writable_array()
    view[...] = view[order]


def mean(matrix: Any, direction: str = 'vertical') -> Matrix:
    """
    Mean vector.

    'vertical' averages over rows (1 x columns result), 'horizontal' over
    columns (rows x 1 result).
    """
    _check_direction(direction)
    array = _matrix(matrix).array()
    if direction == 'vertical':
        if array.shape[0] == 0:
            return Matrix(1, array.shape[1])
        return Matrix.from_array(array.mean(axis=0, keepdims=True))
    if array.shape[1] == 0:
        return Matrix(array.shape[0], 1)
    return Matrix.from_array(array.mean(axis=1, keepdims=True))


def subtract_mean(matrix: Matrix, direction: str = 'vertical') -> Matrix:
    """
    Move a data set to zero mean in place.

    Args:
        matrix: Data set; with 'vertical' each row is an observation, with
            'horizontal' each column is
        direction: 'vertical' or 'horizontal'

    Returns:
        The mean vector that was subtracted (see mean())
    """
    center = mean(matrix, direction)
    view = matrix.writable_array()
    np.subtract(view, center.array(), out=view, casting='unsafe')
    return center


def almost_equal(first: Any, second: Any, tolerance: float | None = None) -> bool:
    """
    True if two matrices have the same shape and no element pair differs
    by more than ``tolerance`` in absolute value.

    The default tolerance is the absolute tolerance of the tier for the
    first matrix's element type.

    Examples:
        >>> almost_equal([[1.0]], [[1.01]], 0.1)
        True
    """
    a, b = operand_array(first), operand_array(second)
    if a.ndim != 2 or a.shape != b.shape:
        return False
    if tolerance is None:
        tolerance = select_tolerance(a.dtype).atol
    return bool(np.all(np.abs(a - b) <= tolerance))


def is_orthogonal_like(matrix: Any, tolerance: float | None = None) -> bool:
    """
    True if the columns (rows >= columns) or the rows (rows < columns) of
    ``matrix`` are orthonormal within ``tolerance``.
    """
    a = _matrix(matrix).array()
    m, n = a.shape
    gram = a.T @ a if m >= n else a @ a.T
    return almost_equal(gram, np.eye(min(m, n)), tolerance)


def extend(
    matrix: Any,
    amount: int,
    mode: str = 'zeros',
    sides: tuple[str, ...] = ('top', 'bottom', 'left', 'right'),
) -> Matrix:
    """
    Enlarge a matrix by ``amount`` rows/columns on the chosen sides.

    Modes:
        'zeros'     - new cells are zero
        'replicate' - border rows/columns are repeated
        'symmetric' - the matrix is mirrored at its border (border included)
        'periodic'  - the matrix wraps around

    Raises:
        ValidationError: If mode or a side name is unknown or amount is negative
    """
    if mode not in _EXTEND_MODES:
        raise ValidationError(f"mode: must be one of {tuple(_EXTEND_MODES)}, got {mode!r}")
    unknown = set(sides) - {'top', 'bottom', 'left', 'right'}
    if unknown:
        raise ValidationError(f"sides: unknown side names {sorted(unknown)}")
    if amount < 0:
        raise ValidationError(f"amount: must be non-negative, got {amount}")
    array = _matrix(matrix).array()
    widths = (
        (amount if 'top' in sides else 0, amount if 'bottom' in sides else 0),
        (amount if 'left' in sides else 0, amount if 'right' in sides else 0),
    )
    if array.size == 0 and mode != 'zeros':
        raise ValidationError(f"cannot extend an empty matrix in {mode!r} mode")
    return Matrix.from_array(np.pad(array, widths, mode=_EXTEND_MODES[mode]))


def _format_element(value: Any) -> str:
    if isinstance(value, (bool, np.bool_)):
        return str(int(value))
    if isinstance(value, (int, np.integer)):
        return str(int(value))
    text = repr(float(value))
    return text[:-2] if text.endswith('.0') else text


def matlab_format(matrix: Any) -> str:
    """
    Matrix as Matlab source text.

    >>> matlab_format(Matrix.from_rows([[1, 2], [3, 4]]))
    '[ 1 2; ...\\n  3 4 ];\\n'
    """
    rows = (
        ' '.join(_format_element(value) for value in row)
        for row in _matrix(matrix).array().tolist()
    )
    return '[ ' + '; ...\n  '.join(rows) + ' ];\n'


_CONTINUATION = re.compile(r'\.\.\.[^\n]*\n?')
_SEPARATORS = re.compile(r'[\s,]+')


def matlab_parse(text: str) -> Matrix:
    """
    Parse a matrix written in Matlab syntax.

    Enclosing brackets and a trailing semicolon are optional. Elements are
    separated by commas or whitespace, rows by semicolons or newlines;
    "..." continues a row on the next line.

    >>> matlab_parse("[1 2 3; 4 5 6]").shape
    (2, 3)

    Raises:
        ValidationError: If an element is not a number
        DimensionError: If rows have different lengths
    """
    body = _CONTINUATION.sub(' ', text).strip()
    if body.startswith('['):
        body = body[1:]
    body = body.rstrip().rstrip(';').rstrip()
    if body.endswith(']'):
        body = body[:-1]
    rows = []
    for line in re.split(r'[;\n]', body):
        fields = [field for field in _SEPARATORS.split(line.strip()) if field]
        if not fields:
            continue
        try:
            rows.append([float(field) for field in fields])
        except ValueError as e:
            raise ValidationError(f"matlab_parse: {e}") from e
    return Matrix.from_rows(rows)
