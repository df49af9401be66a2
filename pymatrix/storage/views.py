"""
Storage-free views of a Matrix.

TransposedView swaps the roles of rows and columns; FilteredView exposes
the elements selected by a mask as a single row. Neither owns memory: they
hold a reference to the matrix and address its storage on demand. Writes
go through the matrix, so its copy-on-write rules apply.
"""

from __future__ import annotations

from typing import Any, Iterator

import numpy as np
from numpy.typing import NDArray

from pymatrix.core.exceptions import DimensionError
from pymatrix.storage.iterators import (
    FilteredIterator,
    MatrixIterator,
    StridedIterator,
    element_count,
)
from pymatrix.storage.matrix import Matrix, operand_array


class TransposedView:
    """
    Transpose of a Matrix without copying.

    Element (r, c) of the view is element (c, r) of the matrix. Row
    iterators of the view are column iterators of the matrix and vice
    versa.
    """

    __array_ufunc__ = None

    def __init__(self, matrix: Matrix):
        self._matrix = matrix

    @property
    def matrix(self) -> Matrix:
        """The matrix being viewed."""
        return self._matrix

    @property
    def rows(self) -> int:
        return self._matrix.columns

    @property
    def columns(self) -> int:
        return self._matrix.rows

    @property
    def shape(self) -> tuple[int, int]:
        return self._matrix.columns, self._matrix.rows

    @property
    def dtype(self) -> np.dtype:
        return self._matrix.dtype

    def __getitem__(self, index: tuple[int, int]) -> Any:
        row, column = index
        return self._matrix[column, row]

    def __setitem__(self, index: tuple[int, int], value: Any) -> None:
        row, column = index
        self._matrix[column, row] = value

    def array(self) -> NDArray[Any]:
        return self._matrix.array().T

    def writable_array(self) -> NDArray[Any]:
        return self._matrix.writable_array().T

    def begin(self, writable: bool = False) -> MatrixIterator:
        view = self.writable_array() if writable else self.array()
        return MatrixIterator(view)

    def end(self, writable: bool = False) -> MatrixIterator:
        view = self.writable_array() if writable else self.array()
        return MatrixIterator(view, view.size)

    def row_begin(self, index: int, writable: bool = False) -> StridedIterator:
        return self._matrix.column_begin(index, writable)

    def column_begin(self, index: int, writable: bool = False) -> StridedIterator:
        return self._matrix.row_begin(index, writable)

    def __iter__(self) -> Iterator[Any]:
        return MatrixIterator(self.array())

    def transposed(self) -> Matrix:
        return self._matrix

    @property
    def T(self) -> Matrix:
        return self._matrix

    def to_matrix(self) -> Matrix:
        """Materialize the transpose into a new Matrix."""
        return Matrix.from_array(self.array())

    def __matmul__(self, other: Any) -> Matrix:
        return self.to_matrix() @ other

    def __rmatmul__(self, other: Any) -> Matrix:
        return Matrix.from_array(operand_array(other)) @ self

    def __eq__(self, other: object) -> bool:
        return self.to_matrix() == other

    __hash__ = None

    def __array__(self, dtype: Any = None, copy: bool | None = None) -> NDArray[Any]:
        return np.array(self.array(), dtype=dtype)

    def __repr__(self) -> str:
        return f"TransposedView({self.rows}x{self.columns}, dtype={self.dtype})"


class FilteredView:
    """
    The elements of a matrix whose mask entry is non-zero, as one row.

    Elements are visited in row-major order. Iteration is forward only;
    there is no random indexing. The number of selected elements is counted
    on first use and cached. The mask is captured when the view is
    created: later changes to the mask matrix are not seen.

    Args:
        matrix: Matrix to filter
        mask: Matrix or array-like of the same shape

    Raises:
        DimensionError: If mask and matrix shapes differ
    """

    def __init__(self, matrix: Matrix, mask: Any):
        if isinstance(mask, Matrix):
            mask = Matrix(mask)
        else:
            mask = Matrix.from_array(operand_array(mask))
        if mask.shape != matrix.shape:
            raise DimensionError(
                f"mask is {mask.rows}x{mask.columns}, matrix is {matrix.rows}x{matrix.columns}"
            )
        self._matrix = matrix
        self._mask = mask
        self._count: int | None = None

    @property
    def rows(self) -> int:
        return 1

    @property
    def columns(self) -> int:
        if self._count is None:
            self._count = element_count(self._mask.array())
        return self._count

    @property
    def shape(self) -> tuple[int, int]:
        return 1, self.columns

    def __len__(self) -> int:
        return self.columns

    def _selection(self) -> NDArray[np.bool_]:
        return self._mask.array() != 0

    def __iter__(self) -> FilteredIterator:
        return FilteredIterator(MatrixIterator(self._matrix.array()),
                                MatrixIterator(self._mask.array()))

    def begin(self, writable: bool = False) -> FilteredIterator:
        """Forward iterator; with ``writable`` its ``value`` can be assigned."""
        values = self._matrix.writable_array() if writable else self._matrix.array()
        return FilteredIterator(MatrixIterator(values), MatrixIterator(self._mask.array()))

    def fill(self, value: Any) -> FilteredView:
        """Set every selected element to ``value``."""
        selection = self._selection()
        self._matrix.writable_array()[selection] = value
        return self

    def assign(self, values: Any) -> FilteredView:
        """
        Write ``values`` to the selected elements in row-major order.

        Raises:
            DimensionError: If the number of values differs from the
                number of selected elements
        """
        values = np.asarray(operand_array(values)).ravel()
        if values.size != self.columns:
            raise DimensionError(
                f"cannot assign {values.size} values to {self.columns} selected elements"
            )
        selection = self._selection()
        self._matrix.writable_array()[selection] = values
        return self

    def array(self) -> NDArray[Any]:
        """Selected elements as a new 1 x N array."""
        return self._matrix.array()[self._selection()].reshape(1, -1)

    def to_matrix(self) -> Matrix:
        return Matrix.from_array(self.array())

    def __repr__(self) -> str:
        return f"FilteredView(1x{self.columns}, dtype={self._matrix.dtype})"
