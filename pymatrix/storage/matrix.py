"""
Copy-on-write matrix handles.

A Matrix is a thin handle over a reference-counted Buffer. Copying a handle
is O(1): both handles share one Buffer until one of them writes, at which
point the writer detaches (clones the Buffer) and the other keeps the old
contents.

Design principles:
    - Reads never copy; every mutating operation detaches first
    - Dimension and index checks run before anything is modified
    - Storage is strided; numpy views with the Buffer's stride are the
      only way elements are touched, so row padding is never visited
    - Windows alias a region of their parent; read-only views pin it

Element access is not bounds-checked beyond numpy's own checks.
Structural operations (insert, remove, window) validate their indices and
raise OutOfRangeError.
"""

from __future__ import annotations

from typing import Any, Callable, Iterator, Sequence

import numpy as np
from numpy.typing import DTypeLike, NDArray

from pymatrix.core.exceptions import DimensionError, OutOfRangeError, ValidationError
from pymatrix.storage.buffer import Buffer, Ownership
from pymatrix.storage.iterators import MatrixIterator, StridedIterator


def operand_array(value: Any) -> NDArray[Any]:
    """
    Read-only ndarray for a Matrix, a matrix view or array-like input.

    Matrices and views are returned as views of their storage without
    copying; anything else goes through ``np.asarray``.
    """
    if isinstance(value, Matrix):
        return value.array()
    array_method = getattr(value, 'array', None)
    if callable(array_method) and not isinstance(value, np.ndarray):
        return array_method()
    return np.asarray(value)


def _is_matrix_like(value: Any) -> bool:
    if isinstance(value, Matrix):
        return True
    return not isinstance(value, np.ndarray) and callable(getattr(value, 'array', None))


def _is_scalar(value: Any) -> bool:
    if _is_matrix_like(value):
        return False
    return np.ndim(value) == 0


class Matrix:
    """
    Two-dimensional matrix with shared, copy-on-write storage.

    Construction:
        Matrix(rows, columns, dtype=np.float64)  zero-filled
        Matrix(other)                            shares other's storage
        Matrix(other, dtype=...)                 converted deep copy
        Matrix.from_rows(nested), Matrix.from_array(ndarray)
        Matrix.from_buffer(...)                  wraps caller memory
        Matrix.identity(n)

    Examples:
        >>> a = Matrix.from_rows([[1, 2], [3, 4]])
        >>> b = Matrix(a)        # shares storage
        >>> b[0, 0] = 10         # b detaches, a is unchanged
        >>> a[0, 0]
        1.0
    """

    # ndarray binary operators defer to ours
    __array_ufunc__ = None

    def __init__(
        self,
        rows: int | Matrix = 0,
        columns: int = 0,
        dtype: DTypeLike = None,
    ):
        if isinstance(rows, Matrix):
            other = rows
            if dtype is None or np.dtype(dtype) == other.dtype:
                self._dtype = other.dtype
                if other._buffer.window_refs or other._buffer.is_window:
                    # Window storage is written through the window, so it cannot be shared
                    self._buffer = other._buffer.clone(other.rows, other._buffer.bytes_per_row)
                else:
                    self._buffer = other._buffer.acquire()
            else:
                self._dtype = np.dtype(dtype)
                self._buffer = Buffer.allocate(other.rows, other.columns, self._dtype.itemsize)
                np.copyto(self._view(), other.array(), casting='unsafe')
            return
        if rows < 0 or columns < 0:
            raise ValidationError(f"matrix dimensions must be non-negative, got {rows}x{columns}")
        self._dtype = np.dtype(np.float64 if dtype is None else dtype)
        self._buffer = Buffer.allocate(rows, columns, self._dtype.itemsize)

    @classmethod
    def _wrap(cls, buffer: Buffer, dtype: np.dtype) -> Matrix:
        matrix = object.__new__(cls)
        matrix._buffer = buffer
        matrix._dtype = np.dtype(dtype)
        return matrix

    @classmethod
    def from_array(cls, array: Any, dtype: DTypeLike = None) -> Matrix:
        """
        Copy an array-like into a new Matrix.

        One-dimensional input becomes a single row.

        Raises:
            DimensionError: If the input has more than two dimensions
        """
        array = np.asarray(array, dtype=dtype)
        if array.ndim == 0:
            array = array.reshape(1, 1)
        elif array.ndim == 1:
            array = array.reshape(1, -1)
        elif array.ndim != 2:
            raise DimensionError(f"matrix input must be 1-D or 2-D, got {array.ndim}-D")
        result = Matrix(array.shape[0], array.shape[1], dtype=array.dtype)
        result._view()[...] = array
        return result

    @classmethod
    def from_rows(cls, rows: Sequence[Sequence[Any]], dtype: DTypeLike = None) -> Matrix:
        """
        Build a Matrix from a sequence of equally long rows.

        Raises:
            DimensionError: If the rows have different lengths
        """
        rows = [list(row) for row in rows]
        if not rows:
            return Matrix(0, 0, dtype=dtype)
        lengths = {len(row) for row in rows}
        if len(lengths) != 1:
            raise DimensionError(f"rows have inconsistent lengths: {sorted(lengths)}")
        if lengths == {0}:
            return Matrix(len(rows), 0, dtype=dtype)
        return cls.from_array(np.array(rows, dtype=dtype))

    @classmethod
    def from_buffer(
        cls,
        rows: int,
        columns: int,
        data: Any,
        dtype: DTypeLike = np.float64,
        ownership: Ownership = Ownership.EXTERNAL_BORROWED,
        stride: int = 0,
        deallocator: Callable[[Any], None] | None = None,
    ) -> Matrix:
        """
        Wrap caller memory without copying.

        Args:
            rows: Number of rows in ``data``
            columns: Number of columns in ``data``
            data: C-contiguous buffer-protocol object (bytearray, ndarray, ...)
            dtype: Element type stored in ``data``
            ownership: EXTERNAL_BORROWED (caller keeps ownership) or
                EXTERNAL_OWNED (``deallocator`` is called on release)
            stride: Bytes between rows; 0 means tightly packed
            deallocator: Callback receiving ``data`` when the last handle
                drops an EXTERNAL_OWNED matrix

        Raises:
            ValidationError: If the memory is too small or ownership is OWNED
        """
        dtype = np.dtype(dtype)
        if rows < 0 or columns < 0:
            raise ValidationError(f"matrix dimensions must be non-negative, got {rows}x{columns}")
        try:
            buffer = Buffer.create_reference(rows, columns, stride, data, dtype.itemsize,
                                             ownership=ownership, deallocator=deallocator)
        except ValueError as e:
            raise ValidationError(str(e)) from e
        return cls._wrap(buffer, dtype)

    @classmethod
    def identity(cls, n: int, dtype: DTypeLike = None) -> Matrix:
        """n x n identity matrix."""
        result = Matrix(n, n, dtype=dtype)
        diagonal = np.arange(n)
        result._view()[diagonal, diagonal] = 1
        return result

    def __del__(self) -> None:
        buffer = getattr(self, '_buffer', None)
        if buffer is not None:
            self._buffer = None
            buffer.release()

    # === Properties ===

    @property
    def rows(self) -> int:
        return self._buffer.rows

    @property
    def columns(self) -> int:
        return self._buffer.columns

    @property
    def shape(self) -> tuple[int, int]:
        return self._buffer.rows, self._buffer.columns

    @property
    def size(self) -> int:
        """Number of elements."""
        return self._buffer.rows * self._buffer.columns

    @property
    def dtype(self) -> np.dtype:
        return self._dtype

    @property
    def stride(self) -> int:
        """Bytes between the starts of consecutive rows."""
        return self._buffer.stride

    @property
    def capacity(self) -> int:
        """Rows that fit in the current storage."""
        return self._buffer.capacity

    @property
    def buffer(self) -> Buffer:
        """The Buffer behind this handle."""
        return self._buffer

    def is_empty(self) -> bool:
        return self.rows == 0 or self.columns == 0

    def is_shared(self) -> bool:
        """True if another handle references the same storage."""
        return self._buffer.refcount > 1

    # === Copy-on-write ===

    def _replace(self, buffer: Buffer) -> None:
        old, self._buffer = self._buffer, buffer
        old.release()

    def detach(self) -> None:
        """Make the storage exclusive to this handle, cloning it if needed."""
        buffer = self._buffer
        if buffer.needs_detach():
            self._replace(buffer.clone(buffer.capacity, buffer.bytes_per_row))

    def _detach_owned(self) -> Buffer:
        # Structural changes also need memory this handle may rearrange.
        buffer = self._buffer
        if buffer.needs_detach() or not buffer.is_internal():
            self._replace(buffer.clone(buffer.capacity, buffer.bytes_per_row))
        return self._buffer

    def _view(self, rows: int | None = None, columns: int | None = None) -> NDArray[Any]:
        return self._buffer.typed(self._dtype, rows, columns)

    def clone(self) -> Matrix:
        """Deep copy with exclusive storage."""
        buffer = self._buffer
        return Matrix._wrap(buffer.clone(buffer.rows, buffer.bytes_per_row), self._dtype)

    def __copy__(self) -> Matrix:
        return Matrix(self)

    def __deepcopy__(self, memo: dict) -> Matrix:
        return self.clone()

    # === Element access ===

    def _index(self, index: Any) -> Any:
        if isinstance(index, tuple):
            return index
        # A single index addresses a vector
        return (index, 0) if self.rows > 1 else (0, index)

    def __getitem__(self, index: Any) -> Any:
        return self.array()[self._index(index)]

    def __setitem__(self, index: Any, value: Any) -> None:
        index = self._index(index)
        self.detach()
        self._view()[index] = value

    def array(self) -> NDArray[Any]:
        """Read-only strided ndarray aliasing the storage."""
        view = self._view()
        view.flags.writeable = False
        return view

    def writable_array(self) -> NDArray[Any]:
        """
        Detach, then return a writable ndarray aliasing the storage.

        The array is only valid until the next structural change of this
        matrix and must not be kept past handing out another shared copy.
        """
        self.detach()
        return self._view()

    def row(self, index: int) -> NDArray[Any]:
        return self.array()[index]

    def column(self, index: int) -> NDArray[Any]:
        return self.array()[:, index]

    def writable_row(self, index: int) -> NDArray[Any]:
        return self.writable_array()[index]

    def writable_column(self, index: int) -> NDArray[Any]:
        return self.writable_array()[:, index]

    # === Iteration ===

    def _iteration_view(self, writable: bool) -> NDArray[Any]:
        return self.writable_array() if writable else self.array()

    def begin(self, writable: bool = False) -> MatrixIterator:
        """Row-major iterator positioned at the first element."""
        return MatrixIterator(self._iteration_view(writable))

    def end(self, writable: bool = False) -> MatrixIterator:
        """Row-major iterator positioned one past the last element."""
        return MatrixIterator(self._iteration_view(writable), self.size)

    def row_begin(self, index: int, writable: bool = False) -> StridedIterator:
        return StridedIterator(self._iteration_view(writable)[index])

    def column_begin(self, index: int, writable: bool = False) -> StridedIterator:
        return StridedIterator(self._iteration_view(writable)[:, index])

    def __iter__(self) -> Iterator[Any]:
        return MatrixIterator(self.array())

    # === Shape changes ===

    def resize(self, rows: int, columns: int) -> None:
        """
        Change the size, keeping the overlapping region.

        New cells are zero. The storage is reused when its capacity and
        stride suffice, otherwise a new block is allocated.
        """
        if rows < 0 or columns < 0:
            raise ValidationError(f"matrix dimensions must be non-negative, got {rows}x{columns}")
        old_rows, old_columns = self.shape
        if (rows, columns) == (old_rows, old_columns):
            return
        buffer = self._buffer
        bytes_per_row = columns * self._dtype.itemsize
        if buffer.is_internal() and bytes_per_row <= buffer.stride:
            if rows > buffer.capacity:
                self._reserve(rows, max(bytes_per_row, buffer.bytes_per_row))
            elif buffer.needs_detach():
                self._replace(buffer.clone(buffer.capacity, max(bytes_per_row, buffer.bytes_per_row)))
            buffer = self._buffer
            buffer.rows, buffer.columns = rows, columns
            view = self._view()
            if columns > old_columns:
                view[:min(rows, old_rows), old_columns:] = 0
            if rows > old_rows:
                view[old_rows:] = 0
        else:
            resized = Buffer.allocate(rows, columns, self._dtype.itemsize)
            resized.copy_rows(buffer, min(rows, old_rows), min(bytes_per_row, buffer.bytes_per_row))
            self._replace(resized)

    def reserve(self, rows: int) -> None:
        """Make room for ``rows`` rows without changing the size."""
        self._reserve(rows, self._buffer.bytes_per_row)

    def _reserve(self, rows: int, bytes_per_row: int) -> None:
        buffer = self._buffer
        if rows <= buffer.capacity:
            return
        if buffer.needs_detach() or not buffer.is_internal():
            self._replace(buffer.clone(rows, bytes_per_row))
        else:
            buffer.reallocate(rows)

    def _line_values(self, values: Any, length: int, what: str) -> NDArray[Any] | None:
        if values is None:
            return None
        values = np.asarray(operand_array(values)).ravel()
        if values.size != length:
            raise DimensionError(f"{what} has {values.size} elements, expected {length}")
        return values

    def append_row(self, values: Any = None) -> None:
        """
        Append a row (zeros if ``values`` is None).

        Capacity grows geometrically, so N appends reallocate O(log N)
        times. A 0x0 matrix adopts the length of ``values``.

        Raises:
            DimensionError: If ``values`` does not match the column count
        """
        if self.rows == 0 and self.columns == 0 and values is not None:
            self.resize(0, np.asarray(operand_array(values)).size)
        values = self._line_values(values, self.columns, 'row')
        self.detach()
        buffer = self._buffer
        if buffer.rows >= buffer.capacity:
            self._reserve(max(1, 2 * buffer.rows), buffer.bytes_per_row)
            buffer = self._buffer
        buffer.rows += 1
        self._view()[-1] = 0 if values is None else values

    def append_rows(self, other: Any) -> None:
        """
        Append all rows of another matrix.

        Raises:
            DimensionError: If the column counts differ
        """
        other = operand_array(other)
        if other.ndim == 1:
            other = other.reshape(1, -1)
        if self.rows == 0 and self.columns == 0:
            self.resize(0, other.shape[1])
        if other.shape[1] != self.columns:
            raise DimensionError(
                f"cannot append {other.shape[0]}x{other.shape[1]} rows "
                f"to a matrix with {self.columns} columns"
            )
        if other.shape[0] == 0:
            return
        # Copy first: other may alias this matrix
        other = np.array(other)
        self.detach()
        start = self.rows
        needed = start + other.shape[0]
        if needed > self._buffer.capacity:
            self._reserve(max(needed, 2 * start), self._buffer.bytes_per_row)
        self._buffer.rows = needed
        self._view()[start:] = other

    def append_column(self, values: Any = None) -> None:
        """Append a column (zeros if ``values`` is None)."""
        self.insert_column(-1, values)

    def insert_row(self, index: int, values: Any = None) -> None:
        """
        Insert a row before ``index``; -1 appends.

        Raises:
            OutOfRangeError: If index is outside [0, rows] and not -1
            DimensionError: If ``values`` does not match the column count
        """
        rows = self.rows
        if index == -1 or index == rows:
            self.append_row(values)
            return
        if not 0 <= index < rows:
            raise OutOfRangeError(f"row index {index} out of range for insertion into {rows} rows")
        values = self._line_values(values, self.columns, 'row')
        buffer = self._detach_owned()
        if rows + 1 > buffer.capacity:
            buffer.reallocate(max(1, 2 * rows))
        view = self._view(rows=rows + 1)
        view[index + 1:] = view[index:rows].copy()
        buffer.rows += 1
        view[index] = 0 if values is None else values

    def insert_column(self, index: int, values: Any = None) -> None:
        """
        Insert a column before ``index``; -1 appends.

        Appending grows the row stride geometrically, so repeated appends
        rarely reallocate. A 0x0 matrix adopts the length of ``values``.

        Raises:
            OutOfRangeError: If index is outside [0, columns] and not -1
            DimensionError: If ``values`` does not match the row count
        """
        if self.rows == 0 and self.columns == 0 and values is not None:
            self.resize(np.asarray(operand_array(values)).size, 0)
        rows, columns = self.shape
        if index == -1:
            index = columns
        if not 0 <= index <= columns:
            raise OutOfRangeError(
                f"column index {index} out of range for insertion into {columns} columns"
            )
        values = self._line_values(values, rows, 'column')
        itemsize = self._dtype.itemsize
        needed = (columns + 1) * itemsize
        buffer = self._buffer
        if buffer.needs_detach() or not buffer.is_internal() or needed > buffer.stride:
            if index == columns:
                bytes_per_row = max(needed, 2 * columns * itemsize)
            else:
                bytes_per_row = needed
            grown = Buffer.allocate(rows, columns + 1, itemsize,
                                    capacity=max(buffer.capacity, rows),
                                    bytes_per_row=bytes_per_row)
            new_view = grown.typed(self._dtype)
            old_view = self._view()
            new_view[:, :index] = old_view[:, :index]
            new_view[:, index + 1:] = old_view[:, index:]
            self._replace(grown)
        else:
            view = self._view(columns=columns + 1)
            view[:, index + 1:] = view[:, index:columns].copy()
            buffer.columns += 1
        self._view()[:, index] = 0 if values is None else values

    def remove_row(self, index: int) -> None:
        """Remove one row; -1 removes the last."""
        if index == -1:
            index = self.rows - 1
        self.remove_rows(index, 1)

    def remove_rows(self, index: int, count: int) -> None:
        """
        Remove ``count`` rows starting at ``index``.

        Raises:
            OutOfRangeError: If the range is not inside the matrix
        """
        rows = self.rows
        if count < 0 or index < 0 or index + count > rows:
            raise OutOfRangeError(f"cannot remove rows [{index}, {index + count}) of {rows}")
        if count == 0:
            return
        buffer = self._detach_owned()
        view = self._view()
        view[index:rows - count] = view[index + count:].copy()
        buffer.rows -= count

    def remove_column(self, index: int) -> None:
        """Remove one column; -1 removes the last."""
        if index == -1:
            index = self.columns - 1
        self.remove_columns(index, 1)

    def remove_columns(self, index: int, count: int) -> None:
        """
        Remove ``count`` columns starting at ``index``.

        Raises:
            OutOfRangeError: If the range is not inside the matrix
        """
        columns = self.columns
        if count < 0 or index < 0 or index + count > columns:
            raise OutOfRangeError(f"cannot remove columns [{index}, {index + count}) of {columns}")
        if count == 0:
            return
        buffer = self._detach_owned()
        view = self._view()
        view[:, index:columns - count] = view[:, index + count:].copy()
        buffer.columns -= count

    def clear(self) -> None:
        """Drop all contents; the matrix becomes 0x0."""
        self._replace(Buffer.allocate(0, 0, self._dtype.itemsize))

    # === Windows and views ===

    def _fix_indices(self, row: int, column: int, rows: int, columns: int) -> tuple[int, int, int, int]:
        if row < 0:
            row += self.rows
        if column < 0:
            column += self.columns
        if rows < 0:
            rows += self.rows - row + 1
        if columns < 0:
            columns += self.columns - column + 1
        if (row < 0 or column < 0 or rows < 0 or columns < 0
                or row + rows > self.rows or column + columns > self.columns):
            raise OutOfRangeError(
                f"window ({row}, {column}, {rows}, {columns}) "
                f"does not fit in a {self.rows}x{self.columns} matrix"
            )
        return row, column, rows, columns

    def window(self, row: int, column: int, rows: int = -1, columns: int = -1) -> Submatrix:
        """
        Mutable window aliasing a rectangle of this matrix.

        Negative ``row``/``column`` count from the end. Negative ``rows``
        or ``columns`` extend to the last row/column and then shrink by
        ``-rows - 1``/``-columns - 1``, so -1 means "to the end".

        Writes through the window land in this matrix. This matrix is
        detached first so the window never aliases storage that another
        handle shares.

        Raises:
            OutOfRangeError: If the window does not fit
        """
        row, column, rows, columns = self._fix_indices(row, column, rows, columns)
        self.detach()
        child = Buffer.create_child(self._buffer, row, column, rows, columns, window=True)
        return Submatrix._wrap(child, self._dtype)

    def view(self, row: int = 0, column: int = 0, rows: int = -1, columns: int = -1) -> Matrix:
        """
        Read-only snapshot of a rectangle of this matrix.

        Same index rules as window(). The view pins the storage, so the
        next write to this matrix detaches it and the view keeps the old
        values. Writing to the view detaches the view instead. While
        mutable windows of this matrix are alive, or when this matrix is
        itself a window, the view is copied immediately.
        """
        row, column, rows, columns = self._fix_indices(row, column, rows, columns)
        if self._buffer.window_refs or self._buffer.is_window:
            return Matrix.from_array(self.array()[row:row + rows, column:column + columns])
        child = Buffer.create_child(self._buffer, row, column, rows, columns, window=False)
        return Matrix._wrap(child, self._dtype)

    def transposed(self):
        """Transposed view sharing this matrix."""
        from pymatrix.storage.views import TransposedView
        return TransposedView(self)

    @property
    def T(self):
        return self.transposed()

    def filtered(self, mask: Any):
        """View of the elements whose ``mask`` entry is non-zero."""
        from pymatrix.storage.views import FilteredView
        return FilteredView(self, mask)

    # === Whole-matrix operations ===

    def fill(self, value: Any) -> Matrix:
        """Set every element to ``value``."""
        self.detach()
        self._view()[...] = value
        return self

    def assign(self, values: Any) -> Matrix:
        """
        Copy ``values`` element by element into this matrix.

        Accepts an equally shaped matrix/array or a flat sequence of
        ``rows * columns`` values in row-major order.

        Raises:
            DimensionError: If the number of values does not match
        """
        values = operand_array(values)
        if values.shape != self.shape:
            if values.size != self.size:
                raise DimensionError(
                    f"cannot assign {values.size} values to a {self.rows}x{self.columns} matrix"
                )
            values = values.reshape(self.shape)
        values = np.array(values)
        self.detach()
        self._view()[...] = values
        return self

    def _check_same_shape(self, other: NDArray[Any], operation: str) -> None:
        if other.shape != self.shape:
            raise DimensionError(
                f"{operation} needs equal sizes, got {self.rows}x{self.columns} "
                f"and {'x'.join(map(str, other.shape))}"
            )

    def _elementwise(self, other: Any, op: Callable, operation: str, reverse: bool = False) -> Matrix:
        if _is_scalar(other):
            operand = other
        else:
            operand = operand_array(other)
            self._check_same_shape(operand, operation)
        if reverse:
            return Matrix.from_array(op(operand, self.array()))
        return Matrix.from_array(op(self.array(), operand))

    def _inplace(self, other: Any, op: Callable, operation: str) -> Matrix:
        if _is_scalar(other):
            operand = other
        else:
            operand = np.array(operand_array(other))
            self._check_same_shape(operand, operation)
        self.detach()
        view = self._view()
        op(view, operand, out=view, casting='unsafe')
        return self

    def __add__(self, other: Any) -> Matrix:
        return self._elementwise(other, np.add, 'addition')

    def __radd__(self, other: Any) -> Matrix:
        return self._elementwise(other, np.add, 'addition', reverse=True)

    def __sub__(self, other: Any) -> Matrix:
        return self._elementwise(other, np.subtract, 'subtraction')

    def __rsub__(self, other: Any) -> Matrix:
        return self._elementwise(other, np.subtract, 'subtraction', reverse=True)

    def __mul__(self, other: Any) -> Matrix:
        return self._elementwise(other, np.multiply, 'elementwise multiplication')

    def __rmul__(self, other: Any) -> Matrix:
        return self._elementwise(other, np.multiply, 'elementwise multiplication', reverse=True)

    def __truediv__(self, other: Any) -> Matrix:
        return self._elementwise(other, np.true_divide, 'division')

    def __iadd__(self, other: Any) -> Matrix:
        return self._inplace(other, np.add, 'addition')

    def __isub__(self, other: Any) -> Matrix:
        return self._inplace(other, np.subtract, 'subtraction')

    def __imul__(self, other: Any) -> Matrix:
        return self._inplace(other, np.multiply, 'elementwise multiplication')

    def __itruediv__(self, other: Any) -> Matrix:
        return self._inplace(other, np.true_divide, 'division')

    def __neg__(self) -> Matrix:
        return Matrix.from_array(-self.array())

    def __matmul__(self, other: Any) -> Matrix:
        operand = operand_array(other)
        if operand.ndim != 2 or operand.shape[0] != self.columns:
            raise DimensionError(
                f"cannot multiply {self.rows}x{self.columns} by "
                f"{'x'.join(map(str, operand.shape))}"
            )
        return Matrix.from_array(self.array() @ operand)

    def __rmatmul__(self, other: Any) -> Matrix:
        operand = operand_array(other)
        if operand.ndim != 2 or operand.shape[1] != self.rows:
            raise DimensionError(
                f"cannot multiply {'x'.join(map(str, operand.shape))} "
                f"by {self.rows}x{self.columns}"
            )
        return Matrix.from_array(operand @ self.array())

    def __eq__(self, other: object) -> bool:
        if not _is_matrix_like(other):
            return NotImplemented
        other_array = operand_array(other)
        return other_array.shape == self.shape and bool(np.array_equal(self.array(), other_array))

    __hash__ = None

    # === Conversion ===

    def astype(self, dtype: DTypeLike) -> Matrix:
        """Matrix of another element type (shares storage if the type is unchanged)."""
        return Matrix(self, dtype=dtype)

    def to_numpy(self) -> NDArray[Any]:
        """Contiguous copy of the contents."""
        return np.array(self.array())

    def tolist(self) -> list[list[Any]]:
        return self.array().tolist()

    def __array__(self, dtype: DTypeLike = None, copy: bool | None = None) -> NDArray[Any]:
        return np.array(self.array(), dtype=dtype)

    def __repr__(self) -> str:
        body = np.array2string(self.array(), separator=', ', threshold=64)
        return f"{type(self).__name__}({body}, dtype={self._dtype})"


class Submatrix(Matrix):
    """
    Mutable window into another matrix's storage.

    Created by Matrix.window(). Writes go to the parent's memory. The
    window keeps the parent's storage alive; dropping the window releases
    it. Structural changes (resize, insert, remove) first copy the window
    into storage of its own, after which it no longer aliases the parent.
    """

    def __init__(self, *args: Any, **kwargs: Any):
        raise TypeError("Submatrix objects are created with Matrix.window()")

    def is_attached(self) -> bool:
        """True while the window still aliases its parent's storage."""
        return self._buffer.parent is not None
