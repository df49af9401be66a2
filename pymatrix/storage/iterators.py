"""
Iterators over strided matrix storage.

Rows of a Matrix are ``stride`` bytes apart and may carry padding, so a
flat pointer walk over the memory would visit padding bytes. The iterators
here address elements through strided numpy views instead:

    MatrixIterator   - every element in row-major order. A linear offset is
                       turned into (row, column) with one divmod, so seeking
                       costs O(1) regardless of the distance.
    StridedIterator  - one row (step = itemsize) or one column
                       (step = stride bytes).
    FilteredIterator - forward-only walk over the elements whose mask
                       entry is non-zero.

Random-access iterators support ``it[k]``, ``it + k``, ``it - other``,
comparisons, and the ``value`` property. Writing requires an iterator
built over a writable view (e.g. ``matrix.begin(writable=True)``).
"""

from __future__ import annotations

import functools
from typing import Any, Iterator

import numpy as np
from numpy.typing import NDArray


def _same_storage(a: NDArray[Any], b: NDArray[Any]) -> bool:
    # Separate views of the same memory compare equal
    return (a.__array_interface__['data'][0] == b.__array_interface__['data'][0]
            and a.shape == b.shape and a.strides == b.strides)


@functools.total_ordering
class _RandomAccessIterator:
    """Position arithmetic shared by the random-access iterators."""

    def __init__(self, array: NDArray[Any], size: int, position: int = 0):
        self._array = array
        self._size = size
        self._position = position

    def _locate(self, offset: int) -> Any:
        raise NotImplementedError

    def _check(self, offset: int) -> int:
        if not 0 <= offset < self._size:
            raise IndexError(
                f"iterator offset {offset} outside the sequence of {self._size} elements"
            )
        return offset

    def _moved(self, position: int):
        clone = object.__new__(type(self))
        clone.__dict__.update(self.__dict__)
        clone._position = position
        return clone

    @property
    def position(self) -> int:
        """Linear offset from the start of the sequence."""
        return self._position

    @property
    def writable(self) -> bool:
        """True if values can be written through this iterator."""
        return bool(self._array.flags.writeable)

    @property
    def value(self) -> Any:
        """Element at the current position."""
        return self._array[self._locate(self._check(self._position))]

    @value.setter
    def value(self, new_value: Any) -> None:
        self._array[self._locate(self._check(self._position))] = new_value

    def __getitem__(self, k: int) -> Any:
        return self._array[self._locate(self._check(self._position + k))]

    def __setitem__(self, k: int, new_value: Any) -> None:
        self._array[self._locate(self._check(self._position + k))] = new_value

    def __iter__(self) -> Iterator[Any]:
        return self

    def __next__(self) -> Any:
        if self._position >= self._size:
            raise StopIteration
        result = self._array[self._locate(self._position)]
        self._position += 1
        return result

    def __len__(self) -> int:
        return max(self._size - self._position, 0)

    def __add__(self, k: int):
        return self._moved(self._position + k)

    __radd__ = __add__

    def __iadd__(self, k: int):
        self._position += k
        return self

    def __isub__(self, k: int):
        self._position -= k
        return self

    def __sub__(self, other):
        if isinstance(other, _RandomAccessIterator):
            return self._position - other._position
        return self._moved(self._position - other)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, _RandomAccessIterator):
            return NotImplemented
        return _same_storage(self._array, other._array) and self._position == other._position

    def __lt__(self, other: _RandomAccessIterator) -> bool:
        return self._position < other._position

    __hash__ = None


class MatrixIterator(_RandomAccessIterator):
    """
    Row-major iterator over a 2-D strided view.

    The view keeps the storage's row stride, so padding between rows is
    never visited and nothing is copied.
    """

    def __init__(self, array: NDArray[Any], position: int = 0):
        super().__init__(array, array.shape[0] * array.shape[1], position)
        self._columns = array.shape[1]

    def _locate(self, offset: int) -> tuple[int, int]:
        return divmod(offset, self._columns)

    @property
    def row(self) -> int:
        """Row of the current position."""
        return self._position // self._columns if self._columns else 0

    @property
    def column(self) -> int:
        """Column of the current position."""
        return self._position % self._columns if self._columns else 0


class StridedIterator(_RandomAccessIterator):
    """Fixed-step iterator over a 1-D strided view (one row or column)."""

    def __init__(self, vector: NDArray[Any], position: int = 0):
        super().__init__(vector, vector.shape[0], position)

    def _locate(self, offset: int) -> int:
        return offset

    @property
    def step(self) -> int:
        """Distance in bytes between consecutive elements."""
        return self._array.strides[0]

    def vector(self, n: int | None = None) -> NDArray[Any]:
        """
        The next ``n`` elements (default: all remaining) as a 1-D view.

        The view aliases the storage; it is writable iff the iterator is.
        """
        end = self._size if n is None else self._position + n
        return self._array[self._position:end]


class FilteredIterator:
    """
    Forward-only iterator over elements whose mask entry is non-zero.

    After ``next()`` returned an element, ``value`` can be reassigned to
    write that element back (writable views only).
    """

    def __init__(self, values: MatrixIterator, flags: MatrixIterator):
        self._values = values
        self._flags = flags
        self._current: int | None = None

    def __iter__(self) -> FilteredIterator:
        return self

    def __next__(self) -> Any:
        for flag in self._flags:
            position = self._values.position
            value = next(self._values)
            if flag != 0:
                self._current = position
                return value
        self._current = None
        raise StopIteration

    @property
    def value(self) -> Any:
        """Element returned by the latest ``next()``."""
        if self._current is None:
            raise IndexError("filtered iterator is not positioned on an element")
        return self._values._array[self._values._locate(self._current)]

    @value.setter
    def value(self, new_value: Any) -> None:
        if self._current is None:
            raise IndexError("filtered iterator is not positioned on an element")
        self._values._array[self._values._locate(self._current)] = new_value


def element_count(flags: NDArray[Any]) -> int:
    """Number of non-zero entries in a mask."""
    return int(np.count_nonzero(flags))
