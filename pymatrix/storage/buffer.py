"""
Shared raw storage behind Matrix handles.

A Buffer is a block of bytes laid out as ``capacity`` rows of ``stride``
bytes each, of which the first ``rows`` rows and ``columns * itemsize``
bytes per row are in use. Buffers know the size of an element but not its
type; the Matrix handle that owns one supplies the dtype.

Ownership:
    OWNED             - memory allocated here, released with the Buffer
    EXTERNAL_BORROWED - caller memory, never released by the Buffer
    EXTERNAL_OWNED    - caller memory handed over; the supplied deallocator
                        is called when the last reference goes away

A Buffer created with a ``parent`` aliases a region of the parent's memory.
It owns nothing itself and keeps the parent alive by holding one of the
parent's references.

Reference counts are explicit. Handles call acquire() when they start
sharing a Buffer and release() when they stop; both are atomic so handles
may be dropped from different threads.
"""

from __future__ import annotations

import enum
import threading
from typing import Any, Callable

import numpy as np
from numpy.typing import NDArray


# Internal allocations round the row stride up to this many bytes.
ROW_ALIGNMENT = 16


class Ownership(enum.Enum):
    """Who is responsible for the memory behind a Buffer."""
    OWNED = 'owned'
    EXTERNAL_BORROWED = 'external_borrowed'
    EXTERNAL_OWNED = 'external_owned'


def aligned_stride(bytes_per_row: int) -> int:
    """Round ``bytes_per_row`` up to ROW_ALIGNMENT."""
    return -(-bytes_per_row // ROW_ALIGNMENT) * ROW_ALIGNMENT


def _as_byte_array(external: Any) -> NDArray[np.uint8]:
    """View any contiguous buffer-protocol object as flat bytes."""
    view = memoryview(external)
    if not view.c_contiguous:
        raise ValueError("external memory must be C-contiguous")
    return np.frombuffer(view.cast('B'), dtype=np.uint8)


class Buffer:
    """
    Reference-counted strided storage.

    Construct via allocate(), create_reference() or create_child().

    Attributes:
        rows: Rows in use
        columns: Columns in use
        itemsize: Bytes per element
        stride: Bytes between the starts of consecutive rows
        capacity: Rows that fit without reallocation
        offset: Byte offset of row 0 within ``memory``
        ownership: Ownership kind
        parent: Buffer this one aliases, or None
        immutable: Writers must clone before writing
        reallocations: Number of times the memory block was replaced
    """

    def __init__(
        self,
        memory: NDArray[np.uint8],
        rows: int,
        columns: int,
        itemsize: int,
        stride: int,
        capacity: int,
        *,
        offset: int = 0,
        ownership: Ownership = Ownership.OWNED,
        parent: Buffer | None = None,
        window: bool = False,
        external: Any = None,
        deallocator: Callable[[Any], None] | None = None,
    ):
        self.memory = memory
        self.rows = rows
        self.columns = columns
        self.itemsize = itemsize
        self.stride = stride
        self.capacity = capacity
        self.offset = offset
        self.ownership = ownership
        self.parent = parent
        self.immutable = False
        self.reallocations = 0
        self._window = window
        self._external = external
        self._deallocator = deallocator
        self._refcount = 1
        self._window_refs = 0
        self._lock = threading.Lock()

    # === Construction ===

    @classmethod
    def allocate(
        cls,
        rows: int,
        columns: int,
        itemsize: int,
        capacity: int | None = None,
        bytes_per_row: int | None = None,
    ) -> Buffer:
        """
        Allocate a zero-filled, exclusively owned Buffer.

        Args:
            rows: Rows in use
            columns: Columns in use
            itemsize: Bytes per element
            capacity: Rows to allocate room for (defaults to ``rows``)
            bytes_per_row: Minimum row size in bytes before alignment
                (defaults to ``columns * itemsize``)

        Returns:
            Buffer with refcount 1
        """
        if capacity is None:
            capacity = rows
        if bytes_per_row is None:
            bytes_per_row = columns * itemsize
        stride = aligned_stride(max(bytes_per_row, columns * itemsize))
        memory = np.zeros(capacity * stride, dtype=np.uint8)
        return cls(memory, rows, columns, itemsize, stride, capacity)

    @classmethod
    def create_reference(
        cls,
        rows: int,
        columns: int,
        stride: int,
        external: Any,
        itemsize: int,
        ownership: Ownership = Ownership.EXTERNAL_BORROWED,
        deallocator: Callable[[Any], None] | None = None,
    ) -> Buffer:
        """
        Wrap caller-provided memory without copying it.

        Read-only memory (e.g. ``bytes``) produces an immutable Buffer, so
        the first write through any handle clones it.

        Args:
            rows: Number of rows stored in ``external``
            columns: Number of columns stored in ``external``
            stride: Bytes between rows; raised to ``columns * itemsize``
                if smaller
            external: Any C-contiguous buffer-protocol object
            itemsize: Bytes per element
            ownership: EXTERNAL_BORROWED or EXTERNAL_OWNED
            deallocator: Called with ``external`` when an EXTERNAL_OWNED
                Buffer is released for the last time

        Raises:
            ValueError: If ownership is OWNED or the memory is too small
        """
        if ownership is Ownership.OWNED:
            raise ValueError("external memory cannot have OWNED ownership")
        stride = max(stride, columns * itemsize)
        memory = _as_byte_array(external)
        needed = (rows - 1) * stride + columns * itemsize if rows and columns else 0
        if memory.size < needed:
            raise ValueError(
                f"external memory holds {memory.size} bytes, "
                f"{rows}x{columns} matrix with stride {stride} needs {needed}"
            )
        buffer = cls(memory, rows, columns, itemsize, stride, rows,
                     ownership=ownership, external=external,
                     deallocator=deallocator)
        buffer.immutable = not memory.flags.writeable
        return buffer

    @classmethod
    def create_child(
        cls,
        parent: Buffer,
        row: int,
        column: int,
        rows: int,
        columns: int,
        window: bool = True,
    ) -> Buffer:
        """
        Create a Buffer aliasing a rectangular region of ``parent``.

        The child holds one of the parent's references. A ``window`` child
        is a mutable alias and does not force the parent to detach. Any
        other child is immutable and pins the parent, so that the parent's
        next write clones and the child keeps seeing the old values.
        """
        parent.acquire(window=window)
        child = cls(parent.memory, rows, columns, parent.itemsize, parent.stride, rows,
                    offset=parent.row_offset(row) + column * parent.itemsize,
                    ownership=parent.ownership, parent=parent, window=window)
        child.immutable = not window or parent.immutable
        return child

    # === Reference counting ===

    @property
    def refcount(self) -> int:
        """Current number of strong references."""
        return self._refcount

    @property
    def window_refs(self) -> int:
        """Number of live mutable windows aliasing this Buffer."""
        return self._window_refs

    def acquire(self, window: bool = False) -> Buffer:
        """Add a reference and return self."""
        with self._lock:
            self._refcount += 1
            if window:
                self._window_refs += 1
        return self

    def release(self, window: bool = False) -> None:
        """
        Drop a reference.

        The last release hands memory back: a child releases its parent,
        an EXTERNAL_OWNED Buffer calls its deallocator.
        """
        with self._lock:
            self._refcount -= 1
            if window:
                self._window_refs -= 1
            last = self._refcount == 0
        if not last:
            return
        parent, self.parent = self.parent, None
        if parent is not None:
            parent.release(window=self._window)
        elif self.ownership is Ownership.EXTERNAL_OWNED and self._deallocator is not None:
            self._deallocator(self._external)
        self.memory = None
        self._external = None

    @property
    def is_window(self) -> bool:
        """True for a mutable child that writes into its parent's memory."""
        return self._window and self.parent is not None

    def needs_detach(self) -> bool:
        """True if a writer must clone before writing."""
        return self.immutable or self._refcount - self._window_refs > 1

    def is_internal(self) -> bool:
        """True if this Buffer owns its memory block and may reallocate it."""
        return self.ownership is Ownership.OWNED and self.parent is None

    # === Memory management ===

    @property
    def bytes_per_row(self) -> int:
        """Bytes in use per row (excludes stride padding)."""
        return self.columns * self.itemsize

    def row_offset(self, row: int) -> int:
        """Byte offset of ``row`` within ``memory``."""
        return self.offset + row * self.stride

    def clone(self, capacity: int, bytes_per_row: int) -> Buffer:
        """
        Deep copy into a new exclusively owned Buffer.

        Copies the rows in use, up to ``bytes_per_row`` bytes each. Nothing
        else is initialized; callers fill any new cells.

        Args:
            capacity: Rows to allocate room for (at least ``rows``)
            bytes_per_row: Bytes the new layout needs per row
        """
        capacity = max(capacity, self.rows)
        stride = aligned_stride(max(bytes_per_row, self.bytes_per_row))
        memory = np.empty(capacity * stride, dtype=np.uint8)
        clone = Buffer(memory, self.rows, self.columns, self.itemsize, stride, capacity)
        clone.copy_rows(self, self.rows, min(bytes_per_row, self.bytes_per_row))
        return clone

    def reallocate(self, capacity: int) -> None:
        """
        Replace the memory block with a larger one, keeping this object.

        Only valid for internally owned Buffers.
        """
        if not self.is_internal():
            raise RuntimeError("only internally owned buffers can be reallocated")
        memory = np.zeros(capacity * self.stride, dtype=np.uint8)
        used = self.rows * self.stride
        memory[:used] = self.memory[self.offset:self.offset + used]
        self.memory = memory
        self.offset = 0
        self.capacity = capacity
        self.reallocations += 1

    def raw_rows(self, rows: int, nbytes: int) -> NDArray[np.uint8]:
        """Byte-level (rows x nbytes) view of the start of each row."""
        if rows == 0 or nbytes == 0:
            return np.zeros((rows, nbytes), dtype=np.uint8)
        return np.ndarray(
            shape=(rows, nbytes),
            dtype=np.uint8,
            buffer=self.memory,
            offset=self.offset,
            strides=(self.stride, 1),
        )

    def copy_rows(self, source: Buffer, rows: int, nbytes: int) -> None:
        """Copy ``nbytes`` from each of the first ``rows`` rows of ``source``."""
        if rows == 0 or nbytes == 0:
            return
        self.raw_rows(rows, nbytes)[...] = source.raw_rows(rows, nbytes)

    def typed(self, dtype: np.dtype, rows: int | None = None,
              columns: int | None = None) -> NDArray[Any]:
        """
        Return an ndarray aliasing the rows/columns in use.

        The array has strides ``(stride, itemsize)``, so padding bytes at
        the end of each row are skipped without copying. ``rows`` and
        ``columns`` may extend the view into spare capacity or padding.
        """
        dtype = np.dtype(dtype)
        rows = self.rows if rows is None else rows
        columns = self.columns if columns is None else columns
        if rows == 0 or columns == 0:
            return np.zeros((rows, columns), dtype=dtype)
        return np.ndarray(
            shape=(rows, columns),
            dtype=dtype,
            buffer=self.memory,
            offset=self.offset,
            strides=(self.stride, dtype.itemsize),
        )

    def __repr__(self) -> str:
        return (
            f"Buffer(rows={self.rows}, columns={self.columns}, stride={self.stride}, "
            f"capacity={self.capacity}, refcount={self._refcount}, "
            f"ownership={self.ownership.value})"
        )
