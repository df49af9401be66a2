"""
Binary persistence of matrices.

Layout (all little-endian):
    int32  rows
    int32  columns
    rows * columns elements, row-major, without stride padding

The element type is not stored; readers pass it in.
"""

from __future__ import annotations

import struct
from typing import Any, BinaryIO

import numpy as np
from numpy.typing import DTypeLike

from pymatrix.core.exceptions import ValidationError
from pymatrix.storage.matrix import Matrix, operand_array

_HEADER = struct.Struct('<ii')


def _element_type(dtype: DTypeLike) -> np.dtype:
    return np.dtype(dtype).newbyteorder('<')


def serialize(matrix: Any) -> bytes:
    """
    Encode a matrix as bytes.

    Args:
        matrix: Matrix or matrix-like

    Returns:
        Header followed by the packed elements
    """
    if not isinstance(matrix, Matrix):
        matrix = Matrix.from_array(operand_array(matrix))
    data = matrix.array().astype(_element_type(matrix.dtype), copy=False)
    return _HEADER.pack(matrix.rows, matrix.columns) + np.ascontiguousarray(data).tobytes()


def deserialize(data: bytes, dtype: DTypeLike = np.float64) -> Matrix:
    """
    Decode bytes produced by serialize().

    Trailing bytes after the last element are ignored.

    Raises:
        ValidationError: If the header is truncated or negative, or the
            payload is shorter than the header announces
    """
    view = memoryview(data)
    if len(view) < _HEADER.size:
        raise ValidationError(
            f"matrix header needs {_HEADER.size} bytes, got {len(view)}"
        )
    rows, columns = _HEADER.unpack_from(view)
    return _decode_payload(rows, columns, view[_HEADER.size:], dtype)


def _decode_payload(rows: int, columns: int, payload: Any, dtype: DTypeLike) -> Matrix:
    if rows < 0 or columns < 0:
        raise ValidationError(f"matrix header has negative dimensions {rows}x{columns}")
    element = _element_type(dtype)
    needed = rows * columns * element.itemsize
    if len(payload) < needed:
        raise ValidationError(
            f"{rows}x{columns} matrix needs {needed} bytes of data, got {len(payload)}"
        )
    values = np.frombuffer(payload, dtype=element, count=rows * columns)
    result = Matrix(rows, columns, dtype=np.dtype(dtype))
    if rows and columns:
        result.writable_array()[...] = values.reshape(rows, columns)
    return result


def write_matrix(stream: BinaryIO, matrix: Any) -> None:
    """Write a matrix to a binary stream."""
    stream.write(serialize(matrix))


def read_matrix(stream: BinaryIO, dtype: DTypeLike = np.float64) -> Matrix:
    """
    Read one matrix from a binary stream.

    Consumes exactly the bytes of one matrix, so several matrices can be
    read back to back.

    Raises:
        ValidationError: If the stream ends early or the header is invalid
    """
    header = stream.read(_HEADER.size)
    if len(header) < _HEADER.size:
        raise ValidationError(
            f"matrix header needs {_HEADER.size} bytes, got {len(header)}"
        )
    rows, columns = _HEADER.unpack(header)
    if rows < 0 or columns < 0:
        raise ValidationError(f"matrix header has negative dimensions {rows}x{columns}")
    payload = stream.read(rows * columns * np.dtype(dtype).itemsize)
    return _decode_payload(rows, columns, payload, dtype)
