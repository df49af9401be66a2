"""
Copy-on-write strided matrix storage.

Public API:
    Matrix, Submatrix: handles over shared storage
    TransposedView, FilteredView: storage-free views
    MatrixIterator, StridedIterator: element iteration
    serialize/deserialize, write_matrix/read_matrix: binary persistence
    almost_equal, is_orthogonal_like: tolerance-based comparison
    Buffer, Ownership: the storage itself (rarely needed directly)
"""

from pymatrix.storage.buffer import Buffer, Ownership, ROW_ALIGNMENT
from pymatrix.storage.iterators import FilteredIterator, MatrixIterator, StridedIterator
from pymatrix.storage.matrix import Matrix, Submatrix
from pymatrix.storage.views import FilteredView, TransposedView
from pymatrix.storage.serialization import (
    deserialize,
    read_matrix,
    serialize,
    write_matrix,
)
from pymatrix.storage.util import (
    almost_equal,
    concatenate,
    extend,
    flip,
    flipped,
    is_orthogonal_like,
    matlab_format,
    matlab_parse,
    mean,
    replicate,
    sort_rows,
    subtract_mean,
)

__all__ = [
    "Buffer",
    "Ownership",
    "ROW_ALIGNMENT",
    "Matrix",
    "Submatrix",
    "TransposedView",
    "FilteredView",
    "MatrixIterator",
    "StridedIterator",
    "FilteredIterator",
    "serialize",
    "deserialize",
    "write_matrix",
    "read_matrix",
    "almost_equal",
    "concatenate",
    "extend",
    "flip",
    "flipped",
    "is_orthogonal_like",
    "matlab_format",
    "matlab_parse",
    "mean",
    "replicate",
    "sort_rows",
    "subtract_mean",
]
