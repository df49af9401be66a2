"""
pymatrix: copy-on-write strided matrices and dense decompositions.

Matrices share their storage until one of the sharers writes; windows and
read-only views alias parts of a matrix without copying. The linear
algebra layer (Householder QR, Jacobi SVD, pseudoinverse, PCA) works
directly on that storage.

Submodules:
    storage: Matrix, windows, views, iterators, persistence, utilities
    linalg: Householder reflectors, QR, bidiagonal reduction, plane
        rotations, SVD, PCA
    core: exceptions, validation, precision constants, tolerances
"""

__version__ = "0.1.0"

from pymatrix.core.exceptions import (
    PyMatrixError,
    ValidationError,
    DimensionError,
    OutOfRangeError,
    NumericalError,
    SingularMatrixError,
    ConvergenceError,
)
from pymatrix.storage import (
    FilteredView,
    Matrix,
    Ownership,
    Submatrix,
    TransposedView,
    deserialize,
    read_matrix,
    serialize,
    write_matrix,
)
from pymatrix import linalg
from pymatrix.linalg import (
    pca_decorrelate,
    principal_components,
    pseudo_inverse,
    qr_decompose,
    sv_decompose,
)

__all__ = [
    "__version__",
    "PyMatrixError",
    "ValidationError",
    "DimensionError",
    "OutOfRangeError",
    "NumericalError",
    "SingularMatrixError",
    "ConvergenceError",
    "Matrix",
    "Submatrix",
    "TransposedView",
    "FilteredView",
    "Ownership",
    "serialize",
    "deserialize",
    "write_matrix",
    "read_matrix",
    "linalg",
    "qr_decompose",
    "sv_decompose",
    "pseudo_inverse",
    "principal_components",
    "pca_decorrelate",
]
