"""
Dense linear algebra on top of the matrix storage.

Public API:
    householder_transform, reflect_columns, reflect_rows, unpack_reflectors
    qr_decompose_inplace, qr_compact, qr_unpack, qr_decompose -> QRResult
    qr_solve, inverse, determinant, is_singular
    bd_decompose -> BidiagonalResult, bd_compact, bd_unpack_q/p/b/diagonals
    PlaneRotation, givens_rotation, jacobi_rotation
    sv_decompose -> SVDResult
    pseudo_inverse
    principal_components -> PCAResult, pca_decorrelate
    fit_polynomial

Every decomposition accepts a Matrix, a matrix view or any numeric
array-like, and returns Matrix objects. Functions ending in _inplace and
the reflector helpers write into the storage they are given.
"""

from pymatrix.linalg.householder import (
    HouseholderReflector,
    householder_transform,
    reflect_columns,
    reflect_rows,
    unpack_reflectors,
)
from pymatrix.linalg.qr import (
    BLOCK_SIZE,
    QRFactors,
    QRResult,
    determinant,
    inverse,
    is_singular,
    qr_compact,
    qr_decompose,
    qr_decompose_inplace,
    qr_solve,
    qr_unpack,
)
from pymatrix.linalg.bidiagonal import (
    BidiagonalFactors,
    BidiagonalResult,
    bd_compact,
    bd_decompose,
    bd_decompose_inplace,
    bd_unpack_b,
    bd_unpack_diagonals,
    bd_unpack_p,
    bd_unpack_q,
)
from pymatrix.linalg.rotation import PlaneRotation, givens_rotation, jacobi_rotation
from pymatrix.linalg.svd import DEFAULT_MAX_SWEEPS, SVDResult, sv_decompose
from pymatrix.linalg.pinv import pseudo_inverse
from pymatrix.linalg.pca import PCAResult, pca_decorrelate, principal_components
from pymatrix.linalg.polynomial import fit_polynomial

__all__ = [
    "HouseholderReflector",
    "householder_transform",
    "reflect_columns",
    "reflect_rows",
    "unpack_reflectors",
    "BLOCK_SIZE",
    "QRFactors",
    "QRResult",
    "determinant",
    "inverse",
    "is_singular",
    "qr_compact",
    "qr_decompose",
    "qr_decompose_inplace",
    "qr_solve",
    "qr_unpack",
    "BidiagonalFactors",
    "BidiagonalResult",
    "bd_compact",
    "bd_decompose",
    "bd_decompose_inplace",
    "bd_unpack_b",
    "bd_unpack_diagonals",
    "bd_unpack_p",
    "bd_unpack_q",
    "PlaneRotation",
    "givens_rotation",
    "jacobi_rotation",
    "DEFAULT_MAX_SWEEPS",
    "SVDResult",
    "sv_decompose",
    "pseudo_inverse",
    "PCAResult",
    "pca_decorrelate",
    "principal_components",
    "fit_polynomial",
]
