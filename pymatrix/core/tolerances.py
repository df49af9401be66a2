"""
Tolerance tiers for numerical validation.

Defines precision expectations for the element types the decomposition
engine works in:
- FP64: double precision, reconstructions close to machine precision
- FP32: relaxed for single-precision arithmetic

The tiers supply the default tolerances of almost_equal(),
is_orthogonal_like() and is_singular(); rank_tolerance() drives the rank
decisions in QR and the pseudoinverse.
"""

from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True)
class ToleranceTier:
    """Tolerance specification for numerical comparison."""
    rtol: float
    atol: float
    name: str
    description: str


# Double precision, well-conditioned input
FP64 = ToleranceTier(
    rtol=1e-10,
    atol=1e-12,
    name='fp64',
    description='double precision, reconstruction near machine precision',
)

# Single precision
FP32 = ToleranceTier(
    rtol=1e-4,
    atol=1e-5,
    name='fp32',
    description='single precision',
)


def select_tolerance(dtype: np.dtype | type) -> ToleranceTier:
    """Select appropriate tolerance tier for a given element type."""
    if np.dtype(dtype) == np.float32:
        return FP32
    return FP64


def rank_tolerance(shape: tuple[int, int], eps: float, largest: float) -> float:
    """
    Threshold below which a diagonal/singular value counts as zero.

    max(m, n) * eps * largest, the convention shared by LAPACK-based
    rank estimates.
    """
    return max(shape) * eps * largest
