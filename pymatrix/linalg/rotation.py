"""
Plane (Givens/Jacobi) rotations.

A plane rotation acts on two coordinates p < q and leaves the rest alone.
In those two coordinates it is the matrix

    R = [  c  s ]
        [ -s  c ]

Only c and s are stored. Applied from the left (rotate_columns) it
touches rows p and q; applied from the right (rotate_rows) it touches
columns p and q.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any

from pymatrix.core.validation import writable_matrix


def _sign(value: float) -> float:
    return -1.0 if value < 0 else 1.0


@dataclass(frozen=True)
class PlaneRotation:
    """
    Rotation in the plane of two coordinate axes.

    Attributes:
        c: Cosine of the rotation angle
        s: Sine of the rotation angle
    """
    c: float = 1.0
    s: float = 0.0

    def __mul__(self, other: PlaneRotation) -> PlaneRotation:
        """Rotation equal to the matrix product self * other."""
        return PlaneRotation(
            self.c * other.c - self.s * other.s,
            self.c * other.s + self.s * other.c,
        )

    def transpose(self) -> PlaneRotation:
        """Inverse rotation (rotation matrices are orthogonal)."""
        return PlaneRotation(self.c, -self.s)

    def rotate_columns(self, A: Any, p: int, q: int) -> None:
        """
        A <- R A: rotate the column vectors of A, changing rows p and q.
        """
        target = writable_matrix(A, 'A')
        x = target[p].copy()
        y = target[q]
        target[p] = self.c * x + self.s * y
        target[q] = -self.s * x + self.c * y

    def rotate_rows(self, A: Any, p: int, q: int) -> None:
        """
        A <- A R: rotate the row vectors of A, changing columns p and q.
        """
        target = writable_matrix(A, 'A')
        x = target[:, p].copy()
        y = target[:, q]
        target[:, p] = self.c * x - self.s * y
        target[:, q] = self.s * x + self.c * y


def givens_rotation(a: float, b: float) -> tuple[PlaneRotation, float]:
    """
    Rotation that maps the column vector (a, b)' to (r, 0)'.

    Returns:
        (rotation, r) with rotation applied from the left
    """
    if b == 0:
        return PlaneRotation(_sign(a), 0.0), abs(a)
    if a == 0:
        return PlaneRotation(0.0, _sign(b)), abs(b)
    if abs(b) > abs(a):
        t = a / b
        u = math.copysign(math.sqrt(1 + t * t), b)
        s = 1 / u
        return PlaneRotation(s * t, s), b * u
    t = b / a
    u = math.copysign(math.sqrt(1 + t * t), a)
    c = 1 / u
    return PlaneRotation(c, c * t), a * u


def jacobi_rotation(x: float, y: float, z: float) -> PlaneRotation:
    """
    Rotation R that diagonalizes a symmetric 2 x 2 matrix.

    For S = [[x, y], [y, z]], R' S R is diagonal.
    """
    if y == 0:
        return PlaneRotation(1.0, 0.0)
    beta = (x - z) / (2 * abs(y))
    tau = 1 / (beta + math.copysign(math.sqrt(beta * beta + 1), beta))
    c = 1 / math.sqrt(tau * tau + 1)
    s = -_sign(tau) * _sign(y) * abs(tau) * c
    return PlaneRotation(c, s)
