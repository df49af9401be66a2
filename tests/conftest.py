"""
pytest configuration and shared fixtures.
"""

import pytest
import numpy as np

from pymatrix import Matrix


@pytest.fixture
def rng():
    """Seeded random number generator for reproducible tests."""
    return np.random.default_rng(42)


@pytest.fixture
def magic3():
    """The 3 x 3 matrix 1..9 used by the windowing examples."""
    return Matrix.from_rows([[1, 2, 3], [4, 5, 6], [7, 8, 9]])


@pytest.fixture
def random_square(rng):
    """Well-conditioned 12 x 12 matrix."""
    return rng.standard_normal((12, 12))


@pytest.fixture
def random_tall(rng):
    """20 x 7 matrix with full column rank."""
    return rng.standard_normal((20, 7))


@pytest.fixture
def random_wide(rng):
    """6 x 15 matrix with full row rank."""
    return rng.standard_normal((6, 15))


@pytest.fixture
def rank_deficient(rng):
    """10 x 5 matrix of rank 3."""
    return rng.standard_normal((10, 3)) @ rng.standard_normal((3, 5))
