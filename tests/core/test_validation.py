"""
Tests for input validation utilities.

Validates core/validation.py:
    - check_array: conversion, dtype coercion, Matrix input, rejection
    - check_finite, check_ndim/check_1d/check_2d, check_square
    - check_consistent_length
    - writable_matrix, writable_vector
"""

import numpy as np
import pytest

from pymatrix import Matrix
from pymatrix.core.exceptions import DimensionError, ValidationError
from pymatrix.core.validation import (
    check_1d,
    check_2d,
    check_array,
    check_consistent_length,
    check_finite,
    check_square,
    writable_matrix,
    writable_vector,
)


# ═══════════════════════════════════════════════════════════════════════
# check_array
# ═══════════════════════════════════════════════════════════════════════


class TestCheckArray:
    """check_array converts to a floating ndarray and rejects non-numeric data."""

    def test_list_to_float_array(self):
        result = check_array([1, 2, 3], "X")
        assert isinstance(result, np.ndarray)
        assert np.issubdtype(result.dtype, np.floating)
        np.testing.assert_array_equal(result, [1.0, 2.0, 3.0])

    def test_float32_preserved(self):
        arr = np.array([1.0, 2.0], dtype=np.float32)
        assert check_array(arr, "X").dtype == np.float32

    def test_matrix_input_is_a_view(self):
        m = Matrix.from_rows([[1.0, 2.0], [3.0, 4.0]])
        result = check_array(m, "A")
        assert result.shape == (2, 2)
        assert not result.flags.writeable
        np.testing.assert_array_equal(result, [[1, 2], [3, 4]])

    def test_integer_matrix_promoted(self):
        m = Matrix.from_rows([[1, 2]], dtype=np.int32)
        assert check_array(m, "A").dtype == np.float64

    def test_transposed_view_input(self):
        m = Matrix.from_rows([[1.0, 2.0, 3.0]])
        assert check_array(m.transposed(), "A").shape == (3, 1)

    def test_object_dtype_rejected(self):
        with pytest.raises(ValidationError, match="X"):
            check_array([1, "a", None], "X")

    def test_string_dtype_rejected(self):
        with pytest.raises(ValidationError, match="non-numeric"):
            check_array(np.array(["a", "b"]), "X")

    def test_complex_rejected(self):
        with pytest.raises(ValidationError, match="complex"):
            check_array(np.array([1 + 2j]), "X")


# ═══════════════════════════════════════════════════════════════════════
# Shape and value checks
# ═══════════════════════════════════════════════════════════════════════


class TestChecks:

    def test_check_finite_passes(self):
        check_finite(np.array([1.0, 2.0]), "X")

    def test_check_finite_counts(self):
        with pytest.raises(ValidationError, match="1 NaN, 1 Inf"):
            check_finite(np.array([np.nan, np.inf, 1.0]), "X")

    def test_check_1d(self):
        check_1d(np.zeros(3), "x")
        with pytest.raises(DimensionError, match="expected 1D"):
            check_1d(np.zeros((3, 1)), "x")

    def test_check_2d(self):
        check_2d(np.zeros((3, 1)), "X")
        with pytest.raises(DimensionError, match="expected 2D"):
            check_2d(np.zeros(3), "X")

    def test_check_square(self):
        check_square(np.zeros((3, 3)), "A")
        with pytest.raises(DimensionError, match="square"):
            check_square(np.zeros((3, 2)), "A")

    def test_consistent_length(self):
        check_consistent_length(np.zeros(3), np.zeros((3, 2)), names=("a", "b"))
        with pytest.raises(DimensionError, match="a=3, b=4"):
            check_consistent_length(np.zeros(3), np.zeros(4), names=("a", "b"))

    def test_consistent_length_name_count(self):
        with pytest.raises(ValueError):
            check_consistent_length(np.zeros(3), names=("a", "b"))


# ═══════════════════════════════════════════════════════════════════════
# Writable views
# ═══════════════════════════════════════════════════════════════════════


class TestWritableViews:

    def test_writable_matrix_detaches(self):
        a = Matrix.from_rows([[1.0, 2.0]])
        b = Matrix(a)
        writable_matrix(b, "A")[0, 0] = 5
        assert a[0, 0] == 1.0
        assert b[0, 0] == 5.0

    def test_writable_matrix_rejects_integers(self):
        with pytest.raises(ValidationError, match="floating-point"):
            writable_matrix(Matrix(2, 2, dtype=np.int32), "A")

    def test_writable_matrix_rejects_read_only_array(self):
        arr = np.zeros((2, 2))
        arr.flags.writeable = False
        with pytest.raises(ValidationError, match="read-only"):
            writable_matrix(arr, "A")

    def test_writable_vector_from_column_matrix(self):
        m = Matrix(3, 1)
        writable_vector(m, "x")[:] = [1, 2, 3]
        assert m.tolist() == [[1.0], [2.0], [3.0]]

    def test_writable_vector_from_iterator(self):
        m = Matrix(2, 4)
        it = m.row_begin(1, writable=True) + 1
        writable_vector(it, "x")[:] = 7
        assert m.tolist() == [[0, 0, 0, 0], [0, 7, 7, 7]]

    def test_writable_vector_rejects_full_matrix(self):
        with pytest.raises(DimensionError, match="vector"):
            writable_vector(Matrix(2, 2), "x")
