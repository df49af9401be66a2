"""
Tests for the pymatrix exception hierarchy.

Validates:
    - Inheritance chain (all exceptions catchable via PyMatrixError)
    - OutOfRangeError is also an IndexError
    - Diagnostic attributes on SingularMatrixError and ConvergenceError
    - Default attribute values (None for optional attributes)
"""

import pytest

from pymatrix.core.exceptions import (
    ConvergenceError,
    DimensionError,
    NumericalError,
    OutOfRangeError,
    PyMatrixError,
    SingularMatrixError,
    ValidationError,
)


# ═══════════════════════════════════════════════════════════════════════
# Inheritance hierarchy
# ═══════════════════════════════════════════════════════════════════════


class TestInheritance:
    """Every exception is catchable via PyMatrixError."""

    def test_validation_error_is_pymatrix_error(self):
        with pytest.raises(PyMatrixError):
            raise ValidationError("bad input")

    def test_dimension_error_is_validation_error(self):
        with pytest.raises(ValidationError):
            raise DimensionError("wrong shape")

    def test_out_of_range_is_pymatrix_error(self):
        with pytest.raises(PyMatrixError):
            raise OutOfRangeError("row 7")

    def test_out_of_range_is_index_error(self):
        with pytest.raises(IndexError):
            raise OutOfRangeError("row 7")

    def test_singular_matrix_error_is_numerical_error(self):
        with pytest.raises(NumericalError):
            raise SingularMatrixError("singular")

    def test_convergence_error_is_not_numerical_error(self):
        """ConvergenceError inherits from PyMatrixError, not NumericalError."""
        err = ConvergenceError("did not converge", iterations=100)
        assert isinstance(err, PyMatrixError)
        assert not isinstance(err, NumericalError)


# ═══════════════════════════════════════════════════════════════════════
# Diagnostic attributes
# ═══════════════════════════════════════════════════════════════════════


class TestSingularMatrixError:
    """SingularMatrixError carries matrix diagnostic attributes."""

    def test_all_attributes(self):
        err = SingularMatrixError(
            "A is singular",
            matrix_name="A",
            condition_number=1e18,
            rank=3,
            expected_rank=5,
        )
        assert str(err) == "A is singular"
        assert err.matrix_name == "A"
        assert err.condition_number == 1e18
        assert err.rank == 3
        assert err.expected_rank == 5

    def test_defaults_are_none(self):
        err = SingularMatrixError("singular")
        assert err.matrix_name is None
        assert err.condition_number is None
        assert err.rank is None
        assert err.expected_rank is None


class TestConvergenceError:
    """ConvergenceError carries iteration diagnostics."""

    def test_all_attributes(self):
        err = ConvergenceError(
            "Jacobi SVD did not converge",
            iterations=100,
            final_change=1e-4,
            reason="max_iterations",
            threshold=4.4e-16,
        )
        assert str(err) == "Jacobi SVD did not converge"
        assert err.iterations == 100
        assert err.final_change == 1e-4
        assert err.reason == "max_iterations"
        assert err.threshold == 4.4e-16

    def test_defaults_are_none(self):
        err = ConvergenceError("failed", iterations=3)
        assert err.final_change is None
        assert err.reason is None
        assert err.threshold is None
