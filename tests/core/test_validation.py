"""
Tests for input validation utilities.

Covers conversion and dtype rejection, finiteness, shape checks, the
distance-matrix checks (square, symmetric, non-negative), row-count
consistency and the minimum number of observations.
"""

import numpy as np
import pytest

from pymlm.core.exceptions import DimensionError, InputError, ValidationError
from pymlm.core.validation import (
    check_2d,
    check_array,
    check_consistent_length,
    check_finite,
    check_min_samples,
    check_nonnegative,
    check_square,
    check_symmetric,
)


class TestCheckArray:

    def test_int_coerced_to_float(self):
        result = check_array([1, 2, 3], "x")
        assert result.dtype == np.float64

    def test_float32_promoted(self):
        result = check_array(np.array([1.0], dtype=np.float32), "x")
        assert result.dtype == np.float64

    def test_object_dtype_rejected(self):
        with pytest.raises(ValidationError, match="object dtype"):
            check_array(np.array([1, "a", None], dtype=object), "x")

    def test_string_rejected(self):
        with pytest.raises(ValidationError, match="non-numeric"):
            check_array(["a", "b"], "x")

    def test_nan_passes_through(self):
        result = check_array([1.0, np.nan], "x")
        assert np.isnan(result[1])


class TestCheckFinite:

    def test_finite_ok(self):
        check_finite(np.array([1.0, 2.0]), "x")

    def test_nan_rejected(self):
        with pytest.raises(ValidationError, match="x"):
            check_finite(np.array([1.0, np.nan]), "x")

    def test_inf_rejected(self):
        with pytest.raises(ValidationError):
            check_finite(np.array([np.inf]), "x")


class TestCheck2d:

    def test_matrix_ok(self):
        check_2d(np.zeros((3, 2)), "x")

    def test_vector_rejected(self):
        with pytest.raises(DimensionError, match="expected a matrix"):
            check_2d(np.zeros(3), "x")


class TestDistanceChecks:

    def test_square_ok(self):
        check_square(np.zeros((4, 4)), "D")

    def test_rectangular_rejected(self):
        with pytest.raises(InputError, match="square"):
            check_square(np.zeros((4, 3)), "D")

    def test_1d_rejected_as_not_square(self):
        with pytest.raises(InputError):
            check_square(np.zeros(4), "D")

    def test_symmetric_ok(self):
        A = np.array([[0.0, 1.0], [1.0, 0.0]])
        check_symmetric(A, "D")

    def test_asymmetric_rejected(self):
        A = np.array([[0.0, 1.0], [2.0, 0.0]])
        with pytest.raises(InputError, match="not symmetric"):
            check_symmetric(A, "D")

    def test_round_off_asymmetry_tolerated(self):
        A = np.array([[0.0, 1.0], [1.0 + 1e-15, 0.0]])
        check_symmetric(A, "D")

    def test_missing_entries_ignored(self):
        A = np.array([[0.0, np.nan], [1.0, 0.0]])
        check_symmetric(A, "D")

    def test_nonnegative_ok(self):
        check_nonnegative(np.array([0.0, 1.0]), "D")

    def test_negative_rejected(self):
        with pytest.raises(InputError, match="non-negative"):
            check_nonnegative(np.array([0.0, -0.5]), "D")

    def test_negative_within_tolerance(self):
        check_nonnegative(np.array([0.0, -1e-14]), "D", tol=1e-12)


class TestCheckConsistentLength:

    def test_same_length_ok(self):
        check_consistent_length(np.zeros(3), np.zeros((3, 2)), names=("a", "b"))

    def test_mismatch(self):
        with pytest.raises(DimensionError, match="a=3, b=4"):
            check_consistent_length(np.zeros(3), np.zeros(4), names=("a", "b"))

    def test_names_count_mismatch(self):
        with pytest.raises(ValueError):
            check_consistent_length(np.zeros(3), names=("a", "b"))


class TestCheckMinSamples:

    def test_enough(self):
        check_min_samples(np.zeros((5, 2)), 3, "X")

    def test_too_few(self):
        with pytest.raises(ValidationError, match="at least 3"):
            check_min_samples(np.zeros((2, 2)), 3, "X")
